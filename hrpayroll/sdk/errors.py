"""Error taxonomy for payroll calculations.

Every calculation either returns a complete result or raises exactly one
of these. Callers map them to their own transport status.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldError(BaseModel):
    """A single request field violation."""

    model_config = ConfigDict(extra="forbid")

    field: str = Field(..., description="Dotted field path (e.g., 'additional_income.0.amount')")
    message: str
    code: str = Field(default="invalid", description="Machine-readable error type")


class PayrollError(Exception):
    """Base class for all calculation failures."""
    pass


class ValidationError(PayrollError):
    """Malformed or out-of-range request fields.

    Carries every violation found, not just the first.
    """

    def __init__(self, errors: list, message: str = "Validation failed"):
        self.errors = list(errors)
        details = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(f"{message}: {details}" if details else message)


class ConfigurationError(PayrollError):
    """Required tax settings are missing or a bracket table is malformed."""

    def __init__(self, message: str, year: Optional[int] = None, key: Optional[str] = None):
        self.year = year
        self.key = key
        super().__init__(message)


class NotFoundError(PayrollError):
    """Referenced employee does not exist."""

    def __init__(self, employee_id):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found")


class InfrastructureError(PayrollError):
    """Settings store or employee directory is unreachable.

    Retryable by the caller once the underlying problem is fixed.
    """
    pass
