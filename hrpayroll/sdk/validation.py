"""Request validation that reports every violation at once.

Validation never raises: it returns a list of FieldError (empty when the
payload is acceptable). The service layer turns a non-empty list into a
ValidationError.
"""

from typing import Any, List, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .schemas import (
    AnnualSummaryRequest,
    FieldError,
    IncomeTaxRequest,
    PayrollRequest,
)

# Request kinds accepted by validate_calculation_inputs
REQUEST_SCHEMAS = {
    "payroll": PayrollRequest,
    "income_tax": IncomeTaxRequest,
    "annual_summary": AnnualSummaryRequest,
}


def _field_path(loc) -> str:
    return ".".join(str(part) for part in loc) or "__root__"


def _message(err: dict) -> str:
    # pydantic prefixes custom validator messages with "Value error, "
    msg = err["msg"]
    if err["type"] == "value_error" and msg.startswith("Value error, "):
        return msg[len("Value error, "):]
    return msg


class InputValidator:
    """Validates request payloads against a request schema.

    Args:
        schema: Pydantic model describing the request (PayrollRequest by default)
    """

    def __init__(self, schema: Type[BaseModel] = PayrollRequest):
        self.schema = schema

    def validate(self, payload: Any) -> List[FieldError]:
        """Return all field errors in payload; empty when valid."""
        if not isinstance(payload, dict):
            return [FieldError(
                field="__root__",
                message=f"Expected an object, got {type(payload).__name__}",
                code="dict_type",
            )]
        try:
            self.schema.model_validate(payload)
        except PydanticValidationError as e:
            return [
                FieldError(field=_field_path(err["loc"]), message=_message(err), code=err["type"])
                for err in e.errors()
            ]
        return []

    def parse(self, payload: Any):
        """Validate and return the parsed request model.

        Raises:
            ValidationError: With every violation found
        """
        errors = self.validate(payload)
        if errors:
            raise ValidationError(errors)
        return self.schema.model_validate(payload)


def validate_calculation_inputs(payload: Any, kind: str = "payroll") -> List[FieldError]:
    """Validate a request payload without calculating anything.

    Args:
        payload: Request data (dict)
        kind: One of 'payroll', 'income_tax', 'annual_summary'

    Returns:
        List of FieldError; empty if valid
    """
    schema = REQUEST_SCHEMAS.get(kind)
    if schema is None:
        raise ValueError(f"Unknown request kind: {kind} (expected one of {sorted(REQUEST_SCHEMAS)})")
    return InputValidator(schema).validate(payload)
