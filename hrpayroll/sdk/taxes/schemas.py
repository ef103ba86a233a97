"""Pydantic schemas for tax configuration.

These schemas validate the tax-rules/*.yaml files and provide typed access
to brackets, settings, and the resolved per-year deduction set.
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Period = Literal["annual", "monthly"]


class SettingKind(str, Enum):
    """What a tax setting's value means."""

    DEDUCTION = "DEDUCTION"  # flat amount subtracted from annual income
    RATE = "RATE"            # percentage
    LIMIT = "LIMIT"          # cap on an amount


class TaxBracket(BaseModel):
    """Single progressive tax bracket covering [lower_bound, upper_bound)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    lower_bound: Decimal = Field(..., ge=0, description="Inclusive lower bound")
    upper_bound: Optional[Decimal] = Field(
        default=None, description="Exclusive upper bound (None for the top bracket)"
    )
    rate: Decimal = Field(..., ge=0, le=100, description="Tax rate as a percentage")

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None


class BracketTable(BaseModel):
    """Ordered bracket table for one year, tagged with its granularity."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    year: int
    period: Period = Field(..., description="Whether bounds are annual or monthly amounts")
    brackets: List[TaxBracket]


class TaxSetting(BaseModel):
    """A configurable tax value for one effective year."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str = Field(..., min_length=1)
    value: Decimal = Field(..., ge=0)
    kind: SettingKind
    effective_year: int = Field(..., ge=2000, le=2100)
    enabled: bool = True
    description: Optional[str] = None


class DeductionSet(BaseModel):
    """Enabled settings for a year, resolved into named deductions and rates.

    Allowance and deduction amounts are annual. The social security cap is
    a monthly salary ceiling.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    year: int
    personal_allowance: Decimal
    standard_deduction_cap: Decimal
    standard_deduction_rate: Optional[Decimal] = Field(
        default=None, description="Percent of annual income; None means the cap applies as-is"
    )
    social_security_rate: Decimal
    social_security_cap: Decimal
    employer_social_security_rate: Decimal
    social_security_max_contribution: Optional[Decimal] = None
    other_deductions: Dict[str, Decimal] = Field(default_factory=dict)

    # Applied per employee, and only when enabled for the year
    spouse_allowance: Optional[Decimal] = None
    child_allowance: Optional[Decimal] = Field(default=None, description="First child")
    child_allowance_subsequent: Optional[Decimal] = Field(default=None, description="Each later child")
    parent_allowance: Optional[Decimal] = Field(default=None, description="Per eligible parent")
    provident_fund_rate: Optional[Decimal] = Field(default=None, description="PVD fund, percent")
    provident_fund_max: Optional[Decimal] = None
    saving_fund_rate: Optional[Decimal] = Field(default=None, description="Saving fund, percent")
    saving_fund_max: Optional[Decimal] = None

    def standard_deduction(self, annual_income: Decimal) -> Decimal:
        """Standard deduction for an annual income, bounded by the cap."""
        if self.standard_deduction_rate is None:
            return self.standard_deduction_cap
        return min(annual_income * self.standard_deduction_rate / 100, self.standard_deduction_cap)

    @property
    def other_deductions_total(self) -> Decimal:
        return sum(self.other_deductions.values(), Decimal("0"))


class TaxYearSnapshot(BaseModel):
    """Everything a calculation reads from the store, captured in one read."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    deductions: DeductionSet
    brackets: BracketTable


class BracketContribution(BaseModel):
    """Tax attributed to one bracket."""

    model_config = ConfigDict(extra="forbid")

    bracket: TaxBracket
    income_in_bracket: Decimal
    tax_for_bracket: Decimal


class ComplianceReport(BaseModel):
    """A year's tax configuration checked against Thai Revenue Department rules."""

    model_config = ConfigDict(extra="forbid")

    tax_year: int
    is_compliant: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    compliance_score: int = Field(..., ge=0, le=100)
