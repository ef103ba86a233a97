"""Progressive income tax over an ordered bracket table.

The calculation does no settings lookups and no rounding. The caller states the
table granularity it expects ("annual" or "monthly") and a mismatch is
rejected rather than silently mixing annual bounds with monthly income.
"""

from decimal import Decimal
from typing import List, Tuple

from ..errors import ConfigurationError
from ..money import ZERO, allocate_cents, percent_of
from .schemas import BracketContribution, BracketTable, Period, TaxBracket


def validate_brackets(table: BracketTable) -> None:
    """Check that a bracket table is sorted, contiguous and capped by one open bracket.

    Raises:
        ConfigurationError: Naming the year and the offending bracket
    """
    brackets = table.brackets
    if not brackets:
        raise ConfigurationError(f"No tax brackets defined for {table.year}", year=table.year)

    for index, bracket in enumerate(brackets):
        position = f"bracket {index + 1} of {table.year}"
        is_last = index == len(brackets) - 1

        if bracket.is_unbounded:
            if not is_last:
                raise ConfigurationError(
                    f"{position} is unbounded but is not the top bracket", year=table.year
                )
            continue

        if is_last:
            raise ConfigurationError(
                f"Top bracket of {table.year} must be unbounded (upper_bound: null)", year=table.year
            )
        if bracket.upper_bound <= bracket.lower_bound:
            raise ConfigurationError(
                f"{position} has upper_bound {bracket.upper_bound} <= lower_bound {bracket.lower_bound}",
                year=table.year,
            )

        next_lower = brackets[index + 1].lower_bound
        if next_lower != bracket.upper_bound:
            kind = "gap" if next_lower > bracket.upper_bound else "overlap"
            raise ConfigurationError(
                f"{position} ends at {bracket.upper_bound} but the next starts at {next_lower} ({kind})",
                year=table.year,
            )


def _income_in_bracket(taxable_income: Decimal, bracket: TaxBracket) -> Decimal:
    if bracket.is_unbounded:
        return max(ZERO, taxable_income - bracket.lower_bound)
    return max(ZERO, min(taxable_income, bracket.upper_bound) - bracket.lower_bound)


def get_tax_breakdown(
    taxable_income: Decimal,
    table: BracketTable,
    period: Period,
) -> List[BracketContribution]:
    """Per-bracket tax for a taxable income.

    Every bracket is listed, including those the income never reaches
    (with zero tax), so callers can display the full table. A zero income
    yields an empty breakdown.

    Args:
        taxable_income: Non-negative taxable income in the table's period
        table: Bracket table to apply
        period: Granularity the caller's income is expressed in

    Raises:
        ConfigurationError: Table is malformed or its period differs from `period`
        ValueError: taxable_income is negative
    """
    if table.period != period:
        raise ConfigurationError(
            f"Bracket table for {table.year} is {table.period}, caller expected {period}",
            year=table.year,
        )
    validate_brackets(table)

    if taxable_income < 0:
        raise ValueError(f"taxable_income must be >= 0, got {taxable_income}")
    if taxable_income == 0:
        return []

    breakdown = []
    for bracket in table.brackets:
        portion = _income_in_bracket(taxable_income, bracket)
        breakdown.append(BracketContribution(
            bracket=bracket,
            income_in_bracket=portion,
            tax_for_bracket=percent_of(portion, bracket.rate),
        ))
    return breakdown


def calculate_progressive_tax(
    taxable_income: Decimal,
    table: BracketTable,
    period: Period,
) -> Tuple[Decimal, List[BracketContribution]]:
    """Calculate progressive tax and its breakdown.

    The returned tax is exactly the sum of the breakdown entries.

    Returns:
        Tuple of (tax, breakdown)
    """
    breakdown = get_tax_breakdown(taxable_income, table, period)
    tax = sum((entry.tax_for_bracket for entry in breakdown), ZERO)
    return tax, breakdown


def round_breakdown(breakdown: List[BracketContribution]) -> List[BracketContribution]:
    """Copy of a breakdown with amounts in cents, for returning to callers.

    Per-bracket taxes add up to the rounded total tax, and per-bracket
    incomes to the rounded taxable income.
    """
    incomes = allocate_cents([entry.income_in_bracket for entry in breakdown])
    taxes = allocate_cents([entry.tax_for_bracket for entry in breakdown])
    return [
        BracketContribution(bracket=entry.bracket, income_in_bracket=income, tax_for_bracket=tax)
        for entry, income, tax in zip(breakdown, incomes, taxes)
    ]


class ProgressiveTaxCalculator:
    """Progressive tax bound to one granularity.

    Thin object form of the module functions, for components that are
    handed a calculator rather than calling functions directly.
    """

    def __init__(self, period: Period = "annual"):
        self.period = period

    def calculate(self, taxable_income: Decimal, table: BracketTable) -> Tuple[Decimal, List[BracketContribution]]:
        return calculate_progressive_tax(taxable_income, table, self.period)

    def get_tax_breakdown(self, taxable_income: Decimal, table: BracketTable) -> List[BracketContribution]:
        return get_tax_breakdown(taxable_income, table, self.period)
