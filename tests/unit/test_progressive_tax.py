"""Tests for progressive tax over bracket tables.

Covers:
- Tax and breakdown for a two-bracket table
- Zero income, top-bracket income, exact bracket boundaries
- Malformed tables (gaps, overlaps, unbounded placement, empty)
- Period mismatch between table and caller
- Monotonicity and breakdown exactness over seeded random incomes
- Rounded breakdowns that add up to the rounded tax
"""

import random
from decimal import Decimal

import pytest

from hrpayroll.sdk import ConfigurationError
from hrpayroll.sdk.taxes import (
    BracketTable,
    ProgressiveTaxCalculator,
    TaxBracket,
    calculate_progressive_tax,
    get_tax_breakdown,
    round_breakdown,
    validate_brackets,
)
from hrpayroll.sdk.money import round_money


# === TEST CONSTANTS ===

YEAR = 2025


def make_table(rows, period="annual", year=YEAR):
    return BracketTable(
        year=year,
        period=period,
        brackets=[
            TaxBracket(
                lower_bound=Decimal(str(lower)),
                upper_bound=None if upper is None else Decimal(str(upper)),
                rate=Decimal(str(rate)),
            )
            for lower, upper, rate in rows
        ],
    )


SIMPLE = make_table([(0, 300000, 0), (300000, None, 5)])

THAI = make_table([
    (0, 150000, 0),
    (150000, 300000, 5),
    (300000, 500000, 10),
    (500000, 750000, 15),
    (750000, 1000000, 20),
    (1000000, 2000000, 25),
    (2000000, 5000000, 30),
    (5000000, None, 35),
])

# Rates that leave fractions of a cent in most brackets
FRACTIONAL = make_table([
    (0, "100000.5", "1.25"),
    ("100000.5", 333333, "7.333"),
    (333333, 1000000, "12.5"),
    (1000000, None, "17.777"),
])


# === BASIC CALCULATION ===


class TestCalculateProgressiveTax:
    """Tax totals and breakdown entries."""

    def test_two_bracket_table(self):
        """600000 over [0,300000):0%, [300000,inf):5% is 15000."""
        tax, breakdown = calculate_progressive_tax(Decimal("600000"), SIMPLE, "annual")

        assert tax == Decimal("15000")
        assert len(breakdown) == 2
        assert breakdown[0].income_in_bracket == Decimal("300000")
        assert breakdown[0].tax_for_bracket == Decimal("0")
        assert breakdown[1].income_in_bracket == Decimal("300000")
        assert breakdown[1].tax_for_bracket == Decimal("15000")

    def test_zero_income_has_no_tax_and_empty_breakdown(self):
        tax, breakdown = calculate_progressive_tax(Decimal("0"), THAI, "annual")
        assert tax == Decimal("0")
        assert breakdown == []

    def test_income_below_first_taxed_bracket(self):
        tax, breakdown = calculate_progressive_tax(Decimal("150000"), THAI, "annual")
        assert tax == Decimal("0")
        # Every bracket is listed, untouched ones with zero income
        assert len(breakdown) == len(THAI.brackets)
        assert all(entry.tax_for_bracket == 0 for entry in breakdown)

    def test_thai_table_one_million(self):
        """7500 + 20000 + 37500 + 50000 = 115000."""
        tax, _ = calculate_progressive_tax(Decimal("1000000"), THAI, "annual")
        assert tax == Decimal("115000")

    def test_income_in_top_bracket(self):
        """Everything above 5M is taxed at 35%."""
        tax, breakdown = calculate_progressive_tax(Decimal("6000000"), THAI, "annual")
        # 7500 + 20000 + 37500 + 50000 + 250000 + 900000 = 1265000, plus 350000 on the top million
        assert tax == Decimal("1615000")
        assert breakdown[-1].income_in_bracket == Decimal("1000000")
        assert breakdown[-1].tax_for_bracket == Decimal("350000")

    def test_income_exactly_on_boundary(self):
        _, breakdown = calculate_progressive_tax(Decimal("300000"), SIMPLE, "annual")
        assert breakdown[0].income_in_bracket == Decimal("300000")
        assert breakdown[1].income_in_bracket == Decimal("0")

    def test_fractional_income_is_not_rounded(self):
        tax, _ = calculate_progressive_tax(Decimal("300000.01"), SIMPLE, "annual")
        assert tax == Decimal("0.0005")

    def test_negative_income_rejected(self):
        with pytest.raises(ValueError):
            calculate_progressive_tax(Decimal("-1"), SIMPLE, "annual")

    def test_breakdown_matches_calculation(self):
        breakdown = get_tax_breakdown(Decimal("600000"), SIMPLE, "annual")
        _, from_calc = calculate_progressive_tax(Decimal("600000"), SIMPLE, "annual")
        assert breakdown == from_calc


class TestPeriodMismatch:
    """A table is only applied to income of its own period."""

    def test_monthly_table_rejected_for_annual_income(self):
        monthly = make_table([(0, 25000, 0), (25000, None, 5)], period="monthly")
        with pytest.raises(ConfigurationError) as exc:
            calculate_progressive_tax(Decimal("600000"), monthly, "annual")
        assert exc.value.year == YEAR

    def test_monthly_table_with_monthly_calculator(self):
        monthly = make_table([(0, 25000, 0), (25000, None, 5)], period="monthly")
        tax, _ = ProgressiveTaxCalculator(period="monthly").calculate(Decimal("50000"), monthly)
        assert tax == Decimal("1250")


# === TABLE VALIDATION ===


class TestValidateBrackets:
    """Malformed tables raise ConfigurationError naming the year."""

    def test_valid_table_passes(self):
        validate_brackets(THAI)

    def test_empty_table(self):
        with pytest.raises(ConfigurationError, match="No tax brackets"):
            validate_brackets(make_table([]))

    def test_gap_between_brackets(self):
        table = make_table([(0, 100000, 0), (150000, None, 5)])
        with pytest.raises(ConfigurationError, match="gap"):
            validate_brackets(table)

    def test_overlapping_brackets(self):
        table = make_table([(0, 200000, 0), (150000, None, 5)])
        with pytest.raises(ConfigurationError, match="overlap"):
            validate_brackets(table)

    def test_unbounded_bracket_not_last(self):
        table = make_table([(0, None, 0), (150000, None, 5)])
        with pytest.raises(ConfigurationError, match="unbounded"):
            validate_brackets(table)

    def test_top_bracket_must_be_unbounded(self):
        table = make_table([(0, 150000, 0), (150000, 300000, 5)])
        with pytest.raises(ConfigurationError, match="must be unbounded"):
            validate_brackets(table)

    def test_upper_not_above_lower(self):
        table = make_table([(0, 0, 0), (0, None, 5)])
        with pytest.raises(ConfigurationError):
            validate_brackets(table)

    def test_calculation_validates_table(self):
        table = make_table([(0, 100000, 0), (150000, None, 5)])
        with pytest.raises(ConfigurationError) as exc:
            calculate_progressive_tax(Decimal("200000"), table, "annual")
        assert exc.value.year == YEAR

    def test_rate_above_100_rejected_by_schema(self):
        with pytest.raises(ValueError):
            TaxBracket(lower_bound=Decimal("0"), upper_bound=None, rate=Decimal("101"))


# === ROUNDED BREAKDOWN ===


class TestRoundBreakdown:
    """Rounded per-bracket amounts add up to the rounded totals."""

    def test_half_cents_in_two_brackets(self):
        # 0.005 + 0.005: rounding each bracket alone would give 0.02 against a tax of 0.01
        table = make_table([(0, "0.1", 5), ("0.1", None, 5)])
        tax, breakdown = calculate_progressive_tax(Decimal("0.2"), table, "annual")
        rounded = round_breakdown(breakdown)

        assert round_money(tax) == Decimal("0.01")
        assert [e.tax_for_bracket for e in rounded] == [Decimal("0.01"), Decimal("0.00")]
        assert [e.income_in_bracket for e in rounded] == [Decimal("0.10"), Decimal("0.10")]

    def test_whole_amounts_unchanged(self):
        _, breakdown = calculate_progressive_tax(Decimal("600000"), SIMPLE, "annual")
        rounded = round_breakdown(breakdown)
        assert [e.tax_for_bracket for e in rounded] == [Decimal("0.00"), Decimal("15000.00")]
        assert [e.bracket for e in rounded] == [e.bracket for e in breakdown]

    def test_empty(self):
        assert round_breakdown([]) == []


# === PROPERTIES ===

_rng = random.Random(20250806)
RANDOM_INCOMES = sorted(
    Decimal(_rng.randint(0, 800_000_000)) / 100 for _ in range(40)
)


class TestProperties:
    """Monotonicity and exactness over seeded random incomes."""

    @pytest.mark.parametrize("income", RANDOM_INCOMES)
    def test_tax_equals_sum_of_breakdown(self, income):
        tax, breakdown = calculate_progressive_tax(income, THAI, "annual")
        assert tax == sum((entry.tax_for_bracket for entry in breakdown), Decimal("0"))

    @pytest.mark.parametrize("income", RANDOM_INCOMES)
    def test_breakdown_income_sums_to_taxable(self, income):
        breakdown = get_tax_breakdown(income, THAI, "annual")
        assert sum((entry.income_in_bracket for entry in breakdown), Decimal("0")) == income

    def test_tax_is_monotonic(self):
        taxes = [calculate_progressive_tax(i, THAI, "annual")[0] for i in RANDOM_INCOMES]
        assert taxes == sorted(taxes)

    @pytest.mark.parametrize("income", RANDOM_INCOMES)
    def test_tax_never_exceeds_top_rate(self, income):
        tax, _ = calculate_progressive_tax(income, THAI, "annual")
        assert Decimal("0") <= tax <= income * Decimal("0.35")

    @pytest.mark.parametrize("income", RANDOM_INCOMES)
    def test_rounded_breakdown_adds_up(self, income):
        tax, breakdown = calculate_progressive_tax(income, FRACTIONAL, "annual")
        rounded = round_breakdown(breakdown)
        assert sum((e.tax_for_bracket for e in rounded), Decimal("0")) == round_money(tax)
        assert sum((e.income_in_bracket for e in rounded), Decimal("0")) == round_money(income)
