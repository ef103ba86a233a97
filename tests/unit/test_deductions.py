"""Tests for DeductionSet resolution and the per-year cache."""

import threading
from decimal import Decimal

import pytest

from hrpayroll.sdk import ConfigurationError
from hrpayroll.sdk.taxes import (
    DeductionAssembler,
    SettingKind,
    TaxSetting,
    TaxSettingStore,
    TaxYearCache,
    build_deduction_set,
)


YEAR = 2025


def setting(key, value, kind, enabled=True, year=YEAR):
    return TaxSetting(key=key, value=Decimal(str(value)), kind=kind, effective_year=year, enabled=enabled)


def required_settings():
    return [
        setting("PERSONAL_ALLOWANCE", 60000, SettingKind.DEDUCTION),
        setting("STANDARD_DEDUCTION_MAX", 100000, SettingKind.LIMIT),
        setting("SSF_RATE", 5, SettingKind.RATE),
        setting("SSF_MAX_SALARY", 15000, SettingKind.LIMIT),
    ]


# === BUILD DEDUCTION SET ===


class TestBuildDeductionSet:
    """Resolution of enabled settings into named deductions."""

    def test_required_keys_only(self):
        deductions = build_deduction_set(YEAR, required_settings())

        assert deductions.personal_allowance == Decimal("60000")
        assert deductions.standard_deduction_cap == Decimal("100000")
        assert deductions.standard_deduction_rate is None
        assert deductions.social_security_rate == Decimal("5")
        assert deductions.social_security_cap == Decimal("15000")
        assert deductions.employer_social_security_rate == Decimal("5")
        assert deductions.social_security_max_contribution is None
        assert deductions.other_deductions == {}

    @pytest.mark.parametrize("missing", ["PERSONAL_ALLOWANCE", "STANDARD_DEDUCTION_MAX", "SSF_RATE", "SSF_MAX_SALARY"])
    def test_missing_required_key(self, missing):
        settings = [s for s in required_settings() if s.key != missing]
        with pytest.raises(ConfigurationError) as exc:
            build_deduction_set(YEAR, settings)
        assert exc.value.key == missing
        assert exc.value.year == YEAR

    def test_disabled_required_key_counts_as_missing(self):
        settings = [
            setting(s.key, s.value, s.kind, enabled=s.key != "SSF_RATE") for s in required_settings()
        ]
        with pytest.raises(ConfigurationError) as exc:
            build_deduction_set(YEAR, settings)
        assert exc.value.key == "SSF_RATE"

    def test_known_key_with_wrong_kind(self):
        settings = [s for s in required_settings() if s.key != "SSF_RATE"]
        settings.append(setting("SSF_RATE", 5, SettingKind.LIMIT))
        with pytest.raises(ConfigurationError, match="must be RATE"):
            build_deduction_set(YEAR, settings)

    def test_extra_deductions_collected(self):
        settings = required_settings() + [
            setting("LIFE_INSURANCE", 11000, SettingKind.DEDUCTION),
            setting("CHILD_ALLOWANCE", 30000, SettingKind.DEDUCTION, enabled=False),
            setting("PVD_FUND_RATE", 15, SettingKind.RATE),
        ]
        deductions = build_deduction_set(YEAR, settings)

        assert deductions.other_deductions == {"LIFE_INSURANCE": Decimal("11000")}
        assert deductions.other_deductions_total == Decimal("11000")

    def test_optional_keys(self):
        settings = required_settings() + [
            setting("EMPLOYMENT_DEDUCTION_RATE", 50, SettingKind.RATE),
            setting("SSF_EMPLOYER_RATE", 4, SettingKind.RATE),
            setting("SSF_MAX_MONTHLY", 750, SettingKind.LIMIT),
        ]
        deductions = build_deduction_set(YEAR, settings)

        assert deductions.standard_deduction_rate == Decimal("50")
        assert deductions.employer_social_security_rate == Decimal("4")
        assert deductions.social_security_max_contribution == Decimal("750")

    def test_per_employee_keys(self):
        settings = required_settings() + [
            setting("SPOUSE_ALLOWANCE", 60000, SettingKind.DEDUCTION),
            setting("CHILD_ALLOWANCE", 30000, SettingKind.DEDUCTION),
            setting("PARENT_ALLOWANCE", 30000, SettingKind.DEDUCTION, enabled=False),
            setting("PVD_FUND_RATE", 15, SettingKind.RATE),
            setting("PVD_FUND_MAX", 500000, SettingKind.LIMIT),
        ]
        deductions = build_deduction_set(YEAR, settings)

        assert deductions.spouse_allowance == Decimal("60000")
        assert deductions.child_allowance == Decimal("30000")
        assert deductions.child_allowance_subsequent is None
        assert deductions.parent_allowance is None
        assert deductions.provident_fund_rate == Decimal("15")
        assert deductions.provident_fund_max == Decimal("500000")
        assert deductions.saving_fund_rate is None
        # Applied per employee, never to everyone
        assert deductions.other_deductions == {}

    def test_per_employee_key_with_wrong_kind(self):
        settings = required_settings() + [setting("SAVING_FUND_RATE", 5, SettingKind.DEDUCTION)]
        with pytest.raises(ConfigurationError, match="must be RATE"):
            build_deduction_set(YEAR, settings)

    def test_standard_deduction_rate_and_cap(self):
        settings = required_settings() + [setting("EMPLOYMENT_DEDUCTION_RATE", 50, SettingKind.RATE)]
        deductions = build_deduction_set(YEAR, settings)

        assert deductions.standard_deduction(Decimal("120000")) == Decimal("60000")
        assert deductions.standard_deduction(Decimal("660000")) == Decimal("100000")

    def test_setting_from_other_year_rejected(self):
        settings = required_settings() + [setting("LIFE_INSURANCE", 11000, SettingKind.DEDUCTION, year=2024)]
        with pytest.raises(ConfigurationError):
            build_deduction_set(YEAR, settings)


# === CACHE ===


class TestTaxYearCache:
    """Generation-checked per-year cache."""

    def test_put_and_get(self):
        cache = TaxYearCache()
        snapshot = object()
        assert cache.put(YEAR, snapshot, cache.generation(YEAR)) is True
        assert cache.get(YEAR) is snapshot
        assert YEAR in cache

    def test_invalidate_drops_entry(self):
        cache = TaxYearCache()
        cache.put(YEAR, object(), cache.generation(YEAR))
        cache.invalidate(YEAR)
        assert cache.get(YEAR) is None
        assert YEAR not in cache

    def test_stale_put_after_invalidate_is_discarded(self):
        """A load that started before an invalidation does not repopulate the cache."""
        cache = TaxYearCache()
        generation = cache.generation(YEAR)
        cache.invalidate(YEAR)
        assert cache.put(YEAR, object(), generation) is False
        assert cache.get(YEAR) is None

    def test_invalidate_is_per_year(self):
        cache = TaxYearCache()
        cache.put(2024, "a", cache.generation(2024))
        cache.put(2025, "b", cache.generation(2025))
        cache.invalidate(2025)
        assert cache.get(2024) == "a"
        assert cache.get(2025) is None


class TestDeductionAssembler:
    """Read-through loading and invalidation on store writes."""

    def test_load_year(self, store):
        snapshot = DeductionAssembler(store).load_year(YEAR)
        assert snapshot.deductions.personal_allowance == Decimal("60000")
        assert snapshot.deductions.other_deductions == {"LIFE_INSURANCE": Decimal("11000")}
        assert snapshot.brackets.period == "annual"
        assert len(snapshot.brackets.brackets) == 2

    def test_second_load_served_from_cache(self, store, monkeypatch):
        assembler = DeductionAssembler(store)
        first = assembler.load_year(YEAR)

        def fail(year):
            raise AssertionError("store read on cache hit")

        monkeypatch.setattr(store, "read_year", fail)
        assert assembler.load_year(YEAR) is first

    def test_toggle_invalidates_before_returning(self, store):
        assembler = DeductionAssembler(store)
        assert "LIFE_INSURANCE" in assembler.compute_deductions(YEAR).other_deductions

        store.toggle_selection(YEAR, "LIFE_INSURANCE", enabled=False)

        assert YEAR not in assembler.cache
        assert "LIFE_INSURANCE" not in assembler.compute_deductions(YEAR).other_deductions

    def test_close_stops_invalidation(self, store):
        assembler = DeductionAssembler(store)
        assembler.load_year(YEAR)
        assembler.close()

        store.toggle_selection(YEAR, "LIFE_INSURANCE", enabled=False)
        assert YEAR in assembler.cache

    def test_closed_assemblers_do_not_accumulate(self, store):
        for _ in range(50):
            DeductionAssembler(store).close()
        assert store._subscribers == []

        kept = DeductionAssembler(store)
        DeductionAssembler(store).close()
        assert store._subscribers == [kept.cache.invalidate]

    def test_write_to_other_year_keeps_cache(self, store):
        assembler = DeductionAssembler(store)
        assembler.load_year(YEAR)
        store.update_setting(2024, "PERSONAL_ALLOWANCE", value=Decimal("70000"))
        assert YEAR in assembler.cache

    def test_missing_brackets(self, write_rules, rules_dir):
        write_rules(2030, brackets=None, settings=[
            {"key": "PERSONAL_ALLOWANCE", "value": 60000, "kind": "DEDUCTION"},
        ])
        with pytest.raises(ConfigurationError, match="No tax brackets"):
            DeductionAssembler(TaxSettingStore(rules_dir)).load_year(2030)

    def test_unconfigured_year(self, store):
        with pytest.raises(ConfigurationError) as exc:
            DeductionAssembler(store).load_year(2099)
        assert exc.value.year == 2099

    def test_concurrent_loads_and_toggles_settle_on_latest(self, store):
        assembler = DeductionAssembler(store)
        errors = []

        def reader():
            try:
                for _ in range(20):
                    assembler.load_year(YEAR)
            except Exception as e:  # surfaced below
                errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for enabled in (False, True, False):
            store.toggle_selection(YEAR, "LIFE_INSURANCE", enabled=enabled)
        for t in threads:
            t.join()

        assert errors == []
        assert "LIFE_INSURANCE" not in assembler.compute_deductions(YEAR).other_deductions
