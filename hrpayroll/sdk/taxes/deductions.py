"""Resolve a year's enabled tax settings into a DeductionSet.

Required settings (must be enabled for the year):
- PERSONAL_ALLOWANCE (DEDUCTION): annual personal allowance
- STANDARD_DEDUCTION_MAX (LIMIT): annual standard deduction cap
- SSF_RATE (RATE): employee social security rate, percent
- SSF_MAX_SALARY (LIMIT): monthly salary ceiling for social security

Optional settings:
- EMPLOYMENT_DEDUCTION_RATE (RATE): standard deduction as percent of annual
  income, bounded by STANDARD_DEDUCTION_MAX
- SSF_EMPLOYER_RATE (RATE): employer rate (defaults to matching SSF_RATE)
- SSF_MAX_MONTHLY (LIMIT): cap on each monthly contribution

Per-employee settings, applied according to the employee's profile:
- SPOUSE_ALLOWANCE, CHILD_ALLOWANCE (first child), CHILD_ALLOWANCE_SUBSEQUENT
  (each later child), PARENT_ALLOWANCE (each eligible parent): DEDUCTION
- PVD_FUND_RATE / PVD_FUND_MAX: provident fund for Thai nationals
- SAVING_FUND_RATE / SAVING_FUND_MAX: saving fund for non-Thai local staff

Any other enabled DEDUCTION setting is an extra flat annual deduction.
"""

import threading
from decimal import Decimal
from typing import Dict, List, Optional

from ..errors import ConfigurationError
from .schemas import DeductionSet, SettingKind, TaxSetting, TaxYearSnapshot
from .settings_store import TaxSettingStore

PERSONAL_ALLOWANCE = "PERSONAL_ALLOWANCE"
STANDARD_DEDUCTION_MAX = "STANDARD_DEDUCTION_MAX"
EMPLOYMENT_DEDUCTION_RATE = "EMPLOYMENT_DEDUCTION_RATE"
SSF_RATE = "SSF_RATE"
SSF_EMPLOYER_RATE = "SSF_EMPLOYER_RATE"
SSF_MAX_SALARY = "SSF_MAX_SALARY"
SSF_MAX_MONTHLY = "SSF_MAX_MONTHLY"
SPOUSE_ALLOWANCE = "SPOUSE_ALLOWANCE"
CHILD_ALLOWANCE = "CHILD_ALLOWANCE"
CHILD_ALLOWANCE_SUBSEQUENT = "CHILD_ALLOWANCE_SUBSEQUENT"
PARENT_ALLOWANCE = "PARENT_ALLOWANCE"
PVD_FUND_RATE = "PVD_FUND_RATE"
PVD_FUND_MAX = "PVD_FUND_MAX"
SAVING_FUND_RATE = "SAVING_FUND_RATE"
SAVING_FUND_MAX = "SAVING_FUND_MAX"

# key -> kind it must be declared as
REQUIRED_SETTINGS = {
    PERSONAL_ALLOWANCE: SettingKind.DEDUCTION,
    STANDARD_DEDUCTION_MAX: SettingKind.LIMIT,
    SSF_RATE: SettingKind.RATE,
    SSF_MAX_SALARY: SettingKind.LIMIT,
}
OPTIONAL_SETTINGS = {
    EMPLOYMENT_DEDUCTION_RATE: SettingKind.RATE,
    SSF_EMPLOYER_RATE: SettingKind.RATE,
    SSF_MAX_MONTHLY: SettingKind.LIMIT,
    SPOUSE_ALLOWANCE: SettingKind.DEDUCTION,
    CHILD_ALLOWANCE: SettingKind.DEDUCTION,
    CHILD_ALLOWANCE_SUBSEQUENT: SettingKind.DEDUCTION,
    PARENT_ALLOWANCE: SettingKind.DEDUCTION,
    PVD_FUND_RATE: SettingKind.RATE,
    PVD_FUND_MAX: SettingKind.LIMIT,
    SAVING_FUND_RATE: SettingKind.RATE,
    SAVING_FUND_MAX: SettingKind.LIMIT,
}


class TaxYearCache:
    """Read-through cache of resolved tax years, invalidated per year.

    A generation counter per year keeps a load that raced with an
    invalidation from storing the value it read before the write.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[int, TaxYearSnapshot] = {}
        self._generations: Dict[int, int] = {}

    def get(self, year: int) -> Optional[TaxYearSnapshot]:
        with self._lock:
            return self._entries.get(year)

    def generation(self, year: int) -> int:
        with self._lock:
            return self._generations.get(year, 0)

    def put(self, year: int, snapshot: TaxYearSnapshot, generation: int) -> bool:
        """Store a snapshot unless the year was invalidated since `generation` was read."""
        with self._lock:
            if self._generations.get(year, 0) != generation:
                return False
            self._entries[year] = snapshot
            return True

    def invalidate(self, year: int) -> None:
        with self._lock:
            self._entries.pop(year, None)
            self._generations[year] = self._generations.get(year, 0) + 1

    def clear(self) -> None:
        with self._lock:
            for year in list(self._entries):
                self._generations[year] = self._generations.get(year, 0) + 1
            self._entries.clear()

    def __contains__(self, year: int) -> bool:
        with self._lock:
            return year in self._entries


def _index_settings(year: int, settings: List[TaxSetting]) -> Dict[str, TaxSetting]:
    by_key = {}
    for setting in settings:
        if setting.effective_year != year:
            raise ConfigurationError(
                f"Setting {setting.key} is effective {setting.effective_year}, not {year}",
                year=year, key=setting.key,
            )
        by_key[setting.key] = setting
    return by_key


def _require(by_key: Dict[str, TaxSetting], year: int, key: str) -> Decimal:
    setting = by_key.get(key)
    if setting is None:
        raise ConfigurationError(
            f"Required tax setting {key} is missing or disabled for {year}", year=year, key=key
        )
    return setting.value


def _optional(by_key: Dict[str, TaxSetting], key: str) -> Optional[Decimal]:
    setting = by_key.get(key)
    return setting.value if setting else None


def _check_kind(setting: TaxSetting, expected: SettingKind) -> None:
    if setting.kind is not expected:
        raise ConfigurationError(
            f"Tax setting {setting.key} for {setting.effective_year} must be {expected.value}, "
            f"found {setting.kind.value}",
            year=setting.effective_year, key=setting.key,
        )


def build_deduction_set(year: int, settings: List[TaxSetting]) -> DeductionSet:
    """Resolve enabled settings for one year into a DeductionSet.

    Raises:
        ConfigurationError: A required key is missing, or a known key has the wrong kind
    """
    by_key = _index_settings(year, [s for s in settings if s.enabled])

    known = {**REQUIRED_SETTINGS, **OPTIONAL_SETTINGS}
    other_deductions = {}
    for key, setting in by_key.items():
        if key in known:
            _check_kind(setting, known[key])
            continue
        if setting.kind is SettingKind.DEDUCTION:
            other_deductions[key] = setting.value
        elif setting.kind in (SettingKind.RATE, SettingKind.LIMIT):
            # Rates and limits only mean something to the keys that read them
            continue
        else:
            raise ConfigurationError(
                f"Unhandled setting kind {setting.kind!r} for {key}", year=year, key=key
            )

    employee_rate = _require(by_key, year, SSF_RATE)
    employer_rate = _optional(by_key, SSF_EMPLOYER_RATE)

    return DeductionSet(
        year=year,
        personal_allowance=_require(by_key, year, PERSONAL_ALLOWANCE),
        standard_deduction_cap=_require(by_key, year, STANDARD_DEDUCTION_MAX),
        standard_deduction_rate=_optional(by_key, EMPLOYMENT_DEDUCTION_RATE),
        social_security_rate=employee_rate,
        social_security_cap=_require(by_key, year, SSF_MAX_SALARY),
        employer_social_security_rate=employee_rate if employer_rate is None else employer_rate,
        social_security_max_contribution=_optional(by_key, SSF_MAX_MONTHLY),
        other_deductions=other_deductions,
        spouse_allowance=_optional(by_key, SPOUSE_ALLOWANCE),
        child_allowance=_optional(by_key, CHILD_ALLOWANCE),
        child_allowance_subsequent=_optional(by_key, CHILD_ALLOWANCE_SUBSEQUENT),
        parent_allowance=_optional(by_key, PARENT_ALLOWANCE),
        provident_fund_rate=_optional(by_key, PVD_FUND_RATE),
        provident_fund_max=_optional(by_key, PVD_FUND_MAX),
        saving_fund_rate=_optional(by_key, SAVING_FUND_RATE),
        saving_fund_max=_optional(by_key, SAVING_FUND_MAX),
    )


class DeductionAssembler:
    """Loads a year's DeductionSet and bracket table through a per-year cache.

    Subscribes to the store so that every setting or bracket write
    invalidates the cached year before the write call returns. Call close()
    when done with an assembler over a long-lived store.
    """

    def __init__(self, store: TaxSettingStore, cache: Optional[TaxYearCache] = None):
        self.store = store
        self.cache = cache if cache is not None else TaxYearCache()
        store.subscribe(self.cache.invalidate)

    def load_year(self, year: int) -> TaxYearSnapshot:
        """Deductions and brackets for a year, read from the store at most once.

        Raises:
            ConfigurationError: Settings or brackets are missing or malformed
            InfrastructureError: The store cannot be read
        """
        cached = self.cache.get(year)
        if cached is not None:
            return cached

        generation = self.cache.generation(year)
        settings, brackets = self.store.read_year(year)
        if brackets is None:
            raise ConfigurationError(f"No tax brackets configured for {year}", year=year)

        snapshot = TaxYearSnapshot(
            deductions=build_deduction_set(year, settings),
            brackets=brackets,
        )
        self.cache.put(year, snapshot, generation)
        return snapshot

    def compute_deductions(self, year: int) -> DeductionSet:
        return self.load_year(year).deductions

    def invalidate(self, year: int) -> None:
        self.cache.invalidate(year)

    def close(self) -> None:
        """Stop listening for store writes."""
        self.store.unsubscribe(self.cache.invalidate)
