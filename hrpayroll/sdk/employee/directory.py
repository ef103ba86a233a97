"""Employee existence checks.

The employee master data lives elsewhere; payroll only needs to know
whether an id is known. The directory file is YAML:

    employees:
      - id: 1
        name: Somchai P.
      - id: 2

or simply a list of ids.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Set

import yaml

from ..config import get_employees_path
from ..errors import InfrastructureError, NotFoundError

logger = logging.getLogger(__name__)


def _parse_ids(raw, path: Path) -> Set[int]:
    entries = raw.get("employees", []) if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise InfrastructureError(f"Employee directory {path} must hold a list of employees")

    ids = set()
    for entry in entries:
        value = entry.get("id") if isinstance(entry, dict) else entry
        try:
            ids.add(int(value))
        except (TypeError, ValueError) as e:
            raise InfrastructureError(f"Invalid employee id {value!r} in {path}") from e
    return ids


class EmployeeDirectory:
    """Set of known employee ids.

    Args:
        employee_ids: Known ids (use from_file() to load them from YAML)
    """

    def __init__(self, employee_ids: Iterable[int] = ()):
        self._ids = {int(i) for i in employee_ids}

    @classmethod
    def from_file(cls, path: Optional[Path] = None) -> "EmployeeDirectory":
        """Load the directory from YAML (default: configured employees_file).

        Raises:
            InfrastructureError: If the file is missing or unreadable
        """
        path = Path(path) if path else get_employees_path()
        try:
            with open(path, "r") as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise InfrastructureError(f"Cannot read employee directory {path}: {e}") from e

        ids = _parse_ids(raw or [], path)
        logger.debug(f"Loaded {len(ids)} employee id(s) from {path}")
        return cls(ids)

    def exists(self, employee_id: int) -> bool:
        return employee_id in self._ids

    def require(self, employee_id: int) -> None:
        """Raise NotFoundError unless the employee is known."""
        if not self.exists(employee_id):
            raise NotFoundError(employee_id)

    def __len__(self) -> int:
        return len(self._ids)
