"""employee - Employee directory collaborator.

Scope:
- Existence checks for employee ids referenced by payroll requests

Usage:
    from hrpayroll.sdk.employee import EmployeeDirectory

    directory = EmployeeDirectory.from_file()
    directory.require(42)  # raises NotFoundError
"""

from .directory import EmployeeDirectory

__all__ = [
    "EmployeeDirectory",
]
