"""HR Payroll - payroll tax computation engine."""

__version__ = "0.3.0"
