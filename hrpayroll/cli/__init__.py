"""hr-payroll command-line interface."""
