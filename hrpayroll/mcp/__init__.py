"""MCP server exposing the payroll calculations as tools."""
