"""Fiscal calendar and budget forecast calculations."""
