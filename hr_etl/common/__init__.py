"""
Common definitions shared across HR-ETL services.

This package is intentionally small: the employee column layout used by the
loader, cleaner and reporter lives here so the three services agree on it.
"""
