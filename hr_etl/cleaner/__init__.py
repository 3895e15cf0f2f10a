"""
Cleaner Service

This service repairs the inconsistent date encodings of imported employee
records and derives the age column.

Key responsibilities:
- Read raw employee rows from raw.hr_employees_raw
- Normalize birthdate, hire_date and termdate to calendar dates
- Compute the age snapshot against the processing date
- Write clean rows to staging.hr_employees_clean using upsert logic
"""

__version__ = "0.1.0"
