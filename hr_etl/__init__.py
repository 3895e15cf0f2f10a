"""HR Workforce ETL Package.

This package contains the services for the HR workforce pipeline:
- loader: Imports the employee flat file into the raw table
- cleaner: Normalizes date encodings and derives the age snapshot
- reporter: Runs the workforce composition reports and writes BI artifacts
"""

__version__ = "0.1.0"
