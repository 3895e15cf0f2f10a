"""
Loader Service

Imports the employee flat file into raw.hr_employees_raw. Values are stored
as text exactly as they appear in the file; cleaning happens downstream.
"""

__version__ = "0.1.0"
