"""
Reporter Service

Runs the workforce composition reports over the clean employee table and
writes them as CSV artifacts for the BI dashboard.
"""

__version__ = "0.1.0"
