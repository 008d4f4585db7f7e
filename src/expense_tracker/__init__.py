"""
Expense Tracker – receipt extraction and budgeting helpers.

The package bundles the stateless HTTP handlers (receipt processing and
budget tips), the field-extraction pipeline with its regex fallback, and a
small JSON-backed expense ledger used by the command line.
"""

__version__ = "0.3.0"

__all__ = [
    "config",
    "logging",
    "paths",
]
