"""
Utilities Module
================

Helper functions and utility classes.
"""

from app.utils.helpers import as_utc, utc_now

__all__ = ["as_utc", "utc_now"]
