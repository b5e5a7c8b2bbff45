"""
Exception classes for rasqualtools.

Only precondition failures and malformed binary matrices are reported with
these types; parse errors from pandas and I/O errors from pysam propagate
unchanged.
"""

from typing import Dict, Optional


class RasqualToolsError(Exception):
    """Base exception for all rasqualtools errors."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        """Initialize rasqualtools error.

        Parameters
        ----------
        message : str
            Error message
        details : dict, optional
            Additional error details
        """
        super().__init__(message)
        self.details = details or {}


class DataValidationError(RasqualToolsError, ValueError):
    """Raised when an input table or argument fails a precondition check."""

    def __init__(self, message: str, field: str):
        """Initialize data validation error."""
        super().__init__(message, {"field": field})
        self.field = field


class FileFormatError(RasqualToolsError, ValueError):
    """Raised when a file has an invalid format."""

    def __init__(self, file_path: str, expected_format: str):
        """Initialize file format error."""
        message = f"Invalid file format for {file_path}. Expected: {expected_format}"
        super().__init__(message, {"file": file_path, "expected_format": expected_format})
