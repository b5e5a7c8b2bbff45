# File: rasqualtools/validators.py
# Location: rasqualtools/rasqualtools/validators.py

"""
Validation module for rasqualtools.

This module provides precondition checks for:
- Required columns in input tables (gene metadata, SNP tables)
- Numeric scalar arguments (cis window sizes)

Failures are logged and raised as DataValidationError so callers can
halt before any query is issued.
"""

import logging
import numbers
from typing import Any, Iterable

import pandas as pd

from .errors import DataValidationError

logger = logging.getLogger("rasqualtools")


def validate_required_columns(df: pd.DataFrame, columns: Iterable[str], table_name: str) -> None:
    """
    Validate that a DataFrame contains every required column.

    Parameters
    ----------
    df : pd.DataFrame
        Table to check.
    columns : iterable of str
        Column names that must be present.
    table_name : str
        Name used in the error message (e.g. "gene_metadata").

    Raises
    ------
    DataValidationError
        If any required column is missing.
    """
    for col in columns:
        if col not in df.columns:
            logger.error("%s does not have a column named '%s'", table_name, col)
            raise DataValidationError(
                f"{table_name} does not have a column named '{col}'. "
                f"Available columns: {list(df.columns)}",
                field=col,
            )


def validate_number(value: Any, name: str) -> None:
    """
    Validate that a value is a single real number.

    Booleans are rejected even though they subclass int.

    Raises
    ------
    DataValidationError
        If the value is not a real scalar number.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        logger.error("%s is not a number: %r", name, value)
        raise DataValidationError(f"{name} is not a number (got {value!r})", field=name)
