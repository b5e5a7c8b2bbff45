# File: rasqualtools/export.py
# Location: rasqualtools/rasqualtools/export.py

"""
Matrix export module.

Writes expression, covariate and size-factor matrices in the layout RASQUAL
reads: a tab-separated text file with row names and no header, plus a raw
binary file of the same values.

Binary layout
-------------
Values are flattened in row-major order (all columns of row 1, then row 2,
...) and stored as little-endian IEEE-754 float64 ("<f8") with no header.
The number of rows and columns is not stored and must be passed to
RASQUAL (or to load_rasqual_matrix) separately.
"""

import csv
import logging
import os
from typing import Mapping, Optional, Union

import numpy as np
import pandas as pd

from .config import get_default
from .errors import FileFormatError

logger = logging.getLogger("rasqualtools")

MatrixLike = Union[pd.DataFrame, np.ndarray]


def _as_dataframe(matrix: MatrixLike) -> pd.DataFrame:
    if isinstance(matrix, pd.DataFrame):
        return matrix
    array = np.asarray(matrix)
    if array.ndim != 2:
        raise ValueError(f"Expected a two-dimensional matrix, got {array.ndim} dimension(s)")
    # Unnamed rows are numbered from 1, like R's write.table
    return pd.DataFrame(array, index=range(1, array.shape[0] + 1))


def rasqual_matrix_paths(output_dir: str, name: str, file_suffix: str) -> tuple:
    """Return the (text, binary) paths used for one named matrix."""
    base = os.path.join(output_dir, f"{name}.{file_suffix}")
    return f"{base}.txt", f"{base}.bin"


def save_rasqual_matrices(
    data: Mapping[str, MatrixLike],
    output_dir: str,
    file_suffix: str = "expression",
    dtype: Optional[str] = None,
) -> None:
    """
    Save a collection of matrices in a format suitable for RASQUAL.

    For each entry two files are written to output_dir:
    ``<name>.<file_suffix>.txt`` (tab-separated, row names kept, no column
    header) and ``<name>.<file_suffix>.bin`` (row-major float64 values).

    Parameters
    ----------
    data : mapping of str to DataFrame or ndarray
        Matrices keyed by name. ndarrays are written with row names 1..n.
    output_dir : str
        Existing directory that receives the files.
    file_suffix : str
        Suffix added to each file after its name.
    dtype : str, optional
        numpy dtype string for the binary file. Default from config ("<f8").
    """
    dtype = np.dtype(dtype or get_default("binary_dtype"))
    for name, matrix in data.items():
        df = _as_dataframe(matrix)
        file_path, file_path_bin = rasqual_matrix_paths(output_dir, name, file_suffix)
        logger.info("Writing %s (%d x %d)", file_path, df.shape[0], df.shape[1])

        df.to_csv(file_path, sep="\t", header=False, index=True, quoting=csv.QUOTE_NONE)
        df.to_numpy(dtype=float).astype(dtype).tofile(file_path_bin)
        logger.debug("Wrote binary matrix %s", file_path_bin)


def load_rasqual_matrix(
    path: str, n_rows: int, n_cols: int, dtype: Optional[str] = None
) -> np.ndarray:
    """
    Read a binary matrix written by save_rasqual_matrices.

    Parameters
    ----------
    path : str
        Path to a ``.bin`` file.
    n_rows, n_cols : int
        Matrix dimensions; the binary file does not record them.
    dtype : str, optional
        dtype the file was written with. Default from config ("<f8").

    Returns
    -------
    np.ndarray
        Array of shape (n_rows, n_cols) with native float64 values.

    Raises
    ------
    FileFormatError
        If the file does not hold exactly n_rows * n_cols values.
    """
    dtype = np.dtype(dtype or get_default("binary_dtype"))
    values = np.fromfile(path, dtype=dtype)
    if values.size != n_rows * n_cols:
        raise FileFormatError(
            path, f"{n_rows} x {n_cols} float64 values, found {values.size} values"
        )
    return values.astype(float).reshape(n_rows, n_cols)
