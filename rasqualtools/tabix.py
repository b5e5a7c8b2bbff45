# File: rasqualtools/tabix.py
# Location: rasqualtools/rasqualtools/tabix.py

"""
Tabix scanning module.

Provides scan_tabix_dataframe, a general function to import the rows of a
bgzip-compressed, tabix-indexed tab-separated file that fall inside a set
of genomic ranges into one DataFrame per range.
"""

import io
import logging
from typing import Iterable, List, Optional, Sequence

import pandas as pd
import pysam

from .ranges import GenomicRange

logger = logging.getLogger("rasqualtools")


def fetch_tabix_lines(tabix: pysam.TabixFile, genomic_range: GenomicRange) -> List[str]:
    """
    Return the raw lines of an open tabix file overlapping one range.

    The range is 1-based and closed; pysam expects 0-based half-open
    coordinates. A contig missing from the index yields no lines.
    """
    start = max(0, genomic_range.start - 1)
    try:
        return list(tabix.fetch(genomic_range.seqname, start, genomic_range.end))
    except ValueError:
        logger.debug("Contig %s not present in tabix index", genomic_range.seqname)
        return []


def parse_tabix_lines(
    lines: Sequence[str], col_names: Optional[Sequence[str]] = None, **read_csv_kwargs
) -> Optional[pd.DataFrame]:
    """
    Parse tab-separated lines returned by a tabix query into a DataFrame.

    Returns None when no lines were matched. A single matched line is
    padded with an extra newline and only the first parsed row is kept.
    """
    if len(lines) == 0:
        return None

    kwargs = {"sep": "\t", "header": None}
    if col_names is not None:
        kwargs["names"] = list(col_names)
    kwargs.update(read_csv_kwargs)

    if len(lines) == 1:
        text = "\n".join(lines) + "\n\n"
        return pd.read_csv(io.StringIO(text), **kwargs).iloc[:1]

    text = "\n".join(lines)
    return pd.read_csv(io.StringIO(text), **kwargs)


def scan_tabix_dataframe(
    tabix_file: str,
    ranges: Iterable[GenomicRange],
    col_names: Optional[Sequence[str]] = None,
    **read_csv_kwargs,
) -> List[Optional[pd.DataFrame]]:
    """
    Import the rows of a tabix-indexed file that fall into each range.

    Parameters
    ----------
    tabix_file : str
        Path to a bgzip-compressed, tabix-indexed tab-separated file.
    ranges : iterable of GenomicRange
        Query ranges (1-based, closed), e.g. a GenomicRanges collection.
    col_names : sequence of str, optional
        Column names for the parsed tables. Without names, columns are
        labelled 0..n-1.
    **read_csv_kwargs
        Additional keyword arguments passed on to pandas.read_csv().

    Returns
    -------
    list of pd.DataFrame or None
        One entry per range, in query order; None for ranges without any
        matching line.
    """
    results: List[Optional[pd.DataFrame]] = []
    with pysam.TabixFile(tabix_file) as tabix:
        for genomic_range in ranges:
            lines = fetch_tabix_lines(tabix, genomic_range)
            logger.debug("Region %s: %d lines", genomic_range.to_region(), len(lines))
            results.append(parse_tabix_lines(lines, col_names, **read_csv_kwargs))
    return results
