# File: rasqualtools/ranges.py
# Location: rasqualtools/rasqualtools/ranges.py

"""
Genomic range construction module.

This module provides:
- GenomicRange / GenomicRanges: 1-based, closed genomic intervals used as
  query keys into tabix-indexed files.
- dataframe_to_ranges: build a GenomicRanges collection from a table.
- construct_gene_ranges: cis-window ranges around selected genes.
- construct_snp_ranges: point ranges for individual SNPs.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Union

import numpy as np
import pandas as pd

from .validators import validate_number, validate_required_columns

logger = logging.getLogger("rasqualtools")

GENE_METADATA_COLUMNS = ["gene_id", "chr", "start", "end"]
SNP_METADATA_COLUMNS = ["snp_id", "chr", "pos"]


@dataclass(frozen=True)
class GenomicRange:
    """
    A single genomic interval.

    Coordinates are 1-based and closed on both ends, so a SNP at position
    100 is ``GenomicRange("1", 100, 100)``.
    """

    seqname: str
    start: int
    end: int
    strand: str = "*"
    name: Optional[str] = None

    def to_region(self) -> str:
        """Return the range as a samtools-style region string (chr:start-end)."""
        return f"{self.seqname}:{self.start}-{self.end}"


class GenomicRanges:
    """Ordered collection of GenomicRange objects."""

    def __init__(self, ranges: Optional[Iterable[GenomicRange]] = None):
        self._ranges: List[GenomicRange] = list(ranges) if ranges is not None else []

    def __len__(self) -> int:
        return len(self._ranges)

    def __iter__(self) -> Iterator[GenomicRange]:
        return iter(self._ranges)

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return GenomicRanges(self._ranges[index])
        return self._ranges[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, GenomicRanges):
            return NotImplemented
        return self._ranges == other._ranges

    def __repr__(self) -> str:
        return f"GenomicRanges({len(self._ranges)} ranges)"

    @property
    def names(self) -> List[Optional[str]]:
        return [r.name for r in self._ranges]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the ranges as a DataFrame with seqnames/start/end/strand/name columns."""
        return pd.DataFrame(
            {
                "seqnames": [r.seqname for r in self._ranges],
                "start": [r.start for r in self._ranges],
                "end": [r.end for r in self._ranges],
                "strand": [r.strand for r in self._ranges],
                "name": [r.name for r in self._ranges],
            }
        )


def dataframe_to_ranges(
    df: pd.DataFrame,
    seqname_col: str = "seqnames",
    start_col: str = "start",
    end_col: str = "end",
    name_col: Optional[str] = None,
    strand_col: Optional[str] = "strand",
) -> GenomicRanges:
    """
    Convert a DataFrame of coordinates into a GenomicRanges collection.

    Parameters
    ----------
    df : pd.DataFrame
        Table with one row per interval.
    seqname_col, start_col, end_col : str
        Columns holding chromosome, start and end (1-based, closed).
    name_col : str, optional
        Column holding the identifier attached to each range.
    strand_col : str, optional
        Column holding the strand; "*" is used when absent.

    Returns
    -------
    GenomicRanges
        One range per row, in table order.
    """
    required = [seqname_col, start_col, end_col] + ([name_col] if name_col else [])
    validate_required_columns(df, required, "range table")

    n = len(df)
    strands = df[strand_col] if strand_col is not None and strand_col in df.columns else ["*"] * n
    names = df[name_col].astype(str) if name_col else [None] * n

    ranges = [
        GenomicRange(seqname=str(chrom), start=int(start), end=int(end), strand=str(strand), name=name)
        for chrom, start, end, strand, name in zip(
            df[seqname_col], df[start_col], df[end_col], strands, names
        )
    ]
    return GenomicRanges(ranges)


def _selected_gene_ids(selected_genes: Union[pd.DataFrame, Iterable[str]]) -> List[str]:
    if isinstance(selected_genes, pd.DataFrame):
        validate_required_columns(selected_genes, ["gene_id"], "selected_genes")
        return selected_genes["gene_id"].astype(str).tolist()
    if isinstance(selected_genes, str):
        return [selected_genes]
    return [str(g) for g in selected_genes]


def construct_gene_ranges(
    selected_genes: Union[pd.DataFrame, Iterable[str]],
    gene_metadata: pd.DataFrame,
    cis_window: Union[int, float],
) -> GenomicRanges:
    """
    Construct cis-region ranges around each selected gene.

    Parameters
    ----------
    selected_genes : pd.DataFrame or iterable of str
        Genes to keep; a DataFrame must contain a ``gene_id`` column.
    gene_metadata : pd.DataFrame
        Gene metadata with at least the columns gene_id, chr, start, end.
    cis_window : int or float
        Number of bases added on both sides of each gene.

    Returns
    -------
    GenomicRanges
        One range per matching metadata row, named by gene_id, with
        ``start = max(0, start - cis_window)`` and ``end = end + cis_window``.

    Raises
    ------
    DataValidationError
        If gene_metadata lacks a required column or cis_window is not a number.
    """
    validate_required_columns(gene_metadata, GENE_METADATA_COLUMNS, "gene_metadata")
    validate_number(cis_window, "cis_window")

    gene_ids = set(_selected_gene_ids(selected_genes))
    filtered_metadata = gene_metadata[gene_metadata["gene_id"].astype(str).isin(gene_ids)]
    logger.info(
        "Selected %d of %d genes from metadata (cis window: %s)",
        len(filtered_metadata),
        len(gene_metadata),
        cis_window,
    )
    logger.debug("Filtered gene metadata:\n%s", filtered_metadata)

    range_df = pd.DataFrame(
        {
            "seqnames": filtered_metadata["chr"].astype(str).to_numpy(),
            "start": np.maximum(0, filtered_metadata["start"].to_numpy() - cis_window),
            "end": filtered_metadata["end"].to_numpy() + cis_window,
            "strand": "*",
            "gene_id": filtered_metadata["gene_id"].astype(str).to_numpy(),
        }
    )
    return dataframe_to_ranges(range_df, name_col="gene_id")


def construct_snp_ranges(snp_metadata: pd.DataFrame) -> GenomicRanges:
    """
    Construct single-base ranges for SNPs.

    Parameters
    ----------
    snp_metadata : pd.DataFrame
        Table with at least the columns snp_id, chr, pos.

    Returns
    -------
    GenomicRanges
        One point range (start == end == pos) per SNP, named by snp_id.
    """
    validate_required_columns(snp_metadata, SNP_METADATA_COLUMNS, "snp_metadata")
    range_df = pd.DataFrame(
        {
            "seqnames": snp_metadata["chr"].astype(str).to_numpy(),
            "start": snp_metadata["pos"].to_numpy(),
            "end": snp_metadata["pos"].to_numpy(),
            "snp_id": snp_metadata["snp_id"].astype(str).to_numpy(),
        }
    )
    return dataframe_to_ranges(range_df, name_col="snp_id", strand_col=None)
