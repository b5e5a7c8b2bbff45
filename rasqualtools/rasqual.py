# File: rasqualtools/rasqual.py
# Location: rasqualtools/rasqualtools/rasqual.py

"""
RASQUAL result import module.

This module provides:
- tabix_fetch_genes: results for the cis region of each gene, one table per gene.
- tabix_fetch_snps: results for a set of SNP positions, as one combined table.
- postprocess_rasqual_results: derived columns (p_nominal, MAF, beta).
"""

import logging
from typing import Dict

import numpy as np
import pandas as pd
from scipy.stats import chi2

from .ranges import GenomicRanges
from .tabix import scan_tabix_dataframe

logger = logging.getLogger("rasqualtools")

RASQUAL_COLUMNS = [
    "gene_id",
    "snp_id",
    "chr",
    "pos",
    "allele_freq",
    "HWE",
    "IA",
    "chisq",
    "effect_size",
    "delta",
    "phi",
    "overdisp",
    "n_feature_snps",
    "n_cis_snps",
    "converged",
]

DERIVED_COLUMNS = ["p_nominal", "MAF", "beta"]


def postprocess_rasqual_results(rasqual_df: pd.DataFrame) -> pd.DataFrame:
    """
    Add derived statistics to a RASQUAL result table.

    Adds:
    - p_nominal: upper tail of the chi-squared(1 df) distribution at ``chisq``
    - MAF: min(allele_freq, 1 - allele_freq)
    - beta: -log2(effect_size / (1 - effect_size)), the log ratio of RASQUAL's pi

    Input ranges are not validated; an effect_size outside (0, 1) yields a
    non-finite or NaN beta.

    Parameters
    ----------
    rasqual_df : pd.DataFrame
        Table with at least the columns chisq, allele_freq and effect_size.

    Returns
    -------
    pd.DataFrame
        A copy of the input with the three derived columns appended.
    """
    result = rasqual_df.copy()
    chisq = result["chisq"].to_numpy(dtype=float)
    allele_freq = result["allele_freq"].to_numpy(dtype=float)
    effect_size = result["effect_size"].to_numpy(dtype=float)

    with np.errstate(divide="ignore", invalid="ignore"):
        result["p_nominal"] = chi2.sf(chisq, df=1)
        result["MAF"] = np.minimum(allele_freq, 1 - allele_freq)
        result["beta"] = -np.log2(effect_size / (1 - effect_size))
    return result


def tabix_fetch_genes(gene_ranges: GenomicRanges, tabix_file: str) -> Dict[str, pd.DataFrame]:
    """
    Fetch the results of particular genes from a tabix-indexed RASQUAL output file.

    Each range is queried separately. A region query also returns rows of
    neighbouring genes whose tested SNPs fall into the window, so only rows
    with the range's gene_id are kept.

    Parameters
    ----------
    gene_ranges : GenomicRanges
        Cis regions around genes, named by gene_id (see construct_gene_ranges).
    tabix_file : str
        Tabix-indexed RASQUAL output file.

    Returns
    -------
    dict of str to pd.DataFrame
        Post-processed results keyed by gene_id. Genes whose region returned
        no lines at all are absent.
    """
    result: Dict[str, pd.DataFrame] = {}
    n_ranges = len(gene_ranges)
    for i, gene_range in enumerate(gene_ranges, start=1):
        selected_gene_id = gene_range.name
        logger.info("Fetching gene %d/%d: %s", i, n_ranges, selected_gene_id)

        tabix_table = scan_tabix_dataframe(tabix_file, [gene_range], col_names=RASQUAL_COLUMNS)[0]
        if tabix_table is None:
            logger.debug("No results in %s for gene %s", gene_range.to_region(), selected_gene_id)
            continue

        tabix_table = tabix_table[tabix_table["gene_id"].astype(str) == str(selected_gene_id)]
        result[selected_gene_id] = postprocess_rasqual_results(tabix_table.reset_index(drop=True))
    return result


def tabix_fetch_snps(snp_ranges: GenomicRanges, tabix_file: str) -> pd.DataFrame:
    """
    Fetch all results of particular SNPs from a tabix-indexed RASQUAL output file.

    Parameters
    ----------
    snp_ranges : GenomicRanges
        SNP coordinates (see construct_snp_ranges).
    tabix_file : str
        Tabix-indexed RASQUAL output file.

    Returns
    -------
    pd.DataFrame
        Every tested gene-SNP pair overlapping any of the ranges, with the
        derived columns added. Empty (with all columns) when nothing matched.
    """
    tables = scan_tabix_dataframe(tabix_file, snp_ranges, col_names=RASQUAL_COLUMNS)
    found = [t for t in tables if t is not None]
    logger.info("Found results for %d of %d SNP ranges", len(found), len(tables))

    if found:
        tabix_df = pd.concat(found, ignore_index=True)
    else:
        tabix_df = pd.DataFrame(columns=RASQUAL_COLUMNS)
    return postprocess_rasqual_results(tabix_df)
