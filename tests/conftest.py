"""Shared pytest fixtures for all test modules."""

from pathlib import Path
from typing import List

import pandas as pd
import pysam
import pytest

from rasqualtools.rasqual import RASQUAL_COLUMNS


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast unit tests")


# gene_id, snp_id, chr, pos, allele_freq, HWE, IA, chisq, effect_size,
# delta, phi, overdisp, n_feature_snps, n_cis_snps, converged
RASQUAL_ROWS: List[list] = [
    ["G1", "rs1", "1", 100, 0.2, 0.1, 0.01, 3.841459, 0.6, 0.001, 0.5, 0.02, 3, 10, 1],
    ["G2", "rs1", "1", 100, 0.2, 0.1, 0.01, 0.5, 0.5, 0.001, 0.5, 0.02, 2, 12, 1],
    ["G1", "rs2", "1", 200, 0.7, 0.3, 0.02, 10.0, 0.3, 0.002, 0.4, 0.03, 3, 10, 1],
    ["G2", "rs3", "1", 5000, 0.9, 0.5, 0.05, 1.0, 0.45, 0.003, 0.6, 0.04, 2, 12, 0],
    ["G3", "rs4", "2", 300, 0.5, 0.9, 0.00, 0.0, 0.8, 0.004, 0.5, 0.05, 1, 4, 1],
]


@pytest.fixture
def rasqual_rows() -> pd.DataFrame:
    """The rows stored in the rasqual_tabix_file fixture."""
    return pd.DataFrame(RASQUAL_ROWS, columns=RASQUAL_COLUMNS)


@pytest.fixture
def rasqual_tabix_file(tmp_path: Path) -> str:
    """Bgzip-compressed, tabix-indexed RASQUAL output file (indexed on chr/pos)."""
    txt_path = tmp_path / "rasqual_results.txt"
    with open(txt_path, "w", encoding="utf-8") as f:
        for row in RASQUAL_ROWS:
            f.write("\t".join(str(v) for v in row) + "\n")
    return pysam.tabix_index(str(txt_path), seq_col=2, start_col=3, end_col=3, force=True)


@pytest.fixture
def gene_metadata() -> pd.DataFrame:
    """Gene metadata; G4 lies on a contig absent from the RASQUAL file."""
    return pd.DataFrame(
        {
            "gene_id": ["G1", "G2", "G3", "G4"],
            "chr": ["1", "1", "2", "3"],
            "start": [150, 4000, 290, 100],
            "end": [160, 4500, 310, 200],
            "strand": [1, -1, 1, 1],
        }
    )


@pytest.fixture
def snp_metadata() -> pd.DataFrame:
    """SNP positions; rs_missing has no results in the RASQUAL file."""
    return pd.DataFrame(
        {
            "snp_id": ["rs1", "rs4", "rs_missing"],
            "chr": ["1", "2", "1"],
            "pos": [100, 300, 999],
        }
    )
