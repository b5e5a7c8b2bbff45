"""
Unit tests for genomic range construction.

Covers construct_gene_ranges() preconditions, window padding and clamping,
construct_snp_ranges() and the DataFrame conversions of GenomicRanges.
"""

from __future__ import annotations

import pandas as pd
import pytest

from rasqualtools.errors import DataValidationError
from rasqualtools.ranges import (
    GenomicRange,
    GenomicRanges,
    construct_gene_ranges,
    construct_snp_ranges,
    dataframe_to_ranges,
)


@pytest.mark.unit
class TestConstructGeneRanges:
    """construct_gene_ranges() builds padded cis windows."""

    def test_window_is_added_on_both_sides(self, gene_metadata):
        ranges = construct_gene_ranges(["G2"], gene_metadata, 100)

        assert len(ranges) == 1
        assert ranges[0] == GenomicRange("1", 3900, 4600, "*", "G2")

    def test_start_is_clamped_at_zero(self, gene_metadata):
        ranges = construct_gene_ranges(["G1", "G3"], gene_metadata, 1000)

        assert [r.start for r in ranges] == [0, 0]
        assert [r.end for r in ranges] == [1160, 1310]

    def test_end_never_before_start(self, gene_metadata):
        for window in [0, 1, 50, 10_000]:
            ranges = construct_gene_ranges(gene_metadata["gene_id"], gene_metadata, window)
            assert all(r.end >= r.start >= 0 for r in ranges)

    def test_zero_window_keeps_gene_coordinates(self, gene_metadata):
        ranges = construct_gene_ranges(["G3"], gene_metadata, 0)
        assert (ranges[0].start, ranges[0].end) == (290, 310)

    def test_selection_as_dataframe(self, gene_metadata):
        selected = pd.DataFrame({"gene_id": ["G3", "G1"], "other": [1, 2]})
        ranges = construct_gene_ranges(selected, gene_metadata, 10)

        # Metadata order is kept
        assert ranges.names == ["G1", "G3"]

    def test_duplicated_selection_does_not_duplicate_ranges(self, gene_metadata):
        ranges = construct_gene_ranges(["G1", "G1", "G1"], gene_metadata, 10)
        assert ranges.names == ["G1"]

    def test_unknown_genes_are_dropped(self, gene_metadata):
        ranges = construct_gene_ranges(["G1", "NOT_A_GENE"], gene_metadata, 10)
        assert ranges.names == ["G1"]

    def test_empty_selection(self, gene_metadata):
        ranges = construct_gene_ranges([], gene_metadata, 10)
        assert len(ranges) == 0

    def test_strand_is_unstranded(self, gene_metadata):
        ranges = construct_gene_ranges(["G2"], gene_metadata, 10)
        assert ranges[0].strand == "*"

    @pytest.mark.parametrize("missing", ["gene_id", "chr", "start", "end"])
    def test_missing_metadata_column_raises(self, gene_metadata, missing):
        with pytest.raises(DataValidationError, match=missing) as exc_info:
            construct_gene_ranges(["G1"], gene_metadata.drop(columns=missing), 10)
        assert exc_info.value.field == missing

    @pytest.mark.parametrize("window", ["1000", None, True, [10]])
    def test_non_numeric_window_raises(self, gene_metadata, window):
        with pytest.raises(DataValidationError, match="cis_window"):
            construct_gene_ranges(["G1"], gene_metadata, window)

    def test_validation_error_is_value_error(self, gene_metadata):
        with pytest.raises(ValueError):
            construct_gene_ranges(["G1"], gene_metadata, "wide")

    def test_float_window_accepted(self, gene_metadata):
        ranges = construct_gene_ranges(["G2"], gene_metadata, 100.0)
        assert (ranges[0].start, ranges[0].end) == (3900, 4600)


@pytest.mark.unit
class TestConstructSnpRanges:
    """construct_snp_ranges() builds single-base ranges."""

    def test_point_ranges(self, snp_metadata):
        ranges = construct_snp_ranges(snp_metadata)

        assert len(ranges) == 3
        assert ranges[0] == GenomicRange("1", 100, 100, "*", "rs1")
        assert all(r.start == r.end for r in ranges)

    def test_missing_column_raises(self, snp_metadata):
        with pytest.raises(DataValidationError, match="pos"):
            construct_snp_ranges(snp_metadata.drop(columns="pos"))


@pytest.mark.unit
class TestGenomicRanges:
    """Conversions between DataFrames and GenomicRanges."""

    def test_dataframe_round_trip(self):
        df = pd.DataFrame(
            {
                "seqnames": ["1", "X"],
                "start": [10, 20],
                "end": [15, 25],
                "strand": ["+", "-"],
                "name": ["a", "b"],
            }
        )
        ranges = dataframe_to_ranges(df, name_col="name")

        pd.testing.assert_frame_equal(ranges.to_dataframe(), df)

    def test_defaults_without_strand_or_name(self):
        df = pd.DataFrame({"chrom": [1], "from": [5], "to": [9]})
        ranges = dataframe_to_ranges(df, seqname_col="chrom", start_col="from", end_col="to")

        assert ranges[0] == GenomicRange("1", 5, 9)

    def test_slicing_returns_collection(self):
        ranges = GenomicRanges([GenomicRange("1", i, i) for i in range(1, 5)])

        sliced = ranges[1:3]
        assert isinstance(sliced, GenomicRanges)
        assert [r.start for r in sliced] == [2, 3]

    def test_region_string(self):
        assert GenomicRange("chr2", 5, 10).to_region() == "chr2:5-10"
