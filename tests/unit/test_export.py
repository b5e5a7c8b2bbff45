"""Unit tests for RASQUAL matrix export."""

import numpy as np
import pandas as pd
import pytest

from rasqualtools.errors import FileFormatError
from rasqualtools.export import load_rasqual_matrix, rasqual_matrix_paths, save_rasqual_matrices


@pytest.mark.unit
class TestSaveRasqualMatrices:
    """save_rasqual_matrices() writes paired txt/bin files."""

    def test_example_matrix(self, tmp_path):
        # 2 x 2 matrix filled column-wise with 1..4
        matrix = np.array([[1, 3], [2, 4]])
        save_rasqual_matrices({"A": matrix}, str(tmp_path), "expr")

        txt_lines = (tmp_path / "A.expr.txt").read_text().splitlines()
        assert txt_lines == ["1\t1\t3", "2\t2\t4"]

        values = np.fromfile(tmp_path / "A.expr.bin", dtype="<f8")
        assert values.tolist() == [1.0, 3.0, 2.0, 4.0]

    def test_dataframe_keeps_row_names_without_header(self, tmp_path):
        df = pd.DataFrame(
            {"sample1": [1.5, 2.0], "sample2": [0.25, 8.0]}, index=["ENSG01", "ENSG02"]
        )
        save_rasqual_matrices({"counts": df}, str(tmp_path), "expression")

        txt_lines = (tmp_path / "counts.expression.txt").read_text().splitlines()
        assert txt_lines == ["ENSG01\t1.5\t0.25", "ENSG02\t2.0\t8.0"]

    def test_binary_size_is_eight_bytes_per_value(self, tmp_path):
        df = pd.DataFrame(np.arange(12, dtype=float).reshape(3, 4))
        save_rasqual_matrices({"m": df}, str(tmp_path))

        assert (tmp_path / "m.expression.bin").stat().st_size == 12 * 8

    def test_multiple_matrices(self, tmp_path):
        data = {"expr": np.ones((2, 3)), "cov": np.zeros((2, 1))}
        save_rasqual_matrices(data, str(tmp_path), "x")

        names = sorted(p.name for p in tmp_path.iterdir())
        assert names == ["cov.x.bin", "cov.x.txt", "expr.x.bin", "expr.x.txt"]

    def test_round_trip(self, tmp_path):
        rng = np.random.default_rng(seed=11)
        matrix = rng.normal(size=(7, 5)) * 1e6
        save_rasqual_matrices({"m": matrix}, str(tmp_path), "size_factors")

        _, bin_path = rasqual_matrix_paths(str(tmp_path), "m", "size_factors")
        np.testing.assert_array_equal(load_rasqual_matrix(bin_path, 7, 5), matrix)

    def test_non_contiguous_dataframe_written_row_major(self, tmp_path):
        df = pd.DataFrame(np.asfortranarray([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]))
        save_rasqual_matrices({"f": df}, str(tmp_path), "s")

        values = np.fromfile(tmp_path / "f.s.bin", dtype="<f8")
        assert values.tolist() == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]

    def test_ndarray_rows_numbered_from_one(self, tmp_path):
        save_rasqual_matrices({"m": np.zeros((3, 1))}, str(tmp_path), "s")

        labels = [line.split("\t")[0] for line in (tmp_path / "m.s.txt").read_text().splitlines()]
        assert labels == ["1", "2", "3"]

    def test_explicit_dtype(self, tmp_path):
        matrix = np.array([[1.0, 2.0], [3.0, 4.0]])
        save_rasqual_matrices({"A": matrix}, str(tmp_path), "expr", dtype=">f8")

        raw = np.fromfile(tmp_path / "A.expr.bin", dtype=">f8")
        assert raw.tolist() == [1.0, 2.0, 3.0, 4.0]
        reread = load_rasqual_matrix(str(tmp_path / "A.expr.bin"), 2, 2, dtype=">f8")
        np.testing.assert_array_equal(reread, matrix)

    def test_rejects_one_dimensional_input(self, tmp_path):
        with pytest.raises(ValueError, match="two-dimensional"):
            save_rasqual_matrices({"v": np.arange(3)}, str(tmp_path))

    def test_logs_written_path(self, tmp_path, caplog):
        with caplog.at_level("INFO", logger="rasqualtools"):
            save_rasqual_matrices({"A": np.eye(2)}, str(tmp_path), "expr")
        assert "A.expr.txt" in caplog.text


@pytest.mark.unit
class TestLoadRasqualMatrix:
    """load_rasqual_matrix() needs the dimensions out of band."""

    def test_wrong_dimensions_raise(self, tmp_path):
        save_rasqual_matrices({"A": np.eye(3)}, str(tmp_path), "expr")

        with pytest.raises(FileFormatError, match="found 9 values"):
            load_rasqual_matrix(str(tmp_path / "A.expr.bin"), 2, 2)

    def test_transposed_dimensions_read_differently(self, tmp_path):
        matrix = np.arange(6, dtype=float).reshape(2, 3)
        save_rasqual_matrices({"A": matrix}, str(tmp_path), "expr")

        reread = load_rasqual_matrix(str(tmp_path / "A.expr.bin"), 3, 2)
        assert reread.tolist() == [[0.0, 1.0], [2.0, 3.0], [4.0, 5.0]]
