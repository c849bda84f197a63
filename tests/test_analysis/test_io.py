"""Tests for loading mode sets from disk."""
from __future__ import annotations

import numpy as np
import pytest

from modal_assurance.analysis.io import load_array, load_mode_set
from modal_assurance.core.models import ModeSetError


class TestLoadModeSet:

    def test_npy(self, tmp_path):
        modes = np.arange(12, dtype=float).reshape(4, 3)
        path = tmp_path / "fem.npy"
        np.save(path, modes)
        mode_set = load_mode_set(str(path))
        np.testing.assert_array_equal(mode_set.shapes, modes)
        assert mode_set.name == "fem"
        assert mode_set.frequencies_hz is None

    def test_csv(self, tmp_path):
        path = tmp_path / "test.csv"
        path.write_text("# dof,mode1,mode2\n1.0,0.0\n0.0,1.0\n0.5,0.5\n")
        mode_set = load_mode_set(str(path), name="Experimental")
        assert mode_set.n_dof == 3
        assert mode_set.n_modes == 2
        assert mode_set.name == "Experimental"

    def test_whitespace_txt_single_mode(self, tmp_path):
        path = tmp_path / "single.txt"
        path.write_text("1.0\n2.0\n3.0\n")
        mode_set = load_mode_set(str(path))
        assert mode_set.shapes.shape == (3, 1)

    def test_npz_with_frequencies(self, tmp_path):
        path = tmp_path / "modal.npz"
        np.savez(path, shapes=np.eye(4, 2), frequencies_hz=np.array([10.0, 20.0]))
        mode_set = load_mode_set(str(path))
        np.testing.assert_array_equal(mode_set.frequencies_hz, [10.0, 20.0])

    def test_npz_without_shapes(self, tmp_path):
        path = tmp_path / "bad.npz"
        np.savez(path, other=np.eye(2))
        with pytest.raises(ModeSetError, match="shapes"):
            load_mode_set(str(path))

    def test_separate_frequency_file(self, tmp_path):
        shapes = tmp_path / "shapes.csv"
        shapes.write_text("1,0\n0,1\n")
        freqs = tmp_path / "freqs.txt"
        freqs.write_text("12.5\n40.0\n")
        mode_set = load_mode_set(str(shapes), frequencies_path=str(freqs))
        np.testing.assert_allclose(mode_set.frequencies_hz, [12.5, 40.0])

    def test_frequency_count_mismatch(self, tmp_path):
        shapes = tmp_path / "shapes.csv"
        shapes.write_text("1,0\n0,1\n")
        freqs = tmp_path / "freqs.txt"
        freqs.write_text("12.5\n")
        with pytest.raises(ModeSetError):
            load_mode_set(str(shapes), frequencies_path=str(freqs))

    def test_malformed_csv(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("foo,bar\n1.0,2.0\n")
        with pytest.raises(ModeSetError, match="Cannot parse"):
            load_mode_set(str(path))

    def test_corrupt_npy(self, tmp_path):
        path = tmp_path / "corrupt.npy"
        path.write_bytes(b"not a numpy file")
        with pytest.raises(ModeSetError, match="Cannot read"):
            load_mode_set(str(path))

    def test_corrupt_npz(self, tmp_path):
        path = tmp_path / "corrupt.npz"
        path.write_bytes(b"not a zip archive")
        with pytest.raises(ModeSetError):
            load_mode_set(str(path))

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "modes.xlsx"
        path.write_text("")
        with pytest.raises(ModeSetError, match="Unsupported"):
            load_array(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_mode_set(str(tmp_path / "missing.npy"))
