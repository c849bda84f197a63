"""Tests for mode pairing, frequency deviation and correlation grading."""
from __future__ import annotations

import numpy as np
import pytest

from modal_assurance.analysis.correlation import (
    DEFAULT_THRESHOLDS,
    CorrelationReport,
    correlate,
    format_mac_matrix,
    frequency_deviation,
    generate_report,
    pair_modes,
)
from modal_assurance.analysis.mac import DegenerateInputError
from modal_assurance.core.models import CorrelationStatus, ModeSet


def _normalised_modes(n_dof: int, n_modes: int, seed: int = 7) -> np.ndarray:
    modes = np.random.default_rng(seed).standard_normal((n_dof, n_modes))
    return modes / np.linalg.norm(modes, axis=0, keepdims=True)


# ===================================================================
# 1. Mode pairing
# ===================================================================


class TestModePairing:

    def test_identity_pairs_in_order(self):
        assert pair_modes(np.eye(3)) == [(0, 0), (1, 1), (2, 2)]

    def test_shuffled_columns(self):
        modes_a = np.eye(6, 3)
        modes_b = modes_a[:, [2, 0, 1]]
        mac = correlate(modes_a, modes_b).mac_matrix
        assert pair_modes(mac) == [(0, 1), (1, 2), (2, 0)]

    def test_rectangular_uses_smaller_dimension(self):
        mac = np.eye(4, 2)
        assert len(pair_modes(mac)) == 2
        assert len(pair_modes(mac.T)) == 2

    def test_pairs_sorted_by_first_index(self):
        mac = np.array([[0.1, 0.9], [0.8, 0.2]])
        assert pair_modes(mac) == [(0, 1), (1, 0)]

    def test_greedy_vs_optimal(self):
        """Greedy grabs 0.9 first; the optimal assignment has a larger total."""
        mac = np.array([[0.9, 0.8], [0.7, 0.0]])
        assert pair_modes(mac, method="greedy") == [(0, 0), (1, 1)]
        assert pair_modes(mac, method="optimal") == [(0, 1), (1, 0)]

    def test_nan_entries_not_preferred(self):
        mac = np.array([[np.nan, 0.2], [0.3, 0.1]])
        assert pair_modes(mac) == [(0, 1), (1, 0)]

    def test_empty_matrix(self):
        assert pair_modes(np.empty((0, 0))) == []

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="pairing method"):
            pair_modes(np.eye(2), method="random")


# ===================================================================
# 2. Frequency deviation
# ===================================================================


class TestFrequencyDeviation:

    def test_identical_zero(self):
        freq = np.array([10.0, 20.0, 30.0])
        np.testing.assert_allclose(frequency_deviation(freq, freq), 0.0)

    def test_known_shift(self):
        dev = frequency_deviation([1000.0, 2000.0], [1010.0, 2100.0])
        assert dev[0] == pytest.approx(1.0)
        assert dev[1] == pytest.approx(5.0)

    def test_zero_reference(self):
        dev = frequency_deviation([0.0, 0.0], [0.0, 5.0])
        assert dev[0] == 0.0
        assert np.isinf(dev[1])

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            frequency_deviation([1.0, 2.0], [1.0])

    def test_empty(self):
        assert frequency_deviation([], []).size == 0


# ===================================================================
# 3. Correlation grading
# ===================================================================


class TestCorrelate:

    def test_identical_sets_pass(self):
        modes = _normalised_modes(30, 4)
        freq = np.array([100.0, 200.0, 300.0, 400.0])
        report = correlate(ModeSet(modes, freq, "Test"), ModeSet(modes, freq, "FEM"))
        assert isinstance(report, CorrelationReport)
        assert report.status is CorrelationStatus.PASS
        assert report.pairs == [(0, 0), (1, 1), (2, 2), (3, 3)]
        np.testing.assert_allclose(report.paired_mac, 1.0, atol=1e-12)
        assert report.details["label_1"] == "Test"
        assert report.details["max_freq_dev_pct"] == pytest.approx(0.0)

    def test_frequency_shift_warning(self):
        modes = _normalised_modes(30, 3)
        freq_a = np.array([100.0, 200.0, 300.0])
        report = correlate(ModeSet(modes, freq_a), ModeSet(modes, freq_a * 1.03))
        assert report.status is CorrelationStatus.WARNING

    def test_frequency_shift_fail(self):
        modes = _normalised_modes(30, 3)
        freq_a = np.array([100.0, 200.0, 300.0])
        report = correlate(ModeSet(modes, freq_a), ModeSet(modes, freq_a * 1.10))
        assert report.status is CorrelationStatus.FAIL

    def test_low_mac_fail(self):
        report = correlate(np.eye(4, 2), np.eye(4, 4)[:, 2:])
        assert report.status is CorrelationStatus.FAIL
        assert report.details["min_mac"] == pytest.approx(0.0)

    def test_intermediate_mac_warning(self):
        s = np.sqrt(2) / 2
        a = np.array([[1.0], [0.0]])
        angle = np.deg2rad(20.0)  # cos^2(20 deg) ~= 0.883
        b = np.array([[np.cos(angle)], [np.sin(angle)]])
        report = correlate(a, b)
        assert report.status is CorrelationStatus.WARNING
        assert report.paired_mac[0] == pytest.approx(np.cos(angle) ** 2)
        assert correlate(a, np.array([[s], [s]])).status is CorrelationStatus.FAIL

    def test_custom_thresholds(self):
        angle = np.deg2rad(20.0)
        a = np.array([[1.0], [0.0]])
        b = np.array([[np.cos(angle)], [np.sin(angle)]])
        report = correlate(a, b, thresholds={"mac_pass": 0.85})
        assert report.status is CorrelationStatus.PASS
        assert report.details["thresholds"]["mac_warn"] == DEFAULT_THRESHOLDS["mac_warn"]

    def test_no_frequencies_skips_frequency_check(self):
        modes = _normalised_modes(10, 2)
        report = correlate(modes, modes)
        assert report.freq_deviations is None
        assert "max_freq_dev_pct" not in report.details
        assert report.status is CorrelationStatus.PASS

    def test_degenerate_raise(self):
        modes = np.array([[1.0, 0.0], [0.0, 0.0]])
        with pytest.raises(DegenerateInputError):
            correlate(modes, np.eye(2))

    def test_degenerate_nan_fails(self):
        modes = np.array([[1.0, 0.0], [0.0, 0.0]])
        report = correlate(modes, np.eye(2), on_degenerate="nan")
        assert report.status is CorrelationStatus.FAIL
        assert report.details["degenerate_pairs"] == [(1, 1)]
        assert report.details["max_mac"] == pytest.approx(1.0)


# ===================================================================
# 4. Text output
# ===================================================================


class TestTextOutput:

    def test_format_matrix(self):
        text = format_mac_matrix(np.array([[1.0, 0.25], [np.nan, 0.0]]))
        lines = text.splitlines()
        assert len(lines) == 3
        assert "1.00" in lines[1] and "0.25" in lines[1]
        assert "nan" in lines[2]
        assert lines[2].lstrip().startswith("2")

    def test_format_precision(self):
        text = format_mac_matrix(np.array([[0.123456]]), precision=4)
        assert "0.1235" in text

    def test_report_contents(self):
        modes = _normalised_modes(20, 3)
        freq = np.array([1.0, 2.0, 3.0])
        report = correlate(ModeSet(modes, freq, "EMA"), ModeSet(modes, freq, "FEA"))
        text = generate_report(report)
        assert "PASS" in text
        assert "EMA" in text and "FEA" in text
        assert "Mode Pairing Detail" in text
        assert "Frequency Deviation Summary" in text
        assert "Thresholds" in text

    def test_report_mentions_undefined_pairs(self):
        modes = np.array([[1.0, 0.0], [0.0, 0.0]])
        report = correlate(modes, np.eye(2), on_degenerate="nan")
        text = generate_report(report)
        assert "FAIL" in text
        assert "undefined MAC" in text
        assert "(2, 2)" in text

    def test_repr(self):
        report = correlate(np.eye(3), np.eye(3))
        assert "pass" in repr(report)
        assert "n_paired=3" in repr(report)
