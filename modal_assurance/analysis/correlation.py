"""Correlation of two mode sets built on the MAC matrix.

Pairs the modes of one set with the modes of another and grades the match
with configurable PASS/WARNING/FAIL thresholds:

- Mode pairing by MAC (greedy or globally optimal assignment)
- Frequency deviation percentages of the paired modes
- Overall status and a human-readable text report
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from scipy.optimize import linear_sum_assignment

from modal_assurance.analysis.mac import ON_DEGENERATE_RAISE, compute_mac
from modal_assurance.core.models import CorrelationStatus, ModeSet

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default thresholds
# ---------------------------------------------------------------------------

DEFAULT_THRESHOLDS = {
    "mac_pass": 0.95,
    "mac_warn": 0.80,
    "freq_pass_pct": 1.0,
    "freq_warn_pct": 5.0,
}

PAIRING_METHODS = ("greedy", "optimal")


# ---------------------------------------------------------------------------
# CorrelationReport dataclass
# ---------------------------------------------------------------------------


@dataclass
class CorrelationReport:
    """Result of correlating two mode sets."""

    status: CorrelationStatus
    mac_matrix: np.ndarray
    pairs: list[tuple[int, int]]
    paired_mac: np.ndarray
    freq_deviations: Optional[np.ndarray] = None
    details: dict = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"CorrelationReport(status={self.status.value!r}, "
            f"shape={self.mac_matrix.shape}, "
            f"n_paired={len(self.pairs)})"
        )


# ---------------------------------------------------------------------------
# Mode pairing
# ---------------------------------------------------------------------------


def pair_modes(mac: np.ndarray, method: str = "greedy") -> list[tuple[int, int]]:
    """Pair rows of a MAC matrix with columns.

    Parameters
    ----------
    mac : np.ndarray, shape (n_1, n_2)
    method : {"greedy", "optimal"}
        ``"greedy"`` repeatedly takes the highest remaining MAC value.
        ``"optimal"`` maximises the sum of paired MAC values.

    Returns
    -------
    list of (int, int)
        ``min(n_1, n_2)`` index pairs sorted by the set 1 index.
    """
    if method not in PAIRING_METHODS:
        raise ValueError(f"Unknown pairing method {method!r}, expected one of {PAIRING_METHODS}")

    mac = np.asarray(mac, dtype=float)
    if mac.ndim != 2 or mac.size == 0:
        return []

    # Undefined entries are never preferred over a real value
    work = np.where(np.isnan(mac), -1.0, mac)

    if method == "optimal":
        rows, cols = linear_sum_assignment(work, maximize=True)
        pairs = [(int(i), int(j)) for i, j in zip(rows, cols)]
    else:
        n_1, n_2 = work.shape
        pairs = []
        for _ in range(min(n_1, n_2)):
            i, j = divmod(int(np.argmax(work)), n_2)
            pairs.append((i, j))
            # Mask out used row and column
            work[i, :] = -np.inf
            work[:, j] = -np.inf

    pairs.sort(key=lambda p: p[0])
    return pairs


# ---------------------------------------------------------------------------
# Frequency deviation
# ---------------------------------------------------------------------------


def frequency_deviation(freq_1, freq_2) -> np.ndarray:
    """Percentage frequency deviation ``|f_1 - f_2| / |f_1| * 100``.

    0/0 gives 0; a non-zero deviation from a zero reference gives inf.
    """
    freq_1 = np.asarray(freq_1, dtype=float).ravel()
    freq_2 = np.asarray(freq_2, dtype=float).ravel()
    if freq_1.shape != freq_2.shape:
        raise ValueError(f"Frequency arrays differ in length: {freq_1.size} vs {freq_2.size}")
    if freq_1.size == 0:
        return np.empty(0)

    with np.errstate(divide="ignore", invalid="ignore"):
        dev = np.abs(freq_1 - freq_2) / np.abs(freq_1) * 100.0
    dev[(freq_1 == 0.0) & (freq_2 == 0.0)] = 0.0
    return dev


# ---------------------------------------------------------------------------
# Overall correlation
# ---------------------------------------------------------------------------


def _grade(min_mac: float, max_freq_dev: Optional[float], th: dict) -> CorrelationStatus:
    freq_ok = max_freq_dev is None or max_freq_dev <= th["freq_pass_pct"]
    freq_bad = max_freq_dev is not None and max_freq_dev > th["freq_warn_pct"]
    if np.isnan(min_mac) or min_mac < th["mac_warn"] or freq_bad:
        return CorrelationStatus.FAIL
    if min_mac >= th["mac_pass"] and freq_ok:
        return CorrelationStatus.PASS
    return CorrelationStatus.WARNING


def correlate(
    mode_set_1,
    mode_set_2,
    thresholds: Optional[dict] = None,
    method: str = "greedy",
    on_degenerate: str = ON_DEGENERATE_RAISE,
) -> CorrelationReport:
    """Compute the MAC matrix, pair the modes and grade the match.

    Parameters
    ----------
    mode_set_1, mode_set_2 : ModeSet or array_like
        Frequencies are only compared when both inputs are
        :class:`ModeSet` instances carrying ``frequencies_hz``.
    thresholds : dict, optional
        Overrides for ``mac_pass``, ``mac_warn``, ``freq_pass_pct``,
        ``freq_warn_pct``.
    method : {"greedy", "optimal"}
        Pairing method, see :func:`pair_modes`.
    on_degenerate : {"raise", "nan"}
        Passed to :func:`compute_mac`.
    """
    th = {**DEFAULT_THRESHOLDS, **(thresholds or {})}

    mac = compute_mac(mode_set_1, mode_set_2, on_degenerate=on_degenerate)
    pairs = pair_modes(mac, method=method)
    paired_mac = np.array([mac[i, j] for i, j in pairs], dtype=float)

    freq_1 = getattr(mode_set_1, "frequencies_hz", None)
    freq_2 = getattr(mode_set_2, "frequencies_hz", None)
    freq_dev = None
    if freq_1 is not None and freq_2 is not None:
        idx_1 = np.array([p[0] for p in pairs], dtype=int)
        idx_2 = np.array([p[1] for p in pairs], dtype=int)
        freq_dev = frequency_deviation(freq_1[idx_1], freq_2[idx_2])

    defined = paired_mac[~np.isnan(paired_mac)]
    min_mac = float(np.min(paired_mac)) if paired_mac.size else float("nan")
    max_freq_dev = float(np.max(freq_dev)) if freq_dev is not None and freq_dev.size else None

    status = _grade(min_mac, max_freq_dev, th)

    details = {
        "min_mac": min_mac,
        "max_mac": float(np.max(defined)) if defined.size else float("nan"),
        "mean_mac": float(np.mean(defined)) if defined.size else float("nan"),
        "n_paired_modes": len(pairs),
        "degenerate_pairs": [p for p, v in zip(pairs, paired_mac) if np.isnan(v)],
        "pairing": method,
        "label_1": getattr(mode_set_1, "name", "Modes 1"),
        "label_2": getattr(mode_set_2, "name", "Modes 2"),
        "thresholds": th,
    }
    if freq_dev is not None:
        details["max_freq_dev_pct"] = max_freq_dev if max_freq_dev is not None else 0.0
        details["mean_freq_dev_pct"] = float(np.mean(freq_dev)) if freq_dev.size else 0.0

    logger.info(
        "Correlated %d x %d modes: %s (min paired MAC %.4f)",
        mac.shape[0], mac.shape[1], status.value.upper(), min_mac,
    )
    return CorrelationReport(
        status=status,
        mac_matrix=mac,
        pairs=pairs,
        paired_mac=paired_mac,
        freq_deviations=freq_dev,
        details=details,
    )


# ---------------------------------------------------------------------------
# Text output
# ---------------------------------------------------------------------------


def format_mac_matrix(mac: np.ndarray, precision: int = 2) -> str:
    """Render a MAC matrix as a fixed-width table with 1-based mode numbers."""
    mac = np.asarray(mac, dtype=float)
    width = max(precision + 3, 4)
    header = "    " + "".join(f"  {j + 1:>{width}d}" for j in range(mac.shape[1]))
    lines = [header]
    for i, row in enumerate(mac):
        cells = "".join(
            f"  {'nan':>{width}s}" if np.isnan(v) else f"  {v:{width}.{precision}f}"
            for v in row
        )
        lines.append(f"{i + 1:4d}{cells}")
    return "\n".join(lines)


def generate_report(report: CorrelationReport) -> str:
    """Generate a human-readable text report from a CorrelationReport."""
    lines: list[str] = []
    lines.append("=" * 60)
    lines.append("  Modal Assurance Criterion Report")
    lines.append("=" * 60)
    lines.append("")
    lines.append(f"  Overall Status : {report.status.value.upper()}")
    lines.append("")

    d = report.details
    lines.append(f"  Set 1          : {d.get('label_1', 'Modes 1')}")
    lines.append(f"  Set 2          : {d.get('label_2', 'Modes 2')}")
    lines.append(f"  Matrix         : {report.mac_matrix.shape[0]} x {report.mac_matrix.shape[1]}")
    lines.append(f"  Paired modes   : {d.get('n_paired_modes', len(report.pairs))}"
                 f" ({d.get('pairing', 'greedy')})")
    lines.append("")

    lines.append("  MAC Summary")
    lines.append("  -----------")
    lines.append(f"    Min MAC      : {d['min_mac']:.6f}")
    lines.append(f"    Max MAC      : {d['max_mac']:.6f}")
    lines.append(f"    Mean MAC     : {d['mean_mac']:.6f}")
    lines.append("")

    if "max_freq_dev_pct" in d:
        lines.append("  Frequency Deviation Summary")
        lines.append("  ---------------------------")
        lines.append(f"    Max dev      : {d['max_freq_dev_pct']:.4f} %")
        lines.append(f"    Mean dev     : {d['mean_freq_dev_pct']:.4f} %")
        lines.append("")

    if report.pairs:
        lines.append("  Mode Pairing Detail")
        lines.append("  -------------------")
        lines.append(f"  {'1':>4s}  {'2':>4s}  {'MAC':>10s}  {'Freq Dev %':>12s}")
        for k, (i, j) in enumerate(report.pairs):
            fd = report.freq_deviations[k] if report.freq_deviations is not None else float("nan")
            lines.append(f"  {i + 1:4d}  {j + 1:4d}  {report.paired_mac[k]:10.6f}  {fd:12.4f}")
        lines.append("")

    th = d.get("thresholds", DEFAULT_THRESHOLDS)
    lines.append("  Thresholds")
    lines.append("  ----------")
    lines.append(f"    PASS  : MAC >= {th['mac_pass']}, freq dev <= {th['freq_pass_pct']}%")
    lines.append(f"    WARN  : MAC >= {th['mac_warn']}, freq dev <= {th['freq_warn_pct']}%")
    lines.append(f"    FAIL  : MAC <  {th['mac_warn']} or freq dev > {th['freq_warn_pct']}%")
    lines.append("")

    if d.get("degenerate_pairs"):
        pretty = ", ".join(f"({i + 1}, {j + 1})" for i, j in d["degenerate_pairs"])
        lines.append(f"  Note: undefined MAC (zero-norm mode) for pairs {pretty}")
        lines.append("")

    lines.append("=" * 60)
    return "\n".join(lines)
