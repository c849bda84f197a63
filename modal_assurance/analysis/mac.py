"""Modal Assurance Criterion (MAC) matrix.

MAC(i, j) = |phi_1_i^H phi_2_j|^2 / ((phi_1_i^H phi_1_i) * (phi_2_j^H phi_2_j))

The value is the squared cosine of the angle between two mode shapes: 1 for
shapes that differ only by a scale factor, 0 for orthogonal shapes.

An all-zero mode (zero norm) has no defined MAC against any
other mode.  ``compute_mac`` either raises :class:`DegenerateInputError`
(the default) or fills the affected rows/columns with NaN, so an undefined
value is never reported as a genuine 0.  Non-finite input values are not
checked and propagate by the usual floating-point rules.  Columns are
scaled by their peak magnitude first, so very large or very small but
non-zero modes neither overflow nor get mistaken for zero.
"""
from __future__ import annotations

import logging

import numpy as np

from modal_assurance.core.models import ModeSetError, as_mode_matrix

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Degenerate-mode policies
# ---------------------------------------------------------------------------

ON_DEGENERATE_RAISE = "raise"
ON_DEGENERATE_NAN = "nan"
DEGENERATE_POLICIES = (ON_DEGENERATE_RAISE, ON_DEGENERATE_NAN)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ShapeMismatchError(ModeSetError):
    """The two mode sets hold vectors of different lengths."""

    def __init__(self, n_dof_1: int, n_dof_2: int):
        self.n_dof_1 = n_dof_1
        self.n_dof_2 = n_dof_2
        super().__init__(
            f"Mode shapes have different lengths: {n_dof_1} rows vs {n_dof_2} rows"
        )


class DegenerateInputError(ModeSetError):
    """One or more mode shapes have zero norm."""

    def __init__(self, zero_modes_1: tuple[int, ...], zero_modes_2: tuple[int, ...]):
        self.zero_modes_1 = tuple(zero_modes_1)
        self.zero_modes_2 = tuple(zero_modes_2)
        parts = []
        if self.zero_modes_1:
            parts.append(f"set 1 modes {list(self.zero_modes_1)}")
        if self.zero_modes_2:
            parts.append(f"set 2 modes {list(self.zero_modes_2)}")
        super().__init__("Zero-norm mode shapes, MAC undefined: " + "; ".join(parts))


# ---------------------------------------------------------------------------
# MAC matrix
# ---------------------------------------------------------------------------


def _peak_scaled(phi: np.ndarray) -> np.ndarray:
    """Divide each column by its largest magnitude so norms cannot over- or underflow.

    MAC is scale-invariant, so this leaves the result unchanged.  All-zero
    columns are left as they are.
    """
    peak = np.max(np.abs(phi), axis=0)
    peak = np.where(peak == 0.0, 1.0, peak)
    return phi / peak


def compute_mac(mode_set_1, mode_set_2, on_degenerate: str = ON_DEGENERATE_RAISE) -> np.ndarray:
    """Compute the MAC matrix between two mode sets.

    Parameters
    ----------
    mode_set_1 : ModeSet or array_like, shape (n_dof, n_modes_1)
        First set of mode shapes.  Each column is a mode; a 1-D array is
        a single mode.
    mode_set_2 : ModeSet or array_like, shape (n_dof, n_modes_2)
        Second set of mode shapes, same number of rows as ``mode_set_1``.
    on_degenerate : {"raise", "nan"}
        What to do with zero-norm modes.  ``"raise"`` raises
        :class:`DegenerateInputError`; ``"nan"`` sets every entry involving
        such a mode to NaN.

    Returns
    -------
    np.ndarray, shape (n_modes_1, n_modes_2)
        A new array with entries in [0, 1] (or NaN, see above).

    Raises
    ------
    ShapeMismatchError
        If the row counts differ.
    DegenerateInputError
        If a mode has zero norm and ``on_degenerate == "raise"``.
    ModeSetError
        If either input is empty, non-numeric or has more than 2 dimensions.
    """
    if on_degenerate not in DEGENERATE_POLICIES:
        raise ValueError(
            f"on_degenerate must be one of {DEGENERATE_POLICIES}, got {on_degenerate!r}"
        )

    phi_1 = as_mode_matrix(mode_set_1)
    phi_2 = as_mode_matrix(mode_set_2)
    if phi_1.shape[0] != phi_2.shape[0]:
        raise ShapeMismatchError(phi_1.shape[0], phi_2.shape[0])

    zero_1 = np.flatnonzero(~np.any(phi_1 != 0, axis=0))
    zero_2 = np.flatnonzero(~np.any(phi_2 != 0, axis=0))
    if (zero_1.size or zero_2.size) and on_degenerate == ON_DEGENERATE_RAISE:
        raise DegenerateInputError(
            tuple(int(i) for i in zero_1), tuple(int(j) for j in zero_2)
        )

    with np.errstate(divide="ignore", invalid="ignore", over="ignore", under="ignore"):
        phi_1 = _peak_scaled(phi_1)
        phi_2 = _peak_scaled(phi_2)

        # Squared norm of each column
        norm_1 = np.sum(np.abs(phi_1) ** 2, axis=0)  # (n_modes_1,)
        norm_2 = np.sum(np.abs(phi_2) ** 2, axis=0)  # (n_modes_2,)

        cross = phi_1.conj().T @ phi_2  # (n_modes_1, n_modes_2)
        denom = np.outer(norm_1, norm_2)
        mac = np.abs(cross) ** 2 / denom
    mac = np.asarray(mac, dtype=float)

    mac[zero_1, :] = np.nan
    mac[:, zero_2] = np.nan

    # Round-off can push exact matches a few ulps past 1
    np.clip(mac, 0.0, 1.0, out=mac)

    logger.debug(
        "MAC matrix %dx%d from %d-dof mode sets (%d degenerate modes)",
        mac.shape[0], mac.shape[1], phi_1.shape[0], zero_1.size + zero_2.size,
    )
    return mac
