"""Core data models for ModalAssurance."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

import numpy as np


class ModeSetError(ValueError):
    """A mode-shape collection that cannot be used as MAC input."""


class CorrelationStatus(enum.Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


def as_mode_matrix(data) -> np.ndarray:
    """Return *data* as a 2-D ``(n_dof, n_modes)`` array.

    A 1-D input is a single mode and becomes one column.
    """
    if isinstance(data, ModeSet):
        return data.shapes
    arr = np.asarray(data)
    if arr.dtype == object or not np.issubdtype(arr.dtype, np.number):
        raise ModeSetError("Mode shapes must be numeric, got dtype %s" % arr.dtype)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ModeSetError("Mode shapes must be a 2-D array, got %d dimensions" % arr.ndim)
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ModeSetError("Mode shapes must have at least one row and one mode, got shape %s"
                           % (arr.shape,))
    return arr


@dataclass(frozen=True, eq=False)
class ModeSet:
    """An ordered collection of mode shapes, one per column."""
    shapes: np.ndarray
    frequencies_hz: Optional[np.ndarray] = None
    name: str = "Modes"

    def __post_init__(self):
        shapes = np.array(as_mode_matrix(self.shapes), copy=True)
        if not np.iscomplexobj(shapes):
            shapes = shapes.astype(float)
        shapes.flags.writeable = False
        object.__setattr__(self, "shapes", shapes)

        if self.frequencies_hz is not None:
            freqs = np.array(self.frequencies_hz, dtype=float).ravel()
            if freqs.size != shapes.shape[1]:
                raise ModeSetError(
                    "Got %d frequencies for %d modes" % (freqs.size, shapes.shape[1])
                )
            freqs.flags.writeable = False
            object.__setattr__(self, "frequencies_hz", freqs)

    @classmethod
    def from_array(cls, data, frequencies_hz=None, name: str = "Modes") -> "ModeSet":
        return cls(shapes=data, frequencies_hz=frequencies_hz, name=name)

    @property
    def n_dof(self) -> int:
        return self.shapes.shape[0]

    @property
    def n_modes(self) -> int:
        return self.shapes.shape[1]

    def column(self, index: int) -> np.ndarray:
        return self.shapes[:, index]
