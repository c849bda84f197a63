"""Load mode sets from disk.

Supported formats
-----------------
- ``.npy``  -- a NumPy array saved with :func:`numpy.save`.
- ``.npz``  -- an archive with a ``shapes`` array and an optional
  ``frequencies_hz`` array.
- ``.csv`` / ``.txt`` / ``.dat`` -- plain text, one row per degree of
  freedom and one column per mode (comma or whitespace separated, ``#``
  comments allowed).
"""
from __future__ import annotations

import logging
import os
import zipfile
from typing import Optional

import numpy as np

from modal_assurance.core.models import ModeSet, ModeSetError

logger = logging.getLogger(__name__)

_TEXT_SUFFIXES = {".csv", ".txt", ".dat"}


def _load_text(path: str) -> np.ndarray:
    delimiter = "," if path.lower().endswith(".csv") else None
    try:
        return np.loadtxt(path, delimiter=delimiter, ndmin=2, comments="#")
    except ValueError as exc:
        raise ModeSetError(f"Cannot parse {path}: {exc}") from exc


def load_array(path: str) -> np.ndarray:
    """Read a single numeric array (mode shapes or frequencies) from *path*."""
    suffix = os.path.splitext(path)[1].lower()
    if suffix == ".npy":
        try:
            return np.load(path, allow_pickle=False)
        except ValueError as exc:
            raise ModeSetError(f"Cannot read {path}: {exc}") from exc
    if suffix in _TEXT_SUFFIXES:
        return _load_text(path)
    raise ModeSetError(f"Unsupported file type '{suffix}' for {path}")


def load_mode_set(
    path: str,
    frequencies_path: Optional[str] = None,
    name: Optional[str] = None,
) -> ModeSet:
    """Load a :class:`ModeSet` from *path*.

    Parameters
    ----------
    path : str
        Mode shape file (see module docstring for formats).
    frequencies_path : str, optional
        Separate file holding one natural frequency per mode.
    name : str, optional
        Label for the set; defaults to the file stem.
    """
    label = name or os.path.splitext(os.path.basename(path))[0]
    suffix = os.path.splitext(path)[1].lower()

    frequencies = None
    if suffix == ".npz":
        try:
            with np.load(path, allow_pickle=False) as archive:
                if "shapes" not in archive:
                    raise ModeSetError(f"{path} has no 'shapes' array")
                shapes = archive["shapes"]
                if "frequencies_hz" in archive:
                    frequencies = archive["frequencies_hz"]
        except ModeSetError:
            raise
        except (ValueError, zipfile.BadZipFile) as exc:
            raise ModeSetError(f"Cannot read {path}: {exc}") from exc
    else:
        shapes = load_array(path)

    if frequencies_path:
        frequencies = np.ravel(load_array(frequencies_path))

    mode_set = ModeSet.from_array(shapes, frequencies_hz=frequencies, name=label)
    logger.info("Loaded %d modes x %d dof from %s", mode_set.n_modes, mode_set.n_dof, path)
    return mode_set
