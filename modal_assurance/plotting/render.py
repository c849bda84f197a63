"""MAC chart rendering with matplotlib.

Draws a precomputed MAC matrix as a 3-D bar chart and, optionally, a 2-D
heatmap.  The matrix is only read.  Figures are created through the
object-oriented :class:`matplotlib.figure.Figure` API so no pyplot state or
interactive backend is involved.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np
from matplotlib import colormaps
from matplotlib.cm import ScalarMappable
from matplotlib.colors import Normalize
from matplotlib.figure import Figure
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  registers the 3d projection

from modal_assurance.plotting.display import DisplayConfig

logger = logging.getLogger(__name__)

_BAR_WIDTH = 0.8
_TEXT_FONT_SIZE = 10
_TEXT_LIFT = 1.025
_UNDEFINED_COLOR = (0.8, 0.8, 0.8, 1.0)


@dataclass
class MACFigures:
    """Rendered MAC charts."""
    bar3d: Figure
    heatmap: Optional[Figure] = None

    @property
    def figures(self) -> list[Figure]:
        return [f for f in (self.bar3d, self.heatmap) if f is not None]

    def save(self, directory: str, stem: str = "mac", fmt: str = "png", dpi: int = 150) -> list[str]:
        """Write each chart to *directory* and return the file paths."""
        os.makedirs(directory, exist_ok=True)
        paths = []
        for suffix, fig in (("3d", self.bar3d), ("2d", self.heatmap)):
            if fig is None:
                continue
            path = os.path.join(directory, f"{stem}_{suffix}.{fmt}")
            fig.savefig(path, format=fmt, dpi=dpi, bbox_inches="tight")
            paths.append(path)
        logger.info("Saved %d MAC chart(s) to %s", len(paths), directory)
        return paths


def _value_labels(mac: np.ndarray) -> list[list[str]]:
    return [["nan" if np.isnan(v) else f"{v:0.2f}" for v in row] for row in mac]


def _add_colorbar(fig: Figure, ax, cmap, norm, font_size: float) -> None:
    mappable = ScalarMappable(norm=norm, cmap=cmap)
    mappable.set_array([])
    cb = fig.colorbar(mappable, ax=ax)
    cb.set_label("MAC", fontsize=font_size)
    cb.ax.tick_params(labelsize=font_size)


def _set_mode_ticks(ax, n_1: int, n_2: int, offset: float) -> None:
    ax.set_xticks(np.arange(n_2) + offset)
    ax.set_xticklabels([str(j + 1) for j in range(n_2)])
    ax.set_yticks(np.arange(n_1) + offset)
    ax.set_yticklabels([str(i + 1) for i in range(n_1)])


def render_bar3d(mac: np.ndarray, config: DisplayConfig) -> Figure:
    """3-D bar chart: one bar per (set 1 mode, set 2 mode) pair."""
    n_1, n_2 = mac.shape
    cmap = colormaps[config.colormap]
    norm = Normalize(vmin=0.0, vmax=1.0)

    fig = Figure(figsize=(8, 6))
    ax = fig.add_subplot(projection="3d")

    rows, cols = np.meshgrid(np.arange(n_1), np.arange(n_2), indexing="ij")
    rows, cols = rows.ravel(), cols.ravel()
    values = mac.ravel()
    heights = np.nan_to_num(values, nan=0.0)
    colors = [
        _UNDEFINED_COLOR if np.isnan(v) else cmap(norm(v)) for v in values
    ]

    half = _BAR_WIDTH / 2.0
    ax.bar3d(
        cols + 1 - half, rows + 1 - half, np.zeros_like(heights),
        _BAR_WIDTH, _BAR_WIDTH, heights,
        color=colors, shade=True,
    )

    if config.show_values:
        labels = _value_labels(mac)
        for i, j, h in zip(rows, cols, heights):
            ax.text(j + 1, i + 1, _TEXT_LIFT * h, labels[i][j],
                    ha="center", fontsize=_TEXT_FONT_SIZE)

    _set_mode_ticks(ax, n_1, n_2, offset=1)
    ax.set_xlabel(config.label_2, fontsize=config.font_size)
    ax.set_ylabel(config.label_1, fontsize=config.font_size)
    ax.set_zlabel("MAC", fontsize=config.font_size)
    ax.set_zlim(0.0, 1.0)
    ax.tick_params(labelsize=config.font_size)
    _add_colorbar(fig, ax, cmap, norm, config.font_size)
    return fig


def render_heatmap(mac: np.ndarray, config: DisplayConfig) -> Figure:
    """2-D heatmap of the MAC matrix; undefined cells are left blank."""
    n_1, n_2 = mac.shape
    cmap = colormaps[config.colormap]
    norm = Normalize(vmin=0.0, vmax=1.0)

    fig = Figure(figsize=(7, 6))
    ax = fig.add_subplot()
    ax.imshow(np.ma.masked_invalid(mac), cmap=cmap, norm=norm,
              aspect="equal", interpolation="nearest")

    if config.show_values:
        labels = _value_labels(mac)
        for i in range(n_1):
            for j in range(n_2):
                v = mac[i, j]
                color = "white" if not np.isnan(v) and v < 0.5 else "black"
                ax.text(j, i, labels[i][j], ha="center", va="center",
                        fontsize=_TEXT_FONT_SIZE, color=color)

    _set_mode_ticks(ax, n_1, n_2, offset=0)
    ax.set_xlabel(config.label_2, fontsize=config.font_size)
    ax.set_ylabel(config.label_1, fontsize=config.font_size)
    ax.tick_params(labelsize=config.font_size)
    ax.grid(True, alpha=0.3)
    _add_colorbar(fig, ax, cmap, norm, config.font_size)
    fig.tight_layout()
    return fig


def render_mac(mac, config: Optional[DisplayConfig] = None) -> MACFigures:
    """Render a MAC matrix.

    Parameters
    ----------
    mac : array_like, shape (n_modes_1, n_modes_2)
        Output of :func:`modal_assurance.analysis.mac.compute_mac`.
    config : DisplayConfig, optional
        Chart options; defaults to ``DisplayConfig()``.

    Returns
    -------
    MACFigures
        ``heatmap`` is None unless ``config.n_figures == 2``.
    """
    config = config or DisplayConfig()
    data = np.array(mac, dtype=float)  # private copy, caller's matrix untouched
    if data.ndim != 2 or data.size == 0:
        raise ValueError(f"Expected a non-empty 2-D MAC matrix, got shape {data.shape}")

    bar3d = render_bar3d(data, config)
    heatmap = render_heatmap(data, config) if config.n_figures == 2 else None
    logger.debug("Rendered %d MAC chart(s) for a %dx%d matrix",
                 1 if heatmap is None else 2, data.shape[0], data.shape[1])
    return MACFigures(bar3d=bar3d, heatmap=heatmap)
