"""Display options for MAC charts.

Options are validated when a DisplayConfig is built.  An unrecognised option or an invalid
value is logged as a warning and replaced by its default; it never raises
and never reaches the MAC computation.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_COLORMAP = "viridis"
VALID_FIGURE_COUNTS = (1, 2)

_TRUE_WORDS = {"yes", "true", "on", "1"}
_FALSE_WORDS = {"no", "false", "off", "0"}


def _colormap_names() -> set[str]:
    import matplotlib
    return set(matplotlib.colormaps)


@dataclass(frozen=True)
class DisplayConfig:
    """Resolved chart options.

    Attributes
    ----------
    colormap : str
        Matplotlib colormap name.
    label_1, label_2 : str
        Axis labels for the first (rows) and second (columns) mode set.
    font_size : float
        Tick and axis label font size.
    n_figures : int
        1 for the 3-D bar chart only, 2 to add the 2-D heatmap.
    show_values : bool
        Overlay the numeric MAC value on every cell.
    """
    colormap: str = DEFAULT_COLORMAP
    label_1: str = "Modes 1"
    label_2: str = "Modes 2"
    font_size: float = 12
    n_figures: int = 1
    show_values: bool = False

    def __post_init__(self):
        defaults = {f.name: f.default for f in fields(self)}
        for name, resolver in _RESOLVERS.items():
            object.__setattr__(self, name, resolver(getattr(self, name), defaults[name]))

    @classmethod
    def resolve(cls, **options: Any) -> "DisplayConfig":
        """Build a config from loosely typed options, substituting defaults."""
        return cls.from_mapping(options)

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]]) -> "DisplayConfig":
        known = {f.name for f in fields(cls)}
        options = dict(options or {})

        for name in sorted(set(options) - known):
            logger.warning("Unknown display option '%s' ignored", name)

        return cls(**{name: options[name] for name in known if options.get(name) is not None})


# ---------------------------------------------------------------------------
# Per-option resolution
# ---------------------------------------------------------------------------


def _resolve_colormap(value, default: str) -> str:
    if value is None or value == "" or (isinstance(value, str) and value.lower() == "default"):
        return default
    if isinstance(value, str) and value in _colormap_names():
        return value
    logger.warning("Unknown colormap %r. Using '%s' by default.", value, default)
    return default


def _resolve_label(value, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _resolve_font_size(value, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        size = float(value)
    except (TypeError, ValueError):
        size = float("nan")
    if not size > 0 or size == float("inf"):
        logger.warning("font_size should be a positive number, got %r. Using %s by default.",
                       value, default)
        return default
    return size


def _resolve_n_figures(value, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, bool) and value in VALID_FIGURE_COUNTS:
        return int(value)
    logger.warning("n_figures should be 1 or 2, got %r. Using %d by default.", value, default)
    return default


def _resolve_show_values(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    logger.warning("show_values should be 'yes' or 'no', got %r. Using '%s' by default.",
                   value, "yes" if default else "no")
    return default


_RESOLVERS = {
    "colormap": _resolve_colormap,
    "label_1": _resolve_label,
    "label_2": _resolve_label,
    "font_size": _resolve_font_size,
    "n_figures": _resolve_n_figures,
    "show_values": _resolve_show_values,
}
