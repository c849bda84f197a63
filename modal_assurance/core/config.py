"""Global configuration manager using YAML."""
from __future__ import annotations

import copy
import os
from typing import Any, Optional

import yaml

DEFAULT_CONFIG = {
    "app": {"name": "ModalAssurance", "version": "0.1.0"},
    "logging": {"dir": "data/logs", "level": "INFO"},
    "mac": {
        "on_degenerate": "raise",
        "pairing": "greedy",
        "thresholds": {
            "mac_pass": 0.95,
            "mac_warn": 0.80,
            "freq_pass_pct": 1.0,
            "freq_warn_pct": 5.0,
        },
    },
    "display": {
        "colormap": "viridis",
        "label_1": "Modes 1",
        "label_2": "Modes 2",
        "font_size": 12,
        "n_figures": 1,
        "show_values": False,
    },
}


class AppConfig:
    def __init__(self, config_path: Optional[str] = None):
        self._data: dict = copy.deepcopy(DEFAULT_CONFIG)
        if config_path and os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as f:
                file_data = yaml.safe_load(f) or {}
            if not isinstance(file_data, dict):
                raise ValueError("Config file %s must contain a mapping" % config_path)
            self._deep_merge(self._data, file_data)

    def _deep_merge(self, base: dict, override: dict) -> None:
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def get(self, dotted_key: str, default: Any = None) -> Any:
        keys = dotted_key.split(".")
        node = self._data
        for k in keys:
            if isinstance(node, dict) and k in node:
                node = node[k]
            else:
                return default
        return node

    def set(self, dotted_key: str, value: Any) -> None:
        keys = dotted_key.split(".")
        node = self._data
        for k in keys[:-1]:
            if k not in node or not isinstance(node[k], dict):
                node[k] = {}
            node = node[k]
        node[keys[-1]] = value

    @property
    def data(self) -> dict:
        return self._data

    def mac_settings(self) -> dict:
        """Validated ``mac`` section: on_degenerate, pairing and merged thresholds."""
        from modal_assurance.analysis.correlation import DEFAULT_THRESHOLDS, PAIRING_METHODS
        from modal_assurance.analysis.mac import DEGENERATE_POLICIES

        on_degenerate = self.get("mac.on_degenerate", "raise")
        if on_degenerate not in DEGENERATE_POLICIES:
            raise ValueError("mac.on_degenerate must be one of %s, got %r"
                             % (DEGENERATE_POLICIES, on_degenerate))
        pairing = self.get("mac.pairing", "greedy")
        if pairing not in PAIRING_METHODS:
            raise ValueError("mac.pairing must be one of %s, got %r" % (PAIRING_METHODS, pairing))

        thresholds = self.get("mac.thresholds") or {}
        if not isinstance(thresholds, dict):
            raise ValueError("mac.thresholds must be a mapping")
        unknown = sorted(set(thresholds) - set(DEFAULT_THRESHOLDS))
        if unknown:
            raise ValueError("Unknown mac.thresholds keys: %s" % ", ".join(unknown))
        merged = dict(DEFAULT_THRESHOLDS)
        for key, value in thresholds.items():
            try:
                merged[key] = float(value)
            except (TypeError, ValueError):
                raise ValueError("mac.thresholds.%s must be a number, got %r" % (key, value))
        return {"on_degenerate": on_degenerate, "pairing": pairing, "thresholds": merged}

    def display_options(self) -> dict:
        """Raw ``display`` section, resolved later by DisplayConfig."""
        options = self.get("display") or {}
        return dict(options) if isinstance(options, dict) else {}
