"""Structured logging for ModalAssurance.

Two tiers: a rotating plain-text application log and append-only JSONL
event files (``operations.jsonl``, ``comparisons.jsonl``).  Comparison
records hold shapes, settings and summary figures, never the MAC matrix.
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional


class StructuredLogger:
    def __init__(self, log_dir: str = "data/logs", level: str = "INFO"):
        self._log_dir = log_dir
        os.makedirs(log_dir, exist_ok=True)
        self._setup_app_logger(level)

    def _setup_app_logger(self, level: str) -> None:
        self._app_logger = logging.getLogger("modal_assurance.app." + str(id(self)))
        if not self._app_logger.handlers:
            handler = RotatingFileHandler(
                os.path.join(self._log_dir, "app.log"),
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
            )
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
            )
            self._app_logger.addHandler(handler)
            self._app_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    @property
    def app(self) -> logging.Logger:
        return self._app_logger

    def close(self) -> None:
        for handler in list(self._app_logger.handlers):
            handler.close()
            self._app_logger.removeHandler(handler)

    def _write_jsonl(self, filename: str, record: dict) -> None:
        filepath = os.path.join(self._log_dir, filename)
        with open(filepath, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")

    def log_operation(
        self,
        session_id: str,
        event_type: str,
        user_action: str = "",
        data: Optional[dict] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "session_id": session_id,
            "event_type": event_type,
            "user_action": user_action,
            "data": data or {},
            "metadata": metadata or {},
        }
        self._write_jsonl("operations.jsonl", record)

    def log_comparison(
        self,
        session_id: str,
        inputs: dict,
        outputs: dict,
        metadata: Optional[dict] = None,
    ) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "session_id": session_id,
            "event_type": "comparison.completed",
            "inputs": inputs,
            "outputs": outputs,
            "metadata": metadata or {},
        }
        self._write_jsonl("comparisons.jsonl", record)

    def log_correlation(self, session_id: str, mode_set_1, mode_set_2, report,
                        charts: Optional[list] = None, metadata: Optional[dict] = None) -> None:
        """Record a finished correlation: set shapes, settings and summary figures."""
        details = report.details
        inputs = {
            "set1": {"name": mode_set_1.name, "n_dof": mode_set_1.n_dof,
                     "n_modes": mode_set_1.n_modes,
                     "has_frequencies": mode_set_1.frequencies_hz is not None},
            "set2": {"name": mode_set_2.name, "n_dof": mode_set_2.n_dof,
                     "n_modes": mode_set_2.n_modes,
                     "has_frequencies": mode_set_2.frequencies_hz is not None},
            "pairing": details.get("pairing"),
            "thresholds": details.get("thresholds", {}),
        }
        outputs = {
            "status": report.status.value,
            "n_paired_modes": len(report.pairs),
            "min_mac": details.get("min_mac"),
            "mean_mac": details.get("mean_mac"),
            "max_freq_dev_pct": details.get("max_freq_dev_pct"),
            "degenerate_pairs": [[int(i), int(j)] for i, j in details.get("degenerate_pairs", [])],
            "charts": list(charts or []),
        }
        self.log_comparison(session_id, inputs=inputs, outputs=outputs, metadata=metadata)
        self._app_logger.info("Correlation %s: %s x %s modes -> %s", session_id,
                              mode_set_1.n_modes, mode_set_2.n_modes, report.status.value)
