"""Observer sinks that record change notifications."""

from __future__ import annotations

import csv
import json
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:
    from ..core.network import NeuralNetwork


def snapshot(network: "NeuralNetwork", seq: int) -> Dict[str, object]:
    """Flat record describing ``network`` at notification time."""

    rule = network.learning_rule
    iteration = getattr(rule, "current_iteration", None)
    error = getattr(rule, "error", None)
    return {
        "seq": int(seq),
        "network": str(network),
        "state": network.training_state.value,
        "rule": type(rule).__name__ if rule is not None else None,
        "iteration": int(iteration) if iteration is not None else None,
        "error": repr(error) if error is not None else None,
    }


class JsonlSink:
    """Append-only JSONL writer; register with ``network.add_observer``."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self._seq = 0
        # notifications may arrive from a training thread
        self._lock = threading.Lock()

    def __call__(self, network: "NeuralNetwork") -> None:
        with self._lock:
            record = snapshot(network, self._seq)
            self._seq += 1
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record) + "\n")


class CsvSink:
    """Write notifications to CSV with a stable schema."""

    FIELDS = ("seq", "network", "state", "rule", "iteration", "error")

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._seq = 0
        self._lock = threading.Lock()

    def __call__(self, network: "NeuralNetwork") -> None:
        with self._lock:
            row = snapshot(network, self._seq)
            self._seq += 1
            with self.path.open("a", encoding="utf-8", newline="") as handle:
                writer = csv.DictWriter(handle, fieldnames=self.FIELDS)
                if handle.tell() == 0:
                    writer.writeheader()
                writer.writerow(row)


__all__ = ["CsvSink", "JsonlSink", "snapshot"]
