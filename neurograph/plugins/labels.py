"""Human-readable labels for networks, layers and neurons."""

from __future__ import annotations

from typing import Dict, Optional

from .base import Plugin


class LabelsPlugin(Plugin):
    """Maps graph objects (by identity) to display labels.

    Installed on every network at construction under :attr:`NAME`; the
    network's ``str()`` uses the label set for the network itself.
    """

    NAME = "LabelsPlugin"

    def __init__(self) -> None:
        super().__init__(self.NAME)
        self._labels: Dict[int, tuple[object, str]] = {}

    def set_label(self, obj: object, label: str) -> None:
        # hold a reference to ``obj`` so its id() cannot be recycled
        self._labels[id(obj)] = (obj, str(label))

    def get_label(self, obj: object) -> Optional[str]:
        entry = self._labels.get(id(obj))
        return entry[1] if entry is not None else None

    def remove_label(self, obj: object) -> Optional[str]:
        entry = self._labels.pop(id(obj), None)
        return entry[1] if entry is not None else None

    def __len__(self) -> int:
        return len(self._labels)

    def __getstate__(self):
        state = self.__dict__.copy()
        state["_labels"] = [entry for entry in self._labels.values()]
        return state

    def __setstate__(self, state) -> None:
        entries = state.pop("_labels")
        self.__dict__.update(state)
        self._labels = {id(obj): (obj, label) for obj, label in entries}


__all__ = ["LabelsPlugin"]
