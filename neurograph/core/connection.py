"""Weighted edges between neurons."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .neuron import Neuron


def _check_weight(weight: float) -> float:
    value = float(weight)
    if not math.isfinite(value):
        raise ValueError(f"Connection weight must be finite, got {weight!r}")
    return value


class Connection:
    """Directed edge feeding ``source``'s output into its owning neuron.

    The source is shared, not owned: a connection lives in exactly one
    neuron's input list and is discarded with it.
    """

    __slots__ = ("_source", "_weight")

    def __init__(self, source: "Neuron", weight: float = 0.0) -> None:
        self._source = source
        self._weight = _check_weight(weight)

    @property
    def source(self) -> "Neuron":
        return self._source

    @property
    def weight(self) -> float:
        return self._weight

    @weight.setter
    def weight(self, value: float) -> None:
        self._weight = _check_weight(value)

    def weighted_input(self) -> float:
        """Return ``weight * source.output`` at call time."""

        return self._weight * self._source.output

    def __getstate__(self):
        return {"source": self._source, "weight": self._weight}

    def __setstate__(self, state) -> None:
        self._source = state["source"]
        self._weight = state["weight"]

    def __repr__(self) -> str:
        return f"Connection(source={self._source!r}, weight={self._weight!r})"


__all__ = ["Connection"]
