"""Minimal training-set containers consumed by learning rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..core.errors import DimensionMismatchError
from ..core.types import Array


@dataclass(frozen=True)
class TrainingElement:
    """One example: an input vector and an optional desired output."""

    input: Tuple[float, ...]
    desired_output: Optional[Tuple[float, ...]] = None

    @property
    def is_supervised(self) -> bool:
        return self.desired_output is not None

    def input_array(self) -> Array:
        return np.asarray(self.input, dtype=np.float64)

    def desired_array(self) -> Optional[Array]:
        if self.desired_output is None:
            return None
        return np.asarray(self.desired_output, dtype=np.float64)


@dataclass
class TrainingSet:
    """Ordered, fixed-width collection of :class:`TrainingElement`."""

    input_size: int
    output_size: int = 0
    elements: List[TrainingElement] = field(default_factory=list)

    def add(
        self,
        inputs: Sequence[float] | Array,
        desired_output: Sequence[float] | Array | None = None,
    ) -> TrainingElement:
        x = tuple(float(v) for v in np.asarray(inputs, dtype=np.float64).reshape(-1))
        if len(x) != self.input_size:
            raise DimensionMismatchError(self.input_size, len(x), what="training input")
        y = None
        if desired_output is not None:
            y = tuple(
                float(v) for v in np.asarray(desired_output, dtype=np.float64).reshape(-1)
            )
            if len(y) != self.output_size:
                raise DimensionMismatchError(
                    self.output_size, len(y), what="desired output"
                )
        element = TrainingElement(x, y)
        self.elements.append(element)
        return element

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[TrainingElement]:
        return iter(self.elements)

    def __getitem__(self, index: int) -> TrainingElement:
        return self.elements[index]

    @property
    def is_supervised(self) -> bool:
        return bool(self.elements) and all(e.is_supervised for e in self.elements)

    @classmethod
    def from_arrays(cls, inputs: Array, targets: Array | None = None) -> "TrainingSet":
        """Build a set from row-aligned ``inputs`` and optional ``targets``."""

        x = np.atleast_2d(np.asarray(inputs, dtype=np.float64))
        y = None if targets is None else np.atleast_2d(np.asarray(targets, dtype=np.float64))
        if y is not None and y.shape[0] != x.shape[0]:
            raise DimensionMismatchError(x.shape[0], y.shape[0], what="target rows")
        training_set = cls(input_size=x.shape[1], output_size=0 if y is None else y.shape[1])
        rows: Iterable = zip(x, y) if y is not None else ((row, None) for row in x)
        for row, target in rows:
            training_set.add(row, target)
        return training_set


__all__ = ["TrainingElement", "TrainingSet"]
