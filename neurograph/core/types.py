"""Core typing contracts for neurograph."""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

import numpy as np

Array = np.ndarray


class NetworkType(str, Enum):
    """Type tag carried by every :class:`~neurograph.core.network.NeuralNetwork`."""

    UNSPECIFIED = "unspecified"
    PERCEPTRON = "perceptron"
    MULTI_LAYER_PERCEPTRON = "multi_layer_perceptron"
    ADALINE = "adaline"
    HOPFIELD = "hopfield"
    KOHONEN = "kohonen"
    COMPETITIVE = "competitive"
    CUSTOM = "custom"


class TrainingState(str, Enum):
    """Lifecycle of a network's training slot."""

    IDLE = "idle"
    RUNNING = "running"


@runtime_checkable
class Computable(Protocol):
    """Anything that recomputes its output on demand."""

    def calculate(self) -> None:
        """Recompute output state from current inputs."""


@runtime_checkable
class Resettable(Protocol):
    def reset(self) -> None:
        """Zero activation state, keeping structure and weights."""


@runtime_checkable
class WeightRandomizable(Protocol):
    def randomize_weights(
        self,
        low: float = ...,
        high: float = ...,
        rng: np.random.Generator | None = ...,
    ) -> None:
        """Draw fresh connection weights from ``[low, high)``."""


DEFAULT_WEIGHT_RANGE = (-0.5, 0.5)


__all__ = [
    "Array",
    "Computable",
    "DEFAULT_WEIGHT_RANGE",
    "NetworkType",
    "Resettable",
    "TrainingState",
    "WeightRandomizable",
]
