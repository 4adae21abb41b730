"""Activation functions and the name-keyed activation registry."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .errors import ConfigurationError

ActivationFn = Callable[[float], float]


@dataclass(frozen=True)
class Activation:
    """Named scalar activation ``f(net_input) -> output``."""

    name: str
    fn: ActivationFn

    def __call__(self, x: float) -> float:
        return float(self.fn(x))


@dataclass(frozen=True)
class Constant:
    """Ignores its input; used for bias neurons."""

    value: float = 1.0
    name: str = "constant"

    def __call__(self, x: float) -> float:
        return float(self.value)


def identity(x: float) -> float:
    """Return ``x`` unchanged."""

    return x


def step(x: float) -> float:
    return 1.0 if x > 0.0 else 0.0


def sigmoid(x: float) -> float:
    """Return the logistic sigmoid of ``x``."""

    # exp overflows past ~709
    x = min(max(x, -500.0), 500.0)
    return 1.0 / (1.0 + math.exp(-x))


def tanh(x: float) -> float:
    return float(np.tanh(x))


def relu(x: float) -> float:
    """Return the ReLU activation."""

    return float(np.maximum(x, 0.0))


class ActivationRegistry:
    """Central registry for activation functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Activation] = {}

    def register(self, name: str, fn: ActivationFn) -> Activation:
        activation = Activation(name, fn)
        self._registry[name] = activation
        return activation

    def get(self, name: str) -> Activation:
        try:
            return self._registry[name]
        except KeyError as exc:
            available = ", ".join(self.names())
            raise ConfigurationError(
                f"Unknown activation {name!r}. Available activations: {available}"
            ) from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, activation: str | ActivationFn | None) -> ActivationFn:
        """Return a callable for ``activation`` (a name, a callable or ``None``)."""

        if activation is None:
            return self.get("identity")
        if isinstance(activation, str):
            if activation == "constant":
                return Constant()
            return self.get(activation)
        if callable(activation):
            return activation
        raise ConfigurationError(f"Activation must be a name or callable, got {activation!r}")


REGISTRY = ActivationRegistry()
IDENTITY = REGISTRY.register("identity", identity)
REGISTRY.register("linear", identity)
STEP = REGISTRY.register("step", step)
SIGMOID = REGISTRY.register("sigmoid", sigmoid)
TANH = REGISTRY.register("tanh", tanh)
RELU = REGISTRY.register("relu", relu)


__all__ = [
    "Activation",
    "ActivationFn",
    "ActivationRegistry",
    "Constant",
    "IDENTITY",
    "REGISTRY",
    "RELU",
    "SIGMOID",
    "STEP",
    "TANH",
    "identity",
    "relu",
    "sigmoid",
    "step",
    "tanh",
]
