"""Single computational units of the network graph."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

import numpy as np

from .activations import REGISTRY, ActivationFn, Constant
from .connection import Connection
from .types import DEFAULT_WEIGHT_RANGE

if TYPE_CHECKING:
    from .layer import Layer
    from .network import NeuralNetwork


class Neuron:
    """Neuron with an ordered list of incoming connections.

    ``calculate`` sums ``weight * source.output`` over the incoming
    connections into :attr:`activation_input` and applies the activation
    function. A neuron without connections keeps the value last given to
    :meth:`set_input` (``0.0`` after construction or :meth:`reset`), which is
    how input and bias neurons are fed.

    The activation is held by composition: pass a registry name
    (``"sigmoid"``), any ``float -> float`` callable, or ``None`` for the
    identity.
    """

    def __init__(self, activation: str | ActivationFn | None = None) -> None:
        self.activation: ActivationFn = REGISTRY.resolve(activation)
        self.connections: List[Connection] = []
        self.activation_input = 0.0
        self.activation_output = 0.0
        self.parent_layer: Optional["Layer"] = None

    # ------------------------------------------------------------------
    # State

    @property
    def output(self) -> float:
        return self.activation_output

    @property
    def net_input(self) -> float:
        return self.activation_input

    @property
    def parent_network(self) -> Optional["NeuralNetwork"]:
        if self.parent_layer is None:
            return None
        return self.parent_layer.parent_network

    @property
    def is_input(self) -> bool:
        """Whether the owning network lists this neuron in its input view."""

        network = self.parent_network
        return network is not None and any(n is self for n in network.input_neurons)

    @property
    def is_bias(self) -> bool:
        return isinstance(self.activation, Constant)

    # ------------------------------------------------------------------
    # Computation

    def calculate(self) -> None:
        if self.connections:
            self.activation_input = float(
                sum(connection.weighted_input() for connection in self.connections)
            )
        self.activation_output = float(self.activation(self.activation_input))

    def set_input(self, value: float) -> None:
        """Override the net input directly, bypassing connection summation."""

        self.activation_input = float(value)

    def reset(self) -> None:
        self.activation_input = 0.0
        self.activation_output = 0.0

    # ------------------------------------------------------------------
    # Connections

    def add_input_connection(self, connection: Connection) -> Connection:
        """Append ``connection``. Parallel edges from one source are allowed."""

        self.connections.append(connection)
        return connection

    def connect_from(self, source: "Neuron", weight: float = 0.0) -> Connection:
        return self.add_input_connection(Connection(source, weight))

    def remove_input_connections_from(self, sources: Iterable["Neuron"]) -> int:
        """Drop every connection whose source is one of ``sources``.

        Returns the number of connections removed.
        """

        doomed = {id(source) for source in sources}
        kept = [c for c in self.connections if id(c.source) not in doomed]
        removed = len(self.connections) - len(kept)
        self.connections = kept
        return removed

    def get_weights(self) -> np.ndarray:
        return np.array([c.weight for c in self.connections], dtype=np.float64)

    def randomize_weights(
        self,
        low: float = DEFAULT_WEIGHT_RANGE[0],
        high: float = DEFAULT_WEIGHT_RANGE[1],
        rng: np.random.Generator | None = None,
    ) -> None:
        """Redraw every incoming weight uniformly from ``[low, high)``."""

        if not self.connections:
            return
        rng = rng or np.random.default_rng()
        values = rng.uniform(low, high, size=len(self.connections))
        for connection, value in zip(self.connections, values):
            connection.weight = float(value)

    def __repr__(self) -> str:
        name = getattr(self.activation, "name", getattr(self.activation, "__name__", "?"))
        return (
            f"<Neuron activation={name} inputs={len(self.connections)} "
            f"output={self.activation_output:.6g}>"
        )


def bias_neuron(value: float = 1.0) -> Neuron:
    """Return a neuron whose output is always ``value`` once calculated."""

    return Neuron(Constant(value))


__all__ = ["Neuron", "bias_neuron"]
