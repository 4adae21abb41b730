"""Ordered groups of neurons computed in one pass."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .errors import DanglingReferenceError
from .neuron import Neuron
from .types import DEFAULT_WEIGHT_RANGE

if TYPE_CHECKING:
    from .network import NeuralNetwork


class Layer:
    """Ordered sequence of neurons.

    :meth:`calculate` visits neurons strictly in list order. For feed-forward
    wiring the order is irrelevant; with lateral or recurrent connections a
    neuron sees the *fresh* output of same-layer neurons earlier in the list
    and the *stale* output (from the previous pass) of those after it.
    """

    def __init__(self, neurons: Iterable[Neuron] = ()) -> None:
        self.parent_network: Optional["NeuralNetwork"] = None
        self._neurons: List[Neuron] = []
        for neuron in neurons:
            self.add_neuron(neuron)

    @property
    def neurons(self) -> Tuple[Neuron, ...]:
        return tuple(self._neurons)

    @property
    def neuron_count(self) -> int:
        return len(self._neurons)

    def __len__(self) -> int:
        return len(self._neurons)

    def __iter__(self) -> Iterator[Neuron]:
        return iter(list(self._neurons))

    def __getitem__(self, index: int) -> Neuron:
        return self._neurons[index]

    def get_neuron_at(self, index: int) -> Neuron:
        return self._neurons[index]

    def index_of(self, neuron: Neuron) -> int:
        for idx, candidate in enumerate(self._neurons):
            if candidate is neuron:
                return idx
        raise ValueError(f"{neuron!r} is not in this layer")

    # ------------------------------------------------------------------
    # Structure

    def add_neuron(self, neuron: Neuron, index: int | None = None) -> Neuron:
        neuron.parent_layer = self
        if index is None:
            self._neurons.append(neuron)
        else:
            self._neurons.insert(index, neuron)
        return neuron

    def remove_neuron(self, neuron: Neuron, *, purge: bool = False) -> Neuron:
        """Detach ``neuron`` from this layer.

        Raises :class:`DanglingReferenceError` (removing nothing) when the
        neuron is still an input/output of the owning network or the source of
        another neuron's connection. With ``purge=True`` those references are
        dropped first instead.
        """

        return self.remove_neuron_at(self.index_of(neuron), purge=purge)

    def remove_neuron_at(self, index: int, *, purge: bool = False) -> Neuron:
        neuron = self._neurons[index]
        if self.parent_network is not None:
            self.parent_network.release_neurons([neuron], purge=purge)
        else:
            detach_references(self._neurons, [neuron], purge=purge)
        del self._neurons[index]
        neuron.parent_layer = None
        return neuron

    # ------------------------------------------------------------------
    # Bulk operations

    def calculate(self) -> None:
        for neuron in self._neurons:
            neuron.calculate()

    def reset(self) -> None:
        for neuron in self._neurons:
            neuron.reset()

    def randomize_weights(
        self,
        low: float = DEFAULT_WEIGHT_RANGE[0],
        high: float = DEFAULT_WEIGHT_RANGE[1],
        rng: np.random.Generator | None = None,
    ) -> None:
        rng = rng or np.random.default_rng()
        for neuron in self._neurons:
            neuron.randomize_weights(low, high, rng)

    def get_outputs(self) -> np.ndarray:
        return np.array([n.output for n in self._neurons], dtype=np.float64)

    def __repr__(self) -> str:
        return f"<Layer neurons={len(self._neurons)}>"


def detach_references(
    neurons: Iterable[Neuron], removed: Iterable[Neuron], *, purge: bool
) -> None:
    removed = list(removed)
    doomed = {id(n) for n in removed}
    referrers = [
        n
        for n in neurons
        if id(n) not in doomed and any(id(c.source) in doomed for c in n.connections)
    ]
    if referrers and not purge:
        raise DanglingReferenceError(
            f"{len(referrers)} neuron(s) still have connections from the neuron being removed"
        )
    for neuron in referrers:
        neuron.remove_input_connections_from(removed)


__all__ = ["Layer"]
