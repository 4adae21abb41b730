"""Whole-network graph, forward pass and training orchestration."""

from __future__ import annotations

import logging
import threading
import warnings
from pathlib import Path
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Callable,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

import numpy as np

from ..plugins.base import Plugin
from ..plugins.labels import LabelsPlugin
from .connection import Connection
from .errors import (
    AlreadyTrainingError,
    DanglingReferenceError,
    DimensionMismatchError,
    NoLearningRuleError,
)
from .layer import Layer, detach_references
from .neuron import Neuron
from .types import DEFAULT_WEIGHT_RANGE, NetworkType, TrainingState

if TYPE_CHECKING:
    from ..learning.dataset import TrainingSet
    from ..learning.rule import LearningRule

logger = logging.getLogger(__name__)

Observer = Callable[["NeuralNetwork"], None]

_TRANSIENT = ("_observers", "_training_lock", "_training_state", "_learning_thread")

_DEPRECATION_EMITTED = False


def _warn_once() -> None:
    global _DEPRECATION_EMITTED
    if not _DEPRECATION_EMITTED:
        warnings.warn(
            "NeuralNetwork.learn is deprecated; use learn_in_new_thread or learn_in_same_thread.",
            DeprecationWarning,
            stacklevel=3,
        )
        _DEPRECATION_EMITTED = True


class NeuralNetwork:
    """Directed graph of layers, neurons and weighted connections.

    The network owns its layers, plugins and the current learning rule. The
    input and output neuron lists are views: they hold references to neurons
    that live in the layers.

    Nothing here is locked except the training slot. Calling
    :meth:`calculate`, :meth:`get_output` or mutating the graph while a
    threaded training run is updating weights is a data race; callers who
    need that must synchronise externally.
    """

    def __init__(
        self,
        network_type: NetworkType = NetworkType.UNSPECIFIED,
        layers: Iterable[Layer] = (),
    ) -> None:
        self.network_type = NetworkType(network_type)
        self._layers: List[Layer] = []
        self._input_neurons: List[Neuron] = []
        self._output_neurons: List[Neuron] = []
        self._learning_rule: Optional["LearningRule"] = None
        self._plugins: dict[str, Plugin] = {}
        self._init_transient()
        for layer in layers:
            self.add_layer(layer)
        self.add_plugin(LabelsPlugin())

    def _init_transient(self) -> None:
        self._observers: List[Observer] = []
        self._training_lock = threading.Lock()
        self._training_state = TrainingState.IDLE
        self._learning_thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Layers

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return tuple(self._layers)

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(list(self._layers))

    def add_layer(self, layer: Layer, index: int | None = None) -> Layer:
        """Append ``layer`` (or insert it at ``index``) and adopt it."""

        layer.parent_network = self
        if index is None:
            self._layers.append(layer)
        else:
            self._layers.insert(index, layer)
        return layer

    def get_layer_at(self, index: int) -> Layer:
        return self._layers[index]

    def index_of(self, layer: Layer) -> int:
        for idx, candidate in enumerate(self._layers):
            if candidate is layer:
                return idx
        return -1

    def remove_layer(self, layer: Layer, *, purge: bool = False) -> Layer:
        idx = self.index_of(layer)
        if idx < 0:
            raise ValueError(f"{layer!r} is not part of this network")
        return self.remove_layer_at(idx, purge=purge)

    def remove_layer_at(self, index: int, *, purge: bool = False) -> Layer:
        """Remove the layer at ``index``.

        Fails with :class:`DanglingReferenceError` and leaves the network
        untouched if any of the layer's neurons is still an input/output
        neuron or feeds a connection in another layer. ``purge=True`` drops
        those view entries and connections instead.
        """

        layer = self._layers[index]
        self.release_neurons(layer.neurons, purge=purge)
        del self._layers[index]
        layer.parent_network = None
        return layer

    def release_neurons(self, neurons: Sequence[Neuron], *, purge: bool = False) -> None:
        """Check (or with ``purge`` clear) every reference to ``neurons``.

        Called before ``neurons`` leave the graph.
        """

        doomed = {id(n) for n in neurons}
        in_views = [
            n for n in self._input_neurons + self._output_neurons if id(n) in doomed
        ]
        if in_views and not purge:
            raise DanglingReferenceError(
                f"{len(in_views)} neuron(s) being removed are still listed as "
                "network inputs or outputs"
            )
        everything = [n for layer in self._layers for n in layer.neurons]
        detach_references(everything, neurons, purge=purge)
        if in_views:
            self._input_neurons = [n for n in self._input_neurons if id(n) not in doomed]
            self._output_neurons = [n for n in self._output_neurons if id(n) not in doomed]
            logger.debug("Purged %d input/output view entries", len(in_views))

    # ------------------------------------------------------------------
    # Input/output views

    @property
    def input_neurons(self) -> Tuple[Neuron, ...]:
        return tuple(self._input_neurons)

    @input_neurons.setter
    def input_neurons(self, neurons: Iterable[Neuron]) -> None:
        self._input_neurons = self._check_members(neurons, "input")

    def set_input_neurons(self, neurons: Iterable[Neuron]) -> None:
        self.input_neurons = neurons

    @property
    def output_neurons(self) -> Tuple[Neuron, ...]:
        return tuple(self._output_neurons)

    @output_neurons.setter
    def output_neurons(self, neurons: Iterable[Neuron]) -> None:
        self._output_neurons = self._check_members(neurons, "output")

    def set_output_neurons(self, neurons: Iterable[Neuron]) -> None:
        self.output_neurons = neurons

    def _check_members(self, neurons: Iterable[Neuron], kind: str) -> List[Neuron]:
        neurons = list(neurons)
        for neuron in neurons:
            if neuron.parent_network is not self:
                raise DanglingReferenceError(
                    f"{kind} neuron {neuron!r} does not belong to a layer of this network"
                )
        return neurons

    # ------------------------------------------------------------------
    # Forward computation

    def set_input(self, values: Sequence[float] | np.ndarray) -> None:
        """Assign ``values`` positionally to the input neurons."""

        vector = np.asarray(values, dtype=np.float64).reshape(-1)
        if vector.shape[0] != len(self._input_neurons):
            raise DimensionMismatchError(len(self._input_neurons), int(vector.shape[0]))
        for neuron, value in zip(self._input_neurons, vector):
            neuron.set_input(float(value))

    def calculate(self) -> None:
        """Calculate every layer in list order (the propagation order)."""

        for layer in self._layers:
            layer.calculate()

    run = calculate

    def get_output(self) -> List[float]:
        """Return output neuron values; does not compute anything."""

        return [neuron.output for neuron in self._output_neurons]

    def get_output_as_array(self) -> np.ndarray:
        return np.array(self.get_output(), dtype=np.float64)

    def reset(self) -> None:
        for layer in self._layers:
            layer.reset()

    def randomize_weights(
        self,
        low: float = DEFAULT_WEIGHT_RANGE[0],
        high: float = DEFAULT_WEIGHT_RANGE[1],
        rng: np.random.Generator | None = None,
        *,
        seed: int | None = None,
    ) -> None:
        if rng is None:
            rng = np.random.default_rng(seed)
        for layer in self._layers:
            layer.randomize_weights(low, high, rng)

    def create_connection(
        self, from_neuron: Neuron, to_neuron: Neuron, weight: float
    ) -> Connection:
        return to_neuron.add_input_connection(Connection(from_neuron, weight))

    # ------------------------------------------------------------------
    # Weights

    def _connections(self) -> Iterator[Connection]:
        for layer in self._layers:
            for neuron in layer.neurons:
                yield from neuron.connections

    def get_weights(self) -> np.ndarray:
        """Every connection weight in layer, neuron, connection order."""

        return np.fromiter(
            (c.weight for c in self._connections()), dtype=np.float64
        )

    def set_weights(self, weights: Sequence[float] | np.ndarray) -> None:
        vector = np.asarray(weights, dtype=np.float64).reshape(-1)
        connections = list(self._connections())
        if vector.shape[0] != len(connections):
            raise DimensionMismatchError(
                len(connections), int(vector.shape[0]), what="weight vector"
            )
        if not np.all(np.isfinite(vector)):
            raise ValueError("Connection weights must be finite")
        for connection, value in zip(connections, vector):
            connection.weight = float(value)

    # ------------------------------------------------------------------
    # Learning

    @property
    def learning_rule(self) -> Optional["LearningRule"]:
        return self._learning_rule

    @learning_rule.setter
    def learning_rule(self, rule: "LearningRule") -> None:
        self.set_learning_rule(rule)

    def set_learning_rule(self, rule: "LearningRule") -> None:
        with self._training_lock:
            self._bind_rule(rule)

    def _bind_rule(self, rule: "LearningRule") -> None:
        if self._training_state is TrainingState.RUNNING and rule is not self._learning_rule:
            raise AlreadyTrainingError(
                "Cannot replace the learning rule while training is running"
            )
        if rule.is_running and rule.network is not self:
            raise AlreadyTrainingError(
                f"{type(rule).__name__} is still training another network"
            )
        rule.set_neural_network(self)
        self._learning_rule = rule

    @property
    def training_state(self) -> TrainingState:
        return self._training_state

    @property
    def is_learning(self) -> bool:
        return self._training_state is TrainingState.RUNNING

    @property
    def learning_thread(self) -> Optional[threading.Thread]:
        return self._learning_thread

    def _begin_learning(
        self, training_set: "TrainingSet", rule: Optional["LearningRule"]
    ) -> "LearningRule":
        """Claim the training slot and the rule's run slot.

        The stop flag is cleared here, before the run is handed to a thread,
        so a :meth:`stop_learning` issued right after a start still counts.
        """

        with self._training_lock:
            if self._training_state is TrainingState.RUNNING:
                logger.warning("Rejected training start: a run is already in progress")
                raise AlreadyTrainingError("This network is already training")
            rule = rule if rule is not None else self._learning_rule
            if rule is None:
                raise NoLearningRuleError("No learning rule is set for this network")
            # the rule may have been bound to another network since
            self._bind_rule(rule)
            if not rule.try_claim():
                logger.warning("Rejected training start: %s is busy", type(rule).__name__)
                raise AlreadyTrainingError(
                    f"{type(rule).__name__} is already training another network"
                )
            rule.set_training_set(training_set)
            rule.clear_stop()
            self._training_state = TrainingState.RUNNING
        logger.info("Training started with %s", type(rule).__name__)
        return rule

    def _end_learning(self, rule: "LearningRule") -> None:
        with self._training_lock:
            self._training_state = TrainingState.IDLE
            rule.release()
        logger.info(
            "Training with %s finished%s",
            type(rule).__name__,
            " (stopped)" if rule.is_stopped else "",
        )

    def learn_in_same_thread(
        self, training_set: "TrainingSet", learning_rule: Optional["LearningRule"] = None
    ) -> None:
        """Run the learning rule on the caller's thread; blocks until it ends.

        Errors raised by the rule propagate to the caller.
        """

        rule = self._begin_learning(training_set, learning_rule)
        self._learning_thread = None
        try:
            rule.run()
        finally:
            self._end_learning(rule)

    def learn_in_new_thread(
        self,
        training_set: "TrainingSet",
        learning_rule: Optional["LearningRule"] = None,
        *,
        timeout: float | None = None,
    ) -> threading.Thread:
        """Start the learning rule on a daemon thread and return immediately.

        ``timeout`` (seconds) arms a watchdog that calls :meth:`stop_learning`
        once the deadline passes; the rule still stops only at its next
        polling point. Errors inside the rule are recorded on ``rule.error``
        and reported to observers, not raised here.
        """

        rule = self._begin_learning(training_set, learning_rule)
        watchdog: Optional[threading.Timer] = None
        if timeout is not None:
            watchdog = threading.Timer(timeout, self._deadline_reached, args=(rule,))
            watchdog.daemon = True
        thread = threading.Thread(
            target=self._learning_worker,
            args=(rule, watchdog),
            name=f"neurograph-learning-{id(self):x}",
            daemon=True,
        )
        self._learning_thread = thread
        try:
            if watchdog is not None:
                watchdog.start()
            thread.start()
        except RuntimeError:
            if watchdog is not None:
                watchdog.cancel()
            self._end_learning(rule)
            raise
        return thread

    def _learning_worker(
        self, rule: "LearningRule", watchdog: Optional[threading.Timer]
    ) -> None:
        try:
            rule.run()
        except Exception as exc:
            # already logged and stored on rule.error; nothing above this frame
            logger.debug("Learning thread ended with %s: %s", type(exc).__name__, exc)
        finally:
            if watchdog is not None:
                watchdog.cancel()
            self._end_learning(rule)

    def _deadline_reached(self, rule: "LearningRule") -> None:
        logger.warning("Training deadline reached; requesting stop")
        rule.stop_learning()

    def join_learning(self, timeout: float | None = None) -> bool:
        """Wait for a threaded run; return ``True`` once no run is active."""

        thread = self._learning_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                return False
        return not self.is_learning

    def learn(self, training_set: "TrainingSet") -> threading.Thread:
        _warn_once()
        return self.learn_in_new_thread(training_set)

    def stop_learning(self) -> None:
        """Ask the current rule to stop at its next polling point."""

        if self._learning_rule is not None:
            self._learning_rule.stop_learning()

    # ------------------------------------------------------------------
    # Observers

    def add_observer(self, observer: Observer) -> Observer:
        if observer not in self._observers:
            self._observers.append(observer)
        return observer

    def remove_observer(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def notify_change(self) -> None:
        """Call every observer with this network, in registration order."""

        for observer in list(self._observers):
            observer(self)

    # ------------------------------------------------------------------
    # Plugins

    def add_plugin(self, plugin: Plugin) -> Plugin:
        plugin.set_parent_network(self)
        self._plugins[plugin.name] = plugin
        return plugin

    def get_plugin(self, name: str) -> Optional[Plugin]:
        return self._plugins.get(name)

    def remove_plugin(self, name: str) -> Optional[Plugin]:
        plugin = self._plugins.pop(name, None)
        if plugin is not None:
            plugin.set_parent_network(None)
        return plugin

    @property
    def plugins(self) -> Mapping[str, Plugin]:
        return MappingProxyType(self._plugins)

    @property
    def labels(self) -> Optional[LabelsPlugin]:
        plugin = self._plugins.get(LabelsPlugin.NAME)
        return plugin if isinstance(plugin, LabelsPlugin) else None

    @property
    def label(self) -> Optional[str]:
        labels = self.labels
        return labels.get_label(self) if labels is not None else None

    @label.setter
    def label(self, value: str) -> None:
        labels = self.labels
        if labels is None:
            labels = self.add_plugin(LabelsPlugin())
        labels.set_label(self, value)

    # ------------------------------------------------------------------
    # Persistence

    def save(self, path: str | Path) -> Path:
        from ..persistence import save_network

        return save_network(self, path)

    @classmethod
    def load(cls, path: str | Path) -> "NeuralNetwork":
        from ..persistence import load_network

        return load_network(path)

    def __getstate__(self):
        state = self.__dict__.copy()
        for key in _TRANSIENT:
            state.pop(key, None)
        return state

    def __setstate__(self, state) -> None:
        self.__dict__.update(state)
        self._init_transient()

    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        sizes = [len(layer) for layer in self._layers]
        return f"<NeuralNetwork type={self.network_type.value} layers={sizes}>"

    def __str__(self) -> str:
        label = self.label
        if label is not None:
            return label
        return repr(self)


__all__ = ["NeuralNetwork", "Observer"]
