"""Learning-rule contract and the iterative training loop."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..core.network import NeuralNetwork
    from .dataset import TrainingSet

logger = logging.getLogger(__name__)


class LearningRule(ABC):
    """Unit of work bound to one network and one training set.

    :meth:`run` works inline or as a thread target. Cancellation is
    cooperative: :meth:`stop_learning` sets a flag that the rule's own loop
    must poll via :attr:`is_stopped`; a rule that never polls never stops.

    Errors raised by :meth:`learn` are stored on :attr:`error`, logged, sent
    to the network's observers, and re-raised.
    """

    def __init__(self) -> None:
        self.network: Optional["NeuralNetwork"] = None
        self.training_set: Optional["TrainingSet"] = None
        self.error: Optional[BaseException] = None
        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()

    def set_neural_network(self, network: "NeuralNetwork") -> None:
        self.network = network

    def set_training_set(self, training_set: "TrainingSet") -> None:
        self.training_set = training_set

    # ------------------------------------------------------------------
    # Cancellation

    def stop_learning(self) -> None:
        self._stop_event.set()

    def clear_stop(self) -> None:
        self._stop_event.clear()

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    # ------------------------------------------------------------------
    # Run slot, held by the network for the length of one run

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def try_claim(self) -> bool:
        """Take the run slot; ``False`` if another run already holds it."""

        return self._run_lock.acquire(blocking=False)

    def release(self) -> None:
        if self._run_lock.locked():
            self._run_lock.release()

    # ------------------------------------------------------------------

    def run(self) -> None:
        if self.network is None:
            raise RuntimeError(f"{type(self).__name__} is not bound to a network")
        self.error = None
        try:
            self.learn(self.training_set)
        except Exception as exc:
            self.error = exc
            logger.exception("%s failed", type(self).__name__)
            try:
                self.network.notify_change()
            except Exception:
                logger.exception("Observer failed while reporting %s", type(self).__name__)
            raise

    @abstractmethod
    def learn(self, training_set: Optional["TrainingSet"]) -> None:
        """Train :attr:`network` on ``training_set``."""

    def __getstate__(self):
        state = self.__dict__.copy()
        state.pop("_stop_event", None)
        state.pop("_run_lock", None)
        state["training_set"] = None
        state["error"] = None
        return state

    def __setstate__(self, state) -> None:
        self.__dict__.update(state)
        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()


class IterativeLearning(LearningRule):
    """Repeat :meth:`do_learning_epoch` until stopped or out of iterations.

    The stop flag is polled once before every iteration, so a stop requested
    before the first iteration runs zero iterations. Observers are notified
    every ``iterations_per_notify`` completed iterations.
    """

    def __init__(
        self, max_iterations: int | None = None, iterations_per_notify: int = 1
    ) -> None:
        super().__init__()
        if max_iterations is not None and max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")
        if iterations_per_notify < 1:
            raise ValueError("iterations_per_notify must be at least 1")
        self.max_iterations = max_iterations
        self.iterations_per_notify = iterations_per_notify
        self.current_iteration = 0

    def learn(self, training_set: Optional["TrainingSet"]) -> None:
        self.current_iteration = 0
        self.on_start()
        try:
            while not self.is_stopped and not self.has_reached_stop_condition():
                self.do_learning_epoch(training_set)
                self.current_iteration += 1
                if self.current_iteration % self.iterations_per_notify == 0:
                    self.network.notify_change()
        finally:
            self.on_stop()

    def has_reached_stop_condition(self) -> bool:
        return (
            self.max_iterations is not None
            and self.current_iteration >= self.max_iterations
        )

    def on_start(self) -> None:
        """Hook called on the training thread before the first iteration."""

    def on_stop(self) -> None:
        """Hook called on the training thread after the loop ends."""

    @abstractmethod
    def do_learning_epoch(self, training_set: Optional["TrainingSet"]) -> None:
        """One pass over ``training_set``."""


__all__ = ["IterativeLearning", "LearningRule"]
