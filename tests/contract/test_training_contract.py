import threading
import time

import pytest

from neurograph.core import network as network_module
from neurograph.core.errors import AlreadyTrainingError, NoLearningRuleError
from neurograph.core.types import TrainingState
from neurograph.factory import create_multilayer_perceptron
from neurograph.learning import IterativeLearning, TrainingSet


class CountingRule(IterativeLearning):
    """Counts epochs; optionally stops itself after ``stop_after``."""

    def __init__(self, max_iterations=None, stop_after=None, delay=0.0):
        super().__init__(max_iterations=max_iterations)
        self.stop_after = stop_after
        self.delay = delay
        self.epochs = 0
        self.threads = set()

    def do_learning_epoch(self, training_set):
        self.threads.add(threading.current_thread().name)
        self.epochs += 1
        if self.delay:
            time.sleep(self.delay)
        if self.stop_after is not None and self.epochs >= self.stop_after:
            self.stop_learning()


class GatedRule(CountingRule):
    """Blocks in ``on_start`` until the test opens the gate."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.started = threading.Event()
        self.gate = threading.Event()

    def on_start(self):
        self.started.set()
        self.gate.wait(timeout=5)


class FailingRule(IterativeLearning):
    def do_learning_epoch(self, training_set):
        raise RuntimeError("diverged")


def _training_set():
    return TrainingSet.from_arrays([[0, 0], [0, 1], [1, 0], [1, 1]], [[0], [1], [1], [0]])


def _network():
    return create_multilayer_perceptron([2, 3, 1], seed=0)


def _learning_threads():
    return [t for t in threading.enumerate() if t.name.startswith("neurograph-learning")]


def test_same_thread_runs_to_self_stop_and_leaves_no_thread():
    network = _network()
    rule = CountingRule(stop_after=5)
    network.learn_in_same_thread(_training_set(), rule)

    assert rule.epochs == 5
    assert rule.current_iteration == 5
    assert rule.threads == {threading.current_thread().name}
    assert network.training_state is TrainingState.IDLE
    assert network.learning_thread is None
    assert _learning_threads() == []


def test_same_thread_respects_max_iterations():
    network = _network()
    rule = CountingRule(max_iterations=3)
    network.learning_rule = rule
    network.learn_in_same_thread(_training_set())
    assert rule.epochs == 3
    assert rule.training_set is not None and len(rule.training_set) == 4


def test_explicit_rule_is_rebound_to_network():
    network = _network()
    first = CountingRule(max_iterations=1)
    second = CountingRule(max_iterations=1)
    network.learn_in_same_thread(_training_set(), first)
    network.learn_in_same_thread(_training_set(), second)
    assert network.learning_rule is second
    assert second.network is network


def test_training_without_rule_is_rejected():
    network = _network()
    with pytest.raises(NoLearningRuleError):
        network.learn_in_same_thread(_training_set())
    with pytest.raises(NoLearningRuleError):
        network.learn_in_new_thread(_training_set())
    assert network.training_state is TrainingState.IDLE


def test_new_thread_returns_immediately_and_completes():
    network = _network()
    rule = GatedRule(max_iterations=4)
    thread = network.learn_in_new_thread(_training_set(), rule)

    assert thread is network.learning_thread
    assert thread.daemon
    assert rule.started.wait(timeout=5)
    assert network.is_learning
    assert rule.epochs == 0

    rule.gate.set()
    assert network.join_learning(timeout=5)
    assert not thread.is_alive()
    assert rule.epochs == 4
    assert rule.threads == {thread.name}
    assert network.training_state is TrainingState.IDLE


def test_stop_before_first_iteration_runs_no_epoch():
    network = _network()
    rule = GatedRule(max_iterations=100)
    network.learn_in_new_thread(_training_set(), rule)
    assert rule.started.wait(timeout=5)

    network.stop_learning()
    rule.gate.set()
    assert network.join_learning(timeout=5)
    assert rule.epochs == 0
    assert rule.is_stopped


def test_stop_right_after_start_is_observed():
    network = _network()
    rule = CountingRule(max_iterations=3)
    network.learn_in_new_thread(_training_set(), rule)
    network.stop_learning()
    assert network.join_learning(timeout=5)
    assert rule.epochs <= 3
    assert _learning_threads() == []


def test_unbounded_rule_stops_cooperatively():
    network = _network()
    rule = CountingRule(delay=0.001)
    network.learn_in_new_thread(_training_set(), rule)
    time.sleep(0.02)
    network.stop_learning()
    assert network.join_learning(timeout=5)
    assert rule.epochs > 0


def test_concurrent_start_is_rejected():
    network = _network()
    rule = GatedRule(max_iterations=1)
    network.learn_in_new_thread(_training_set(), rule)
    assert rule.started.wait(timeout=5)
    try:
        with pytest.raises(AlreadyTrainingError):
            network.learn_in_new_thread(_training_set())
        with pytest.raises(AlreadyTrainingError):
            network.learn_in_same_thread(_training_set(), CountingRule(max_iterations=1))
        with pytest.raises(AlreadyTrainingError):
            network.set_learning_rule(CountingRule())
        assert network.learning_rule is rule
    finally:
        rule.gate.set()
        assert network.join_learning(timeout=5)

    again = CountingRule(max_iterations=2)
    network.learn_in_same_thread(_training_set(), again)
    assert again.epochs == 2


def test_running_rule_cannot_move_to_another_network():
    first, second = _network(), _network()
    rule = GatedRule(max_iterations=1)
    first.learn_in_new_thread(_training_set(), rule)
    assert rule.started.wait(timeout=5)
    try:
        assert rule.is_running
        with pytest.raises(AlreadyTrainingError):
            second.set_learning_rule(rule)
        with pytest.raises(AlreadyTrainingError):
            second.learn_in_new_thread(_training_set(), rule)
        assert rule.network is first
        assert second.learning_rule is None
        assert second.training_state is TrainingState.IDLE
    finally:
        rule.gate.set()
        assert first.join_learning(timeout=5)

    assert not rule.is_running
    second.learn_in_same_thread(_training_set(), rule)
    assert rule.network is second
    assert rule.epochs == 2


def test_rule_bound_to_two_networks_runs_once_at_a_time():
    first, second = _network(), _network()
    rule = GatedRule(max_iterations=1)
    second.set_learning_rule(rule)
    first.learn_in_new_thread(_training_set(), rule)
    assert rule.started.wait(timeout=5)
    try:
        with pytest.raises(AlreadyTrainingError):
            second.learn_in_new_thread(_training_set())
        with pytest.raises(AlreadyTrainingError):
            second.learn_in_same_thread(_training_set())
        assert second.learning_thread is None
        assert not rule.is_stopped
        assert rule.network is first
    finally:
        rule.gate.set()
        assert first.join_learning(timeout=5)
    assert rule.epochs == 1


def test_same_thread_run_forgets_previous_thread():
    network = _network()
    thread = network.learn_in_new_thread(_training_set(), CountingRule(max_iterations=1))
    assert network.join_learning(timeout=5)
    assert network.learning_thread is thread

    network.learn_in_same_thread(_training_set())
    assert network.learning_thread is None


def test_rule_can_run_again_after_being_stopped():
    network = _network()
    rule = CountingRule(stop_after=2)
    network.learn_in_same_thread(_training_set(), rule)
    assert rule.is_stopped

    rule.stop_after = None
    rule.max_iterations = 3
    network.learn_in_same_thread(_training_set())
    assert rule.current_iteration == 3


def test_timeout_stops_a_threaded_run():
    network = _network()
    rule = CountingRule(delay=0.001)
    network.learn_in_new_thread(_training_set(), rule, timeout=0.05)
    assert network.join_learning(timeout=5)
    assert rule.is_stopped
    assert rule.epochs > 0


def test_observers_hear_every_iteration():
    network = _network()
    seen = []
    network.add_observer(lambda net: seen.append((net.training_state, net.learning_rule.current_iteration)))
    network.learn_in_same_thread(_training_set(), CountingRule(max_iterations=3))
    assert seen == [(TrainingState.RUNNING, 1), (TrainingState.RUNNING, 2), (TrainingState.RUNNING, 3)]


def test_errors_propagate_in_same_thread():
    network = _network()
    rule = FailingRule(max_iterations=2)
    notified = []
    network.add_observer(notified.append)
    with pytest.raises(RuntimeError, match="diverged"):
        network.learn_in_same_thread(_training_set(), rule)
    assert isinstance(rule.error, RuntimeError)
    assert notified == [network]
    assert network.training_state is TrainingState.IDLE


def test_failing_observer_does_not_mask_learning_error(caplog):
    network = _network()

    def broken(net):
        raise ValueError("observer broke")

    network.add_observer(broken)
    rule = FailingRule(max_iterations=1)
    with caplog.at_level("ERROR", logger="neurograph.learning.rule"):
        with pytest.raises(RuntimeError, match="diverged"):
            network.learn_in_same_thread(_training_set(), rule)
    assert isinstance(rule.error, RuntimeError)
    assert "Observer failed" in caplog.text
    assert network.training_state is TrainingState.IDLE
    assert not rule.is_running


def test_errors_in_threaded_run_are_recorded(caplog):
    network = _network()
    rule = FailingRule(max_iterations=2)
    notified = []
    network.add_observer(notified.append)
    with caplog.at_level("ERROR", logger="neurograph.learning.rule"):
        network.learn_in_new_thread(_training_set(), rule)
        assert network.join_learning(timeout=5)
    assert isinstance(rule.error, RuntimeError)
    assert notified == [network]
    assert "FailingRule failed" in caplog.text
    assert network.training_state is TrainingState.IDLE


def test_learn_alias_is_deprecated(monkeypatch):
    monkeypatch.setattr(network_module, "_DEPRECATION_EMITTED", False)
    network = _network()
    network.learning_rule = CountingRule(max_iterations=1)
    with pytest.warns(DeprecationWarning):
        thread = network.learn(_training_set())
    thread.join(timeout=5)
    assert not thread.is_alive()
