import math

import numpy as np
import pytest

from neurograph.core.activations import REGISTRY, Constant, sigmoid
from neurograph.core.connection import Connection
from neurograph.core.errors import ConfigurationError, DanglingReferenceError
from neurograph.core.layer import Layer
from neurograph.core.network import NeuralNetwork
from neurograph.core.neuron import Neuron, bias_neuron
from neurograph.core.types import Computable, Resettable, WeightRandomizable


def test_connection_weight_is_mutable_but_finite():
    source = Neuron()
    connection = Connection(source, 0.25)
    assert connection.source is source
    connection.weight = -1.5
    assert connection.weight == -1.5
    for bad in (math.nan, math.inf, -math.inf):
        with pytest.raises(ValueError):
            connection.weight = bad
    with pytest.raises(ValueError):
        Connection(source, math.nan)
    assert connection.weight == -1.5


def test_neuron_sums_weighted_sources():
    a, b = Neuron(), Neuron()
    a.set_input(2.0)
    b.set_input(-1.0)
    a.calculate()
    b.calculate()

    target = Neuron("identity")
    target.connect_from(a, 0.5)
    target.connect_from(b, 3.0)
    target.calculate()
    assert target.net_input == pytest.approx(2.0 * 0.5 + -1.0 * 3.0)
    assert target.output == pytest.approx(-2.0)


def test_neuron_without_connections_applies_activation_to_zero():
    neuron = Neuron("sigmoid")
    neuron.calculate()
    assert neuron.output == pytest.approx(0.5)


def test_parallel_edges_are_allowed():
    source = Neuron()
    source.set_input(1.0)
    source.calculate()
    target = Neuron()
    target.connect_from(source, 1.0)
    target.connect_from(source, 2.0)
    target.calculate()
    assert len(target.connections) == 2
    assert target.output == pytest.approx(3.0)


def test_reset_keeps_connections():
    source = Neuron()
    target = Neuron()
    target.connect_from(source, 0.7)
    target.set_input(4.0)
    target.calculate()
    target.reset()
    assert target.net_input == 0.0
    assert target.output == 0.0
    assert [c.weight for c in target.connections] == [0.7]


def test_randomize_weights_stays_in_range_and_leaves_state():
    sources = [Neuron() for _ in range(50)]
    target = Neuron()
    for source in sources:
        target.connect_from(source, 0.0)
    target.set_input(1.25)
    target.randomize_weights(-0.1, 0.1, np.random.default_rng(0))
    weights = target.get_weights()
    assert weights.shape == (50,)
    assert np.all(weights >= -0.1) and np.all(weights < 0.1)
    assert np.unique(weights).size > 1
    assert target.net_input == 1.25


def test_bias_neuron_outputs_constant():
    bias = bias_neuron()
    assert bias.is_bias
    bias.calculate()
    assert bias.output == 1.0
    bias.reset()
    assert bias.output == 0.0
    bias.calculate()
    assert bias.output == 1.0
    assert Constant(0.3)(123.0) == 0.3


def test_activation_registry_resolves_names_and_callables():
    assert REGISTRY.resolve(None)(4.0) == 4.0
    assert REGISTRY.resolve("linear")(-2.0) == -2.0
    assert REGISTRY.resolve("step")(0.1) == 1.0
    assert REGISTRY.resolve("relu")(-3.0) == 0.0
    assert REGISTRY.resolve("tanh")(0.0) == 0.0
    assert sigmoid(1000.0) == pytest.approx(1.0)
    assert sigmoid(-1000.0) == pytest.approx(0.0)
    custom = REGISTRY.resolve(lambda x: 2 * x)
    assert custom(3.0) == 6.0
    with pytest.raises(ConfigurationError):
        REGISTRY.resolve("softsign")


def test_layer_calculates_in_list_order():
    first = Neuron("identity")
    second = Neuron("identity")
    layer = Layer([first, second])
    first.set_input(5.0)
    second.connect_from(first, 1.0)
    third = Neuron("identity")
    third.connect_from(second, 1.0)
    # order is now third, first, second: ``second`` sees ``first`` fresh,
    # ``third`` sees ``second`` from the previous pass
    layer.add_neuron(third, index=0)

    layer.calculate()
    assert second.output == 5.0
    assert third.output == 0.0

    layer.calculate()
    assert third.output == 5.0


def test_layer_structure_and_bulk_ops():
    neurons = [Neuron() for _ in range(3)]
    layer = Layer(neurons)
    assert len(layer) == 3
    assert layer[1] is neurons[1]
    assert layer.index_of(neurons[2]) == 2
    assert all(n.parent_layer is layer for n in layer)

    for neuron in neurons:
        neuron.set_input(1.0)
    layer.calculate()
    np.testing.assert_allclose(layer.get_outputs(), [1.0, 1.0, 1.0])
    layer.reset()
    np.testing.assert_allclose(layer.get_outputs(), [0.0, 0.0, 0.0])


def test_detached_layer_rejects_removing_a_referenced_neuron():
    source, sink = Neuron(), Neuron()
    sink.connect_from(source, 1.0)
    layer = Layer([source, sink])

    with pytest.raises(DanglingReferenceError):
        layer.remove_neuron(source)
    assert len(layer) == 2

    removed = layer.remove_neuron(source, purge=True)
    assert removed is source
    assert source.parent_layer is None
    assert sink.connections == []
    assert len(layer) == 1


@pytest.mark.parametrize(
    "component",
    [Neuron(), bias_neuron(), Layer([Neuron()]), NeuralNetwork()],
    ids=["neuron", "bias", "layer", "network"],
)
def test_graph_components_share_capabilities(component):
    assert isinstance(component, Computable)
    assert isinstance(component, Resettable)
    assert isinstance(component, WeightRandomizable)


def test_connection_is_not_computable():
    assert not isinstance(Connection(Neuron(), 1.0), Computable)
