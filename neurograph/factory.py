"""Builders for common layered topologies."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import numpy as np

from .config import NetworkConfig
from .core.activations import ActivationFn
from .core.layer import Layer
from .core.network import NeuralNetwork
from .core.neuron import Neuron, bias_neuron
from .core.types import DEFAULT_WEIGHT_RANGE, NetworkType

logger = logging.getLogger(__name__)


def create_layer(count: int, activation: str | ActivationFn | None = None) -> Layer:
    """Return a layer of ``count`` neurons sharing one activation."""

    if count < 0:
        raise ValueError(f"Neuron count must be non-negative, got {count}")
    return Layer(Neuron(activation) for _ in range(count))


def full_connect(
    from_layer: Layer,
    to_layer: Layer,
    weight: float | None = None,
    *,
    weight_range: tuple[float, float] = DEFAULT_WEIGHT_RANGE,
    rng: np.random.Generator | None = None,
) -> int:
    """Connect every neuron of ``from_layer`` to every non-bias neuron of ``to_layer``.

    With ``weight=None`` each weight is drawn uniformly from ``weight_range``.
    Returns the number of connections created.
    """

    rng = rng or np.random.default_rng()
    created = 0
    for target in to_layer:
        if target.is_bias:
            continue
        for source in from_layer:
            value = weight if weight is not None else rng.uniform(*weight_range)
            target.connect_from(source, float(value))
            created += 1
    return created


def create_multilayer_perceptron(
    layer_sizes: Sequence[int],
    activation: str | ActivationFn = "sigmoid",
    *,
    input_activation: str | ActivationFn = "identity",
    use_bias: bool = True,
    weight_range: tuple[float, float] = DEFAULT_WEIGHT_RANGE,
    seed: int | None = None,
    network_type: NetworkType = NetworkType.MULTI_LAYER_PERCEPTRON,
) -> NeuralNetwork:
    """Fully connected feed-forward network.

    The first layer uses ``input_activation`` and becomes the input view; the
    last layer becomes the output view. Bias neurons are never inputs.
    """

    if len(layer_sizes) < 2:
        raise ValueError("A network needs at least an input and an output layer")
    rng = np.random.default_rng(seed)
    network = NeuralNetwork(network_type)
    previous: Layer | None = None
    last = len(layer_sizes) - 1
    for idx, size in enumerate(layer_sizes):
        layer = create_layer(int(size), input_activation if idx == 0 else activation)
        if use_bias and idx < last:
            layer.add_neuron(bias_neuron())
        network.add_layer(layer)
        if previous is not None:
            full_connect(previous, layer, weight_range=weight_range, rng=rng)
        previous = layer

    network.input_neurons = [n for n in network.get_layer_at(0) if not n.is_bias]
    network.output_neurons = list(network.get_layer_at(last))
    logger.debug("Built %r", network)
    return network


def build_network(config: NetworkConfig | Mapping[str, object]) -> NeuralNetwork:
    """Build a network from a :class:`NetworkConfig` or a raw mapping."""

    if not isinstance(config, NetworkConfig):
        config = NetworkConfig.from_mapping(config)
    network = create_multilayer_perceptron(
        config.layers,
        config.activation,
        input_activation=config.input_activation,
        use_bias=config.use_bias,
        weight_range=config.weight_range,
        seed=config.seed,
        network_type=config.network_type,
    )
    if config.label is not None:
        network.label = config.label
    return network


__all__ = [
    "build_network",
    "create_layer",
    "create_multilayer_perceptron",
    "full_connect",
]
