"""Network graph primitives."""

from . import activations, errors, types
from .connection import Connection
from .layer import Layer
from .network import NeuralNetwork
from .neuron import Neuron, bias_neuron

__all__ = [
    "Connection",
    "Layer",
    "NeuralNetwork",
    "Neuron",
    "activations",
    "bias_neuron",
    "errors",
    "types",
]
