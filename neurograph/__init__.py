"""neurograph public API."""

from .core import activations, errors, types  # noqa: F401
from .core.connection import Connection
from .core.errors import (
    AlreadyTrainingError,
    ConfigurationError,
    DanglingReferenceError,
    DimensionMismatchError,
    IncompatibleFormatError,
    NetworkNotFoundError,
    NeurographError,
    NoLearningRuleError,
    PersistenceError,
)
from .core.layer import Layer
from .core.network import NeuralNetwork
from .core.neuron import Neuron, bias_neuron
from .core.types import NetworkType, TrainingState
from .config import NetworkConfig, load_config, load_preset, presets
from .factory import build_network, create_layer, create_multilayer_perceptron, full_connect
from .learning import IterativeLearning, LearningRule, TrainingElement, TrainingSet
from .persistence import load_network, load_weights, save_network, save_weights
from .plugins import LabelsPlugin, Plugin

__version__ = "0.1.0"

__all__ = [
    "AlreadyTrainingError",
    "ConfigurationError",
    "Connection",
    "DanglingReferenceError",
    "DimensionMismatchError",
    "IncompatibleFormatError",
    "IterativeLearning",
    "LabelsPlugin",
    "Layer",
    "LearningRule",
    "NetworkConfig",
    "NetworkNotFoundError",
    "NetworkType",
    "NeuralNetwork",
    "NeurographError",
    "Neuron",
    "NoLearningRuleError",
    "PersistenceError",
    "Plugin",
    "TrainingElement",
    "TrainingSet",
    "TrainingState",
    "activations",
    "bias_neuron",
    "build_network",
    "create_layer",
    "create_multilayer_perceptron",
    "errors",
    "full_connect",
    "load_config",
    "load_network",
    "load_preset",
    "load_weights",
    "presets",
    "save_network",
    "save_weights",
    "types",
]
