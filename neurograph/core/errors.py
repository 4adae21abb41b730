"""Exception hierarchy for neurograph.

Every error raised by the library derives from :class:`NeurographError` and
also from the closest builtin, so callers may catch either.
"""

from __future__ import annotations


class NeurographError(Exception):
    """Base class for all neurograph errors."""


class DimensionMismatchError(NeurographError, ValueError):
    """A vector's length does not match the neurons it is applied to."""

    def __init__(self, expected: int, actual: int, what: str = "input vector") -> None:
        super().__init__(
            f"{what} has {actual} values but the network expects {expected}"
        )
        self.expected = expected
        self.actual = actual


class DanglingReferenceError(NeurographError, RuntimeError):
    """A structural removal would leave references to a detached neuron."""


class NetworkNotFoundError(NeurographError, FileNotFoundError):
    """No saved network exists at the requested path."""


class IncompatibleFormatError(NeurographError, ValueError):
    """A saved file has the wrong tag or version, or cannot be decoded."""


class PersistenceError(NeurographError, OSError):
    """Reading or writing a saved network failed at the I/O level."""


class AlreadyTrainingError(NeurographError, RuntimeError):
    """A training run was started while another one is still running."""


class NoLearningRuleError(NeurographError, RuntimeError):
    """Training was requested but no learning rule is bound."""


class ConfigurationError(NeurographError, ValueError):
    """Invalid configuration value or unknown registry name."""


__all__ = [
    "AlreadyTrainingError",
    "ConfigurationError",
    "DanglingReferenceError",
    "DimensionMismatchError",
    "IncompatibleFormatError",
    "NetworkNotFoundError",
    "NeurographError",
    "NoLearningRuleError",
    "PersistenceError",
]
