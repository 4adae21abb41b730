"""Named extensions attached to a network."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..core.network import NeuralNetwork


class Plugin:
    """Base class for network plugins.

    ``name`` is the registry key; adding a second plugin with the same name
    to a network replaces the first.
    """

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("Plugin name must be a non-empty string")
        self.name = name
        self.parent_network: Optional["NeuralNetwork"] = None

    def set_parent_network(self, network: Optional["NeuralNetwork"]) -> None:
        self.parent_network = network

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


__all__ = ["Plugin"]
