"""Network plugins."""

from .base import Plugin
from .labels import LabelsPlugin

__all__ = ["LabelsPlugin", "Plugin"]
