"""Learning-rule contracts and training data containers."""

from .dataset import TrainingElement, TrainingSet
from .rule import IterativeLearning, LearningRule

__all__ = ["IterativeLearning", "LearningRule", "TrainingElement", "TrainingSet"]
