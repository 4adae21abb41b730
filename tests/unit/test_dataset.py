import numpy as np
import pytest

from neurograph.core.errors import DimensionMismatchError
from neurograph.learning import TrainingSet


def test_from_arrays_builds_supervised_elements():
    training_set = TrainingSet.from_arrays([[0, 1], [1, 0]], [[1], [0]])
    assert len(training_set) == 2
    assert training_set.is_supervised

    element = training_set[0]
    np.testing.assert_array_equal(element.input_array(), [0.0, 1.0])
    np.testing.assert_array_equal(element.desired_array(), [1.0])
    assert element.input_array().dtype == np.float64


def test_unsupervised_elements_have_no_desired_array():
    training_set = TrainingSet.from_arrays([[0.5, 0.25, 1.0]])
    element = next(iter(training_set))
    assert not element.is_supervised
    assert element.desired_array() is None
    assert not training_set.is_supervised


def test_add_checks_widths():
    training_set = TrainingSet(input_size=2, output_size=1)
    with pytest.raises(DimensionMismatchError):
        training_set.add([1.0, 2.0, 3.0])
    with pytest.raises(DimensionMismatchError):
        training_set.add([1.0, 2.0], [0.0, 1.0])
    with pytest.raises(DimensionMismatchError):
        TrainingSet.from_arrays([[0, 0], [1, 1]], [[1]])
    assert len(training_set) == 0
