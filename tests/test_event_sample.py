"""
イベントサンプルのテスト
"""

import numpy as np
import pytest

from bdt_forest.models.bdt_components import EventSample
from bdt_forest.models.errors import ConfigurationError, SanityCheckError


def _sample(**kwargs):
    X = np.array([[0.0, 1.0], [1.0, 2.0], [2.0, 3.0], [3.0, 4.0]])
    y = np.array([1, 0, 1, 0])
    return EventSample.from_arrays(X, y, **kwargs)


def test_default_weights_are_one():
    sample = _sample()
    assert len(sample) == 4
    assert sample.n_vars == 2
    np.testing.assert_array_equal(sample.weights, np.ones(4))
    np.testing.assert_array_equal(sample.is_signal, [True, False, True, False])
    assert sample.feature_names == ["var0", "var1"]


def test_background_scale_applies_to_background_only():
    sample = _sample(weights=[1.0, 2.0, 3.0, 4.0], background_scale=0.5)
    np.testing.assert_allclose(sample.weights, [1.0, 1.0, 3.0, 2.0])
    assert sample.signal_weight() == pytest.approx(4.0)
    assert sample.background_weight() == pytest.approx(3.0)


def test_non_positive_background_scale_is_rejected():
    with pytest.raises(ConfigurationError):
        _sample(background_scale=0.0)


def test_event_view():
    sample = _sample(weights=[1.0, 2.0, 3.0, 4.0])
    event = sample[2]
    assert event.is_signal is True
    assert event.weight == 3.0
    np.testing.assert_array_equal(event.values, [2.0, 3.0])
    assert [e.weight for e in sample] == [1.0, 2.0, 3.0, 4.0]


def test_sanity_check_passes():
    _sample().check_sanity()


def test_sanity_check_rejects_single_class():
    sample = EventSample.from_arrays(np.zeros((3, 1)), np.ones(3))
    with pytest.raises(SanityCheckError):
        sample.check_sanity()


def test_sanity_check_rejects_negative_weights():
    sample = _sample(weights=[1.0, -1.0, 1.0, 1.0])
    with pytest.raises(SanityCheckError):
        sample.check_sanity()


def test_sanity_check_rejects_zero_total_weight():
    sample = _sample(weights=[0.0, 0.0, 0.0, 0.0])
    with pytest.raises(SanityCheckError):
        sample.check_sanity()


def test_sanity_check_rejects_nan_features():
    X = np.array([[0.0], [np.nan]])
    sample = EventSample.from_arrays(X, [1, 0])
    with pytest.raises(SanityCheckError):
        sample.check_sanity()


def test_labels_must_be_zero_or_one():
    with pytest.raises(ValueError):
        EventSample.from_arrays(np.zeros((2, 1)), [1, 2])


def test_weight_length_must_match():
    with pytest.raises(ValueError):
        _sample(weights=[1.0, 2.0])
