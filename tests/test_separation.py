"""
分離基準のテスト
"""

import math

import numpy as np
import pytest

from bdt_forest.models.bdt_components import SeparationCriterion
from bdt_forest.models.errors import ConfigurationError


def test_misclassification_error():
    criterion = SeparationCriterion("MisClassificationError")
    assert criterion.get_separation_index(3.0, 1.0) == pytest.approx(0.25)
    assert criterion.get_separation_index(2.0, 2.0) == pytest.approx(0.5)
    assert criterion.get_separation_index(4.0, 0.0) == pytest.approx(0.0)


def test_gini_index():
    criterion = SeparationCriterion("GiniIndex")
    assert criterion.get_separation_index(3.0, 1.0) == pytest.approx(0.375)
    assert criterion.get_separation_index(5.0, 5.0) == pytest.approx(0.5)


def test_cross_entropy_zero_probability_term_is_zero():
    criterion = SeparationCriterion("CrossEntropy")
    assert criterion.get_separation_index(1.0, 1.0) == pytest.approx(math.log(2))
    assert criterion.get_separation_index(1.0, 0.0) == 0.0
    assert criterion.get_separation_index(0.0, 3.0) == 0.0

    p = 0.25
    expected = -p * math.log(p) - (1 - p) * math.log(1 - p)
    assert criterion.get_separation_index(1.0, 3.0) == pytest.approx(expected)


def test_sdivsqrt_s_plus_b_is_negative():
    criterion = SeparationCriterion("SDivSqrtSPlusB")
    assert criterion.get_separation_index(9.0, 7.0) == pytest.approx(-2.25)
    # purer node has the lower index
    assert criterion.get_separation_index(16.0, 0.0) < criterion.get_separation_index(8.0, 8.0)


def test_empty_node_has_zero_index():
    for name in ("MisClassificationError", "GiniIndex", "CrossEntropy", "SDivSqrtSPlusB"):
        assert SeparationCriterion(name).get_separation_index(0.0, 0.0) == 0.0


def test_vectorized_index():
    criterion = SeparationCriterion("GiniIndex")
    index = criterion.get_separation_index(np.array([3.0, 0.0, 2.0]), np.array([1.0, 0.0, 2.0]))
    np.testing.assert_allclose(index, [0.375, 0.0, 0.5])


def test_name_lookup_is_case_insensitive():
    assert SeparationCriterion("giniINDEX").name == "GiniIndex"
    assert SeparationCriterion("crossentropy").name == "CrossEntropy"
    assert SeparationCriterion("SignalOverSqrtSPlusB").name == "SDivSqrtSPlusB"


def test_unknown_separation_type():
    with pytest.raises(ConfigurationError):
        SeparationCriterion("Entropy")


def test_separation_gain_of_perfect_split():
    criterion = SeparationCriterion("GiniIndex")
    assert criterion.get_separation_gain(5.0, 0.0, 5.0, 5.0) == pytest.approx(0.5)


def test_separation_gain_with_empty_daughter_is_zero():
    criterion = SeparationCriterion("GiniIndex")
    assert criterion.get_separation_gain(5.0, 5.0, 5.0, 5.0) == 0.0
    assert criterion.get_separation_gain(0.0, 0.0, 5.0, 5.0) == 0.0


def test_sdivsqrt_s_plus_b_gain_uses_more_significant_daughter():
    criterion = SeparationCriterion("SDivSqrtSPlusB")
    expected = math.sqrt(5.0) - 5.0 / math.sqrt(10.0)
    assert criterion.get_separation_gain(5.0, 0.0, 5.0, 5.0) == pytest.approx(expected)
    # the selected side does not matter
    assert criterion.get_separation_gain(0.0, 5.0, 5.0, 5.0) == pytest.approx(expected)
    assert criterion.get_separation_gain(5.0, 5.0, 5.0, 5.0) == 0.0


@pytest.mark.parametrize("name", ["MisClassificationError", "GiniIndex", "CrossEntropy", "SDivSqrtSPlusB"])
def test_perfect_split_has_positive_gain(name):
    gains = SeparationCriterion(name).get_separation_gain(
        np.array([50.0, 25.0]), np.array([0.0, 0.0]), 50.0, 50.0
    )
    assert gains[0] > 0
    assert gains[0] >= gains[1]
