"""
決定木の構築・剪定・保存のテスト
"""

import io

import numpy as np
import pytest

from bdt_forest.models.bdt_components import DecisionTree, DecisionTreeNode


def _separable_data(n_per_class=40):
    """signal は x0 in [1, 2]、background は x0 in [-2, -1]。x1 は定数"""
    x_sig = np.linspace(1.0, 2.0, n_per_class)
    x_bkg = np.linspace(-2.0, -1.0, n_per_class)
    X = np.column_stack([np.concatenate([x_sig, x_bkg]), np.zeros(2 * n_per_class)])
    is_signal = np.concatenate([np.ones(n_per_class, bool), np.zeros(n_per_class, bool)])
    return X, is_signal, np.ones(2 * n_per_class)


def _noisy_data(n_events=400, seed=3):
    random_state = np.random.RandomState(seed)
    is_signal = random_state.random_sample(n_events) < 0.5
    X = random_state.randn(n_events, 2)
    X[:, 0] += 0.5 * is_signal
    return X, is_signal, np.ones(n_events)


def test_build_tree_separates_classes():
    X, is_signal, weights = _separable_data()
    tree = DecisionTree("GiniIndex", node_min_events=5, n_cuts=10)

    n_nodes = tree.build_tree(X, is_signal, weights)

    assert n_nodes == 3
    assert tree.root.selector == 0
    assert -1.0 < tree.root.cut_value < 1.0
    assert tree.check_event(np.array([1.5, 0.0])) == 1.0
    assert tree.check_event(np.array([-1.5, 0.0])) == 0.0
    np.testing.assert_array_equal(tree.check_events(X), is_signal.astype(float))


def test_build_tree_does_not_modify_weights():
    X, is_signal, weights = _noisy_data()
    before = weights.copy()
    DecisionTree("CrossEntropy", node_min_events=20, n_cuts=10).build_tree(X, is_signal, weights)
    np.testing.assert_array_equal(weights, before)


def test_leaf_purity_response():
    X, is_signal, weights = _separable_data()
    tree = DecisionTree("GiniIndex", node_min_events=5, n_cuts=10)
    tree.build_tree(X, is_signal, weights)
    assert tree.check_event(np.array([1.5, 0.0]), use_yes_no_leaf=False) == pytest.approx(1.0)
    assert tree.check_event(np.array([-1.5, 0.0]), use_yes_no_leaf=False) == pytest.approx(0.0)


def test_small_node_is_not_split():
    X, is_signal, weights = _separable_data(n_per_class=10)
    tree = DecisionTree("GiniIndex", node_min_events=11, n_cuts=10)
    assert tree.build_tree(X, is_signal, weights) == 1
    # 50% purity is classified as background
    assert tree.check_event(np.array([1.5, 0.0])) == 0.0
    assert tree.check_event(np.array([1.5, 0.0]), use_yes_no_leaf=False) == pytest.approx(0.5)


def test_variable_importance_is_weighted_gain():
    X, is_signal, weights = _separable_data()
    tree = DecisionTree("GiniIndex", node_min_events=5, n_cuts=10)
    tree.build_tree(X, is_signal, weights)

    importance = tree.get_variable_importance()
    # gini gain 0.5 on a node of total weight 80; x1 is constant
    np.testing.assert_allclose(importance, [40.0, 0.0])


def test_pruning_with_large_strength_collapses_to_root():
    X, is_signal, weights = _noisy_data()
    tree = DecisionTree("GiniIndex", node_min_events=10, n_cuts=20, prune_strength=1e9)
    n_nodes = tree.build_tree(X, is_signal, weights)
    assert n_nodes > 1

    tree.prune_tree()
    assert tree.count_nodes() == 1
    assert tree.root.is_leaf


def test_pruning_reduces_node_count():
    X, is_signal, weights = _noisy_data()
    unpruned = DecisionTree("GiniIndex", node_min_events=10, n_cuts=20)
    pruned = DecisionTree("GiniIndex", node_min_events=10, n_cuts=20, prune_strength=3.0)
    n_unpruned = unpruned.build_tree(X, is_signal, weights)
    pruned.build_tree(X, is_signal, weights)

    unpruned.prune_tree()
    pruned.prune_tree()

    assert unpruned.count_nodes() == n_unpruned
    assert pruned.count_nodes() <= n_unpruned


def test_zero_prune_strength_keeps_tree():
    X, is_signal, weights = _noisy_data()
    tree = DecisionTree("GiniIndex", node_min_events=10, n_cuts=20, prune_strength=0.0)
    n_nodes = tree.build_tree(X, is_signal, weights)
    tree.prune_tree()
    assert tree.count_nodes() == n_nodes


def test_write_and_read_tree():
    X, is_signal, weights = _noisy_data()
    tree = DecisionTree("GiniIndex", node_min_events=10, n_cuts=20, prune_strength=2.0)
    tree.build_tree(X, is_signal, weights)
    tree.prune_tree()

    buffer = io.StringIO()
    tree.write_to_stream(buffer)
    restored = DecisionTree.read_from_stream(iter(io.StringIO(buffer.getvalue())))

    assert restored.count_nodes() == tree.count_nodes()
    assert restored.n_vars == tree.n_vars
    np.testing.assert_array_equal(restored.check_events(X), tree.check_events(X))
    np.testing.assert_array_equal(restored.check_events(X, False), tree.check_events(X, False))
    np.testing.assert_array_equal(restored.get_variable_importance(), tree.get_variable_importance())


def test_read_tree_rejects_truncated_input():
    X, is_signal, weights = _noisy_data()
    tree = DecisionTree("GiniIndex", node_min_events=10, n_cuts=20)
    tree.build_tree(X, is_signal, weights)

    buffer = io.StringIO()
    tree.write_to_stream(buffer)
    lines = buffer.getvalue().splitlines(keepends=True)[:-1]

    with pytest.raises(ValueError):
        DecisionTree.read_from_stream(iter(lines))


def test_node_record_round_trip():
    node = DecisionTreeNode(depth=2)
    node.selector = 1
    node.cut_value = 0.1 + 0.2
    node.n_events = 17
    node.n_sig = 1.0 / 3.0
    node.n_bkg = 2.5
    node.separation_gain = 0.123456789

    restored = DecisionTreeNode.from_record(node.to_record())

    assert restored.cut_value == node.cut_value
    assert restored.n_sig == node.n_sig
    assert restored.selector == 1
    assert restored.to_record() == node.to_record()


def test_unbuilt_tree_cannot_classify():
    with pytest.raises(ValueError):
        DecisionTree().check_event(np.zeros(1))


@pytest.mark.parametrize("name", ["MisClassificationError", "GiniIndex", "CrossEntropy", "SDivSqrtSPlusB"])
def test_every_criterion_splits_separable_data(name):
    X, is_signal, weights = _separable_data()
    tree = DecisionTree(name, node_min_events=5, n_cuts=10)
    assert tree.build_tree(X, is_signal, weights) == 3
    np.testing.assert_array_equal(tree.check_events(X), is_signal.astype(float))


def _tree_text(tree):
    buffer = io.StringIO()
    tree.write_to_stream(buffer)
    return buffer.getvalue().splitlines(keepends=True)


def test_read_tree_rejects_selector_out_of_range():
    X, is_signal, weights = _separable_data()
    tree = DecisionTree("GiniIndex", node_min_events=5, n_cuts=10)
    tree.build_tree(X, is_signal, weights)

    for selector in ("-1", "2"):
        lines = _tree_text(tree)
        fields = lines[1].split()
        fields[3] = selector
        lines[1] = " ".join(fields) + "\n"
        with pytest.raises(ValueError):
            DecisionTree.read_from_stream(iter(lines))
