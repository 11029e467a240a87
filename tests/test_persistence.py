"""
重みファイルの読み書きテスト
"""

import io

import numpy as np
import pytest

from bdt_forest import BDT
from bdt_forest.models.bdt_components import read_forest, write_forest
from bdt_forest.models.errors import WeightFileCorruptionError


@pytest.fixture(scope="module")
def trained_model(signal_background_data):
    X_train, y_train, _, _ = signal_background_data
    return BDT(n_trees=4, node_min_events=20, n_cuts=10, prune_strength=1.0).fit(X_train, y_train)


def _weights_text(model):
    buffer = io.StringIO()
    model.write_weights_to_stream(buffer)
    return buffer.getvalue()


def test_weight_file_layout(trained_model):
    lines = _weights_text(trained_model).splitlines()
    assert lines[0] == "NTrees= 4"
    records = [line for line in lines if line.startswith("-999")]
    assert [int(line.split()[2]) for line in records] == [0, 1, 2, 3]


def test_round_trip_restores_forest(trained_model, signal_background_data):
    _, _, X_test, _ = signal_background_data
    restored = BDT().read_weights_from_stream(io.StringIO(_weights_text(trained_model)))

    assert len(restored.forest) == len(trained_model.forest)
    assert restored.boost_weights == trained_model.boost_weights
    assert restored.n_vars == 3
    np.testing.assert_array_equal(restored.predict(X_test), trained_model.predict(X_test))
    np.testing.assert_allclose(restored.get_variable_importance(), trained_model.get_variable_importance())


def test_tree_index_mismatch_is_rejected(trained_model):
    text = _weights_text(trained_model).replace("*******Tree 1  ", "*******Tree 2  ")
    model = BDT()
    with pytest.raises(WeightFileCorruptionError):
        model.read_weights_from_stream(io.StringIO(text))
    assert model.forest == []


def test_truncated_file_is_rejected(trained_model):
    lines = _weights_text(trained_model).splitlines(keepends=True)
    text = "".join(lines[:len(lines) // 2])
    with pytest.raises(WeightFileCorruptionError):
        read_forest(io.StringIO(text))


def test_missing_trees_are_rejected(trained_model):
    text = _weights_text(trained_model).replace("NTrees= 4", "NTrees= 5", 1)
    with pytest.raises(WeightFileCorruptionError):
        read_forest(io.StringIO(text))


def test_malformed_header_is_rejected():
    with pytest.raises(WeightFileCorruptionError):
        read_forest(io.StringIO("Trees 3\n"))
    with pytest.raises(WeightFileCorruptionError):
        read_forest(io.StringIO("NTrees= three\n"))
    with pytest.raises(WeightFileCorruptionError):
        read_forest(io.StringIO(""))


def test_corrupted_node_record_is_rejected(trained_model):
    lines = _weights_text(trained_model).splitlines(keepends=True)
    i_node = next(i for i, line in enumerate(lines) if line.startswith("node"))
    lines[i_node] = "node broken\n"
    with pytest.raises(WeightFileCorruptionError):
        read_forest(io.StringIO("".join(lines)))


def test_reading_replaces_previous_forest(trained_model, signal_background_data):
    X_train, y_train, _, _ = signal_background_data
    model = BDT(n_trees=7, node_min_events=20, n_cuts=5).fit(X_train, y_train)

    model.read_weights_from_stream(io.StringIO(_weights_text(trained_model)))

    assert len(model.forest) == 4
    assert model.boost_weights == trained_model.boost_weights
    assert model.get_monitoring_frame().empty


def test_write_forest_requires_matching_weights(trained_model):
    with pytest.raises(ValueError):
        write_forest(io.StringIO(), trained_model.forest, [1.0])


def test_save_and_load(trained_model, signal_background_data, tmp_path):
    _, _, X_test, _ = signal_background_data
    path = tmp_path / "bdt.weights.txt"
    trained_model.save(str(path))

    restored = BDT.load(str(path), feature_names=["a", "b", "c"])

    assert restored.feature_names == ["a", "b", "c"]
    np.testing.assert_array_equal(restored.predict(X_test), trained_model.predict(X_test))


def test_unfitted_model_cannot_be_saved(tmp_path):
    with pytest.raises(ValueError):
        BDT().save(str(tmp_path / "empty.txt"))


def test_trees_with_different_variable_counts_are_rejected(trained_model):
    lines = _weights_text(trained_model).splitlines(keepends=True)
    i_header = [i for i, line in enumerate(lines) if line.startswith("DecisionTree")][1]
    fields = lines[i_header].split()
    fields[1] = "4"
    lines[i_header] = " ".join(fields) + "\n"

    with pytest.raises(WeightFileCorruptionError):
        read_forest(io.StringIO("".join(lines)))


def test_split_on_unknown_variable_is_rejected(trained_model):
    lines = _weights_text(trained_model).splitlines(keepends=True)
    i_node = next(i for i, line in enumerate(lines) if line.startswith("node") and line.split()[2] == "0")
    fields = lines[i_node].split()
    fields[3] = "-1"
    lines[i_node] = " ".join(fields) + "\n"

    model = BDT()
    with pytest.raises(WeightFileCorruptionError):
        model.read_weights_from_stream(io.StringIO("".join(lines)))
    assert model.forest == []
