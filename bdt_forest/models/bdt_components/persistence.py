"""
Forest Persistence

Text weight-file layout:

    NTrees= <k>
    -999 *******Tree <i>  boostWeight <w>
    <tree blob written by DecisionTree.write_to_stream>
    ...

Round weights are written with repr so they are read back exactly.
"""

import logging
from typing import List, TextIO, Tuple

from .decision_tree import DecisionTree
from ..errors import WeightFileCorruptionError

logger = logging.getLogger(__name__)

TREE_RECORD_MARKER = "-999"


def write_forest(stream: TextIO, forest: List[DecisionTree], boost_weights: List[float]) -> None:
    """
    Write the ensemble size followed by (index, round weight, tree) records
    in training order
    """
    if len(forest) != len(boost_weights):
        raise ValueError(f"Got {len(forest)} trees but {len(boost_weights)} boost weights")

    stream.write(f"NTrees= {len(forest)}\n")
    for i, (tree, boost_weight) in enumerate(zip(forest, boost_weights)):
        stream.write(f"{TREE_RECORD_MARKER} *******Tree {i}  boostWeight {float(boost_weight)!r}\n")
        tree.write_to_stream(stream)


def _parse_tree_record(line: str) -> Tuple[int, float]:
    fields = line.split()
    if (len(fields) != 5 or fields[0] != TREE_RECORD_MARKER
            or fields[1] != "*******Tree" or fields[3] != "boostWeight"):
        raise WeightFileCorruptionError(f"Malformed tree record: {line.strip()!r}")
    try:
        return int(fields[2]), float(fields[4])
    except ValueError as e:
        raise WeightFileCorruptionError(f"Malformed tree record: {line.strip()!r}") from e


def read_forest(stream: TextIO) -> Tuple[List[DecisionTree], List[float]]:
    """
    Read a forest written by write_forest

    Returns:
    --------
    forest : list of DecisionTree
    boost_weights : list of float

    Raises:
    -------
    WeightFileCorruptionError
        If the header is malformed, a tree index does not follow the
        sequence 0, 1, 2, ..., or the input ends early
    """
    lines = iter(stream)

    header = next(lines, "").split()
    if len(header) != 2 or header[0] != "NTrees=":
        raise WeightFileCorruptionError(f"Malformed weight file header: {' '.join(header)!r}")
    try:
        n_trees = int(header[1])
    except ValueError as e:
        raise WeightFileCorruptionError(f"Malformed tree count: {header[1]!r}") from e
    if n_trees < 0:
        raise WeightFileCorruptionError(f"Negative tree count: {n_trees}")

    forest: List[DecisionTree] = []
    boost_weights: List[float] = []
    for i in range(n_trees):
        line = next(lines, None)
        if line is None:
            raise WeightFileCorruptionError(f"Weight file ended after {i} of {n_trees} trees")

        i_tree, boost_weight = _parse_tree_record(line)
        if i_tree != i:
            raise WeightFileCorruptionError(f"Tree index mismatch while reading weight file: iTree={i_tree} i={i}")

        try:
            tree = DecisionTree.read_from_stream(lines)
        except ValueError as e:
            raise WeightFileCorruptionError(f"Could not read tree {i}: {e}") from e
        if forest and tree.n_vars != forest[0].n_vars:
            raise WeightFileCorruptionError(
                f"Tree {i} has {tree.n_vars} variables, but tree 0 has {forest[0].n_vars}"
            )

        forest.append(tree)
        boost_weights.append(boost_weight)

    logger.info("Read %d decision trees", n_trees)
    return forest, boost_weights
