"""
Decision Tree

This module contains the DecisionTree class that wraps one signal/background
tree: building, cost-complexity pruning, event classification, variable
importance and text serialization.
"""

import numpy as np
from typing import Iterator, List, Optional, TextIO, Union
from .tree_node import DecisionTreeNode, INTERNAL_NODE
from .tree_builder import TreeBuilder
from .separation import SeparationCriterion


class DecisionTree:
    """
    決定木クラス

    各コンポーネントを統合して決定木を構築・評価する
    """

    def __init__(
        self,
        separation: Union[str, SeparationCriterion] = "GiniIndex",
        node_min_events: int = 400,
        n_cuts: int = 20,
        prune_strength: float = 0.0
    ):
        if not isinstance(separation, SeparationCriterion):
            separation = SeparationCriterion(separation)
        self.separation = separation
        self.node_min_events = node_min_events
        self.n_cuts = n_cuts
        self.prune_strength = prune_strength

        self.tree_builder = TreeBuilder(
            separation=separation,
            node_min_events=node_min_events,
            n_cuts=n_cuts
        )

        # 木の状態
        self.root: Optional[DecisionTreeNode] = None
        self.n_vars = 0

    def build_tree(self, X: np.ndarray, is_signal: np.ndarray, weights: np.ndarray) -> int:
        """
        決定木を構築

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            入力特徴量
        is_signal : array-like of bool, shape=(n_events,)
            signalラベル
        weights : array-like, shape=(n_events,)
            イベント重み（読み取りのみ）

        Returns:
        --------
        n_nodes : int
            構築された木のノード数
        """
        self.n_vars = X.shape[1]
        self.root = self.tree_builder.build_tree(X, is_signal, weights)
        return self.count_nodes()

    def prune_tree(self) -> None:
        """
        Cost-complexity pruning

        Repeatedly collapses the internal node with the smallest weighted
        error saving per additional leaf, as long as that saving is below
        the prune strength.
        """
        if self.root is None or self.prune_strength <= 0:
            return

        while True:
            weakest_node = None
            weakest_alpha = np.inf

            for node in self._internal_nodes():
                n_leaves = node.count_leaves()
                alpha = (node.misclassified_weight() - node.subtree_misclassified_weight()) / (n_leaves - 1)
                if alpha < weakest_alpha:
                    weakest_alpha = alpha
                    weakest_node = node

            if weakest_node is None or weakest_alpha >= self.prune_strength:
                break
            weakest_node.make_leaf()

    def _internal_nodes(self) -> List[DecisionTreeNode]:
        nodes = []
        stack = [self.root] if self.root is not None else []
        while stack:
            node = stack.pop()
            if node.is_leaf:
                continue
            nodes.append(node)
            stack.append(node.right)
            stack.append(node.left)
        return nodes

    def count_nodes(self) -> int:
        if self.root is None:
            return 0
        return self.root.count_nodes()

    def check_event(self, values: np.ndarray, use_yes_no_leaf: bool = True) -> float:
        """
        Classify one event

        Parameters:
        -----------
        values : array-like, shape=(n_vars,)
            イベントの特徴量
        use_yes_no_leaf : bool
            Trueならリーフのタイプ（1/0）、Falseならリーフのsignal purity

        Returns:
        --------
        value : float
            [0, 1] の範囲の値
        """
        if self.root is None:
            raise ValueError("Tree must be built before classifying events")

        node = self.root
        while not node.is_leaf:
            node = node.right if node.goes_right(values) else node.left
        return node.response(use_yes_no_leaf)

    def check_events(self, X: np.ndarray, use_yes_no_leaf: bool = True) -> np.ndarray:
        """
        Vectorized check_event over the rows of X
        """
        if self.root is None:
            raise ValueError("Tree must be built before classifying events")
        return self.root.predict(np.asarray(X, dtype=np.float64), use_yes_no_leaf)

    def get_variable_importance(self) -> np.ndarray:
        """
        変数重要度を計算

        Each split node contributes its separation gain weighted by the
        node's total event weight to the variable it cuts on.

        Returns:
        --------
        importance : array-like, shape=(n_vars,)
            正規化されていない変数重要度
        """
        importance = np.zeros(self.n_vars)
        for node in self._internal_nodes():
            importance[node.selector] += node.separation_gain * (node.n_sig + node.n_bkg)
        return importance

    def write_to_stream(self, stream: TextIO) -> None:
        """
        Write the tree as text: a header line followed by one record per
        node in pre-order (node, left subtree, right subtree)
        """
        if self.root is None:
            raise ValueError("Cannot write a tree that has not been built")

        stream.write(f"DecisionTree {self.n_vars} {self.count_nodes()}\n")
        stack = [self.root]
        while stack:
            node = stack.pop()
            stream.write(node.to_record() + "\n")
            if not node.is_leaf:
                stack.append(node.right)
                stack.append(node.left)

    @classmethod
    def read_from_stream(cls, lines: Iterator[str]) -> 'DecisionTree':
        """
        Read a tree written by write_to_stream

        Parameters:
        -----------
        lines : iterator of str
            Line iterator positioned at the tree header

        Raises:
        -------
        ValueError
            If the text is malformed or the node count does not match
        """
        header = next(lines, "").split()
        if len(header) != 3 or header[0] != "DecisionTree":
            raise ValueError(f"Malformed tree header: {' '.join(header)!r}")

        tree = cls()
        tree.n_vars = int(header[1])
        n_nodes = int(header[2])
        tree.root = cls._read_node(lines)
        if tree.count_nodes() != n_nodes:
            raise ValueError(f"Tree declares {n_nodes} nodes but {tree.count_nodes()} were read")
        for node in tree._internal_nodes():
            if not 0 <= node.selector < tree.n_vars:
                raise ValueError(f"Node cuts on variable {node.selector}, but the tree has {tree.n_vars} variables")
        return tree

    @classmethod
    def _read_node(cls, lines: Iterator[str]) -> DecisionTreeNode:
        line = next(lines, None)
        if line is None:
            raise ValueError("Unexpected end of input while reading tree nodes")

        node = DecisionTreeNode.from_record(line)
        if node.node_type == INTERNAL_NODE:
            node.left = cls._read_node(lines)
            node.right = cls._read_node(lines)
        return node

    def __str__(self) -> str:
        """
        決定木の文字列表現
        """
        if self.root is None:
            return f"DecisionTree(not built, separation={self.separation})"
        return f"DecisionTree(separation={self.separation}, depth={self.root.get_depth()}, nodes={self.count_nodes()})"

    def __repr__(self) -> str:
        return self.__str__()
