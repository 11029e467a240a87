"""
Decision Tree Node Implementation

This module contains the DecisionTreeNode class that represents
individual nodes in a signal/background decision tree.
"""

from typing import Optional
import numpy as np

# ノードタイプ
SIGNAL_LEAF = 1
BACKGROUND_LEAF = -1
INTERNAL_NODE = 0


class DecisionTreeNode:
    """
    決定木のノードクラス

    Attributes:
    -----------
    selector : int or None
        分割に使用する変数のインデックス（リーフノードの場合はNone）
    cut_value : float or None
        分割の閾値。値が閾値より大きいイベントは右（signal-like）へ
    left : DecisionTreeNode or None
        左の子ノード
    right : DecisionTreeNode or None
        右の子ノード
    node_type : int
        1 = signal leaf, -1 = background leaf, 0 = internal node
    depth : int
        ノードの深さ
    n_events : int
        このノードのイベント数（重みなし）
    n_sig : float
        重み付きsignalイベント数
    n_bkg : float
        重み付きbackgroundイベント数
    separation_index : float
        このノードの分離指標
    separation_gain : float
        分割による分離利得（分割ノードの場合）
    """

    def __init__(self, depth: int = 0):
        self.selector = None
        self.cut_value = None
        self.left = None
        self.right = None
        self.node_type = INTERNAL_NODE
        self.depth = depth
        self.n_events = 0
        self.n_sig = 0.0
        self.n_bkg = 0.0
        self.separation_index = 0.0
        self.separation_gain = 0.0

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    @property
    def purity(self) -> float:
        total = self.n_sig + self.n_bkg
        return self.n_sig / total if total > 0 else 0.0

    def set_leaf_type(self) -> None:
        """Classify the node by the majority of its training weight"""
        self.node_type = SIGNAL_LEAF if self.purity > 0.5 else BACKGROUND_LEAF

    def make_leaf(self) -> None:
        """Drop the children and turn this node into a leaf"""
        self.left = None
        self.right = None
        self.selector = None
        self.cut_value = None
        self.separation_gain = 0.0
        self.set_leaf_type()

    def goes_right(self, values: np.ndarray) -> bool:
        return values[self.selector] > self.cut_value

    def response(self, use_yes_no_leaf: bool) -> float:
        """
        リーフノードでの応答値

        Parameters:
        -----------
        use_yes_no_leaf : bool
            Trueの場合はノードタイプ（1/0）、Falseの場合はsignal purity

        Returns:
        --------
        value : float
            [0, 1] の範囲の値
        """
        if use_yes_no_leaf:
            return 1.0 if self.node_type == SIGNAL_LEAF else 0.0
        return self.purity

    def predict(self, X: np.ndarray, use_yes_no_leaf: bool = True) -> np.ndarray:
        """
        このノードを根とする部分木での予測

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            入力特徴量
        use_yes_no_leaf : bool
            リーフ応答のモード

        Returns:
        --------
        predictions : array-like, shape=(n_events,)
            予測値
        """
        if self.is_leaf:
            return np.full(X.shape[0], self.response(use_yes_no_leaf))

        # 分割に従って左右の子に振り分け
        mask = X[:, self.selector] > self.cut_value
        predictions = np.zeros(X.shape[0])

        if np.any(mask):
            predictions[mask] = self.right.predict(X[mask], use_yes_no_leaf)
        if np.any(~mask):
            predictions[~mask] = self.left.predict(X[~mask], use_yes_no_leaf)

        return predictions

    def get_depth(self) -> int:
        """
        このノードを根とする部分木の深さを計算
        """
        if self.is_leaf:
            return 0

        left_depth = self.left.get_depth() if self.left else 0
        right_depth = self.right.get_depth() if self.right else 0

        return 1 + max(left_depth, right_depth)

    def count_nodes(self) -> int:
        """
        このノードを根とする部分木のノード数を計算
        """
        if self.is_leaf:
            return 1

        left_count = self.left.count_nodes() if self.left else 0
        right_count = self.right.count_nodes() if self.right else 0

        return 1 + left_count + right_count

    def count_leaves(self) -> int:
        if self.is_leaf:
            return 1
        return self.left.count_leaves() + self.right.count_leaves()

    def misclassified_weight(self) -> float:
        """Weighted training error if this node were a leaf"""
        return min(self.n_sig, self.n_bkg)

    def subtree_misclassified_weight(self) -> float:
        if self.is_leaf:
            return self.misclassified_weight()
        return self.left.subtree_misclassified_weight() + self.right.subtree_misclassified_weight()

    def to_record(self) -> str:
        """
        One-line text record of the node; floats use repr so reading the
        record back reproduces them exactly
        """
        selector = -1 if self.selector is None else self.selector
        cut_value = 0.0 if self.cut_value is None else self.cut_value
        return " ".join([
            "node",
            str(self.depth),
            str(self.node_type),
            str(selector),
            repr(float(cut_value)),
            str(self.n_events),
            repr(float(self.n_sig)),
            repr(float(self.n_bkg)),
            repr(float(self.separation_index)),
            repr(float(self.separation_gain)),
        ])

    @classmethod
    def from_record(cls, line: str) -> 'DecisionTreeNode':
        """
        Parse a record written by to_record

        Raises:
        -------
        ValueError
            If the line is not a node record
        """
        fields = line.split()
        if len(fields) != 10 or fields[0] != "node":
            raise ValueError(f"Malformed node record: {line!r}")

        node = cls(depth=int(fields[1]))
        node.node_type = int(fields[2])
        selector = int(fields[3])
        if node.node_type == INTERNAL_NODE:
            node.selector = selector
            node.cut_value = float(fields[4])
        node.n_events = int(fields[5])
        node.n_sig = float(fields[6])
        node.n_bkg = float(fields[7])
        node.separation_index = float(fields[8])
        node.separation_gain = float(fields[9])
        return node

    def __str__(self) -> str:
        """
        ノードの文字列表現
        """
        if self.is_leaf:
            return f"Leaf(depth={self.depth}, events={self.n_events}, type={self.node_type}, purity={self.purity:.4f})"
        else:
            return f"Node(depth={self.depth}, events={self.n_events}, selector={self.selector}, cut={self.cut_value:.4f})"

    def __repr__(self) -> str:
        return self.__str__()
