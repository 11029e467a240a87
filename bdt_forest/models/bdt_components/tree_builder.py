"""
Tree Builder

This module handles the construction of signal/background decision trees,
including cut scanning, split selection and recursive node expansion.
"""

import numpy as np
from typing import Tuple, Optional
from .tree_node import DecisionTreeNode
from .separation import SeparationCriterion


class TreeBuilder:
    """
    決定木構築を担当するクラス

    Attributes:
    -----------
    separation : SeparationCriterion
        分割の評価に使用する分離基準
    node_min_events : int
        ノードを分割し続けるための最小イベント数
    n_cuts : int
        各変数で試行する閾値の数
    """

    # 丸め誤差程度の利得では分割しない
    min_gain = 1e-12

    def __init__(
        self,
        separation: SeparationCriterion,
        node_min_events: int = 400,
        n_cuts: int = 20
    ):
        self.separation = separation
        self.node_min_events = node_min_events
        self.n_cuts = n_cuts

    def build_tree(
        self,
        X: np.ndarray,
        is_signal: np.ndarray,
        weights: np.ndarray
    ) -> DecisionTreeNode:
        """
        決定木を構築

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            入力特徴量
        is_signal : array-like of bool, shape=(n_events,)
            signalラベル
        weights : array-like, shape=(n_events,)
            現在のイベント重み

        Returns:
        --------
        root : DecisionTreeNode
            構築された決定木のルートノード
        """
        root = DecisionTreeNode(depth=0)
        self._build_tree_recursive(root, X, is_signal, weights, 0)
        return root

    def _build_tree_recursive(
        self,
        node: DecisionTreeNode,
        X: np.ndarray,
        is_signal: np.ndarray,
        weights: np.ndarray,
        depth: int
    ) -> None:
        """
        再帰的に決定木を構築
        """
        node.depth = depth
        node.n_events = X.shape[0]
        node.n_sig = float(np.sum(weights[is_signal]))
        node.n_bkg = float(np.sum(weights[~is_signal]))
        node.separation_index = float(self.separation.get_separation_index(node.n_sig, node.n_bkg))

        # 終了条件のチェック
        if self._should_stop_splitting(node):
            node.set_leaf_type()
            return

        best_split = self._search_best_split(X, is_signal, weights, node.n_sig, node.n_bkg)

        if best_split is None:
            node.set_leaf_type()
            return

        selector, cut_value, gain = best_split
        node.selector = selector
        node.cut_value = cut_value
        node.separation_gain = gain

        right_mask = X[:, selector] > cut_value
        left_mask = ~right_mask

        node.left = DecisionTreeNode(depth=depth + 1)
        self._build_tree_recursive(node.left, X[left_mask], is_signal[left_mask], weights[left_mask], depth + 1)

        node.right = DecisionTreeNode(depth=depth + 1)
        self._build_tree_recursive(node.right, X[right_mask], is_signal[right_mask], weights[right_mask], depth + 1)

    def _should_stop_splitting(self, node: DecisionTreeNode) -> bool:
        """
        分割を停止するかどうかを判定

        A node stays a leaf when it is too small to give two daughters of
        node_min_events, carries no weight, or is already pure.
        """
        if node.n_events < 2 * self.node_min_events:
            return True
        if node.n_sig + node.n_bkg <= 0:
            return True
        purity = node.purity
        return purity <= 0.0 or purity >= 1.0

    def _candidate_cuts(self, values: np.ndarray) -> Optional[np.ndarray]:
        """
        Equidistant cut positions strictly inside [min, max] of the node
        """
        x_min = np.min(values)
        x_max = np.max(values)
        if x_max <= x_min:
            return None
        steps = np.arange(1, self.n_cuts + 1) / (self.n_cuts + 1)
        return x_min + (x_max - x_min) * steps

    def _search_best_split(
        self,
        X: np.ndarray,
        is_signal: np.ndarray,
        weights: np.ndarray,
        n_tot_sig: float,
        n_tot_bkg: float
    ) -> Optional[Tuple[int, float, float]]:
        """
        最適な分割を探索

        Returns:
        --------
        best_split : tuple or None
            最適な分割 (selector, cut_value, separation_gain)
        """
        n_events, n_vars = X.shape
        sig_weights = np.where(is_signal, weights, 0.0)
        bkg_weights = np.where(is_signal, 0.0, weights)

        best_gain = self.min_gain
        best_split = None

        for selector in range(n_vars):
            values = X[:, selector]
            cuts = self._candidate_cuts(values)
            if cuts is None:
                continue

            # (n_events, n_cuts) のマスクで右側の重みを一括集計
            above = values[:, None] > cuts[None, :]
            n_right = np.sum(above, axis=0)
            sig_right = sig_weights @ above
            bkg_right = bkg_weights @ above

            gains = np.asarray(self.separation.get_separation_gain(sig_right, bkg_right, n_tot_sig, n_tot_bkg))
            gains = np.where((n_right > 0) & (n_right < n_events), gains, -np.inf)

            i_best = int(np.argmax(gains))
            if gains[i_best] > best_gain:
                best_gain = float(gains[i_best])
                best_split = (selector, float(cuts[i_best]), best_gain)

        return best_split
