"""
Separation Criteria

This module contains the impurity functions used to rank candidate node
splits. All criteria follow the convention "lower is purer" so the tree
builder can compare them with the same code.
"""

import numpy as np
from typing import Callable, Dict, Union

from ..errors import ConfigurationError

ArrayOrFloat = Union[float, np.ndarray]


def _purity(n_sig: ArrayOrFloat, n_bkg: ArrayOrFloat):
    total = np.asarray(n_sig + n_bkg, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        p = np.where(total > 0, n_sig / np.where(total > 0, total, 1.0), 0.0)
    return p, total


def misclassification_error(n_sig: ArrayOrFloat, n_bkg: ArrayOrFloat) -> ArrayOrFloat:
    """1 - max(S, B) / (S + B)"""
    p, total = _purity(n_sig, n_bkg)
    index = np.where(total > 0, 1.0 - np.maximum(p, 1.0 - p), 0.0)
    return index if index.ndim else float(index)


def gini_index(n_sig: ArrayOrFloat, n_bkg: ArrayOrFloat) -> ArrayOrFloat:
    """2 p (1 - p) with p the signal purity"""
    p, total = _purity(n_sig, n_bkg)
    index = np.where(total > 0, 2.0 * p * (1.0 - p), 0.0)
    return index if index.ndim else float(index)


def cross_entropy(n_sig: ArrayOrFloat, n_bkg: ArrayOrFloat) -> ArrayOrFloat:
    """-p ln p - (1-p) ln(1-p); a zero probability term contributes 0"""
    p, total = _purity(n_sig, n_bkg)
    q = 1.0 - p
    with np.errstate(divide='ignore', invalid='ignore'):
        term_s = np.where(p > 0, -p * np.log(np.where(p > 0, p, 1.0)), 0.0)
        term_b = np.where(q > 0, -q * np.log(np.where(q > 0, q, 1.0)), 0.0)
    index = np.where(total > 0, term_s + term_b, 0.0)
    return index if index.ndim else float(index)


def sdivsqrt_s_plus_b(n_sig: ArrayOrFloat, n_bkg: ArrayOrFloat) -> ArrayOrFloat:
    """-S / sqrt(S + B), negative so that lower still means purer"""
    total = np.asarray(n_sig + n_bkg, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        index = np.where(total > 0, -n_sig / np.sqrt(np.where(total > 0, total, 1.0)), 0.0)
    return index if index.ndim else float(index)


class SeparationCriterion:
    """
    分離基準クラス

    Wraps one of the fixed impurity functions selected by name.

    Attributes:
    -----------
    name : str
        Canonical name of the criterion
    """

    # 利用可能な分離基準（小文字キー -> 正式名, 指標関数, 利得の方式）
    # "weighted": 親の指標 - 重み付き平均の子の指標
    # "best": 親の指標 - よりpureな子の指標
    available_criteria: Dict[str, tuple] = {
        "misclassificationerror": ("MisClassificationError", misclassification_error, "weighted"),
        "giniindex": ("GiniIndex", gini_index, "weighted"),
        "crossentropy": ("CrossEntropy", cross_entropy, "weighted"),
        "sdivsqrtsplusb": ("SDivSqrtSPlusB", sdivsqrt_s_plus_b, "best"),
        "signaloversqrtsplusb": ("SDivSqrtSPlusB", sdivsqrt_s_plus_b, "best"),
    }

    def __init__(self, separation_type: str = "GiniIndex"):
        key = str(separation_type).lower()
        if key not in self.available_criteria:
            raise ConfigurationError(f"Unknown separation type: {separation_type}")
        self.name, self._index_function, self._gain_mode = self.available_criteria[key]

    def get_separation_index(self, n_sig: ArrayOrFloat, n_bkg: ArrayOrFloat) -> ArrayOrFloat:
        """
        Impurity index for weighted signal / background counts

        Parameters:
        -----------
        n_sig : float or array-like
            Weighted signal count
        n_bkg : float or array-like
            Weighted background count

        Returns:
        --------
        index : float or array-like
            Separation index, lower is purer
        """
        return self._index_function(n_sig, n_bkg)

    def get_separation_gain(
        self,
        n_sel_sig: ArrayOrFloat,
        n_sel_bkg: ArrayOrFloat,
        n_tot_sig: float,
        n_tot_bkg: float
    ) -> ArrayOrFloat:
        """
        Decrease of the separation index when a node is split

        The selected counts belong to one daughter, the remainder to the other.
        A split with an empty daughter has zero gain.

        Impurity-like criteria compare the parent with the weight-averaged
        daughters. SDivSqrtSPlusB is a significance, which the averaged
        daughters can never exceed, so it compares the parent with the
        more significant daughter instead.
        """
        n_sel_sig = np.asarray(n_sel_sig, dtype=float)
        n_sel_bkg = np.asarray(n_sel_bkg, dtype=float)
        n_tot = n_tot_sig + n_tot_bkg
        n_sel = n_sel_sig + n_sel_bkg
        n_rest = n_tot - n_sel

        if n_tot <= 0:
            gain = np.zeros_like(n_sel)
        else:
            parent_index = self.get_separation_index(n_tot_sig, n_tot_bkg)
            sel_index = self.get_separation_index(n_sel_sig, n_sel_bkg)
            rest_index = self.get_separation_index(n_tot_sig - n_sel_sig, n_tot_bkg - n_sel_bkg)
            if self._gain_mode == "best":
                gain = parent_index - np.minimum(sel_index, rest_index)
            else:
                gain = parent_index - (n_sel / n_tot) * sel_index - (n_rest / n_tot) * rest_index
            gain = np.where((n_sel > 0) & (n_rest > 0), gain, 0.0)

        return gain if gain.ndim else float(gain)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"SeparationCriterion({self.name!r})"
