"""
Boosting Strategies Manager

This module contains the event reweighting rules applied after each tree
(AdaBoost and Bagging) and manages the strategy selection and execution.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional

from .data_transforms import _normalize_weights
from .decision_tree import DecisionTree
from ..errors import BoostingError, ConfigurationError
from .event_sample import EventSample

logger = logging.getLogger(__name__)

# err == 0 の場合のブースト重み
ZERO_ERROR_BOOST_WEIGHT = 1000.0


@dataclass
class BoostResult:
    """Outcome of one boosting round"""
    round_weight: float
    boost_weight: float
    error_fraction: float


def ada_boost(sample: EventSample, tree: DecisionTree, use_yes_no_leaf: bool = True,
              beta: float = 1.0) -> BoostResult:
    """
    AdaBoost reweighting

    Misclassified events get their weight multiplied by
    ((1 - err) / err) ** beta, then all weights are rescaled so the total
    sample weight is unchanged. No correction is applied when err >= 0.5;
    the round weight is then negative.

    Parameters:
    -----------
    sample : EventSample
        学習サンプル（重みはその場で更新される）
    tree : DecisionTree
        このラウンドで構築・剪定された木
    use_yes_no_leaf : bool
        リーフ応答のモード
    beta : float, default=1.0
        ブースト重みの指数

    Returns:
    --------
    result : BoostResult
        round_weight = ln(boost_weight)
    """
    weights = sample.weights
    predicted_signal = tree.check_events(sample.X, use_yes_no_leaf) > 0.5
    misclassified = predicted_signal != sample.is_signal

    sumw = float(np.sum(weights))
    sumwfalse = float(np.sum(weights[misclassified]))
    err = sumwfalse / sumw

    if err > 0:
        boost_weight = (1.0 - err) / err
        if beta != 1.0:
            boost_weight = boost_weight ** beta
    else:
        boost_weight = ZERO_ERROR_BOOST_WEIGHT

    weights[misclassified] *= boost_weight

    new_sumw = float(np.sum(weights))
    if not new_sumw > 0:
        raise BoostingError(
            f"Event weights vanished after AdaBoost (err={err:.6f}, boost_weight={boost_weight})"
        )
    _normalize_weights(weights, sumw)

    return BoostResult(
        round_weight=float(np.log(boost_weight)),
        boost_weight=boost_weight,
        error_fraction=err
    )


def bagging(sample: EventSample, round_index: int) -> BoostResult:
    """
    Bagging reweighting

    Every event gets a uniform random weight in [0, 1) drawn from a
    generator seeded with the round index, then the weights are rescaled
    to sum to the number of events. All rounds have round weight 1.
    """
    random_state = np.random.RandomState(round_index)
    n_events = len(sample)
    sample.weights[:] = random_state.random_sample(n_events)
    _normalize_weights(sample.weights, float(n_events))

    return BoostResult(round_weight=1.0, boost_weight=1.0, error_fraction=float('nan'))


class BoostingStrategyManager:
    """
    ブースティング戦略を管理するクラス

    Attributes:
    -----------
    boost_type : str
        使用するブースティング戦略（AdaBoost / Bagging）
    use_yes_no_leaf : bool
        AdaBoostでの分類に使うリーフ応答のモード
    adaboost_beta : float
        AdaBoostのブースト重み指数
    """

    # 利用可能な戦略（小文字キー -> 正式名）
    available_strategies = {
        "adaboost": "AdaBoost",
        "bagging": "Bagging",
    }

    def __init__(self, boost_type: str = "AdaBoost", use_yes_no_leaf: bool = True,
                 adaboost_beta: float = 1.0):
        key = str(boost_type).lower()
        if key not in self.available_strategies:
            raise ConfigurationError(f"Unknown boost type: {boost_type}")
        self.boost_type = self.available_strategies[key]
        self.use_yes_no_leaf = use_yes_no_leaf
        self.adaboost_beta = adaboost_beta

    def boost(self, sample: EventSample, tree: Optional[DecisionTree], round_index: int) -> BoostResult:
        """
        Reweight the sample in place after a round and return its weight

        Parameters:
        -----------
        sample : EventSample
            学習サンプル
        tree : DecisionTree
            このラウンドの木（Baggingでは未使用）
        round_index : int
            ラウンド番号（Baggingの乱数シード）

        Returns:
        --------
        result : BoostResult
        """
        if self.boost_type == "AdaBoost":
            result = ada_boost(sample, tree, self.use_yes_no_leaf, self.adaboost_beta)
        else:
            result = bagging(sample, round_index)

        logger.debug(
            "Round %d %s: boost_weight=%.6g error_fraction=%.6g round_weight=%.6g",
            round_index, self.boost_type, result.boost_weight, result.error_fraction, result.round_weight
        )
        return result

    def __repr__(self) -> str:
        return f"BoostingStrategyManager(boost_type={self.boost_type!r}, use_yes_no_leaf={self.use_yes_no_leaf})"
