"""
合成signal/backgroundデータ生成モジュール
"""

import numpy as np
from sklearn.model_selection import train_test_split
from typing import Optional, Tuple


def generate_signal_background_data(n_events: int = 2000, n_vars: int = 4, n_informative: int = 2,
                                    shift: float = 1.0, signal_fraction: float = 0.5,
                                    test_size: float = 0.25,
                                    random_state: Optional[int] = None) -> Tuple:
    """
    ガウス分布に従うsignal/backgroundイベントを生成

    Signal events are shifted by ``shift`` in the first ``n_informative``
    variables; the remaining variables are pure noise for both classes.

    Parameters:
    -----------
    n_events : int, default=2000
        イベント数
    n_vars : int, default=4
        変数の数
    n_informative : int, default=2
        分離に寄与する変数の数
    shift : float, default=1.0
        signalの平均値のずれ
    signal_fraction : float, default=0.5
        signalイベントの割合
    test_size : float, default=0.25
        テストデータの割合
    random_state : int, optional
        乱数シード

    Returns:
    --------
    X_train, y_train, X_test, y_test : array-like
        y は 1 = signal, 0 = background
    """
    random_state_ = np.random.RandomState(random_state)

    y = (random_state_.random_sample(n_events) < signal_fraction).astype(int)
    X = random_state_.randn(n_events, n_vars)
    X[:, :n_informative] += shift * y[:, None]

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=test_size, random_state=random_state, stratify=y
    )
    return X_train, y_train, X_test, y_test
