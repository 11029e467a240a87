"""
Data Transform Utilities

This module contains utility functions for input validation and event
weight manipulation used when building the training sample.
"""

import numpy as np
from typing import Optional, Tuple

from ..errors import ConfigurationError


def validate_input_data(X: np.ndarray, y: Optional[np.ndarray] = None) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    入力データの検証と前処理

    Parameters:
    -----------
    X : array-like, shape=(n_events, n_vars)
        特徴量行列
    y : array-like, shape=(n_events,), optional
        クラスラベル（1 = signal, 0 = background）

    Returns:
    --------
    X_validated : array-like, shape=(n_events, n_vars)
        検証済み特徴量行列
    is_signal : array-like of bool, shape=(n_events,) or None
        検証済みラベル
    """
    X = np.array(X, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    if X.ndim != 2:
        raise ValueError(f"X must be 2D array, got {X.ndim}D")

    is_signal = None
    if y is not None:
        is_signal = _to_signal_labels(y)
        if X.shape[0] != is_signal.shape[0]:
            raise ValueError(f"X and y must have same number of events, got {X.shape[0]} and {is_signal.shape[0]}")

    return X, is_signal


def _to_signal_labels(y: np.ndarray) -> np.ndarray:
    """
    Convert 0/1 (or boolean) class labels to a boolean signal mask
    """
    y = np.asarray(y).ravel()
    if y.dtype == bool:
        return y.copy()

    labels = set(np.unique(y).tolist())
    if not labels <= {0, 1}:
        raise ValueError(f"Class labels must be 0 (background) or 1 (signal), got {sorted(labels)}")

    return y == 1


def _apply_background_scale(weights: np.ndarray, is_signal: np.ndarray,
                            background_scale: Optional[float]) -> np.ndarray:
    """
    Scale the weight of every background event to simulate a different
    initial sample purity. None leaves the weights untouched.
    """
    if background_scale is None:
        return weights
    if background_scale <= 0:
        raise ConfigurationError(f"background_scale must be positive, got {background_scale}")

    scaled = weights.copy()
    scaled[~is_signal] *= background_scale
    return scaled


def _normalize_weights(weights: np.ndarray, target_total: float) -> None:
    """
    Rescale the weights in place so that they sum to ``target_total``

    The caller guarantees a positive current total.
    """
    weights *= target_total / np.sum(weights)
