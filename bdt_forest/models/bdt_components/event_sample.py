"""
Event Sample

This module contains the EventSample class, the single owner of the training
events and of their mutable weights.
"""

import numpy as np
from typing import List, NamedTuple, Optional, Sequence

from .data_transforms import validate_input_data, _apply_background_scale
from ..errors import SanityCheckError


class Event(NamedTuple):
    """Read-only view of one training event"""
    values: np.ndarray
    is_signal: bool
    weight: float


class EventSample:
    """
    学習イベントサンプル

    The feature matrix and the labels never change after construction. The
    weight array is shared by every boosting round and is only modified in
    place by the active boosting step.

    Attributes:
    -----------
    X : array-like, shape=(n_events, n_vars)
        Feature values
    is_signal : array-like of bool, shape=(n_events,)
        True for signal events
    weights : array-like, shape=(n_events,)
        Current event weights
    feature_names : list of str
        Input variable names
    """

    def __init__(self, X: np.ndarray, is_signal: np.ndarray, weights: np.ndarray,
                 feature_names: Optional[Sequence[str]] = None):
        self.X = X
        self.is_signal = is_signal
        self.weights = weights
        if feature_names is None:
            feature_names = [f"var{i}" for i in range(X.shape[1])]
        self.feature_names: List[str] = list(feature_names)

    @classmethod
    def from_arrays(
        cls,
        X: np.ndarray,
        y: np.ndarray,
        weights: Optional[np.ndarray] = None,
        background_scale: Optional[float] = None,
        feature_names: Optional[Sequence[str]] = None
    ) -> 'EventSample':
        """
        Build the sample from feature rows, class labels and initial weights

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            Feature values
        y : array-like, shape=(n_events,)
            1 for signal, 0 for background
        weights : array-like, shape=(n_events,), optional
            Initial event weights (1 when omitted)
        background_scale : float, optional
            Factor applied to every background weight before training
        feature_names : sequence of str, optional
            Input variable names

        Returns:
        --------
        sample : EventSample
        """
        X, is_signal = validate_input_data(X, y)

        if weights is None:
            weights = np.ones(X.shape[0])
        else:
            weights = np.array(weights, dtype=np.float64).ravel()
            if weights.shape[0] != X.shape[0]:
                raise ValueError(f"weights must have one entry per event, got {weights.shape[0]} for {X.shape[0]} events")

        weights = _apply_background_scale(weights, is_signal, background_scale)

        if feature_names is not None and len(feature_names) != X.shape[1]:
            raise ValueError(f"Got {len(feature_names)} feature names for {X.shape[1]} variables")

        return cls(X, is_signal, weights, feature_names)

    @property
    def n_vars(self) -> int:
        return self.X.shape[1]

    def total_weight(self) -> float:
        return float(np.sum(self.weights))

    def signal_weight(self) -> float:
        return float(np.sum(self.weights[self.is_signal]))

    def background_weight(self) -> float:
        return float(np.sum(self.weights[~self.is_signal]))

    def check_sanity(self) -> None:
        """
        Verify that the sample can be trained on

        Raises:
        -------
        SanityCheckError
            If the sample is empty, contains non-finite values or negative
            weights, has no total weight, or lacks one of the two classes
        """
        if len(self) == 0:
            raise SanityCheckError("Event sample is empty")
        if self.n_vars == 0:
            raise SanityCheckError("Event sample has no input variables")
        if not np.all(np.isfinite(self.X)):
            raise SanityCheckError("Event sample contains inf or NaN feature values")
        if not np.all(np.isfinite(self.weights)):
            raise SanityCheckError("Event sample contains inf or NaN weights")
        if np.any(self.weights < 0):
            raise SanityCheckError("Event sample contains negative weights")
        if self.total_weight() <= 0:
            raise SanityCheckError("Total event weight is zero")
        if not np.any(self.is_signal) or np.all(self.is_signal):
            raise SanityCheckError("Event sample must contain both signal and background events")

    def __len__(self) -> int:
        return self.X.shape[0]

    def __getitem__(self, index: int) -> Event:
        return Event(self.X[index], bool(self.is_signal[index]), float(self.weights[index]))

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        n_sig = int(np.sum(self.is_signal))
        return f"EventSample(n_events={len(self)}, n_signal={n_sig}, n_background={len(self) - n_sig}, total_weight={self.total_weight():.4f})"
