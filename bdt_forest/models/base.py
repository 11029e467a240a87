"""
BDT基底クラスモジュール

このモジュールは、signal/background分類用の決定木アンサンブルの
抽象基底クラスを提供します。
"""

from abc import ABC, abstractmethod
import numpy as np
from sklearn.metrics import roc_auc_score
from sklearn.utils.validation import check_X_y, check_array
from typing import Dict, List, Tuple, Optional, Any

from .errors import SanityCheckError


class BDTBase(ABC):
    """
    決定木アンサンブル分類器の抽象基底クラス

    このクラスは、すべての実装に共通するインターフェースを定義します。

    Attributes:
    -----------
    n_trees : int
        森の木の数
    forest : list
        学習済みの決定木のリスト
    """

    # get_params / set_params で扱うパラメータ名
    _param_names: Tuple[str, ...] = ("n_trees",)

    def __init__(self, n_trees: int = 200):
        """
        初期化メソッド

        Parameters:
        -----------
        n_trees : int, default=200
            森の木の数
        """
        self.n_trees = n_trees
        self.forest = []

    @abstractmethod
    def fit(self, X: np.ndarray, y: np.ndarray, **kwargs) -> 'BDTBase':
        """
        signal(1) / background(0) ラベル付きデータでモデルを学習

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            入力特徴量
        y : array-like, shape=(n_events,)
            クラスラベル
        **kwargs : dict
            追加のパラメータ

        Returns:
        --------
        self : BDTBase
            学習済みモデル
        """
        pass

    @abstractmethod
    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        学習済みモデルでMVA値を予測

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            入力特徴量

        Returns:
        --------
        mva_values : array-like, shape=(n_events,)
            各イベントのsignalらしさ
        """
        pass

    def _validate_input(self, X: np.ndarray, y: Optional[np.ndarray] = None) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        """
        入力データの検証と前処理

        Parameters:
        -----------
        X : array-like
            入力特徴量
        y : array-like, optional
            クラスラベル

        Returns:
        --------
        X : np.ndarray
            検証・変換後の入力特徴量
        y : np.ndarray or None
            検証・変換後のラベル

        Raises:
        -------
        SanityCheckError
            学習データが空、または無限値・NaNを含む場合
        """
        if y is None:
            return check_array(X, dtype=np.float64), None

        try:
            X, y = check_X_y(X, y, dtype=np.float64)
        except ValueError as e:
            raise SanityCheckError(f"Training data rejected: {e}") from e

        return X, y

    def evaluate(self, X: np.ndarray, y: np.ndarray, metrics: List[str] = ['accuracy']) -> Dict[str, float]:
        """
        モデルの評価

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            入力特徴量
        y : array-like, shape=(n_events,)
            真のクラスラベル
        metrics : list of str, default=['accuracy']
            使用する評価指標のリスト（accuracy, auc, mse）

        Returns:
        --------
        results : dict
            各評価指標の値
        """
        X = check_array(X, dtype=np.float64)
        y = np.asarray(y).astype(np.float64).ravel()

        # 予測
        y_pred = self.predict(X)

        # 結果格納用辞書
        results = {}

        for metric in metrics:
            if metric.lower() == 'accuracy':
                # MVA値 > 0.5 をsignalとして分類
                results['accuracy'] = float(np.mean((y_pred > 0.5) == (y == 1)))

            elif metric.lower() == 'auc':
                results['auc'] = float(roc_auc_score(y, y_pred))

            elif metric.lower() == 'mse':
                results['mse'] = float(np.mean((y - y_pred) ** 2))

            else:
                raise ValueError(f"Unknown metric: {metric}")

        return results

    def get_params(self) -> Dict[str, Any]:
        """
        モデルパラメータの取得

        Returns:
        --------
        params : dict
            モデルパラメータ
        """
        return {name: getattr(self, name) for name in self._param_names}

    def set_params(self, **params) -> 'BDTBase':
        """
        モデルパラメータの設定

        Parameters:
        -----------
        **params : dict
            設定するパラメータ

        Returns:
        --------
        self : BDTBase
            パラメータを更新したモデル
        """
        for key, value in params.items():
            if key in self._param_names:
                setattr(self, key, value)
            else:
                raise ValueError(f"Invalid parameter: {key}")
        return self
