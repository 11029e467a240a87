"""
BDT Core Module

This module contains the main BDT class that orchestrates all components
to provide boosted (AdaBoost) or bagged decision-tree classification of
signal and background events.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any, Sequence, TextIO
import json
import logging
import time

from ..base import BDTBase
from .boosting_strategies import BoostingStrategyManager
from .decision_tree import DecisionTree
from .event_sample import EventSample
from .options import DEFAULT_OPTIONS, parse_option_string, validate_options
from .persistence import write_forest, read_forest
from .separation import SeparationCriterion

logger = logging.getLogger(__name__)


@dataclass
class MonitorRecord:
    """Diagnostics of one boosting round"""
    i_tree: int
    boost_weight: float
    error_fraction: float
    round_weight: float
    n_nodes: int
    n_nodes_before_pruning: int


class BDT(BDTBase):
    """
    Boosted Decision Trees

    A forest of signal/background decision trees, all grown from the same
    training sample with different event weights. After each tree the
    sample is reweighted by AdaBoost (misclassified events gain weight) or
    by Bagging (random resampling weights). An event's MVA value is the
    (optionally round-weighted) average of the trees' responses.
    """

    _param_names = tuple(DEFAULT_OPTIONS.keys())

    def __init__(self,
                 n_trees: int = 200,
                 boost_type: str = "AdaBoost",
                 separation_type: str = "GiniIndex",
                 node_min_events: int = 400,
                 n_cuts: int = 20,
                 background_scale: Optional[float] = None,
                 prune_strength: float = 10.0,
                 use_yes_no_leaf: bool = True,
                 use_weighted_trees: bool = True,
                 adaboost_beta: float = 1.0):
        """
        Initialize BDT

        Parameters:
        -----------
        n_trees : int
            Number of trees in the forest
        boost_type : str
            "AdaBoost" or "Bagging" (case-insensitive)
        separation_type : str
            "MisClassificationError", "GiniIndex", "CrossEntropy" or
            "SDivSqrtSPlusB" (case-insensitive)
        node_min_events : int
            Minimum number of events in a node; smaller nodes are not split
        n_cuts : int
            Number of cut positions scanned per variable during node splitting
        background_scale : float, optional
            Factor applied to background weights to simulate a different
            initial sample purity
        prune_strength : float
            Cost-complexity pruning strength (0 disables pruning)
        use_yes_no_leaf : bool
            Classify by leaf type (1/0) instead of leaf signal purity
        use_weighted_trees : bool
            Weight each tree's response by its round weight
        adaboost_beta : float
            Exponent applied to the AdaBoost boost weight

        Raises:
        -------
        ConfigurationError
            If an option is unknown or out of range
        """
        super().__init__(n_trees=n_trees)
        self.boost_type = boost_type
        self.separation_type = separation_type
        self.node_min_events = node_min_events
        self.n_cuts = n_cuts
        self.background_scale = background_scale
        self.prune_strength = prune_strength
        self.use_yes_no_leaf = use_yes_no_leaf
        self.use_weighted_trees = use_weighted_trees
        self.adaboost_beta = adaboost_beta

        self._process_options()

        # Initialize storage
        self.boost_weights: List[float] = []
        self.monitor_records: List[MonitorRecord] = []
        self.feature_names: List[str] = []
        self.n_vars = 0

    @classmethod
    def from_option_string(cls, option_string: str, **overrides) -> 'BDT':
        """
        Create a BDT from a colon-separated option string

        Example: ``BDT.from_option_string("NTrees=50:BoostType=Bagging:!UseYesNoLeaf")``
        """
        params = parse_option_string(option_string)
        params.update(overrides)
        return cls(**params)

    def _process_options(self) -> None:
        """
        Validate the options and build the separation criterion and the
        boosting strategy they select
        """
        validate_options(self.get_params())
        self.separation = SeparationCriterion(self.separation_type)
        self.boosting_manager = BoostingStrategyManager(
            boost_type=self.boost_type,
            use_yes_no_leaf=self.use_yes_no_leaf,
            adaboost_beta=self.adaboost_beta
        )

    def fit(self, X: np.ndarray, y: np.ndarray, sample_weight: Optional[np.ndarray] = None,
            feature_names: Optional[Sequence[str]] = None, **kwargs) -> 'BDT':
        """
        Train the forest

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            Training features (DataFrame column names are used as
            variable names)
        y : array-like, shape=(n_events,)
            1 for signal, 0 for background
        sample_weight : array-like, shape=(n_events,), optional
            Initial event weights
        feature_names : sequence of str, optional
            Input variable names

        Returns:
        --------
        self : BDT
            Fitted model

        Raises:
        -------
        ConfigurationError
            If an option is invalid
        SanityCheckError
            If the training sample is unusable
        BoostingError
            If event weights cannot be renormalised after a round
        """
        # 失敗時に途中までの森を残さない
        self.forest = []
        self.boost_weights = []
        self.monitor_records = []

        self._process_options()

        if feature_names is None and isinstance(X, pd.DataFrame):
            feature_names = [str(c) for c in X.columns]

        X, y = self._validate_input(X, y)
        sample = EventSample.from_arrays(
            X, y,
            weights=sample_weight,
            background_scale=self.background_scale,
            feature_names=feature_names
        )
        sample.check_sanity()

        logger.info(
            "Training %d decision trees (%s, %s) on %d events ... patience please",
            self.n_trees, self.boosting_manager.boost_type, self.separation, len(sample)
        )
        start_time = time.time()

        forest = []
        boost_weights = []
        monitor_records = []
        n_nodes_before_pruning = 0
        n_nodes_after_pruning = 0

        # Main boosting loop
        for itree in range(self.n_trees):
            tree = DecisionTree(
                separation=self.separation,
                node_min_events=self.node_min_events,
                n_cuts=self.n_cuts,
                prune_strength=self.prune_strength
            )
            n_nodes_built = tree.build_tree(sample.X, sample.is_signal, sample.weights)
            tree.prune_tree()
            n_nodes = tree.count_nodes()
            n_nodes_before_pruning += n_nodes_built
            n_nodes_after_pruning += n_nodes

            result = self.boosting_manager.boost(sample, tree, itree)

            forest.append(tree)
            boost_weights.append(result.round_weight)
            monitor_records.append(MonitorRecord(
                i_tree=itree,
                boost_weight=result.boost_weight,
                error_fraction=result.error_fraction,
                round_weight=result.round_weight,
                n_nodes=n_nodes,
                n_nodes_before_pruning=n_nodes_built
            ))

        self.forest = forest
        self.boost_weights = boost_weights
        self.monitor_records = monitor_records
        self.feature_names = list(sample.feature_names)
        self.n_vars = sample.n_vars

        logger.info(
            "Average number of nodes before/after pruning: %d / %d",
            n_nodes_before_pruning // self.n_trees, n_nodes_after_pruning // self.n_trees
        )
        logger.info("Training finished in %.2fs", time.time() - start_time)
        return self

    def _check_fitted(self) -> None:
        if not self.forest:
            raise ValueError("Model has not been fitted yet")

    def _normalisation(self) -> float:
        if self.use_weighted_trees:
            norm = float(np.sum(self.boost_weights))
        else:
            norm = float(len(self.forest))
        if norm == 0:
            raise ValueError("Sum of tree weights is zero; the MVA value is undefined")
        return norm

    def get_mva_value(self, values: np.ndarray) -> float:
        """
        MVA value of a single event

        Parameters:
        -----------
        values : array-like, shape=(n_vars,)
            Feature values of the event

        Returns:
        --------
        mva : float
            Weighted or plain average of the trees' responses
        """
        self._check_fitted()
        values = np.asarray(values, dtype=np.float64)
        norm = self._normalisation()

        mva = 0.0
        for tree, boost_weight in zip(self.forest, self.boost_weights):
            response = tree.check_event(values, self.use_yes_no_leaf)
            mva += boost_weight * response if self.use_weighted_trees else response
        return mva / norm

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        MVA values for many events

        Parameters:
        -----------
        X : array-like, shape=(n_events, n_vars)
            Input features

        Returns:
        --------
        mva_values : array-like, shape=(n_events,)
        """
        self._check_fitted()
        X, _ = self._validate_input(X)
        if X.shape[1] != self.n_vars:
            raise ValueError(f"X has {X.shape[1]} variables, but the forest was trained on {self.n_vars}")
        norm = self._normalisation()

        responses = np.array([tree.check_events(X, self.use_yes_no_leaf) for tree in self.forest])
        if self.use_weighted_trees:
            return np.asarray(self.boost_weights) @ responses / norm
        return np.sum(responses, axis=0) / norm

    def get_variable_importance(self, ivar: Optional[int] = None):
        """
        Relative variable importance, normalised to 1 over all variables

        The importance of a variable is the total separation gain of the
        splits on it, weighted by the node weight, summed over the forest.

        Parameters:
        -----------
        ivar : int, optional
            Return only the importance of this variable

        Returns:
        --------
        importance : array-like, shape=(n_vars,) or float

        Raises:
        -------
        ValueError
            If the forest is empty or no split carries any gain
        IndexError
            If ivar is out of range
        """
        self._check_fitted()

        importance = np.zeros(self.n_vars)
        for tree in self.forest:
            importance += tree.get_variable_importance()

        total = np.sum(importance)
        if total <= 0:
            raise ValueError("Forest has no split with positive separation gain; importance is undefined")
        importance /= total

        if ivar is None:
            return importance
        if not 0 <= ivar < self.n_vars:
            raise IndexError(f"ivar = {ivar} is out of range (n_vars = {self.n_vars})")
        return float(importance[ivar])

    def create_ranking(self) -> pd.DataFrame:
        """
        Variable ranking by importance, most important first
        """
        importance = self.get_variable_importance()
        ranking = pd.DataFrame({
            'variable': self.feature_names,
            'importance': importance
        })
        ranking = ranking.sort_values('importance', ascending=False, kind='mergesort').reset_index(drop=True)
        ranking.index = ranking.index + 1
        ranking.index.name = 'rank'
        return ranking

    def get_monitoring_frame(self) -> pd.DataFrame:
        """
        Per-round diagnostics (tree index, boost weight, error fraction,
        round weight, node counts) as a DataFrame
        """
        columns = list(MonitorRecord.__dataclass_fields__.keys())
        return pd.DataFrame([asdict(r) for r in self.monitor_records], columns=columns)

    def save_monitoring_to_json(self, file_path: str) -> None:
        """
        Save the per-round diagnostics to a JSON file

        Parameters:
        -----------
        file_path : str
            Path to save the JSON file
        """
        records = [asdict(r) for r in self.monitor_records]

        timestamp = datetime.now().isoformat()
        for record in records:
            record['timestamp'] = timestamp
            # NaN は JSON 非対応
            if record['error_fraction'] != record['error_fraction']:
                record['error_fraction'] = None

        with open(file_path, 'w') as f:
            json.dump(records, f, ensure_ascii=False, indent=4)

        logger.info("Monitoring records saved to %s", file_path)

    def write_weights_to_stream(self, stream: TextIO) -> None:
        """
        Write the trained forest to a text stream
        """
        self._check_fitted()
        write_forest(stream, self.forest, self.boost_weights)

    def read_weights_from_stream(self, stream: TextIO) -> 'BDT':
        """
        Replace the forest with one read from a text stream

        The current forest is discarded first; on error the model is left
        without a forest.

        Raises:
        -------
        WeightFileCorruptionError
            If the stream is not a valid weight file
        """
        self.forest = []
        self.boost_weights = []
        self.monitor_records = []

        forest, boost_weights = read_forest(stream)

        n_vars = forest[0].n_vars if forest else 0
        if len(self.feature_names) != n_vars:
            self.feature_names = [f"var{i}" for i in range(n_vars)]
        self.n_vars = n_vars
        self.forest = forest
        self.boost_weights = boost_weights
        return self

    def save(self, file_path: str) -> None:
        """
        Save the trained forest to a weight file
        """
        with open(file_path, 'w') as f:
            self.write_weights_to_stream(f)
        logger.info("Weights written to %s", file_path)

    @classmethod
    def load(cls, file_path: str, feature_names: Optional[Sequence[str]] = None, **params) -> 'BDT':
        """
        Create a BDT from a weight file

        Parameters:
        -----------
        file_path : str
            Weight file written by save
        feature_names : sequence of str, optional
            Input variable names
        **params : dict
            Options used for evaluation (e.g. use_yes_no_leaf,
            use_weighted_trees); they must match the training options

        Returns:
        --------
        model : BDT
        """
        model = cls(**params)
        if feature_names is not None:
            model.feature_names = list(feature_names)
        with open(file_path) as f:
            model.read_weights_from_stream(f)
        return model

    def print_training_summary(self) -> None:
        """
        Print training summary
        """
        print(f"\n=== BDT Training Summary ===")
        print(f"Boost type: {self.boosting_manager.boost_type}")
        print(f"Separation: {self.separation}")
        print(f"Trees: {len(self.forest)}")
        print(f"Min events per node: {self.node_min_events}")
        print(f"Cuts per variable: {self.n_cuts}")
        print(f"Prune strength: {self.prune_strength}")

        if self.monitor_records:
            frame = self.get_monitoring_frame()
            print(f"Average nodes before/after pruning: "
                  f"{frame['n_nodes_before_pruning'].mean():.1f} / {frame['n_nodes'].mean():.1f}")
            if self.boosting_manager.boost_type == "AdaBoost":
                print(f"Average error fraction: {frame['error_fraction'].mean():.4f}")

        if self.forest:
            try:
                ranking = self.create_ranking()
                print("Variable ranking:")
                for rank, row in ranking.iterrows():
                    print(f"  {rank}: {row['variable']} ({row['importance']:.4f})")
            except ValueError as e:
                print(f"Could not compute variable importance: {e}")

    def __repr__(self) -> str:
        return (f"BDT(n_trees={self.n_trees}, boost_type={self.boost_type!r}, "
                f"separation_type={self.separation_type!r}, fitted={bool(self.forest)})")
