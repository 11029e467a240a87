"""
BDT Components Package

This package contains the modular components of the boosted decision tree
implementation: separation criteria, the event sample, tree building and
pruning, boosting strategies, persistence and the BDT itself.
"""

from .separation import (
    SeparationCriterion,
    misclassification_error,
    gini_index,
    cross_entropy,
    sdivsqrt_s_plus_b
)
from .data_transforms import validate_input_data
from .event_sample import Event, EventSample
from .tree_node import DecisionTreeNode
from .tree_builder import TreeBuilder
from .decision_tree import DecisionTree
from .boosting_strategies import BoostResult, BoostingStrategyManager, ada_boost, bagging
from .options import DEFAULT_OPTIONS, parse_option_string
from .persistence import write_forest, read_forest
from .bdt_core import BDT, MonitorRecord

__all__ = [
    'SeparationCriterion',
    'misclassification_error',
    'gini_index',
    'cross_entropy',
    'sdivsqrt_s_plus_b',
    'validate_input_data',
    'Event',
    'EventSample',
    'DecisionTreeNode',
    'TreeBuilder',
    'DecisionTree',
    'BoostResult',
    'BoostingStrategyManager',
    'ada_boost',
    'bagging',
    'DEFAULT_OPTIONS',
    'parse_option_string',
    'write_forest',
    'read_forest',
    'BDT',
    'MonitorRecord'
]
