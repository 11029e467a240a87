from .base import BDTBase
from .errors import (
    BDTError,
    ConfigurationError,
    SanityCheckError,
    WeightFileCorruptionError,
    BoostingError
)
from .bdt_components import BDT, DecisionTree, EventSample, SeparationCriterion

__all__ = [
    'BDTBase',
    'BDT',
    'DecisionTree',
    'EventSample',
    'SeparationCriterion',
    'BDTError',
    'ConfigurationError',
    'SanityCheckError',
    'WeightFileCorruptionError',
    'BoostingError'
]
