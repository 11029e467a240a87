"""
BDT Options

This module declares the configuration options of the BDT, their defaults,
and a parser for colon-separated option strings such as
``"NTrees=50:BoostType=Bagging:SeparationType=CrossEntropy:!UseYesNoLeaf"``.
"""

import numbers
from typing import Any, Callable, Dict, Tuple

from ..errors import ConfigurationError


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("t", "true", "1", "yes"):
        return True
    if lowered in ("f", "false", "0", "no"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_background_scale(value: str):
    # 負の値はスケーリング無効（SignalFraction=-1 と同じ扱い）
    scale = float(value)
    return scale if scale > 0 else None


# オプション名（小文字） -> (キーワード引数名, 変換関数)
DECLARED_OPTIONS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "ntrees": ("n_trees", int),
    "boosttype": ("boost_type", str),
    "separationtype": ("separation_type", str),
    "neventsmin": ("node_min_events", int),
    "ncuts": ("n_cuts", int),
    "signalfraction": ("background_scale", _parse_background_scale),
    "backgroundscale": ("background_scale", _parse_background_scale),
    "prunestrength": ("prune_strength", float),
    "useyesnoleaf": ("use_yes_no_leaf", _parse_bool),
    "useweightedtrees": ("use_weighted_trees", _parse_bool),
    "adaboostbeta": ("adaboost_beta", float),
}

DEFAULT_OPTIONS: Dict[str, Any] = {
    "n_trees": 200,
    "boost_type": "AdaBoost",
    "separation_type": "GiniIndex",
    "node_min_events": 400,
    "n_cuts": 20,
    "background_scale": None,
    "prune_strength": 10.0,
    "use_yes_no_leaf": True,
    "use_weighted_trees": True,
    "adaboost_beta": 1.0,
}


def parse_option_string(option_string: str) -> Dict[str, Any]:
    """
    Parse a colon-separated option string into BDT keyword arguments

    Option names are case-insensitive. A bare flag name sets a boolean
    option to True and ``!Flag`` sets it to False.

    Parameters:
    -----------
    option_string : str
        e.g. "NTrees=100:BoostType=AdaBoost:nCuts=30:!UseWeightedTrees"

    Returns:
    --------
    params : dict
        Keyword arguments for BDT (only the options that were given)

    Raises:
    -------
    ConfigurationError
        On unknown options or values that cannot be converted
    """
    params: Dict[str, Any] = {}

    for token in option_string.split(":"):
        token = token.strip()
        if not token:
            continue

        if "=" in token:
            name, value = token.split("=", 1)
            negate = False
        else:
            negate = token.startswith("!")
            name = token.lstrip("!")
            value = None

        key = name.strip().lower()
        if key not in DECLARED_OPTIONS:
            raise ConfigurationError(f"Unknown option: {name.strip()}")
        param_name, converter = DECLARED_OPTIONS[key]

        if value is None:
            if converter is not _parse_bool:
                raise ConfigurationError(f"Option {name.strip()} requires a value")
            params[param_name] = not negate
            continue

        try:
            params[param_name] = converter(value.strip())
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for option {name.strip()}: {e}") from e

    return params


def validate_options(params: Dict[str, Any]) -> None:
    """
    Check the numeric ranges of the options

    Separation and boost type names are validated where they are looked up.

    Raises:
    -------
    ConfigurationError
        If any value is out of range
    """
    for name in ("n_trees", "node_min_events", "n_cuts"):
        value = params[name]
        if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
            raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

    if params["prune_strength"] < 0:
        raise ConfigurationError(f"prune_strength must be non-negative, got {params['prune_strength']}")

    scale = params["background_scale"]
    if scale is not None and scale <= 0:
        raise ConfigurationError(f"background_scale must be positive, got {scale}")
