"""
Exception types raised by the BDT components.

Every error aborts the whole operation (training or loading) it occurred in.
"""


class BDTError(Exception):
    """Base class for all BDT errors"""


class ConfigurationError(BDTError, ValueError):
    """Unknown separation type, boost type or invalid option value"""


class SanityCheckError(BDTError, ValueError):
    """The training sample failed the pre-training sanity check"""


class WeightFileCorruptionError(BDTError, ValueError):
    """A weight file could not be parsed back into a forest"""


class BoostingError(BDTError, ArithmeticError):
    """Event weights could not be renormalised after a boosting round"""
