"""
bdt-forest: boosted and bagged decision trees for signal/background
classification
"""

from .models import BDT

__version__ = "0.1.0"

__all__ = ['BDT']
