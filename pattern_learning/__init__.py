"""
Pattern Learning Package.

Setup pattern success statistics and running execution
pattern impact, updated atomically per key.
"""

from .tracker import PatternLearningTracker
from .vocabulary import SETUP_VOCABULARY, impact_trend

__all__ = ["PatternLearningTracker", "SETUP_VOCABULARY", "impact_trend"]
