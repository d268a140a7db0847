"""
Analysis modules for the flood risk pipeline
"""

from .risk_interpreter import RiskInterpreter
from .fallback_heuristic import FallbackHeuristicEngine

__all__ = [
    "RiskInterpreter",
    "FallbackHeuristicEngine",
]
