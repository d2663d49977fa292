"""
Simulation models for the campus microgrid.

This package provides the per-tick models behind the dispatch engine:
- Generation model with diurnal solar and wind curves
- Campus load model around an operator target
- Battery controller with rate limits and a safe state-of-charge band
"""

from .generation import GenerationModel
from .load import LoadModel
from .battery import BatteryDecision, BatteryController

__all__ = [
    "GenerationModel",
    "LoadModel",
    "BatteryDecision",
    "BatteryController",
]
