"""Simulation states and the evaluator contract used by search."""

from .simulated_state import SimulatedGameState, SimulationState
from .evaluator import MaterialEvaluator, ObservationData, SimulationEvaluator

__all__ = [
    "SimulationState",
    "SimulatedGameState",
    "SimulationEvaluator",
    "MaterialEvaluator",
    "ObservationData",
]
