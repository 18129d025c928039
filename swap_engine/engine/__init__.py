"""Swap intent lifecycle."""

from swap_engine.engine.controller import SimulationController
from swap_engine.engine.intent import ExecutionGuard, IntentState, InvalidTransitionError, SwapIntent

__all__ = [
    "SimulationController",
    "ExecutionGuard",
    "IntentState",
    "InvalidTransitionError",
    "SwapIntent",
]
