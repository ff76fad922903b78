"""Transcript production: single-shot generation, simulation, batch driving."""

from evalbench.execution.driver import BatchResult, EntryFailure, EvaluationDriver, ProgressUpdate
from evalbench.execution.generation import GenerationResult, generate_single_turn
from evalbench.execution.simulator import (
    ConversationSimulator,
    SimulationResult,
    SimulationState,
    StopReason,
)

__all__ = [
    "BatchResult",
    "ConversationSimulator",
    "EntryFailure",
    "EvaluationDriver",
    "GenerationResult",
    "ProgressUpdate",
    "SimulationResult",
    "SimulationState",
    "StopReason",
    "generate_single_turn",
]
