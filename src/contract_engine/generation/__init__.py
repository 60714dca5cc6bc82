"""
Generation package - analytics-driven contract personalization.
"""

from .analytics import AnalyticsProvider, AnalyticsSummary, PainPoint
from .breaker import BreakerSnapshot, CircuitBreaker, get_circuit_breaker
from .errors import (
    BackendCallError,
    BackendUnavailableError,
    ContractEngineError,
    GenerationJobError,
    StructuralValidationError,
    is_retryable_message,
)
from .prompts import ContractPromptBuilder
from .orchestrator import GenerationOrchestrator, GenerationResult, GenerationRun, Stage, bump_patch
from .processor import GenerationJob, GenerationJobProcessor, GenerationJobResult

__all__ = [
    # Analytics
    "AnalyticsProvider",
    "AnalyticsSummary",
    "PainPoint",
    # Circuit breaker
    "BreakerSnapshot",
    "CircuitBreaker",
    "get_circuit_breaker",
    # Errors
    "BackendCallError",
    "BackendUnavailableError",
    "ContractEngineError",
    "GenerationJobError",
    "StructuralValidationError",
    "is_retryable_message",
    # Orchestration
    "ContractPromptBuilder",
    "GenerationOrchestrator",
    "GenerationResult",
    "GenerationRun",
    "Stage",
    "bump_patch",
    # Jobs
    "GenerationJob",
    "GenerationJobProcessor",
    "GenerationJobResult",
]
