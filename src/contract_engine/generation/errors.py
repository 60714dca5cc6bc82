"""Generation pipeline errors."""

from collections.abc import Sequence


class ContractEngineError(Exception):
    """Base class for pipeline errors surfaced to callers."""


class StructuralValidationError(ContractEngineError):
    """Contract failed validation after repair and retry were exhausted."""

    def __init__(self, message: str, errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.errors = list(errors)


class BackendUnavailableError(ContractEngineError):
    """Generative backend is disabled or the circuit is open."""


class BackendCallError(ContractEngineError):
    """Calling the generative backend failed (timeout, network, provider error)."""

    def __init__(self, message: str, original: BaseException | None = None) -> None:
        super().__init__(message)
        self.original = original


RETRYABLE_MARKERS = ("rate limit", "429", "timeout", "timed out", "network")


def is_retryable_message(message: str) -> bool:
    """Transient failures worth a job-level retry."""
    lower = message.lower()
    return any(marker in lower for marker in RETRYABLE_MARKERS)


class GenerationJobError(ContractEngineError):
    """A generation job failed; `retryable` tells the queue whether to retry."""

    def __init__(self, message: str, retryable: bool) -> None:
        super().__init__(message)
        self.retryable = retryable
