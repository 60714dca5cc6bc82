"""
Generation Job Processor
Runs queued personalization jobs: generate, re-validate, persist, invalidate.
"""

import time
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from ..contracts import Contract, ContractStore, ContractValidator, user_contract_cache_key
from ..core import LogContext, get_logger
from ..core.cache import Cache
from .errors import GenerationJobError, StructuralValidationError, is_retryable_message
from .orchestrator import GenerationOrchestrator

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


class GenerationJob(BaseModel):
    """Queued request to personalize a user's contract."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    user_id: str = Field(alias="userId")
    base_contract: Contract | None = Field(default=None, alias="baseContract")
    version: str | None = None


class GenerationJobResult(BaseModel):
    contract_id: str
    version: str
    explanation: str | None = None


class GenerationJobProcessor:
    """Processes one generation job at a time; safe to share between workers."""

    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        store: ContractStore,
        cache: Cache | None = None,
        validator: ContractValidator | None = None,
        model_name: str = "gemini-2.5-flash",
    ) -> None:
        self.orchestrator = orchestrator
        self.store = store
        self.cache = cache
        self.validator = validator or ContractValidator()
        self.model_name = model_name

    def process(self, job: GenerationJob, on_progress: ProgressCallback | None = None) -> GenerationJobResult:
        """
        Run a job to completion.

        Args:
            job: Job payload
            on_progress: Receives a percentage as stages complete

        Returns:
            Persisted contract id, version and explanation

        Raises:
            GenerationJobError: Any failure; ``retryable`` is set for transient ones
        """
        progress = on_progress or (lambda _pct: None)
        start = time.time()

        with LogContext(job_id=job.job_id, user_id=job.user_id):
            try:
                progress(25)
                result = self.orchestrator.generate(job.user_id, job.base_contract, job.version)
                progress(50)

                validation = self.validator.validate_contract(result.contract)
                if not validation.is_valid:
                    errors = validation.error_messages()
                    raise StructuralValidationError("Validation error: " + "; ".join(errors), errors)

                saved = self.store.create(
                    result.contract,
                    result.version,
                    {"optimizedBy": "gemini", "optimizedByModel": self.model_name},
                    job.user_id,
                    user_id=job.user_id,
                )
                progress(75)

                self._invalidate(job.user_id)
                progress(100)
            except Exception as e:
                message = str(e) or type(e).__name__
                retryable = is_retryable_message(message)
                logger.error("job_failed", error=message, retryable=retryable)
                raise GenerationJobError(message, retryable=retryable) from e

            explanation = _explanation(saved.meta) or _explanation(saved.json_.get("meta"))
            logger.info(
                "job_completed",
                contract_id=saved.id,
                version=saved.version,
                duration_ms=round((time.time() - start) * 1000, 1),
            )
            return GenerationJobResult(contract_id=saved.id, version=saved.version, explanation=explanation)

    def _invalidate(self, user_id: str) -> None:
        if self.cache is None:
            return
        try:
            self.cache.delete(user_contract_cache_key(user_id))
        except Exception as e:
            logger.warning("cache_delete_failed", user_id=user_id, error=str(e))


def _explanation(meta: Any) -> str | None:
    if isinstance(meta, dict) and isinstance(meta.get("optimizationExplanation"), str):
        return meta["optimizationExplanation"]
    return None
