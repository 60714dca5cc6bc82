"""
Generation Orchestrator
Drives one personalization run: prompt the backend, post-process its output,
validate, repair and retry until a valid contract is produced or the retry
ladder is exhausted.
"""

import copy
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from ..contracts import (
    Contract,
    ContractRepairer,
    ContractStore,
    ContractValidator,
    FlutterSanitizer,
    authenticated_pages,
    default_thresholds,
    explain_changes,
    get_pages,
)
from ..contracts.repairer import DEFAULT_VERSION, parse_leading_int
from ..core import LogContext, Settings, extract_json, get_logger, get_settings, hash_fields, JSONParseError
from ..core.cache import Cache
from ..models import GenerativeBackend
from ..monitoring import MetricsCollector, metrics_collector
from .analytics import AnalyticsProvider, AnalyticsSummary
from .breaker import CircuitBreaker, get_circuit_breaker
from .errors import BackendCallError, BackendUnavailableError, StructuralValidationError
from .prompts import ContractPromptBuilder

logger = get_logger(__name__)

CIRCUIT_OPEN_MESSAGE = "LLM service temporarily unavailable due to repeated failures."
PARSE_FAILURE_ERROR = "$: Response did not contain a parseable JSON object"
DEFAULT_EXPLANATION = "Generated by Gemini"


def bump_patch(version: str) -> str:
    """
    ``"1.2.3" -> "1.2.4"``.

    Each part is read by its leading integer (``"3-rc.1"`` is 3). A missing
    part or one without leading digits restarts at ``0.1.0``.
    """
    parts = str(version).split(".")
    numbers = [parse_leading_int(p) for p in parts[:3]]
    if len(numbers) < 3 or None in numbers:
        return DEFAULT_VERSION
    major, minor, patch = numbers
    return f"{major}.{minor}.{patch + 1}"


class Stage(str, Enum):
    """Orchestrator states, in the order a full run visits them."""

    CIRCUIT_CHECK = "circuit_check"
    BUILD_CONTEXT = "build_context"
    CALL_1 = "call_1"
    VALIDATE_1 = "validate_1"
    REPAIR_1 = "repair_1"
    CALL_2 = "call_2"
    VALIDATE_FINAL = "validate_final"
    FORCE_REPAIR = "force_repair"
    SUCCESS = "success"


@dataclass
class GenerationRun:
    """Mutable per-run data threaded through the stage handlers."""

    user_id: str
    base_contract: Contract | None = None
    version: str | None = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    # Filled by BUILD_CONTEXT
    current: Contract = field(default_factory=dict)
    current_version: str = DEFAULT_VERSION
    allowed_pages: set[str] = field(default_factory=set)
    analytics: AnalyticsSummary = field(default_factory=AnalyticsSummary)

    # Latest backend output: scope-filtered (pre-sanitize) and post-processed
    raw: Contract = field(default_factory=dict)
    candidate: Contract = field(default_factory=dict)
    parse_failed: bool = False

    first_errors: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    trace: list[Stage] = field(default_factory=list)

    def prompt_contract(self) -> Contract:
        """Authenticated subset of the current contract sent to the backend."""
        meta = self.current.get("meta")
        return {
            "version": self.current_version,
            "meta": copy.deepcopy(meta) if isinstance(meta, dict) else {},
            "pagesUI": {"pages": copy.deepcopy(authenticated_pages(self.current))},
        }


@dataclass(frozen=True)
class GenerationResult:
    version: str
    contract: Contract
    trace: tuple[Stage, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "json": self.contract}


class GenerationOrchestrator:
    """
    Personalized contract generation.

    Each call to :meth:`generate` is independent; the circuit breaker is the
    only state shared between concurrent runs.
    """

    def __init__(
        self,
        backend: GenerativeBackend | None,
        store: ContractStore,
        analytics: AnalyticsProvider,
        breaker: CircuitBreaker | None = None,
        cache: Cache | None = None,
        sanitizer: FlutterSanitizer | None = None,
        validator: ContractValidator | None = None,
        repairer: ContractRepairer | None = None,
        settings: Settings | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Args:
            backend: Generative backend, None when generation is disabled
            store: Source of the user's latest contract
            analytics: Usage analytics for prompt context
            breaker: Shared circuit breaker (process-wide one by default)
            cache: Best-effort memoization of analytics summaries
            sanitizer: Flutter-target transform applied to backend output
            validator: Contract validator
            repairer: Contract repairer
            settings: Timeouts and cache TTLs
            metrics: Metrics collector
        """
        self.backend = backend
        self.store = store
        self.analytics = analytics
        self.breaker = breaker or get_circuit_breaker()
        self.cache = cache
        self.sanitizer = sanitizer or FlutterSanitizer()
        self.validator = validator or ContractValidator()
        self.repairer = repairer or ContractRepairer(self.validator)
        self.settings = settings or get_settings()
        self.metrics = metrics or metrics_collector
        self.prompts = ContractPromptBuilder()
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.backend_workers, thread_name_prefix="contract-backend"
        )

        self._handlers: dict[Stage, Callable[[GenerationRun], Stage]] = {
            Stage.CIRCUIT_CHECK: self._circuit_check,
            Stage.BUILD_CONTEXT: self._build_context,
            Stage.CALL_1: self._call_1,
            Stage.VALIDATE_1: self._validate_1,
            Stage.REPAIR_1: self._repair_1,
            Stage.CALL_2: self._call_2,
            Stage.VALIDATE_FINAL: self._validate_final,
            Stage.FORCE_REPAIR: self._force_repair,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self.backend is not None

    def is_circuit_open(self) -> bool:
        is_open = self.breaker.is_open()
        self.metrics.set_breaker_open(is_open)
        return is_open

    def reset_circuit_breaker(self) -> None:
        self.breaker.reset()
        self.metrics.set_breaker_open(False)

    def generate(
        self,
        user_id: str,
        base_contract: Contract | None = None,
        version: str | None = None,
    ) -> GenerationResult:
        """
        Generate a personalized contract for a user.

        Args:
            user_id: User to personalize for
            base_contract: Current contract (defaults to the user's latest)
            version: Current version (defaults to the user's latest)

        Returns:
            Validated contract with the next patch version

        Raises:
            BackendUnavailableError: Circuit is open
            BackendCallError: Backend call timed out or failed
            StructuralValidationError: No valid contract after repair and retry
        """
        run = GenerationRun(user_id=user_id, base_contract=base_contract, version=version)
        start = time.time()

        with LogContext(user_id=user_id, run_id=run.run_id):
            if not self.enabled:
                result = self._fallback(run)
                self.metrics.record_generation("fallback", time.time() - start)
                return result

            try:
                result = self._run(run)
            except BackendUnavailableError:
                self.metrics.record_generation("unavailable", time.time() - start)
                raise
            except Exception as e:
                self.breaker.record_failure()
                self.metrics.set_breaker_open(self.breaker.is_open())
                self.metrics.record_generation(_outcome(e), time.time() - start)
                logger.error(
                    "generation_failed",
                    stage=run.trace[-1].value if run.trace else None,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            self.breaker.record_success()
            self.metrics.set_breaker_open(False)
            self.metrics.record_generation("success", time.time() - start)
            logger.info(
                "generation_complete",
                version=result.version,
                stages=[s.value for s in result.trace],
                duration_ms=round((time.time() - start) * 1000, 1),
            )
            return result

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _run(self, run: GenerationRun) -> GenerationResult:
        stage = Stage.CIRCUIT_CHECK
        while stage is not Stage.SUCCESS:
            run.trace.append(stage)
            logger.debug("stage_enter", stage=stage.value)
            stage = self._handlers[stage](run)
        run.trace.append(Stage.SUCCESS)
        return self._succeed(run)

    def _circuit_check(self, run: GenerationRun) -> Stage:
        if self.is_circuit_open():
            logger.warning("circuit_open_rejected")
            raise BackendUnavailableError(CIRCUIT_OPEN_MESSAGE)
        return Stage.BUILD_CONTEXT

    def _build_context(self, run: GenerationRun) -> Stage:
        self._resolve_current(run)
        run.allowed_pages = set(authenticated_pages(run.current))
        run.analytics = self._load_analytics(run.user_id, run.allowed_pages)
        logger.info(
            "context_built",
            current_version=run.current_version,
            pages=len(run.allowed_pages),
            total_events=run.analytics.total_events,
        )
        return Stage.CALL_1

    def _call_1(self, run: GenerationRun) -> Stage:
        prompt = self.prompts.user_prompt(run.prompt_contract(), run.analytics)
        self._accept(run, self._call(prompt, attempt="1"))
        if run.parse_failed:
            # Nothing to repair; go straight to the correction prompt.
            run.first_errors = [PARSE_FAILURE_ERROR]
            self.metrics.record_validation_failure("parse_1")
            return Stage.CALL_2
        return Stage.VALIDATE_1

    def _validate_1(self, run: GenerationRun) -> Stage:
        run.first_errors = self._errors(run.candidate)
        if not run.first_errors:
            return Stage.SUCCESS
        self.metrics.record_validation_failure(Stage.VALIDATE_1.value)
        logger.info("validation_failed", stage=Stage.VALIDATE_1.value, errors=run.first_errors[:10])
        return Stage.REPAIR_1

    def _repair_1(self, run: GenerationRun) -> Stage:
        repaired = self._repair(run, run.candidate, Stage.REPAIR_1)
        errors = self._errors(repaired)
        if not errors:
            run.candidate = repaired
            return Stage.SUCCESS
        self.metrics.record_validation_failure(Stage.REPAIR_1.value)
        return Stage.CALL_2

    def _call_2(self, run: GenerationRun) -> Stage:
        prompt = self.prompts.retry_prompt(run.prompt_contract(), run.analytics, run.first_errors)
        self._accept(run, self._call(prompt, attempt="2"))
        if run.parse_failed:
            self.metrics.record_validation_failure("parse_2")
        run.candidate = self._repair(run, run.candidate, Stage.CALL_2)
        return Stage.VALIDATE_FINAL

    def _validate_final(self, run: GenerationRun) -> Stage:
        run.errors = self._errors(run.candidate)
        if not run.errors:
            return Stage.SUCCESS
        self.metrics.record_validation_failure(Stage.VALIDATE_FINAL.value)
        logger.warning("validation_failed", stage=Stage.VALIDATE_FINAL.value, errors=run.errors[:10])
        return Stage.FORCE_REPAIR

    def _force_repair(self, run: GenerationRun) -> Stage:
        forced = self._repair(run, run.raw, Stage.FORCE_REPAIR)
        errors = self._errors(forced)
        if errors:
            self.metrics.record_validation_failure(Stage.FORCE_REPAIR.value)
            raise StructuralValidationError(f"validation error after repair: {'; '.join(errors)}", errors)
        run.candidate = forced
        return Stage.SUCCESS

    def _succeed(self, run: GenerationRun) -> GenerationResult:
        final = copy.deepcopy(run.candidate)
        meta = final.get("meta")
        if not isinstance(meta, dict):
            meta = {}
        final["meta"] = meta
        meta["isPartial"] = False

        summary = explain_changes(run.current, final)
        meta["changeSummary"] = summary
        explanation = meta.get("optimizationExplanation")
        if not isinstance(explanation, str) or not explanation.strip():
            meta["optimizationExplanation"] = summary

        return GenerationResult(
            version=bump_patch(run.current_version),
            contract=final,
            trace=tuple(run.trace),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fallback(self, run: GenerationRun) -> GenerationResult:
        """Backend disabled: hand back the authenticated subset unchanged."""
        self._resolve_current(run)
        meta = run.current.get("meta")
        meta = copy.deepcopy(meta) if isinstance(meta, dict) else {}
        meta["isPartial"] = True
        meta.setdefault("optimizationExplanation", "Generation disabled; authenticated pages carried over")
        contract = {
            "version": run.current_version,
            "meta": meta,
            "pagesUI": {"pages": copy.deepcopy(authenticated_pages(run.current))},
            "thresholds": default_thresholds(),
        }
        logger.warning("generation_fallback", pages=len(contract["pagesUI"]["pages"]))
        return GenerationResult(version=bump_patch(run.current_version), contract=contract)

    def _resolve_current(self, run: GenerationRun) -> None:
        latest = None
        if run.base_contract is None or not run.version:
            latest = self.store.find_latest_by_user(run.user_id)

        if run.base_contract is not None:
            run.current = run.base_contract
        elif latest is not None and isinstance(latest.json_, dict):
            run.current = latest.json_
        else:
            run.current = {}

        if run.version:
            run.current_version = run.version
        elif latest is not None and latest.version:
            run.current_version = latest.version
        else:
            run.current_version = DEFAULT_VERSION

    def _load_analytics(self, user_id: str, allowed_pages: set[str]) -> AnalyticsSummary:
        key = f"analytics:{user_id}:{hash_fields(*sorted(allowed_pages))}"
        if self.cache is not None:
            try:
                cached = self.cache.get(key)
            except Exception as e:
                logger.warning("cache_get_failed", key=key, error=str(e))
                cached = None
            if isinstance(cached, AnalyticsSummary):
                return cached

        summary = self.analytics.aggregate(user_id, allowed_pages)

        if self.cache is not None:
            try:
                self.cache.set(key, summary, self.settings.analytics_cache_ttl)
            except Exception as e:
                logger.warning("cache_set_failed", key=key, error=str(e))
        return summary

    def _call(self, user_prompt: str, attempt: str) -> str:
        """
        Invoke the backend in a worker thread, bounded by the configured timeout.

        The Gemini SDK call is blocking and cannot be interrupted: a timed-out
        call is abandoned but keeps its worker until the SDK returns. Once
        ``backend_workers`` calls hang, later calls time out while queued.
        """
        timeout = self.settings.backend_timeout
        start = time.time()
        future = self._executor.submit(self.backend.generate, self.prompts.system_prompt(), user_prompt)
        try:
            text = future.result(timeout=timeout)
        except FuturesTimeout as e:
            future.cancel()  # only takes effect while still queued
            self.metrics.record_backend_call(attempt, "timeout", time.time() - start)
            raise BackendCallError(f"Backend call timed out after {timeout}s", e) from e
        except Exception as e:
            self.metrics.record_backend_call(attempt, "error", time.time() - start)
            raise BackendCallError(f"Backend call failed: {e}", e) from e

        self.metrics.record_backend_call(attempt, "success", time.time() - start)
        logger.debug("backend_response", attempt=attempt, length=len(text or ""))
        return text or ""

    def _accept(self, run: GenerationRun, text: str) -> None:
        """Parse, scope-filter, sanitize and version-stamp backend output."""
        try:
            parsed = extract_json(text)
            run.parse_failed = False
        except JSONParseError as e:
            logger.warning("parse_failed", error=str(e), preview=text[:200])
            parsed = {"meta": {}, "pagesUI": {"pages": {}}}
            run.parse_failed = True

        meta = parsed.get("meta")
        meta = dict(meta) if isinstance(meta, dict) else {}
        if not meta.get("optimizationExplanation"):
            meta["optimizationExplanation"] = DEFAULT_EXPLANATION
        parsed["meta"] = meta
        if not isinstance(parsed.get("pagesUI"), dict):
            parsed["pagesUI"] = {"pages": {}}

        scoped = self._scope_filter(parsed, run.current)
        run.raw = scoped
        run.candidate = self._stamp(self.sanitizer.filter_for_flutter(scoped), run.current_version)

    @staticmethod
    def _scope_filter(candidate: Contract, base: Contract) -> Contract:
        """Keep only authenticated pages; borrow the base's when none survive."""
        out = copy.deepcopy(candidate)
        pages_ui = out.get("pagesUI")
        pages_ui = pages_ui if isinstance(pages_ui, dict) else {}
        pages_ui.pop("routes", None)

        kept = authenticated_pages(out)
        dropped = set(get_pages(out)) - set(kept)
        if dropped:
            logger.info("scope_filter_dropped", pages=sorted(dropped))
        if not kept:
            kept = copy.deepcopy(authenticated_pages(base))
        pages_ui["pages"] = kept
        out["pagesUI"] = pages_ui
        return out

    def _repair(self, run: GenerationRun, candidate: Contract, stage: Stage) -> Contract:
        self.metrics.record_repair(stage.value)
        return self._stamp(self.repairer.repair(candidate, base=run.current), run.current_version)

    @staticmethod
    def _stamp(contract: Contract, version: str) -> Contract:
        contract["version"] = version
        return contract

    def _errors(self, contract: Contract) -> list[str]:
        return self.validator.validate_contract(contract).error_messages()

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


def _outcome(error: Exception) -> str:
    if isinstance(error, StructuralValidationError):
        return "validation_error"
    if isinstance(error, BackendCallError):
        return "backend_error"
    return "error"
