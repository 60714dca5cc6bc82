"""Dependency Injection Container."""

from injector import Injector, Module, provider, singleton

from ..clients import PlatformClient
from ..contracts import (
    ContractRepairer,
    ContractValidator,
    FlutterSanitizer,
    UserContractResolver,
    load_doc_features,
)
from ..generation import CircuitBreaker, GenerationJobProcessor, GenerationOrchestrator, get_circuit_breaker
from ..models import ModelLoader
from .cache import MemoryCache
from .config import Settings, get_settings
from .logging_config import configure_logging


class CoreModule(Module):
    """Core dependencies."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_cache(self) -> MemoryCache:
        return MemoryCache(max_size=self.settings.cache_size)

    @singleton
    @provider
    def provide_breaker(self) -> CircuitBreaker:
        """
        Provide the generation circuit breaker shared by all runs.

        A container built from the global settings shares the process-wide
        breaker; one built from explicit settings owns its own.
        """
        if self.settings is get_settings():
            return get_circuit_breaker()
        return CircuitBreaker(
            threshold=self.settings.breaker_threshold,
            cooldown_ms=self.settings.breaker_cooldown_ms,
        )

    @singleton
    @provider
    def provide_validator(self) -> ContractValidator:
        return ContractValidator(load_doc_features(self.settings.docs_dir))

    @singleton
    @provider
    def provide_repairer(self, validator: ContractValidator) -> ContractRepairer:
        return ContractRepairer(validator)

    @singleton
    @provider
    def provide_sanitizer(self) -> FlutterSanitizer:
        return FlutterSanitizer()

    @singleton
    @provider
    def provide_platform_client(self) -> PlatformClient:
        return PlatformClient(self.settings.platform_url, timeout=self.settings.platform_timeout)

    @singleton
    @provider
    def provide_resolver(
        self, platform: PlatformClient, cache: MemoryCache, sanitizer: FlutterSanitizer
    ) -> UserContractResolver:
        return UserContractResolver(
            platform, cache=cache, sanitizer=sanitizer, ttl_seconds=self.settings.merged_contract_ttl
        )

    @singleton
    @provider
    def provide_orchestrator(
        self,
        platform: PlatformClient,
        breaker: CircuitBreaker,
        cache: MemoryCache,
        sanitizer: FlutterSanitizer,
        validator: ContractValidator,
        repairer: ContractRepairer,
    ) -> GenerationOrchestrator:
        """Provide orchestrator; a disabled backend selects the fallback path."""
        return GenerationOrchestrator(
            backend=ModelLoader.load(self.settings),
            store=platform,
            analytics=platform,
            breaker=breaker,
            cache=cache,
            sanitizer=sanitizer,
            validator=validator,
            repairer=repairer,
            settings=self.settings,
        )

    @singleton
    @provider
    def provide_job_processor(
        self,
        orchestrator: GenerationOrchestrator,
        platform: PlatformClient,
        cache: MemoryCache,
        validator: ContractValidator,
    ) -> GenerationJobProcessor:
        return GenerationJobProcessor(
            orchestrator,
            store=platform,
            cache=cache,
            validator=validator,
            model_name=self.settings.gemini_model,
        )


def create_container(settings: Settings | None = None) -> Injector:
    """Configure logging and create the injector."""
    module = CoreModule(settings)
    configure_logging(module.settings.log_level, module.settings.json_logs)
    return Injector([module])
