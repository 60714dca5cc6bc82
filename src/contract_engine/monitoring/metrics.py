"""
Metrics Collection
Prometheus metrics for contract generation
"""

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the generation pipeline.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

        # Generation metrics
        self.generation_requests_total = Counter(
            "contract_generation_requests_total",
            "Total number of contract generation requests",
            ["outcome"],
            registry=registry,
        )
        self.generation_duration = Histogram(
            "contract_generation_duration_seconds",
            "Contract generation duration in seconds",
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        # Backend metrics
        self.backend_calls_total = Counter(
            "contract_backend_calls_total",
            "Total number of generative backend calls",
            ["attempt", "status"],
            registry=registry,
        )
        self.backend_duration = Histogram(
            "contract_backend_duration_seconds",
            "Generative backend call duration in seconds",
            ["attempt"],
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=registry,
        )

        # Validation metrics
        self.validation_failures_total = Counter(
            "contract_validation_failures_total",
            "Total number of failed validations",
            ["stage"],
            registry=registry,
        )
        self.repairs_total = Counter(
            "contract_repairs_total",
            "Total number of repair passes applied",
            ["stage"],
            registry=registry,
        )

        # Circuit breaker
        self.breaker_open = Gauge(
            "contract_breaker_open",
            "1 while the generation circuit breaker is open",
            registry=registry,
        )

    def record_generation(self, outcome: str, duration: float) -> None:
        """Record a finished generation request."""
        self.generation_requests_total.labels(outcome=outcome).inc()
        self.generation_duration.observe(duration)

    def record_backend_call(self, attempt: str, status: str, duration: float) -> None:
        """Record a generative backend call."""
        self.backend_calls_total.labels(attempt=attempt, status=status).inc()
        self.backend_duration.labels(attempt=attempt).observe(duration)

    def record_validation_failure(self, stage: str) -> None:
        self.validation_failures_total.labels(stage=stage).inc()

    def record_repair(self, stage: str) -> None:
        self.repairs_total.labels(stage=stage).inc()

    def set_breaker_open(self, is_open: bool) -> None:
        self.breaker_open.set(1 if is_open else 0)


# Global metrics collector instance
metrics_collector = MetricsCollector()
