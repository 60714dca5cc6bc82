"""Pytest configuration and fixtures."""

import copy
import os
from datetime import datetime, timezone
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from contract_engine.contracts import PersistedContract
from contract_engine.core import MemoryCache
from contract_engine.core.config import Settings
from contract_engine.generation import AnalyticsSummary, CircuitBreaker, PainPoint
from contract_engine.monitoring import MetricsCollector


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["CONTRACT_LOG_LEVEL"] = "DEBUG"
    os.environ["CONTRACT_PLATFORM_URL"] = "http://platform.test"


# ============================================================================
# Test Doubles
# ============================================================================

class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class InMemoryStore:
    """Contract store keeping every version in insertion order."""

    def __init__(self, contracts: list[PersistedContract] | None = None) -> None:
        self.contracts = list(contracts or [])
        self.created: list[dict[str, Any]] = []

    def find_latest_by_user(self, user_id: str) -> PersistedContract | None:
        matches = [c for c in self.contracts if c.user_id == user_id]
        return matches[-1] if matches else None

    def find_latest_canonical(self) -> PersistedContract | None:
        matches = [c for c in self.contracts if c.user_id is None]
        return matches[-1] if matches else None

    def create(self, json, version, meta, created_by, user_id=None) -> PersistedContract:
        self.created.append(
            {"json": json, "version": version, "meta": meta, "created_by": created_by, "user_id": user_id}
        )
        contract = PersistedContract(
            _id=f"c{len(self.contracts) + 1}",
            userId=user_id,
            version=version,
            json=copy.deepcopy(json),
            meta=meta,
            createdAt=datetime.now(timezone.utc),
        )
        self.contracts.append(contract)
        return contract


class FakeAnalytics:
    """Analytics provider returning a fixed summary and recording calls."""

    def __init__(self, summary: AnalyticsSummary) -> None:
        self.summary = summary
        self.calls: list[tuple[str, set[str]]] = []

    def aggregate(self, user_id: str, allowed_pages: set[str]) -> AnalyticsSummary:
        self.calls.append((user_id, set(allowed_pages)))
        return self.summary


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Test settings with the generative backend enabled."""
    return Settings(
        _env_file=None,
        gemini_api_key="test-api-key",
        backend_timeout=2.0,
        analytics_cache_ttl=60,
    )


@pytest.fixture
def metrics():
    """Metrics collector on an isolated registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def breaker(clock):
    """Circuit breaker driven by the fake clock."""
    return CircuitBreaker(threshold=3, cooldown_ms=60_000, clock=clock)


@pytest.fixture
def cache():
    return MemoryCache(max_size=50)


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def base_contract():
    """Canonical contract with one public and two authenticated pages."""
    return {
        "version": "1.0.0",
        "meta": {"appName": "Shop", "optimizationExplanation": ""},
        "thresholds": {
            "rageThreshold": 3,
            "rageWindowMs": 1000,
            "repeatThreshold": 3,
            "repeatWindowMs": 2000,
            "formRepeatWindowMs": 10000,
            "formFailWindowMs": 10000,
        },
        "services": {
            "catalog": {"endpoints": {"list": {"method": "GET", "path": "/products"}}},
        },
        "pagesUI": {
            "routes": {
                "/": {"pageId": "home"},
                "/dashboard": {"pageId": "dashboard"},
                "/profile": {"pageId": "profile"},
            },
            "pages": {
                "home": {
                    "scope": "public",
                    "title": "Home",
                    "children": [{"type": "text", "text": "Welcome"}],
                },
                "dashboard": {
                    "scope": "authenticated",
                    "title": "Dashboard",
                    "children": [
                        {"type": "text", "text": "Hello"},
                        {"type": "button", "text": "Refresh", "onTap": {"action": "refreshData"}},
                    ],
                },
                "profile": {
                    "scope": "authenticated",
                    "title": "Profile",
                    "children": [
                        {"type": "textField", "binding": "${state.name}", "validation": {"required": True}},
                    ],
                },
            },
        },
    }


@pytest.fixture
def analytics_summary():
    return AnalyticsSummary(
        totalEvents=42,
        eventTypeDistribution={"tap": 30, "view": 10, "error": 2},
        errorRate=2 / 42,
        painPoints=[
            PainPoint(
                type="rage_click",
                severity="high",
                message="Rapid repeated taps detected",
                metadata={"componentId": "refresh", "count": 4},
            )
        ],
        usageStats={"topPages": ["dashboard"]},
    )


@pytest.fixture
def analytics(analytics_summary):
    return FakeAnalytics(analytics_summary)


@pytest.fixture
def store():
    return InMemoryStore()
