"""Tests for Prometheus metrics collection."""

import pytest


def _value(metrics, name, **labels):
    return metrics.registry.get_sample_value(name, labels or None)


@pytest.mark.unit
def test_record_generation(metrics):
    metrics.record_generation("success", 1.5)
    metrics.record_generation("success", 0.5)

    assert _value(metrics, "contract_generation_requests_total", outcome="success") == 2
    assert _value(metrics, "contract_generation_duration_seconds_sum") == 2.0


@pytest.mark.unit
def test_record_backend_call(metrics):
    metrics.record_backend_call("call_1", "timeout", 60.0)

    assert _value(metrics, "contract_backend_calls_total", attempt="call_1", status="timeout") == 1
    assert _value(metrics, "contract_backend_duration_seconds_count", attempt="call_1") == 1


@pytest.mark.unit
def test_validation_and_repairs(metrics):
    metrics.record_validation_failure("validate_1")
    metrics.record_repair("repair_1")

    assert _value(metrics, "contract_validation_failures_total", stage="validate_1") == 1
    assert _value(metrics, "contract_repairs_total", stage="repair_1") == 1


@pytest.mark.unit
def test_breaker_gauge(metrics):
    metrics.set_breaker_open(True)
    assert _value(metrics, "contract_breaker_open") == 1

    metrics.set_breaker_open(False)
    assert _value(metrics, "contract_breaker_open") == 0
