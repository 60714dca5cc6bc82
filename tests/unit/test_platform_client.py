"""Tests for the platform API client."""

import json

import httpx
import pybreaker
import pytest
import respx
from unittest.mock import patch

from contract_engine.clients import PlatformClient, PlatformError
from contract_engine.generation import AnalyticsSummary

BASE_URL = "http://platform.test"


@pytest.fixture
def client():
    with PlatformClient(BASE_URL, timeout=1.0) as c:
        yield c


@pytest.fixture
def contract_payload(base_contract):
    return {
        "_id": "64f0c0ffee",
        "userId": "u1",
        "version": "1.2.3",
        "json": base_contract,
        "meta": {"optimizedBy": "gemini"},
        "createdAt": "2024-05-01T12:00:00Z",
    }


@pytest.mark.unit
def test_client_initialization():
    client = PlatformClient("http://platform.test/", timeout=3.0)

    assert client.base_url == "http://platform.test"
    assert client.timeout == 3.0
    assert isinstance(client._breaker, pybreaker.CircuitBreaker)
    assert client._breaker.name == "platform-http"


@pytest.mark.unit
@respx.mock
def test_find_latest_by_user(client, contract_payload):
    route = respx.get(f"{BASE_URL}/contracts/latest", params={"userId": "u1"}).mock(
        return_value=httpx.Response(200, json=contract_payload)
    )

    contract = client.find_latest_by_user("u1")

    assert route.called
    assert contract.id == "64f0c0ffee"
    assert contract.user_id == "u1"
    assert contract.version == "1.2.3"
    assert contract.json_["pagesUI"]["pages"]["home"]["scope"] == "public"
    assert contract.created_at.year == 2024


@pytest.mark.unit
@respx.mock
def test_missing_contract_is_none(client):
    respx.get(f"{BASE_URL}/contracts/latest").mock(return_value=httpx.Response(404))
    respx.get(f"{BASE_URL}/contracts/canonical/latest").mock(return_value=httpx.Response(404))

    assert client.find_latest_by_user("nobody") is None
    assert client.find_latest_canonical() is None


@pytest.mark.unit
@respx.mock
def test_find_latest_canonical(client, contract_payload):
    contract_payload.pop("userId")
    respx.get(f"{BASE_URL}/contracts/canonical/latest").mock(
        return_value=httpx.Response(200, json=contract_payload)
    )

    contract = client.find_latest_canonical()

    assert contract.user_id is None


@pytest.mark.unit
@respx.mock
def test_server_error_raises(client):
    respx.get(f"{BASE_URL}/contracts/latest").mock(return_value=httpx.Response(500))

    with pytest.raises(PlatformError, match="500"):
        client.find_latest_by_user("u1")


@pytest.mark.unit
@respx.mock
def test_create_posts_contract(client, contract_payload, base_contract):
    route = respx.post(f"{BASE_URL}/contracts").mock(return_value=httpx.Response(201, json=contract_payload))

    contract = client.create(base_contract, "1.2.3", {"optimizedBy": "gemini"}, "u1", user_id="u1")

    body = json.loads(route.calls.last.request.content)
    assert body == {
        "json": base_contract,
        "version": "1.2.3",
        "meta": {"optimizedBy": "gemini"},
        "createdBy": "u1",
        "userId": "u1",
    }
    assert contract.version == "1.2.3"


@pytest.mark.unit
@respx.mock
def test_aggregate(client):
    route = respx.post(f"{BASE_URL}/events/aggregate").mock(
        return_value=httpx.Response(
            200,
            json={
                "totalEvents": 10,
                "eventTypeDistribution": {"tap": 10},
                "errorRate": 0.0,
                "painPoints": [{"type": "long_dwell", "severity": "medium", "message": "Long dwell"}],
                "usageStats": {},
            },
        )
    )

    summary = client.aggregate("u1", {"profile", "dashboard"})

    assert json.loads(route.calls.last.request.content) == {"userId": "u1", "pages": ["dashboard", "profile"]}
    assert summary.total_events == 10
    assert summary.pain_points[0].type == "long_dwell"


@pytest.mark.unit
@respx.mock
def test_aggregate_degrades_to_empty_summary(client):
    respx.post(f"{BASE_URL}/events/aggregate").mock(side_effect=httpx.ConnectError("refused"))

    assert client.aggregate("u1", set()) == AnalyticsSummary()


@pytest.mark.unit
@respx.mock
def test_breaker_opens_after_repeated_transport_errors(client):
    """Test the HTTP circuit breaker trips after repeated failures."""
    respx.get(f"{BASE_URL}/contracts/latest").mock(side_effect=httpx.ConnectError("refused"))

    for _ in range(4):
        with pytest.raises(PlatformError, match="Platform request failed"):
            client.find_latest_by_user("u1")
    with pytest.raises(PlatformError):
        client.find_latest_by_user("u1")

    assert client._breaker.current_state == pybreaker.STATE_OPEN
    with pytest.raises(PlatformError, match="circuit open"):
        client.find_latest_by_user("u1")


@pytest.mark.unit
def test_breaker_state_change_logged(client):
    listener = client._breaker.listeners[0]

    with patch("contract_engine.clients.platform.logger") as mock_logger:
        listener.state_change(client._breaker, "closed", "open")

    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args[0][0] == "breaker_state_change"

