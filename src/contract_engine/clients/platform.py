"""Platform API Client"""

from typing import Any, Callable

import httpx
import pybreaker

from ..contracts import PersistedContract
from ..core import get_logger
from ..generation.analytics import AnalyticsSummary

logger = get_logger(__name__)


class PlatformError(Exception):
    """Platform API request failed or the platform is unavailable."""


class PlatformClient:
    """
    Client for the platform REST API with circuit breaker protection.

    Implements the contract store and analytics provider interfaces used by
    the generation pipeline. Missing resources map to None.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize platform client with circuit breaker.

        Args:
            base_url: Base URL of the platform API
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (auth headers, transport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

        class BreakerListener(pybreaker.CircuitBreakerListener):
            """Listener for circuit breaker state changes."""

            def state_change(self, cb, old_state, new_state):
                logger.warning(
                    "breaker_state_change",
                    breaker=cb.name,
                    from_state=str(old_state),
                    to_state=str(new_state),
                )

        self._breaker = pybreaker.CircuitBreaker(
            fail_max=5,
            reset_timeout=30,
            name="platform-http",
            listeners=[BreakerListener()],
        )

        logger.info("client_init", url=self.base_url)

    def _request(self, op: str, make_request: Callable[[], httpx.Response]) -> httpx.Response | None:
        """Run a request through the breaker; 404 yields None."""
        try:
            response = self._breaker.call(make_request)
        except pybreaker.CircuitBreakerError as e:
            logger.error(f"{op}_failed", error="Circuit breaker open - platform unavailable")
            raise PlatformError("Platform unavailable (circuit open)") from e
        except httpx.HTTPError as e:
            logger.warning(f"{op}_http_error", error=str(e))
            raise PlatformError(f"Platform request failed: {e}") from e

        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"{op}_http_error", status=response.status_code)
            raise PlatformError(f"Platform returned {response.status_code} for {op}") from e
        return response

    def _contract(self, op: str, response: httpx.Response | None) -> PersistedContract | None:
        if response is None:
            return None
        data = response.json()
        if not isinstance(data, dict):
            logger.error("invalid_response", op=op, type=type(data).__name__)
            raise PlatformError(f"Unexpected response for {op}")
        return PersistedContract.model_validate(data)

    # ========================================================================
    # Contract store
    # ========================================================================

    def find_latest_by_user(self, user_id: str) -> PersistedContract | None:
        url = f"{self.base_url}/contracts/latest"
        response = self._request(
            "find_latest_by_user", lambda: self._client.get(url, params={"userId": user_id})
        )
        return self._contract("find_latest_by_user", response)

    def find_latest_canonical(self) -> PersistedContract | None:
        url = f"{self.base_url}/contracts/canonical/latest"
        response = self._request("find_latest_canonical", lambda: self._client.get(url))
        return self._contract("find_latest_canonical", response)

    def create(
        self,
        json: dict[str, Any],
        version: str,
        meta: dict[str, Any],
        created_by: str,
        user_id: str | None = None,
    ) -> PersistedContract:
        """
        Persist a contract version.

        Raises:
            PlatformError: Request failed or the platform returned nothing
        """
        url = f"{self.base_url}/contracts"
        payload = {"json": json, "version": version, "meta": meta, "createdBy": created_by}
        if user_id:
            payload["userId"] = user_id

        response = self._request("create_contract", lambda: self._client.post(url, json=payload))
        contract = self._contract("create_contract", response)
        if contract is None:
            raise PlatformError("Contract endpoint not found")
        logger.info("contract_created", contract_id=contract.id, version=contract.version)
        return contract

    # ========================================================================
    # Analytics
    # ========================================================================

    def aggregate(self, user_id: str, allowed_pages: set[str]) -> AnalyticsSummary:
        """
        Aggregate the user's events over the given pages.

        Analytics only enrich prompts, so an unavailable platform yields an
        empty summary instead of an error.
        """
        url = f"{self.base_url}/events/aggregate"
        payload = {"userId": user_id, "pages": sorted(allowed_pages)}
        try:
            response = self._request("aggregate", lambda: self._client.post(url, json=payload))
        except PlatformError as e:
            logger.warning("aggregate_unavailable", error=str(e))
            return AnalyticsSummary()
        if response is None:
            return AnalyticsSummary()
        return AnalyticsSummary.model_validate(response.json())

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PlatformClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
