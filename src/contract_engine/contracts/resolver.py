"""Effective (canonical + personalized) contract resolution for a user."""

from typing import Any

from ..core import get_logger
from ..core.cache import Cache
from .merger import merge_contracts
from .sanitizer import FlutterSanitizer
from .store import ContractStore, PersistedContract

logger = get_logger(__name__)


def user_contract_cache_key(user_id: str) -> str:
    return f"contracts:user:{user_id}"


class UserContractResolver:
    """
    Serves a user's effective contract.

    Personalized pages are merged over the latest canonical contract and the
    result is sanitized for the Flutter client. Results are memoized in the
    cache; cache failures only skip memoization.
    """

    def __init__(
        self,
        store: ContractStore,
        cache: Cache | None = None,
        sanitizer: FlutterSanitizer | None = None,
        ttl_seconds: int = 300,
    ) -> None:
        self.store = store
        self.cache = cache
        self.sanitizer = sanitizer or FlutterSanitizer()
        self.ttl_seconds = ttl_seconds

    def resolve(self, user_id: str) -> dict[str, Any] | None:
        key = user_contract_cache_key(user_id)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        personalized = self.store.find_latest_by_user(user_id)
        canonical = self.store.find_latest_canonical()
        if personalized is None and canonical is None:
            return None

        if personalized is not None and personalized.user_id:
            merged = merge_contracts(canonical.json_ if canonical else {}, personalized.json_)
            version = canonical.version if canonical else personalized.version
            result = self._envelope(user_id, canonical, version, merged)
        else:
            result = self._envelope(
                user_id, canonical, canonical.version if canonical else "", canonical.json_ if canonical else {}
            )

        self._cache_set(key, result)
        return result

    def invalidate(self, user_id: str) -> None:
        if self.cache is None:
            return
        try:
            self.cache.delete(user_contract_cache_key(user_id))
        except Exception as e:
            logger.warning("cache_delete_failed", user_id=user_id, error=str(e))

    def _envelope(
        self, user_id: str, canonical: PersistedContract | None, version: str, json: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "id": canonical.id if canonical else "",
            "userId": user_id,
            "version": version,
            "json": self.sanitizer.filter_for_flutter(json),
            "meta": dict(canonical.meta) if canonical else {},
        }

    def _cache_get(self, key: str) -> dict[str, Any] | None:
        if self.cache is None:
            return None
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None

    def _cache_set(self, key: str, value: dict[str, Any]) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, value, self.ttl_seconds)
        except Exception as e:
            logger.warning("cache_set_failed", key=key, error=str(e))
