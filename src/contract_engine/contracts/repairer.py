"""
Contract Repairer
Deterministic, non-generative fixes that coerce a candidate contract into a
shape likely to pass validation.
"""

import copy
import math
import re
from typing import Any

from ..core import get_logger
from .types import Contract, get_pages, is_personalizable
from .validator import ContractValidator

logger = get_logger(__name__)

DEFAULT_VERSION = "0.1.0"

DEFAULT_THRESHOLDS: dict[str, int] = {
    "rageThreshold": 3,
    "rageWindowMs": 1000,
    "repeatThreshold": 3,
    "repeatWindowMs": 2000,
    "formRepeatWindowMs": 10000,
    "formFailWindowMs": 10000,
}

ALLOWED_TOP_LEVEL_KEYS = ("version", "meta", "pagesUI", "thresholds")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(text: str) -> int | None:
    """parseInt-style: the leading integer of ``text``, or None if it has none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def default_thresholds() -> dict[str, int]:
    return dict(DEFAULT_THRESHOLDS)


def _coerce_int(value: Any, default: int) -> int:
    """Integer coercion with parseInt-style leading-digit parsing."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    parsed = parse_leading_int(str(value)) if value is not None else None
    return default if parsed is None else parsed


def _coerce_version(value: Any) -> str:
    if isinstance(value, str):
        return value if value.strip() else DEFAULT_VERSION
    if value is None or value is False or value == 0:
        return DEFAULT_VERSION
    return str(value)


class ContractRepairer:
    """Best-effort contract repair. Never raises."""

    def __init__(self, validator: ContractValidator | None = None) -> None:
        self.validator = validator or ContractValidator()

    def repair(self, candidate: Any, base: Contract | None = None) -> Contract:
        """
        Repair a candidate contract.

        The result only ever contains the keys version, meta, pagesUI and
        thresholds. Inputs are not mutated.

        Args:
            candidate: Contract-like value (any shape)
            base: Contract whose authenticated pages fill an empty page map

        Returns:
            Repaired contract
        """
        try:
            return self._repair(candidate, base)
        except Exception as e:
            logger.error("repair_failed", error=str(e), exc_info=True)
            return {
                "version": DEFAULT_VERSION,
                "meta": {"optimizationExplanation": ""},
                "pagesUI": {"pages": {}},
                "thresholds": default_thresholds(),
            }

    def _repair(self, candidate: Any, base: Contract | None) -> Contract:
        source = candidate if isinstance(candidate, dict) else {}
        out: Contract = {}

        out["version"] = _coerce_version(source.get("version"))

        meta = source.get("meta")
        meta = copy.deepcopy(meta) if isinstance(meta, dict) else {}
        meta.pop("isPartial", None)
        if not isinstance(meta.get("optimizationExplanation"), str):
            meta["optimizationExplanation"] = ""
        out["meta"] = meta

        thresholds = source.get("thresholds")
        if isinstance(thresholds, dict):
            coerced = copy.deepcopy(thresholds)
            for key, default in DEFAULT_THRESHOLDS.items():
                coerced[key] = _coerce_int(thresholds.get(key), default)
            out["thresholds"] = coerced
        else:
            out["thresholds"] = default_thresholds()

        out["pagesUI"] = self._repair_pages_ui(source.get("pagesUI"), base)

        # Anything outside ALLOWED_TOP_LEVEL_KEYS never reaches `out`.
        result = self.validator.validate_contract(out)
        if not result.is_valid:
            if not isinstance(out["pagesUI"].get("pages"), dict):
                out["pagesUI"] = {"pages": {}}
            logger.debug("repair_still_invalid", errors=result.error_messages()[:10])

        return out

    def _repair_pages_ui(self, pages_ui: Any, base: Contract | None) -> dict[str, Any]:
        repaired = copy.deepcopy(pages_ui) if isinstance(pages_ui, dict) else {}
        own_pages = repaired.get("pages")
        if not isinstance(own_pages, dict):
            repaired["pages"] = {}

        if not repaired["pages"]:
            donor = get_pages(base) or (own_pages if isinstance(own_pages, dict) else {})
            borrowed = {name: copy.deepcopy(page) for name, page in donor.items() if is_personalizable(page)}
            if borrowed:
                logger.info("repair_borrowed_pages", pages=sorted(borrowed))
            repaired["pages"] = borrowed

        return repaired
