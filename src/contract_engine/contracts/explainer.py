"""Human-readable change summaries between two contract versions."""

from typing import Any

from ..core import get_logger
from .types import get_pages

logger = get_logger(__name__)

NO_CHANGES = "Minor sanitization applied; no structural changes."


def _fmt(value: Any) -> str:
    return "n/a" if value is None else str(value)


def _count_components(page: Any) -> int:
    """Best-effort component count: `children`, then legacy `components`."""
    if not isinstance(page, dict):
        return 0
    for key in ("children", "components"):
        comps = page.get(key)
        if isinstance(comps, (list, dict)) and comps:
            return len(comps)
    return 0


def explain_changes(before: Any, after: Any) -> str:
    """
    Summarize what changed between two contracts.

    Reports version changes, threshold changes, added/removed pages and
    component-count changes on pages present in both. Never raises.
    """
    try:
        return _explain(before if isinstance(before, dict) else {}, after if isinstance(after, dict) else {})
    except Exception as e:
        logger.warning("explain_failed", error=str(e))
        return NO_CHANGES


def _explain(before: dict[str, Any], after: dict[str, Any]) -> str:
    parts: list[str] = []

    if str(before.get("version") or "") != str(after.get("version") or ""):
        parts.append(f"Version bumped: {_fmt(before.get('version'))} -> {_fmt(after.get('version'))}")

    bt = before.get("thresholds") if isinstance(before.get("thresholds"), dict) else {}
    at = after.get("thresholds") if isinstance(after.get("thresholds"), dict) else {}
    threshold_diffs = [
        f"{key}: {_fmt(bt.get(key))} -> {_fmt(at.get(key))}"
        for key in dict.fromkeys([*bt, *at])
        if str(bt.get(key)) != str(at.get(key))
    ]
    if threshold_diffs:
        parts.append(f"Thresholds updated: {', '.join(threshold_diffs)}")

    before_pages = get_pages(before)
    after_pages = get_pages(after)
    added = [name for name in after_pages if name not in before_pages]
    removed = [name for name in before_pages if name not in after_pages]
    if added:
        parts.append(f"Pages added: {', '.join(added)}")
    if removed:
        parts.append(f"Pages removed: {', '.join(removed)}")

    for name in after_pages:
        if name not in before_pages:
            continue
        b_count = _count_components(before_pages[name])
        a_count = _count_components(after_pages[name])
        if b_count != a_count:
            parts.append(f"Page '{name}' components: {b_count} -> {a_count}")

    return "; ".join(parts) if parts else NO_CHANGES
