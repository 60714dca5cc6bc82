"""
Contract Merger
Reconciles a canonical contract with a personalized partial override,
page by page. Only `pagesUI.pages` is merged; every other section comes
from the canonical contract.
"""

import copy
from dataclasses import dataclass
from typing import Any

from returns.result import Failure, Result, Success

from ..core import get_logger
from .types import AUTHENTICATED_SCOPE, PUBLIC_SCOPE, Contract, get_pages, page_scope

logger = get_logger(__name__)


@dataclass(frozen=True)
class MergeInternalError:
    """Unexpected failure while merging (carried in a Failure, never raised)."""

    message: str
    base_pages: int
    partial_pages: int
    exception: Exception | None = None


def _select_page(page_id: str, base_pages: dict[str, Any], partial_pages: dict[str, Any]) -> tuple[bool, Any]:
    """
    Decide which version of a page survives.

    Returns:
        (keep, page) where keep is False when the page is omitted
    """
    base_page = base_pages.get(page_id)
    partial_page = partial_pages.get(page_id)

    if partial_page is None:
        return base_page is not None, base_page

    scope = page_scope(partial_page)
    if scope == AUTHENTICATED_SCOPE:
        return True, copy.deepcopy(partial_page)
    if scope == PUBLIC_SCOPE:
        # Public pages are always canonical; a partial-only public page is dropped.
        return base_page is not None, base_page
    # Unknown or missing scope: base wins when present, else the partial page.
    if base_page is not None:
        return True, base_page
    return True, copy.deepcopy(partial_page)


def try_merge_contracts(base: Contract, partial: Contract) -> Result[Contract, MergeInternalError]:
    """
    Merge a partial per-user contract into a canonical base contract.

    Neither argument is mutated: the base is deep-cloned first and pages taken
    from the partial contract are copied.

    Args:
        base: Canonical contract
        partial: Partial contract with page overrides under pagesUI.pages

    Returns:
        Success(merged contract) or Failure(MergeInternalError)
    """
    try:
        merged = copy.deepcopy(base) if base is not None else {}
        base_pages = get_pages(merged)
        partial_pages = get_pages(partial)

        result_pages: dict[str, Any] = {}
        for page_id in list(dict.fromkeys([*base_pages, *partial_pages])):
            keep, page = _select_page(page_id, base_pages, partial_pages)
            if keep:
                result_pages[page_id] = page

        if not merged.get("pagesUI"):
            merged["pagesUI"] = {}
        merged["pagesUI"]["pages"] = result_pages
        return Success(merged)
    except Exception as e:
        return Failure(
            MergeInternalError(
                message=str(e),
                base_pages=len(get_pages(base)),
                partial_pages=len(get_pages(partial)),
                exception=e,
            )
        )


def merge_contracts(base: Contract, partial: Contract) -> Contract:
    """
    Merge contracts, falling back to the unchanged base on any internal error.

    Rules per page id in the union of base and partial pages:
    - partial scope ``authenticated``: partial page verbatim
    - partial scope ``public``: base page, or omitted when base lacks it
    - any other scope: base page when present, else the partial page
    - page only in base: base page
    """
    result = try_merge_contracts(base, partial)
    if isinstance(result, Success):
        return result.unwrap()

    failure = result.failure()
    logger.error(
        "merge_failed",
        error=failure.message,
        base_pages=failure.base_pages,
        partial_pages=failure.partial_pages,
        base_keys=sorted(base) if isinstance(base, dict) else [],
        partial_keys=sorted(partial) if isinstance(partial, dict) else [],
        exc_info=failure.exception,
    )
    return base
