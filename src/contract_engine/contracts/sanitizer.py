"""
Flutter Sanitizer
Normalizes generated pages to the component set the Flutter client renders.
"""

import copy
from typing import Any

from ..core import get_logger
from .types import Contract

logger = get_logger(__name__)

FLUTTER_TYPES = frozenset(
    {
        "text",
        "textField",
        "button",
        "textButton",
        "icon",
        "iconButton",
        "image",
        "card",
        "list",
        "grid",
        "row",
        "column",
        "center",
        "hero",
        "form",
        "searchBar",
        "chip",
        "progressIndicator",
        "switch",
        "slider",
        "audio",
        "video",
        "webview",
    }
)

# Legacy textField prop -> Flutter prop
_TEXT_FIELD_RENAMES = (("key", "binding"), ("keyboard", "keyboardType"))


def _normalize_type(raw: str) -> str:
    lower = raw.lower()
    if lower == "text_field":
        return "textField"
    if lower == "progressbar":
        return "progressIndicator"
    return raw


def _looks_like_page(obj: Any) -> bool:
    return isinstance(obj, dict) and (
        isinstance(obj.get("children"), list)
        or isinstance(obj.get("layout"), str)
        or isinstance(obj.get("title"), str)
        or isinstance(obj.get("id"), str)
    )


class FlutterSanitizer:
    """Drops or rewrites components the Flutter client cannot render."""

    def __init__(self, allowed_types: frozenset[str] = FLUTTER_TYPES) -> None:
        self.allowed_types = allowed_types

    def filter_for_flutter(self, contract: Contract) -> Contract:
        """
        Return a sanitized copy of the contract (input is not mutated).

        On any failure the original contract is returned unchanged.
        """
        try:
            if not isinstance(contract, dict):
                return contract
            clone = copy.deepcopy(contract)
            pages_ui = clone.get("pagesUI")
            if isinstance(pages_ui, dict):
                clone["pagesUI"] = self._filter_pages_ui(pages_ui)
            return clone
        except Exception as e:
            logger.warning("sanitize_failed", error=str(e))
            return contract

    def _filter_pages_ui(self, pages_ui: dict[str, Any]) -> dict[str, Any]:
        pages = pages_ui.get("pages")
        if isinstance(pages, dict):
            pages_ui["pages"] = {
                page_id: self._filter_page(page) if isinstance(page, dict) else page
                for page_id, page in pages.items()
            }
        # Legacy layout: pages stored directly under pagesUI
        for key, value in pages_ui.items():
            if key not in ("pages", "routes") and _looks_like_page(value):
                pages_ui[key] = self._filter_page(value)
        return pages_ui

    def _filter_page(self, page: dict[str, Any]) -> dict[str, Any]:
        if isinstance(page.get("children"), list):
            page["children"] = self._normalize_children(page["children"])
        return page

    def _normalize_children(self, children: list[Any]) -> list[Any]:
        result: list[Any] = []
        for child in children:
            normalized = self._normalize_component(child)
            if isinstance(normalized, list):
                result.extend(normalized)
            elif normalized:
                result.append(normalized)
        return result

    def _normalize_component(self, comp: Any) -> dict[str, Any] | list[Any] | None:
        if isinstance(comp, (str, int, float, bool)):
            text = str(comp).lower() if isinstance(comp, bool) else str(comp)
            return {"type": "text", "text": text}
        if not isinstance(comp, dict):
            return None

        raw_type = str(comp.get("type") or "")
        comp_type = _normalize_type(raw_type)
        if comp_type not in self.allowed_types:
            if isinstance(comp.get("children"), list):
                return self._normalize_children(comp["children"])
            logger.debug("component_dropped", type=raw_type)
            return None

        out = dict(comp, type=comp_type)

        if comp_type == "textField":
            for legacy, prop in _TEXT_FIELD_RENAMES:
                if out.get(prop) is None and out.get(legacy) is not None:
                    out[prop] = out[legacy]
                out.pop(legacy, None)
            if out.get("obscureText") is None and out.get("obscure") is not None:
                out["obscureText"] = bool(out["obscure"])
            out.pop("obscure", None)

        if comp_type == "searchBar" and out.get("onChanged") is None and out.get("action"):
            out["onChanged"] = out.pop("action")

        if comp_type == "list":
            if out.get("itemBuilder") is None and out.get("itemTemplate"):
                out["itemBuilder"] = self._normalize_component(out.pop("itemTemplate"))
            elif out.get("itemBuilder"):
                out["itemBuilder"] = self._normalize_component(out["itemBuilder"])

        if comp_type == "grid" and out.get("dataSource") and out.get("itemTemplate"):
            out["type"] = "list"
            out["itemBuilder"] = self._normalize_component(out.pop("itemTemplate"))

        if isinstance(out.get("children"), list):
            out["children"] = self._normalize_children(out["children"])
        return out
