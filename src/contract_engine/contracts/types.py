"""Contract value types and page-scope helpers."""

from dataclasses import dataclass, field
from typing import Any

# Contracts are JSON documents; pages and components stay plain dicts so that
# unknown fields survive validation, merge and repair untouched.
Contract = dict[str, Any]

PUBLIC_SCOPE = "public"
AUTHENTICATED_SCOPE = "authenticated"
PRIVATE_SCOPE = "private"
PERSONALIZABLE_SCOPES = frozenset({AUTHENTICATED_SCOPE, PRIVATE_SCOPE})


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation error or warning."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


@dataclass(frozen=True)
class ValidationStats:
    """Counts gathered while walking a contract."""

    components: int = 0
    actions: int = 0
    pages: int = 0


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one contract document."""

    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()
    stats: ValidationStats = field(default_factory=ValidationStats)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error_messages(self) -> list[str]:
        """Errors rendered as ``"path: message"``."""
        return [str(e) for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "stats": {
                "components": self.stats.components,
                "actions": self.stats.actions,
                "pages": self.stats.pages,
            },
        }


def page_scope(page: Any) -> str:
    """
    Read a page's scope.

    `scope` is authoritative; `meta.scope` and `pageScope` are accepted as
    alternative spellings. Anything that is not a string yields ``""``.
    """
    if not isinstance(page, dict):
        return ""
    raw = page.get("scope")
    if raw is None:
        meta = page.get("meta")
        raw = meta.get("scope") if isinstance(meta, dict) else None
    if raw is None:
        raw = page.get("pageScope")
    return raw if isinstance(raw, str) else ""


def is_personalizable(page: Any) -> bool:
    """True for pages scoped ``authenticated`` or ``private`` (case-insensitive)."""
    return page_scope(page).lower() in PERSONALIZABLE_SCOPES


def get_pages(contract: Any) -> dict[str, Any]:
    """Return ``contract.pagesUI.pages`` or an empty dict when absent or malformed."""
    if not isinstance(contract, dict):
        return {}
    pages_ui = contract.get("pagesUI")
    if not isinstance(pages_ui, dict):
        return {}
    pages = pages_ui.get("pages")
    return pages if isinstance(pages, dict) else {}


def authenticated_pages(contract: Any) -> dict[str, Any]:
    """The subset of a contract's pages eligible for personalization."""
    return {name: page for name, page in get_pages(contract).items() if is_personalizable(page)}
