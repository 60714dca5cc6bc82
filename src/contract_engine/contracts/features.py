"""
Supported contract features.

Built-in lists of component types, actions and validation keys, optionally
overridden by the DSL reference docs shipped with the mobile client.
"""

from dataclasses import dataclass
from pathlib import Path

from ..core import get_logger

logger = get_logger(__name__)


SUPPORTED_COMPONENTS: tuple[str, ...] = (
    "text",
    "textField",
    "text_field",
    "button",
    "textButton",
    "iconButton",
    "icon",
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
    "filterChips",
    "chip",
    "progressIndicator",
    "switch",
    "slider",
    "audio",
    "video",
    "webview",
)

SUPPORTED_ACTIONS: tuple[str, ...] = (
    "navigate",
    "pop",
    "openUrl",
    "apiCall",
    "updateState",
    "showError",
    "showSuccess",
    "submitForm",
    "refreshData",
    "showBottomSheet",
    "showDialog",
    "clearCache",
    "undo",
    "redo",
)

SUPPORTED_VALIDATIONS: tuple[str, ...] = (
    "required",
    "email",
    "minLength",
    "maxLength",
    "pattern",
    "message",
    "equal",
)

SUPPORTED_PERSISTENCE: tuple[str, ...] = ("local", "secure", "session", "memory")
SUPPORTED_STATE_TYPES: tuple[str, ...] = ("string", "number", "boolean", "object", "array")

ACTION_KEYS: tuple[str, ...] = ("onTap", "onChanged", "onSubmit")

DSL_CHEAT_SHEET = "dsl_cheat_sheet.md"
COMPONENTS_REFERENCE = "components_reference.md"


@dataclass(frozen=True)
class SupportedFeatures:
    """Feature lists the validator checks against."""

    components: frozenset[str] = frozenset(SUPPORTED_COMPONENTS)
    actions: frozenset[str] = frozenset(SUPPORTED_ACTIONS)
    validations: frozenset[str] = frozenset(SUPPORTED_VALIDATIONS)
    persistence: frozenset[str] = frozenset(SUPPORTED_PERSISTENCE)
    state_types: frozenset[str] = frozenset(SUPPORTED_STATE_TYPES)


DEFAULT_FEATURES = SupportedFeatures()


def _split_list(line: str) -> list[str]:
    cleaned = line.strip().lstrip("-").replace("`", "")
    return [item.strip() for item in cleaned.split(",") if item.strip()]


def _parse_cheat_sheet(lines: list[str]) -> tuple[list[str], list[str]]:
    components: list[str] = []
    actions: list[str] = []
    for i, raw in enumerate(lines):
        line = raw.strip()
        following = lines[i + 1] if i + 1 < len(lines) else ""
        if "Supported `type` values:" in line:
            components.extend(_split_list(following))
        if "Allowed `action` values:" in line:
            actions.extend(_split_list(following))
    return components, actions


def _parse_components_reference(lines: list[str]) -> list[str]:
    validations: list[str] = []
    for raw in lines:
        line = raw.strip()
        if line.startswith("- Inline `validation`"):
            validations.extend(_split_list(line.rsplit(":", 1)[-1]))
    if validations and "equal" not in validations:
        validations.append("equal")
    return validations


def load_doc_features(docs_dir: str | Path | None) -> SupportedFeatures:
    """
    Build feature lists from the DSL reference docs.

    Each list falls back to the built-in constants when its doc is missing,
    unreadable or does not mention it.

    Args:
        docs_dir: Directory containing dsl_cheat_sheet.md / components_reference.md

    Returns:
        SupportedFeatures
    """
    if not docs_dir:
        return DEFAULT_FEATURES

    root = Path(docs_dir)
    components: list[str] = []
    actions: list[str] = []
    validations: list[str] = []

    try:
        cheat_sheet = root / DSL_CHEAT_SHEET
        if cheat_sheet.is_file():
            components, actions = _parse_cheat_sheet(cheat_sheet.read_text(encoding="utf-8").splitlines())

        reference = root / COMPONENTS_REFERENCE
        if reference.is_file():
            validations = _parse_components_reference(reference.read_text(encoding="utf-8").splitlines())
    except OSError as e:
        logger.warning("doc_features_unreadable", docs_dir=str(root), error=str(e))
        return DEFAULT_FEATURES

    features = SupportedFeatures(
        components=frozenset(components) if components else DEFAULT_FEATURES.components,
        actions=frozenset(actions) if actions else DEFAULT_FEATURES.actions,
        validations=frozenset(validations) if validations else DEFAULT_FEATURES.validations,
    )
    logger.info(
        "doc_features_loaded",
        components=len(features.components),
        actions=len(features.actions),
        validations=len(features.validations),
    )
    return features
