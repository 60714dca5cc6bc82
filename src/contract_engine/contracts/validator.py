"""
Contract Validator
Structural validation of contract documents: required sections, components,
actions, services schemas, state configuration and cross-references
(routes, endpoints, icons, bindings).
"""

import re
from typing import Any

from .features import ACTION_KEYS, DEFAULT_FEATURES, SupportedFeatures
from .types import ValidationIssue, ValidationResult, ValidationStats

STATE_BINDING = re.compile(r"^\$\{state\.[^}]+\}$")
ITEM_BINDING = re.compile(r"^\$\{item\.[^}]+\}$")
BARE_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_.]*$")
TEMPLATE = re.compile(r"^\$\{[^}]+\}$")

DATA_MODEL_REF_PREFIX = "#/dataModels/"

REQUIRED_SECTION_MESSAGE = "Required section missing or invalid"


def _as_text(value: Any) -> str | None:
    """Stringify a scalar the way the contract authoring tools do (None stays None)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


class _Walk:
    """Mutable accumulator for a single validation pass."""

    def __init__(self, contract: dict[str, Any], features: SupportedFeatures) -> None:
        self.contract = contract
        self.features = features
        self.errors: list[ValidationIssue] = []
        self.warnings: list[ValidationIssue] = []
        self.components = 0
        self.actions = 0
        self.pages = 0

    def error(self, path: str, message: str) -> None:
        self.errors.append(ValidationIssue(path, message))

    def warn(self, path: str, message: str) -> None:
        self.warnings.append(ValidationIssue(path, message))

    def result(self) -> ValidationResult:
        return ValidationResult(
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            stats=ValidationStats(components=self.components, actions=self.actions, pages=self.pages),
        )


class ContractValidator:
    """Validates contract documents against the supported feature set."""

    def __init__(self, features: SupportedFeatures | None = None) -> None:
        self.features = features or DEFAULT_FEATURES

    def validate(self, contract: Any) -> list[str]:
        """Validate and return error messages as ``"path: message"`` strings."""
        return self.validate_contract(contract).error_messages()

    def validate_contract(self, contract: Any) -> ValidationResult:
        """
        Validate a contract document.

        Pure and deterministic: the input is never modified and every call
        returns a fresh result. Non-object input is treated as an empty
        document.

        Args:
            contract: Parsed contract JSON

        Returns:
            ValidationResult with errors, warnings and stats
        """
        doc = contract if isinstance(contract, dict) else {}
        walk = _Walk(doc, self.features)

        if not isinstance(doc.get("meta"), dict):
            walk.error("meta", REQUIRED_SECTION_MESSAGE)
        if not isinstance(doc.get("pagesUI"), dict):
            walk.error("pagesUI", REQUIRED_SECTION_MESSAGE)

        pages_ui = doc.get("pagesUI")
        if isinstance(pages_ui, dict):
            self._validate_pages(pages_ui, walk)
            self._validate_routes(pages_ui, walk)

        events_actions = doc.get("eventsActions")
        if isinstance(events_actions, dict):
            self._validate_top_level_actions(events_actions, walk)

        if isinstance(doc.get("services"), dict):
            self._validate_services(doc, walk)

        if isinstance(doc.get("state"), dict):
            self._validate_state(doc["state"], walk)

        self._validate_icons(doc, walk)

        return walk.result()

    # ------------------------------------------------------------------
    # Pages and components
    # ------------------------------------------------------------------

    def _validate_pages(self, pages_ui: dict[str, Any], walk: _Walk) -> None:
        pages = pages_ui.get("pages")
        if pages is None:
            return
        if not isinstance(pages, dict):
            walk.error("pagesUI.pages", "Pages must be an object keyed by page id")
            return

        walk.pages = len(pages)
        for page_id, page in pages.items():
            children = _as_dict(page).get("children")
            if not isinstance(children, list):
                continue
            for i, comp in enumerate(children):
                self._validate_component(f"pagesUI.pages.{page_id}.children[{i}]", comp, walk)

    def _validate_component(self, path: str, comp: Any, walk: _Walk) -> None:
        if not isinstance(comp, dict):
            walk.error(path, "Component must be an object")
            return
        walk.components += 1

        comp_type = _as_text(comp.get("type"))
        if not comp_type or comp_type not in self.features.components:
            walk.error(f"{path}.type", f"Unsupported component type: {comp_type}")

        if "binding" in comp:
            binding = _as_text(comp["binding"]) or ""
            if not (
                STATE_BINDING.match(binding) or ITEM_BINDING.match(binding) or BARE_IDENTIFIER.match(binding)
            ):
                walk.warn(f"{path}.binding", "Binding format not recognized")

        validation = comp.get("validation")
        if isinstance(validation, dict):
            for key in validation:
                if key not in self.features.validations:
                    walk.warn(f"{path}.validation.{key}", "Unknown validation rule")

        for action_key in ACTION_KEYS:
            action = comp.get(action_key)
            if isinstance(action, dict):
                self._validate_action(f"{path}.{action_key}", action, walk)

        children = comp.get("children")
        if isinstance(children, list):
            for i, child in enumerate(children):
                self._validate_component(f"{path}.children[{i}]", child, walk)

        item_builder = comp.get("itemBuilder")
        if isinstance(item_builder, dict):
            self._validate_component(f"{path}.itemBuilder", item_builder, walk)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _validate_top_level_actions(self, events_actions: dict[str, Any], walk: _Walk) -> None:
        for key, entries in events_actions.items():
            if not isinstance(entries, list):
                walk.warn(f"eventsActions.{key}", "Expected an array of actions")
                continue
            for i, action in enumerate(entries):
                path = f"eventsActions.{key}[{i}]"
                if isinstance(action, dict):
                    self._validate_action(path, action, walk)
                else:
                    walk.error(path, "Action must be an object")

    def _validate_action(self, path: str, action: dict[str, Any], walk: _Walk) -> None:
        walk.actions += 1
        action_type = _as_text(action.get("action"))
        if not action_type or action_type not in self.features.actions:
            walk.error(f"{path}.action", f"Unsupported action type: {action_type}")
            return

        params = action.get("params")

        match action_type:
            case "navigate":
                if action.get("route") is None and action.get("pageId") is None:
                    walk.error(path, "navigate requires route or pageId")
            case "apiCall":
                if action.get("service") is None or action.get("endpoint") is None:
                    walk.error(path, "apiCall requires service and endpoint")
            case "updateState":
                if not isinstance(params, dict) or params.get("key") is None:
                    walk.error(path, "updateState requires params.key")
            case "submitForm":
                form_id = params.get("formId") if isinstance(params, dict) else None
                if action.get("formId") is None and form_id is None and action.get("pageId") is None:
                    walk.warn(path, "submitForm missing formId or pageId")
            case _:
                pass

        if isinstance(params, dict):
            for key, value in params.items():
                if not isinstance(value, str) or "\n" in value or "\x00" in value:
                    continue
                if TEMPLATE.match(value) and not STATE_BINDING.match(value):
                    walk.warn(f"{path}.params.{key}", "Suspicious template; expected ${state.*}")

        if action_type == "apiCall":
            self._validate_api_target(path, action, walk)

    def _validate_api_target(self, path: str, action: dict[str, Any], walk: _Walk) -> None:
        service = _as_text(action.get("service"))
        endpoint = _as_text(action.get("endpoint"))
        services = walk.contract.get("services")
        if not service or not endpoint or not isinstance(services, dict):
            return

        svc = services.get(service)
        if not isinstance(svc, dict):
            walk.error(path, f"Unknown service: {service}")
            return
        endpoints = svc.get("endpoints")
        if not isinstance(endpoints, dict) or endpoint not in endpoints:
            walk.error(path, f"Unknown endpoint: {service}.{endpoint}")

    # ------------------------------------------------------------------
    # Routes, services, state, icons
    # ------------------------------------------------------------------

    def _validate_routes(self, pages_ui: dict[str, Any], walk: _Walk) -> None:
        routes = _as_dict(pages_ui.get("routes"))
        pages = _as_dict(pages_ui.get("pages"))
        for route, cfg in routes.items():
            page_id = _as_text(_as_dict(cfg).get("pageId"))
            if not page_id or page_id not in pages:
                walk.error(f"pagesUI.routes.{route}", f"Route pageId not found: {page_id}")

    def _validate_services(self, contract: dict[str, Any], walk: _Walk) -> None:
        models = _as_dict(contract.get("dataModels"))
        for name, svc in contract["services"].items():
            for endpoint_name, cfg in _as_dict(_as_dict(svc).get("endpoints")).items():
                schema_path = f"services.{name}.endpoints.{endpoint_name}.responseSchema"
                schema = _as_dict(cfg).get("responseSchema")
                if schema is None:
                    continue
                if not isinstance(schema, dict):
                    walk.error(schema_path, "Invalid schema structure")
                    continue
                self._validate_response_schema(schema_path, schema, models, walk)

    def _validate_response_schema(
        self, path: str, schema: dict[str, Any], models: dict[str, Any], walk: _Walk
    ) -> None:
        props = schema.get("properties")
        if schema.get("type") != "object" or not isinstance(props, dict):
            walk.error(path, "Schema must be an object with properties")
            return

        data = props.get("data")
        if not isinstance(data, dict):
            walk.error(f"{path}.properties", "Missing required data property")
            return

        data_path = f"{path}.properties.data"
        if data.get("type") == "array":
            ref = _as_text(_as_dict(data.get("items")).get("$ref"))
            if not ref or not self._ref_exists(ref, models):
                walk.error(f"{data_path}.items", "Missing or unknown $ref in items")
        elif isinstance(data.get("$ref"), str):
            if not self._ref_exists(data["$ref"], models):
                walk.error(data_path, "Unknown $ref")
        else:
            walk.warn(data_path, "Prefer $ref to dataModels over raw types")

    def _validate_state(self, state: dict[str, Any], walk: _Walk) -> None:
        for key, value in _as_dict(state.get("global")).items():
            self._validate_state_field(f"state.global.{key}", value, walk)
        for page_key, fields in _as_dict(state.get("pages")).items():
            for key, value in _as_dict(fields).items():
                self._validate_state_field(f"state.pages.{page_key}.{key}", value, walk)

    def _validate_state_field(self, path: str, field: Any, walk: _Walk) -> None:
        if not isinstance(field, dict):
            walk.warn(path, "State field should be an object")
            return

        persistence = _as_text(field.get("persistence"))
        if persistence and persistence not in self.features.persistence:
            walk.error(f"{path}.persistence", f"Unsupported persistence: {persistence}")

        field_type = _as_text(field.get("type"))
        if field_type and field_type not in self.features.state_types:
            walk.warn(f"{path}.type", f"Unexpected type: {field_type}")

    def _validate_icons(self, contract: dict[str, Any], walk: _Walk) -> None:
        mapping = _as_dict(_as_dict(contract.get("assets")).get("icons")).get("mapping")
        if not isinstance(mapping, dict):
            return

        used: list[str] = []
        stack: list[Any] = list(_as_dict(_as_dict(contract.get("pagesUI")).get("pages")).values())
        while stack:
            node = stack.pop()
            if isinstance(node, dict):
                icon = _as_text(node.get("icon")) or _as_text(node.get("name"))
                if icon and node.get("type") in ("icon", "iconButton") and icon not in used:
                    used.append(icon)
                stack.extend(node.values())
            elif isinstance(node, list):
                stack.extend(node)

        for icon in sorted(used):
            if icon not in mapping:
                walk.warn(f"assets.icons.mapping.{icon}", "Icon not mapped")

    @staticmethod
    def _ref_exists(ref: str, models: dict[str, Any]) -> bool:
        if not ref.startswith(DATA_MODEL_REF_PREFIX):
            return False
        return ref[len(DATA_MODEL_REF_PREFIX) :] in models


_default_validator = ContractValidator()


def validate_contract(contract: Any, features: SupportedFeatures | None = None) -> ValidationResult:
    """Validate with the built-in (or given) feature set."""
    if features is None:
        return _default_validator.validate_contract(contract)
    return ContractValidator(features).validate_contract(contract)
