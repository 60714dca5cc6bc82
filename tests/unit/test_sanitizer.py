"""Tests for the Flutter sanitizer."""

import copy

import pytest

from contract_engine.contracts import FlutterSanitizer


def _wrap(*children):
    return {"meta": {}, "pagesUI": {"pages": {"p": {"scope": "authenticated", "children": list(children)}}}}


def _children(contract):
    return contract["pagesUI"]["pages"]["p"]["children"]


@pytest.fixture
def sanitizer():
    return FlutterSanitizer()


@pytest.mark.unit
def test_supported_components_untouched(sanitizer, base_contract):
    assert sanitizer.filter_for_flutter(base_contract) == base_contract


@pytest.mark.unit
def test_type_aliases_normalized(sanitizer):
    result = sanitizer.filter_for_flutter(_wrap({"type": "text_field"}, {"type": "progressBar"}))

    assert [c["type"] for c in _children(result)] == ["textField", "progressIndicator"]


@pytest.mark.unit
def test_unsupported_components_dropped_or_unwrapped(sanitizer):
    contract = _wrap(
        {"type": "carousel"},
        {"type": "stack", "children": [{"type": "text", "text": "inner"}, {"type": "marquee"}]},
        {"type": "button", "text": "Go"},
    )

    result = sanitizer.filter_for_flutter(contract)

    assert _children(result) == [{"type": "text", "text": "inner"}, {"type": "button", "text": "Go"}]


@pytest.mark.unit
def test_scalar_children_become_text(sanitizer):
    result = sanitizer.filter_for_flutter(_wrap("Hello", 3, True, None))

    assert _children(result) == [
        {"type": "text", "text": "Hello"},
        {"type": "text", "text": "3"},
        {"type": "text", "text": "true"},
    ]


@pytest.mark.unit
def test_legacy_text_field_props(sanitizer):
    field = {"type": "textField", "key": "email", "keyboard": "email", "obscure": 1}

    (out,) = _children(sanitizer.filter_for_flutter(_wrap(field)))

    assert out == {"type": "textField", "binding": "email", "keyboardType": "email", "obscureText": True}


@pytest.mark.unit
def test_search_bar_action_moves_to_on_changed(sanitizer):
    action = {"action": "updateState", "params": {"key": "q"}}

    (out,) = _children(sanitizer.filter_for_flutter(_wrap({"type": "searchBar", "action": action})))

    assert out == {"type": "searchBar", "onChanged": action}


@pytest.mark.unit
def test_list_and_grid_item_templates(sanitizer):
    contract = _wrap(
        {"type": "list", "itemTemplate": {"type": "text_field"}},
        {"type": "grid", "dataSource": "products", "itemTemplate": {"type": "card"}},
    )

    list_out, grid_out = _children(sanitizer.filter_for_flutter(contract))

    assert list_out == {"type": "list", "itemBuilder": {"type": "textField"}}
    assert grid_out == {"type": "list", "dataSource": "products", "itemBuilder": {"type": "card"}}


@pytest.mark.unit
def test_legacy_pages_directly_under_pages_ui(sanitizer):
    contract = {"pagesUI": {"home": {"title": "Home", "children": [{"type": "carousel"}, "Hi"]}}}

    result = sanitizer.filter_for_flutter(contract)

    assert result["pagesUI"]["home"]["children"] == [{"type": "text", "text": "Hi"}]


@pytest.mark.unit
def test_input_not_mutated(sanitizer):
    contract = _wrap({"type": "carousel"}, {"type": "text_field", "key": "a"})
    snapshot = copy.deepcopy(contract)

    sanitizer.filter_for_flutter(contract)

    assert contract == snapshot


@pytest.mark.unit
def test_non_dict_passthrough(sanitizer):
    assert sanitizer.filter_for_flutter([1, 2]) == [1, 2]
