"""Tests for canonical/personalized contract merging."""

import copy
from unittest.mock import patch

import pytest
from hypothesis import given, settings as hyp_settings, strategies as st
from returns.result import Failure, Success

from contract_engine.contracts import merge_contracts, try_merge_contracts


def _partial(**pages):
    return {"pagesUI": {"pages": pages}}


@pytest.mark.unit
def test_authenticated_partial_page_replaces_base(base_contract):
    """Test authenticated pages from the partial win verbatim."""
    new_dashboard = {"scope": "authenticated", "children": [{"type": "text", "text": "New"}]}

    merged = merge_contracts(base_contract, _partial(dashboard=new_dashboard))

    assert merged["pagesUI"]["pages"]["dashboard"] == new_dashboard
    assert merged["pagesUI"]["pages"]["profile"] == base_contract["pagesUI"]["pages"]["profile"]


@pytest.mark.unit
def test_public_partial_page_never_overrides(base_contract):
    """Test public pages always come from the base."""
    hacked = {"scope": "public", "children": [{"type": "text", "text": "Hacked"}]}

    merged = merge_contracts(base_contract, _partial(home=hacked, promo=hacked))

    assert merged["pagesUI"]["pages"]["home"] == base_contract["pagesUI"]["pages"]["home"]
    assert "promo" not in merged["pagesUI"]["pages"]


@pytest.mark.unit
def test_unknown_scope_prefers_base(base_contract):
    """Test pages with no recognised scope keep the base version when present."""
    unscoped = {"children": [{"type": "text", "text": "?"}]}

    merged = merge_contracts(base_contract, _partial(dashboard=unscoped, extra=unscoped))

    assert merged["pagesUI"]["pages"]["dashboard"] == base_contract["pagesUI"]["pages"]["dashboard"]
    assert merged["pagesUI"]["pages"]["extra"] == unscoped


@pytest.mark.unit
def test_new_authenticated_page_added(base_contract):
    page = {"scope": "authenticated", "children": []}

    merged = merge_contracts(base_contract, _partial(orders=page))

    assert list(merged["pagesUI"]["pages"]) == ["home", "dashboard", "profile", "orders"]


@pytest.mark.unit
def test_other_sections_come_from_base(base_contract):
    partial = {
        "services": {"evil": {}},
        "pagesUI": {"routes": {}, "pages": {}},
        "thresholds": {"rageThreshold": 99},
    }

    merged = merge_contracts(base_contract, partial)

    assert merged["services"] == base_contract["services"]
    assert merged["thresholds"] == base_contract["thresholds"]
    assert merged["pagesUI"]["routes"] == base_contract["pagesUI"]["routes"]


@pytest.mark.unit
def test_merge_does_not_alias_inputs(base_contract):
    """Test mutating the result never leaks into either input."""
    page = {"scope": "authenticated", "children": [{"type": "text", "text": "Mine"}]}
    partial = _partial(dashboard=page)

    merged = merge_contracts(base_contract, partial)
    merged["pagesUI"]["pages"]["dashboard"]["children"].append({"type": "text"})
    merged["pagesUI"]["pages"]["profile"]["title"] = "Changed"

    assert len(page["children"]) == 1
    assert base_contract["pagesUI"]["pages"]["profile"]["title"] == "Profile"


@pytest.mark.unit
def test_base_without_pages_ui():
    page = {"scope": "authenticated"}

    merged = merge_contracts({"meta": {}}, _partial(a=page))

    assert merged == {"meta": {}, "pagesUI": {"pages": {"a": page}}}


@pytest.mark.unit
def test_try_merge_returns_success(base_contract):
    assert isinstance(try_merge_contracts(base_contract, {}), Success)


@pytest.mark.unit
def test_internal_error_falls_back_to_base(base_contract):
    """Test unexpected merge errors return the base unchanged."""
    with patch("contract_engine.contracts.merger._select_page", side_effect=RuntimeError("boom")):
        result = try_merge_contracts(base_contract, _partial(x={"scope": "authenticated"}))
        merged = merge_contracts(base_contract, _partial(x={"scope": "authenticated"}))

    assert isinstance(result, Failure)
    assert result.failure().message == "boom"
    assert result.failure().base_pages == 3
    assert merged is base_contract


page_strategy = st.fixed_dictionaries(
    {},
    optional={
        "scope": st.sampled_from(["public", "authenticated", "private", "", "weird"]),
        "children": st.lists(st.dictionaries(st.text(max_size=4), st.integers(), max_size=2), max_size=2),
    },
)
contract_strategy = st.fixed_dictionaries(
    {"pagesUI": st.fixed_dictionaries({"pages": st.dictionaries(st.sampled_from("abcde"), page_strategy, max_size=4)})},
    optional={"meta": st.dictionaries(st.text(max_size=4), st.integers(), max_size=2)},
)


@pytest.mark.unit
@hyp_settings(max_examples=100, deadline=None)
@given(contract_strategy, contract_strategy)
def test_merge_properties(base, partial):
    """Test merge purity and the per-scope page rules."""
    base_before = copy.deepcopy(base)
    partial_before = copy.deepcopy(partial)

    merged = merge_contracts(base, partial)

    assert base == base_before
    assert partial == partial_before

    base_pages = base["pagesUI"]["pages"]
    merged_pages = merged["pagesUI"]["pages"]
    for page_id, page in partial["pagesUI"]["pages"].items():
        scope = page.get("scope")
        if scope == "authenticated":
            assert merged_pages[page_id] == page
        elif scope == "public":
            assert merged_pages.get(page_id) == base_pages.get(page_id)
