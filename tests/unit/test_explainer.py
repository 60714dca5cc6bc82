"""Tests for contract change summaries."""

import copy

import pytest

from contract_engine.contracts import explain_changes
from contract_engine.contracts.explainer import NO_CHANGES


@pytest.mark.unit
def test_identical_contracts(base_contract):
    assert explain_changes(base_contract, copy.deepcopy(base_contract)) == NO_CHANGES


@pytest.mark.unit
def test_version_and_threshold_changes(base_contract):
    after = copy.deepcopy(base_contract)
    after["version"] = "1.0.1"
    after["thresholds"]["rageThreshold"] = 5

    summary = explain_changes(base_contract, after)

    assert summary == "Version bumped: 1.0.0 -> 1.0.1; Thresholds updated: rageThreshold: 3 -> 5"


@pytest.mark.unit
def test_page_additions_removals_and_component_counts(base_contract):
    after = copy.deepcopy(base_contract)
    del after["pagesUI"]["pages"]["home"]
    after["pagesUI"]["pages"]["orders"] = {"children": []}
    after["pagesUI"]["pages"]["dashboard"]["children"].append({"type": "text"})

    summary = explain_changes(base_contract, after)

    assert summary.split("; ") == [
        "Pages added: orders",
        "Pages removed: home",
        "Page 'dashboard' components: 2 -> 3",
    ]


@pytest.mark.unit
def test_legacy_components_key_counted():
    before = {"pagesUI": {"pages": {"p": {"components": [1, 2]}}}}
    after = {"pagesUI": {"pages": {"p": {"children": [1]}}}}

    assert explain_changes(before, after) == "Page 'p' components: 2 -> 1"


@pytest.mark.unit
def test_missing_values_rendered():
    assert explain_changes({}, {"version": "1.0.0"}) == "Version bumped: n/a -> 1.0.0"


@pytest.mark.unit
@pytest.mark.parametrize("before,after", [(None, None), ("x", []), ({"pagesUI": []}, {"pagesUI": {"pages": 3}})])
def test_malformed_input_never_raises(before, after):
    assert explain_changes(before, after) == NO_CHANGES
