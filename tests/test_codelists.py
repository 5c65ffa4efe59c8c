from afd_catalog.core.codelists import filter_code_items, has_codelist, lookup_codelist
from afd_catalog.core.records import AttributeRow, CodeItem


def test_scenario_filter_items(codelists):
    out = filter_code_items(lookup_codelist(codelists, "CL1"), "y")
    assert out == (CodeItem(code="J", description="Yes"),)


def test_unknown_or_blank_id_is_empty(codelists):
    assert lookup_codelist(codelists, "NOPE") == ()
    assert lookup_codelist(codelists, "") == ()
    assert lookup_codelist(codelists, None) == ()


def test_empty_term_returns_all_in_order(codelists):
    items = lookup_codelist(codelists, "CL1")
    assert filter_code_items(items, "") == items
    assert [i.code for i in items] == ["J", "N"]


def test_filter_matches_code_or_description_case_insensitive(codelists):
    items = lookup_codelist(codelists, "CL1")
    assert [i.code for i in filter_code_items(items, "n")] == ["N"]
    assert [i.code for i in filter_code_items(items, "j")] == ["J"]
    assert filter_code_items(items, "maybe") == ()


def test_active_flag_is_tri_state():
    assert CodeItem(code="x", active="J").is_active is True
    assert CodeItem(code="x", active="n").is_active is False
    assert CodeItem(code="x").is_active is None


def test_has_codelist(store):
    active = next(r for r in store.rows if r.name == "Active")
    assert has_codelist(store.codelists, active)
    assert not has_codelist(store.codelists, AttributeRow(entity_code="E", attribute_code="A", codelist_id="CLX"))
