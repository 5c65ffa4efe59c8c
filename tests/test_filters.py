from dataclasses import replace

import pytest

from afd_catalog.core.filters import (
    EntityOption,
    QueryState,
    TypeFilter,
    available_entities,
    collation_key,
    filter_rows,
    prefilter_rows,
    reconcile_entity_filter,
)
from afd_catalog.core.matcher import SearchMode
from afd_catalog.core.records import AttributeRow, EntityRow


def test_scenario_literal_search(scenario_rows):
    query = QueryState(search_term="custom", search_mode=SearchMode.LITERAL)
    out = filter_rows(scenario_rows, query)
    assert out == scenario_rows[:2]


def test_default_query_returns_everything_in_load_order(rows):
    assert filter_rows(rows, QueryState()) == rows


def test_type_and_datatype_filters(rows):
    entities = filter_rows(rows, QueryState(type_filter=TypeFilter.ENTITY_ONLY))
    assert all(isinstance(r, EntityRow) for r in entities)
    assert [r.entity_code for r in entities] == ["E1", "E3"]

    dated = filter_rows(rows, QueryState(datatype_filter="D1"))
    assert [r.name for r in dated] == ["BirthDate"]


def test_entity_filter_applies_after_prefilter(rows):
    query = QueryState(entity_filter="E3")
    assert [r.name for r in filter_rows(rows, query)] == ["Order", "OrderAmount"]
    assert len(prefilter_rows(rows, query)) == len(rows)


CONSTRAINTS = [
    {"type_filter": TypeFilter.ATTRIBUTE_ONLY},
    {"datatype_filter": "A0"},
    {"search_term": "order"},
    {"entity_filter": "E1"},
]


@pytest.mark.parametrize("extra", CONSTRAINTS)
@pytest.mark.parametrize("base", [QueryState(), QueryState(search_term="e1"), QueryState(type_filter=TypeFilter.ALL)])
def test_filtering_is_monotonic(rows, base, extra):
    narrowed = replace(base, **extra)
    wide = set(filter_rows(rows, base))
    assert set(filter_rows(rows, narrowed)) <= wide


def test_filtering_is_idempotent(rows):
    query = QueryState(search_term="*a*", search_mode=SearchMode.WILDCARD, type_filter=TypeFilter.ATTRIBUTE_ONLY)
    once = filter_rows(rows, query)
    assert filter_rows(once, query) == once


def test_available_entities_ignores_entity_filter_and_sorts(rows):
    query = QueryState(entity_filter="E1")
    out = available_entities(rows, query)
    assert [e.code for e in out] == ["E1", "E2", "E3"]
    assert out[0] == EntityOption(code="E1", name="Customer")


def test_available_entities_name_falls_back_to_code(rows):
    out = available_entities(rows, QueryState(search_term="orphan"))
    assert out == (EntityOption(code="E2", name="E2"),)


def test_available_entities_resolves_name_from_unfiltered_rows(rows):
    # Only the attribute matches; the name still comes from the Entity row.
    out = available_entities(rows, QueryState(search_term="amount"))
    assert out == (EntityOption(code="E3", name="Order"),)


def test_available_entities_uses_first_entity_row_for_duplicates():
    rows = (
        AttributeRow(entity_code="D", attribute_code="1", name="x"),
        EntityRow(entity_code="D", name="First"),
        EntityRow(entity_code="D", name="Second"),
    )
    assert available_entities(rows, QueryState()) == (EntityOption(code="D", name="First"),)


def test_reconcile_entity_filter_resets_unavailable_choice(rows):
    query = QueryState(search_term="order", entity_filter="E1")
    entities = available_entities(rows, query)
    assert reconcile_entity_filter(query, entities).entity_filter is None

    kept = QueryState(search_term="order", entity_filter="E3")
    assert reconcile_entity_filter(kept, entities) is kept


def test_available_entities_sort_ignores_case():
    rows = tuple(AttributeRow(entity_code=code, attribute_code="1") for code in ("b1", "B2", "a3"))
    assert [e.code for e in available_entities(rows, QueryState())] == ["a3", "b1", "B2"]


def test_available_entities_accepts_nul_in_codes():
    rows = (
        AttributeRow(entity_code="X\x00", attribute_code="1"),
        AttributeRow(entity_code="W", attribute_code="1"),
    )
    assert [e.code for e in available_entities(rows, QueryState())] == ["W", "X\x00"]


def test_collation_key_breaks_case_ties_on_raw_code():
    assert collation_key("a") != collation_key("A")
    assert sorted(["a", "A"], key=collation_key) == ["A", "a"]
