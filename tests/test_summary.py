from afd_catalog.core.records import AttributeRow, EntityRow
from afd_catalog.core.summary import (
    CatalogStats,
    catalog_stats,
    describe_datatype,
    link_params,
    resolve_link,
    row_key,
    unique_datatypes,
)


def test_catalog_stats(rows):
    assert catalog_stats(rows) == CatalogStats(total=7, entities=2, attributes=5)
    assert catalog_stats(()) == CatalogStats(total=0, entities=0, attributes=0)


def test_unique_datatypes_sorted_without_blanks(rows):
    assert unique_datatypes(rows) == ("A0", "B2", "D1", "JN")


def test_describe_datatype():
    assert describe_datatype("D1").label == "Datum"
    assert describe_datatype("D1").example == "JJJJMMDD"
    assert describe_datatype("ZZ") is None
    assert describe_datatype("") is None


def test_row_key_and_link_params():
    entity = EntityRow(entity_code="E1")
    attr = AttributeRow(entity_code="E1", attribute_code="A7")
    assert row_key(entity) == "E1"
    assert row_key(attr) == "E1_A7"
    assert link_params(entity) == {"entity": "E1"}
    assert link_params(attr) == {"entity": "E1", "attribute": "A7"}


def test_resolve_link(rows):
    assert resolve_link(rows, {"entity": "E3"}).name == "Order"
    assert resolve_link(rows, {"entity": "E1", "attribute": "A2"}).name == "BirthDate"
    assert resolve_link(rows, {"entity": "E2"}) is None
    assert resolve_link(rows, {"entity": "E1", "attribute": "A9"}) is None
    assert resolve_link(rows, {}) is None


def test_link_round_trip_for_every_row(rows):
    for row in rows:
        assert resolve_link(rows, link_params(row)) == row
