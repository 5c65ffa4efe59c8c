import pytest

from afd_catalog.core.records import AttributeRow, CodeItem, EntityRow, build_store


CATALOG_RECORDS = [
    {"Entiteit/Attribuut": "E", "Entiteitcode": "E1", "Naam": "Customer", "Omschrijving": "Klant"},
    {"Entiteit/Attribuut": "A", "Entiteitcode": "E1", "Attribuutcode": "A1",
     "Naam": "CustomerName", "Datatype": "A0"},
    {"Entiteit/Attribuut": "A", "Entiteitcode": "E1", "Attribuutcode": "A2",
     "Naam": "BirthDate", "Datatype": "D1", "Formaat": "JJJJMMDD"},
    {"Entiteit/Attribuut": "A", "Entiteitcode": "E1", "Attribuutcode": "A3",
     "Naam": "Active", "Datatype": "JN", "Codelijst": "CL1"},
    {"Entiteit/Attribuut": "E", "Entiteitcode": "E3", "Naam": "Order", "Omschrijving": "Bestelling"},
    {"Entiteit/Attribuut": "A", "Entiteitcode": "E3", "Attribuutcode": "A1",
     "Naam": "OrderAmount", "Datatype": "B2"},
    {"Entiteit/Attribuut": "A", "Entiteitcode": "E2", "Attribuutcode": "A1", "Naam": "Orphan"},
]

CODELIST_RECORDS = [
    ["Codelijst", "Code", "Omschrijving", "Actief"],
    ["CL1", "J", "Yes", "J"],
    ["CL1", "N", "No", "J"],
    ["CL2", "01", "Eerste", "N"],
]


@pytest.fixture()
def scenario_rows():
    return (
        EntityRow(entity_code="E1", name="Customer"),
        AttributeRow(entity_code="E1", attribute_code="A1", name="CustomerName", datatype="A0"),
        AttributeRow(entity_code="E2", attribute_code="A1", name="Orphan"),
    )


@pytest.fixture()
def store():
    return build_store(CATALOG_RECORDS, CODELIST_RECORDS)


@pytest.fixture()
def rows(store):
    return store.rows


@pytest.fixture()
def codelists():
    return {
        "CL1": (CodeItem(code="J", description="Yes"), CodeItem(code="N", description="No")),
    }
