from __future__ import annotations

import locale
import logging
import traceback
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import streamlit as st

from afd_catalog.config import APP_NAME, APP_VERSION, TABLE_ROW_LIMIT
from afd_catalog.core.catalog_loader import CatalogLoaderError, load_store
from afd_catalog.core.codelists import has_codelist
from afd_catalog.core.engine import CatalogEngine, QueryView
from afd_catalog.core.filters import EntityOption, QueryState, TypeFilter
from afd_catalog.core.grouping import GroupedEntity, OrphanAttribute
from afd_catalog.core.matcher import SearchMode
from afd_catalog.core.records import AttributeRow, EntityRow, Row
from afd_catalog.core.summary import describe_datatype, link_params, resolve_link, row_key

ALL = "all"

SEARCH_MODE_LABELS = {
    SearchMode.LITERAL: "Normaal",
    SearchMode.WILDCARD: "Wildcard (* en ?)",
    SearchMode.REGEX: "Regex",
}

TYPE_FILTER_LABELS = {
    TypeFilter.ALL: "Alle types",
    TypeFilter.ENTITY_ONLY: "Entiteiten",
    TypeFilter.ATTRIBUTE_ONLY: "Attributen",
}

logger = logging.getLogger(__name__)

_ENGINE: Optional[CatalogEngine] = None


def _get_engine(refresh: bool = False) -> CatalogEngine:
    global _ENGINE
    if _ENGINE is None or refresh:
        _ENGINE = CatalogEngine(load_store(refresh=refresh))
    return _ENGINE


def _datatype_label(code: str) -> str:
    info = describe_datatype(code)
    return f"{code} – {info.label}" if info else code


def _row_record(row: Row) -> Dict[str, Any]:
    return {
        "Type": "Entiteit" if isinstance(row, EntityRow) else "Attribuut",
        "Code": row_key(row),
        "Naam": row.name,
        "Omschrijving": row.description,
        "Datatype": _datatype_label(row.datatype) if row.datatype else "",
        "Formaat": row.format,
        "Codelijst": row.codelist_id,
    }


def _apply_direct_link(engine: CatalogEngine) -> None:
    """Pre-select the entity filter from ?entity=...&attribute=... once."""
    if st.session_state.get("_link_applied"):
        return
    st.session_state["_link_applied"] = True

    params = {k: st.query_params.get(k, "") for k in ("entity", "attribute")}
    row = resolve_link(engine.store.rows, params)
    if row is None:
        return
    st.session_state["entity_filter"] = row.entity_code
    if isinstance(row, AttributeRow):
        st.session_state["search_term"] = row.attribute_code


def _render_header(engine: CatalogEngine) -> None:
    st.title(APP_NAME)
    stats = engine.stats
    st.caption(
        f"Versie {APP_VERSION} · {stats.total:,} items · "
        f"{stats.entities:,} entiteiten · {stats.attributes:,} attributen"
    )
    if engine.store.duplicate_keys:
        st.warning(
            f"De catalogus bevat {len(engine.store.duplicate_keys)} dubbele sleutels; "
            "namen worden aan het eerste voorkomen ontleend."
        )


def _render_query_controls(engine: CatalogEngine) -> QueryState:
    col1, col2 = st.columns([3, 1])
    with col1:
        term = st.text_input("Zoeken", key="search_term", placeholder="Naam, omschrijving of code")
    with col2:
        mode = st.selectbox(
            "Zoekmodus",
            options=list(SEARCH_MODE_LABELS),
            format_func=lambda m: SEARCH_MODE_LABELS[m],
            key="search_mode",
        )

    col3, col4, col5 = st.columns(3)
    with col3:
        type_filter = st.selectbox(
            "Type",
            options=list(TYPE_FILTER_LABELS),
            format_func=lambda t: TYPE_FILTER_LABELS[t],
            key="type_filter",
        )
    with col4:
        datatype = st.selectbox(
            "Datatype",
            options=[ALL] + list(engine.datatypes),
            format_func=lambda d: "Alle datatypes" if d == ALL else _datatype_label(d),
            key="datatype_filter",
        )

    query = QueryState(
        search_term=term,
        search_mode=mode,
        type_filter=type_filter,
        datatype_filter=None if datatype == ALL else datatype,
    )

    entities = engine.available_entities(query)
    with col5:
        entity = _render_entity_selector(entities)

    return QueryState(
        search_term=query.search_term,
        search_mode=query.search_mode,
        type_filter=query.type_filter,
        datatype_filter=query.datatype_filter,
        entity_filter=None if entity == ALL else entity,
    )


def _render_entity_selector(entities: Sequence[EntityOption]) -> str:
    names = {e.code: e.name for e in entities}
    options = [ALL] + [e.code for e in entities]
    if st.session_state.get("entity_filter", ALL) not in options:
        st.session_state["entity_filter"] = ALL
    return st.selectbox(
        "Entiteit",
        options=options,
        format_func=lambda c: f"Alle entiteiten ({len(entities)})" if c == ALL else f"{c} – {names[c]}",
        key="entity_filter",
    )


def _render_suggestions(view: QueryView) -> None:
    if not view.suggestions:
        return
    labels = ", ".join(f"{r.name} ({row_key(r)})" for r in view.suggestions)
    st.caption(f"Bedoelde u: {labels}")


def _render_table(view: QueryView) -> None:
    rows = view.rows[:TABLE_ROW_LIMIT]
    if len(view.rows) > TABLE_ROW_LIMIT:
        st.caption(f"Eerste {TABLE_ROW_LIMIT} van {len(view.rows):,} resultaten.")
    st.dataframe(pd.DataFrame([_row_record(r) for r in rows]), use_container_width=True)


def _render_grouped(engine: CatalogEngine, view: QueryView) -> None:
    for item in view.grouped:
        if isinstance(item, GroupedEntity):
            entity = item.entity
            label = f"{entity.entity_code} – {entity.name} ({item.attribute_count} attributen)"
            with st.expander(label, expanded=False):
                if entity.description:
                    st.write(entity.description)
                if item.hidden_count:
                    st.caption(f"{item.hidden_count} attributen verborgen door filters.")
                if item.attributes:
                    st.dataframe(
                        pd.DataFrame([_row_record(a) for a in item.attributes]),
                        use_container_width=True,
                    )
        elif isinstance(item, OrphanAttribute):
            attr = item.attribute
            parent = engine.store.entity_name(attr.entity_code)
            st.markdown(f"`{row_key(attr)}` **{attr.name}** ({parent}) – {attr.description}")
        else:
            st.markdown(f"`{row_key(item)}` **{item.name}** – {item.description}")


def _render_codelist_panel(engine: CatalogEngine, view: QueryView) -> None:
    codes: List[str] = []
    for row in view.rows:
        if has_codelist(engine.store.codelists, row) and row.codelist_id not in codes:
            codes.append(row.codelist_id)
    if not codes:
        return

    with st.expander("Codelijsten", expanded=False):
        chosen = st.selectbox("Codelijst", options=codes, key="codelist_id")
        term = st.text_input("Zoek in codelijst", key="codelist_search")
        items = engine.codelist(chosen, term)
        st.write(f"{len(items)} items")
        st.dataframe(
            pd.DataFrame(
                [{"Code": i.code, "Omschrijving": i.description, "Actief": i.active} for i in items]
            ),
            use_container_width=True,
        )


def _render_direct_link(view: QueryView) -> None:
    if len(view.rows) != 1:
        return
    params = link_params(view.rows[0])
    st.caption("Directe link: ?" + "&".join(f"{k}={v}" for k, v in params.items()))


def _init_collation() -> None:
    # Entity codes are sorted with the user's collation, not the C default.
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("Could not apply the system collation locale: %s", exc)


def run_app() -> None:
    st.set_page_config(page_title=APP_NAME, page_icon="📚", layout="wide")
    _init_collation()

    try:
        engine = _get_engine()
    except CatalogLoaderError as exc:
        st.error(f"Fout bij het laden van data: {exc}")
        st.text_area("Traceback", value=traceback.format_exc(), height=220)
        return

    _apply_direct_link(engine)
    _render_header(engine)

    query = _render_query_controls(engine)
    view = engine.view(query)

    _render_suggestions(view)
    st.write(f"{len(view.rows):,} resultaten")

    view_mode = st.radio("Weergave", options=["Gegroepeerd", "Tabel"], horizontal=True, key="view_mode")
    if view_mode == "Tabel":
        _render_table(view)
    else:
        _render_grouped(engine, view)

    _render_direct_link(view)
    _render_codelist_panel(engine, view)
