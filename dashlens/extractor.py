"""Per-card query summaries for a dashboard, with ids resolved to names."""

from __future__ import annotations

import logging

from dashlens.dashboard import VIRTUAL_CARD_NAME, Dashboard, Dashcard
from dashlens.resolution import DEFAULT_MAX_WORKERS, ResolutionTables, build_resolution_tables
from dashlens.resolver import resolve_query

logger = logging.getLogger(__name__)

UNNAMED_CARD_NAME = "(unnamed)"


def extract_dashboard_queries(
    dashboard: Dashboard,
    fetcher,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> dict:
    """Summarize every card's query on a dashboard.

    Table metadata is fetched once for all tables referenced across the
    dashboard, then each card is classified as virtual, native or MBQL.
    Native SQL is returned verbatim.
    """
    tables = build_resolution_tables(dashboard.table_ids(), fetcher, max_workers=max_workers)

    cards = [_summarize_card(dc, dashboard, tables) for dc in dashboard.dashcards]
    tables_used = sorted(set(tables.table_names.values()))

    logger.info(
        "Extracted %d card(s) from dashboard %s touching %d table(s)",
        len(cards), dashboard.id, len(tables_used),
    )

    return {
        "dashboard_id": dashboard.id,
        "dashboard_name": dashboard.name,
        "total_cards": len(cards),
        "cards": cards,
        "tables_used": tables_used,
    }


def _summarize_card(dc: Dashcard, dashboard: Dashboard, tables: ResolutionTables) -> dict:
    summary = {
        "dashcard_id": dc.id,
        "card_id": dc.card_id,
        "card_name": dc.card_name or UNNAMED_CARD_NAME,
        "tab": dashboard.tab_name(dc.dashboard_tab_id),
    }

    if dc.is_virtual:
        summary["card_name"] = VIRTUAL_CARD_NAME
        summary["query_type"] = "virtual"
        summary["text"] = dc.visualization_settings.get("text")
        return summary

    dataset_query = dc.dataset_query

    if dc.is_native:
        native = dataset_query.get("native") or {}
        summary["query_type"] = "native"
        summary["database_id"] = dataset_query.get("database")
        summary["sql"] = native.get("query")
        summary["template_tags"] = list((native.get("template-tags") or {}).keys())
        return summary

    summary["query_type"] = "mbql"
    summary["database_id"] = dataset_query.get("database")
    summary["mbql"] = resolve_query(dataset_query.get("query") or {}, tables)
    return summary
