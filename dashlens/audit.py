"""Dashboard filter connectivity audit."""

from __future__ import annotations

from dashlens.dashboard import VIRTUAL_CARD_NAME, Dashboard, Dashcard, ParameterMapping


def audit_dashboard_filters(dashboard: Dashboard) -> dict:
    """Cross-check dashboard filter parameters against each card's mappings.

    A card needs attention when it is not wired to every dashboard parameter
    or when one of its mappings is structurally invalid. No Metabase access.
    """
    parameter_ids = [p.id for p in dashboard.parameters]

    all_cards = [_audit_card(dc, parameter_ids) for dc in dashboard.dashcards]
    cards_with_issues = [
        c for c in all_cards
        if c["missing_params"] or c["errors"]
    ]

    return {
        "dashboard_id": dashboard.id,
        "total_parameters": len(parameter_ids),
        "parameter_ids": parameter_ids,
        "total_cards": len(all_cards),
        "cards_with_issues": len(cards_with_issues),
        "all_cards": all_cards,
        "cards_needing_attention": cards_with_issues,
    }


def _audit_card(dc: Dashcard, parameter_ids: list[str]) -> dict:
    connected = [m.parameter_id for m in dc.parameter_mappings]
    connected_set = set(connected)
    missing = [pid for pid in parameter_ids if pid not in connected_set]

    errors = []
    for mapping in dc.parameter_mappings:
        error = _mapping_error(mapping)
        if error:
            errors.append(error)

    query = dc.structured_query or {}

    return {
        "dashcard_id": dc.id,
        "card_id": dc.card_id,
        "card_name": dc.card_name or VIRTUAL_CARD_NAME,
        "source_table": query.get("source-table"),
        "is_native_query": dc.is_native,
        "connected_params": connected,
        "missing_params": missing,
        "errors": errors,
    }


def _mapping_error(mapping: ParameterMapping) -> str | None:
    """Structural problem with one mapping, or None.

    Only ["dimension", ...] targets (MBQL cards) are validated; they must
    carry an options object with a stage-number.
    """
    target = mapping.target
    if target is None:
        return f"Parameter '{mapping.parameter_id}' has no target"

    if isinstance(target, (list, tuple)) and target and target[0] == "dimension":
        has_stage_number = any(
            isinstance(item, dict) and "stage-number" in item
            for item in target
        )
        if not has_stage_number:
            return (
                f"Parameter '{mapping.parameter_id}' missing stage-number "
                f"(MBQL cards require this)"
            )

    return None
