"""Rewrite table and field ids in MBQL query trees into readable names."""

from __future__ import annotations

from dashlens.dashboard import is_numeric_id
from dashlens.resolution import ResolutionTables

# Members of a structured query whose value is a list of query trees
_LIST_CLAUSES = ("aggregation", "breakout", "order-by", "fields")


def _is_sequence(node) -> bool:
    return isinstance(node, (list, tuple))


def _is_field_ref(node) -> bool:
    """["field", <int id>] or ["field", <int id>, <options>]."""
    return (
        len(node) in (2, 3)
        and node[0] == "field"
        and is_numeric_id(node[1])
    )


def resolve_node(node, tables: ResolutionTables):
    """Return a copy of an MBQL tree with field ids replaced by field names.

    Scalars (and dicts such as field options) pass through unchanged. A field
    reference keeps its options element only when it is an object or list;
    ``["field", 10, None]`` becomes the two-element ``["field", "NAME"]``.
    Every other sequence is rebuilt element by element, whatever its operator.
    """
    if not _is_sequence(node):
        return node

    if _is_field_ref(node):
        name = tables.field_name(node[1])
        if len(node) == 3 and isinstance(node[2], (dict, list)):
            return ["field", name, node[2]]
        return ["field", name]

    return [resolve_node(item, tables) for item in node]


def _resolve_table(value, tables: ResolutionTables):
    # "card__<id>" sources reference saved questions, not tables
    if is_numeric_id(value):
        return tables.table_name(value)
    return value


def _resolve_join(join, tables: ResolutionTables):
    if not isinstance(join, dict):
        return resolve_node(join, tables)
    resolved = dict(join)
    if "source-table" in join:
        resolved["source-table"] = _resolve_table(join["source-table"], tables)
    if "condition" in join:
        resolved["condition"] = resolve_node(join["condition"], tables)
    return resolved


def resolve_query(query, tables: ResolutionTables) -> dict:
    """Resolve a structured query's supported clauses.

    Only clauses present on the input appear in the output. Anything outside
    source-table, aggregation, breakout, filter, order-by, joins, fields,
    expressions and limit is dropped.
    """
    if not isinstance(query, dict):
        return {}

    resolved: dict = {}

    if "source-table" in query:
        resolved["source-table"] = _resolve_table(query["source-table"], tables)

    for clause in _LIST_CLAUSES:
        if clause in query:
            resolved[clause] = [resolve_node(item, tables) for item in query[clause] or []]

    if "filter" in query:
        resolved["filter"] = resolve_node(query["filter"], tables)

    if "joins" in query:
        resolved["joins"] = [_resolve_join(j, tables) for j in query["joins"] or []]

    if "expressions" in query:
        resolved["expressions"] = {
            name: resolve_node(expr, tables)
            for name, expr in (query["expressions"] or {}).items()
        }

    if "limit" in query:
        resolved["limit"] = query["limit"]

    return resolved
