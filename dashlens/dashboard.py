"""Parse a Metabase dashboard object into structured dataclasses."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

VIRTUAL_CARD_NAME = "(virtual card)"


def is_numeric_id(value) -> bool:
    """True for integer ids. bool is excluded even though it subclasses int."""
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class Parameter:
    id: str
    name: str = ""
    slug: str = ""
    type: str = ""


@dataclass
class ParameterMapping:
    parameter_id: str
    target: list | None = None
    card_id: int | None = None


@dataclass
class Dashcard:
    id: int | None
    card_id: int | None
    card: dict = field(default_factory=dict)
    dashboard_tab_id: int | None = None
    parameter_mappings: list[ParameterMapping] = field(default_factory=list)
    visualization_settings: dict = field(default_factory=dict)

    @property
    def is_virtual(self) -> bool:
        return self.card_id is None

    @property
    def dataset_query(self) -> dict:
        return self.card.get("dataset_query") or {}

    @property
    def query_type(self) -> str | None:
        return self.dataset_query.get("type")

    @property
    def is_native(self) -> bool:
        return self.query_type == "native"

    @property
    def structured_query(self) -> dict | None:
        query = self.dataset_query.get("query")
        return query if isinstance(query, dict) else None

    @property
    def card_name(self) -> str | None:
        return self.card.get("name")


class Dashboard:
    """Parsed dashboard with dashcards, filter parameters and tabs.

    The raw dict is kept as-is; nothing here mutates it.
    """

    def __init__(self, data: dict):
        self._data = data
        self._dashcards: list[Dashcard] = []
        self._parameters: list[Parameter] = []
        self._tab_lookup: dict[int, str] = {}
        self._build()

    def _build(self) -> None:
        # Older Metabase versions return ordered_cards instead of dashcards
        raw_dashcards = self._data.get("dashcards")
        if raw_dashcards is None:
            raw_dashcards = self._data.get("ordered_cards") or []

        for dc in raw_dashcards:
            self._dashcards.append(self._extract_dashcard(dc))

        for p in self._data.get("parameters") or []:
            self._parameters.append(Parameter(
                id=p.get("id"),
                name=p.get("name", ""),
                slug=p.get("slug", ""),
                type=p.get("type", ""),
            ))

        for tab in self._data.get("tabs") or []:
            self._tab_lookup[tab.get("id")] = tab.get("name")

    def _extract_dashcard(self, dc: dict) -> Dashcard:
        mappings = [
            ParameterMapping(
                parameter_id=m.get("parameter_id"),
                target=m.get("target"),
                card_id=m.get("card_id"),
            )
            for m in dc.get("parameter_mappings") or []
        ]
        return Dashcard(
            id=dc.get("id"),
            card_id=dc.get("card_id"),
            card=dc.get("card") or {},
            dashboard_tab_id=dc.get("dashboard_tab_id"),
            parameter_mappings=mappings,
            visualization_settings=dc.get("visualization_settings") or {},
        )

    @property
    def id(self) -> int | None:
        return self._data.get("id")

    @property
    def name(self) -> str | None:
        return self._data.get("name")

    @property
    def dashcards(self) -> list[Dashcard]:
        return list(self._dashcards)

    @property
    def parameters(self) -> list[Parameter]:
        return list(self._parameters)

    @property
    def tab_lookup(self) -> dict[int, str]:
        return dict(self._tab_lookup)

    def tab_name(self, tab_id: int | None) -> str | None:
        if tab_id is None:
            return None
        return self._tab_lookup.get(tab_id)

    def table_ids(self) -> set[int]:
        """Numeric table ids referenced by every structured query and its joins.

        Saved-question sources such as "card__12" are not tables and are skipped.
        """
        ids: set[int] = set()
        for dc in self._dashcards:
            query = dc.structured_query
            if query is None:
                continue
            if is_numeric_id(query.get("source-table")):
                ids.add(query["source-table"])
            for join in query.get("joins") or []:
                if isinstance(join, dict) and is_numeric_id(join.get("source-table")):
                    ids.add(join["source-table"])
        return ids


def load_dashboard(path: str | Path) -> Dashboard:
    """Load and parse a dashboard JSON export (the body of GET /api/dashboard/:id)."""
    dashboard_path = Path(path).expanduser()
    if not dashboard_path.exists():
        raise FileNotFoundError(
            f"Dashboard export not found at {dashboard_path}. "
            f"Save the response of GET /api/dashboard/<id> to a file first."
        )
    with open(dashboard_path) as f:
        data = json.load(f)
    return Dashboard(data)
