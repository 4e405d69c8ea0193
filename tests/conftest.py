"""Shared test fixtures for dashlens tests."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from dashlens.dashboard import Dashboard
from dashlens.errors import TableNotFoundError
from dashlens.resolution import FieldRef, ResolutionTables

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

TABLE_METADATA = {
    2: {
        "schema": "PUBLIC",
        "name": "ORDERS",
        "fields": [
            {"id": 10, "name": "STATUS"},
            {"id": 11, "name": "CREATED_AT"},
            {"id": 12, "name": "USER_ID"},
            {"id": 20, "name": "AMOUNT"},
        ],
    },
    3: {
        "schema": "",
        "name": "PEOPLE",
        "fields": [{"id": 30, "name": "ID"}],
    },
}


class FakeFetcher:
    """Stands in for MetabaseClient; records every table id it is asked for."""

    def __init__(self, metadata: dict[int, dict] | None = None, errors: dict[int, Exception] | None = None):
        self.metadata = TABLE_METADATA if metadata is None else metadata
        self.errors = errors or {}
        self.calls: list[int] = []
        self._lock = threading.Lock()

    def get_table_query_metadata(self, table_id: int) -> dict:
        with self._lock:
            self.calls.append(table_id)
        if table_id in self.errors:
            raise self.errors[table_id]
        if table_id not in self.metadata:
            raise TableNotFoundError(table_id)
        return self.metadata[table_id]


@pytest.fixture
def sales_dashboard_data() -> dict:
    """Load the raw sales dashboard fixture."""
    with open(FIXTURES_DIR / "dashboards" / "sales.json") as f:
        return json.load(f)


@pytest.fixture
def sales_dashboard(sales_dashboard_data) -> Dashboard:
    return Dashboard(sales_dashboard_data)


@pytest.fixture
def sales_dashboard_path() -> Path:
    return FIXTURES_DIR / "dashboards" / "sales.json"


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def fetcher_factory():
    return FakeFetcher


@pytest.fixture
def tables() -> ResolutionTables:
    return ResolutionTables(
        table_names={2: "PUBLIC.ORDERS", 3: "PEOPLE"},
        field_lookup={
            10: FieldRef(name="STATUS", table="PUBLIC.ORDERS"),
            20: FieldRef(name="AMOUNT", table="PUBLIC.ORDERS"),
            30: FieldRef(name="ID", table="PEOPLE"),
        },
    )
