"""Error kinds raised by the Metabase collaborators."""

from __future__ import annotations


class DashlensError(Exception):
    """Base class for dashlens errors."""


class MetadataFetchError(DashlensError):
    """Table metadata could not be retrieved. Recovered per table."""

    def __init__(self, table_id: int, message: str):
        self.table_id = table_id
        super().__init__(f"table {table_id}: {message}")


class TableNotFoundError(MetadataFetchError):
    def __init__(self, table_id: int):
        super().__init__(table_id, "not found")


class CollaboratorError(DashlensError):
    """Transport-level failure talking to Metabase. Never recovered locally."""

    def __init__(
        self,
        message: str,
        table_id: int | None = None,
        dashboard_id: int | None = None,
    ):
        self.table_id = table_id
        self.dashboard_id = dashboard_id
        context = []
        if dashboard_id is not None:
            context.append(f"dashboard {dashboard_id}")
        if table_id is not None:
            context.append(f"table {table_id}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)
