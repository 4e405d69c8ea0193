"""Table and field id lookups built from Metabase table metadata.

One set of lookups is built per extraction call and thrown away afterwards.
Each distinct table id is fetched exactly once, concurrently on a small
thread pool; a failed table gets a placeholder name and contributes no
fields.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from dashlens.errors import CollaboratorError, MetadataFetchError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


@dataclass
class FieldRef:
    name: str
    table: str


@dataclass
class ResolutionTables:
    table_names: dict[int, str] = field(default_factory=dict)
    field_lookup: dict[int, FieldRef] = field(default_factory=dict)

    def table_name(self, table_id: int) -> str:
        return self.table_names.get(table_id, f"table_{table_id}")

    def field_name(self, field_id: int) -> str:
        ref = self.field_lookup.get(field_id)
        if ref is None or not ref.name:
            return f"field_{field_id}"
        return ref.name


def qualified_table_name(table_id: int, metadata: dict) -> str:
    """schema.name when a schema is present, else just the table name."""
    schema = metadata.get("schema") or ""
    name = metadata.get("name") or f"table_{table_id}"
    return f"{schema}.{name}" if schema else name


def build_resolution_tables(
    table_ids,
    fetcher,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> ResolutionTables:
    """Fetch metadata for every table id and build the id -> name lookups.

    ``fetcher`` is anything with ``get_table_query_metadata(table_id)``.
    MetadataFetchError is recovered per table; CollaboratorError is raised
    once all fetches have finished.
    """
    ids = sorted(set(table_ids))
    tables = ResolutionTables()
    if not ids:
        return tables

    fetched: dict[int, dict] = {}
    collaborator_error: tuple[int, CollaboratorError] | None = None

    with ThreadPoolExecutor(max_workers=min(max_workers, len(ids))) as executor:
        futures = {executor.submit(fetcher.get_table_query_metadata, tid): tid for tid in ids}
        for future in as_completed(futures):
            tid = futures[future]
            try:
                fetched[tid] = future.result() or {}
            except MetadataFetchError as e:
                logger.warning("Could not fetch metadata for table %s: %s", tid, e)
                tables.table_names[tid] = f"unknown_table_{tid}"
            except CollaboratorError as e:
                if collaborator_error is None:
                    collaborator_error = (tid, e)

    if collaborator_error is not None:
        tid, error = collaborator_error
        if error.table_id is None:
            raise CollaboratorError(str(error), table_id=tid) from error
        raise error

    # Field ids are unique across tables, so one flat lookup is enough
    for tid in ids:
        metadata = fetched.get(tid)
        if metadata is None:
            continue
        table_name = qualified_table_name(tid, metadata)
        tables.table_names[tid] = table_name
        for f in metadata.get("fields") or []:
            if f.get("id") is not None:
                tables.field_lookup[f["id"]] = FieldRef(name=f.get("name"), table=table_name)

    logger.debug(
        "Resolved %d table(s), %d field(s)", len(tables.table_names), len(tables.field_lookup)
    )
    return tables
