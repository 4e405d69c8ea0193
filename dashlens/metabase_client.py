"""Lightweight Metabase API client with API key authentication."""

from __future__ import annotations

import logging

import httpx

from dashlens.config import MetabaseConfig
from dashlens.errors import CollaboratorError, MetadataFetchError, TableNotFoundError

logger = logging.getLogger(__name__)


class MetabaseClient:
    """Read-only access to dashboards and table metadata. Connection is lazy."""

    def __init__(self, config: MetabaseConfig, transport: httpx.BaseTransport | None = None):
        self._config = config
        self._transport = transport
        self._http: httpx.Client | None = None

    def _connect(self) -> httpx.Client:
        if self._http is not None:
            return self._http
        if not self._config.url:
            raise CollaboratorError(
                "Metabase not configured. Set metabase.url in dashlens.yml or METABASE_URL."
            )
        self._http = httpx.Client(
            base_url=self._config.url,
            headers={"x-api-key": self._config.api_key},
            timeout=self._config.timeout,
            transport=self._transport,
        )
        return self._http

    def _get(self, path: str) -> httpx.Response:
        client = self._connect()
        logger.debug("GET %s", path)
        response = client.get(path)
        if response.status_code >= 400:
            logger.debug("response %s for %s", response.status_code, path)
        return response

    def get_dashboard(self, dashboard_id: int) -> dict:
        """Fetch a dashboard with its dashcards, parameters and tabs."""
        try:
            response = self._get(f"/api/dashboard/{dashboard_id}")
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise CollaboratorError(
                f"Metabase returned {e.response.status_code}", dashboard_id=dashboard_id
            ) from e
        except httpx.RequestError as e:
            raise CollaboratorError(
                f"Metabase request failed: {e}", dashboard_id=dashboard_id
            ) from e
        except ValueError as e:
            raise CollaboratorError(
                "Metabase response is not JSON", dashboard_id=dashboard_id
            ) from e

    def get_table_query_metadata(self, table_id: int) -> dict:
        """Fetch a table's schema, name and fields.

        Raises MetadataFetchError for HTTP error statuses (TableNotFoundError
        for 404) and CollaboratorError when Metabase cannot be reached.
        """
        try:
            response = self._get(f"/api/table/{table_id}/query_metadata")
        except httpx.RequestError as e:
            raise CollaboratorError(
                f"Metabase request failed: {e}", table_id=table_id
            ) from e

        if response.status_code == 404:
            raise TableNotFoundError(table_id)
        if response.status_code >= 400:
            raise MetadataFetchError(table_id, f"Metabase returned {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise MetadataFetchError(table_id, "response is not JSON") from e

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None
