"""
HTTP client for the remote database API.

Overview
- SpacetimeHttpClient wraps an httpx.Client bound to ``{http_api}/{module}/``.
- Endpoints used:
    GET  schema?version=<v>      schema document (tables, reducers, typespace)
    POST sql                     SQL statements (text/plain body), SATS-JSON results
    POST call/<reducer>          reducer invocation (JSON array of arguments)
    GET  logs?num_lines=<n>      newline-delimited JSON module logs

Source of truth
- Response parsing is delegated to stdb_admin.core.schema (SchemaDocument,
  StatementResult) and stdb_admin.core.logs.

Notes
- No retry or backoff; a failing request raises HttpRequestError immediately.
- The schema endpoint is tried with several version values because deployments
  disagree on which one they accept; see SCHEMA_VERSION_CANDIDATES.
- Pass ``transport=httpx.MockTransport(...)`` to run without a network.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from stdb_admin.core.constants import DEFAULT_LOG_LINES, SCHEMA_VERSION_CANDIDATES
from stdb_admin.core.logs import LogEntry, parse_log_text
from stdb_admin.core.schema import SchemaDocument, StatementResult
from stdb_admin.core.tables import ReducerDescriptor, TableDescriptor
from stdb_admin.log import get_logger

from .config import ClientSettings
from .errors import HttpRequestError, SchemaFetchError

logger = get_logger(__name__)


class SpacetimeHttpClient:
    """
    Synchronous client for one remote database module.

    Notes:
        - Construction validates that a module is configured (ClientConfigError otherwise)
          but performs no I/O.
        - Usable as a context manager; close() releases the connection pool.
    """

    def __init__(
        self,
        settings: ClientSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings.require_module()
        self.settings = settings
        headers = {"Accept": "application/json"}
        if settings.auth_token:
            headers["Authorization"] = f"Bearer {settings.auth_token}"
        self._http = httpx.Client(
            base_url=settings.base_url,
            headers=headers,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> SpacetimeHttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---------------------------------------------------------------------
    # Transport
    # ---------------------------------------------------------------------
    def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._http.request(method, endpoint, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("http_request_failed", method=method, endpoint=endpoint, error=str(exc))
            raise HttpRequestError(method, endpoint, None, str(exc)) from exc
        if response.is_error:
            logger.error(
                "http_request_failed",
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise HttpRequestError(method, endpoint, response.status_code, response.text)
        return response

    # ---------------------------------------------------------------------
    # Schema
    # ---------------------------------------------------------------------
    def _schema_versions(self) -> list[str]:
        versions: list[str] = []
        if self.settings.module_version:
            versions.append(self.settings.module_version)
        versions.extend(v for v in SCHEMA_VERSION_CANDIDATES if v not in versions)
        return versions

    def get_database_schema(self) -> SchemaDocument:
        """
        Fetch and validate the module's schema document.

        Returns:
            SchemaDocument: Tables, reducers, and typespace.

        Raises:
            SchemaFetchError: If every version candidate fails (last failure chained).
        """
        last_exc: Exception | None = None
        for version in self._schema_versions():
            try:
                response = self._request("GET", "schema", params={"version": version})
                return SchemaDocument.model_validate(response.json())
            except (HttpRequestError, ValueError) as exc:
                logger.debug("schema_version_rejected", version=version, error=str(exc))
                last_exc = exc
        logger.error("schema_fetch_failed", module=self.settings.module)
        raise SchemaFetchError(
            f"could not fetch schema for module {self.settings.module!r}"
        ) from last_exc

    def get_tables(self) -> list[str]:
        return self.get_database_schema().table_names()

    def get_table(self, name: str) -> TableDescriptor:
        """Describe one table from a freshly fetched schema document."""
        return self.describe_table(self.get_database_schema(), name)

    def describe_table(self, document: SchemaDocument, name: str) -> TableDescriptor:
        """Project one table from an already fetched document, adding the row estimate."""
        columns = document.columns_for(name)
        return TableDescriptor(
            name=name,
            columns=tuple(columns),
            estimated_row_count=self.get_table_row_count(name),
        )

    def get_reducers(self) -> list[ReducerDescriptor]:
        return self.get_database_schema().describe_reducers()

    def get_table_row_count(self, name: str) -> int:
        """
        Estimate a table's row count.

        Returns 0 unless ``settings.count_rows`` is enabled, in which case a
        ``SELECT COUNT(*)`` statement is executed.
        """
        if not self.settings.count_rows:
            return 0
        results = self.sql(f"SELECT COUNT(*) AS count FROM {name}")
        if not results:
            return 0
        rows = results[0].decoded_rows()
        if not rows:
            return 0
        value = next(iter(rows[0].values()), 0)
        return int(value or 0)

    # ---------------------------------------------------------------------
    # SQL / reducers / logs
    # ---------------------------------------------------------------------
    def sql(self, statement: str) -> list[StatementResult]:
        """
        Execute SQL and return one StatementResult per statement.

        Raises:
            HttpRequestError: On non-2xx responses (including permission errors for DML).
        """
        response = self._request(
            "POST",
            "sql",
            content=statement.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        data = response.json()
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            return []
        return [StatementResult.model_validate(item) for item in data]

    def call_reducer(self, name: str, args: Sequence[Any] = ()) -> Any:
        """
        Invoke a reducer with positional arguments.

        Returns:
            Any: Parsed JSON when the response is JSON, else the (possibly empty) body text.
        """
        response = self._request("POST", f"call/{name}", json=list(args))
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type and response.content:
            return response.json()
        return response.text

    def get_logs(self, num_lines: int = DEFAULT_LOG_LINES) -> list[LogEntry]:
        response = self._request(
            "GET", "logs", params={"num_lines": num_lines}, headers={"Accept": "text/plain"}
        )
        return parse_log_text(response.text)
