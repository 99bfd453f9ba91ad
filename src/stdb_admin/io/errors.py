"""
Custom exceptions for the stdb_admin.io module.

Purpose
- Provide IO-layer specific error types that map cleanly to responsibilities in stdb_admin.io.
- Keep stdb_admin.core as the source of truth for type resolution, row shape, and schema
  projection errors (see stdb_admin.core.errors).

Source of truth and boundaries
- stdb_admin.core.errors.TypeResolutionError / RowShapeError / SchemaError are raised by core.
- stdb_admin.io raises Client* errors for configuration and remote HTTP concerns:
  - ClientConfigError: invalid or incomplete configuration.
  - HttpRequestError: the remote API answered with a non-2xx status or was unreachable.
  - SchemaFetchError: every schema endpoint variant failed.
"""

from __future__ import annotations


class ClientError(Exception):
    """
    Base class for IO-related errors in stdb_admin.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from stdb_admin.core errors.
    """


class ClientConfigError(ClientError):
    """
    Raised when client configuration is invalid or incomplete.

    Examples:
        - No module (database name) configured
    """


class HttpRequestError(ClientError):
    """
    Raised when a remote request fails.

    Attributes:
        method (str): HTTP method.
        endpoint (str): Endpoint relative to the module base URL.
        status_code (int | None): HTTP status, or None when no response was received.
        body (str): Response body text (may be empty).
    """

    def __init__(self, method: str, endpoint: str, status_code: int | None, body: str = "") -> None:
        self.method = method
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        status = status_code if status_code is not None else "no response"
        detail = f" - {body}" if body else ""
        super().__init__(f"{method} {endpoint} failed: {status}{detail}")


class SchemaFetchError(ClientError):
    """
    Raised when the schema document cannot be fetched with any endpoint variant.

    Notes:
        The last underlying failure is chained as __cause__.
    """
