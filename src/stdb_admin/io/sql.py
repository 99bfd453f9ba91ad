"""
Write-side SQL helpers: single mutations and bulk operation batches.

Overview
- mutate(): run one DML statement; remote failures are reported in the result
  instead of raised so batch callers can keep going.
- run_bulk(): run up to MAX_BULK_OPERATIONS statements, optionally as a dry run
  (validation only) or transactionally (stop at the first failure).

Notes
- The remote SQL endpoint does not report affected row counts; affected_rows is 0.
- DML requires an owner token; permission failures without a configured token get
  an explanatory error message.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from stdb_admin.core.constants import MAX_BULK_OPERATIONS
from stdb_admin.log import get_logger

from .client import SpacetimeHttpClient
from .config import ENV_PREFIX
from .errors import ClientError, HttpRequestError

logger = get_logger(__name__)

StatementKind = Literal["select", "insert", "update", "delete", "other"]

_DML: frozenset[str] = frozenset({"insert", "update", "delete"})


def classify_statement(sql: str) -> StatementKind:
    """
    Classify a statement by its leading keyword.

    Examples:
        >>> classify_statement("  DELETE FROM players WHERE id = 1")
        'delete'
        >>> classify_statement("CALL x()")
        'other'
    """
    words = sql.strip().split(None, 1)
    head = words[0].lower() if words else ""
    if head in {"select", "insert", "update", "delete"}:
        return head  # type: ignore[return-value]
    return "other"


@dataclass(slots=True, frozen=True)
class MutationResult:
    success: bool
    affected_rows: int = 0
    error: str | None = None


@dataclass(slots=True, frozen=True)
class BulkOperation:
    sql: str


@dataclass(slots=True, frozen=True)
class DryRunReport:
    total_operations: int
    estimated_affected_rows: int = 0
    warnings: tuple[str, ...] = ()


@dataclass(slots=True)
class BulkResult:
    """
    Outcome of a bulk batch.

    Attributes:
        results (list[MutationResult]): One entry per executed operation (empty for dry runs).
        errors (list[str]): "Operation <n>: <error>" messages, 1-based.
        dry_run_report (DryRunReport | None): Present only for dry runs.
    """

    results: list[MutationResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    dry_run_report: DryRunReport | None = None

    @property
    def ok(self) -> bool:
        return not self.errors


def _describe_failure(client: SpacetimeHttpClient, sql: str, exc: ClientError) -> str:
    if (
        isinstance(exc, HttpRequestError)
        and classify_statement(sql) in _DML
        and "not authorized" in exc.body.lower()
        and not client.settings.auth_token
    ):
        return (
            f"{exc}; {classify_statement(sql).upper()} requires owner authentication, "
            f"set {ENV_PREFIX}AUTH_TOKEN"
        )
    return str(exc)


def mutate(client: SpacetimeHttpClient, sql: str) -> MutationResult:
    """
    Execute one DML statement.

    Returns:
        MutationResult: success=False with an error message when the remote rejects it.
    """
    try:
        client.sql(sql)
    except ClientError as exc:
        message = _describe_failure(client, sql, exc)
        logger.warning("mutation_failed", statement=sql[:100], error=message)
        return MutationResult(success=False, error=message)
    return MutationResult(success=True)


def run_bulk(
    client: SpacetimeHttpClient,
    operations: Sequence[BulkOperation],
    *,
    transactional: bool = False,
    dry_run: bool = False,
) -> BulkResult:
    """
    Execute a batch of statements.

    Args:
        client (SpacetimeHttpClient): Remote client.
        operations (Sequence[BulkOperation]): Statements in execution order.
        transactional (bool): Stop at the first failed operation.
        dry_run (bool): Validate only; nothing is sent to the remote.

    Returns:
        BulkResult: Per-operation results and collected errors.

    Raises:
        ValueError: If operations is empty or exceeds MAX_BULK_OPERATIONS.

    Notes:
        transactional only stops the batch; statements already applied are not rolled back.
    """
    if not operations:
        raise ValueError("operations must not be empty")
    if len(operations) > MAX_BULK_OPERATIONS:
        raise ValueError(f"too many operations: {len(operations)} > {MAX_BULK_OPERATIONS}")

    if dry_run:
        warnings = tuple(
            f"Operation {i}: empty SQL statement"
            for i, op in enumerate(operations, start=1)
            if not op.sql or not op.sql.strip()
        )
        return BulkResult(dry_run_report=DryRunReport(total_operations=len(operations), warnings=warnings))

    out = BulkResult()
    for i, op in enumerate(operations, start=1):
        result = mutate(client, op.sql)
        out.results.append(result)
        if not result.success:
            out.errors.append(f"Operation {i}: {result.error}")
            if transactional:
                break
    return out
