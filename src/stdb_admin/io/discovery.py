"""
Time-boxed schema cache over table discovery.

Overview
- SchemaDiscovery holds at most one cache entry: the discovered tables plus the
  instant they were cached. An entry is valid while ``now - cached_at < ttl``.
- Discovery itself is delegated to two injected collaborators:
    table_lister()           -> sequence of table names
    table_discoverer(name)   -> TableDescriptor
  SchemaDiscovery.from_client() wires them to a SpacetimeHttpClient through
  ClientSchemaSource, so a full refresh fetches the schema document once.

State machine
    absent --discover--> valid --ttl elapses / clear_cache()--> expired/absent --discover--> valid

- A failed listing leaves the previous entry untouched (stale but available).
- A failed per-table discovery is logged and the table skipped.
- get_table() never changes which tables the entry holds; it only swaps in a
  fresher descriptor for a table the entry already has.

Concurrency
- No locks. Callers are single-threaded/cooperative; concurrent refreshes race and
  the last write wins, which is bounded by the TTL.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from stdb_admin.core.schema import SchemaDocument
from stdb_admin.core.tables import TableDescriptor
from stdb_admin.log import get_logger

from .client import SpacetimeHttpClient
from .config import ClientSettings

logger = get_logger(__name__)

TableLister = Callable[[], Sequence[str]]
TableDiscoverer = Callable[[str], TableDescriptor]
Clock = Callable[[], float]


class ClientSchemaSource:
    """
    Table lister and discoverer backed by one schema document per refresh.

    list_tables() fetches the document and keeps it for the names it returned;
    discover() projects each of those names from that document exactly once.
    Any other name (a later single-table refresh) triggers a fresh fetch.
    """

    def __init__(self, client: SpacetimeHttpClient) -> None:
        self._client = client
        self._document: SchemaDocument | None = None
        self._pending: set[str] = set()

    def list_tables(self) -> list[str]:
        document = self._client.get_database_schema()
        names = document.table_names()
        self._document = document
        self._pending = set(names)
        return names

    def discover(self, name: str) -> TableDescriptor:
        document = self._document
        if document is not None and name in self._pending:
            self._pending.discard(name)
            if not self._pending:
                self._document = None
        else:
            document = self._client.get_database_schema()
        return self._client.describe_table(document, name)


@dataclass(slots=True, frozen=True)
class SchemaCacheEntry:
    """
    Immutable cache entry; replaced wholesale, never mutated.

    Attributes:
        tables (dict[str, TableDescriptor]): Descriptors keyed by table name, in discovery order.
        cached_at (float): Clock reading when the entry was created.
    """

    tables: dict[str, TableDescriptor]
    cached_at: float


@dataclass(slots=True, frozen=True)
class CacheStatus:
    cached: bool
    age_seconds: float | None
    ttl_seconds: float


class SchemaDiscovery:
    """
    Schema cache with an injected clock and TTL.

    Args:
        table_lister: Returns the names of all tables.
        table_discoverer: Describes one table.
        ttl_seconds: Entry lifetime.
        clock: Monotonic seconds source; tests pass a fake.

    Examples:
        >>> from stdb_admin.core.tables import TableDescriptor
        >>> d = SchemaDiscovery(lambda: ["t"], lambda n: TableDescriptor(n, ()), ttl_seconds=60)
        >>> [t.name for t in d.get_all_tables()]
        ['t']
        >>> d.get_cache_status().cached
        True
    """

    def __init__(
        self,
        table_lister: TableLister,
        table_discoverer: TableDiscoverer,
        *,
        ttl_seconds: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self._list_tables = table_lister
        self._discover_table = table_discoverer
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entry: SchemaCacheEntry | None = None

    @classmethod
    def from_client(
        cls,
        client: SpacetimeHttpClient,
        settings: ClientSettings | None = None,
        *,
        clock: Clock = time.monotonic,
    ) -> SchemaDiscovery:
        """Wire a SpacetimeHttpClient as the table lister and discoverer."""
        s = settings or client.settings
        source = ClientSchemaSource(client)
        return cls(source.list_tables, source.discover, ttl_seconds=s.cache_ttl_seconds, clock=clock)

    def _valid_entry(self) -> SchemaCacheEntry | None:
        entry = self._entry
        if entry is None:
            return None
        if self._clock() - entry.cached_at < self.ttl_seconds:
            return entry
        return None

    def get_all_tables(self, force_refresh: bool = False) -> list[TableDescriptor]:
        """
        Return all tables, from cache when valid, else by full rediscovery.

        Args:
            force_refresh (bool): Ignore a valid entry and rediscover.

        Returns:
            list[TableDescriptor]: Tables in listing order (failed tables omitted).

        Raises:
            Exception: Whatever the table lister raises; the previous entry is kept.
        """
        entry = self._valid_entry()
        if entry is not None and not force_refresh:
            return list(entry.tables.values())

        names = self._list_tables()
        tables: dict[str, TableDescriptor] = {}
        for name in names:
            try:
                tables[name] = self._discover_table(name)
            except Exception as exc:
                logger.warning("table_discovery_failed", table=name, error=str(exc))
        self._entry = SchemaCacheEntry(tables=tables, cached_at=self._clock())
        logger.info("schema_cache_refreshed", tables=len(tables), skipped=len(names) - len(tables))
        return list(tables.values())

    def get_table(self, name: str, force_refresh: bool = False) -> TableDescriptor:
        """
        Return one table, from cache when valid, else by single-table discovery.

        A freshly discovered table replaces the same-named descriptor in a valid entry
        (keeping its cached_at); tables absent from the entry are not added, so the
        bulk set may lag until the next full refresh.
        """
        entry = self._valid_entry()
        if entry is not None and not force_refresh and name in entry.tables:
            return entry.tables[name]

        table = self._discover_table(name)
        if entry is not None and name in entry.tables:
            self._entry = replace(entry, tables={**entry.tables, name: table})
        return table

    def clear_cache(self) -> None:
        self._entry = None

    def get_cache_status(self) -> CacheStatus:
        """Report cache validity and age without side effects."""
        entry = self._entry
        if entry is None:
            return CacheStatus(cached=False, age_seconds=None, ttl_seconds=self.ttl_seconds)
        age = self._clock() - entry.cached_at
        return CacheStatus(cached=age < self.ttl_seconds, age_seconds=age, ttl_seconds=self.ttl_seconds)
