"""SQLite object store with FTS5-backed full-text search extensions.

Objects are pydantic models stored as JSON under a (collection, key) pair.
Each registered full-text extension owns an FTS5 virtual table and a
handler that maps a stored object to its indexed column values. The
handler runs on every write, so index rows always follow the objects.
"""

import asyncio
import re
import sqlite3
import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, NamedTuple

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()

# (columns to fill, collection, key, object) -> None
FullTextSearchHandler = Callable[[dict[str, str], str, str, Any], None]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_IDENTIFIER_UNSAFE = re.compile(r"[^A-Za-z0-9_]")
_RESERVED_COLUMNS = frozenset({"collection", "key"})


@dataclass(frozen=True)
class FullTextSearchExtension:
    """Schema and indexing callback of a full-text index.

    Attributes:
        column_names: Indexed text columns.
        handler: Fills column values for an object; leaving the mapping
            empty keeps the object out of the index.
    """

    column_names: tuple[str, ...]
    handler: FullTextSearchHandler


@dataclass(frozen=True)
class SnippetOptions:
    """Arguments for the FTS5 snippet() function."""

    start: str = "<mark>"
    end: str = "</mark>"
    ellipsis: str = "..."
    tokens: int = 16


class FullTextMatch(NamedTuple):
    """Single full-text hit with the object it belongs to."""

    snippet: str
    collection: str
    key: str
    object: Any


@dataclass(frozen=True)
class _RegisteredExtension:
    extension: FullTextSearchExtension
    table: str


def _table_name(extension_name: str) -> str:
    return "fts_" + _IDENTIFIER_UNSAFE.sub("_", extension_name)


def _phrase(term: str) -> str:
    return '"' + term.replace('"', '""') + '"'


def prefix_match_expression(alternatives: Sequence[str]) -> str | None:
    """Build an FTS5 MATCH expression for search-as-you-type.

    Every term is quoted as an FTS5 string, so symbols ("+", "$") and
    words such as AND/NOT/NEAR are matched literally instead of being
    parsed as query syntax. Terms of one alternative must all match;
    alternatives are OR-ed. The expression ends in a prefix wildcard.

    Args:
        alternatives: Whitespace-separated term lists, e.g.
            ["+1 5551234", "15551234"].

    Returns:
        Expression such as '"+1" "5551234" OR "15551234"*', or None if
        there are no terms to match.
    """
    branches = [
        " ".join(_phrase(term) for term in alternative.split())
        for alternative in alternatives
        if alternative.split()
    ]
    if not branches:
        return None
    return " OR ".join(branches) + "*"


class Storage:
    """Object store with registrable full-text search extensions.

    A single connection is shared by all transactions and guarded by a
    re-entrant lock, so transactions are serialized. The connection uses
    check_same_thread=False since registration may run on a worker thread.
    """

    def __init__(
        self,
        path: str = ":memory:",
        models: Iterable[type[BaseModel]] = (),
        snippet: SnippetOptions | None = None,
    ) -> None:
        """Open the store and create its bookkeeping tables.

        Args:
            path: SQLite database path, or ":memory:".
            models: Model classes that may be stored.
            snippet: Snippet formatting for search matches.
        """
        self._conn: sqlite3.Connection | None = sqlite3.connect(
            path, check_same_thread=False
        )
        self._lock = threading.RLock()
        self._models: dict[str, type[BaseModel]] = {m.__name__: m for m in models}
        self._snippet = snippet or SnippetOptions()
        self._extensions: dict[str, _RegisteredExtension] = {}

        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS objects (
                collection TEXT NOT NULL,
                key TEXT NOT NULL,
                type_name TEXT NOT NULL,
                data TEXT NOT NULL,
                PRIMARY KEY (collection, key)
            );
            CREATE TABLE IF NOT EXISTS fts_extensions (
                name TEXT PRIMARY KEY,
                table_name TEXT NOT NULL,
                column_names TEXT NOT NULL
            );
            """)
        self._conn.commit()
        logger.info("storage_opened", path=path)

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Storage is closed")
        return self._conn

    # Extensions

    def register(self, extension: FullTextSearchExtension, name: str) -> None:
        """Register a full-text extension, blocking until it is ready.

        Registering a name twice is a no-op. A name already persisted in
        the database is re-attached as-is; a new name is populated from
        every stored object.

        Args:
            extension: Index schema and handler.
            name: Extension name used to look the index up in transactions.

        Raises:
            ValueError: If a column name is unusable, or a persisted index
                of the same name has different columns.
        """
        for column in extension.column_names:
            if not _IDENTIFIER.match(column) or column in _RESERVED_COLUMNS:
                raise ValueError(f"Invalid full-text column name: {column!r}")
        column_spec = ",".join(extension.column_names)

        with self._lock:
            if name in self._extensions:
                return

            row = self.conn.execute(
                "SELECT table_name, column_names FROM fts_extensions WHERE name = ?",
                (name,),
            ).fetchone()

            if row is not None:
                table, persisted_columns = row
                if persisted_columns != column_spec:
                    raise ValueError(
                        f"Extension {name!r} is persisted with columns "
                        f"{persisted_columns!r}, not {column_spec!r}"
                    )
                self._extensions[name] = _RegisteredExtension(extension, table)
                logger.info("fts_extension_attached", name=name)
                return

            table = _table_name(name)
            registered = _RegisteredExtension(extension, table)
            columns = ", ".join(f'"{c}"' for c in extension.column_names)
            try:
                self.conn.execute(f"""
                    CREATE VIRTUAL TABLE IF NOT EXISTS "{table}" USING fts5(
                        {columns},
                        collection UNINDEXED,
                        key UNINDEXED,
                        tokenize='unicode61'
                    )
                    """)
                self.conn.execute(f'DELETE FROM "{table}"')

                count = 0
                for collection, key, obj in self._iter_objects():
                    if self._index_object(registered, collection, key, obj):
                        count += 1

                self.conn.execute(
                    "INSERT INTO fts_extensions (name, table_name, column_names) "
                    "VALUES (?, ?, ?)",
                    (name, table, column_spec),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise

            self._extensions[name] = registered

        logger.info("fts_extension_created", name=name, document_count=count)

    async def async_register(self, extension: FullTextSearchExtension, name: str) -> None:
        """Register a full-text extension without blocking the event loop.

        Args:
            extension: Index schema and handler.
            name: Extension name.
        """
        await asyncio.to_thread(self.register, extension, name)

    def unregister(self, name: str) -> None:
        """Drop a full-text extension and its persisted index.

        Args:
            name: Extension name. Unknown names are ignored.
        """
        with self._lock:
            row = self.conn.execute(
                "SELECT table_name FROM fts_extensions WHERE name = ?", (name,)
            ).fetchone()
            self._extensions.pop(name, None)
            if row is None:
                return
            self.conn.execute(f'DROP TABLE IF EXISTS "{row[0]}"')
            self.conn.execute("DELETE FROM fts_extensions WHERE name = ?", (name,))
            self.conn.commit()

        logger.info("fts_extension_dropped", name=name)

    def extension_names(self) -> list[str]:
        """List the names of all persisted full-text extensions.

        Returns:
            Extension names, registered in this process or not.
        """
        with self._lock:
            rows = self.conn.execute(
                "SELECT name FROM fts_extensions ORDER BY name"
            ).fetchall()
        return [name for (name,) in rows]

    def is_registered(self, name: str) -> bool:
        with self._lock:
            return name in self._extensions

    # Transactions

    @contextmanager
    def read_transaction(self) -> Iterator["ReadTransaction"]:
        """Open a read transaction.

        Yields:
            Transaction valid until the context exits.
        """
        with self._lock:
            yield ReadTransaction(self)

    @contextmanager
    def read_write_transaction(self) -> Iterator["ReadWriteTransaction"]:
        """Open a read-write transaction, committed when the context exits.

        Yields:
            Transaction valid until the context exits.
        """
        with self._lock:
            try:
                yield ReadWriteTransaction(self)
            except Exception:
                self.conn.rollback()
                raise
            self.conn.commit()

    def ping(self) -> None:
        """Run a trivial query, raising sqlite3.Error if the database is unusable."""
        with self._lock:
            self.conn.execute("SELECT 1").fetchone()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.info("storage_closed")

    # Internals, called with the lock held

    def _deserialize(self, type_name: str, data: str) -> BaseModel:
        return self._models[type_name].model_validate_json(data)

    def _iter_objects(self) -> Iterator[tuple[str, str, BaseModel]]:
        rows = self.conn.execute(
            "SELECT collection, key, type_name, data FROM objects"
        ).fetchall()
        for collection, key, type_name, data in rows:
            yield collection, key, self._deserialize(type_name, data)

    def _load_object(self, collection: str, key: str) -> BaseModel | None:
        row = self.conn.execute(
            "SELECT type_name, data FROM objects WHERE collection = ? AND key = ?",
            (collection, key),
        ).fetchone()
        if row is None:
            return None
        return self._deserialize(*row)

    def _index_object(
        self,
        registered: _RegisteredExtension,
        collection: str,
        key: str,
        obj: Any,
    ) -> bool:
        """Recompute the index row of one object.

        Returns:
            True if the object has a row in the index afterwards.
        """
        table = registered.table
        self.conn.execute(
            f'DELETE FROM "{table}" WHERE collection = ? AND key = ?',
            (collection, key),
        )

        values: dict[str, str] = {}
        registered.extension.handler(values, collection, key, obj)
        if not values:
            return False

        column_names = registered.extension.column_names
        columns = ", ".join(f'"{c}"' for c in column_names)
        placeholders = ", ".join("?" for _ in column_names)
        self.conn.execute(
            f'INSERT INTO "{table}" ({columns}, collection, key) '
            f"VALUES ({placeholders}, ?, ?)",
            (*(values.get(c, "") for c in column_names), collection, key),
        )
        return True

    def _set_object(self, collection: str, key: str, obj: BaseModel) -> frozenset[str]:
        type_name = type(obj).__name__
        if self._models.get(type_name) is not type(obj):
            raise TypeError(f"Storage does not accept objects of type {type_name}")

        self.conn.execute(
            "INSERT OR REPLACE INTO objects (collection, key, type_name, data) "
            "VALUES (?, ?, ?, ?)",
            (collection, key, type_name, obj.model_dump_json()),
        )
        return frozenset(
            name
            for name, registered in self._extensions.items()
            if self._index_object(registered, collection, key, obj)
        )

    def _remove_object(self, collection: str, key: str) -> bool:
        cursor = self.conn.execute(
            "DELETE FROM objects WHERE collection = ? AND key = ?",
            (collection, key),
        )
        for registered in self._extensions.values():
            self.conn.execute(
                f'DELETE FROM "{registered.table}" WHERE collection = ? AND key = ?',
                (collection, key),
            )
        return cursor.rowcount > 0

    def _matches(self, table: str, query: str) -> Iterator[FullTextMatch]:
        # No ORDER BY: matches come back in FTS5's native order
        sql = (
            f'SELECT snippet("{table}", -1, ?, ?, ?, ?), '
            f'"{table}".collection, "{table}".key, objects.type_name, objects.data '
            f'FROM "{table}" JOIN objects '
            f'ON objects.collection = "{table}".collection '
            f'AND objects.key = "{table}".key '
            f'WHERE "{table}" MATCH ?'
        )
        options = self._snippet
        params = (options.start, options.end, options.ellipsis, options.tokens, query)

        cursor = self.conn.cursor()
        try:
            cursor.execute(sql, params)
            for snippet, collection, key, type_name, data in cursor:
                yield FullTextMatch(
                    snippet or "",
                    collection,
                    key,
                    self._deserialize(type_name, data),
                )
        except sqlite3.OperationalError:
            logger.warning("search_query_failed", query=query)
        finally:
            cursor.close()


class FullTextSearchTransaction:
    """Query handle of one full-text extension inside a transaction."""

    def __init__(self, storage: Storage, table: str) -> None:
        self._storage = storage
        self._table = table

    def matches(self, query: str) -> Iterator[FullTextMatch]:
        """Enumerate objects matching an FTS5 query.

        Closing the returned iterator stops the enumeration. A malformed
        query is logged and yields no matches.

        Args:
            query: FTS5 MATCH expression.

        Returns:
            Iterator of matches in the engine's native order.
        """
        return self._storage._matches(self._table, query)


class ReadTransaction:
    """Read access to stored objects and full-text extensions."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def object(self, collection: str, key: str) -> BaseModel | None:
        """Load a stored object.

        Args:
            collection: Object collection.
            key: Object key within the collection.

        Returns:
            The object, or None if nothing is stored there.
        """
        return self._storage._load_object(collection, key)

    def ext(self, name: str) -> FullTextSearchTransaction | None:
        """Look up a registered full-text extension.

        Args:
            name: Extension name.

        Returns:
            Query handle, or None if no extension is registered by that name.
        """
        registered = self._storage._extensions.get(name)
        if registered is None:
            return None
        return FullTextSearchTransaction(self._storage, registered.table)


class ReadWriteTransaction(ReadTransaction):
    """Read-write transaction; writes re-run every extension handler."""

    def set_object(self, collection: str, key: str, obj: BaseModel) -> frozenset[str]:
        """Insert or replace an object and reindex it.

        Args:
            collection: Object collection.
            key: Object key within the collection.
            obj: Model instance of a type the store accepts.

        Returns:
            Names of the extensions that hold an index row for the object.

        Raises:
            TypeError: If the store was not configured for the object's type.
        """
        return self._storage._set_object(collection, key, obj)

    def remove_object(self, collection: str, key: str) -> bool:
        """Remove an object and its index rows.

        Args:
            collection: Object collection.
            key: Object key within the collection.

        Returns:
            True if an object was removed.
        """
        return self._storage._remove_object(collection, key)
