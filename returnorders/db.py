"""Thin helper over a DB-API connection using named (:Name) parameters."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Mapping


class NoRowsError(LookupError):
    """A query expected a row and found none."""

    def __init__(self, message: str = "sql: no rows in result set") -> None:
        super().__init__(message)


def expand_in(query: str, values: Iterable[Any]) -> tuple[str, dict[str, Any]]:
    """Expand the single ``?`` placeholder of an IN clause into named parameters."""
    items = list(values)
    if not items:
        raise ValueError("empty slice passed to 'in' query")
    if query.count("?") != 1:
        raise ValueError("query must hold exactly one '?' placeholder")
    names = [f"_in_{i}" for i in range(len(items))]
    expanded = query.replace("?", ", ".join(f":{name}" for name in names))
    return expanded, dict(zip(names, items))


class Database:
    """Runs queries on one connection; rows come back as dictionaries."""

    def __init__(self, connection: Any) -> None:
        self._conn = connection
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Group statements; commit on success, roll back on any exception."""
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return
        self._depth = 1
        try:
            yield self
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()
        finally:
            self._depth = 0

    def _autocommit(self) -> None:
        if not self._depth:
            self._conn.commit()

    def _run(self, query: str, params: Mapping[str, Any] | None) -> Any:
        cursor = self._conn.cursor()
        cursor.execute(query, dict(params or {}))
        return cursor

    def fetch_all(self, query: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Return every row of the result as a dictionary keyed by column name."""
        cursor = self._run(query, params)
        try:
            if cursor.description is None:
                return []
            columns = [col[0] for col in cursor.description]
            rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()
        self._autocommit()
        return rows

    def fetch_one(self, query: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Return the first row; raise NoRowsError when there is none."""
        rows = self.fetch_all(query, params)
        if not rows:
            raise NoRowsError()
        return rows[0]

    def fetch_value(self, query: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return the first column of the first row."""
        return next(iter(self.fetch_one(query, params).values()))

    def execute(self, query: str, params: Mapping[str, Any] | None = None) -> int:
        """Run a statement and return the number of affected rows."""
        cursor = self._run(query, params)
        try:
            count = cursor.rowcount
        finally:
            cursor.close()
        self._autocommit()
        return count

    def execute_many(self, query: str, param_list: Iterable[Mapping[str, Any]]) -> int:
        """Run a statement once per parameter set and return the affected rows."""
        batch = [dict(params) for params in param_list]
        if not batch:
            raise ValueError("length of array is 0")
        cursor = self._conn.cursor()
        try:
            cursor.executemany(query, batch)
            count = cursor.rowcount
        finally:
            cursor.close()
        self._autocommit()
        return count

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()