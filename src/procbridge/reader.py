"""
Streaming reader over an executed procedure's result sets.
"""
import logging
from collections.abc import Callable, Iterator
from typing import Any, Self

logger = logging.getLogger(__name__)

__all__ = ['Reader']


class Reader:
    """Forward-only reader over a DB-API cursor.

    Rows are returned as dictionaries keyed by column name. The reader
    owns the cursor; close it (or use it as a context manager) when done.
    ``on_close`` runs once after the cursor is closed.

    Examples
        with execute_reader(list_orders, client, None, 'ACME') as reader:
            for row in reader:
                print(row['order_id'])
    """

    def __init__(self, cursor: Any, arraysize: int = 5000,
                 on_close: Callable[[], None] | None = None) -> None:
        self.dbapi_cursor = cursor
        self.on_close = on_close
        self.arraysize = arraysize
        self._closed = False

    @property
    def columns(self) -> list[str]:
        """Column names of the current result set."""
        if self.dbapi_cursor.description is None:
            return []
        return [desc[0] for desc in self.dbapi_cursor.description]

    @property
    def closed(self) -> bool:
        return self._closed

    def _as_dict(self, row: Any) -> dict[str, Any]:
        return dict(zip(self.columns, row))

    def fetchone(self) -> dict[str, Any] | None:
        """Fetch next row."""
        row = self.dbapi_cursor.fetchone()
        return None if row is None else self._as_dict(row)

    def fetchmany(self, size: int | None = None) -> list[dict[str, Any]]:
        """Fetch next set of rows."""
        rows = self.dbapi_cursor.fetchmany(size or self.arraysize)
        return [self._as_dict(row) for row in rows]

    def fetchall(self) -> list[dict[str, Any]]:
        """Fetch all remaining rows of the current result set."""
        return [self._as_dict(row) for row in self.dbapi_cursor.fetchall()]

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while True:
            chunk = self.fetchmany()
            if not chunk:
                break
            yield from chunk

    def next_result(self) -> bool:
        """Move to the next result set.

        Returns False when there are no more result sets or the driver
        does not support multiple result sets.
        """
        if not hasattr(self.dbapi_cursor, 'nextset'):
            return False
        return bool(self.dbapi_cursor.nextset())

    def close(self) -> None:
        """Close the underlying cursor."""
        if self._closed:
            return
        self.dbapi_cursor.close()
        self._closed = True
        if self.on_close is not None:
            self.on_close()
        logger.debug('Closed procedure reader')

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
