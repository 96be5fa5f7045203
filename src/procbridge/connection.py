"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for opening a procedure client
2. The `ProcedureClient` class, the SQLAlchemy-backed Database
3. Engine creation and management through a thread-safe registry

ProcedureClient runs statements on the DB-API connection underneath the
SQLAlchemy connection and lets the dialect strategy spell each call.
Calls made outside a transaction are committed as soon as they finish.
"""
import atexit
import dataclasses
import logging
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any

import sqlalchemy as sa
from procbridge.database import Database, DataSet, Parameter
from procbridge.exceptions import InvalidOperationError
from procbridge.options import DatabaseOptions, create_url_from_options
from procbridge.reader import Reader
from procbridge.strategy import fetch_result_sets, get_strategy
from procbridge.transaction import Transaction
from procbridge.types import TransactionLike
from procbridge.utils import get_dialect_name
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

__all__ = [
    'ProcedureClient',
    'connect',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.
    """
    url = create_url_from_options(options)
    key = url.render_as_string(hide_password=False)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ProcedureClient(Database):
    """Runs stored procedures over a SQLAlchemy connection.

    This class:
    1. Picks the dialect strategy from the connection's dialect
    2. Executes the strategy's statements on the DB-API connection
    3. Copies output values back onto output parameters
    4. Commits calls made outside a transaction
    5. Tracks call counts and execution time
    """

    def __init__(self, connection: Any, options: DatabaseOptions | None = None) -> None:
        self.connection = connection
        self.dialect = get_dialect_name(connection)
        self.options = options or DatabaseOptions(drivername=self.dialect)
        self.strategy = get_strategy(self.dialect)
        self.in_transaction = False
        self.calls = 0
        self.time = 0.0

    @property
    def raw_connection(self) -> Any:
        """The DB-API connection underneath the SQLAlchemy connection."""
        return getattr(self.connection, 'connection', self.connection)

    def addcall(self, elapsed: float) -> None:
        self.time += elapsed
        self.calls += 1

    def _check_transaction(self, transaction: TransactionLike | None) -> None:
        if isinstance(transaction, Transaction) and transaction.client is not self:
            raise InvalidOperationError('The transaction belongs to a different client')

    def _execute(self, sql: str, args: tuple) -> Any:
        """Execute a statement and return the open cursor."""
        cursor = self.raw_connection.cursor()
        start = time.time()
        logger.debug(f'SQL:\n{sql}\nargs: {args}')
        try:
            cursor.execute(sql, args)
        except Exception:
            logger.error(f'Error with procedure call:\nSQL:\n{sql}\nargs: {args}')
            cursor.close()
            raise
        finally:
            elapsed = time.time() - start
            self.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
        return cursor

    def _finish(self, transaction: TransactionLike | None) -> None:
        """Commit unless a transaction owns the work."""
        if transaction is None and not self.in_transaction:
            self.raw_connection.commit()

    def _abort(self, transaction: TransactionLike | None) -> None:
        """Roll back unless a transaction owns the work."""
        if transaction is None and not self.in_transaction:
            self.raw_connection.rollback()

    def _run(self, sql: str, args: tuple, transaction: TransactionLike | None,
             consume: Callable[[Any], Any]) -> Any:
        self._check_transaction(transaction)
        cursor = None
        try:
            cursor = self._execute(sql, args)
            result = consume(cursor)
        except Exception:
            self._abort(transaction)
            raise
        finally:
            if cursor is not None:
                cursor.close()
        self._finish(transaction)
        return result

    def execute_non_query(self, procedure: str, parameters: Sequence[Parameter],
                          transaction: TransactionLike | None = None) -> None:
        sql, args = self.strategy.build_call(procedure, parameters)
        self._run(sql, args, transaction,
                  lambda cursor: self.strategy.read_outputs(cursor, procedure, parameters))

    def execute_dataset(self, procedure: str, parameters: Sequence[Parameter],
                        transaction: TransactionLike | None = None) -> DataSet:
        sql, args = self.strategy.build_query(procedure, parameters)
        result_sets = self._run(sql, args, transaction, fetch_result_sets)
        return [self.options.data_loader(rows, columns) for columns, rows in result_sets]

    def execute_scalar(self, procedure: str, parameters: Sequence[Parameter],
                       transaction: TransactionLike | None = None) -> Any:
        sql, args = self.strategy.build_query(procedure, parameters)
        result_sets = self._run(sql, args, transaction, fetch_result_sets)
        for _, rows in result_sets:
            if rows:
                return rows[0][0]
        return None

    def execute_reader(self, procedure: str, parameters: Sequence[Parameter],
                       transaction: TransactionLike | None = None) -> Reader:
        """Run a procedure and hand back an open reader.

        Outside a transaction the call is committed when the reader closes.
        """
        self._check_transaction(transaction)
        sql, args = self.strategy.build_query(procedure, parameters)
        try:
            cursor = self._execute(sql, args)
        except Exception:
            self._abort(transaction)
            raise
        return Reader(cursor, on_close=lambda: self._finish(transaction))

    def close(self) -> None:
        self.connection.close()
        logger.debug(f'Closed client after {self.calls} calls ({self.time:.4f}s)')

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


def connect(options: DatabaseOptions | dict | None = None, **kwargs: Any) -> ProcedureClient:
    """Open a ProcedureClient.

    Accepts DatabaseOptions, a dict of option values, or keyword options.
    Keyword options override values from either form.

    Examples
        client = connect({'drivername': 'mssql', 'hostname': 'db01', 'database': 'orders'})
    """
    if options is None:
        options = DatabaseOptions(**kwargs)
    elif isinstance(options, dict):
        options = DatabaseOptions(**(options | kwargs))
    elif kwargs:
        options = dataclasses.replace(options, **kwargs)

    engine = get_engine_for_options(options)
    return ProcedureClient(engine.connect(), options)
