from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pandas as pd
import sqlalchemy as sa
from procbridge.strategy import get_available_dialects, is_supported_dialect

__all__ = [
    'DatabaseOptions',
    'pandas_numpy_data_loader',
    'iterdict_data_loader',
    'create_url_from_options',
]

DEFAULT_SQLSERVER_DRIVER = 'ODBC Driver 18 for SQL Server'


def iterdict_data_loader(data, columns, **kwargs) -> list[dict]:
    """Minimal data loader returning one dict per row.
    """
    if not data:
        return []
    return [dict(zip(columns, row)) for row in data]


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    """
    if not data:
        return pd.DataFrame(columns=list(columns))
    return pd.DataFrame.from_records(list(data), columns=list(columns))


@dataclass
class DatabaseOptions:
    """Options

    supported driver names: `postgresql`, `mssql`

    - driver: ODBC driver name for SQL Server connections
    - data_loader: callable turning (rows, column names) into a result set,
      pandas DataFrame by default
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    driver: str = DEFAULT_SQLSERVER_DRIVER
    appname: str = None
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        self.appname = self.appname or 'procbridge'
        if self.data_loader is None:
            self.data_loader = pandas_numpy_data_loader


def create_url_from_options(options: DatabaseOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    if options.drivername == 'postgresql':
        query = {'application_name': options.appname}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)

        return url_creator(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    if options.drivername == 'mssql':
        query = {'driver': options.driver, 'APP': options.appname}
        if options.timeout:
            query['timeout'] = str(options.timeout)

        return url_creator(
            drivername='mssql+pyodbc',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    raise ValueError(f'Unsupported database type: {options.drivername}')
