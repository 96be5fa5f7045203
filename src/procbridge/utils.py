"""Low-level connection utilities with no internal dependencies.
"""
from typing import Any

__all__ = ['get_dialect_name']


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a database connection or engine.

    Works with SQLAlchemy connections and engines, and with any object
    carrying a ``dialect`` string.
    """
    if hasattr(obj, 'dialect'):
        dialect = obj.dialect
        if isinstance(dialect, str):
            return dialect.lower()
        return str(dialect.name).lower()

    if hasattr(obj, 'engine') and hasattr(obj.engine, 'dialect'):
        return str(obj.engine.dialect.name).lower()

    type_name = f'{type(obj).__module__}.{type(obj).__name__}'
    if 'psycopg' in type_name:
        return 'postgresql'
    if 'pyodbc' in type_name:
        return 'mssql'

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')
