"""
Base strategy interface for dialect-specific procedure calls.

Each strategy knows how one database engine spells a procedure call,
how output parameter values come back, and which parameter adjustments
the engine's driver needs. Strategies are registered per dialect name
(the SQLAlchemy dialect name, e.g. 'postgresql' or 'mssql').
"""
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from procbridge.database import Parameter
from procbridge.exceptions import InvalidOperationError
from procbridge.types import ParameterDirection

# Registry of dialect name -> strategy class
_STRATEGY_REGISTRY: dict[str, type['ProcedureStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('mssql')
        class SQLServerStrategy(ProcedureStrategy):
            ...
    """
    def decorator(cls: type['ProcedureStrategy']) -> type['ProcedureStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


def fetch_result_sets(cursor: Any) -> list[tuple[list[str], list[tuple]]]:
    """Drain every result set from a DB-API cursor.

    Returns
        list of (column names, rows) pairs, in the order the engine produced them
    """
    results = []
    while True:
        if cursor.description is not None:
            columns = [desc[0] for desc in cursor.description]
            results.append((columns, [tuple(row) for row in cursor.fetchall()]))
        if not hasattr(cursor, 'nextset') or not cursor.nextset():
            break
    return results


def is_output(param: Parameter) -> bool:
    return param.direction is ParameterDirection.OUTPUT


class ProcedureStrategy(ABC):
    """Base class for dialect-specific procedure calls.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'postgresql', 'mssql')."""

    @abstractmethod
    def build_call(self, procedure: str, parameters: Sequence[Parameter]) -> tuple[str, tuple]:
        """Build a statement that runs a procedure and yields its output values.

        Args:
            procedure: Fully qualified procedure name
            parameters: Bound parameters in declaration order

        Returns
            (sql, args) where args holds the input values in placeholder order
        """

    @abstractmethod
    def build_query(self, procedure: str, parameters: Sequence[Parameter]) -> tuple[str, tuple]:
        """Build a statement that runs a procedure for its result sets.

        Args:
            procedure: Fully qualified procedure name
            parameters: Bound parameters in declaration order

        Returns
            (sql, args) where args holds the input values in placeholder order
        """

    def adjust_parameter(self, param: Parameter) -> None:
        """Adjust a freshly created parameter for this engine.

        Args:
            param: Parameter returned by the database's parameter factory
        """

    def input_values(self, parameters: Sequence[Parameter]) -> tuple:
        return tuple(p.value for p in parameters if not is_output(p))

    def read_outputs(self, cursor: Any, procedure: str,
                     parameters: Sequence[Parameter]) -> None:
        """Copy output values from the executed statement onto the parameters.

        The last row of the last result set holds the output values, in the
        order the output parameters were bound.
        """
        outputs = [p for p in parameters if is_output(p)]
        if not outputs:
            return

        result_sets = fetch_result_sets(cursor)
        if not result_sets or not result_sets[-1][1]:
            raise InvalidOperationError(f'{procedure} returned no output values')

        row = result_sets[-1][1][-1]
        if len(row) != len(outputs):
            raise InvalidOperationError(
                f'{procedure} returned {len(row)} output values, expected {len(outputs)}')

        for param, value in zip(outputs, row):
            param.value = value
