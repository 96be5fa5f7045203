"""
Database-access collaborator interface.

The procedure invoker never talks to a driver directly. It hands a
procedure name and a list of bound parameters to a Database, which
creates the parameter objects and runs the call. ProcedureClient in
procbridge.connection is the SQLAlchemy-backed implementation; tests and
callers may provide their own.
"""
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd
from procbridge.types import DbType, ParameterDirection, TransactionLike

__all__ = ['Parameter', 'Database', 'DataSet']

DataSet = list[pd.DataFrame]


@dataclass
class Parameter:
    """A bound procedure parameter.

    Output parameters start with ``value=None``; the database fills the
    value in when the call returns.
    """
    name: str
    db_type: DbType
    value: Any = None
    direction: ParameterDirection = ParameterDirection.INPUT
    scale: int | None = None

    @property
    def is_output(self) -> bool:
        return self.direction is ParameterDirection.OUTPUT


class Database(ABC):
    """Capabilities the invoker needs from a database.

    Every execute method takes an optional transaction. The invoker only
    passes it when the caller supplied one.
    """

    #: dialect tag used to look up parameter adjustments (e.g. 'mssql')
    dialect: str | None = None

    def create_parameter(self, name: str, db_type: DbType, value: Any,
                         direction: ParameterDirection) -> Parameter:
        """Create a parameter object for a procedure call.
        """
        return Parameter(name=name, db_type=db_type, value=value, direction=direction)

    @abstractmethod
    def execute_non_query(self, procedure: str, parameters: Sequence[Parameter],
                          transaction: TransactionLike | None = None) -> None:
        """Run a procedure that returns no result set.

        Output parameter values are written back onto ``parameters``.
        """

    @abstractmethod
    def execute_dataset(self, procedure: str, parameters: Sequence[Parameter],
                        transaction: TransactionLike | None = None) -> DataSet:
        """Run a procedure and return every result set as a DataFrame.
        """

    @abstractmethod
    def execute_reader(self, procedure: str, parameters: Sequence[Parameter],
                       transaction: TransactionLike | None = None) -> Any:
        """Run a procedure and return an open streaming reader.

        The caller owns the reader and must close it.
        """

    @abstractmethod
    def execute_scalar(self, procedure: str, parameters: Sequence[Parameter],
                       transaction: TransactionLike | None = None) -> Any:
        """Run a procedure and return the first column of the first row.
        """
