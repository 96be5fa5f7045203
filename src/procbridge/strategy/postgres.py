"""
PostgreSQL-specific strategy implementation.

Procedures are invoked with CALL using named notation. Output
parameters are passed as typed NULLs and PostgreSQL returns their values
as a single row. Result sets come from set-returning functions, which
are selected from rather than called.
"""
import logging
from collections.abc import Sequence

from procbridge.database import Parameter
from procbridge.strategy.base import ProcedureStrategy, is_output
from procbridge.strategy.base import register_strategy
from procbridge.types import DbType

logger = logging.getLogger(__name__)

_POSTGRES_TYPES = {
    DbType.INT16: 'smallint',
    DbType.UINT16: 'integer',
    DbType.INT32: 'integer',
    DbType.UINT32: 'bigint',
    DbType.INT64: 'bigint',
    DbType.UINT64: 'numeric',
    DbType.DECIMAL: 'numeric',
    DbType.SINGLE: 'real',
    DbType.DOUBLE: 'double precision',
    DbType.STRING: 'text',
    DbType.DATETIME: 'timestamp',
}


@register_strategy('postgresql')
class PostgresStrategy(ProcedureStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def _argument(self, param: Parameter) -> str:
        pg_type = _POSTGRES_TYPES[param.db_type]
        if is_output(param):
            return f'{param.name} => NULL::{pg_type}'
        return f'{param.name} => %s::{pg_type}'

    def build_call(self, procedure, parameters: Sequence[Parameter]):
        """Build a CALL statement, e.g.

        CALL orders.get_status(IN_strName => %s::text, OUT_intStatus => NULL::integer)
        """
        arguments = ', '.join(self._argument(p) for p in parameters)
        sql = f'CALL {procedure}({arguments})'
        logger.debug(f'Built call for {procedure}: {sql}')
        return sql, self.input_values(parameters)

    def build_query(self, procedure, parameters: Sequence[Parameter]):
        """Build a SELECT from a set-returning function.

        Output parameters are not part of a function's argument list.
        """
        arguments = ', '.join(self._argument(p) for p in parameters if not is_output(p))
        sql = f'SELECT * FROM {procedure}({arguments})'
        logger.debug(f'Built query for {procedure}: {sql}')
        return sql, self.input_values(parameters)
