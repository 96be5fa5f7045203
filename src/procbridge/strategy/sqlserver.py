"""
SQL Server-specific strategy implementation.

Output parameters have to be declared as batch variables, passed with
OUTPUT and selected back at the end of the batch:

    SET NOCOUNT ON;
    DECLARE @OUT_intStatus INT;
    EXEC ORDERS.GetStatus @IN_strName = ?, @OUT_intStatus = @OUT_intStatus OUTPUT;
    SELECT @OUT_intStatus AS [OUT_intStatus];

NOCOUNT keeps row-count messages from showing up as empty result sets
under pyodbc.
"""
import logging
from collections.abc import Sequence

from procbridge.database import Parameter
from procbridge.strategy.base import ProcedureStrategy, is_output
from procbridge.strategy.base import register_strategy
from procbridge.types import DbType

logger = logging.getLogger(__name__)

# Output decimals declared without a scale come back rounded to whole numbers
OUTPUT_DECIMAL_SCALE = 6

_SQLSERVER_TYPES = {
    DbType.INT16: 'SMALLINT',
    DbType.UINT16: 'INT',
    DbType.INT32: 'INT',
    DbType.UINT32: 'BIGINT',
    DbType.INT64: 'BIGINT',
    DbType.UINT64: 'DECIMAL(20, 0)',
    DbType.SINGLE: 'REAL',
    DbType.DOUBLE: 'FLOAT',
    DbType.STRING: 'NVARCHAR(MAX)',
    DbType.DATETIME: 'DATETIME2',
}


@register_strategy('mssql')
class SQLServerStrategy(ProcedureStrategy):
    """SQL Server-specific operations"""

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQL Server."""
        return 'mssql'

    def adjust_parameter(self, param):
        """Give output decimal parameters a fixed scale"""
        if is_output(param) and param.db_type is DbType.DECIMAL:
            param.scale = OUTPUT_DECIMAL_SCALE
            logger.debug(f'Set scale {OUTPUT_DECIMAL_SCALE} on output parameter {param.name}')

    def declare_type(self, param: Parameter) -> str:
        """SQL type used to declare an output variable"""
        if param.db_type is DbType.DECIMAL:
            return f'DECIMAL(38, {param.scale or 0})'
        return _SQLSERVER_TYPES[param.db_type]

    def _build_exec(self, procedure: str, parameters: Sequence[Parameter],
                    select_outputs: bool) -> tuple[str, tuple]:
        outputs = [p for p in parameters if is_output(p)]

        lines = ['SET NOCOUNT ON;']
        if outputs:
            declarations = ', '.join(f'@{p.name} {self.declare_type(p)}' for p in outputs)
            lines.append(f'DECLARE {declarations};')

        assignments = []
        for param in parameters:
            if is_output(param):
                assignments.append(f'@{param.name} = @{param.name} OUTPUT')
            else:
                assignments.append(f'@{param.name} = ?')
        if assignments:
            lines.append(f'EXEC {procedure} {", ".join(assignments)};')
        else:
            lines.append(f'EXEC {procedure};')

        if select_outputs and outputs:
            columns = ', '.join(f'@{p.name} AS [{p.name}]' for p in outputs)
            lines.append(f'SELECT {columns};')

        sql = '\n'.join(lines)
        logger.debug(f'Built batch for {procedure}:\n{sql}')
        return sql, self.input_values(parameters)

    def build_call(self, procedure, parameters):
        return self._build_exec(procedure, parameters, select_outputs=True)

    def build_query(self, procedure, parameters):
        return self._build_exec(procedure, parameters, select_outputs=False)
