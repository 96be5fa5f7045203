"""
Stored procedure invocation driven by declared method contracts.

A contract names the procedure's package, its parameters and their
directions. procbridge derives the procedure's parameter names and
database types from it, binds the call-site arguments, runs the call
through a Database and hands back output values:

    @procedure('ORDERS')
    def GetStatus(customerName: str, status: Out[int], active: Out[bool]): ...

    with connect({'drivername': 'mssql', 'hostname': 'db01'}) as client:
        status, active = execute_non_query(GetStatus, client, None, 'ACME')
"""
__version__ = '0.1.0'

from procbridge.connection import ProcedureClient, connect
from procbridge.database import Database, DataSet, Parameter
from procbridge.exceptions import ConfigurationError, InvalidOperationError
from procbridge.exceptions import MappingError, ProcedureError, TypeMismatchError
from procbridge.invoker import Invocation, execute_dataset, execute_non_query
from procbridge.invoker import execute_reader, execute_scalar, prepare_invocation
from procbridge.locator import resolve_procedure_name
from procbridge.naming import build_parameter_name
from procbridge.options import DatabaseOptions
from procbridge.parameters import bind_parameters
from procbridge.reader import Reader
from procbridge.signature import MethodSignature, ParameterDescriptor
from procbridge.signature import ProcedureOptions, SignatureBuilder
from procbridge.signature import get_signature, procedure
from procbridge.strategy import register_strategy
from procbridge.transaction import Transaction
from procbridge.types import DbType, Out, ParameterDirection, SemanticType
from procbridge.types import map_to_db_type, map_to_naming_token

__all__ = [
    'connect',
    'ProcedureClient',
    'Database',
    'DataSet',
    'Parameter',
    'DatabaseOptions',
    'Transaction',
    'Reader',
    'procedure',
    'Out',
    'get_signature',
    'MethodSignature',
    'ParameterDescriptor',
    'ProcedureOptions',
    'SignatureBuilder',
    'SemanticType',
    'DbType',
    'ParameterDirection',
    'map_to_db_type',
    'map_to_naming_token',
    'build_parameter_name',
    'bind_parameters',
    'resolve_procedure_name',
    'register_strategy',
    'Invocation',
    'prepare_invocation',
    'execute_non_query',
    'execute_dataset',
    'execute_reader',
    'execute_scalar',
    'ProcedureError',
    'ConfigurationError',
    'MappingError',
    'TypeMismatchError',
    'InvalidOperationError',
]
