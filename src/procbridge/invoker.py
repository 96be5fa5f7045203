"""
Procedure invocation entry points.

Each entry point takes a contract (a MethodSignature or a function
decorated with @procedure), a Database, an optional transaction and the
input arguments in declaration order:

    status, = execute_non_query(get_status, client, None, 'ACME')

    with Transaction(client) as tx:
        execute_non_query(cancel_order, client, tx, order_id, True)

The transaction is only handed to the database when one is supplied.
"""
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from procbridge.database import Database, DataSet, Parameter
from procbridge.exceptions import InvalidOperationError, TypeMismatchError
from procbridge.locator import resolve_procedure_name
from procbridge.parameters import bind_parameters
from procbridge.signature import MethodSignature, get_signature
from procbridge.types import ParameterDirection, SemanticType, TransactionLike
from procbridge.types import resolve_semantic_type

logger = logging.getLogger(__name__)

__all__ = [
    'Invocation',
    'prepare_invocation',
    'execute_non_query',
    'execute_dataset',
    'execute_reader',
    'execute_scalar',
    'marshal_outputs',
    'as_bool',
]

Contract = MethodSignature | Callable[..., Any]


@dataclass(frozen=True)
class Invocation:
    """A resolved procedure call, ready to hand to a Database.
    """
    procedure: str
    parameters: tuple[Parameter, ...]
    transaction: TransactionLike | None = None


def prepare_invocation(contract: Contract, db: Database,
                       transaction: TransactionLike | None,
                       args: Sequence[Any]) -> Invocation:
    """Resolve the procedure name and bind parameters for a call.
    """
    signature = get_signature(contract)
    procedure = resolve_procedure_name(signature)
    parameters = bind_parameters(signature, db, args)
    logger.debug(f'Prepared call to {procedure} with {len(parameters)} parameters'
                 f'{" in transaction" if transaction is not None else ""}')
    return Invocation(procedure, tuple(parameters), transaction)


def _delegate(method: Callable[..., Any], invocation: Invocation) -> Any:
    parameters = list(invocation.parameters)
    if invocation.transaction is not None:
        return method(invocation.procedure, parameters, invocation.transaction)
    return method(invocation.procedure, parameters)


def as_bool(value: Any) -> bool:
    """Convert an integer-encoded boolean back to bool.

    :raises TypeMismatchError: if value is not an integer.
    """
    if not isinstance(value, int | np.integer):
        raise TypeMismatchError(
            'The returned boolean type from the stored procedure is not of the expected type: '
            f'{type(value).__name__}')
    return bool(value != 0)


def marshal_outputs(signature: MethodSignature, parameters: Sequence[Parameter]) -> list[Any]:
    """Collect output parameter values in bound order.

    Output parameters are matched to declared output parameters by
    position only. Values for declared boolean outputs are converted
    back from integers.

    :raises InvalidOperationError: if there are more bound outputs than
        declared outputs.
    """
    declared = signature.output_parameters
    outputs = [p for p in parameters if p.direction is ParameterDirection.OUTPUT]

    values = []
    try:
        for index, param in enumerate(outputs):
            expected = resolve_semantic_type(declared[index].pointed_at_type)
            if expected is SemanticType.BOOLEAN:
                values.append(as_bool(param.value))
            else:
                values.append(param.value)
    except IndexError as err:
        raise InvalidOperationError(
            f'The output parameters for {signature.name} do not match '
            'the parameters for the stored procedure') from err
    return values


def execute_non_query(contract: Contract, db: Database,
                      transaction: TransactionLike | None = None, *args: Any) -> list[Any]:
    """Run a procedure without a result set and return its output values.

    Returns
        Output parameter values in the order the outputs are declared
    """
    signature = get_signature(contract)
    invocation = prepare_invocation(signature, db, transaction, args)
    _delegate(db.execute_non_query, invocation)
    return marshal_outputs(signature, invocation.parameters)


def execute_dataset(contract: Contract, db: Database,
                    transaction: TransactionLike | None = None, *args: Any) -> DataSet:
    """Run a procedure and return its result sets unchanged.
    """
    invocation = prepare_invocation(contract, db, transaction, args)
    return _delegate(db.execute_dataset, invocation)


def execute_reader(contract: Contract, db: Database,
                   transaction: TransactionLike | None = None, *args: Any) -> Any:
    """Run a procedure and return an open reader.

    The caller owns the reader and must close it.
    """
    invocation = prepare_invocation(contract, db, transaction, args)
    return _delegate(db.execute_reader, invocation)


def execute_scalar(contract: Contract, db: Database,
                   transaction: TransactionLike | None = None, *args: Any) -> Any:
    """Run a procedure and return the first column of its first row.
    """
    invocation = prepare_invocation(contract, db, transaction, args)
    return _delegate(db.execute_scalar, invocation)
