"""
Bind call-site arguments to procedure parameters.
"""
import logging
from collections.abc import Sequence
from typing import Any

from procbridge.database import Database, Parameter
from procbridge.exceptions import InvalidOperationError
from procbridge.naming import build_parameter_name
from procbridge.signature import MethodSignature
from procbridge.strategy import find_strategy
from procbridge.types import ParameterDirection, convert_input_value
from procbridge.types import map_to_db_type, resolve_semantic_type

logger = logging.getLogger(__name__)

__all__ = ['bind_parameters']


def bind_parameters(signature: MethodSignature, db: Database,
                    args: Sequence[Any]) -> list[Parameter]:
    """Build the ordered parameter list for a procedure call.

    Walks the declared parameters in order. Transaction parameters are
    skipped and do not consume an argument. Each input parameter takes the
    next argument from ``args``; output parameters are bound without a
    value. Boolean inputs are bound as 1/0.

    ``args`` is never modified: converted values only live on the returned
    parameters.

    After each parameter is created, the strategy registered for
    ``db.dialect`` (if any) gets a chance to adjust it.

    :raises InvalidOperationError: if the argument count does not match the
        declared input parameters.
    :raises MappingError: if a declared type is unsupported.
    """
    inputs = signature.input_parameters
    if len(args) != len(inputs):
        raise InvalidOperationError(
            f'{signature.name} declares {len(inputs)} input parameters '
            f'but {len(args)} arguments were supplied')

    options = signature.options
    strategy = find_strategy(getattr(db, 'dialect', None))

    bound = []
    arg_index = 0
    for descriptor in signature.parameters:
        if descriptor.is_transaction:
            continue

        declared = descriptor.pointed_at_type
        name = build_parameter_name(descriptor.direction, declared, descriptor.name,
                                    options.omit_direction, options.omit_type)
        db_type = map_to_db_type(declared)

        value = None
        if descriptor.direction is ParameterDirection.INPUT:
            value = convert_input_value(args[arg_index], resolve_semantic_type(declared))
            arg_index += 1

        param = db.create_parameter(name, db_type, value, descriptor.direction)
        if strategy is not None:
            strategy.adjust_parameter(param)
        bound.append(param)

    logger.debug(f'Bound {len(bound)} parameters for {signature.name}: '
                 f'{[p.name for p in bound]}')
    return bound
