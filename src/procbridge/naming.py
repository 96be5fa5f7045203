"""
Stored procedure parameter naming convention.

Procedure parameters are named ``<direction><type><Name>``, for example
``IN_strCustomerName`` or ``OUT_intStatus``. Either the direction prefix
or the type token may be switched off per procedure. The convention is
fixed by the procedures already deployed in the database.
"""
from typing import Any

from procbridge.types import ParameterDirection, map_to_naming_token

IN_DIRECTION = 'IN_'
OUT_DIRECTION = 'OUT_'

__all__ = ['IN_DIRECTION', 'OUT_DIRECTION', 'build_parameter_name']


def build_parameter_name(direction: ParameterDirection, type_: Any, raw_name: str,
                         omit_direction: bool = False, omit_type: bool = False) -> str:
    """Build the parameter name a stored procedure expects.

    Args:
        direction: Whether the parameter is an input or an output
        type_: Declared parameter type (anything the type mapper accepts)
        raw_name: Parameter name as declared on the contract
        omit_direction: Leave out the ``IN_``/``OUT_`` prefix
        omit_type: Leave out the type token

    Returns
        The derived procedure parameter name

    Examples
        >>> from procbridge.types import ParameterDirection as D
        >>> build_parameter_name(D.INPUT, str, 'customerName')
        'IN_strCustomerName'
        >>> build_parameter_name(D.INPUT, str, 'customerName', omit_type=True)
        'IN_customerName'
        >>> build_parameter_name(D.OUTPUT, int, 'count', omit_direction=True)
        'intCount'
    """
    name = ''

    if not omit_direction:
        name += IN_DIRECTION if direction is ParameterDirection.INPUT else OUT_DIRECTION

    if omit_type:
        return name + raw_name

    # with a type token the raw name is capitalised: IN_strArg1, not IN_strarg1
    return name + map_to_naming_token(type_) + raw_name[:1].upper() + raw_name[1:]
