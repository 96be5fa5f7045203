"""
Type handling for procedure parameters.

This module provides:
- SemanticType, DbType, ParameterDirection: the parameter type vocabulary
- Out: annotation marker for output (by-reference) parameters
- resolve_semantic_type: resolve a declared annotation to a SemanticType
- map_to_db_type / map_to_naming_token: the type mapping table
- convert_input_value: normalize call-site values before binding

Booleans are never given a database type of their own. They travel as
32-bit integers (0 = false, nonzero = true) because some target engines
cannot bind boolean parameters reliably.
"""
import datetime
import decimal
import enum
from typing import Annotated, Any, Protocol, get_args, get_origin
from typing import runtime_checkable

import numpy as np
import pandas as pd
from procbridge.exceptions import MappingError

__all__ = [
    'SemanticType',
    'DbType',
    'ParameterDirection',
    'Out',
    'TransactionLike',
    'unwrap_output',
    'is_transaction_type',
    'resolve_semantic_type',
    'map_to_db_type',
    'map_to_naming_token',
    'convert_input_value',
]


class SemanticType(enum.Enum):
    """Language-level parameter types a procedure contract may declare.
    """
    INT16 = 'int16'
    UINT16 = 'uint16'
    INT32 = 'int32'
    UINT32 = 'uint32'
    INT64 = 'int64'
    UINT64 = 'uint64'
    DECIMAL = 'decimal'
    SINGLE = 'single'
    DOUBLE = 'double'
    STRING = 'string'
    DATETIME = 'datetime'
    BOOLEAN = 'boolean'
    TRANSACTION = 'transaction'


class DbType(enum.Enum):
    """Database type tags handed to the parameter factory.
    """
    INT16 = 'Int16'
    UINT16 = 'UInt16'
    INT32 = 'Int32'
    UINT32 = 'UInt32'
    INT64 = 'Int64'
    UINT64 = 'UInt64'
    DECIMAL = 'Decimal'
    SINGLE = 'Single'
    DOUBLE = 'Double'
    STRING = 'String'
    DATETIME = 'DateTime'


class ParameterDirection(enum.Enum):
    INPUT = 'input'
    OUTPUT = 'output'


class _OutputMarker:
    def __repr__(self) -> str:
        return 'OUTPUT'


OUTPUT_MARKER = _OutputMarker()


class Out:
    """Annotation marker for output parameters.

    ``Out[int]`` expands to ``Annotated[int, OUTPUT_MARKER]`` so that the
    annotation survives ``typing.get_type_hints(..., include_extras=True)``.

    Examples
        def get_status(customer_id: int, status: Out[str]): ...
    """

    def __class_getitem__(cls, item: Any) -> Any:
        return Annotated[item, OUTPUT_MARKER]


@runtime_checkable
class TransactionLike(Protocol):
    """Anything that can be committed and rolled back counts as a transaction.
    """

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


_PYTHON_TYPES: dict[Any, SemanticType] = {
    bool: SemanticType.BOOLEAN,
    int: SemanticType.INT32,
    float: SemanticType.DOUBLE,
    decimal.Decimal: SemanticType.DECIMAL,
    str: SemanticType.STRING,
    datetime.datetime: SemanticType.DATETIME,
    pd.Timestamp: SemanticType.DATETIME,
    np.bool_: SemanticType.BOOLEAN,
    np.int16: SemanticType.INT16,
    np.uint16: SemanticType.UINT16,
    np.int32: SemanticType.INT32,
    np.uint32: SemanticType.UINT32,
    np.int64: SemanticType.INT64,
    np.uint64: SemanticType.UINT64,
    np.float32: SemanticType.SINGLE,
    np.float64: SemanticType.DOUBLE,
    np.str_: SemanticType.STRING,
    np.datetime64: SemanticType.DATETIME,
}

_DB_TYPES: dict[SemanticType, DbType] = {
    SemanticType.INT32: DbType.INT32,
    SemanticType.UINT32: DbType.UINT32,
    SemanticType.INT64: DbType.INT64,
    SemanticType.UINT64: DbType.UINT64,
    SemanticType.INT16: DbType.INT16,
    SemanticType.UINT16: DbType.UINT16,
    SemanticType.DECIMAL: DbType.DECIMAL,
    SemanticType.SINGLE: DbType.SINGLE,
    SemanticType.DOUBLE: DbType.DOUBLE,
    SemanticType.STRING: DbType.STRING,
    SemanticType.DATETIME: DbType.DATETIME,
    SemanticType.BOOLEAN: DbType.INT32,
}

INTEGRAL_TOKEN = 'int'
STRING_TOKEN = 'str'
DATE_TOKEN = 'dat'
PRECISE_NUMERIC_TOKEN = 'num'
APPROXIMATE_NUMERIC_TOKEN = 'num'

_NAMING_TOKENS: dict[SemanticType, str] = {
    SemanticType.INT16: INTEGRAL_TOKEN,
    SemanticType.UINT16: INTEGRAL_TOKEN,
    SemanticType.INT32: INTEGRAL_TOKEN,
    SemanticType.UINT32: INTEGRAL_TOKEN,
    SemanticType.INT64: INTEGRAL_TOKEN,
    SemanticType.UINT64: INTEGRAL_TOKEN,
    SemanticType.DATETIME: DATE_TOKEN,
    SemanticType.DECIMAL: PRECISE_NUMERIC_TOKEN,
    SemanticType.STRING: STRING_TOKEN,
    SemanticType.SINGLE: APPROXIMATE_NUMERIC_TOKEN,
    SemanticType.DOUBLE: APPROXIMATE_NUMERIC_TOKEN,
    SemanticType.BOOLEAN: INTEGRAL_TOKEN,
}


def _type_name(annotation: Any) -> str:
    if isinstance(annotation, SemanticType):
        return annotation.name
    return getattr(annotation, '__name__', repr(annotation))


def unwrap_output(annotation: Any) -> tuple[Any, bool]:
    """Strip an ``Out[...]`` wrapper.

    Returns
        (pointed-at annotation, True if the annotation was an output marker)
    """
    if get_origin(annotation) is Annotated:
        inner, *metadata = get_args(annotation)
        if any(m is OUTPUT_MARKER for m in metadata):
            return inner, True
    return annotation, False


def is_transaction_type(annotation: Any) -> bool:
    """Check whether an annotation denotes a transaction handle.
    """
    if annotation is SemanticType.TRANSACTION:
        return True
    if not isinstance(annotation, type):
        return False
    return issubclass(annotation, TransactionLike)


def resolve_semantic_type(annotation: Any) -> SemanticType:
    """Resolve a declared annotation to its SemanticType.

    Accepts a SemanticType, an ``Out[...]`` wrapper, a supported Python,
    NumPy or pandas scalar type, or a transaction type. Lookup is exact so
    subclasses such as ``IntEnum`` are rejected.

    :raises MappingError: if the annotation is not a supported type.
    """
    annotation, _ = unwrap_output(annotation)
    if isinstance(annotation, SemanticType):
        return annotation
    if is_transaction_type(annotation):
        return SemanticType.TRANSACTION
    try:
        return _PYTHON_TYPES[annotation]
    except (KeyError, TypeError):
        raise MappingError(f'Cannot map {_type_name(annotation)} to a db type') from None


def map_to_db_type(annotation: Any) -> DbType:
    """Map a declared parameter type to its database type tag.

    :raises MappingError: if the type has no database type.
    """
    semantic = resolve_semantic_type(annotation)
    try:
        return _DB_TYPES[semantic]
    except KeyError:
        raise MappingError(f'Cannot map {_type_name(semantic)} to a db type') from None


def map_to_naming_token(annotation: Any) -> str:
    """Map a declared parameter type to its parameter-name token.

    :raises MappingError: if the type has no naming token.
    """
    semantic = resolve_semantic_type(annotation)
    try:
        return _NAMING_TOKENS[semantic]
    except KeyError:
        raise MappingError(f'Cannot map {_type_name(semantic)} to a db type name') from None


def convert_input_value(value: Any, semantic_type: SemanticType) -> Any:
    """Normalize a call-site value before it is bound.

    Booleans become 1/0, NumPy and pandas scalars become plain Python
    values and missing markers (NaN, NaT, pd.NA) become None.
    """
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None

    if semantic_type is SemanticType.BOOLEAN:
        return 1 if value else 0

    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).to_pydatetime()

    if isinstance(value, np.generic):
        return value.item()

    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()

    return value
