"""
Procedure contracts: method signatures, parameter descriptors and options.

A contract can be declared explicitly with SignatureBuilder:

    sig = (SignatureBuilder('GetStatus', package='ORDERS')
           .input('customerName', str)
           .transaction()
           .output('status', int)
           .build())

or reflected from an annotated function:

    @procedure('ORDERS', name='Fetch')
    def get_status(customer_name: str, tx: Transaction, status: Out[int]): ...

Reflected signatures are cached; signatures are immutable so a cached
signature binds exactly like a fresh one.
"""
import dataclasses
import inspect
import logging
import threading
import typing
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Self

import cachetools
from procbridge.exceptions import ConfigurationError, MappingError
from procbridge.types import ParameterDirection, SemanticType
from procbridge.types import is_transaction_type, unwrap_output

logger = logging.getLogger(__name__)

__all__ = [
    'ProcedureOptions',
    'ParameterDescriptor',
    'MethodSignature',
    'SignatureBuilder',
    'procedure',
    'get_signature',
    'signature_from_callable',
    'clear_signature_cache',
]

_signature_cache: cachetools.LRUCache = cachetools.LRUCache(maxsize=256)
_signature_lock = threading.RLock()


@dataclass(frozen=True)
class ProcedureOptions:
    """Method-level procedure configuration.

    - package_name: package/schema qualifying the procedure (required at call time)
    - procedure_name: overrides the method name as the procedure name
    - omit_direction: leave ``IN_``/``OUT_`` off parameter names
    - omit_type: leave the type token off parameter names
    """
    package_name: str | None = None
    procedure_name: str | None = None
    omit_direction: bool = False
    omit_type: bool = False

    def __post_init__(self):
        for name in ('package_name', 'procedure_name'):
            value = getattr(self, name)
            if value is not None and not value:
                raise ConfigurationError(f'{name} cannot be empty')


@dataclass(frozen=True)
class ParameterDescriptor:
    """A declared procedure parameter.

    ``type`` is anything the type mapper accepts. ``ordinal`` is the
    position among parameters of the same direction; transaction
    parameters have no ordinal.
    """
    name: str
    type: Any
    direction: ParameterDirection = ParameterDirection.INPUT
    ordinal: int | None = None

    @property
    def is_transaction(self) -> bool:
        return is_transaction_type(self.type)

    @property
    def is_output(self) -> bool:
        return self.direction is ParameterDirection.OUTPUT

    @property
    def pointed_at_type(self) -> Any:
        return unwrap_output(self.type)[0]


def _number_parameters(parameters: Iterable[ParameterDescriptor]) -> tuple[ParameterDescriptor, ...]:
    """Assign independent input and output ordinals, skipping transactions.
    """
    counters = {ParameterDirection.INPUT: 0, ParameterDirection.OUTPUT: 0}
    numbered = []
    for param in parameters:
        if param.is_transaction:
            numbered.append(dataclasses.replace(param, ordinal=None))
            continue
        numbered.append(dataclasses.replace(param, ordinal=counters[param.direction]))
        counters[param.direction] += 1
    return tuple(numbered)


@dataclass(frozen=True)
class MethodSignature:
    """Immutable description of a procedure contract.
    """
    name: str
    parameters: tuple[ParameterDescriptor, ...] = ()
    options: ProcedureOptions = field(default_factory=ProcedureOptions)

    def __post_init__(self):
        object.__setattr__(self, 'parameters', _number_parameters(self.parameters))

    @property
    def input_parameters(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.parameters
                     if not p.is_transaction and not p.is_output)

    @property
    def output_parameters(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.parameters
                     if not p.is_transaction and p.is_output)


class SignatureBuilder:
    """Fluent builder for explicit MethodSignature declarations.
    """

    def __init__(self, name: str, package: str | None = None, procedure: str | None = None,
                 omit_direction: bool = False, omit_type: bool = False) -> None:
        self.name = name
        self.options = ProcedureOptions(
            package_name=package,
            procedure_name=procedure,
            omit_direction=omit_direction,
            omit_type=omit_type)
        self._parameters: list[ParameterDescriptor] = []

    def input(self, name: str, type_: Any) -> Self:
        self._parameters.append(ParameterDescriptor(name, type_, ParameterDirection.INPUT))
        return self

    def output(self, name: str, type_: Any) -> Self:
        self._parameters.append(ParameterDescriptor(name, type_, ParameterDirection.OUTPUT))
        return self

    def transaction(self, name: str = 'transaction') -> Self:
        self._parameters.append(ParameterDescriptor(name, SemanticType.TRANSACTION))
        return self

    def build(self) -> MethodSignature:
        return MethodSignature(self.name, tuple(self._parameters), self.options)


def procedure(package: str | None, name: str | None = None, omit_direction: bool = False,
              omit_type: bool = False) -> Callable[[Callable], Callable]:
    """Decorator attaching procedure options to a function.

    The function's annotations describe the parameters; wrap output
    parameters in ``Out[...]``. The function itself is returned unchanged.
    """
    options = ProcedureOptions(
        package_name=package,
        procedure_name=name,
        omit_direction=omit_direction,
        omit_type=omit_type)

    def decorator(func: Callable) -> Callable:
        func.__procedure_options__ = options
        return func

    return decorator


@cachetools.cached(_signature_cache, lock=_signature_lock)
def signature_from_callable(func: Callable) -> MethodSignature:
    """Reflect a function's annotations into a MethodSignature.

    :raises MappingError: if a parameter has no annotation.
    :raises ConfigurationError: for ``*args``/``**kwargs`` parameters.
    """
    hints = typing.get_type_hints(func, include_extras=True)
    parameters = []
    for param in inspect.signature(func).parameters.values():
        if param.kind in {inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD}:
            raise ConfigurationError(
                f'{func.__qualname__} cannot declare variadic parameter {param.name}')
        if param.name not in hints:
            if param.name in {'self', 'cls'}:
                continue
            raise MappingError(f'Parameter {param.name} of {func.__qualname__} has no annotation')
        annotation, is_output = unwrap_output(hints[param.name])
        direction = ParameterDirection.OUTPUT if is_output else ParameterDirection.INPUT
        parameters.append(ParameterDescriptor(param.name, annotation, direction))

    options = getattr(func, '__procedure_options__', None) or ProcedureOptions()
    signature = MethodSignature(func.__name__, tuple(parameters), options)
    logger.debug(f'Reflected signature for {func.__qualname__}: {len(parameters)} parameters')
    return signature


def get_signature(obj: MethodSignature | Callable) -> MethodSignature:
    """Return the signature for an explicit descriptor or an annotated callable.
    """
    if isinstance(obj, MethodSignature):
        return obj
    if callable(obj):
        return signature_from_callable(obj)
    raise ConfigurationError(f'Cannot derive a procedure signature from {type(obj).__name__}')


def clear_signature_cache() -> None:
    """Empty the reflected signature cache.
    """
    with _signature_lock:
        _signature_cache.clear()
