"""
Resolve the fully qualified stored procedure name for a contract.
"""
from procbridge.exceptions import ConfigurationError
from procbridge.signature import MethodSignature

__all__ = ['resolve_procedure_name']


def resolve_procedure_name(signature: MethodSignature) -> str:
    """Return ``package.procedure`` for a signature.

    The procedure name defaults to the method name unless the options
    override it.

    :raises ConfigurationError: if no package/schema name is configured.
    """
    options = signature.options
    if not options.package_name:
        raise ConfigurationError(
            f'All procedure contracts must have a package/schema name ({signature.name})')
    procedure = options.procedure_name or signature.name
    return f'{options.package_name}.{procedure}'
