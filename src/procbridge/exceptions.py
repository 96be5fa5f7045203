"""
Procedure bridge exception classes.
"""


class ProcedureError(Exception):
    """Base class for all procbridge errors.
    """


class ConfigurationError(ProcedureError):
    """Procedure contract is missing required metadata.
    """


class MappingError(ProcedureError):
    """Declared parameter type has no database type or naming token.
    """


class TypeMismatchError(ProcedureError):
    """Returned output value does not have the expected runtime type.
    """


class InvalidOperationError(ProcedureError):
    """Bound parameters and the procedure contract do not line up.
    """
