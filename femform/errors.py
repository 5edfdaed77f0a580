"""
Exceptions raised by femform.

Each class derives from the built-in exception a caller would already catch
for the same kind of mistake, e.g. `CoefficientNotFoundError` is a `KeyError`
and `IntegralNotFoundError` a `LookupError`.
"""

__all__ = [
    'FormConstructionError',
    'CoefficientNotFoundError',
    'IntegralNotFoundError',
    'TensorStateError',
    'CollectiveError',
    'UnsupportedOperationError',
]


class FormConstructionError(ValueError):
    """Argument spaces, rank and mesh of a form do not agree."""


class CoefficientNotFoundError(KeyError):
    """No coefficient with the requested name."""
    def __str__(self):
        return str(self.args[0]) if self.args else ''


class IntegralNotFoundError(LookupError):
    """Neither a subdomain integral nor a default integral matches."""


class TensorStateError(RuntimeError):
    """A tensor was used in a way its lifecycle stage does not allow."""


class CollectiveError(RuntimeError):
    """A collective operation could not complete on all processes."""


class UnsupportedOperationError(NotImplementedError):
    """The operation is not defined for a tensor of this rank."""
