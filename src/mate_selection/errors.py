"""Exception types raised by mate selection.

All errors describe caller misconfiguration and are raised synchronously at
the point of misuse. They subclass the builtin exception a caller would
naturally catch (ValueError or IndexError) so existing handlers keep working.
"""


class MateSelectionError(Exception):
    """Base class for all mate selection errors."""


class EmptyPopulationError(MateSelectionError, ValueError):
    """Raised when selecting from a population with no individuals."""


class InvalidParameterError(MateSelectionError, ValueError):
    """Raised for bad strategy parameters, bad scores, or bad request sizes."""


class IndexOutOfRangeError(MateSelectionError, IndexError):
    """Raised when an index does not refer to an individual in the population."""


class InsufficientPopulationError(MateSelectionError, ValueError):
    """Raised when the population is too small to satisfy a distinctness request."""
