"""
Exception types raised by the evaluation library.
"""


class EvaluationError(Exception):
    """Base class for all errors raised by ireval."""


class InvalidInputError(EvaluationError, ValueError):
    """A required identifier or argument is missing or malformed."""


class UndefinedMetricError(EvaluationError, ZeroDivisionError):
    """A metric has no defined value for the given data (e.g. 0/0)."""


class UnsupportedOperationError(EvaluationError, TypeError):
    """The operation is not available for this kind of result."""


class LoaderError(EvaluationError):
    """A judgement or result file could not be parsed."""
