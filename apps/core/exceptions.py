# apps/core/exceptions.py
"""
Error taxonomy for the reporting, ranking and promotion services.

Services raise these; the API layer maps ``category`` to an HTTP status.
"""


class CoreServiceError(Exception):
    """Base class for every error raised by the academic services."""
    category = 'internal'

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        return self.message


class PreconditionError(CoreServiceError):
    """
    Missing or invalid reference data, or an invalid scope parameter.
    Raised before any aggregation or mutation starts.
    """
    category = 'precondition'


class AggregationError(CoreServiceError):
    """Aggregate computation failed; the enclosing unit of work is aborted."""
    category = 'aggregation'


class RankingError(AggregationError):
    """
    Writing ranks back failed part way through the list.

    ``entities`` holds the full list, some of which were already ranked and saved.
    """

    def __init__(self, message, entities=None, **details):
        super().__init__(message, **details)
        self.entities = entities or []


class ConsistencyError(CoreServiceError):
    """Cross-trade promotion, duplicate promotion or an immutable record being changed."""
    category = 'consistency'
