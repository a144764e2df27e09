"""Error taxonomy for the aggregate cache.

Errors raised here are never cached. The HTTP handlers translate them into
status codes; everything below the handler layer only raises.
"""


class ExamCacheError(Exception):
    """Base class for all errors raised by this package."""


class InvalidParameterError(ExamCacheError, ValueError):
    """A query parameter is outside the accepted normalized domain.

    Raised while building a query, before any cache or store interaction.
    """

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(f"{parameter}: {message}")
        self.parameter = parameter


class UpstreamFetchError(ExamCacheError):
    """The remote table store call failed (network, HTTP or query error)."""

    def __init__(self, message: str, *, table: str | None = None, operation: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.operation = operation


class PartialBatchError(UpstreamFetchError):
    """A page fetch failed after earlier pages of the same scan succeeded.

    The whole aggregation is discarded.
    """

    def __init__(
        self,
        message: str,
        *,
        pages_fetched: int,
        table: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, table=table, operation=operation)
        self.pages_fetched = pages_fetched
