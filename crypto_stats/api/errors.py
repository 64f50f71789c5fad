"""
Errors raised by the stats queries and mapped to HTTP responses.
"""


class StatsAPIError(Exception):
    """Base class for errors returned to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidCoinError(StatsAPIError):
    """Coin identifier is missing or not in the valid coin set."""

    status_code = 400


class SnapshotNotFoundError(StatsAPIError):
    """No snapshot has been stored for the coin yet."""

    status_code = 404


class InsufficientDataError(StatsAPIError):
    """Too few snapshots to compute a statistic."""

    status_code = 400


class StorageError(StatsAPIError):
    """The snapshot store failed while answering a query."""

    status_code = 500
