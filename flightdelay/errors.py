"""
Error taxonomy shared by the accessors and the HTTP layer.

Not-found is never an error here: accessors return None / False for it.
"""
import psycopg2


class FlightDelayError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(FlightDelayError, ValueError):
    """Bad input caught before any SQL reaches the database."""


# Name used by the routine bridge for a missing/malformed routine name
InvalidArgument = ValidationError


class PersistenceError(FlightDelayError):
    """A database call failed. The driver error is chained as __cause__."""

    @property
    def is_connectivity(self) -> bool:
        return isinstance(self.__cause__, psycopg2.OperationalError)
