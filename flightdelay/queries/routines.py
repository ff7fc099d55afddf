"""
Stored procedure / transaction bridge.

The database owns the logic; this module only turns a routine name plus named
parameters into `CALL Routine(%s, %s, ...)` with positional values.

Routines whose declared parameter order we know are listed in
ROUTINE_SIGNATURES, and their values are bound in that order no matter how
the caller's mapping is ordered. Anything else is bound in the order the
caller supplied, so callers of unregistered routines own the ordering.
"""
import logging
import re
from collections.abc import Mapping

from psycopg2 import sql
from psycopg2.extras import RealDictCursor

from flightdelay.database import Database, rows_of
from flightdelay.errors import InvalidArgument, PersistenceError

logger = logging.getLogger("flight-api.routines")

# Declared parameter order of the routines installed in the database
ROUTINE_SIGNATURES: dict[str, tuple[str, ...]] = {
    # Procedures; trailing INOUT refcursors carry the result sets and are
    # normally left out by callers, which binds them as NULL
    "GetWeatherImpactOnDelays": ("p_airport_code", "p_start_date", "p_end_date", "p_result"),
    "GetAirlinePerformanceMetrics": ("p_result",),
    "GetRouteDelayAnalysis": ("p_result",),
    "GetDelayedFlights": (
        "p_threshold", "p_start_date", "p_end_date", "p_airline_code", "p_max_results",
        "p_result", "p_summary",
    ),
    # Transactions, called inside one explicit transaction block
    "UpdateFlightStatusWithPrediction": (
        "p_flight_id", "p_status_id", "p_departure_delay", "p_arrival_delay",
        "p_cancelled", "p_weather_delay", "p_carrier_delay",
    ),
    "BulkCancellationDueToWeather": (
        "p_airport_code", "p_cancellation_code", "p_weather_event_id",
    ),
}

# pg_type OID of refcursor
REFCURSOR_OID = 1790

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def bind_parameters(routine: str, params=None) -> tuple[list, str]:
    """
    Map named parameters onto positional ones.

    Args:
        routine: Stored routine name, e.g. "GetDelayedFlights"
        params: Mapping of name -> value, or a sequence of (name, value) pairs

    Returns:
        (values, placeholders): values in binding order and a matching
        "%s, %s, ..." string with exactly len(values) placeholders.

    Raises:
        InvalidArgument: empty/malformed routine name, or a parameter the
            routine does not declare.
    """
    if not routine:
        raise InvalidArgument("Routine name is required")
    if not _IDENTIFIER.match(routine):
        raise InvalidArgument(f"Invalid routine name: {routine!r}")

    pairs = list(params.items()) if isinstance(params, Mapping) else list(params or [])

    signature = ROUTINE_SIGNATURES.get(routine)
    if signature is None:
        values = [value for _, value in pairs]
    else:
        supplied = dict(pairs)
        unknown = [name for name in supplied if name not in signature]
        if unknown:
            raise InvalidArgument(
                f"{routine} does not take parameter(s): {', '.join(unknown)}"
            )
        # Declared parameters the caller left out are passed as NULL
        values = [supplied.get(name) for name in signature]

    placeholders = ", ".join(["%s"] * len(values))
    return values, placeholders


def build_call(routine: str, params=None) -> tuple[str, list]:
    """Return the CALL statement and its positional values."""
    values, placeholders = bind_parameters(routine, params)
    return f"CALL {routine}({placeholders})", values


def _refcursor_names(cur, row: dict) -> list[str]:
    """Portal names in a CALL's output row, in column order."""
    return [
        row[column.name]
        for column in cur.description
        if column.type_code == REFCURSOR_OID and row.get(column.name)
    ]


def call_procedure(db: Database, procedure_name: str, params=None) -> list[dict]:
    """
    Execute a stored procedure and return its result rows.

    A PostgreSQL procedure hands rows back through an INOUT refcursor: the
    CALL returns the portal name and the rows are fetched from it before the
    transaction ends (commit closes every portal). The first refcursor is
    the result set; further ones (the summary of GetDelayedFlights) are not
    read. A procedure without refcursor outputs returns its OUT row as is,
    or [] when it has no outputs.
    """
    statement, values = build_call(procedure_name, params)
    try:
        with db.transaction() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(statement, values)
                rows = rows_of(cur)
                portals = _refcursor_names(cur, rows[0]) if rows else []
                if not portals:
                    return rows
                if len(portals) > 1:
                    logger.debug("%s opened %d cursors, reading %s", procedure_name, len(portals), portals[0])
                cur.execute(sql.SQL("FETCH ALL FROM {}").format(sql.Identifier(portals[0])))
                return rows_of(cur)
    except PersistenceError:
        logger.exception("Error executing stored procedure %s", procedure_name)
        raise


def call_transaction(db: Database, transaction_name: str, params=None) -> dict | None:
    """
    Execute a transaction routine inside an explicit BEGIN/COMMIT block.

    On any failure the block is rolled back and the error re-raised. Returns
    the routine's first output row, or None when it produces no output.
    """
    statement, values = build_call(transaction_name, params)
    try:
        with db.transaction() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(statement, values)
                rows = rows_of(cur)
                return rows[0] if rows else None
    except PersistenceError:
        logger.exception("Error executing transaction %s", transaction_name)
        raise
