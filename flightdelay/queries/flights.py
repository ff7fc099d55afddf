"""
Flight accessors: CRUD, search and status views over "Flight".

Table and column names are camelCase in the schema, so they are quoted
throughout; rows come back keyed by those exact names.
"""
import logging
import re
import uuid

from flightdelay.database import Database
from flightdelay.errors import ValidationError

logger = logging.getLogger("flight-api.flights")

# Columns a caller may write through create/update
FLIGHT_COLUMNS = (
    "airlineCode",
    "flightNumber",
    "originAirport",
    "destAirport",
    "scheduledDepartureTime",
    "scheduledArrivalTime",
    "elapsedTime",
    "distance",
)

# Minutes of departure delay above which a flight shows as delayed
DELAYED_THRESHOLD_MINUTES = 30

# Airline code + number, e.g. AA123
FLIGHT_NUMBER_PATTERN = re.compile(r"^([A-Z]{2})(\d+)$", re.IGNORECASE)

SEARCH_LIMIT = 20


def _quoted(column: str) -> str:
    return f'"{column}"'


# ─────────────────────────────────────────────────────────────
# CRUD
# ─────────────────────────────────────────────────────────────

def list_flights(db: Database, limit: int = 100) -> list[dict]:
    """Most recent flights first, by scheduled departure."""
    return db.fetch_all("""
        SELECT * FROM "Flight"
        ORDER BY "scheduledDepartureTime" DESC
        LIMIT %s
    """, [limit])


def get_flight(db: Database, flight_id: str) -> dict | None:
    return db.fetch_one('SELECT * FROM "Flight" WHERE "flightId" = %s', [flight_id])


def create_flight(db: Database, fields: dict) -> dict:
    """
    Insert a flight under a freshly generated id and return the stored record.

    Optional columns left out of fields are stored as NULL. Constraint
    violations (duplicate key, unknown airline/airport, origin == destination)
    surface as PersistenceError.
    """
    unknown = set(fields) - set(FLIGHT_COLUMNS)
    if unknown:
        raise ValidationError(f"Unknown flight field(s): {', '.join(sorted(unknown))}")

    flight_id = str(uuid.uuid4())
    record = {"flightId": flight_id}
    record.update({column: fields.get(column) for column in FLIGHT_COLUMNS})

    columns = ", ".join(_quoted(c) for c in record)
    placeholders = ", ".join(["%s"] * len(record))
    db.execute(
        f'INSERT INTO "Flight" ({columns}) VALUES ({placeholders})',
        list(record.values()),
    )
    logger.info("Created flight %s (%s%s)", flight_id, record["airlineCode"], record["flightNumber"])
    return record


def update_flight(db: Database, flight_id: str, fields: dict) -> bool:
    """
    Replace only the given columns of one flight.

    flightId in fields is ignored; any other column outside FLIGHT_COLUMNS is
    rejected before SQL is built. An empty field set touches nothing and
    returns False.

    Returns:
        True when a row was updated, False otherwise.
    """
    changes = {k: v for k, v in fields.items() if k != "flightId"}
    unknown = set(changes) - set(FLIGHT_COLUMNS)
    if unknown:
        raise ValidationError(f"Unknown flight field(s): {', '.join(sorted(unknown))}")
    if not changes:
        return False

    set_clause = ", ".join(f"{_quoted(column)} = %s" for column in changes)
    count = db.execute(
        f'UPDATE "Flight" SET {set_clause} WHERE "flightId" = %s',
        [*changes.values(), flight_id],
    )
    return count > 0


def delete_flight(db: Database, flight_id: str) -> bool:
    """
    Delete a flight and its dependent rows in one transaction.

    Flight_Status and Delay_Prediction reference the flight, so they go first.
    Returns True when the flight row existed.
    """
    with db.transaction() as conn:
        with conn.cursor() as cur:
            cur.execute('DELETE FROM "Flight_Status" WHERE "flightId" = %s', [flight_id])
            cur.execute('DELETE FROM "Delay_Prediction" WHERE "flightId" = %s', [flight_id])
            cur.execute('DELETE FROM "Flight" WHERE "flightId" = %s', [flight_id])
            deleted = cur.rowcount > 0
    if deleted:
        logger.info("Deleted flight %s", flight_id)
    return deleted


# ─────────────────────────────────────────────────────────────
# Status views
# ─────────────────────────────────────────────────────────────

def flight_status_label(row: dict) -> str:
    """Display status: Cancelled, Diverted, Delayed (> 30 min departure delay) or On Time."""
    if row.get("cancelled"):
        return "Cancelled"
    if row.get("diverted"):
        return "Diverted"
    delay = row.get("departureDelay")
    if delay is not None and delay > DELAYED_THRESHOLD_MINUTES:
        return "Delayed"
    return "On Time"


_FLIGHT_FIELDS = (
    "flightId", "airlineCode", "flightNumber", "originAirport", "destAirport",
    "scheduledDepartureTime", "scheduledArrivalTime",
)


def list_flight_statuses(db: Database, limit: int = 20) -> list[dict]:
    """Latest status records, each with its flight nested under "flight"."""
    rows = db.fetch_all("""
        SELECT fs.*, f."airlineCode", f."flightNumber", f."originAirport", f."destAirport",
               f."scheduledDepartureTime", f."scheduledArrivalTime"
        FROM "Flight_Status" fs
        JOIN "Flight" f ON fs."flightId" = f."flightId"
        ORDER BY fs."flightDate" DESC
        LIMIT %s
    """, [limit])

    statuses = []
    for row in rows:
        status = dict(row)
        status["flight"] = {field: row.get(field) for field in _FLIGHT_FIELDS}
        status["status"] = flight_status_label(row)
        statuses.append(status)
    return statuses


def get_flight_with_status(db: Database, airline_code: str, flight_number: int) -> dict | None:
    """Most recent flight for airline+number with names, status and prediction columns."""
    row = db.fetch_one("""
        SELECT
            f."flightId", f."airlineCode", f."flightNumber", f."originAirport", f."destAirport",
            f."scheduledDepartureTime", f."scheduledArrivalTime", f."elapsedTime", f."distance",
            a."name" AS "airlineName",
            orig."name" AS "originAirportName", orig."city" AS "originCity", orig."state" AS "originState",
            dest."name" AS "destAirportName", dest."city" AS "destCity", dest."state" AS "destState",
            fs."statusId", fs."flightDate", fs."actualDepartureTime", fs."actualArrivalTime",
            fs."departureDelay", fs."arrivalDelay", fs."cancelled", fs."diverted",
            fs."weatherDelay", fs."carrierDelay", fs."nasDelay", fs."securityDelay", fs."lateAircraftDelay",
            dp."predictionId", dp."predictedDepartureDelay", dp."predictedArrivalDelay", dp."predictionReason"
        FROM "Flight" f
        JOIN "Airline" a ON f."airlineCode" = a."airlineCode"
        JOIN "Airport" orig ON f."originAirport" = orig."airportCode"
        JOIN "Airport" dest ON f."destAirport" = dest."airportCode"
        LEFT JOIN "Flight_Status" fs ON f."flightId" = fs."flightId"
        LEFT JOIN "Delay_Prediction" dp ON f."flightId" = dp."flightId"
        WHERE f."airlineCode" = %s AND f."flightNumber" = %s
        ORDER BY f."scheduledDepartureTime" DESC
        LIMIT 1
    """, [airline_code.upper(), flight_number])
    if row is not None:
        row["status"] = flight_status_label(row)
    return row


# ─────────────────────────────────────────────────────────────
# Search
# ─────────────────────────────────────────────────────────────

def parse_flight_number(query: str) -> tuple[str, int] | None:
    """'aa123' -> ('AA', 123); anything that isn't airline code + digits -> None."""
    match = FLIGHT_NUMBER_PATTERN.match(query.strip())
    if not match:
        return None
    return match.group(1).upper(), int(match.group(2))


def search_flights(db: Database, query: str) -> list[dict]:
    """
    Find flights for a free-text query.

    A query shaped like a flight number (AA123) takes the exact-match path on
    airline code and number; anything else is a substring search over id,
    airline code, number, airports and airline name.
    """
    flight_number = parse_flight_number(query)
    if flight_number:
        return db.fetch_all("""
            SELECT f.*, a."name" AS "airlineName"
            FROM "Flight" f
            JOIN "Airline" a ON f."airlineCode" = a."airlineCode"
            WHERE f."airlineCode" = %s AND f."flightNumber" = %s
            ORDER BY f."scheduledDepartureTime" DESC
            LIMIT %s
        """, [*flight_number, SEARCH_LIMIT])

    like = f"%{query}%"
    return db.fetch_all("""
        SELECT f.*, a."name" AS "airlineName"
        FROM "Flight" f
        JOIN "Airline" a ON f."airlineCode" = a."airlineCode"
        WHERE f."flightId" ILIKE %s
           OR f."airlineCode" ILIKE %s
           OR CAST(f."flightNumber" AS TEXT) LIKE %s
           OR f."originAirport" ILIKE %s
           OR f."destAirport" ILIKE %s
           OR a."name" ILIKE %s
        ORDER BY f."scheduledDepartureTime" DESC
        LIMIT %s
    """, [*([like] * 6), SEARCH_LIMIT])
