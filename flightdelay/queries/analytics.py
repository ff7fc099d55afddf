"""
Fixed analytical queries over delays and weather.

Each query runs verbatim with no parameters and scans the live tables; the
numbers they produce are shown as-is, so the join/grouping semantics here are
part of the output contract.

Weather proximity is a planar Euclidean distance over the stored
latitude/longitude (degrees), not a great-circle distance. Roughly one degree
is taken as 70 miles, which is where the band labels come from.
"""
import logging
import math

from flightdelay.database import Database

logger = logging.getLogger("flight-api.analysis")

# Inclusive upper bound of each band, in stored coordinate units
DISTANCE_BANDS = (
    (1, "Within 70 miles"),
    (2, "70-140 miles"),
    (3, "140-210 miles"),
)
FAR_BAND = "Over 210 miles"

# Airports considered at all when correlating with a weather event
AIRPORT_SEARCH_RADIUS = 5
# "Near weather" for the temporal view
TEMPORAL_WEATHER_RADIUS = 2
# "Weather-affected" for the airline comparison
AIRLINE_WEATHER_RADIUS = 3


def planar_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    return math.sqrt((lat1 - lat2) ** 2 + (lng1 - lng2) ** 2)


def distance_band(distance: float) -> str:
    """Same bucketing as the distance_category column of the weather impact query."""
    for bound, label in DISTANCE_BANDS:
        if distance <= bound:
            return label
    return FAR_BAND


def distance_sql(airport: str = "a", event: str = "we") -> str:
    """SQL expression for planar_distance between an Airport and a Weather_Event alias."""
    return (
        f'SQRT(POWER({airport}."locationLat" - {event}."locationLat", 2)'
        f' + POWER({airport}."locationLng" - {event}."locationLng", 2))'
    )


def _band_case(distance: str) -> str:
    whens = "\n".join(
        f"            WHEN {distance} <= {bound} THEN '{label}'"
        for bound, label in DISTANCE_BANDS
    )
    return f"CASE\n{whens}\n            ELSE '{FAR_BAND}'\n        END"


DISTANCE = distance_sql()


# ─────────────────────────────────────────────────────────────
# Weather impact: delays/cancellations per weather type, severity, band
# ─────────────────────────────────────────────────────────────

WEATHER_IMPACT_QUERY = f"""
    SELECT
        we."type" AS weather_type,
        we."severity" AS weather_severity,
        {_band_case(DISTANCE)} AS distance_category,
        COUNT(fs."statusId") AS affected_flights,
        ROUND(AVG(fs."departureDelay")::numeric, 2) AS avg_departure_delay,
        ROUND(AVG(fs."arrivalDelay")::numeric, 2) AS avg_arrival_delay,
        SUM(CASE WHEN fs."cancelled" THEN 1 ELSE 0 END) AS cancelled_flights
    FROM "Weather_Event" we
    JOIN "Airport" a ON {DISTANCE} <= {AIRPORT_SEARCH_RADIUS}
    JOIN "Flight" f ON f."originAirport" = a."airportCode"
    JOIN "Flight_Status" fs
        ON f."flightId" = fs."flightId"
        AND fs."flightDate"::date = we."startTime"::date
    WHERE fs."departureDelay" > 0 OR fs."cancelled"
    GROUP BY we."type", we."severity", distance_category
    ORDER BY weather_type, weather_severity, distance_category
"""


# ─────────────────────────────────────────────────────────────
# Temporal: delay mix per scheduled departure hour
# ─────────────────────────────────────────────────────────────

TEMPORAL_ANALYSIS_QUERY = f"""
    WITH delayed AS (
        SELECT
            EXTRACT(HOUR FROM f."scheduledDepartureTime")::int AS departure_hour,
            fs."statusId",
            fs."departureDelay",
            fs."carrierDelay",
            fs."weatherDelay",
            fs."nasDelay",
            fs."securityDelay",
            fs."lateAircraftDelay",
            EXISTS (
                SELECT 1 FROM "Weather_Event" we
                WHERE {DISTANCE} <= {TEMPORAL_WEATHER_RADIUS}
                AND f."scheduledDepartureTime"::date = we."startTime"::date
            ) AS near_weather
        FROM "Flight" f
        JOIN "Flight_Status" fs ON f."flightId" = fs."flightId"
        JOIN "Airport" a ON f."originAirport" = a."airportCode"
        WHERE fs."departureDelay" > 0
    )
    SELECT
        departure_hour,
        COUNT("statusId") AS total_flights,
        ROUND(AVG("departureDelay")::numeric, 2) AS avg_departure_delay,
        ROUND(100.0 * SUM(CASE WHEN "carrierDelay" > 0 THEN 1 ELSE 0 END) / NULLIF(COUNT(*), 0), 2) AS carrier_delay_pct,
        ROUND(100.0 * SUM(CASE WHEN "weatherDelay" > 0 THEN 1 ELSE 0 END) / NULLIF(COUNT(*), 0), 2) AS weather_delay_pct,
        ROUND(100.0 * SUM(CASE WHEN "nasDelay" > 0 THEN 1 ELSE 0 END) / NULLIF(COUNT(*), 0), 2) AS nas_delay_pct,
        ROUND(100.0 * SUM(CASE WHEN "securityDelay" > 0 THEN 1 ELSE 0 END) / NULLIF(COUNT(*), 0), 2) AS security_delay_pct,
        ROUND(100.0 * SUM(CASE WHEN "lateAircraftDelay" > 0 THEN 1 ELSE 0 END) / NULLIF(COUNT(*), 0), 2) AS late_aircraft_delay_pct,
        ROUND(AVG(CASE WHEN "weatherDelay" > 0 THEN "weatherDelay" END)::numeric, 2) AS avg_weather_delay_mins,
        COUNT(CASE WHEN near_weather THEN 1 END) AS flights_near_weather
    FROM delayed
    GROUP BY departure_hour
    ORDER BY departure_hour
"""


# ─────────────────────────────────────────────────────────────
# Airline performance: normal days vs weather-affected days
# ─────────────────────────────────────────────────────────────

# Whether flight f / status fs had a weather event within range of its
# origin that day. EXISTS, so several events on one day still count once.
_NEAR_WEATHER = f"""EXISTS (
                 SELECT 1 FROM "Weather_Event" we
                 JOIN "Airport" a ON f."originAirport" = a."airportCode"
                 WHERE fs."flightDate"::date = we."startTime"::date
                 AND {DISTANCE} <= {AIRLINE_WEATHER_RADIUS}
             )"""

AIRLINE_PERFORMANCE_QUERY = f"""
    WITH per_airline AS (
        SELECT
            al."name" AS airline_name,
            (SELECT ROUND(AVG(fs."departureDelay")::numeric, 2)
             FROM "Flight" f
             JOIN "Flight_Status" fs ON f."flightId" = fs."flightId"
             WHERE f."airlineCode" = al."airlineCode"
             AND NOT {_NEAR_WEATHER}) AS avg_delay_normal,
            (SELECT ROUND(AVG(fs."departureDelay")::numeric, 2)
             FROM "Flight" f
             JOIN "Flight_Status" fs ON f."flightId" = fs."flightId"
             WHERE f."airlineCode" = al."airlineCode"
             AND {_NEAR_WEATHER}) AS avg_delay_weather,
            (SELECT COUNT(DISTINCT CASE WHEN fs."cancelled" THEN f."flightId" END)
             FROM "Flight" f
             JOIN "Flight_Status" fs ON f."flightId" = fs."flightId"
             WHERE f."airlineCode" = al."airlineCode"
             AND {_NEAR_WEATHER}) AS weather_cancellations,
            (SELECT COUNT(*) FROM "Flight" f WHERE f."airlineCode" = al."airlineCode") AS total_flights
        FROM "Airline" al
        WHERE EXISTS (SELECT 1 FROM "Flight" f WHERE f."airlineCode" = al."airlineCode")
    )
    SELECT
        airline_name,
        avg_delay_normal,
        avg_delay_weather,
        COALESCE(avg_delay_weather, 0) - COALESCE(avg_delay_normal, 0) AS delay_difference,
        ROUND(100.0 * weather_cancellations / NULLIF(total_flights, 0), 2) AS cancellation_pct_weather,
        total_flights
    FROM per_airline
    ORDER BY delay_difference DESC
"""


def weather_impact(db: Database) -> list[dict]:
    rows = db.fetch_all(WEATHER_IMPACT_QUERY)
    logger.debug("Weather impact: %d groups", len(rows))
    return rows


def temporal_analysis(db: Database) -> list[dict]:
    rows = db.fetch_all(TEMPORAL_ANALYSIS_QUERY)
    logger.debug("Temporal analysis: %d hours", len(rows))
    return rows


def airline_performance(db: Database) -> list[dict]:
    rows = db.fetch_all(AIRLINE_PERFORMANCE_QUERY)
    logger.debug("Airline performance: %d airlines", len(rows))
    return rows
