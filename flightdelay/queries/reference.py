"""
Read-only lookups over the static reference tables (Airline, Airport).
"""
from flightdelay.database import Database

SEARCH_LIMIT = 20


def list_airlines(db: Database) -> list[dict]:
    return db.fetch_all('SELECT * FROM "Airline" ORDER BY "name"')


def list_airports(db: Database) -> list[dict]:
    return db.fetch_all('SELECT * FROM "Airport" ORDER BY "name"')


def search_airlines(db: Database, query: str) -> list[dict]:
    """Substring match on code, name or DOT code."""
    like = f"%{query}%"
    return db.fetch_all("""
        SELECT *
        FROM "Airline"
        WHERE "airlineCode" ILIKE %s
           OR "name" ILIKE %s
           OR CAST("dotCode" AS TEXT) LIKE %s
        LIMIT %s
    """, [like, like, like, SEARCH_LIMIT])


def search_airports(db: Database, query: str) -> list[dict]:
    """Substring match on code, name, city or state."""
    like = f"%{query}%"
    return db.fetch_all("""
        SELECT *
        FROM "Airport"
        WHERE "airportCode" ILIKE %s
           OR "name" ILIKE %s
           OR "city" ILIKE %s
           OR "state" ILIKE %s
        LIMIT %s
    """, [like, like, like, like, SEARCH_LIMIT])
