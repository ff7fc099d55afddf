"""
Global search: one query box for flights, airlines and airports.

A flight-number query (AA123) is answered with that flight's full status
record; anything else fans out to the three substring searches.
"""
from fastapi import APIRouter, Depends, Query

from flightdelay.database import Database
from flightdelay.deps import get_db
from flightdelay.queries import flights, reference

router = APIRouter()


@router.get("/search")
def search(q: str = Query(..., min_length=1, max_length=100), db: Database = Depends(get_db)):
    flight_number = flights.parse_flight_number(q)
    if flight_number:
        airline_code, number = flight_number
        return {
            "query": q,
            "kind": "flight_number",
            "flight": flights.get_flight_with_status(db, airline_code, number),
            "flights": flights.search_flights(db, q),
        }

    return {
        "query": q,
        "kind": "text",
        "flights": flights.search_flights(db, q),
        "airlines": reference.search_airlines(db, q),
        "airports": reference.search_airports(db, q),
    }
