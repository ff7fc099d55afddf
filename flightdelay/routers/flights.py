"""
Flight CRUD and status endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from flightdelay.database import Database
from flightdelay.deps import get_db
from flightdelay.models.flight import FlightCreate, FlightUpdate
from flightdelay.queries import flights

router = APIRouter()


@router.get("/flights")
def list_flights(limit: int = Query(100, ge=1, le=1000), db: Database = Depends(get_db)):
    return flights.list_flights(db, limit=limit)


@router.post("/flights", status_code=201)
def create_flight(body: FlightCreate, db: Database = Depends(get_db)):
    return flights.create_flight(db, body.model_dump())


@router.get("/flights/lookup/{airline_code}/{flight_number}")
def get_flight_with_status(airline_code: str, flight_number: int, db: Database = Depends(get_db)):
    """Latest flight for e.g. AA / 123, with airports, status and delay prediction."""
    row = flights.get_flight_with_status(db, airline_code, flight_number)
    if row is None:
        raise HTTPException(status_code=404, detail="Flight not found")
    return row


@router.get("/flights/{flight_id}")
def get_flight(flight_id: str, db: Database = Depends(get_db)):
    flight = flights.get_flight(db, flight_id)
    if flight is None:
        raise HTTPException(status_code=404, detail="Flight not found")
    return flight


@router.patch("/flights/{flight_id}")
def update_flight(flight_id: str, body: FlightUpdate, db: Database = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")
    if not flights.update_flight(db, flight_id, fields):
        raise HTTPException(status_code=404, detail="Flight not found")
    return flights.get_flight(db, flight_id)


@router.delete("/flights/{flight_id}", status_code=204)
def delete_flight(flight_id: str, db: Database = Depends(get_db)):
    if not flights.delete_flight(db, flight_id):
        raise HTTPException(status_code=404, detail="Flight not found")
    return Response(status_code=204)


@router.get("/flight-status")
def list_flight_statuses(limit: int = Query(20, ge=1, le=500), db: Database = Depends(get_db)):
    return flights.list_flight_statuses(db, limit=limit)
