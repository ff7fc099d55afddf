"""
Reference data: airlines and airports.
"""
from fastapi import APIRouter, Depends

from flightdelay.database import Database
from flightdelay.deps import get_db
from flightdelay.queries import reference

router = APIRouter()


@router.get("/airlines")
def list_airlines(db: Database = Depends(get_db)):
    return reference.list_airlines(db)


@router.get("/airports")
def list_airports(db: Database = Depends(get_db)):
    return reference.list_airports(db)
