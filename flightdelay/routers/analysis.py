"""
Delay analytics: weather impact, hour-of-day breakdown, airline comparison.
"""
from fastapi import APIRouter, Depends

from flightdelay.database import Database
from flightdelay.deps import get_db
from flightdelay.queries import analytics

router = APIRouter()


@router.get("/weather-impact")
def weather_impact(db: Database = Depends(get_db)):
    """Delays and cancellations per weather type, severity and distance band."""
    return analytics.weather_impact(db)


@router.get("/temporal")
def temporal_analysis(db: Database = Depends(get_db)):
    """Average delay and delay-cause mix per scheduled departure hour."""
    return analytics.temporal_analysis(db)


@router.get("/airline-performance")
def airline_performance(db: Database = Depends(get_db)):
    """Per airline: delay on normal vs weather-affected days, and weather cancellations."""
    return analytics.airline_performance(db)
