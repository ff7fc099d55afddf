"""
Pydantic models for the flight endpoints.

Field names are the database column names (camelCase), so a validated body
can be handed to the accessors unchanged.
"""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class FlightCreate(BaseModel):
    airlineCode: str = Field(..., min_length=2, max_length=10, description="Airline code, e.g. AA")
    flightNumber: int = Field(..., gt=0)
    originAirport: str = Field(..., min_length=3, max_length=5, description="Origin airport code")
    destAirport: str = Field(..., min_length=3, max_length=5, description="Destination airport code")
    scheduledDepartureTime: datetime
    scheduledArrivalTime: datetime
    elapsedTime: int | None = Field(None, gt=0, description="Scheduled elapsed time in minutes")
    distance: int | None = Field(None, gt=0, description="Distance in miles")


class FlightUpdate(BaseModel):
    """
    Partial update: only the fields present in the body are written.
    Omitting a column leaves it alone; null is only accepted for the nullable
    columns (elapsedTime, distance).
    """
    airlineCode: str | None = Field(None, min_length=2, max_length=10)
    flightNumber: int | None = Field(None, gt=0)
    originAirport: str | None = Field(None, min_length=3, max_length=5)
    destAirport: str | None = Field(None, min_length=3, max_length=5)
    scheduledDepartureTime: datetime | None = None
    scheduledArrivalTime: datetime | None = None
    elapsedTime: int | None = Field(None, gt=0)
    distance: int | None = Field(None, gt=0)

    @field_validator(
        "airlineCode", "flightNumber", "originAirport", "destAirport",
        "scheduledDepartureTime", "scheduledArrivalTime",
        mode="before",
    )
    @classmethod
    def reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value
