"""
FastAPI dependencies.
"""
from fastapi import Request

from flightdelay.database import Database


def get_db(request: Request) -> Database:
    """The Database built in main.lifespan, stored on app.state."""
    return request.app.state.db
