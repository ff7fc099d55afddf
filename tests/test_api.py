"""
Tests for the HTTP layer.

Accessors are patched where the routers look them up, so these check only
the forwarding: request parsing, status codes and error bodies.
"""
from unittest.mock import patch

import psycopg2
import pytest
from fastapi.testclient import TestClient

from flightdelay.errors import PersistenceError, ValidationError
from flightdelay.main import app


def _connectivity_error():
    error = PersistenceError("could not connect to server")
    error.__cause__ = psycopg2.OperationalError("could not connect to server")
    return error


# ─────────────────────────────────────────────────────────────
# Stored procedures / transactions
# ─────────────────────────────────────────────────────────────

def test_stored_procedure_requires_name(client):
    resp = client.post("/api/stored-procedures", json={"params": {}})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Procedure name is required"}


def test_stored_procedure_success(client, db):
    rows = [{"airline_name": "Delta", "on_time_pct": 81.2}]
    with patch("flightdelay.routers.routines.call_procedure", return_value=rows) as call:
        resp = client.post("/api/stored-procedures", json={
            "procedureName": "GetAirlinePerformanceMetrics",
            "params": {},
        })
    assert resp.status_code == 200
    assert resp.json() == {"results": rows}
    call.assert_called_once_with(db, "GetAirlinePerformanceMetrics", {})


def test_stored_procedure_without_params_key(client, db):
    with patch("flightdelay.routers.routines.call_procedure", return_value=[]) as call:
        resp = client.post("/api/stored-procedures", json={"procedureName": "GetRouteDelayAnalysis"})
    assert resp.status_code == 200
    assert resp.json() == {"results": []}
    call.assert_called_once_with(db, "GetRouteDelayAnalysis", {})


def test_stored_procedure_bad_parameter_is_400(client):
    with patch("flightdelay.routers.routines.call_procedure",
               side_effect=ValidationError("GetDelayedFlights does not take parameter(s): x")):
        resp = client.post("/api/stored-procedures", json={
            "procedureName": "GetDelayedFlights", "params": {"x": 1},
        })
    assert resp.status_code == 400
    assert "does not take" in resp.json()["error"]


def test_stored_procedure_db_failure_is_500(client):
    with patch("flightdelay.routers.routines.call_procedure",
               side_effect=PersistenceError("procedure getairlineperformancemetrics() does not exist")):
        resp = client.post("/api/stored-procedures", json={"procedureName": "GetAirlinePerformanceMetrics"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to execute stored procedure"}


def test_transaction_requires_name(client):
    resp = client.post("/api/transactions", json={"params": {"p_flight_id": "f-1"}})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Transaction name is required"}


def test_transaction_success(client, db):
    params = {"p_airport_code": "DEN", "p_cancellation_code": "B", "p_weather_event_id": "evt-1"}
    with patch("flightdelay.routers.routines.call_transaction",
               return_value={"affectedFlights": 7}) as call:
        resp = client.post("/api/transactions", json={
            "transactionName": "BulkCancellationDueToWeather", "params": params,
        })
    assert resp.status_code == 200
    assert resp.json() == {"result": {"affectedFlights": 7}}
    call.assert_called_once_with(db, "BulkCancellationDueToWeather", params)


def test_transaction_failure_is_500(client):
    with patch("flightdelay.routers.routines.call_transaction", side_effect=PersistenceError("deadlock")):
        resp = client.post("/api/transactions", json={"transactionName": "UpdateFlightStatusWithPrediction"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to execute transaction"}


# ─────────────────────────────────────────────────────────────
# Flights
# ─────────────────────────────────────────────────────────────

NEW_FLIGHT = {
    "airlineCode": "AA",
    "flightNumber": 123,
    "originAirport": "JFK",
    "destAirport": "LAX",
    "scheduledDepartureTime": "2024-03-01T08:30:00",
    "scheduledArrivalTime": "2024-03-01T11:45:00",
}


def test_list_flights(client, db):
    with patch("flightdelay.queries.flights.list_flights", return_value=[{"flightId": "f-1"}]) as list_:
        resp = client.get("/api/flights?limit=10")
    assert resp.status_code == 200
    assert resp.json() == [{"flightId": "f-1"}]
    list_.assert_called_once_with(db, limit=10)


def test_create_flight_returns_201(client):
    created = {"flightId": "f-1", **NEW_FLIGHT, "elapsedTime": None, "distance": None}
    with patch("flightdelay.queries.flights.create_flight", return_value=created) as create:
        resp = client.post("/api/flights", json=NEW_FLIGHT)
    assert resp.status_code == 201
    assert resp.json()["flightId"] == "f-1"
    fields = create.call_args.args[1]
    assert fields["airlineCode"] == "AA"
    assert fields["elapsedTime"] is None


def test_create_flight_invalid_body_is_422(client):
    resp = client.post("/api/flights", json={**NEW_FLIGHT, "flightNumber": 0})
    assert resp.status_code == 422


def test_create_flight_constraint_violation_is_500(client):
    with patch("flightdelay.queries.flights.create_flight",
               side_effect=PersistenceError('violates check constraint "Flight_check"')):
        resp = client.post("/api/flights", json={**NEW_FLIGHT, "destAirport": "JFK"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Database error"


def test_get_flight_not_found(client):
    with patch("flightdelay.queries.flights.get_flight", return_value=None):
        resp = client.get("/api/flights/missing")
    assert resp.status_code == 404


def test_update_flight_only_sends_given_fields(client, db):
    with patch("flightdelay.queries.flights.update_flight", return_value=True) as update, \
         patch("flightdelay.queries.flights.get_flight", return_value={"flightId": "f-1", "distance": 2500}):
        resp = client.patch("/api/flights/f-1", json={"distance": 2500})
    assert resp.status_code == 200
    update.assert_called_once_with(db, "f-1", {"distance": 2500})


def test_update_flight_empty_body_is_400(client):
    with patch("flightdelay.queries.flights.update_flight") as update:
        resp = client.patch("/api/flights/f-1", json={})
    assert resp.status_code == 400
    update.assert_not_called()


@pytest.mark.parametrize("field", [
    "airlineCode", "flightNumber", "originAirport", "destAirport",
    "scheduledDepartureTime", "scheduledArrivalTime",
])
def test_update_flight_null_required_column_is_rejected(client, field):
    with patch("flightdelay.queries.flights.update_flight") as update:
        resp = client.patch("/api/flights/f-1", json={field: None})
    assert resp.status_code == 422
    update.assert_not_called()


def test_update_flight_can_clear_optional_column(client, db):
    with patch("flightdelay.queries.flights.update_flight", return_value=True) as update, \
         patch("flightdelay.queries.flights.get_flight", return_value={"flightId": "f-1", "distance": None}):
        resp = client.patch("/api/flights/f-1", json={"distance": None})
    assert resp.status_code == 200
    update.assert_called_once_with(db, "f-1", {"distance": None})


def test_update_flight_missing_row_is_404(client):
    with patch("flightdelay.queries.flights.update_flight", return_value=False):
        resp = client.patch("/api/flights/missing", json={"distance": 1})
    assert resp.status_code == 404


def test_delete_flight(client):
    with patch("flightdelay.queries.flights.delete_flight", return_value=True):
        resp = client.delete("/api/flights/f-1")
    assert resp.status_code == 204


def test_delete_flight_not_found(client):
    with patch("flightdelay.queries.flights.delete_flight", return_value=False):
        resp = client.delete("/api/flights/missing")
    assert resp.status_code == 404


def test_lookup_flight_with_status(client, db):
    row = {"flightId": "f-1", "airlineCode": "AA", "flightNumber": 123, "status": "Delayed"}
    with patch("flightdelay.queries.flights.get_flight_with_status", return_value=row) as lookup:
        resp = client.get("/api/flights/lookup/AA/123")
    assert resp.status_code == 200
    assert resp.json()["status"] == "Delayed"
    lookup.assert_called_once_with(db, "AA", 123)


def test_flight_status_list(client):
    with patch("flightdelay.queries.flights.list_flight_statuses", return_value=[]):
        resp = client.get("/api/flight-status")
    assert resp.status_code == 200
    assert resp.json() == []


# ─────────────────────────────────────────────────────────────
# Search, reference, analysis, health
# ─────────────────────────────────────────────────────────────

def test_search_flight_number_routes_to_exact_lookup(client, db):
    with patch("flightdelay.queries.flights.get_flight_with_status", return_value={"flightId": "f-1"}) as lookup, \
         patch("flightdelay.queries.flights.search_flights", return_value=[]), \
         patch("flightdelay.queries.reference.search_airlines") as airlines:
        resp = client.get("/api/search?q=AA123")
    assert resp.status_code == 200
    body = resp.json()
    assert body["kind"] == "flight_number"
    assert body["flight"] == {"flightId": "f-1"}
    lookup.assert_called_once_with(db, "AA", 123)
    airlines.assert_not_called()


def test_search_text_fans_out(client):
    with patch("flightdelay.queries.flights.search_flights", return_value=[{"flightId": "f-1"}]), \
         patch("flightdelay.queries.reference.search_airlines", return_value=[{"airlineCode": "DL"}]), \
         patch("flightdelay.queries.reference.search_airports", return_value=[]):
        resp = client.get("/api/search?q=Delta")
    body = resp.json()
    assert body["kind"] == "text"
    assert body["airlines"] == [{"airlineCode": "DL"}]
    assert body["airports"] == []


def test_search_requires_query(client):
    assert client.get("/api/search").status_code == 422


def test_reference_lists(client):
    with patch("flightdelay.queries.reference.list_airlines", return_value=[{"airlineCode": "AA"}]), \
         patch("flightdelay.queries.reference.list_airports", return_value=[{"airportCode": "ORD"}]):
        assert client.get("/api/airlines").json() == [{"airlineCode": "AA"}]
        assert client.get("/api/airports").json() == [{"airportCode": "ORD"}]


def test_analysis_endpoints(client):
    with patch("flightdelay.queries.analytics.weather_impact", return_value=[{"weather_type": "Snow"}]), \
         patch("flightdelay.queries.analytics.temporal_analysis", return_value=[{"departure_hour": 7}]), \
         patch("flightdelay.queries.analytics.airline_performance", return_value=[]):
        assert client.get("/api/analysis/weather-impact").json() == [{"weather_type": "Snow"}]
        assert client.get("/api/analysis/temporal").json() == [{"departure_hour": 7}]
        assert client.get("/api/analysis/airline-performance").json() == []


def test_analysis_database_down_is_503(client):
    with patch("flightdelay.queries.analytics.temporal_analysis", side_effect=_connectivity_error()):
        resp = client.get("/api/analysis/temporal")
    assert resp.status_code == 503
    assert resp.json()["error"] == "Database unavailable"


def test_health(client, db):
    db.ping.return_value = True
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": True}


def test_app_starts_with_database_down():
    """An unreachable database at startup still serves requests, as 503s."""
    refused = psycopg2.OperationalError("connection refused")
    with patch("flightdelay.database.ThreadedConnectionPool", side_effect=refused):
        with TestClient(app) as live:
            flights_resp = live.get("/api/flights")
            health_resp = live.get("/health")
    assert flights_resp.status_code == 503
    assert flights_resp.json()["error"] == "Database unavailable"
    assert health_resp.status_code == 503
