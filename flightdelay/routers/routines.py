"""
Stored procedure and transaction endpoints.

Thin forwarders to the routine bridge: take a routine name plus named params,
return the rows ({results}) or the first output row ({result}). Failures are
answered with a short {error} body; the full traceback only goes to the log.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from flightdelay.database import Database
from flightdelay.deps import get_db
from flightdelay.errors import PersistenceError, ValidationError
from flightdelay.models.routines import (
    ProcedureRequest,
    ProcedureResponse,
    TransactionRequest,
    TransactionResponse,
)
from flightdelay.queries.routines import call_procedure, call_transaction

logger = logging.getLogger("flight-api.routines")

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/stored-procedures", response_model=ProcedureResponse)
def execute_stored_procedure(request: ProcedureRequest, db: Database = Depends(get_db)):
    """Run CALL procedureName(...) and return its rows."""
    if not request.procedureName:
        return _error(400, "Procedure name is required")

    try:
        results = call_procedure(db, request.procedureName, request.params or {})
    except ValidationError as e:
        return _error(400, str(e))
    except PersistenceError:
        return _error(500, "Failed to execute stored procedure")
    return ProcedureResponse(results=results)


@router.post("/transactions", response_model=TransactionResponse)
def execute_transaction(request: TransactionRequest, db: Database = Depends(get_db)):
    """Run CALL transactionName(...) inside BEGIN/COMMIT, rolled back on failure."""
    if not request.transactionName:
        return _error(400, "Transaction name is required")

    try:
        result = call_transaction(db, request.transactionName, request.params or {})
    except ValidationError as e:
        return _error(400, str(e))
    except PersistenceError:
        return _error(500, "Failed to execute transaction")
    return TransactionResponse(result=result)
