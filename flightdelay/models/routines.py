"""
Request/response bodies for the stored procedure and transaction endpoints.

The routine name is optional at the schema level so that a missing name is
answered with the 400 body clients expect rather than a 422.
"""
from typing import Any

from pydantic import BaseModel


class ProcedureRequest(BaseModel):
    procedureName: str | None = None
    params: dict[str, Any] | None = None


class ProcedureResponse(BaseModel):
    results: list[dict[str, Any]] = []


class TransactionRequest(BaseModel):
    transactionName: str | None = None
    params: dict[str, Any] | None = None


class TransactionResponse(BaseModel):
    result: dict[str, Any] | None = None
