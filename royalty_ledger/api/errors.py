"""Translation of domain errors into HTTP responses."""

from fastapi import HTTPException

from royalty_ledger.core.exceptions import LedgerError


def to_http_error(exc: LedgerError) -> HTTPException:
    """Build the HTTPException a route should raise for ``exc``."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
