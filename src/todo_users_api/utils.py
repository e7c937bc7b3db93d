from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from fastapi import HTTPException, status

from .models import BulkItemResult
from .services import Outcome, ServiceResult

_STATUS_BY_OUTCOME = {
    Outcome.OK: status.HTTP_200_OK,
    Outcome.CREATED: status.HTTP_201_CREATED,
    Outcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    Outcome.VALIDATION_FAILURE: status.HTTP_400_BAD_REQUEST,
    Outcome.CONFLICT: status.HTTP_409_CONFLICT,
    Outcome.NO_ROWS_AFFECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# PUBLIC_INTERFACE
def status_for(outcome: Outcome) -> int:
    """Return the HTTP status code the transport uses for a service outcome."""
    return _STATUS_BY_OUTCOME[outcome]


# PUBLIC_INTERFACE
def raise_for_outcome(result: ServiceResult) -> None:
    """Raise HTTPException(detail=result.message) unless the result is a success."""
    if not result.ok:
        raise HTTPException(status_code=status_for(result.outcome), detail=result.message)


# PUBLIC_INTERFACE
def bulk_envelope(
    resource: str,
    results: Sequence[BulkItemResult],
    serialize: Callable[[Dict[str, Any]], Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Build the response body of a bulk update: one entry per input item, in
    input order, plus success/failure counts. A partial failure is never
    collapsed into a single status.
    """
    items: List[Dict[str, Any]] = []
    for r in results:
        data: Optional[Dict[str, Any]] = serialize(r.record) if r.ok and r.record is not None else None
        items.append({"index": r.index, "id": r.resource_id, "ok": r.ok, "error": r.error, "data": data})
    succeeded = sum(1 for r in results if r.ok)
    failed = len(results) - succeeded
    if failed == 0:
        message = f"{resource} updated successfully"
    elif succeeded == 0:
        message = f"No {resource.lower()} could be updated"
    else:
        message = f"{resource} partially updated"
    return {"message": message, "succeeded": succeeded, "failed": failed, "results": items}
