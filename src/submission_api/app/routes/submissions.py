"""Submission API routes.

GET    /api/submissions                   - list with filtering, search, pagination
POST   /api/submissions                   - create (n8n, forms, direct calls)
GET    /api/submissions/stats/dashboard   - dashboard statistics
GET    /api/submissions/type/{type}       - all submissions of one type
PATCH  /api/submissions/bulk/status       - status update for many submissions
GET    /api/submissions/{id}              - one submission
PUT    /api/submissions/{id}              - full update
PATCH  /api/submissions/{id}/status       - stage/status/priority/assignment only
DELETE /api/submissions/{id}              - permanent delete (prefer status=archived)
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from submission_api.infra.submission_store import SubmissionStore, get_submission_store
from submission_api.services.dashboard_service import DashboardService
from submission_api.services.query_builder import ListParams
from submission_api.services.submission_service import SubmissionService

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


def get_submission_service(store: SubmissionStore = Depends(get_submission_store)) -> SubmissionService:
    return SubmissionService(store)


def get_dashboard_service(store: SubmissionStore = Depends(get_submission_store)) -> DashboardService:
    return DashboardService(store)


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# ---------------------------------------------------------------------------
# Collection endpoints
# ---------------------------------------------------------------------------


@router.get("")
async def list_submissions(
    type: Optional[str] = Query(None, description="Filter by submissionType"),
    stage: Optional[str] = Query(None, description="Filter by pipeline stage"),
    source: Optional[str] = Query(None, description="Filter by source"),
    status: Optional[str] = Query(None, description="Filter by status"),
    priority: Optional[str] = Query(None, description="Filter by priority"),
    assignedTo: Optional[str] = Query(None, description="Filter by assigned user"),
    search: Optional[str] = Query(None, description="Case-insensitive match on name, email or message"),
    page: Optional[str] = Query(None, description="1-based page number (default 1)"),
    limit: Optional[str] = Query(None, description="Items per page (default 10)"),
    sort: Optional[str] = Query(None, description="Sort field, '-' prefix for descending (default -createdAt)"),
    service: SubmissionService = Depends(get_submission_service),
):
    """Retrieve submissions with optional filtering, search, pagination and sorting."""
    params = ListParams(
        type=type,
        stage=stage,
        source=source,
        status=status,
        priority=priority,
        assignedTo=assignedTo,
        search=search,
        page=page,
        limit=limit,
        sort=sort,
    )
    data = await service.list_submissions(params)
    return {"success": True, "data": data}


@router.post("", status_code=201)
async def create_submission(
    request: Request,
    payload: Any = Body(...),
    service: SubmissionService = Depends(get_submission_service),
):
    """Create a submission. Priority is derived from the message when omitted."""
    submission = await service.create(
        payload,
        client_ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return {"success": True, "message": "Submission created successfully", "data": submission}


@router.get("/stats/dashboard")
async def dashboard_stats(service: DashboardService = Depends(get_dashboard_service)):
    """Totals, breakdowns by type/stage/status/priority, recent items and error rate."""
    return {"success": True, "data": await service.compute()}


@router.get("/type/{submission_type}")
async def list_by_type(
    submission_type: str,
    service: SubmissionService = Depends(get_submission_service),
):
    """All submissions of one type, newest first."""
    return {"success": True, "data": await service.list_by_type(submission_type)}


@router.patch("/bulk/status")
async def bulk_update_status(
    payload: Any = Body(...),
    service: SubmissionService = Depends(get_submission_service),
):
    """Apply the same status/stage/priority/assignment to many submissions."""
    result = await service.bulk_update_status(payload)
    return {
        "success": True,
        "message": f"{result['modified']} submissions updated successfully",
        "data": result,
    }


# ---------------------------------------------------------------------------
# Item endpoints
# ---------------------------------------------------------------------------


@router.get("/{submission_id}")
async def get_submission(
    submission_id: str,
    service: SubmissionService = Depends(get_submission_service),
):
    return {"success": True, "data": await service.get(submission_id)}


@router.put("/{submission_id}")
async def replace_submission(
    submission_id: str,
    payload: Any = Body(...),
    service: SubmissionService = Depends(get_submission_service),
):
    """Replace every producer and staff field of a submission."""
    submission = await service.replace(submission_id, payload)
    return {"success": True, "message": "Submission updated successfully", "data": submission}


@router.patch("/{submission_id}/status")
async def update_submission_status(
    submission_id: str,
    payload: Any = Body(...),
    service: SubmissionService = Depends(get_submission_service),
):
    """Update only stage, status, priority or assignedTo."""
    submission = await service.update_status(submission_id, payload)
    return {"success": True, "message": "Status updated successfully", "data": submission}


@router.delete("/{submission_id}")
async def delete_submission(
    submission_id: str,
    service: SubmissionService = Depends(get_submission_service),
):
    """Permanently delete a submission. Consider status=archived instead."""
    result = await service.delete(submission_id)
    return {"success": True, "message": "Submission deleted successfully", "data": result}
