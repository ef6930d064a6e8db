from fastapi import APIRouter, Body, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

from ..exceptions import DelayServiceError, StoreError
from ..models import ApiResponse, StatusFilter
from ..mutation_service import DelayMutationService
from ..query_service import DelayQueryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/delays")

# ============= Dependencies =============

def get_query_service(request: Request) -> DelayQueryService:
    return request.app.state.query_service


def get_mutation_service(request: Request) -> DelayMutationService:
    return request.app.state.mutation_service


def error_response(exc: Exception, failure_message: str) -> JSONResponse:
    """Wrap a failed operation in the error envelope.

    Validation and not-found errors keep their own message; store failures
    and anything unexpected become a 500 with the raw error text.
    """
    if isinstance(exc, DelayServiceError) and not isinstance(exc, StoreError):
        body = ApiResponse(success=False, message=exc.message, error=exc.detail)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))

    logger.error(f"{failure_message}: {exc}")
    body = ApiResponse(success=False, message=failure_message, error=str(exc))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump(exclude_none=True))

# ============= Delay Endpoints =============

@router.get("/aggregate/by-neighborhood", response_model=ApiResponse, response_model_exclude_none=True)
async def aggregate_by_neighborhood(queries: DelayQueryService = Depends(get_query_service)):
    """Count, total and average delay minutes of active reports per neighborhood"""
    try:
        summaries = await queries.aggregate_by_neighborhood()
    except Exception as e:
        return error_response(e, "Error aggregating delay data")

    return ApiResponse(
        success=True,
        data=[s.to_api() for s in summaries],
        total=len(summaries)
    )


@router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def list_delays(
    request: Request,
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: Optional[int] = Query(None, ge=1, description="Reports per page"),
    status_filter: StatusFilter = Query(StatusFilter.ACTIVE, alias="status", description="active, resolved or all"),
    queries: DelayQueryService = Depends(get_query_service)
):
    """Get delay reports newest first, paginated and filtered by status"""
    settings = request.app.state.settings
    page_size = min(limit or settings.default_page_size, settings.max_page_size)

    try:
        result = await queries.list_delays(status=status_filter, page=page, page_size=page_size)
    except Exception as e:
        return error_response(e, "Error fetching delays")

    return ApiResponse(
        success=True,
        data=[report.to_api() for report in result.items],
        pagination=result.pagination.to_api()
    )


@router.post("", response_model=ApiResponse, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
async def create_delay(
    payload: Dict[str, Any] = Body(...),
    mutations: DelayMutationService = Depends(get_mutation_service)
):
    """Report a new delay. The report always starts active."""
    try:
        report = await mutations.create(payload)
    except Exception as e:
        return error_response(e, "Error reporting delay")

    return ApiResponse(success=True, message="Delay reported successfully", data=report.to_api())


@router.delete("/{delay_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_delay(delay_id: str, mutations: DelayMutationService = Depends(get_mutation_service)):
    """Permanently delete a delay report"""
    try:
        report = await mutations.delete(delay_id)
    except Exception as e:
        return error_response(e, "Error deleting delay")

    return ApiResponse(success=True, message="Resolved issue deleted successfully", data=report.to_api())


@router.patch("/{delay_id}/resolve", response_model=ApiResponse, response_model_exclude_none=True)
async def resolve_delay(delay_id: str, mutations: DelayMutationService = Depends(get_mutation_service)):
    """Mark a delay report as resolved"""
    try:
        report = await mutations.resolve(delay_id)
    except Exception as e:
        return error_response(e, "Error resolving delay")

    return ApiResponse(success=True, message="Delay marked as resolved", data=report.to_api())
