"""API router for worktrack.

All worktrack endpoints are registered here and included in main.py under
the /api/v1 prefix. Routes are thin; all business logic lives in the
service layer and the event reconstructor.

Endpoints:
- POST/GET    /trackerqueries                    — create / list tracker queries
- GET         /trackerqueries/{id}               — show a tracker query
- DELETE      /trackerqueries/{id}?delete_wi=    — delete a tracker query (and its work items)
- GET         /workitems/{id}/events             — change history of a work item
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.adapters.repositories import (
    SpaceRepository,
    TrackerQueryRepository,
    TrackerRepository,
    WorkItemRepository,
)
from worktrack.adapters.scheduler import get_access_tokens
from worktrack.api.schemas import (
    TrackerQueryCreateRequest,
    TrackerQueryListResponse,
    TrackerQueryResponse,
)
from worktrack.auth import UserContext, get_auth_service, get_current_user
from worktrack.core.services import TrackerQueryService
from worktrack.database import get_db_session
from worktrack.history.routes import router as history_router

logger = logging.getLogger(__name__)

router = APIRouter()
tracker_query_router = APIRouter(tags=["trackerqueries"])


# ---------------------------------------------------------------------------
# Dependency factories: wire repositories, services, and clients together
# ---------------------------------------------------------------------------


def get_tracker_query_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> TrackerQueryService:
    """Construct TrackerQueryService with injected repositories.

    Args:
        request: The incoming request, for the application-wide clients.
        session: Primary DB session.

    Returns:
        Fully wired TrackerQueryService instance.
    """
    return TrackerQueryService(
        tracker_query_repo=TrackerQueryRepository(session),
        space_repo=SpaceRepository(session),
        tracker_repo=TrackerRepository(session),
        work_item_repo=WorkItemRepository(session),
        auth_service=get_auth_service(request),
        scheduler=request.app.state.scheduler,
        access_tokens=get_access_tokens(request.app.state.settings),
    )


# ---------------------------------------------------------------------------
# Tracker query endpoints
# ---------------------------------------------------------------------------


@tracker_query_router.post("/trackerqueries", response_model=TrackerQueryResponse, status_code=201)
async def create_tracker_query(
    body: TrackerQueryCreateRequest,
    request: Request,
    response: Response,
    user: Annotated[UserContext, Depends(get_current_user)],
    service: Annotated[TrackerQueryService, Depends(get_tracker_query_service)],
) -> TrackerQueryResponse:
    """Create a tracker query.

    The caller needs the contribute scope on the target space. The import
    scheduler is re-planned once the query is stored.

    Args:
        body: Tracker query creation request body.
        request: The incoming request, for the Location header.
        response: Outgoing response, for the Location header.
        user: Authenticated caller.
        service: Injected TrackerQueryService.

    Returns:
        The created tracker query.
    """
    logger.info(
        "POST /trackerqueries",
        extra={"identity_id": str(user.identity_id), "space_id": str(body.space_id)},
    )
    tracker_query = await service.create_tracker_query(
        user=user,
        query=body.query,
        schedule=body.schedule,
        tracker_id=body.tracker_id,
        space_id=body.space_id,
        work_item_type_id=body.work_item_type_id,
        tracker_query_id=body.id,
    )
    response.headers["Location"] = str(
        request.url_for("get_tracker_query", tracker_query_id=str(tracker_query.id))
    )
    return tracker_query


@tracker_query_router.get("/trackerqueries", response_model=TrackerQueryListResponse)
async def list_tracker_queries(
    service: Annotated[TrackerQueryService, Depends(get_tracker_query_service)],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=100),
) -> TrackerQueryListResponse:
    """List tracker queries, oldest first.

    Args:
        service: Injected TrackerQueryService.
        page: Page number.
        page_size: Records per page.

    Returns:
        A page of tracker queries.
    """
    tracker_queries = await service.list_tracker_queries(page=page, page_size=page_size)
    return TrackerQueryListResponse(data=tracker_queries, page=page, page_size=page_size)


@tracker_query_router.get("/trackerqueries/{tracker_query_id}", response_model=TrackerQueryResponse)
async def get_tracker_query(
    tracker_query_id: uuid.UUID,
    request: Request,
    response: Response,
    service: Annotated[TrackerQueryService, Depends(get_tracker_query_service)],
) -> TrackerQueryResponse:
    """Get a tracker query by ID.

    Args:
        tracker_query_id: The tracker query UUID.
        request: The incoming request, for the configured Cache-Control.
        response: Outgoing response, for the Cache-Control header.
        service: Injected TrackerQueryService.

    Returns:
        The tracker query.
    """
    tracker_query = await service.get_tracker_query(tracker_query_id)
    response.headers["Cache-Control"] = request.app.state.settings.cache_control_tracker_queries
    return tracker_query


@tracker_query_router.delete("/trackerqueries/{tracker_query_id}", status_code=200)
async def delete_tracker_query(
    tracker_query_id: uuid.UUID,
    user: Annotated[UserContext, Depends(get_current_user)],
    service: Annotated[TrackerQueryService, Depends(get_tracker_query_service)],
    delete_wi: bool = Query(default=False, description="Also delete the work items the query imported"),
) -> Response:
    """Delete a tracker query.

    Args:
        tracker_query_id: The tracker query UUID.
        user: Authenticated caller.
        service: Injected TrackerQueryService.
        delete_wi: Also delete the work items the query imported.

    Returns:
        An empty 200 response.
    """
    logger.info(
        "DELETE /trackerqueries/{id}",
        extra={
            "tracker_query_id": str(tracker_query_id),
            "identity_id": str(user.identity_id),
            "delete_wi": delete_wi,
        },
    )
    await service.delete_tracker_query(user, tracker_query_id, delete_work_items=delete_wi)
    return Response(status_code=200)


router.include_router(tracker_query_router)
router.include_router(history_router)
