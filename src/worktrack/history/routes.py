"""Work item history API routes.

Endpoints:
- GET /workitems/{work_item_id}/events — change history of a work item, oldest first
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.adapters.repositories import (
    IdentityRepository,
    RevisionRepository,
    WorkItemRepository,
    WorkItemTypeRepository,
)
from worktrack.api.schemas import EventListResponse, EventResponse
from worktrack.database import get_db_session
from worktrack.history.reconstructor import EventReconstructor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


def get_event_reconstructor(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> EventReconstructor:
    """Construct EventReconstructor with injected repositories.

    Args:
        session: Primary DB session.

    Returns:
        Fully wired EventReconstructor instance.
    """
    return EventReconstructor(
        revision_repo=RevisionRepository(session),
        work_item_repo=WorkItemRepository(session),
        work_item_type_repo=WorkItemTypeRepository(session),
        identity_repo=IdentityRepository(session),
    )


@router.get("/workitems/{work_item_id}/events", response_model=EventListResponse)
async def list_work_item_events(
    work_item_id: uuid.UUID,
    reconstructor: Annotated[EventReconstructor, Depends(get_event_reconstructor)],
) -> EventListResponse:
    """List the changes made to a work item.

    Args:
        work_item_id: The work item UUID.
        reconstructor: Injected EventReconstructor.

    Returns:
        Every field and type change, ordered by revision.
    """
    events = await reconstructor.list(work_item_id)
    logger.debug(
        "GET /workitems/{id}/events",
        extra={"work_item_id": str(work_item_id), "event_count": len(events)},
    )
    return EventListResponse(data=[EventResponse.model_validate(event) for event in events])
