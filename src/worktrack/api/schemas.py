"""Pydantic request and response schemas for the worktrack API.

All API inputs and outputs use Pydantic models, never raw dicts.
Schemas are grouped by resource type.

Resources:
- TrackerQuery — saved remote queries imported on a schedule
- Event — reconstructed change history of a work item
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# TrackerQuery schemas
# ---------------------------------------------------------------------------


class TrackerQueryCreateRequest(BaseModel):
    """Request body for creating a tracker query.

    Emptiness and nil-UUID checks happen in the service layer so they answer
    with the same bad-parameter error as every other validation failure.
    """

    id: uuid.UUID | None = Field(
        default=None,
        description="Optional client-chosen tracker query UUID; generated when omitted",
    )
    query: str = Field(description="Provider-specific search expression, e.g. 'is:open label:bug'")
    schedule: str = Field(description="Cron expression controlling how often the query runs")
    tracker_id: uuid.UUID = Field(description="Tracker the query runs against")
    space_id: uuid.UUID = Field(description="Space imported work items land in")
    work_item_type_id: uuid.UUID | None = Field(
        default=None,
        description="Work item type given to imported items",
    )


class TrackerQueryResponse(BaseModel):
    """Response schema for a tracker query."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(description="Tracker query UUID")
    query: str = Field(description="Provider-specific search expression")
    schedule: str = Field(description="Cron expression")
    tracker_id: uuid.UUID = Field(description="Tracker the query runs against")
    space_id: uuid.UUID = Field(description="Space imported work items land in")
    work_item_type_id: uuid.UUID | None = Field(description="Work item type given to imported items")
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    updated_at: datetime = Field(description="Last update timestamp (UTC)")


class TrackerQueryListResponse(BaseModel):
    """Paginated list of tracker queries."""

    data: list[TrackerQueryResponse] = Field(description="Tracker queries, oldest first")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Records per page")


# ---------------------------------------------------------------------------
# Event schemas
# ---------------------------------------------------------------------------


class EventResponse(BaseModel):
    """One change between two adjacent revisions of a work item."""

    model_config = ConfigDict(from_attributes=True)

    revision_id: int = Field(description="Id of the revision the change belongs to")
    name: str = Field(description="Changed field name, or 'workitemtype' for a type change")
    work_item_type_id: uuid.UUID = Field(description="Work item type of the newer revision")
    timestamp: datetime = Field(description="When the newer revision was written (UTC)")
    modifier: uuid.UUID = Field(description="Identity that made the change")
    old: Any = Field(default=None, description="Value before the change")
    new: Any = Field(default=None, description="Value after the change")


class EventListResponse(BaseModel):
    """The change history of a work item."""

    data: list[EventResponse] = Field(description="Events ordered by revision, oldest first")
