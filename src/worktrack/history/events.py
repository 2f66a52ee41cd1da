"""Work item event schema.

An Event reports one change between two adjacent revisions of a work item:
either a single field whose value changed, or (under the reserved name
WORKITEM_TYPE_CHANGE_EVENT) a change of the work item's type, in which case
old/new carry the work item type ids.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Resource type name used when rendering events
API_STRING_TYPE_EVENTS = "events"

# Reserved event name for a change of the work item's type
WORKITEM_TYPE_CHANGE_EVENT = "workitemtype"


class Event(BaseModel):
    """Immutable record of one change between two adjacent revisions.

    Attributes:
        revision_id: The newer revision the change belongs to.
        name: Field name, or WORKITEM_TYPE_CHANGE_EVENT for a type change.
        work_item_type_id: Work item type of the newer revision.
        timestamp: When the newer revision was written.
        modifier: Identity that wrote the newer revision.
        old: Value before the change.
        new: Value after the change.
    """

    model_config = ConfigDict(frozen=True)

    revision_id: int = Field(..., description="Id of the revision the change belongs to")
    name: str = Field(..., description="Changed field name, or 'workitemtype' for a type change")
    work_item_type_id: uuid.UUID = Field(..., description="Work item type of the newer revision")
    timestamp: datetime = Field(..., description="When the newer revision was written")
    modifier: uuid.UUID = Field(..., description="Identity that made the change")
    old: Any = Field(default=None, description="Value before the change")
    new: Any = Field(default=None, description="Value after the change")

    @property
    def is_type_change(self) -> bool:
        """Whether this event reports a change of the work item's type."""
        return self.name == WORKITEM_TYPE_CHANGE_EVENT
