"""Work item history: event reconstruction from the append-only revision log.

Rebuilds, on demand, the list of changes made to a work item by diffing each
pair of adjacent revisions field by field under the work item type's schema.
Nothing is stored; every call reads the revisions afresh.
"""

from __future__ import annotations

from worktrack.history.events import WORKITEM_TYPE_CHANGE_EVENT, Event
from worktrack.history.reconstructor import EventReconstructor

__all__ = [
    "Event",
    "EventReconstructor",
    "WORKITEM_TYPE_CHANGE_EVENT",
]
