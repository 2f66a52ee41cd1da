"""SQLAlchemy ORM models for worktrack.

Models:
- Space             — a project space owning work items and tracker queries
- Tracker           — a remote issue tracker (GitHub, Jira) imports come from
- TrackerQuery      — saved remote query re-run on a schedule to import items
- WorkItemType      — schema of a work item: ordered list of field definitions
- WorkItem          — the current state of a tracked unit of work
- WorkItemRevision  — IMMUTABLE snapshot of a work item, written on every change
- Identity          — a user or service account that modifies work items

IMPORTANT: WorkItemRevision rows are write-once. Revisions are appended by
the work item write path; nothing in this service updates or deletes them.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from worktrack.database import Base, JSONType, TimestampedModel, utc_now


class Space(TimestampedModel, Base):
    """A project space.

    Attributes:
        name: Human-readable space name.
        description: Optional description.
    """

    __tablename__ = "spaces"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Tracker(TimestampedModel, Base):
    """A remote issue tracker that tracker queries run against.

    Attributes:
        url: Base URL of the remote tracker.
        type: Provider name, github or jira.
    """

    __tablename__ = "trackers"

    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Provider name: github | jira",
    )


class TrackerQuery(TimestampedModel, Base):
    """A saved query against a remote tracker, imported periodically.

    Attributes:
        query: Provider-specific search expression.
        schedule: Cron expression controlling how often the query runs.
        tracker_id: The tracker the query runs against.
        space_id: The space imported work items land in.
        work_item_type_id: The type given to imported work items.
    """

    __tablename__ = "tracker_queries"

    query: Mapped[str] = mapped_column(Text, nullable=False)
    schedule: Mapped[str] = mapped_column(String(255), nullable=False)
    tracker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("trackers.id"),
        nullable=False,
        index=True,
    )
    space_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("spaces.id"),
        nullable=False,
        index=True,
    )
    work_item_type_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)


class WorkItemType(TimestampedModel, Base):
    """Schema of a work item.

    Attributes:
        name: Human-readable type name (e.g., "Bug").
        description: Optional description.
        fields: JSON array of field definitions in declaration order, each
            ``{"name", "label", "required", "type": {"kind", ...}}``.
    """

    __tablename__ = "work_item_types"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    fields: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )


class WorkItem(TimestampedModel, Base):
    """Current state of a work item.

    A work item exists while ``deleted_at`` is null.

    Attributes:
        space_id: Owning space.
        type_id: Current work item type.
        number: Human-friendly sequence number within the space.
        fields: Current field values keyed by field name.
        version: Optimistic-locking version, incremented on every change.
        tracker_query_id: The tracker query that imported this item, if any
            (no foreign key; deleting the query leaves the item in place).
        deleted_at: Deletion timestamp; null while the item exists.
    """

    __tablename__ = "work_items"

    space_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("spaces.id"),
        nullable=False,
        index=True,
    )
    type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("work_item_types.id"),
        nullable=False,
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fields: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tracker_query_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class WorkItemRevision(Base):
    """Immutable snapshot of a work item at one point in time.

    Attributes:
        id: Monotonically increasing revision id.
        work_item_id: The work item this revision belongs to.
        revision_type: create | update | delete.
        revision_time: When the change happened (UTC).
        modifier_id: Identity that made the change.
        work_item_type_id: The work item's type at that time.
        work_item_version: The work item version after the change.
        work_item_fields: Full field-value map at that time.
    """

    __tablename__ = "work_item_revisions"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer(), "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    work_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("work_items.id"),
        nullable=False,
        index=True,
    )
    revision_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="create | update | delete",
    )
    revision_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    modifier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("identities.id"),
        nullable=False,
    )
    work_item_type_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    work_item_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    work_item_fields: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )


class Identity(TimestampedModel, Base):
    """A user or service account.

    Attributes:
        username: Unique login name.
        full_name: Display name.
        email: Optional contact address.
    """

    __tablename__ = "identities"

    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
