"""SQLAlchemy repositories for the worktrack primary database.

Each repository implements the corresponding interface from core/interfaces.py
on top of an AsyncSession owned by the request (see database.get_db_session).
Repositories flush but never commit; the session dependency commits or rolls
back the whole request.

Repositories:
- SpaceRepository         — Space existence checks
- TrackerRepository       — Tracker existence checks
- TrackerQueryRepository  — TrackerQuery CRUD
- WorkItemRepository      — WorkItem existence, lookup by tracker query, delete
- RevisionRepository      — WorkItemRevision read-only history
- WorkItemTypeRepository  — WorkItemType schema lookup
- IdentityRepository      — Identity lookup
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.core.fields import WorkItemTypeSchema, parse_schema
from worktrack.core.models import (
    Identity,
    Space,
    Tracker,
    TrackerQuery,
    WorkItem,
    WorkItemRevision,
    WorkItemType,
)
from worktrack.database import utc_now
from worktrack.errors import NotFoundError

logger = logging.getLogger(__name__)

REVISION_TYPE_DELETE = "delete"


class SpaceRepository:
    """Repository for Space lookups.

    Args:
        session: The primary DB async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def check_exists(self, space_id: uuid.UUID) -> None:
        """Raise NotFoundError unless the space exists."""
        stmt = select(func.count()).select_from(Space).where(Space.id == space_id)
        result = await self._session.execute(stmt)
        if not result.scalar():
            raise NotFoundError(resource="Space", resource_id=str(space_id))


class TrackerRepository:
    """Repository for Tracker lookups.

    Args:
        session: The primary DB async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def check_exists(self, tracker_id: uuid.UUID) -> None:
        """Raise NotFoundError unless the tracker exists."""
        stmt = select(func.count()).select_from(Tracker).where(Tracker.id == tracker_id)
        result = await self._session.execute(stmt)
        if not result.scalar():
            raise NotFoundError(resource="Tracker", resource_id=str(tracker_id))


class TrackerQueryRepository:
    """Repository for TrackerQuery persistence on the primary database.

    Args:
        session: The primary DB async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize TrackerQueryRepository with a database session.

        Args:
            session: The SQLAlchemy async session for the primary DB.
        """
        self._session = session

    async def create(
        self,
        query: str,
        schedule: str,
        tracker_id: uuid.UUID,
        space_id: uuid.UUID,
        work_item_type_id: uuid.UUID | None,
        tracker_query_id: uuid.UUID | None = None,
    ) -> TrackerQuery:
        """Create and persist a new tracker query.

        Args:
            query: Provider-specific search expression.
            schedule: Cron expression.
            tracker_id: The tracker to query.
            space_id: The space imported items land in.
            work_item_type_id: Type given to imported items.
            tracker_query_id: Optional client-chosen id; generated when None.

        Returns:
            The persisted TrackerQuery.
        """
        tracker_query = TrackerQuery(
            id=tracker_query_id or uuid.uuid4(),
            query=query,
            schedule=schedule,
            tracker_id=tracker_id,
            space_id=space_id,
            work_item_type_id=work_item_type_id,
        )
        self._session.add(tracker_query)
        await self._session.flush()
        await self._session.refresh(tracker_query)
        logger.info(
            "Tracker query created in DB",
            extra={
                "tracker_query_id": str(tracker_query.id),
                "tracker_id": str(tracker_id),
                "space_id": str(space_id),
            },
        )
        return tracker_query

    async def check_exists(self, tracker_query_id: uuid.UUID) -> None:
        """Raise NotFoundError unless the tracker query exists."""
        stmt = select(func.count()).select_from(TrackerQuery).where(TrackerQuery.id == tracker_query_id)
        result = await self._session.execute(stmt)
        if not result.scalar():
            raise NotFoundError(resource="TrackerQuery", resource_id=str(tracker_query_id))

    async def load(self, tracker_query_id: uuid.UUID) -> TrackerQuery:
        """Retrieve a tracker query by ID.

        Args:
            tracker_query_id: The tracker query UUID.

        Returns:
            The TrackerQuery.

        Raises:
            NotFoundError: If not found.
        """
        tracker_query = await self._session.get(TrackerQuery, tracker_query_id)
        if tracker_query is None:
            raise NotFoundError(resource="TrackerQuery", resource_id=str(tracker_query_id))
        return tracker_query

    async def list_all(self, page: int = 1, page_size: int = 50) -> list[TrackerQuery]:
        """List tracker queries, oldest first.

        Args:
            page: Page number (1-indexed).
            page_size: Records per page.

        Returns:
            List of TrackerQuery records.
        """
        stmt = (
            select(TrackerQuery)
            .order_by(TrackerQuery.created_at, TrackerQuery.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_schedulable(self) -> list[tuple[TrackerQuery, str, str]]:
        """List every tracker query with the URL and provider of its tracker.

        Returns:
            (tracker query, tracker url, provider type) triples.
        """
        stmt = (
            select(TrackerQuery, Tracker.url, Tracker.type)
            .join(Tracker, Tracker.id == TrackerQuery.tracker_id)
            .order_by(TrackerQuery.created_at, TrackerQuery.id)
        )
        result = await self._session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def delete(self, tracker_query_id: uuid.UUID) -> None:
        """Delete a tracker query.

        Raises:
            NotFoundError: If the tracker query does not exist.
        """
        stmt = delete(TrackerQuery).where(TrackerQuery.id == tracker_query_id)
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError(resource="TrackerQuery", resource_id=str(tracker_query_id))
        logger.info("Tracker query deleted from DB", extra={"tracker_query_id": str(tracker_query_id)})


class WorkItemRepository:
    """Repository for WorkItem persistence on the primary database.

    A work item exists while its deleted_at column is null.

    Args:
        session: The primary DB async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _load_live(self, work_item_id: uuid.UUID) -> WorkItem:
        stmt = select(WorkItem).where(
            WorkItem.id == work_item_id,
            WorkItem.deleted_at.is_(None),
        )
        result = await self._session.execute(stmt)
        work_item = result.scalar_one_or_none()
        if work_item is None:
            raise NotFoundError(resource="WorkItem", resource_id=str(work_item_id))
        return work_item

    async def check_exists(self, work_item_id: uuid.UUID) -> None:
        """Raise NotFoundError unless the work item exists and is not deleted."""
        stmt = (
            select(func.count())
            .select_from(WorkItem)
            .where(WorkItem.id == work_item_id, WorkItem.deleted_at.is_(None))
        )
        result = await self._session.execute(stmt)
        if not result.scalar():
            raise NotFoundError(resource="WorkItem", resource_id=str(work_item_id))

    async def list_by_tracker_query(
        self,
        space_id: uuid.UUID,
        tracker_query_id: uuid.UUID,
    ) -> list[WorkItem]:
        """List the live work items a tracker query imported into a space."""
        stmt = (
            select(WorkItem)
            .where(
                WorkItem.space_id == space_id,
                WorkItem.tracker_query_id == tracker_query_id,
                WorkItem.deleted_at.is_(None),
            )
            .order_by(WorkItem.number)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def delete(self, work_item_id: uuid.UUID, suppressor_id: uuid.UUID) -> None:
        """Soft-delete a work item and record a delete revision.

        Args:
            work_item_id: The work item UUID.
            suppressor_id: Identity performing the deletion.

        Raises:
            NotFoundError: If the work item does not exist.
        """
        work_item = await self._load_live(work_item_id)
        now = utc_now()
        work_item.deleted_at = now
        work_item.version += 1
        self._session.add(
            WorkItemRevision(
                work_item_id=work_item.id,
                revision_type=REVISION_TYPE_DELETE,
                revision_time=now,
                modifier_id=suppressor_id,
                work_item_type_id=work_item.type_id,
                work_item_version=work_item.version,
                work_item_fields=dict(work_item.fields or {}),
            )
        )
        await self._session.flush()
        logger.info(
            "Work item deleted",
            extra={"work_item_id": str(work_item_id), "suppressor_id": str(suppressor_id)},
        )


class RevisionRepository:
    """Read-only access to work item revisions.

    Args:
        session: The primary DB async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list(self, work_item_id: uuid.UUID) -> list[WorkItemRevision]:
        """Return all revisions of a work item, oldest first."""
        stmt = (
            select(WorkItemRevision)
            .where(WorkItemRevision.work_item_id == work_item_id)
            .order_by(WorkItemRevision.revision_time, WorkItemRevision.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class WorkItemTypeRepository:
    """Read access to work item type schemas.

    Args:
        session: The primary DB async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load_schema(self, type_id: uuid.UUID) -> WorkItemTypeSchema:
        """Load and parse the field schema of a work item type.

        Raises:
            NotFoundError: If the type does not exist.
            BadParameterError: If the stored field list is malformed.
        """
        work_item_type = await self._session.get(WorkItemType, type_id)
        if work_item_type is None:
            raise NotFoundError(resource="WorkItemType", resource_id=str(type_id))
        return parse_schema(work_item_type.id, work_item_type.name, work_item_type.fields or [])


class IdentityRepository:
    """Read access to identities.

    Args:
        session: The primary DB async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load(self, identity_id: uuid.UUID) -> Identity:
        """Load an identity by ID.

        Raises:
            NotFoundError: If the identity does not exist.
        """
        identity = await self._session.get(Identity, identity_id)
        if identity is None:
            raise NotFoundError(resource="Identity", resource_id=str(identity_id))
        return identity
