"""Abstract interfaces (Protocol classes) for worktrack.

Defines the contracts between the service layer and the adapter layer using
Python's typing.Protocol. Services and the event reconstructor depend on
these protocols, never on concrete adapter implementations. This enables
testing with mock adapters.

Protocols defined:
- IRevisionRepository
- IWorkItemRepository
- IWorkItemTypeRepository
- IIdentityRepository
- ISpaceRepository
- ITrackerRepository
- ITrackerQueryRepository
- IImportScheduler
- IAuthService
"""

import uuid
from typing import Protocol

from worktrack.auth import UserContext
from worktrack.core.fields import WorkItemTypeSchema
from worktrack.core.models import Identity, TrackerQuery, WorkItem, WorkItemRevision


class IRevisionRepository(Protocol):
    """Read access to the immutable revision history of work items."""

    async def list(self, work_item_id: uuid.UUID) -> list[WorkItemRevision]:
        """Return all revisions of a work item, oldest first.

        Args:
            work_item_id: The work item UUID.

        Returns:
            Revisions ordered by revision time (ties broken by id). Empty
            when the work item has no history.
        """
        ...


class IWorkItemRepository(Protocol):
    """Repository contract for WorkItem persistence."""

    async def check_exists(self, work_item_id: uuid.UUID) -> None:
        """Verify that a work item exists and is not deleted.

        Args:
            work_item_id: The work item UUID.

        Raises:
            NotFoundError: If the work item does not exist.
        """
        ...

    async def list_by_tracker_query(
        self,
        space_id: uuid.UUID,
        tracker_query_id: uuid.UUID,
    ) -> list[WorkItem]:
        """List the live work items a tracker query imported into a space.

        Args:
            space_id: The owning space.
            tracker_query_id: The importing tracker query.

        Returns:
            Matching work items.
        """
        ...

    async def delete(self, work_item_id: uuid.UUID, suppressor_id: uuid.UUID) -> None:
        """Delete a work item, recording a delete revision.

        Args:
            work_item_id: The work item UUID.
            suppressor_id: Identity performing the deletion.

        Raises:
            NotFoundError: If the work item does not exist.
        """
        ...


class IWorkItemTypeRepository(Protocol):
    """Read access to work item type schemas."""

    async def load_schema(self, type_id: uuid.UUID) -> WorkItemTypeSchema:
        """Load the field schema of a work item type.

        Args:
            type_id: The work item type UUID.

        Returns:
            The resolved WorkItemTypeSchema.

        Raises:
            NotFoundError: If the type does not exist.
        """
        ...


class IIdentityRepository(Protocol):
    """Read access to identities."""

    async def load(self, identity_id: uuid.UUID) -> Identity:
        """Load an identity by ID.

        Raises:
            NotFoundError: If the identity does not exist.
        """
        ...


class ISpaceRepository(Protocol):
    """Existence checks for spaces."""

    async def check_exists(self, space_id: uuid.UUID) -> None:
        """Raises NotFoundError if the space does not exist."""
        ...


class ITrackerRepository(Protocol):
    """Existence checks for trackers."""

    async def check_exists(self, tracker_id: uuid.UUID) -> None:
        """Raises NotFoundError if the tracker does not exist."""
        ...


class ITrackerQueryRepository(Protocol):
    """Repository contract for TrackerQuery persistence."""

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
            space_id: The space to import into.
            work_item_type_id: Type of imported work items.
            tracker_query_id: Optional client-chosen id.

        Returns:
            The persisted TrackerQuery.
        """
        ...

    async def check_exists(self, tracker_query_id: uuid.UUID) -> None:
        """Raises NotFoundError if the tracker query does not exist."""
        ...

    async def load(self, tracker_query_id: uuid.UUID) -> TrackerQuery:
        """Load a tracker query.

        Raises:
            NotFoundError: If the tracker query does not exist.
        """
        ...

    async def list_all(self, page: int = 1, page_size: int = 50) -> list[TrackerQuery]:
        """List tracker queries, oldest first."""
        ...

    async def list_schedulable(self) -> list[tuple[TrackerQuery, str, str]]:
        """List every tracker query with its tracker URL and provider type."""
        ...

    async def delete(self, tracker_query_id: uuid.UUID) -> None:
        """Delete a tracker query.

        Raises:
            NotFoundError: If the tracker query does not exist.
        """
        ...


class IImportScheduler(Protocol):
    """Contract of the scheduler that periodically runs tracker queries."""

    def schedule_all_queries(
        self,
        tracker_queries: list[tuple[TrackerQuery, str, str]],
        access_tokens: dict[str, str],
    ) -> None:
        """Replace the import plan with one job per tracker query.

        Args:
            tracker_queries: (tracker query, tracker url, provider) triples.
            access_tokens: Access token per provider name.
        """
        ...


class IAuthService(Protocol):
    """Contract of the external auth service."""

    async def get_identity(self, token: str) -> UserContext:
        """Resolve a bearer token to the calling identity.

        Raises:
            UnauthorizedError: If the token is not accepted.
        """
        ...

    async def require_scope(self, user: UserContext, resource_id: str, scope: str) -> None:
        """Ensure the caller holds a scope on a resource.

        Raises:
            ForbiddenError: If the scope is missing.
        """
        ...
