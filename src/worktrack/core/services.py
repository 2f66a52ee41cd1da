"""Core business logic services for worktrack.

- TrackerQueryService: tracker query lifecycle (create, show, list, delete),
  scope checks against the auth service, and re-planning of the import
  scheduler after every mutation.

Work item history is rebuilt by worktrack.history.reconstructor.EventReconstructor.

Services are async-first. They accept injected repositories and adapters
through their constructors and contain no framework code. Every repository
call of one service method shares the request's database session, so a
failure anywhere rolls back the whole operation.
"""

import logging
import uuid

from worktrack.api.schemas import TrackerQueryResponse
from worktrack.auth import SCOPE_CONTRIBUTE, UserContext
from worktrack.core.interfaces import (
    IAuthService,
    IImportScheduler,
    ISpaceRepository,
    ITrackerQueryRepository,
    ITrackerRepository,
    IWorkItemRepository,
)
from worktrack.errors import BadParameterError, LookupFailedError, NotFoundError

logger = logging.getLogger(__name__)


class TrackerQueryService:
    """Tracker query lifecycle management.

    Args:
        tracker_query_repo: Repository for TrackerQuery persistence.
        space_repo: Space existence checks.
        tracker_repo: Tracker existence checks.
        work_item_repo: Work items imported by a tracker query.
        auth_service: Scope checks for the calling identity.
        scheduler: Import scheduler re-planned after every mutation.
        access_tokens: Access token per remote tracker provider.
    """

    def __init__(
        self,
        tracker_query_repo: ITrackerQueryRepository,
        space_repo: ISpaceRepository,
        tracker_repo: ITrackerRepository,
        work_item_repo: IWorkItemRepository,
        auth_service: IAuthService,
        scheduler: IImportScheduler,
        access_tokens: dict[str, str],
    ) -> None:
        """Initialize TrackerQueryService with injected dependencies.

        Args:
            tracker_query_repo: Repository implementing ITrackerQueryRepository.
            space_repo: Repository implementing ISpaceRepository.
            tracker_repo: Repository implementing ITrackerRepository.
            work_item_repo: Repository implementing IWorkItemRepository.
            auth_service: Client implementing IAuthService.
            scheduler: Scheduler implementing IImportScheduler.
            access_tokens: Provider name to access token map.
        """
        self._tracker_query_repo = tracker_query_repo
        self._space_repo = space_repo
        self._tracker_repo = tracker_repo
        self._work_item_repo = work_item_repo
        self._auth_service = auth_service
        self._scheduler = scheduler
        self._access_tokens = access_tokens

    async def create_tracker_query(
        self,
        user: UserContext,
        query: str,
        schedule: str,
        tracker_id: uuid.UUID,
        space_id: uuid.UUID,
        work_item_type_id: uuid.UUID | None,
        tracker_query_id: uuid.UUID | None = None,
    ) -> TrackerQueryResponse:
        """Create a tracker query and re-plan the import scheduler.

        Args:
            user: The authenticated caller.
            query: Provider-specific search expression.
            schedule: Cron expression.
            tracker_id: The tracker to query.
            space_id: The space imported items land in.
            work_item_type_id: Type given to imported items.
            tracker_query_id: Optional client-chosen id.

        Returns:
            The created TrackerQueryResponse.

        Raises:
            BadParameterError: If a field is empty or nil, the space or
                tracker does not exist, or the requested id is taken.
            ForbiddenError: If the caller cannot contribute to the space.
        """
        if not query:
            raise BadParameterError(parameter="query", value=query, expected="not empty")
        if not schedule:
            raise BadParameterError(parameter="schedule", value=schedule, expected="not empty")
        if tracker_id == uuid.UUID(int=0):
            raise BadParameterError(parameter="tracker_id", value=str(tracker_id), expected="not nil")
        if space_id == uuid.UUID(int=0):
            raise BadParameterError(parameter="space_id", value=str(space_id), expected="not nil")

        await self._auth_service.require_scope(user, str(space_id), SCOPE_CONTRIBUTE)

        try:
            await self._space_repo.check_exists(space_id)
        except NotFoundError as exc:
            logger.error("Unable to load space", extra={"space_id": str(space_id), "error": str(exc)})
            raise BadParameterError(parameter="space", value=str(space_id), expected="valid space ID") from exc

        try:
            await self._tracker_repo.check_exists(tracker_id)
        except NotFoundError as exc:
            logger.error("Unable to load tracker", extra={"tracker_id": str(tracker_id), "error": str(exc)})
            raise BadParameterError(
                parameter="tracker", value=str(tracker_id), expected="valid tracker ID"
            ) from exc

        if tracker_query_id is not None:
            await self._check_tracker_query_id_available(tracker_query_id)

        tracker_query = await self._tracker_query_repo.create(
            query=query,
            schedule=schedule,
            tracker_id=tracker_id,
            space_id=space_id,
            work_item_type_id=work_item_type_id,
            tracker_query_id=tracker_query_id,
        )
        logger.info(
            "Tracker query created",
            extra={
                "tracker_query_id": str(tracker_query.id),
                "space_id": str(space_id),
                "identity_id": str(user.identity_id),
            },
        )

        await self._reschedule()
        return TrackerQueryResponse.model_validate(tracker_query)

    async def _check_tracker_query_id_available(self, tracker_query_id: uuid.UUID) -> None:
        """Reject a client-chosen id that is nil or already in use."""
        if tracker_query_id == uuid.UUID(int=0):
            raise BadParameterError(
                parameter="trackerquery", value=str(tracker_query_id), expected="valid trackerquery ID"
            )
        try:
            await self._tracker_query_repo.check_exists(tracker_query_id)
        except NotFoundError:
            return
        logger.error("Tracker query id already in use", extra={"tracker_query_id": str(tracker_query_id)})
        raise BadParameterError(
            parameter="trackerquery", value=str(tracker_query_id), expected="valid trackerquery ID"
        )

    async def get_tracker_query(self, tracker_query_id: uuid.UUID) -> TrackerQueryResponse:
        """Retrieve a tracker query by ID.

        Raises:
            NotFoundError: If the tracker query does not exist.
        """
        tracker_query = await self._tracker_query_repo.load(tracker_query_id)
        return TrackerQueryResponse.model_validate(tracker_query)

    async def list_tracker_queries(self, page: int = 1, page_size: int = 50) -> list[TrackerQueryResponse]:
        """List tracker queries, oldest first."""
        tracker_queries = await self._tracker_query_repo.list_all(page=page, page_size=page_size)
        return [TrackerQueryResponse.model_validate(tq) for tq in tracker_queries]

    async def delete_tracker_query(
        self,
        user: UserContext,
        tracker_query_id: uuid.UUID,
        delete_work_items: bool = False,
    ) -> None:
        """Delete a tracker query, optionally with every work item it imported.

        Work items are deleted one by one before the query itself, each
        recorded as a delete revision by the caller. The import scheduler is
        re-planned once the deletion succeeds.

        Args:
            user: The authenticated caller.
            tracker_query_id: The tracker query to delete.
            delete_work_items: Also delete the work items the query imported.

        Raises:
            LookupFailedError: If the tracker query or a work item cannot be
                loaded or deleted. Reports the status of the cause.
            ForbiddenError: If the caller cannot contribute to the query's space.
        """
        try:
            tracker_query = await self._tracker_query_repo.load(tracker_query_id)
        except NotFoundError as exc:
            raise LookupFailedError(f"failed to delete tracker query {tracker_query_id}", exc) from exc

        await self._auth_service.require_scope(user, str(tracker_query.space_id), SCOPE_CONTRIBUTE)

        deleted_work_items = 0
        if delete_work_items:
            work_items = await self._work_item_repo.list_by_tracker_query(
                tracker_query.space_id, tracker_query.id
            )
            for work_item in work_items:
                try:
                    await self._work_item_repo.delete(work_item.id, user.identity_id)
                except NotFoundError as exc:
                    raise LookupFailedError(f"error deleting work item {work_item.id}", exc) from exc
                deleted_work_items += 1

        await self._tracker_query_repo.delete(tracker_query.id)
        logger.info(
            "Tracker query deleted",
            extra={
                "tracker_query_id": str(tracker_query_id),
                "deleted_work_items": deleted_work_items,
                "identity_id": str(user.identity_id),
            },
        )

        await self._reschedule()

    async def _reschedule(self) -> None:
        """Re-plan the import scheduler from the current tracker queries."""
        schedulable = await self._tracker_query_repo.list_schedulable()
        self._scheduler.schedule_all_queries(schedulable, self._access_tokens)
