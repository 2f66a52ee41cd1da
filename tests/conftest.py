"""Test fixtures for worktrack.

Provides:
- identity_id / space_id / type_id: Deterministic UUIDs for assertions
- user: A UserContext for the authenticated caller
- make_revision(): Builds WorkItemRevision rows without a database
- make_tracker_query(): Builds TrackerQuery rows without a database
- mock_auth_service: An AsyncMock IAuthService granting every scope
- mock_scheduler: A MagicMock IImportScheduler capturing schedule calls
"""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from worktrack.auth import UserContext
from worktrack.core.models import TrackerQuery, WorkItemRevision

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def identity_id() -> uuid.UUID:
    """Return a fixed identity UUID for consistent test assertions."""
    return uuid.UUID("00000000-0000-0000-0000-0000000000a1")


@pytest.fixture()
def space_id() -> uuid.UUID:
    """Return a fixed space UUID for consistent test assertions."""
    return uuid.UUID("00000000-0000-0000-0000-0000000000b1")


@pytest.fixture()
def type_id() -> uuid.UUID:
    """Return a fixed work item type UUID for consistent test assertions."""
    return uuid.UUID("00000000-0000-0000-0000-0000000000c1")


@pytest.fixture()
def user(identity_id: uuid.UUID) -> UserContext:
    """Create the authenticated caller used by service and API tests.

    Args:
        identity_id: Injected identity UUID fixture.

    Returns:
        A UserContext with a deterministic identity.
    """
    return UserContext(identity_id=identity_id, username="jdoe", token="token-123")


def make_revision(
    revision_id: int,
    work_item_id: uuid.UUID,
    type_id: uuid.UUID,
    modifier_id: uuid.UUID,
    fields: dict[str, Any] | None = None,
    revision_type: str = "update",
) -> WorkItemRevision:
    """Create a WorkItemRevision ORM object for tests.

    Revision times advance one minute per revision id.

    Args:
        revision_id: Revision id, also used to derive the revision time.
        work_item_id: Owning work item UUID.
        type_id: Work item type at that revision.
        modifier_id: Identity that wrote the revision.
        fields: Field-value map.
        revision_type: create | update | delete.

    Returns:
        An unsaved WorkItemRevision.
    """
    return WorkItemRevision(
        id=revision_id,
        work_item_id=work_item_id,
        revision_type=revision_type,
        revision_time=BASE_TIME + timedelta(minutes=revision_id),
        modifier_id=modifier_id,
        work_item_type_id=type_id,
        work_item_version=revision_id,
        work_item_fields=fields if fields is not None else {},
    )


def make_tracker_query(
    space_id: uuid.UUID,
    tracker_id: uuid.UUID | None = None,
    query: str = "is:open is:issue user:fabric8-services",
    schedule: str = "*/15 * * * *",
) -> TrackerQuery:
    """Create a TrackerQuery ORM object for tests.

    Args:
        space_id: Owning space UUID.
        tracker_id: Tracker UUID; random when omitted.
        query: Search expression.
        schedule: Cron expression.

    Returns:
        An unsaved TrackerQuery with timestamps populated.
    """
    now = datetime.now(UTC)
    return TrackerQuery(
        id=uuid.uuid4(),
        query=query,
        schedule=schedule,
        tracker_id=tracker_id or uuid.uuid4(),
        space_id=space_id,
        work_item_type_id=None,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture()
def mock_auth_service() -> AsyncMock:
    """Create a mock IAuthService that grants every scope.

    Returns:
        AsyncMock whose require_scope returns None.
    """
    service = AsyncMock()
    service.require_scope.return_value = None
    return service


@pytest.fixture()
def mock_scheduler() -> MagicMock:
    """Create a mock IImportScheduler that captures schedule calls.

    Returns:
        MagicMock with schedule_all_queries returning None.
    """
    scheduler = MagicMock()
    scheduler.schedule_all_queries.return_value = None
    return scheduler
