"""Work item event reconstruction.

Given the append-only revision history of a work item, rebuilds the list of
changes ("events") by diffing every adjacent pair of revisions field by
field, under the schema of the older revision's work item type.

Each field is compared according to its type descriptor:
- list fields normalize an absent value to [] and compare element-wise, in order
- scalar fields (enum fields included) compare converted values strictly
- any other descriptor aborts the whole call

Every failure aborts the call; a partial event list is never returned.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from worktrack.core.fields import (
    EnumType,
    FieldDefinition,
    FieldType,
    ListType,
    SimpleType,
    scalar_equal,
    sequence_equal,
)
from worktrack.core.interfaces import (
    IIdentityRepository,
    IRevisionRepository,
    IWorkItemRepository,
    IWorkItemTypeRepository,
)
from worktrack.core.models import WorkItemRevision
from worktrack.errors import (
    BadParameterError,
    LookupFailedError,
    OperationCancelledError,
    UnknownFieldTypeError,
)
from worktrack.history.events import WORKITEM_TYPE_CHANGE_EVENT, Event

logger = logging.getLogger(__name__)


def _normalize_list_value(value: Any) -> Any:
    """Treat a missing list value as an empty list."""
    return [] if value is None else value


def _convert(
    field_type: FieldType,
    field_name: str,
    value: Any,
    side: str,
) -> Any:
    """Convert one stored value, naming the field and raw value on failure.

    Args:
        field_type: The descriptor whose converter to use.
        field_name: Field name for error context.
        value: The stored value.
        side: "old" or "new", for error context.

    Returns:
        The converted value.

    Raises:
        BadParameterError: If the stored value does not convert.
    """
    try:
        return field_type.convert_from_model(value)
    except BadParameterError as exc:
        raise BadParameterError(
            parameter=field_name,
            value=value,
            expected=exc.expected,
            message=(
                f"failed to convert {side} value for field {field_name} "
                f"from storage representation: {value!r}"
            ),
        ) from exc


class EventReconstructor:
    """Rebuilds the change history of a work item from its revisions.

    Stateless: every call reads through the injected repositories and keeps
    nothing between calls, so concurrent calls are independent.

    Args:
        revision_repo: Source of the ordered revision history.
        work_item_repo: Existence check for the work item.
        work_item_type_repo: Field schema per work item type.
        identity_repo: Resolves the modifier of each revision.
    """

    def __init__(
        self,
        revision_repo: IRevisionRepository,
        work_item_repo: IWorkItemRepository,
        work_item_type_repo: IWorkItemTypeRepository,
        identity_repo: IIdentityRepository,
    ) -> None:
        self._revision_repo = revision_repo
        self._work_item_repo = work_item_repo
        self._work_item_type_repo = work_item_type_repo
        self._identity_repo = identity_repo

    async def list(
        self,
        work_item_id: uuid.UUID,
        cancel_event: asyncio.Event | None = None,
    ) -> list[Event]:
        """Return every change of a work item, oldest first.

        Args:
            work_item_id: The work item whose history to rebuild.
            cancel_event: Optional signal checked between revision pairs;
                when set, the call aborts.

        Returns:
            Events ordered by revision pair. Empty when the work item has
            fewer than two revisions.

        Raises:
            LookupFailedError: If a revision, work item, type, or identity
                lookup fails. Carries the status of the underlying error.
            BadParameterError: If a stored value does not convert.
            UnknownFieldTypeError: If a field has an unrecognized descriptor.
            OperationCancelledError: If cancel_event is set.
        """
        try:
            revisions = await self._revision_repo.list(work_item_id)
        except Exception as exc:
            raise LookupFailedError(f"failed to list revisions for work item {work_item_id}", exc) from exc
        if not revisions:
            return []

        try:
            await self._work_item_repo.check_exists(work_item_id)
        except Exception as exc:
            raise LookupFailedError(f"failed to find work item: {work_item_id}", exc) from exc

        events: list[Event] = []
        for previous, current in zip(revisions, revisions[1:]):
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(
                    f"listing events of work item {work_item_id} was cancelled "
                    f"before revision {current.id}"
                )
            events.extend(await self._diff_pair(previous, current))

        logger.debug(
            "Reconstructed work item events",
            extra={
                "work_item_id": str(work_item_id),
                "revision_count": len(revisions),
                "event_count": len(events),
            },
        )
        return events

    async def _diff_pair(
        self,
        previous: WorkItemRevision,
        current: WorkItemRevision,
    ) -> list[Event]:
        """Compute the events between two adjacent revisions."""
        try:
            schema = await self._work_item_type_repo.load_schema(previous.work_item_type_id)
        except Exception as exc:
            raise LookupFailedError(
                f"failed to load old work item type: {previous.work_item_type_id}", exc
            ) from exc

        try:
            modifier = await self._identity_repo.load(current.modifier_id)
        except Exception as exc:
            raise LookupFailedError(f"failed to load modifier identity {current.modifier_id}", exc) from exc

        if previous.work_item_type_id != current.work_item_type_id:
            # Field values of different types are not comparable.
            return [
                Event(
                    revision_id=current.id,
                    name=WORKITEM_TYPE_CHANGE_EVENT,
                    work_item_type_id=current.work_item_type_id,
                    timestamp=current.revision_time,
                    modifier=modifier.id,
                    old=previous.work_item_type_id,
                    new=current.work_item_type_id,
                )
            ]

        old_fields = previous.work_item_fields or {}
        new_fields = current.work_item_fields or {}
        events: list[Event] = []
        for field_name, definition in schema.fields.items():
            change = self._diff_field(
                definition,
                old_fields.get(field_name),
                new_fields.get(field_name),
            )
            if change is None:
                continue
            old, new = change
            events.append(
                Event(
                    revision_id=current.id,
                    name=field_name,
                    work_item_type_id=current.work_item_type_id,
                    timestamp=current.revision_time,
                    modifier=modifier.id,
                    old=old,
                    new=new,
                )
            )
        return events

    def _diff_field(
        self,
        definition: FieldDefinition,
        old_value: Any,
        new_value: Any,
    ) -> tuple[Any, Any] | None:
        """Compare one field across two revisions.

        Returns:
            The converted (old, new) pair when the values differ, else None.
        """
        field_name = definition.name
        field_type = definition.type
        converter: FieldType = field_type
        if isinstance(field_type, EnumType):
            # Dispatch on the base type, convert with the enum's own validating converter.
            field_type = field_type.base_type

        if isinstance(field_type, ListType):
            old = _convert(field_type, field_name, _normalize_list_value(old_value), "old")
            new = _convert(field_type, field_name, _normalize_list_value(new_value), "new")
            return None if sequence_equal(old, new) else (old, new)

        if isinstance(field_type, SimpleType):
            old = _convert(converter, field_name, old_value, "old")
            new = _convert(converter, field_name, new_value, "new")
            return None if scalar_equal(old, new) else (old, new)

        raise UnknownFieldTypeError(str(getattr(field_type.kind, "value", field_type.kind)))
