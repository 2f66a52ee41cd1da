"""Import scheduler for tracker queries.

Holds the import plan: one ScheduledImport per tracker query, carrying
everything a worker needs to run the remote query on its cron schedule.
The plan is replaced wholesale whenever tracker queries change; running the
remote queries and materializing work items happens outside this service.
"""

import logging
import threading
import uuid
from dataclasses import dataclass

from worktrack.core.models import TrackerQuery
from worktrack.settings import Settings

logger = logging.getLogger(__name__)

PROVIDER_GITHUB = "github"
PROVIDER_JIRA = "jira"


def get_access_tokens(settings: Settings) -> dict[str, str]:
    """Build the provider → access token map handed to the scheduler.

    Args:
        settings: Service settings.

    Returns:
        Access token per provider name.
    """
    return {PROVIDER_GITHUB: settings.github_auth_token}


@dataclass(frozen=True)
class ScheduledImport:
    """One planned import job.

    Attributes:
        tracker_query_id: The tracker query to run.
        query: Provider-specific search expression.
        schedule: Cron expression.
        tracker_url: Base URL of the remote tracker.
        provider: Provider name, e.g. ``github``.
        access_token: Token for the provider; empty when none is configured.
    """

    tracker_query_id: uuid.UUID
    query: str
    schedule: str
    tracker_url: str
    provider: str
    access_token: str


class ImportScheduler:
    """In-process holder of the current import plan.

    Safe to share between requests; the plan is swapped under a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: tuple[ScheduledImport, ...] = ()

    @property
    def jobs(self) -> tuple[ScheduledImport, ...]:
        """The current import plan."""
        with self._lock:
            return self._jobs

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
        jobs = tuple(
            ScheduledImport(
                tracker_query_id=tracker_query.id,
                query=tracker_query.query,
                schedule=tracker_query.schedule,
                tracker_url=tracker_url,
                provider=provider,
                access_token=access_tokens.get(provider, ""),
            )
            for tracker_query, tracker_url, provider in tracker_queries
        )
        with self._lock:
            self._jobs = jobs

        missing_tokens = sorted({job.provider for job in jobs if not job.access_token})
        logger.info(
            "Import plan replaced",
            extra={"job_count": len(jobs), "providers_without_token": missing_tokens},
        )
