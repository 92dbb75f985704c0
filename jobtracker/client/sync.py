import itertools
import logging
from dataclasses import replace
from typing import Any, Callable

from jobtracker.client.api import ApiRequestError, JobTrackerApi
from jobtracker.client.state import (
    ConnectivityChanged,
    ErrorRaised,
    FetchFailed,
    FetchSkipped,
    FetchStarted,
    FetchSucceeded,
    JobsState,
    Mutation,
    MutationApplied,
    MutationConfirmed,
    MutationFailed,
    MutationKind,
    MutationQueued,
    QueueTaken,
    reduce,
)
from jobtracker.core.timestamps import now_millis

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "tmp-"


def _request_body(record: dict) -> dict:
    return {k: v for k, v in record.items() if k != "id"}


class JobSync:
    """
    Keeps a local copy of the job list responsive while the network comes and goes.

    Mutations are applied to the local list first, then sent to the server.
    A failed request rolls the local change back and records ``error``.
    While offline, mutations are queued instead; ``set_online(True)`` replays
    the queue in order and then refetches the list.
    """

    def __init__(self, api: JobTrackerApi, is_online: bool = True):
        self.api = api
        self.state = JobsState(is_online=is_online)
        self._mutation_ids = itertools.count(1)
        self._temp_ids = itertools.count(1)
        self._listeners: list[Callable[[JobsState], None]] = []

    # State access

    @property
    def jobs(self) -> list[dict]:
        return list(self.state.jobs)

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def error(self) -> str | None:
        return self.state.error

    @property
    def is_online(self) -> bool:
        return self.state.is_online

    @property
    def pending_changes(self) -> int:
        return len(self.state.pending_changes)

    def subscribe(self, listener: Callable[[JobsState], None]) -> Callable[[], None]:
        """Call ``listener`` after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dispatch(self, action) -> JobsState:
        self.state = reduce(self.state, action)
        for listener in list(self._listeners):
            listener(self.state)
        return self.state

    def _find(self, job_id) -> dict | None:
        return next((job for job in self.state.jobs if job.get("id") == job_id), None)

    def _mutation(self, kind: MutationKind, job_id, data: dict, snapshot: dict | None = None) -> Mutation:
        return Mutation(
            mutation_id=next(self._mutation_ids),
            kind=kind,
            job_id=job_id,
            data=data,
            snapshot=snapshot,
        )

    # Reads

    async def fetch_jobs(self) -> None:
        if not self.state.is_online:
            self.dispatch(FetchSkipped())
            return
        self.dispatch(FetchStarted())
        try:
            data = await self.api.get_all_jobs()
        except ApiRequestError as e:
            logger.warning("Fetching jobs failed: %s", e)
            self.dispatch(FetchFailed(str(e)))
            return
        # Paginated envelope or a bare list
        jobs = data.get("data", []) if isinstance(data, dict) else data
        self.dispatch(FetchSucceeded(tuple(jobs) if isinstance(jobs, list) else ()))

    async def refresh_jobs(self) -> None:
        await self.fetch_jobs()

    # Mutations

    async def add(self, job_data: dict) -> dict | None:
        temp_id = f"{TEMP_ID_PREFIX}{next(self._temp_ids)}"
        new_job = {**job_data, "id": temp_id, "lastUpdated": now_millis()}
        mutation = self._mutation(MutationKind.ADD, temp_id, new_job)
        self.dispatch(MutationApplied(mutation))

        if not self.state.is_online:
            self.dispatch(MutationQueued(mutation))
            return new_job

        try:
            created = await self.api.create_job(_request_body(job_data))
        except ApiRequestError as e:
            logger.warning("Adding job failed: %s", e)
            self.dispatch(MutationFailed(mutation, str(e)))
            return None
        self.dispatch(MutationConfirmed(mutation, created))
        return created

    async def update(self, job_id, fields: dict) -> dict | None:
        original = self._find(job_id)
        if original is None:
            self.dispatch(ErrorRaised(f"Job with ID {job_id} not found"))
            return None

        updated = {**original, **fields, "id": job_id, "lastUpdated": now_millis()}
        mutation = self._mutation(MutationKind.UPDATE, job_id, updated, snapshot=original)
        self.dispatch(MutationApplied(mutation))

        if not self.state.is_online:
            self.dispatch(MutationQueued(mutation))
            return updated

        try:
            # The server replaces the whole row, so send the merged record
            response = await self.api.update_job(job_id, _request_body(updated))
        except ApiRequestError as e:
            logger.warning("Updating job %s failed: %s", job_id, e)
            self.dispatch(MutationFailed(mutation, str(e)))
            return None
        self.dispatch(MutationConfirmed(mutation, response))
        return response

    async def delete(self, job_id) -> bool:
        original = self._find(job_id)
        if original is None:
            self.dispatch(ErrorRaised(f"Job with ID {job_id} not found"))
            return False

        mutation = self._mutation(MutationKind.DELETE, job_id, {"id": job_id}, snapshot=original)
        self.dispatch(MutationApplied(mutation))

        if not self.state.is_online:
            self.dispatch(MutationQueued(mutation))
            return True

        try:
            await self.api.delete_job(job_id)
        except ApiRequestError as e:
            logger.warning("Deleting job %s failed: %s", job_id, e)
            self.dispatch(MutationFailed(mutation, str(e)))
            return False
        self.dispatch(MutationConfirmed(mutation))
        return True

    async def update_status(self, job_id, new_status: str) -> dict | None:
        return await self.update(job_id, {"status": new_status})

    # Connectivity

    async def set_online(self, online: bool) -> None:
        was_online = self.state.is_online
        self.dispatch(ConnectivityChanged(online))
        if online and not was_online:
            logger.info("Back online; replaying %d pending change(s)", self.pending_changes)
            await self.process_pending_changes()

    async def _replay(self, change: Mutation) -> Any:
        body = _request_body(change.data)
        if change.kind is MutationKind.ADD:
            return await self.api.create_job(body)
        if change.kind is MutationKind.UPDATE:
            return await self.api.update_job(change.job_id, body)
        return await self.api.delete_job(change.job_id)

    async def process_pending_changes(self) -> None:
        """Replay queued mutations in arrival order, then refetch the list."""
        if not self.state.is_online or not self.state.pending_changes:
            return

        changes = self.state.pending_changes
        self.dispatch(QueueTaken())

        server_ids: dict[Any, Any] = {}
        for change in changes:
            if change.job_id in server_ids:
                new_id = server_ids[change.job_id]
                change = replace(change, job_id=new_id, data={**change.data, "id": new_id})
            try:
                result = await self._replay(change)
            except ApiRequestError as e:
                logger.warning("Replaying %s for job %s failed: %s", change.kind.value, change.job_id, e)
                self.dispatch(MutationQueued(replace(change, attempts=change.attempts + 1)))
                continue
            if change.kind is MutationKind.ADD and isinstance(result, dict) and "id" in result:
                server_ids[change.job_id] = result["id"]

        await self.fetch_jobs()
