"""
Client-side job list state and its reducer.

``reduce`` is pure: it takes a state and an action and returns a new state.
Network calls live in ``jobtracker.client.sync``; this module only decides
what the local list looks like before, after and instead of a server reply.

Every mutation is in one of three states: pending (applied locally, not yet
confirmed: either in flight or queued while offline), confirmed, or failed
(rolled back from its snapshot).
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class MutationKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


class MutationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class Mutation:
    mutation_id: int
    kind: MutationKind
    job_id: Any
    data: dict = field(default_factory=dict)
    # Record as it was before the change; None for adds
    snapshot: dict | None = None
    status: MutationStatus = MutationStatus.PENDING
    attempts: int = 0


@dataclass(frozen=True)
class JobsState:
    jobs: tuple[dict, ...] = ()
    is_loading: bool = True
    error: str | None = None
    is_online: bool = True
    in_flight: tuple[Mutation, ...] = ()
    pending_changes: tuple[Mutation, ...] = ()
    last_settled: Mutation | None = None


# Actions


@dataclass(frozen=True)
class FetchStarted:
    pass


@dataclass(frozen=True)
class FetchSkipped:
    """Fetch not attempted (offline)."""


@dataclass(frozen=True)
class FetchSucceeded:
    jobs: tuple[dict, ...]


@dataclass(frozen=True)
class FetchFailed:
    message: str


@dataclass(frozen=True)
class ConnectivityChanged:
    online: bool


@dataclass(frozen=True)
class MutationApplied:
    mutation: Mutation


@dataclass(frozen=True)
class MutationConfirmed:
    mutation: Mutation
    record: dict | None = None


@dataclass(frozen=True)
class MutationFailed:
    mutation: Mutation
    message: str


@dataclass(frozen=True)
class MutationQueued:
    mutation: Mutation


@dataclass(frozen=True)
class QueueTaken:
    """The pending queue was handed to the replay loop."""


@dataclass(frozen=True)
class ErrorRaised:
    message: str


def _replace_job(jobs: tuple[dict, ...], job_id, record: dict) -> tuple[dict, ...]:
    return tuple(record if job.get("id") == job_id else job for job in jobs)


def _remove_job(jobs: tuple[dict, ...], job_id) -> tuple[dict, ...]:
    return tuple(job for job in jobs if job.get("id") != job_id)


def _without(mutations: tuple[Mutation, ...], mutation: Mutation) -> tuple[Mutation, ...]:
    return tuple(m for m in mutations if m.mutation_id != mutation.mutation_id)


def apply_optimistic(jobs: tuple[dict, ...], mutation: Mutation) -> tuple[dict, ...]:
    if mutation.kind is MutationKind.ADD:
        return jobs + (mutation.data,)
    if mutation.kind is MutationKind.UPDATE:
        return _replace_job(jobs, mutation.job_id, mutation.data)
    return _remove_job(jobs, mutation.job_id)


def roll_back(jobs: tuple[dict, ...], mutation: Mutation) -> tuple[dict, ...]:
    if mutation.kind is MutationKind.ADD:
        return _remove_job(jobs, mutation.job_id)
    if mutation.kind is MutationKind.UPDATE:
        return _replace_job(jobs, mutation.job_id, mutation.snapshot)
    if any(job.get("id") == mutation.job_id for job in jobs):
        return jobs
    return jobs + (mutation.snapshot,)


def reduce(state: JobsState, action) -> JobsState:
    if isinstance(action, FetchStarted):
        return replace(state, is_loading=True, error=None)
    if isinstance(action, FetchSkipped):
        return replace(state, is_loading=False)
    if isinstance(action, FetchSucceeded):
        return replace(state, jobs=tuple(action.jobs), is_loading=False)
    if isinstance(action, FetchFailed):
        return replace(state, is_loading=False, error=action.message)
    if isinstance(action, ConnectivityChanged):
        return replace(state, is_online=action.online)
    if isinstance(action, ErrorRaised):
        return replace(state, error=action.message)

    if isinstance(action, MutationApplied):
        return replace(
            state,
            jobs=apply_optimistic(state.jobs, action.mutation),
            in_flight=state.in_flight + (action.mutation,),
        )
    if isinstance(action, MutationConfirmed):
        mutation = action.mutation
        jobs = state.jobs
        if action.record is not None and mutation.kind is not MutationKind.DELETE:
            jobs = _replace_job(jobs, mutation.job_id, action.record)
        return replace(
            state,
            jobs=jobs,
            in_flight=_without(state.in_flight, mutation),
            last_settled=replace(mutation, status=MutationStatus.CONFIRMED),
        )
    if isinstance(action, MutationFailed):
        mutation = action.mutation
        return replace(
            state,
            jobs=roll_back(state.jobs, mutation),
            error=action.message,
            in_flight=_without(state.in_flight, mutation),
            last_settled=replace(mutation, status=MutationStatus.FAILED),
        )
    if isinstance(action, MutationQueued):
        mutation = action.mutation
        return replace(
            state,
            in_flight=_without(state.in_flight, mutation),
            pending_changes=state.pending_changes + (replace(mutation, status=MutationStatus.PENDING),),
        )
    if isinstance(action, QueueTaken):
        return replace(state, pending_changes=())

    raise TypeError(f"Unknown action: {action!r}")
