import pytest

from jobtracker.client.state import (
    ConnectivityChanged,
    FetchFailed,
    FetchStarted,
    FetchSucceeded,
    JobsState,
    Mutation,
    MutationApplied,
    MutationConfirmed,
    MutationFailed,
    MutationKind,
    MutationQueued,
    MutationStatus,
    QueueTaken,
    reduce,
)

JOB = {"id": 1, "jobTitle": "Dev", "company": "Acme", "status": "applied"}


def _loaded(*jobs) -> JobsState:
    return reduce(JobsState(), FetchSucceeded(tuple(jobs)))


def test_fetch_lifecycle():
    state = reduce(JobsState(error="old"), FetchStarted())
    assert state.is_loading and state.error is None

    state = reduce(state, FetchSucceeded((JOB,)))
    assert state.jobs == (JOB,) and not state.is_loading

    state = reduce(state, FetchFailed("Network error"))
    assert state.error == "Network error"
    assert state.jobs == (JOB,)


def test_update_is_applied_then_rolled_back_on_failure():
    mutation = Mutation(1, MutationKind.UPDATE, 1, {**JOB, "status": "offer"}, snapshot=JOB)
    state = reduce(_loaded(JOB), MutationApplied(mutation))
    assert state.jobs[0]["status"] == "offer"
    assert state.in_flight == (mutation,)

    state = reduce(state, MutationFailed(mutation, "Job not found"))
    assert state.jobs == (JOB,)
    assert state.error == "Job not found"
    assert state.in_flight == ()
    assert state.last_settled.status is MutationStatus.FAILED


def test_add_confirmed_swaps_in_server_record():
    temp = {"id": "tmp-1", "jobTitle": "QA", "company": "Beta"}
    mutation = Mutation(1, MutationKind.ADD, "tmp-1", temp)
    state = reduce(_loaded(JOB), MutationApplied(mutation))
    assert state.jobs[-1] == temp

    server = {**temp, "id": 2}
    state = reduce(state, MutationConfirmed(mutation, server))
    assert state.jobs == (JOB, server)
    assert state.last_settled.status is MutationStatus.CONFIRMED


def test_failed_add_is_removed():
    temp = {"id": "tmp-1", "jobTitle": "QA", "company": "Beta"}
    mutation = Mutation(1, MutationKind.ADD, "tmp-1", temp)
    state = reduce(reduce(_loaded(JOB), MutationApplied(mutation)), MutationFailed(mutation, "nope"))
    assert state.jobs == (JOB,)


def test_failed_delete_restores_snapshot_once():
    mutation = Mutation(1, MutationKind.DELETE, 1, {"id": 1}, snapshot=JOB)
    state = reduce(_loaded(JOB), MutationApplied(mutation))
    assert state.jobs == ()

    state = reduce(state, MutationFailed(mutation, "Server error"))
    assert state.jobs == (JOB,)

    # Restoring again must not duplicate the record
    state = reduce(state, MutationFailed(mutation, "Server error"))
    assert state.jobs == (JOB,)


def test_queue_and_take():
    mutation = Mutation(1, MutationKind.DELETE, 1, {"id": 1}, snapshot=JOB)
    state = reduce(_loaded(JOB), ConnectivityChanged(False))
    state = reduce(reduce(state, MutationApplied(mutation)), MutationQueued(mutation))
    assert not state.is_online
    assert state.in_flight == ()
    assert [m.mutation_id for m in state.pending_changes] == [1]

    state = reduce(state, QueueTaken())
    assert state.pending_changes == ()


def test_unknown_action_is_rejected():
    with pytest.raises(TypeError):
        reduce(JobsState(), object())
