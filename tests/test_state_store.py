import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import select

from coshh.assessment.state import WorkflowState, state_key
from coshh.assessment.steps import WorkflowStep
from coshh.models import WorkflowSession
from coshh.services import DatabaseStateStore, InMemoryStateStore, KeyedLock, StaleStateError, db_session


@pytest.fixture(params=["memory", "database"])
def any_store(request):
    if request.param == "memory":
        return InMemoryStateStore(default_ttl=3600)
    return DatabaseStateStore(default_ttl=3600)


def test_versions_increase_on_each_write(any_store):
    assert any_store.get("u:a") is None

    assert any_store.put("u:a", WorkflowState(), expected_version=0) == 1
    assert any_store.put("u:a", WorkflowState(current_step=WorkflowStep.CONFIRM_HAZARD), expected_version=1) == 2

    stored = any_store.get("u:a")
    assert stored.version == 2
    assert stored.state.current_step == WorkflowStep.CONFIRM_HAZARD


def test_stale_write_is_rejected(any_store):
    any_store.put("u:a", WorkflowState())
    any_store.put("u:a", WorkflowState())

    with pytest.raises(StaleStateError):
        any_store.put("u:a", WorkflowState(current_step=WorkflowStep.USAGE_DETAILS), expected_version=1)

    assert any_store.get("u:a").state.current_step == WorkflowStep.UPLOAD_SDS


def test_expired_state_reads_as_missing(any_store):
    any_store.put("u:a", WorkflowState(), ttl=-1)

    assert any_store.get("u:a") is None


def test_delete_then_start_again(any_store):
    any_store.put("u:a", WorkflowState())
    any_store.delete("u:a")

    assert any_store.get("u:a") is None
    assert any_store.put("u:a", WorkflowState(), expected_version=0) == 1


def test_reads_never_share_one_object():
    store = InMemoryStateStore(default_ttl=3600)
    store.put("u:a", WorkflowState())

    first = store.get("u:a").state
    first.completed_steps.append(WorkflowStep.UPLOAD_SDS)

    assert store.get("u:a").state.completed_steps == []


def test_keys_are_per_user_and_agent():
    assert state_key("user-1", "hired-1") != state_key("user-1", "hired-2")
    assert state_key("user-1", "hired-1") != state_key("user-2", "hired-1")


def test_keyed_lock_serialises_same_key_and_cleans_up():
    locks = KeyedLock()
    inside = []
    overlap = threading.Event()
    counter = {"active": 0}
    guard = threading.Lock()

    def work(i):
        with locks.hold("same"):
            with guard:
                counter["active"] += 1
                if counter["active"] > 1:
                    overlap.set()
            inside.append(i)
            with guard:
                counter["active"] -= 1

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(20)))

    assert not overlap.is_set()
    assert sorted(inside) == list(range(20))
    assert len(locks) == 0


def test_concurrent_turns_for_one_user_do_not_conflict(service, seeded):
    def turn(_):
        return service.handle_turn(
            seeded["user_id"], seeded["company_id"], seeded["hired_agent_id"], message="hello"
        )

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(turn, range(4)))

    assert all(result.step == WorkflowStep.UPLOAD_SDS.value for result in results)
    key = state_key(seeded["user_id"], seeded["hired_agent_id"])
    assert service.store.get(key).version == 4


def test_abandoned_expired_state_is_swept_on_write():
    store = InMemoryStateStore(default_ttl=3600)
    store.put("abandoned", WorkflowState(), ttl=-1)
    store.put("active", WorkflowState())

    assert len(store) == 1
    assert store.purge_expired() == 0


def _session_rows():
    with db_session() as session:
        return sorted(session.scalars(select(WorkflowSession.key)))


def test_expired_database_rows_are_purged():
    store = DatabaseStateStore(default_ttl=3600)
    store.put("abandoned", WorkflowState(), ttl=-1)
    store.put("active", WorkflowState())

    # Creating a new session sweeps rows nobody will read again
    assert _session_rows() == ["active"]

    store.put("active", WorkflowState(), ttl=-1)
    assert store.purge_expired() == 1
    assert _session_rows() == []


def test_versioned_delete(any_store):
    any_store.put("u:a", WorkflowState())
    any_store.put("u:a", WorkflowState())

    with pytest.raises(StaleStateError):
        any_store.delete("u:a", expected_version=1)
    assert any_store.get("u:a").version == 2

    any_store.delete("u:a", expected_version=2)
    assert any_store.get("u:a") is None
