import pytest
from sqlalchemy import func, select

from coshh.assessment.extraction import SDSDocument
from coshh.assessment.state import state_key
from coshh.assessment.steps import WorkflowStep
from coshh.models import AgentOutput, ChatMessage
from coshh.services import CoshhSessionService, DatabaseStateStore, StaleStateError, db_session

from conftest import ENVIRONMENT_ANSWERS, USAGE_ANSWERS, WORKER_ANSWERS, doc

TURNS_TO_FINAL_REVIEW = [
    "hello",
    doc("tdi.pdf"),
    "no",
    "yes",
    *USAGE_ANSWERS,
    *ENVIRONMENT_ANSWERS,
    *WORKER_ANSWERS,
    "confirm",
    "0.1 mg/m3",
]


class ReadEarlierStore:
    """
    Wraps a store but always returns one state read earlier, the way a
    second worker sees the session when it read before the first one wrote.
    """

    def __init__(self, store, snapshot):
        self.store = store
        self.snapshot = snapshot

    def get(self, key):
        return self.snapshot

    def __getattr__(self, name):
        return getattr(self.store, name)


def _turn(service, ids, turn):
    if isinstance(turn, SDSDocument):
        return service.handle_turn(ids["user_id"], ids["company_id"], ids["hired_agent_id"], document=turn)
    return service.handle_turn(ids["user_id"], ids["company_id"], ids["hired_agent_id"], message=turn)


def _count(model):
    with db_session() as session:
        return session.scalar(select(func.count()).select_from(model))


def test_assessment_is_saved_once_when_two_workers_confirm(agent, seeded):
    store = DatabaseStateStore(default_ttl=3600)
    first = CoshhSessionService(agent=agent, store=store)
    for turn in TURNS_TO_FINAL_REVIEW:
        result = _turn(first, seeded, turn)
    assert result.step == WorkflowStep.FINAL_REVIEW.value

    key = state_key(seeded["user_id"], seeded["hired_agent_id"])
    second = CoshhSessionService(agent=agent, store=ReadEarlierStore(store, store.get(key)))

    assert _turn(first, seeded, "confirm").complete is True
    with pytest.raises(StaleStateError):
        _turn(second, seeded, "confirm")

    assert _count(AgentOutput) == 1
    assert store.get(key) is None


def test_stale_turn_leaves_no_transcript(agent, seeded, store):
    first = CoshhSessionService(agent=agent, store=store)
    _turn(first, seeded, "hello")

    key = state_key(seeded["user_id"], seeded["hired_agent_id"])
    second = CoshhSessionService(agent=agent, store=ReadEarlierStore(store, store.get(key)))
    _turn(first, seeded, "hello")

    with pytest.raises(StaleStateError):
        _turn(second, seeded, "hello")

    assert _count(ChatMessage) == 4
    assert store.get(key).version == 2


def test_state_write_waits_for_the_transcript_commit(agent, seeded, store, monkeypatch):
    service = CoshhSessionService(agent=agent, store=store)
    _turn(service, seeded, "hello")
    key = state_key(seeded["user_id"], seeded["hired_agent_id"])

    def broken_add(self, instance, _warn=True):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr("sqlalchemy.orm.Session.add", broken_add)
    with pytest.raises(RuntimeError):
        _turn(service, seeded, doc("tdi.pdf"))
    monkeypatch.undo()

    stored = store.get(key)
    assert stored.version == 1
    assert stored.state.substance_records == []
