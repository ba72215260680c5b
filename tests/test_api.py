import pytest

from coshh.assessment.state import state_key
from coshh.assessment.steps import WorkflowStep

from conftest import AGENT_ID, ENVIRONMENT_ANSWERS, USAGE_ANSWERS, WORKER_ANSWERS

CHAT_URL = f"/api/agents/{AGENT_ID}/chat"

TDI_TURNS_TO_FINAL_REVIEW = [
    "hello",
    ("tdi.pdf",),
    "no",
    "yes",
    *USAGE_ANSWERS,
    *ENVIRONMENT_ANSWERS,
    *WORKER_ANSWERS,
    "confirm",
    "0.1 mg/m3",
]


def _headers(user_id):
    return {"X-User-Id": user_id}


def _send(client, user_id, turn):
    if isinstance(turn, tuple):
        files = {"file": (turn[0], b"%PDF-1.4 fake", "application/pdf")}
        return client.post(CHAT_URL, files=files, headers=_headers(user_id))
    return client.post(CHAT_URL, data={"message": turn}, headers=_headers(user_id))


def _drive(client, user_id, turns):
    response = None
    for turn in turns:
        response = _send(client, user_id, turn)
        assert response.status_code == 200, response.text
    return response


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200


def test_chat_requires_identity(client, seeded):
    response = client.post(CHAT_URL, data={"message": "hello"})
    assert response.status_code == 401


def test_unknown_user_is_rejected(client, seeded):
    response = client.post(CHAT_URL, data={"message": "hello"}, headers=_headers("nobody"))
    assert response.status_code == 404


def test_company_must_have_hired_the_agent(client, seeded):
    response = client.post(CHAT_URL, data={"message": "hello"}, headers=_headers(seeded["outsider_id"]))
    assert response.status_code == 403
    assert response.json()["detail"] == "Agent not hired"


def test_empty_turn_is_rejected(client, seeded):
    response = client.post(CHAT_URL, data={"message": "   "}, headers=_headers(seeded["user_id"]))
    assert response.status_code == 400
    assert response.json()["detail"] == "Message or file required"


def test_tdi_assessment_end_to_end(client, seeded, store):
    user_id = seeded["user_id"]
    response = _drive(client, user_id, TDI_TURNS_TO_FINAL_REVIEW)
    assert response.json()["step"] == WorkflowStep.FINAL_REVIEW.value

    response = _send(client, user_id, "confirm")
    body = response.json()

    assert response.status_code == 200
    assert body["complete"] is True
    assert body["step"] == WorkflowStep.COMPLETE.value
    assert body["assessment_id"]
    assert WorkflowStep.APF_CALCULATION.value in body["workflow_data"]["completed_steps"]
    # Finished workflows are evicted
    assert len(store) == 0

    listing = client.get(f"/api/agents/{AGENT_ID}/outputs", headers=_headers(user_id)).json()
    assert [o["id"] for o in listing["outputs"]] == [body["assessment_id"]]
    assert listing["outputs"][0]["title"] == "COSHH Assessment: Toluene Diisocyanate (TDI)"

    output = client.get(f"/api/outputs/{body['assessment_id']}", headers=_headers(user_id)).json()
    data = output["output_data"]
    assert output["company_id"] == seeded["company_id"]
    assert data["substance_records"][0]["chemical_name"] == "Toluene Diisocyanate (TDI)"
    assert data["health_surveillance_requirements"]
    assert data["apf_requirements"]["assigned_apf"] == 10
    assert data["risk_rating"] in {"Low", "Medium", "High", "Very High"}
    assert data["risk_assessment"]["inhalation"]["severity"] == 5


def test_outputs_are_scoped_to_company(client, seeded):
    user_id = seeded["user_id"]
    _drive(client, user_id, TDI_TURNS_TO_FINAL_REVIEW)
    assessment_id = _send(client, user_id, "confirm").json()["assessment_id"]

    response = client.get(f"/api/outputs/{assessment_id}", headers=_headers(seeded["outsider_id"]))
    assert response.status_code == 404


def test_state_survives_between_requests(client, seeded, store):
    user_id = seeded["user_id"]
    _drive(client, user_id, ["hello", ("tdi.pdf",)])

    stored = store.get(state_key(user_id, seeded["hired_agent_id"]))
    assert stored.version == 2
    assert stored.state.substance_records[0].chemical_name == "Toluene Diisocyanate (TDI)"


def test_reset_starts_over(client, seeded, store):
    user_id = seeded["user_id"]
    _drive(client, user_id, ["hello", ("tdi.pdf",), "no"])

    response = client.post(f"{CHAT_URL}/reset", headers=_headers(user_id))
    assert response.status_code == 200
    assert len(store) == 0

    body = _send(client, user_id, "hello").json()
    assert body["step"] == WorkflowStep.UPLOAD_SDS.value
    assert body["workflow_data"]["substances"] == []


def test_failed_save_keeps_state_for_retry(client, seeded, store, monkeypatch):
    user_id = seeded["user_id"]
    key = state_key(user_id, seeded["hired_agent_id"])
    _drive(client, user_id, TDI_TURNS_TO_FINAL_REVIEW)
    before = store.get(key)

    def broken(state):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr("coshh.services.assessment_session.build_assessment_record", broken)
    response = _send(client, user_id, "confirm")

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to process message"
    after = store.get(key)
    assert after.version == before.version
    assert after.state.current_step == WorkflowStep.FINAL_REVIEW

    monkeypatch.undo()
    response = _send(client, user_id, "confirm")

    assert response.status_code == 200
    assert response.json()["complete"] is True
    assert store.get(key) is None


@pytest.mark.parametrize("path", [f"/api/agents/{AGENT_ID}/outputs", f"{CHAT_URL}/reset"])
def test_other_endpoints_check_subscription(client, seeded, path):
    method = client.get if path.endswith("outputs") else client.post
    response = method(path, headers=_headers(seeded["outsider_id"]))
    assert response.status_code == 403
