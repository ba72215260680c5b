import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["WORKFLOW_STATE_BACKEND"] = "memory"

sys.path.append(str(Path(__file__).resolve().parents[1]))

from coshh.assessment.agent import CoshhWorkflowAgent
from coshh.assessment.extraction import ExtractionError, SDSDocument, SDSExtractor
from coshh.assessment.likelihood import (
    LikelihoodEstimate,
    LikelihoodEstimationError,
    LikelihoodEstimator,
    TaskDescription,
)
from coshh.assessment.schema import ExposureLimit, Hazard, PhysicalProperties, SubstanceRecord
from coshh.assessment.state import WorkflowState
from coshh.llm import LLMClient
from coshh.db import Base, engine
from coshh.models import Company, HiredAgent, User
from coshh.reference import suggested_control_measures
from coshh.reference.schema import Severities
from coshh.services import CoshhSessionService, InMemoryStateStore, db_session


AGENT_ID = "coshh-generator"


def tdi_record() -> SubstanceRecord:
    p_codes = ["P260", "P280", "P284", "P304+P340", "P342+P311", "P501"]
    return SubstanceRecord(
        chemical_name="Toluene Diisocyanate (TDI)",
        cas_number="584-84-9",
        supplier="Example Chemicals Ltd",
        hazards=[
            Hazard(type="respiratory sensitiser", hazard_class="Resp. Sens. 1", signal_word="Danger"),
            Hazard(type="skin irritant", hazard_class="Skin Irrit. 2", signal_word="Warning"),
        ],
        h_codes=["H330", "H334", "H315", "H317", "H319", "H335", "H351"],
        p_codes=p_codes,
        physical_properties=PhysicalProperties(appearance="Colourless to pale yellow liquid", odour="Pungent"),
        exposure_limits=[
            ExposureLimit(
                substance="Isocyanates, all (as -NCO)",
                wel_long_term="0.02 mg/m³",
                wel_short_term="0.07 mg/m³",
            )
        ],
        first_aid="Inhalation: remove to fresh air. Skin: wash with soap and water. Eyes: rinse with water.",
        suggested_controls=suggested_control_measures(p_codes),
    )


def citric_acid_record() -> SubstanceRecord:
    return SubstanceRecord(
        chemical_name="Citric Acid Solution",
        hazards=[
            Hazard(type="eye irritant", hazard_class="Eye Irrit. 2"),
            Hazard(type="skin irritant", hazard_class="Skin Irrit. 2"),
        ],
        h_codes=["H315", "H319"],
        p_codes=["P264", "P280", "P305+P351+P338"],
        physical_properties=PhysicalProperties(appearance="Clear liquid"),
        first_aid="Eyes: rinse cautiously with water. Skin: wash with water.",
    )


def acetone_record() -> SubstanceRecord:
    return SubstanceRecord(
        chemical_name="Acetone",
        cas_number="67-64-1",
        hazards=[Hazard(type="flammable liquid", hazard_class="Flam. Liq. 2", signal_word="Danger")],
        h_codes=["H225"],
        p_codes=["P210", "P280"],
        physical_properties=PhysicalProperties(appearance="Colourless liquid"),
    )


def named_record(name: str) -> SubstanceRecord:
    return SubstanceRecord(
        chemical_name=name,
        hazards=[Hazard(type="skin irritant", hazard_class="Skin Irrit. 2")],
        h_codes=["H315"],
        p_codes=["P280"],
    )


class FakeExtractor(SDSExtractor):
    """
    Returns a canned record per filename; unknown filenames fail.
    """

    def __init__(self, records: Optional[Dict[str, SubstanceRecord]] = None):
        self.records = records or {
            "tdi.pdf": tdi_record(),
            "citric.pdf": citric_acid_record(),
            "acetone.pdf": acetone_record(),
            "a.pdf": named_record("Substance Alpha"),
            "b.pdf": named_record("Substance Beta"),
            "c.pdf": named_record("Substance Gamma"),
        }
        self.calls: List[str] = []

    def extract(self, document: SDSDocument) -> SubstanceRecord:
        self.calls.append(document.filename)
        record = self.records.get(document.filename)
        if record is None:
            raise ExtractionError(f"Cannot read {document.filename}")
        return record.model_copy(deep=True)


class FakeEstimator(LikelihoodEstimator):
    def __init__(self, estimate: Optional[LikelihoodEstimate] = None, fail: bool = False):
        self.estimate_result = estimate or LikelihoodEstimate(
            inhalation_likelihood=3,
            inhalation_rationale="Spraying generates aerosol",
            ingestion_likelihood=1,
            ingestion_rationale="Good hygiene",
            skin_eye_likelihood=2,
            skin_eye_rationale="Gloves worn",
            additional_controls_needed=["Use air-fed RPE during spraying"],
        )
        self.fail = fail
        self.calls: List[TaskDescription] = []

    def estimate(self, task: TaskDescription, severities: Severities) -> LikelihoodEstimate:
        self.calls.append(task)
        if self.fail:
            raise LikelihoodEstimationError("model unavailable")
        return self.estimate_result


class ScriptedLLM(LLMClient):
    """
    Returns a canned reply (or raises) and records every call.
    """

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Dict] = []

    def chat(self, messages, temperature=0.2, model=None, json_mode=False):
        self.calls.append({"messages": messages, "temperature": temperature, "model": model, "json_mode": json_mode})
        if self.error is not None:
            raise self.error
        return self.reply


def doc(filename: str) -> SDSDocument:
    return SDSDocument(content=b"%PDF-1.4 fake", mime_type="application/pdf", filename=filename)


Turn = Union[str, SDSDocument]


def drive(agent: CoshhWorkflowAgent, state: WorkflowState, *turns: Turn):
    """
    Feed turns to the agent; returns (state, last reply, steps seen).
    """
    reply = ""
    seen = [state.current_step]
    for turn in turns:
        if isinstance(turn, SDSDocument):
            state, reply = agent.step(state, "", turn)
        else:
            state, reply = agent.step(state, turn)
        seen.append(state.current_step)
    return state, reply, seen


USAGE_ANSWERS = [
    "Spraying polyurethane coating",
    "spraying, mixing",
    "Spray",
    "2 litres",
    "Daily",
    "1-2 hours",
    "Spray booth",
]
ENVIRONMENT_ANSWERS = ["No", "Inside", "LEV spray booth extraction", "20°C", "none"]
WORKER_ANSWERS = ["Paint sprayers", "3", "COSHH awareness trained", "Yes", "Nitrile gloves, air-fed hood", "Yes"]


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def extractor():
    return FakeExtractor()


@pytest.fixture()
def estimator():
    return FakeEstimator()


@pytest.fixture()
def agent(extractor, estimator):
    return CoshhWorkflowAgent(extractor=extractor, estimator=estimator)


@pytest.fixture()
def store():
    return InMemoryStateStore(default_ttl=3600)


@pytest.fixture()
def service(agent, store):
    return CoshhSessionService(agent=agent, store=store)


@pytest.fixture()
def seeded():
    """
    One company that hired the agent, one user in it, and an outsider.
    """
    with db_session() as session:
        company = Company(name="Acme Coatings")
        other = Company(name="Other Ltd")
        session.add_all([company, other])
        session.flush()

        user = User(email="assessor@acme.test", company_id=company.id)
        outsider = User(email="someone@other.test", company_id=other.id)
        hired = HiredAgent(company_id=company.id, agent_id=AGENT_ID, status="active")
        session.add_all([user, outsider, hired])
        session.flush()

        return {
            "user_id": user.id,
            "company_id": company.id,
            "hired_agent_id": hired.id,
            "outsider_id": outsider.id,
        }


@pytest.fixture()
def client(service):
    from fastapi.testclient import TestClient

    from coshh.api.deps import get_session_service
    from coshh.main import app

    app.dependency_overrides[get_session_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
