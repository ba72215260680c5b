import json

import pytest

from coshh.assessment.likelihood import (
    ChemicalSummary,
    LikelihoodEstimate,
    LikelihoodEstimationError,
    LLMLikelihoodEstimator,
    TaskDescription,
    build_likelihood_prompt,
)
from coshh.reference.schema import Severities

from conftest import ScriptedLLM


def _task():
    return TaskDescription(
        task_type="Spraying",
        task_name="Spraying",
        description="Spray application of two-pack lacquer",
        duration="2 hours",
        frequency="Daily",
        environment="Spray booth",
        existing_controls=["Spray booth extraction"],
        chemicals=[ChemicalSummary(name="TDI", h_codes=["H330", "H334"])],
    )


def test_camel_case_skin_eye_keys_are_accepted():
    estimate = LikelihoodEstimate.model_validate(
        {"inhalation_likelihood": 4, "skinEye_likelihood": 2, "skinEye_rationale": "Gloves worn"}
    )

    assert estimate.skin_eye_likelihood == 2
    assert estimate.skin_eye_rationale == "Gloves worn"


def test_prompt_marks_routes_without_hazard():
    prompt = build_likelihood_prompt(_task(), Severities(inhalation=5))

    assert "Spray application of two-pack lacquer" in prompt
    assert "Not applicable" in prompt


def test_estimator_parses_model_reply():
    reply = {
        "inhalation_likelihood": 4,
        "inhalation_rationale": "Spraying creates aerosol",
        "ingestion_likelihood": 0,
        "skinEye_likelihood": 2,
        "additional_controls_needed": ["Air-fed RPE"],
    }
    llm = ScriptedLLM(reply=json.dumps(reply))

    estimate = LLMLikelihoodEstimator(llm).estimate(_task(), Severities(inhalation=5, skin_eye=3))

    assert estimate.inhalation_likelihood == 4
    assert estimate.skin_eye_likelihood == 2
    assert estimate.additional_controls_needed == ["Air-fed RPE"]
    assert llm.calls[0]["temperature"] == 0.3


@pytest.mark.parametrize(
    "llm",
    [
        ScriptedLLM(reply="no json here"),
        ScriptedLLM(reply=json.dumps({"inhalation_likelihood": "very likely"})),
        ScriptedLLM(error=ConnectionError("down")),
    ],
)
def test_failures_become_estimation_errors(llm):
    with pytest.raises(LikelihoodEstimationError):
        LLMLikelihoodEstimator(llm).estimate(_task(), Severities(inhalation=5))
