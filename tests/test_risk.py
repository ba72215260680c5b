import pytest

from coshh.assessment.likelihood import LikelihoodEstimate, TaskDescription, ChemicalSummary
from coshh.assessment.risk import (
    FALLBACK_RATIONALE,
    assess_task_risk,
    combine,
    combined_severities,
    risk_rating,
    risk_score,
    task_risk_level,
)
from coshh.reference import get_by_name
from coshh.reference.schema import Severities

from conftest import FakeEstimator


def test_score_is_severity_times_likelihood():
    assert risk_score(5, 3) == 15
    assert risk_score(0, 5) == 0


def test_score_of_15_under_each_threshold_table():
    assert risk_rating(15) == "High"
    assert task_risk_level(15) == "Very High"


@pytest.mark.parametrize(
    "score,expected",
    [(0, "Low"), (5, "Low"), (6, "Medium"), (12, "Medium"), (13, "High"), (20, "High"), (21, "Very High")],
)
def test_general_risk_rating_bands(score, expected):
    assert risk_rating(score) == expected


@pytest.mark.parametrize(
    "score,expected",
    [(4, "Low"), (5, "Medium"), (9, "Medium"), (10, "High"), (14, "High"), (15, "Very High"), (25, "Very High")],
)
def test_task_risk_level_bands(score, expected):
    assert task_risk_level(score) == expected


def test_zero_severity_forces_zero_likelihood():
    severities = Severities(inhalation=0, ingestion=0, skin_eye=2)
    estimate = LikelihoodEstimate(inhalation_likelihood=5, ingestion_likelihood=4, skin_eye_likelihood=3)

    risk = combine(severities, estimate)

    assert risk.inhalation.likelihood == 0
    assert risk.inhalation.risk_score == 0
    assert risk.ingestion.likelihood == 0
    assert risk.skin_eye.risk_score == 6
    assert risk.max_risk_score == 6
    assert risk.overall_risk_level == "Medium"


def test_additional_controls_only_at_high_scores():
    severities = Severities(skin_eye=2)

    below = combine(severities, LikelihoodEstimate(skin_eye_likelihood=4, additional_controls_needed=["Gloves"]))
    assert below.additional_controls_required == []

    at = combine(severities, LikelihoodEstimate(skin_eye_likelihood=5, additional_controls_needed=["Gloves"]))
    assert at.additional_controls_required == ["Gloves"]


def test_likelihood_is_clamped():
    risk = combine(Severities(inhalation=5), LikelihoodEstimate(inhalation_likelihood=9))
    assert risk.inhalation.likelihood == 5
    assert risk.inhalation.risk_score == 25


def test_process_hazards_add_their_own_severities():
    severities = combined_severities(["H319"], [get_by_name("Hardwood dust")])

    assert severities.inhalation == 5
    assert severities.skin_eye == 2


def _task():
    return TaskDescription(
        task_name="Degreasing",
        chemicals=[ChemicalSummary(name="Solvent X", h_codes=["H336", "H315"])],
    )


def test_assess_task_risk_uses_estimator():
    estimator = FakeEstimator(LikelihoodEstimate(inhalation_likelihood=4, skin_eye_likelihood=1))
    risk = assess_task_risk(_task(), estimator)

    assert estimator.calls
    assert risk.inhalation.risk_score == 8
    assert risk.skin_eye.risk_score == 2
    assert risk.assessed_by_ai is True


def test_estimator_failure_uses_conservative_defaults():
    risk = assess_task_risk(_task(), FakeEstimator(fail=True))

    assert risk.assessed_by_ai is False
    assert risk.inhalation.likelihood == 3
    assert risk.inhalation.rationale == FALLBACK_RATIONALE
    assert risk.ingestion.likelihood == 0
    assert risk.skin_eye.likelihood == 3
    # 2 x 3 = 6 on both routes, below the additional-controls threshold
    assert risk.additional_controls_required == []
