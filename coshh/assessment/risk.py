# coshh/assessment/risk.py
"""
Severity x likelihood scoring.

Two banding tables exist and both are kept: ``risk_rating`` is the general
rating stored on the finished assessment, ``task_risk_level`` is the level
reported by the task risk assessment.
"""
from __future__ import annotations

import logging
from typing import Iterable, List

from coshh.assessment.likelihood import (
    LikelihoodEstimate,
    LikelihoodEstimationError,
    LikelihoodEstimator,
    TaskDescription,
)
from coshh.assessment.schema import RiskAssessment, RouteRisk
from coshh.reference import severities_for_codes
from coshh.reference.schema import ProcessGeneratedHazard, Severities

logger = logging.getLogger(__name__)

ADDITIONAL_CONTROLS_THRESHOLD = 10
FALLBACK_RATIONALE = "Unable to assess - using conservative default"
NOT_APPLICABLE_RATIONALE = "Not applicable - no hazard via this route"


def risk_score(severity: int, likelihood: int) -> int:
    return severity * likelihood


def risk_rating(score: int) -> str:
    if score <= 5:
        return "Low"
    if score <= 12:
        return "Medium"
    if score <= 20:
        return "High"
    return "Very High"


def task_risk_level(max_risk_score: int) -> str:
    if max_risk_score >= 15:
        return "Very High"
    if max_risk_score >= 10:
        return "High"
    if max_risk_score >= 5:
        return "Medium"
    return "Low"


def combined_severities(
    h_codes: Iterable[str],
    process_hazards: Iterable[ProcessGeneratedHazard] = (),
) -> Severities:
    """
    Worst severity per route over every H-code in the task and every
    process hazard's own scores.
    """
    severities = severities_for_codes(h_codes)
    for hazard in process_hazards:
        severities.inhalation = max(severities.inhalation, hazard.inhalation_severity)
        severities.ingestion = max(severities.ingestion, hazard.ingestion_severity)
        severities.skin_eye = max(severities.skin_eye, hazard.skin_eye_severity)
    return severities


def fallback_estimate(severities: Severities) -> LikelihoodEstimate:
    return LikelihoodEstimate(
        inhalation_likelihood=3 if severities.inhalation > 0 else 0,
        inhalation_rationale=FALLBACK_RATIONALE,
        ingestion_likelihood=2 if severities.ingestion > 0 else 0,
        ingestion_rationale=FALLBACK_RATIONALE,
        skin_eye_likelihood=3 if severities.skin_eye > 0 else 0,
        skin_eye_rationale=FALLBACK_RATIONALE,
        additional_controls_needed=["Manual risk assessment required - automated assessment failed"],
    )


def _route(severity: int, likelihood: int, rationale: str) -> RouteRisk:
    if severity <= 0:
        # No hazard statement for this route: nothing to score
        return RouteRisk(severity=0, likelihood=0, risk_score=0, rationale=NOT_APPLICABLE_RATIONALE)
    likelihood = max(0, min(5, int(likelihood)))
    return RouteRisk(
        severity=severity,
        likelihood=likelihood,
        risk_score=risk_score(severity, likelihood),
        rationale=rationale or None,
    )


def combine(severities: Severities, estimate: LikelihoodEstimate, assessed_by_ai: bool = True) -> RiskAssessment:
    inhalation = _route(severities.inhalation, estimate.inhalation_likelihood, estimate.inhalation_rationale)
    ingestion = _route(severities.ingestion, estimate.ingestion_likelihood, estimate.ingestion_rationale)
    skin_eye = _route(severities.skin_eye, estimate.skin_eye_likelihood, estimate.skin_eye_rationale)

    max_score = max(inhalation.risk_score, ingestion.risk_score, skin_eye.risk_score)
    additional: List[str] = []
    if max_score >= ADDITIONAL_CONTROLS_THRESHOLD:
        additional = list(estimate.additional_controls_needed)

    return RiskAssessment(
        inhalation=inhalation,
        ingestion=ingestion,
        skin_eye=skin_eye,
        overall_risk_level=task_risk_level(max_score),
        max_risk_score=max_score,
        additional_controls_required=additional,
        assessed_by_ai=assessed_by_ai,
    )


def assess_task_risk(
    task: TaskDescription,
    estimator: LikelihoodEstimator,
    process_hazards: Iterable[ProcessGeneratedHazard] = (),
) -> RiskAssessment:
    """
    Severity from the reference tables, likelihood from the estimator.
    Estimator failures fall back to conservative defaults.
    """
    process_hazards = list(process_hazards)
    h_codes = [code for chem in task.chemicals for code in chem.h_codes]
    severities = combined_severities(h_codes, process_hazards)

    try:
        estimate = estimator.estimate(task, severities)
        assessed_by_ai = True
    except LikelihoodEstimationError:
        logger.warning("Likelihood estimation failed for %r, using defaults", task.task_name, exc_info=True)
        estimate = fallback_estimate(severities)
        assessed_by_ai = False

    return combine(severities, estimate, assessed_by_ai=assessed_by_ai)
