# coshh/assessment/assembly.py
from __future__ import annotations

from typing import Any, Dict

from coshh.assessment.risk import risk_rating
from coshh.assessment.schema import AssessmentOutput, AssessmentRecord
from coshh.assessment.state import WorkflowState


def assessment_title(state: WorkflowState) -> str:
    if state.primary_substance is not None:
        return f"COSHH Assessment: {state.primary_substance.chemical_name}"
    if state.process_hazards:
        return f"COSHH Assessment: {state.process_hazards[0].hazard_name}"
    return "COSHH Assessment"


def build_assessment_record(state: WorkflowState) -> AssessmentRecord:
    """
    Merge everything gathered into the record that gets stored once the
    workflow reaches ``complete``.
    """
    if not state.is_complete:
        raise ValueError(f"Cannot assemble an assessment at step {state.current_step.value}")

    rating = None
    if state.risk_assessment is not None:
        rating = risk_rating(state.risk_assessment.max_risk_score)

    output = AssessmentOutput(
        substance_records=state.substance_records,
        process_hazards=state.process_hazards,
        hazard_source=state.hazard_source.value if state.hazard_source else None,
        usage_data=state.usage_data,
        environment_data=state.environment_data,
        worker_data=state.worker_data,
        control_measures=state.control_measures or [],
        risk_assessment=state.risk_assessment,
        risk_rating=rating,
        health_surveillance_requirements=state.health_surveillance_requirements,
        apf_requirements=state.apf_requirements,
    )
    return AssessmentRecord(title=assessment_title(state), output_data=output)


def build_workflow_preview(state: WorkflowState) -> Dict[str, Any]:
    """
    What the form preview shows while the conversation is in progress.
    """
    substances = []
    for record in state.substance_records:
        substances.append(
            {
                "chemical_name": record.chemical_name,
                "cas_number": record.cas_number,
                "supplier": record.supplier,
                "hazards": [hazard.model_dump() for hazard in record.hazards],
                "h_codes": record.h_codes,
                "p_codes": record.p_codes,
                "exposure_limits": [limit.model_dump() for limit in record.exposure_limits],
            }
        )

    return {
        "current_step": state.current_step.value,
        "completed_steps": [step.value for step in state.completed_steps],
        "hazard_source": state.hazard_source.value if state.hazard_source else None,
        "substances": substances,
        "process_hazards": [hazard.hazard_name for hazard in state.process_hazards],
        "usage_data": state.usage_data.model_dump() if state.usage_data else None,
        "environment_data": state.environment_data.model_dump() if state.environment_data else None,
        "worker_data": state.worker_data.model_dump() if state.worker_data else None,
        "control_measures": [control.model_dump(mode="json") for control in state.control_measures or []],
        "apf_requirements": state.apf_requirements.model_dump() if state.apf_requirements else None,
    }
