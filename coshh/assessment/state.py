# coshh/assessment/state.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from coshh.assessment.schema import (
    ApfRequirements,
    EnvironmentData,
    PendingSelection,
    RiskAssessment,
    SubstanceRecord,
    UsageData,
    WorkerData,
)
from coshh.assessment.steps import HazardSource, WorkflowStep
from coshh.reference.schema import (
    ControlMeasure,
    HealthSurveillanceRequirement,
    ProcessGeneratedHazard,
)


def state_key(user_id: str, hired_agent_id: str) -> str:
    return f"{user_id}-{hired_agent_id}"


class WorkflowState(BaseModel):
    """
    Everything gathered so far for one user x hired-agent assessment.

    It is a plain pydantic model so the state store can serialise it to
    JSON; every field the workflow touches is declared here.
    """

    current_step: WorkflowStep = WorkflowStep.UPLOAD_SDS
    # Append-only audit trail
    completed_steps: List[WorkflowStep] = Field(default_factory=list)

    hazard_source: Optional[HazardSource] = None
    substance_records: List[SubstanceRecord] = Field(default_factory=list)
    process_hazards: List[ProcessGeneratedHazard] = Field(default_factory=list)

    awaiting_additional_substance: bool = False
    awaiting_additional_process_hazard: bool = False
    sds_collection_closed: bool = False
    process_collection_closed: bool = False
    pending_selection: Optional[PendingSelection] = None
    hazards_confirmed: bool = False

    usage_data: Optional[UsageData] = None
    environment_data: Optional[EnvironmentData] = None
    worker_data: Optional[WorkerData] = None

    control_measures: Optional[List[ControlMeasure]] = None
    health_surveillance_requirements: List[HealthSurveillanceRequirement] = Field(default_factory=list)
    risk_assessment: Optional[RiskAssessment] = None
    apf_requirements: Optional[ApfRequirements] = None

    validated: bool = False
    final_confirmed: bool = False

    @property
    def primary_substance(self) -> Optional[SubstanceRecord]:
        return self.substance_records[0] if self.substance_records else None

    @property
    def is_complete(self) -> bool:
        return self.current_step == WorkflowStep.COMPLETE

    def collects_sds(self) -> bool:
        return self.hazard_source in (HazardSource.SDS, HazardSource.BOTH)

    def collects_process(self) -> bool:
        return self.hazard_source in (HazardSource.PROCESS, HazardSource.BOTH)
