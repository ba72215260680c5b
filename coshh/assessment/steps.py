# coshh/assessment/steps.py
from enum import Enum


class WorkflowStep(str, Enum):
    UPLOAD_SDS = "upload_sds"
    CONFIRM_HAZARD = "confirm_hazard"
    USAGE_DETAILS = "usage_details"
    ENVIRONMENT_ASSESSMENT = "environment_assessment"
    WORKER_EXPOSURE = "worker_exposure"
    CONTROL_VERIFICATION = "control_verification"
    APF_CALCULATION = "apf_calculation"
    FINAL_REVIEW = "final_review"
    COMPLETE = "complete"


STEP_ORDER = list(WorkflowStep)


class HazardSource(str, Enum):
    SDS = "sds"
    PROCESS = "process"
    BOTH = "both"


def step_index(step: WorkflowStep) -> int:
    return STEP_ORDER.index(step)
