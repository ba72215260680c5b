from .agent import CoshhWorkflowAgent
from .assembly import build_assessment_record, build_workflow_preview
from .extraction import ExtractionError, LLMSDSExtractor, SDSDocument, SDSExtractor
from .likelihood import LikelihoodEstimationError, LikelihoodEstimator, LLMLikelihoodEstimator
from .state import WorkflowState, state_key
from .steps import HazardSource, WorkflowStep

__all__ = [
    "CoshhWorkflowAgent",
    "build_assessment_record",
    "build_workflow_preview",
    "ExtractionError",
    "LLMSDSExtractor",
    "SDSDocument",
    "SDSExtractor",
    "LikelihoodEstimationError",
    "LikelihoodEstimator",
    "LLMLikelihoodEstimator",
    "WorkflowState",
    "state_key",
    "HazardSource",
    "WorkflowStep",
]
