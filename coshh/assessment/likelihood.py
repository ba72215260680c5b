# coshh/assessment/likelihood.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from coshh.llm import LLMClient, clean_json_from_llm
from coshh.reference.schema import Severities


class LikelihoodEstimationError(Exception):
    pass


class ChemicalSummary(BaseModel):
    name: str
    cas_number: Optional[str] = None
    physical_state: Optional[str] = None
    quantity_used: Optional[str] = None
    h_codes: List[str] = Field(default_factory=list)


class TaskDescription(BaseModel):
    """
    What the estimator is told about the work being assessed.
    """

    task_type: str = "chemical use"
    task_name: str
    description: Optional[str] = None
    duration: Optional[str] = None
    frequency: Optional[str] = None
    environment: Optional[str] = None
    existing_controls: List[str] = Field(default_factory=list)
    chemicals: List[ChemicalSummary] = Field(default_factory=list)


class LikelihoodEstimate(BaseModel):
    inhalation_likelihood: int = 0
    inhalation_rationale: str = ""
    ingestion_likelihood: int = 0
    ingestion_rationale: str = ""
    skin_eye_likelihood: int = Field(0, validation_alias="skinEye_likelihood")
    skin_eye_rationale: str = Field("", validation_alias="skinEye_rationale")
    additional_controls_needed: List[str] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
    }


class LikelihoodEstimator(ABC):
    @abstractmethod
    def estimate(self, task: TaskDescription, severities: Severities) -> LikelihoodEstimate:
        """
        Rate exposure likelihood 0-5 per route. Raises LikelihoodEstimationError.
        """
        ...


def _severity_line(label: str, value: int) -> str:
    suffix = " (Not applicable)" if value == 0 else ""
    return f"- {label} severity: {value}/5{suffix}"


def build_likelihood_prompt(task: TaskDescription, severities: Severities) -> str:
    chemical_lines = []
    for chem in task.chemicals:
        cas = f" (CAS: {chem.cas_number})" if chem.cas_number else ""
        chemical_lines.append(
            f"{chem.name}{cas}:\n"
            f"- Physical state: {chem.physical_state or 'Unknown'}\n"
            f"- Quantity used: {chem.quantity_used or 'Unknown'}\n"
            f"- H-phrases: {', '.join(chem.h_codes) or 'None'}"
        )

    return (
        "You are assessing occupational exposure risk for a specific task in a COSHH risk assessment.\n\n"
        "TASK DETAILS:\n"
        f"- Task type: {task.task_type}\n"
        f"- Task name: {task.task_name}\n"
        f"- Description: {task.description or 'Not provided'}\n"
        f"- Duration: {task.duration or 'Unknown'}\n"
        f"- Frequency: {task.frequency or 'Unknown'}\n"
        f"- Environment: {task.environment or 'Unknown'}\n"
        f"- Existing controls: {', '.join(task.existing_controls) or 'None specified'}\n\n"
        "CHEMICALS INVOLVED:\n"
        f"{chr(10).join(chemical_lines) or 'None listed'}\n\n"
        "SEVERITY SCORES (already calculated from H-phrases):\n"
        f"{_severity_line('Inhalation', severities.inhalation)}\n"
        f"{_severity_line('Ingestion', severities.ingestion)}\n"
        f"{_severity_line('Skin/eye', severities.skin_eye)}\n\n"
        "Rate the LIKELIHOOD (0-5) of exposure via each route.\n\n"
        "LIKELIHOOD SCALE:\n"
        "0 = Not applicable (no hazard via this route)\n"
        "1 = Highly unlikely (rare, well-controlled, minimal contact)\n"
        "2 = Unlikely (occasional, good controls in place)\n"
        "3 = Possible (regular exposure, moderate controls)\n"
        "4 = Likely (frequent exposure, limited controls)\n"
        "5 = Highly likely (continuous exposure, poor/no controls)\n\n"
        "Return ONLY valid JSON:\n"
        "{\n"
        '  "inhalation_likelihood": <0-5>,\n'
        '  "inhalation_rationale": "<Brief 1-2 sentence explanation>",\n'
        '  "ingestion_likelihood": <0-5>,\n'
        '  "ingestion_rationale": "<Brief 1-2 sentence explanation>",\n'
        '  "skinEye_likelihood": <0-5>,\n'
        '  "skinEye_rationale": "<Brief 1-2 sentence explanation>",\n'
        '  "additional_controls_needed": ["<Control 1>", "<Control 2>"]\n'
        "}\n\n"
        'If a route has severity 0, set likelihood to 0 and rationale to "Not applicable - no hazard via this route".\n'
        "Only include additional_controls_needed if ANY risk score (severity x likelihood) is 10 or more; "
        "otherwise return an empty array."
    )


class LLMLikelihoodEstimator(LikelihoodEstimator):
    def __init__(self, llm_client: LLMClient, model: Optional[str] = None):
        self.llm_client = llm_client
        self.model = model

    def estimate(self, task: TaskDescription, severities: Severities) -> LikelihoodEstimate:
        messages = [
            {
                "role": "system",
                "content": "You are a senior UK Occupational Hygienist. Output strictly formatted JSON.",
            },
            {"role": "user", "content": build_likelihood_prompt(task, severities)},
        ]
        try:
            raw = self.llm_client.chat(messages, temperature=0.3, model=self.model, json_mode=True)
            return LikelihoodEstimate.model_validate(clean_json_from_llm(raw))
        except (ValueError, ValidationError) as e:
            raise LikelihoodEstimationError(f"Unusable likelihood response: {e}") from e
        except Exception as e:
            raise LikelihoodEstimationError(f"Likelihood estimation call failed: {e}") from e
