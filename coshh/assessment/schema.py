# coshh/assessment/schema.py
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from coshh.reference.schema import (
    ControlMeasure,
    HealthSurveillanceRequirement,
    ProcessGeneratedHazard,
)


class Hazard(BaseModel):
    type: str = Field(..., description="Free-text hazard type, e.g. 'respiratory sensitiser'")
    hazard_class: str = ""
    pictogram: Optional[str] = None
    signal_word: Optional[str] = None


class PhysicalProperties(BaseModel):
    appearance: Optional[str] = None
    odour: Optional[str] = None
    ph: Optional[str] = None
    flash_point: Optional[str] = None


class ExposureLimit(BaseModel):
    substance: str
    wel_long_term: Optional[str] = Field(None, description="8-hr TWA, e.g. '500 ppm (1210 mg/m³)'")
    wel_short_term: Optional[str] = Field(None, description="15-min STEL")
    source: str = "EH40/2005"


class SubstanceRecord(BaseModel):
    """
    Structured data pulled out of one Safety Data Sheet.
    """

    chemical_name: str
    cas_number: Optional[str] = None
    supplier: Optional[str] = None
    product_code: Optional[str] = None
    hazards: List[Hazard] = Field(default_factory=list)
    h_codes: List[str] = Field(default_factory=list)
    p_codes: List[str] = Field(default_factory=list)
    physical_properties: Optional[PhysicalProperties] = None
    exposure_limits: List[ExposureLimit] = Field(default_factory=list)
    first_aid: Optional[str] = None
    storage_requirements: Optional[str] = None
    disposal_guidance: Optional[str] = None

    # COSHH section -> P-phrase descriptions, filled in after extraction
    suggested_controls: Dict[str, List[str]] = Field(default_factory=dict)

    model_config = {
        "extra": "ignore",
    }


class UsageData(BaseModel):
    purpose: Optional[str] = None
    activities: Optional[List[str]] = None
    method_of_use: Optional[str] = None
    quantity: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    location: Optional[str] = None

    # Pre-filled from the SDS on entry, never asked for
    substance_form: Optional[str] = None
    exposure_routes: List[str] = Field(default_factory=list)


class EnvironmentData(BaseModel):
    confined_space: Optional[bool] = None
    working_environment_description: Optional[str] = None
    ventilation: Optional[str] = None
    temperature: Optional[str] = None
    temperature_unit: Optional[str] = None
    other_hazards: Optional[List[str]] = None


class WorkerData(BaseModel):
    who_exposed: Optional[List[str]] = None
    number_of_workers: int = 0
    training_level: Optional[str] = None
    training_provided: Optional[bool] = None
    existing_ppe: Optional[List[str]] = None
    health_surveillance: Optional[bool] = None


class RouteRisk(BaseModel):
    severity: int = 0
    likelihood: int = 0
    risk_score: int = 0
    rationale: Optional[str] = None


class RiskAssessment(BaseModel):
    inhalation: RouteRisk = Field(default_factory=RouteRisk)
    ingestion: RouteRisk = Field(default_factory=RouteRisk)
    skin_eye: RouteRisk = Field(default_factory=RouteRisk)
    overall_risk_level: str = "Low"
    max_risk_score: int = 0
    additional_controls_required: List[str] = Field(default_factory=list)
    assessed_by_ai: bool = True


class ApfRequirements(BaseModel):
    required: bool
    estimated_exposure: Optional[float] = None
    exposure_unit: Optional[str] = None
    workplace_exposure_limit: Optional[float] = None
    calculated_apf: Optional[float] = None
    assigned_apf: Optional[int] = None
    recommended_rpe: Optional[str] = None
    fit_testing_required: bool = False
    basis: str = ""


class PendingSelection(BaseModel):
    """
    Process-hazard candidates waiting for the user to pick one by number.
    """

    candidates: List[ProcessGeneratedHazard]
    prompted_at: str


class AssessmentOutput(BaseModel):
    substance_records: List[SubstanceRecord] = Field(default_factory=list)
    process_hazards: List[ProcessGeneratedHazard] = Field(default_factory=list)
    hazard_source: Optional[str] = None
    usage_data: Optional[UsageData] = None
    environment_data: Optional[EnvironmentData] = None
    worker_data: Optional[WorkerData] = None
    control_measures: List[ControlMeasure] = Field(default_factory=list)
    risk_assessment: Optional[RiskAssessment] = None
    risk_rating: Optional[str] = None
    health_surveillance_requirements: List[HealthSurveillanceRequirement] = Field(default_factory=list)
    apf_requirements: Optional[ApfRequirements] = None


class AssessmentRecord(BaseModel):
    """
    The immutable record handed to storage when a workflow completes.
    """

    title: str
    output_data: AssessmentOutput

    model_config = {
        "frozen": True,
    }
