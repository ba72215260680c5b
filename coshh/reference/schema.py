# coshh/reference/schema.py
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Severities(BaseModel):
    """
    Worst-case severity (0-5) per exposure route.
    """

    inhalation: int = 0
    ingestion: int = 0
    skin_eye: int = 0
    other: int = 0


class HazardStatement(BaseModel):
    code: str
    description: str
    hazard_class: str
    inhalation_severity: int = 0
    ingestion_severity: int = 0
    skin_eye_severity: int = 0
    other_severity: int = 0
    signal_word: Optional[str] = None


class StatementType(str, Enum):
    PREVENTION = "Prevention"
    RESPONSE = "Response"
    STORAGE = "Storage"
    DISPOSAL = "Disposal"


class PhraseTag(str, Enum):
    """
    COSHH document sections a precautionary statement feeds into.
    """

    OPERATIONAL_CONTROLS = "operational_controls"
    VENTILATION = "ventilation"
    IGNITION_SOURCES = "ignition_sources"
    HYGIENE = "hygiene"
    PPE = "ppe"
    FIRST_AID = "first_aid"
    FIRST_AID_INGESTION = "first_aid_ingestion"
    FIRST_AID_SKIN = "first_aid_skin"
    FIRST_AID_EYE = "first_aid_eye"
    FIRST_AID_INHALATION = "first_aid_inhalation"
    FIRE_RESPONSE = "fire_response"
    FIRE_FIGHTING = "fire_fighting"
    FIRE_EVACUATION = "fire_evacuation"
    SPILL_RESPONSE = "spill_response"
    ENVIRONMENTAL_RELEASE = "environmental_release"
    STORAGE = "storage"
    HANDLING = "handling"
    DISPOSAL = "disposal"
    TRAINING = "training"


class PrecautionaryStatement(BaseModel):
    code: str
    description: str
    statement_type: StatementType
    relates_to: List[PhraseTag] = Field(default_factory=list)


class ControlHierarchy(str, Enum):
    ELIMINATION = "elimination"
    SUBSTITUTION = "substitution"
    ENGINEERING = "engineering"
    ADMINISTRATIVE = "administrative"
    PPE = "ppe"


class ControlMeasure(BaseModel):
    id: str
    code: Optional[str] = Field(
        None,
        description="P-code when the control was derived from the SDS",
    )
    description: str
    hierarchy: ControlHierarchy
    category: str = "normal"  # "normal" or "emergency"
    implementation_notes: Optional[str] = None


class HealthSurveillanceRequirement(BaseModel):
    substance: str
    cas_numbers: List[str] = Field(default_factory=list)
    mandatory: bool = True
    frequency: str
    surveillance_type: List[str] = Field(default_factory=list)
    legal_reference: str
    additional_info: Optional[str] = None


class ProcessGeneratedHazard(BaseModel):
    """
    A hazard produced by the work itself rather than supplied with an SDS,
    e.g. welding fume or hardwood dust.
    """

    hazard_name: str
    hazard_category: str
    process_type: str
    physical_form: str  # Fume, Dust, Mist, Gas, Vapour, Aerosol
    particle_size: Optional[str] = None

    equivalent_h_codes: List[str] = Field(default_factory=list)
    hazard_description: str

    has_eh40_wel: bool = False
    wel_8hr_twa_mgm3: Optional[float] = None
    wel_15min_stel_mgm3: Optional[float] = None

    is_carcinogen: bool = False
    is_respiratory_sensitiser: bool = False
    is_asthmagen: bool = False
    is_skin_sensitiser: bool = False

    inhalation_severity: int = 0
    skin_eye_severity: int = 0
    ingestion_severity: int = 0

    health_effects: str = ""
    acute_effects: str = ""
    target_organs: List[str] = Field(default_factory=list)
    hse_guidance_link: Optional[str] = None
