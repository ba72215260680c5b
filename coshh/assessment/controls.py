# coshh/assessment/controls.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from coshh.assessment.schema import Hazard
from coshh.reference.h_phrases import normalise_code
from coshh.reference.process_hazards import controls_for_hazard
from coshh.reference.schema import ControlHierarchy, ControlMeasure, ProcessGeneratedHazard

_ENG = ControlHierarchy.ENGINEERING
_ADM = ControlHierarchy.ADMINISTRATIVE
_PPE = ControlHierarchy.PPE

# (code, hierarchy, category, description, implementation notes)
_P_CONTROL_ROWS = [
    # Storage
    ("P405", _ADM, "normal", "Store locked up in designated chemical storage area",
     "Ensure storage area is clearly signed and access is restricted to authorised personnel only"),
    ("P403+P233", _ENG, "normal", "Store in well-ventilated area. Keep container tightly closed when not in use",
     "Storage area should have adequate ventilation to prevent vapour accumulation"),
    ("P403+P235", _ENG, "normal", "Store in well-ventilated place. Keep cool",
     "Store away from heat sources and direct sunlight"),
    ("P410+P403", _ENG, "normal", "Protect from sunlight. Store in well-ventilated place", None),
    # Handling
    ("P201", _ADM, "normal", "Obtain and read Safety Data Sheet before use. Ensure risk assessment is completed",
     "COSHH assessment must be completed and communicated to all workers"),
    ("P202", _ADM, "normal", "Do not handle until all safety precautions have been read and understood",
     "Provide toolbox talk or training before first use"),
    ("P210", _ADM, "normal",
     "Keep away from heat, hot surfaces, sparks, open flames and other ignition sources. No smoking",
     "Implement hot work permit system if applicable"),
    ("P233", _ADM, "normal", "Keep container tightly closed when not in use", None),
    ("P260", _ENG, "normal",
     "Do not breathe dust/fume/gas/mist/vapours/spray. Use in well-ventilated area or with Local Exhaust "
     "Ventilation (LEV)",
     "LEV system must be regularly examined and tested (COSHH Regulation 9)"),
    ("P261", _ENG, "normal", "Avoid breathing dust/fume/gas/mist/vapours/spray. Ensure adequate ventilation", None),
    ("P262", _ADM, "normal", "Do not get in eyes, on skin, or on clothing", None),
    ("P263", _ADM, "normal", "Avoid contact during pregnancy/while nursing",
     "Conduct specific risk assessment for pregnant/nursing workers"),
    ("P264", _ADM, "normal", "Wash hands and exposed skin thoroughly after handling",
     "Provide adequate washing facilities"),
    ("P270", _ADM, "normal", "Do not eat, drink or smoke when using this product", None),
    ("P271", _ENG, "normal", "Use only outdoors or in well-ventilated area", None),
    ("P272", _ADM, "normal", "Contaminated work clothing should not be allowed out of the workplace",
     "Provide laundering service or disposal for contaminated clothing"),
    ("P273", _ADM, "normal", "Avoid release to the environment", None),
    # PPE
    ("P280", _PPE, "normal",
     "Wear appropriate personal protective equipment: gloves, protective clothing, eye/face protection",
     "PPE must be suitable for the task - refer to SDS Section 8 for specifications"),
    ("P281", _PPE, "normal", "Use personal protective equipment as required", None),
    ("P282", _PPE, "normal", "Wear cold insulating gloves and face shield", None),
    ("P283", _PPE, "normal", "Wear fire resistant or flame retardant clothing", None),
    ("P284", _PPE, "normal",
     "Wear respiratory protection. In case of inadequate ventilation wear respiratory protection",
     "RPE must be face-fit tested. APF calculation required based on exposure levels"),
    ("P285", _PPE, "normal", "In case of inadequate ventilation wear respiratory protection", None),
    # First aid
    ("P301+P310", _ADM, "emergency", "IF SWALLOWED: Immediately call a POISON CENTRE or doctor/physician",
     "Emergency contact numbers must be clearly displayed"),
    ("P301+P312", _ADM, "emergency", "IF SWALLOWED: Call a POISON CENTRE or doctor if you feel unwell", None),
    ("P301+P330+P331", _ADM, "emergency", "IF SWALLOWED: Rinse mouth. Do NOT induce vomiting", None),
    ("P302+P352", _ADM, "emergency", "IF ON SKIN: Wash with plenty of water and soap",
     "Emergency washing facilities must be readily accessible"),
    ("P303+P361+P353", _ADM, "emergency",
     "IF ON SKIN (or hair): Take off immediately all contaminated clothing. Rinse skin with water/shower",
     "Emergency shower must be within 10 seconds travel time"),
    ("P304+P340", _ADM, "emergency", "IF INHALED: Remove person to fresh air and keep comfortable for breathing",
     None),
    ("P304+P341", _ADM, "emergency",
     "IF INHALED: If breathing is difficult, remove person to fresh air and keep at rest in a position "
     "comfortable for breathing",
     None),
    ("P305+P351+P338", _ADM, "emergency",
     "IF IN EYES: Rinse cautiously with water for several minutes. Remove contact lenses if present and easy "
     "to do. Continue rinsing",
     "Eye wash station must be readily accessible within 10 seconds"),
    ("P308+P313", _ADM, "emergency", "IF exposed or concerned: Get medical advice/attention", None),
    ("P310", _ADM, "emergency", "Immediately call a POISON CENTRE or doctor", None),
    ("P311", _ADM, "emergency", "Call a POISON CENTRE or doctor", None),
    ("P312", _ADM, "emergency", "Call a POISON CENTRE or doctor if you feel unwell", None),
    ("P342+P311", _ADM, "emergency", "If experiencing respiratory symptoms: Call a POISON CENTRE or doctor", None),
    ("P370+P378", _ADM, "emergency",
     "In case of fire: Use appropriate extinguishing media (refer to Section 5 of SDS)", None),
    # Spills / disposal
    ("P391", _ADM, "emergency", "Collect spillage. Have spill kit available",
     "Spill kit must be readily available and workers trained in its use"),
    ("P501", _ADM, "normal",
     "Dispose of contents/container in accordance with local/national regulations. Use licensed waste "
     "disposal contractor",
     "Maintain waste transfer notes and disposal records"),
]

P_PHRASE_TO_CONTROLS: Dict[str, ControlMeasure] = {
    code: ControlMeasure(
        id=code,
        code=code,
        description=description,
        hierarchy=hierarchy,
        category=category,
        implementation_notes=notes,
    )
    for code, hierarchy, category, description, notes in _P_CONTROL_ROWS
}

LEV_TESTING = ControlMeasure(
    id="LEV_TESTING",
    description=(
        "Ensure Local Exhaust Ventilation (LEV) system is examined and tested at least every 14 months "
        "(COSHH Regulation 9)"
    ),
    hierarchy=_ENG,
    implementation_notes="Keep records of LEV examinations for at least 5 years. Display TExT certificate",
)
CONFINED_SPACE = ControlMeasure(
    id="CONFINED_SPACE",
    description=(
        "Confined Space entry procedures must be followed. Permit to work system required. "
        "Atmospheric testing before entry"
    ),
    hierarchy=_ADM,
    implementation_notes="Confined Spaces Regulations 1997 apply. Emergency rescue plan required",
)
RPE_FIT_TEST = ControlMeasure(
    id="RPE_FIT_TEST",
    description=(
        "Respiratory Protective Equipment (RPE) must be face-fit tested for tight-fitting facepieces. "
        "Re-test every 3 years or if significant facial changes"
    ),
    hierarchy=_PPE,
    implementation_notes="Keep records of face-fit tests. RPE must be adequately maintained and stored",
)
SKIN_PROTECTION = ControlMeasure(
    id="SKIN_PROTECTION",
    description=(
        "Use appropriate chemical-resistant gloves. Refer to SDS Section 8 for glove material and "
        "breakthrough time"
    ),
    hierarchy=_PPE,
    implementation_notes="Inspect gloves before each use. Replace when damaged or contaminated",
)
SUPERVISION = ControlMeasure(
    id="SUPERVISION",
    description=(
        "Supervisor to monitor workers for signs of ill health or exposure. Daily visual checks of "
        "control measures"
    ),
    hierarchy=_ADM,
    implementation_notes="Supervisors should be trained to recognise early signs of overexposure",
)
TRAINING = ControlMeasure(
    id="TRAINING",
    description=(
        "Provide information, instruction and training on hazards, control measures, emergency "
        "procedures and correct use of PPE"
    ),
    hierarchy=_ADM,
    implementation_notes="Keep training records. Refresh training periodically and when procedures change",
)

_LEV_KEYWORDS = ("lev", "local exhaust", "extraction")


@dataclass
class ControlContext:
    ventilation: Optional[str] = None
    confined_space: bool = False
    exposure_routes: List[str] = field(default_factory=list)
    substance_form: Optional[str] = None
    hazards: List[Hazard] = field(default_factory=list)


def _has_inhalation_class_hazard(hazards: Iterable[Hazard]) -> bool:
    for hazard in hazards:
        hazard_class = hazard.hazard_class.lower()
        if "health-hazard" in hazard.type.lower() or "resp" in hazard_class or "inhal" in hazard_class:
            return True
        if "resp" in hazard.type.lower() or "inhal" in hazard.type.lower():
            return True
    return False


def _routes_include(routes: Iterable[str], word: str) -> bool:
    return any(word in route.lower() for route in routes)


def controls_for_p_codes(p_codes: Iterable[str]) -> List[ControlMeasure]:
    """
    One template per known P-code, first occurrence wins. Unknown codes are dropped.
    """
    controls: List[ControlMeasure] = []
    added = set()
    for code in p_codes:
        control = P_PHRASE_TO_CONTROLS.get(normalise_code(code))
        if control is not None and control.id not in added:
            controls.append(control.model_copy())
            added.add(control.id)
    return controls


def contextual_controls(context: ControlContext) -> List[ControlMeasure]:
    controls: List[ControlMeasure] = []
    ventilation = (context.ventilation or "").lower()

    if any(keyword in ventilation for keyword in _LEV_KEYWORDS):
        controls.append(LEV_TESTING.model_copy())
    if context.confined_space:
        controls.append(CONFINED_SPACE.model_copy())
    if _has_inhalation_class_hazard(context.hazards) and _routes_include(context.exposure_routes, "inhalation"):
        controls.append(RPE_FIT_TEST.model_copy())
    if _routes_include(context.exposure_routes, "skin"):
        controls.append(SKIN_PROTECTION.model_copy())

    controls.append(SUPERVISION.model_copy())
    controls.append(TRAINING.model_copy())
    return controls


def resolve_controls(p_codes: Iterable[str], context: ControlContext) -> List[ControlMeasure]:
    """
    P-code controls first, then the contextual additions in fixed order.
    Deterministic for identical input.
    """
    return controls_for_p_codes(p_codes) + contextual_controls(context)


def merge_controls(*groups: Iterable[ControlMeasure]) -> List[ControlMeasure]:
    merged: List[ControlMeasure] = []
    seen = set()
    for group in groups:
        for control in group:
            if control.id not in seen:
                merged.append(control)
                seen.add(control.id)
    return merged


def resolve_assessment_controls(
    substance_p_codes: List[List[str]],
    process_hazards: Iterable[ProcessGeneratedHazard],
    context: ControlContext,
) -> List[ControlMeasure]:
    """
    Controls for every substance and process hazard in one assessment,
    de-duplicated by id.
    """
    groups = [controls_for_p_codes(codes) for codes in substance_p_codes]
    groups.extend(controls_for_hazard(hazard) for hazard in process_hazards)
    groups.append(contextual_controls(context))
    return merge_controls(*groups)


def user_control(description: str, index: int) -> ControlMeasure:
    return ControlMeasure(
        id=f"USER_{index}",
        description=description.strip(),
        hierarchy=_ADM,
        implementation_notes="Added by assessor",
    )


def group_by_hierarchy(controls: Iterable[ControlMeasure]) -> Dict[str, List[ControlMeasure]]:
    grouped: Dict[str, List[ControlMeasure]] = {level.value: [] for level in ControlHierarchy}
    for control in controls:
        grouped[control.hierarchy.value].append(control)
    return grouped
