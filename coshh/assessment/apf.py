# coshh/assessment/apf.py
"""
Assigned Protection Factor selection for respiratory protective equipment.

Required APF = estimated exposure / WEL, rounded up to the standard HSE
ladder (HSG53). Every device on the ladder is tight-fitting, so face-fit
testing is always required when RPE is recommended.
"""
from __future__ import annotations

import re
from typing import Iterable, List, NamedTuple, Optional, Tuple

from coshh.assessment.schema import ApfRequirements, SubstanceRecord
from coshh.reference.schema import ProcessGeneratedHazard


class RpeOption(NamedTuple):
    apf: int
    device: str
    tight_fitting: bool


APF_LADDER: List[RpeOption] = [
    RpeOption(4, "FFP1 disposable mask or half mask with P1 filter", True),
    RpeOption(10, "FFP2 disposable mask or half mask with P2 filter", True),
    RpeOption(20, "FFP3 disposable mask or half mask with P3 filter", True),
    RpeOption(40, "Full-face mask with P3 filter", True),
    RpeOption(200, "Powered full-face respirator (TM3)", True),
    RpeOption(2000, "Airline breathing apparatus with full-face mask", True),
]

DEFAULT_APF_SENSITISER = 20
DEFAULT_APF_OTHER = 10

_SENSITISER_H_CODES = {"H334", "H317", "H350", "H350I", "H351", "H340", "H341"}
_SENSITISER_WORDS = ("sensitis", "sensitiz", "carcinogen", "asthma")

_UNKNOWN_ANSWERS = ("unknown", "don't know", "dont know", "not known", "not sure", "no idea", "n/a")

_MEASURE_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*(ppm|mg\s*/\s*m(?:3|³)|f\s*/\s*ml|fibres?\s*/\s*ml)",
    re.IGNORECASE,
)
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def normalise_unit(unit: str) -> str:
    unit = unit.lower().replace(" ", "").replace("³", "3")
    if unit.startswith("fibre") or unit == "f/ml":
        return "f/ml"
    return unit


def parse_measurements(text: Optional[str]) -> List[Tuple[float, str]]:
    """
    All "number unit" pairs in a limit string, e.g. '50 ppm (191 mg/m³)'.
    """
    return [(float(value), normalise_unit(unit)) for value, unit in _MEASURE_RE.findall(text or "")]


def is_unknown_answer(message: str) -> bool:
    lowered = message.strip().lower()
    return any(answer in lowered for answer in _UNKNOWN_ANSWERS)


def parse_exposure(message: str) -> Optional[Tuple[float, str]]:
    """
    The user's estimated airborne concentration, or None when they do not
    know it. A bare number is taken as mg/m³.
    """
    if not message.strip() or is_unknown_answer(message):
        return None
    measurements = parse_measurements(message)
    if measurements:
        return measurements[0]
    number = _NUMBER_RE.search(message)
    if number:
        return float(number.group()), "mg/m3"
    return None


def workplace_exposure_limits(
    substances: Iterable[SubstanceRecord],
    process_hazards: Iterable[ProcessGeneratedHazard] = (),
) -> List[Tuple[float, str]]:
    """
    Long-term (8-hr TWA) limits from every SDS and process hazard.
    """
    limits: List[Tuple[float, str]] = []
    for substance in substances:
        for limit in substance.exposure_limits:
            limits.extend(parse_measurements(limit.wel_long_term))
    for hazard in process_hazards:
        if hazard.has_eh40_wel and hazard.wel_8hr_twa_mgm3:
            limits.append((hazard.wel_8hr_twa_mgm3, "mg/m3"))
    return limits


def is_sensitiser_or_carcinogen(
    substances: Iterable[SubstanceRecord],
    process_hazards: Iterable[ProcessGeneratedHazard] = (),
) -> bool:
    for substance in substances:
        if any(code.upper() in _SENSITISER_H_CODES for code in substance.h_codes):
            return True
        for hazard in substance.hazards:
            text = f"{hazard.type} {hazard.hazard_class}".lower()
            if any(word in text for word in _SENSITISER_WORDS):
                return True
    return any(
        hazard.is_carcinogen or hazard.is_respiratory_sensitiser or hazard.is_asthmagen
        for hazard in process_hazards
    )


def select_rpe(required_apf: float) -> RpeOption:
    for option in APF_LADDER:
        if option.apf >= required_apf:
            return option
    return APF_LADDER[-1]


def _option_for(apf: int) -> RpeOption:
    return next(option for option in APF_LADDER if option.apf == apf)


def calculate_apf(
    exposure: Optional[Tuple[float, str]],
    limits: List[Tuple[float, str]],
    sensitiser_or_carcinogen: bool,
) -> ApfRequirements:
    matching = [value for value, unit in limits if exposure is not None and unit == exposure[1] and value > 0]

    if exposure is None or not matching:
        default_apf = DEFAULT_APF_SENSITISER if sensitiser_or_carcinogen else DEFAULT_APF_OTHER
        option = _option_for(default_apf)
        if exposure is None:
            basis = "Exposure level unknown"
        else:
            basis = f"No workplace exposure limit in {exposure[1]} to compare against"
        reason = "sensitiser/carcinogen present" if sensitiser_or_carcinogen else "inhalation hazard present"
        return ApfRequirements(
            required=True,
            estimated_exposure=exposure[0] if exposure else None,
            exposure_unit=exposure[1] if exposure else None,
            assigned_apf=option.apf,
            recommended_rpe=option.device,
            fit_testing_required=option.tight_fitting,
            basis=f"{basis}; default APF {option.apf} applied ({reason})",
        )

    value, unit = exposure
    wel = min(matching)
    ratio = value / wel
    calculated = round(ratio, 2)

    if ratio <= 1:
        return ApfRequirements(
            required=False,
            estimated_exposure=value,
            exposure_unit=unit,
            workplace_exposure_limit=wel,
            calculated_apf=calculated,
            basis="Estimated exposure is at or below the WEL; RPE not required on exposure grounds",
        )

    option = select_rpe(ratio)
    basis = f"Required APF {calculated:g} = {value:g} {unit} / WEL {wel:g} {unit}"
    if ratio > option.apf:
        basis += "; exceeds the highest standard APF, exposure must be reduced by other controls"
    return ApfRequirements(
        required=True,
        estimated_exposure=value,
        exposure_unit=unit,
        workplace_exposure_limit=wel,
        calculated_apf=calculated,
        assigned_apf=option.apf,
        recommended_rpe=option.device,
        fit_testing_required=option.tight_fitting,
        basis=basis,
    )


def format_apf(requirements: ApfRequirements) -> str:
    if not requirements.required:
        return f"RPE not required: {requirements.basis}."
    lines = [
        f"**Assigned Protection Factor:** {requirements.assigned_apf}",
        f"**Recommended RPE:** {requirements.recommended_rpe}",
        f"**Basis:** {requirements.basis}",
    ]
    if requirements.fit_testing_required:
        lines.append("**Face-fit testing:** Required (tight-fitting facepiece)")
    return "\n".join(lines)
