# coshh/reference/p_phrases.py
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from coshh.reference.h_phrases import normalise_code
from coshh.reference.schema import PhraseTag, PrecautionaryStatement, StatementType


T = PhraseTag
PREVENTION = StatementType.PREVENTION
RESPONSE = StatementType.RESPONSE
STORAGE = StatementType.STORAGE
DISPOSAL = StatementType.DISPOSAL

_P_PHRASE_ROWS = [
    # Prevention
    ("P201", "Obtain special instructions before use.", PREVENTION, [T.OPERATIONAL_CONTROLS, T.TRAINING]),
    ("P202", "Do not handle until all safety precautions have been read and understood.", PREVENTION, [T.OPERATIONAL_CONTROLS, T.TRAINING]),
    ("P210", "Keep away from heat, hot surfaces, sparks, open flames and other ignition sources. No smoking.", PREVENTION, [T.IGNITION_SOURCES, T.OPERATIONAL_CONTROLS]),
    ("P211", "Do not spray on an open flame or other ignition source.", PREVENTION, [T.IGNITION_SOURCES]),
    ("P220", "Keep away from clothing and other combustible materials.", PREVENTION, [T.IGNITION_SOURCES, T.STORAGE]),
    ("P233", "Keep container tightly closed.", PREVENTION, [T.HANDLING, T.STORAGE]),
    ("P240", "Ground and bond container and receiving equipment.", PREVENTION, [T.IGNITION_SOURCES, T.HANDLING]),
    ("P241", "Use explosion-proof electrical/ventilating/lighting equipment.", PREVENTION, [T.IGNITION_SOURCES, T.VENTILATION]),
    ("P242", "Use non-sparking tools.", PREVENTION, [T.IGNITION_SOURCES, T.HANDLING]),
    ("P243", "Take action to prevent static discharges.", PREVENTION, [T.IGNITION_SOURCES]),
    ("P251", "Do not pierce or burn, even after use.", PREVENTION, [T.HANDLING, T.DISPOSAL]),
    ("P260", "Do not breathe dust/fume/gas/mist/vapours/spray.", PREVENTION, [T.VENTILATION, T.OPERATIONAL_CONTROLS]),
    ("P261", "Avoid breathing dust/fume/gas/mist/vapours/spray.", PREVENTION, [T.VENTILATION, T.OPERATIONAL_CONTROLS]),
    ("P262", "Do not get in eyes, on skin, or on clothing.", PREVENTION, [T.OPERATIONAL_CONTROLS, T.PPE]),
    ("P263", "Avoid contact during pregnancy and while nursing.", PREVENTION, [T.OPERATIONAL_CONTROLS]),
    ("P264", "Wash hands thoroughly after handling.", PREVENTION, [T.HYGIENE]),
    ("P270", "Do not eat, drink or smoke when using this product.", PREVENTION, [T.HYGIENE]),
    ("P271", "Use only outdoors or in a well-ventilated area.", PREVENTION, [T.VENTILATION]),
    ("P272", "Contaminated work clothing should not be allowed out of the workplace.", PREVENTION, [T.HYGIENE]),
    ("P273", "Avoid release to the environment.", PREVENTION, [T.ENVIRONMENTAL_RELEASE]),
    ("P280", "Wear protective gloves/protective clothing/eye protection/face protection.", PREVENTION, [T.PPE]),
    ("P281", "Use personal protective equipment as required.", PREVENTION, [T.PPE]),
    ("P282", "Wear cold insulating gloves and either face shield or eye protection.", PREVENTION, [T.PPE]),
    ("P283", "Wear fire resistant or flame retardant clothing.", PREVENTION, [T.PPE, T.IGNITION_SOURCES]),
    ("P284", "In case of inadequate ventilation wear respiratory protection.", PREVENTION, [T.PPE, T.VENTILATION]),
    ("P285", "In case of inadequate ventilation wear respiratory protection.", PREVENTION, [T.PPE, T.VENTILATION]),
    # Response
    ("P301+P310", "IF SWALLOWED: Immediately call a POISON CENTER/doctor.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_INGESTION]),
    ("P301+P312", "IF SWALLOWED: Call a POISON CENTER/doctor if you feel unwell.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_INGESTION]),
    ("P301+P330+P331", "IF SWALLOWED: Rinse mouth. Do NOT induce vomiting.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_INGESTION]),
    ("P302+P352", "IF ON SKIN: Wash with plenty of water.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_SKIN]),
    ("P303+P361+P353", "IF ON SKIN (or hair): Take off immediately all contaminated clothing. Rinse skin with water or shower.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_SKIN]),
    ("P304+P340", "IF INHALED: Remove person to fresh air and keep comfortable for breathing.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_INHALATION]),
    ("P304+P341", "IF INHALED: If breathing is difficult, remove victim to fresh air and keep at rest in a position comfortable for breathing.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_INHALATION]),
    ("P305+P351+P338", "IF IN EYES: Rinse cautiously with water for several minutes. Remove contact lenses, if present and easy to do. Continue rinsing.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_EYE]),
    ("P308+P313", "IF exposed or concerned: Get medical advice/attention.", RESPONSE, [T.FIRST_AID]),
    ("P310", "Immediately call a POISON CENTER/doctor.", RESPONSE, [T.FIRST_AID]),
    ("P311", "Call a POISON CENTER/doctor.", RESPONSE, [T.FIRST_AID]),
    ("P312", "Call a POISON CENTER/doctor if you feel unwell.", RESPONSE, [T.FIRST_AID]),
    ("P332+P313", "If skin irritation occurs: Get medical advice/attention.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_SKIN]),
    ("P333+P313", "If skin irritation or rash occurs: Get medical advice/attention.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_SKIN]),
    ("P337+P313", "If eye irritation persists: Get medical advice/attention.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_EYE]),
    ("P342+P311", "If experiencing respiratory symptoms: Call a POISON CENTER/doctor.", RESPONSE, [T.FIRST_AID, T.FIRST_AID_INHALATION]),
    ("P362+P364", "Take off contaminated clothing and wash it before reuse.", RESPONSE, [T.HYGIENE, T.FIRST_AID_SKIN]),
    ("P370+P378", "In case of fire: Use appropriate media to extinguish.", RESPONSE, [T.FIRE_RESPONSE, T.FIRE_FIGHTING]),
    ("P370+P380", "In case of fire: Evacuate area.", RESPONSE, [T.FIRE_RESPONSE, T.FIRE_EVACUATION]),
    ("P377", "Leaking gas fire: Do not extinguish, unless leak can be stopped safely.", RESPONSE, [T.FIRE_RESPONSE, T.FIRE_FIGHTING]),
    ("P381", "In case of leakage, eliminate all ignition sources.", RESPONSE, [T.SPILL_RESPONSE, T.IGNITION_SOURCES]),
    ("P390", "Absorb spillage to prevent material damage.", RESPONSE, [T.SPILL_RESPONSE]),
    ("P391", "Collect spillage.", RESPONSE, [T.SPILL_RESPONSE, T.ENVIRONMENTAL_RELEASE]),
    # Storage
    ("P403", "Store in a well-ventilated place.", STORAGE, [T.STORAGE, T.VENTILATION]),
    ("P403+P233", "Store in a well-ventilated place. Keep container tightly closed.", STORAGE, [T.STORAGE, T.VENTILATION]),
    ("P403+P235", "Store in a well-ventilated place. Keep cool.", STORAGE, [T.STORAGE]),
    ("P405", "Store locked up.", STORAGE, [T.STORAGE]),
    ("P410+P403", "Protect from sunlight. Store in a well-ventilated place.", STORAGE, [T.STORAGE]),
    ("P410+P412", "Protect from sunlight. Do not expose to temperatures exceeding 50 °C/122 °F.", STORAGE, [T.STORAGE]),
    # Disposal
    ("P501", "Dispose of contents/container in accordance with local/regional/national/international regulations.", DISPOSAL, [T.DISPOSAL]),
    ("P502", "Refer to manufacturer or supplier for information on recovery or recycling.", DISPOSAL, [T.DISPOSAL]),
]

P_PHRASES: Dict[str, PrecautionaryStatement] = {
    row[0]: PrecautionaryStatement(
        code=row[0],
        description=row[1],
        statement_type=row[2],
        relates_to=list(row[3]),
    )
    for row in _P_PHRASE_ROWS
}


def get_p_phrase(code: str) -> Optional[PrecautionaryStatement]:
    return P_PHRASES.get(normalise_code(code))


def controls_for_codes(
    p_codes: Iterable[str],
    tag: Optional[PhraseTag] = None,
) -> List[PrecautionaryStatement]:
    """
    Known precautionary statements for the given codes, optionally only
    those that relate to one COSHH section. De-duplicated by code,
    input order preserved, unknown codes dropped.
    """
    matched: List[PrecautionaryStatement] = []
    seen = set()
    for code in p_codes:
        phrase = get_p_phrase(code)
        if phrase is None or phrase.code in seen:
            continue
        if tag is not None and tag not in phrase.relates_to:
            continue
        matched.append(phrase)
        seen.add(phrase.code)
    return matched


def suggested_control_measures(p_codes: Iterable[str]) -> Dict[str, List[str]]:
    """
    Descriptions of the given P-phrases grouped under every COSHH section
    tag (all tags present, possibly empty).
    """
    phrases = controls_for_codes(p_codes)
    return {
        tag.value: [p.description for p in phrases if tag in p.relates_to]
        for tag in PhraseTag
    }


def group_by_statement_type(p_codes: Iterable[str]) -> Dict[str, List[PrecautionaryStatement]]:
    phrases = controls_for_codes(p_codes)
    return {
        statement_type.value.lower(): [p for p in phrases if p.statement_type == statement_type]
        for statement_type in StatementType
    }
