# coshh/reference/h_phrases.py
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from coshh.reference.schema import HazardStatement, Severities


# (code, description, hazard class, inhalation, ingestion, skin/eye, other, signal word)
_H_PHRASE_ROWS = [
    # Physical hazards
    ("H200", "Unstable explosive", "Explosive", 0, 0, 0, 5, "Danger"),
    ("H201", "Explosive; mass explosion hazard", "Explosive", 0, 0, 0, 5, "Danger"),
    ("H220", "Extremely flammable gas", "Flammable gas", 0, 0, 0, 4, "Danger"),
    ("H221", "Flammable gas", "Flammable gas", 0, 0, 0, 3, "Warning"),
    ("H222", "Extremely flammable aerosol", "Aerosol", 0, 0, 0, 4, "Danger"),
    ("H223", "Flammable aerosol", "Aerosol", 0, 0, 0, 3, "Warning"),
    ("H224", "Extremely flammable liquid and vapour", "Flammable liquid", 0, 0, 0, 4, "Danger"),
    ("H225", "Highly flammable liquid and vapour", "Flammable liquid", 0, 0, 0, 3, "Danger"),
    ("H226", "Flammable liquid and vapour", "Flammable liquid", 0, 0, 0, 2, "Warning"),
    ("H228", "Flammable solid", "Flammable solid", 0, 0, 0, 2, "Warning"),
    ("H229", "Pressurised container: may burst if heated", "Aerosol", 0, 0, 0, 2, "Warning"),
    ("H240", "Heating may cause an explosion", "Self-reactive", 0, 0, 0, 5, "Danger"),
    ("H241", "Heating may cause a fire or explosion", "Self-reactive", 0, 0, 0, 4, "Danger"),
    ("H242", "Heating may cause a fire", "Self-reactive", 0, 0, 0, 3, "Warning"),
    ("H250", "Catches fire spontaneously if exposed to air", "Pyrophoric", 0, 0, 0, 4, "Danger"),
    ("H251", "Self-heating: may catch fire", "Self-heating", 0, 0, 0, 3, "Danger"),
    ("H260", "In contact with water releases flammable gases which may ignite spontaneously", "Water-reactive", 0, 0, 0, 4, "Danger"),
    ("H261", "In contact with water releases flammable gases", "Water-reactive", 0, 0, 0, 3, "Danger"),
    ("H270", "May cause or intensify fire; oxidiser", "Oxidising gas", 0, 0, 0, 3, "Danger"),
    ("H271", "May cause fire or explosion; strong oxidiser", "Oxidising liquid", 0, 0, 0, 4, "Danger"),
    ("H272", "May intensify fire; oxidiser", "Oxidising liquid", 0, 0, 0, 2, "Warning"),
    ("H280", "Contains gas under pressure; may explode if heated", "Gas under pressure", 0, 0, 0, 2, "Warning"),
    ("H281", "Contains refrigerated gas; may cause cryogenic burns or injury", "Gas under pressure", 0, 0, 3, 2, "Warning"),
    ("H290", "May be corrosive to metals", "Corrosive to metals", 0, 0, 0, 1, "Warning"),
    # Health hazards
    ("H300", "Fatal if swallowed", "Acute toxicity (oral)", 0, 5, 0, 0, "Danger"),
    ("H301", "Toxic if swallowed", "Acute toxicity (oral)", 0, 4, 0, 0, "Danger"),
    ("H302", "Harmful if swallowed", "Acute toxicity (oral)", 0, 2, 0, 0, "Warning"),
    ("H304", "May be fatal if swallowed and enters airways", "Aspiration hazard", 0, 4, 0, 0, "Danger"),
    ("H310", "Fatal in contact with skin", "Acute toxicity (dermal)", 0, 0, 5, 0, "Danger"),
    ("H311", "Toxic in contact with skin", "Acute toxicity (dermal)", 0, 0, 4, 0, "Danger"),
    ("H312", "Harmful in contact with skin", "Acute toxicity (dermal)", 0, 0, 2, 0, "Warning"),
    ("H314", "Causes severe skin burns and eye damage", "Skin corrosion", 0, 3, 4, 0, "Danger"),
    ("H315", "Causes skin irritation", "Skin irritation", 0, 0, 2, 0, "Warning"),
    ("H317", "May cause an allergic skin reaction", "Skin sensitisation", 0, 0, 3, 0, "Warning"),
    ("H318", "Causes serious eye damage", "Serious eye damage", 0, 0, 4, 0, "Danger"),
    ("H319", "Causes serious eye irritation", "Eye irritation", 0, 0, 2, 0, "Warning"),
    ("H330", "Fatal if inhaled", "Acute toxicity (inhalation)", 5, 0, 0, 0, "Danger"),
    ("H331", "Toxic if inhaled", "Acute toxicity (inhalation)", 4, 0, 0, 0, "Danger"),
    ("H332", "Harmful if inhaled", "Acute toxicity (inhalation)", 2, 0, 0, 0, "Warning"),
    ("H334", "May cause allergy or asthma symptoms or breathing difficulties if inhaled", "Respiratory sensitisation", 4, 0, 0, 0, "Danger"),
    ("H335", "May cause respiratory irritation", "STOT SE 3 (respiratory irritation)", 2, 0, 0, 0, "Warning"),
    ("H336", "May cause drowsiness or dizziness", "STOT SE 3 (narcotic effects)", 2, 0, 0, 0, "Warning"),
    ("H340", "May cause genetic defects", "Germ cell mutagenicity", 5, 5, 5, 0, "Danger"),
    ("H341", "Suspected of causing genetic defects", "Germ cell mutagenicity", 4, 4, 4, 0, "Warning"),
    ("H350", "May cause cancer", "Carcinogenicity", 5, 5, 5, 0, "Danger"),
    ("H350i", "May cause cancer by inhalation", "Carcinogenicity", 5, 0, 0, 0, "Danger"),
    ("H351", "Suspected of causing cancer", "Carcinogenicity", 4, 4, 4, 0, "Warning"),
    ("H360", "May damage fertility or the unborn child", "Reproductive toxicity", 5, 5, 5, 0, "Danger"),
    ("H361", "Suspected of damaging fertility or the unborn child", "Reproductive toxicity", 4, 4, 4, 0, "Warning"),
    ("H362", "May cause harm to breast-fed children", "Reproductive toxicity (lactation)", 3, 3, 3, 0, None),
    ("H370", "Causes damage to organs", "STOT SE 1", 5, 5, 5, 0, "Danger"),
    ("H371", "May cause damage to organs", "STOT SE 2", 4, 4, 4, 0, "Warning"),
    ("H372", "Causes damage to organs through prolonged or repeated exposure", "STOT RE 1", 4, 4, 4, 0, "Danger"),
    ("H373", "May cause damage to organs through prolonged or repeated exposure", "STOT RE 2", 3, 3, 3, 0, "Warning"),
    # Environmental hazards
    ("H400", "Very toxic to aquatic life", "Aquatic acute 1", 0, 0, 0, 3, "Warning"),
    ("H410", "Very toxic to aquatic life with long lasting effects", "Aquatic chronic 1", 0, 0, 0, 3, "Warning"),
    ("H411", "Toxic to aquatic life with long lasting effects", "Aquatic chronic 2", 0, 0, 0, 2, None),
    ("H412", "Harmful to aquatic life with long lasting effects", "Aquatic chronic 3", 0, 0, 0, 1, None),
    ("H413", "May cause long lasting harmful effects to aquatic life", "Aquatic chronic 4", 0, 0, 0, 1, None),
    # Supplemental EU statements
    ("EUH029", "Contact with water liberates toxic gas", "Supplemental", 3, 0, 0, 0, None),
    ("EUH031", "Contact with acids liberates toxic gas", "Supplemental", 3, 0, 0, 0, None),
    ("EUH032", "Contact with acids liberates very toxic gas", "Supplemental", 4, 0, 0, 0, None),
    ("EUH066", "Repeated exposure may cause skin dryness or cracking", "Supplemental", 0, 0, 1, 0, None),
    ("EUH071", "Corrosive to the respiratory tract", "Supplemental", 4, 0, 0, 0, None),
    ("EUH204", "Contains isocyanates. May produce an allergic reaction", "Supplemental", 3, 0, 1, 0, None),
    ("EUH208", "Contains a sensitising substance. May produce an allergic reaction", "Supplemental", 0, 0, 1, 0, None),
]

H_PHRASES: Dict[str, HazardStatement] = {
    row[0].upper(): HazardStatement(
        code=row[0],
        description=row[1],
        hazard_class=row[2],
        inhalation_severity=row[3],
        ingestion_severity=row[4],
        skin_eye_severity=row[5],
        other_severity=row[6],
        signal_word=row[7],
    )
    for row in _H_PHRASE_ROWS
}

_H_CODE_RE = re.compile(r"\b(H\d{3}[a-z]{0,2}(?:\+H\d{3})*|EUH\d{3})\b", re.IGNORECASE)
_P_CODE_RE = re.compile(r"\bP\d{3}(?:\+P\d{3})*", re.IGNORECASE)


def normalise_code(code: str) -> str:
    return code.strip().replace(" ", "").upper()


def get_h_phrase(code: str) -> Optional[HazardStatement]:
    key = normalise_code(code)
    phrase = H_PHRASES.get(key)
    if phrase is None:
        # H360FD, H361f etc. share the base statement's severities
        phrase = H_PHRASES.get(re.sub(r"(?<=\d)[A-Z]+$", "", key))
    return phrase


def get_h_phrases_by_codes(codes: Iterable[str]) -> List[HazardStatement]:
    """
    Look up H-phrases, skipping codes we don't know. Order follows the input.
    """
    found: List[HazardStatement] = []
    seen = set()
    for code in codes:
        # Combined statements such as H300+H310 count as each part
        for part in code.split("+"):
            phrase = get_h_phrase(part)
            if phrase is not None and phrase.code not in seen:
                found.append(phrase)
                seen.add(phrase.code)
    return found


def severities_for_codes(h_codes: Iterable[str]) -> Severities:
    """
    Worst single hazard statement per route. Unknown codes contribute nothing.
    """
    severities = Severities()
    for phrase in get_h_phrases_by_codes(h_codes):
        severities.inhalation = max(severities.inhalation, phrase.inhalation_severity)
        severities.ingestion = max(severities.ingestion, phrase.ingestion_severity)
        severities.skin_eye = max(severities.skin_eye, phrase.skin_eye_severity)
        severities.other = max(severities.other, phrase.other_severity)
    return severities


def extract_hazard_codes(text: str) -> tuple[List[str], List[str]]:
    """
    Pull H-codes (incl. combined ones like H300+H310 and EUH codes) and
    P-codes (incl. P305+P351+P338) out of free text.

    Returns (h_codes, p_codes), uppercased and de-duplicated in order of appearance.
    """
    h_codes: List[str] = []
    for match in _H_CODE_RE.findall(text or ""):
        code = match.upper()
        # H350i keeps its lowercase route suffix
        if code.startswith("H350I"):
            code = "H350i" + code[5:]
        if code not in h_codes:
            h_codes.append(code)

    p_codes: List[str] = []
    for match in _P_CODE_RE.findall(text or ""):
        code = match.upper()
        if code not in p_codes:
            p_codes.append(code)

    return h_codes, p_codes
