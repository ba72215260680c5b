# coshh/reference/process_hazards.py
"""
Catalog of process-generated hazards: things the work produces that never
come with a Safety Data Sheet (welding fume, wood dust, RCS, ...).
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from coshh.reference.schema import ControlHierarchy, ControlMeasure, ProcessGeneratedHazard


H = ProcessGeneratedHazard

PROCESS_HAZARDS: List[ProcessGeneratedHazard] = [
    H(hazard_name="Welding fume - mild steel", hazard_category="Welding fumes",
      process_type="Welding (MIG, TIG, arc, oxy-acetylene)", physical_form="Fume",
      particle_size="Respirable (<10 um)", equivalent_h_codes=["H350", "H372"],
      hazard_description="Metal oxide fume from welding mild steel. All welding fume is classed as a human carcinogen.",
      is_carcinogen=True, inhalation_severity=5, skin_eye_severity=1,
      health_effects="Lung cancer, metal fume fever, reduced lung function",
      acute_effects="Irritation of eyes, nose and throat, metal fume fever",
      target_organs=["Lungs"], hse_guidance_link="https://www.hse.gov.uk/welding/"),
    H(hazard_name="Welding fume - stainless steel", hazard_category="Welding fumes",
      process_type="Welding stainless steel", physical_form="Fume",
      particle_size="Respirable (<10 um)", equivalent_h_codes=["H350", "H334", "H317"],
      hazard_description="Fume containing hexavalent chromium and nickel compounds.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=0.005,
      is_carcinogen=True, is_respiratory_sensitiser=True, is_asthmagen=True, is_skin_sensitiser=True,
      inhalation_severity=5, skin_eye_severity=2,
      health_effects="Lung and nasal cancer, occupational asthma",
      acute_effects="Respiratory irritation",
      target_organs=["Lungs", "Nasal passages"], hse_guidance_link="https://www.hse.gov.uk/welding/"),
    H(hazard_name="Welding fume - galvanised steel", hazard_category="Welding fumes",
      process_type="Welding (MIG, TIG, arc, oxy-acetylene)", physical_form="Fume",
      particle_size="Respirable (<10 um)", equivalent_h_codes=["H350", "H332"],
      hazard_description="Zinc oxide rich fume from welding or cutting galvanised steel.",
      is_carcinogen=True, inhalation_severity=5, skin_eye_severity=1,
      health_effects="Lung cancer", acute_effects="Metal fume fever",
      target_organs=["Lungs"]),
    H(hazard_name="Welding fume - aluminium", hazard_category="Welding fumes",
      process_type="Welding (MIG, TIG, arc, oxy-acetylene)", physical_form="Fume",
      particle_size="Respirable (<10 um)", equivalent_h_codes=["H350"],
      hazard_description="Aluminium oxide fume and ozone from MIG/TIG welding of aluminium.",
      is_carcinogen=True, inhalation_severity=5, skin_eye_severity=1,
      health_effects="Lung cancer, lung damage", acute_effects="Respiratory irritation from ozone",
      target_organs=["Lungs"]),
    H(hazard_name="Hardwood dust", hazard_category="Wood dust",
      process_type="Cutting wood", physical_form="Dust",
      particle_size="Inhalable (<100 um)", equivalent_h_codes=["H350", "H334", "H317"],
      hazard_description="Dust from sawing, sanding or routing hardwoods such as oak, beech and mahogany.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=3.0,
      is_carcinogen=True, is_respiratory_sensitiser=True, is_asthmagen=True, is_skin_sensitiser=True,
      inhalation_severity=5, skin_eye_severity=2,
      health_effects="Nasal cancer, occupational asthma, dermatitis",
      acute_effects="Eye and respiratory irritation",
      target_organs=["Nasal passages", "Lungs", "Skin"],
      hse_guidance_link="https://www.hse.gov.uk/woodworking/"),
    H(hazard_name="Softwood dust", hazard_category="Wood dust",
      process_type="Sanding wood", physical_form="Dust",
      particle_size="Inhalable (<100 um)", equivalent_h_codes=["H334", "H317"],
      hazard_description="Dust from machining softwoods such as pine and spruce.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=5.0,
      is_respiratory_sensitiser=True, is_asthmagen=True, is_skin_sensitiser=True,
      inhalation_severity=4, skin_eye_severity=2,
      health_effects="Occupational asthma, dermatitis", acute_effects="Respiratory irritation",
      target_organs=["Lungs", "Skin"]),
    H(hazard_name="MDF dust", hazard_category="Wood dust",
      process_type="Routing wood", physical_form="Dust",
      particle_size="Inhalable (<100 um)", equivalent_h_codes=["H334", "H351"],
      hazard_description="Fine dust from MDF containing hardwood, softwood and formaldehyde resin.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=3.0,
      is_respiratory_sensitiser=True, is_asthmagen=True,
      inhalation_severity=4, skin_eye_severity=2,
      health_effects="Occupational asthma, possible nasal cancer", acute_effects="Eye and respiratory irritation",
      target_organs=["Lungs", "Nasal passages"]),
    H(hazard_name="Respirable crystalline silica - concrete", hazard_category="Silica dust",
      process_type="Cutting stone/concrete", physical_form="Dust",
      particle_size="Respirable (<10 um)", equivalent_h_codes=["H350", "H372"],
      hazard_description="RCS released when cutting, chasing or drilling concrete, brick and block.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=0.1,
      is_carcinogen=True, inhalation_severity=5,
      health_effects="Silicosis, lung cancer, COPD", acute_effects="Respiratory irritation",
      target_organs=["Lungs"], hse_guidance_link="https://www.hse.gov.uk/construction/healthrisks/hazardous-substances/silica.htm"),
    H(hazard_name="Respirable crystalline silica - stone", hazard_category="Silica dust",
      process_type="Grinding stone/concrete", physical_form="Dust",
      particle_size="Respirable (<10 um)", equivalent_h_codes=["H350", "H372"],
      hazard_description="RCS from grinding, polishing or dressing natural and engineered stone.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=0.1,
      is_carcinogen=True, inhalation_severity=5,
      health_effects="Silicosis, lung cancer, COPD", acute_effects="Respiratory irritation",
      target_organs=["Lungs"]),
    H(hazard_name="Metalworking fluid mist", hazard_category="Metalworking fluids",
      process_type="Machining metal", physical_form="Mist",
      particle_size="Inhalable (<100 um)", equivalent_h_codes=["H334", "H317", "H315"],
      hazard_description="Mist from water-mix or neat cutting fluids on lathes, mills and grinders.",
      is_respiratory_sensitiser=True, is_asthmagen=True, is_skin_sensitiser=True,
      inhalation_severity=4, skin_eye_severity=3, ingestion_severity=1,
      health_effects="Occupational asthma, extrinsic allergic alveolitis, dermatitis",
      acute_effects="Skin and respiratory irritation",
      target_organs=["Lungs", "Skin"], hse_guidance_link="https://www.hse.gov.uk/metalworking/"),
    H(hazard_name="Diesel engine exhaust emissions", hazard_category="Diesel exhaust",
      process_type="Operating diesel vehicles indoors", physical_form="Gas",
      equivalent_h_codes=["H350", "H332"],
      hazard_description="Particulate and gaseous exhaust from diesel forklifts, generators and vehicles.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=0.05,
      is_carcinogen=True, inhalation_severity=5, skin_eye_severity=1,
      health_effects="Lung cancer, respiratory disease", acute_effects="Eye and respiratory irritation",
      target_organs=["Lungs"]),
    H(hazard_name="Flour dust", hazard_category="Flour/grain dust",
      process_type="Mixing flour/grain", physical_form="Dust",
      particle_size="Inhalable (<100 um)", equivalent_h_codes=["H334"],
      hazard_description="Dust released when tipping, sieving and mixing flour.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=10.0, wel_15min_stel_mgm3=30.0,
      is_respiratory_sensitiser=True, is_asthmagen=True,
      inhalation_severity=4, skin_eye_severity=1,
      health_effects="Occupational asthma, rhinitis", acute_effects="Sneezing, eye irritation",
      target_organs=["Lungs"]),
    H(hazard_name="Grain dust", hazard_category="Flour/grain dust",
      process_type="Mixing flour/grain", physical_form="Dust",
      particle_size="Inhalable (<100 um)", equivalent_h_codes=["H334"],
      hazard_description="Dust from handling, storing and processing grain.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=10.0,
      is_respiratory_sensitiser=True, is_asthmagen=True,
      inhalation_severity=4, skin_eye_severity=1,
      health_effects="Occupational asthma, farmer's lung", acute_effects="Respiratory irritation",
      target_organs=["Lungs"]),
    H(hazard_name="Rubber fume", hazard_category="Rubber processing fumes",
      process_type="Rubber vulcanisation", physical_form="Fume",
      equivalent_h_codes=["H350"],
      hazard_description="Fume evolved during rubber curing and vulcanisation.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=0.6,
      is_carcinogen=True, inhalation_severity=5, skin_eye_severity=2,
      health_effects="Cancer", acute_effects="Respiratory irritation",
      target_organs=["Lungs", "Bladder"]),
    H(hazard_name="Petrol engine exhaust (carbon monoxide)", hazard_category="Vehicle exhaust",
      process_type="Operating vehicles indoors", physical_form="Gas",
      equivalent_h_codes=["H331", "H360", "H372"],
      hazard_description="Carbon monoxide rich exhaust from petrol engines in enclosed spaces.",
      has_eh40_wel=True, wel_8hr_twa_mgm3=23.0, wel_15min_stel_mgm3=117.0,
      inhalation_severity=5,
      health_effects="Cardiovascular and neurological damage", acute_effects="Headache, collapse, death",
      target_organs=["Blood", "Heart", "Brain"]),
]

# Task wording -> catalog category. First matching rule wins.
PROCESS_KEYWORD_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("weld",), "Welding fumes"),
    (("wood", "saw", "sand", "mdf", "joinery"), "Wood dust"),
    (("stone", "concrete", "brick", "silica", "masonry"), "Silica dust"),
    (("machine", "machining", "lathe", "mill", "cnc", "cutting fluid"), "Metalworking fluids"),
    (("diesel", "forklift", "generator"), "Diesel exhaust"),
    (("flour", "grain", "bak"), "Flour/grain dust"),
    (("rubber", "vulcanis"), "Rubber processing fumes"),
    (("petrol", "vehicle", "car park"), "Vehicle exhaust"),
]

# Control measures shared by every hazard in a category, in hierarchy order.
_ENG = ControlHierarchy.ENGINEERING
_ADM = ControlHierarchy.ADMINISTRATIVE
_PPE = ControlHierarchy.PPE
_SUB = ControlHierarchy.SUBSTITUTION
_ELI = ControlHierarchy.ELIMINATION

_CATEGORY_CONTROLS: Dict[str, List[Tuple[str, ControlHierarchy, str]]] = {
    "Welding fumes": [
        ("WELD_LEV", _ENG, "Use on-torch extraction or LEV for all welding, including mild steel"),
        ("WELD_RPE", _PPE, "Where LEV alone does not control fume, provide suitable RPE (minimum APF 20)"),
        ("WELD_SUPERVISION", _ADM, "Check LEV capture hood positioning before each welding task"),
    ],
    "Wood dust": [
        ("WOOD_SHARP_TOOLS", _SUB, "Use sharp cutters and low-dust methods to reduce dust generation"),
        ("WOOD_LEV", _ENG, "Fit LEV to all fixed and portable woodworking machines"),
        ("WOOD_CLEANING", _ADM, "Clean with a vacuum (M or H class); never dry sweep or use compressed air"),
        ("WOOD_RPE", _PPE, "Wear FFP3 or equivalent RPE for sanding and clean-up"),
    ],
    "Silica dust": [
        ("RCS_WATER", _ENG, "Use water suppression or on-tool extraction when cutting or grinding"),
        ("RCS_CLEANING", _ADM, "Clean with an H-class vacuum; never dry sweep"),
        ("RCS_RPE", _PPE, "Wear face-fit tested FFP3 RPE as a minimum"),
    ],
    "Metalworking fluids": [
        ("MWF_ENCLOSURE", _ENG, "Enclose machines and fit mist extraction"),
        ("MWF_FLUID_CHECKS", _ADM, "Check fluid concentration, pH and bacterial contamination weekly"),
        ("MWF_GLOVES", _PPE, "Wear suitable gloves and avoid skin contact with fluid"),
    ],
    "Diesel exhaust": [
        ("DEEE_ELIMINATE", _ELI, "Replace diesel vehicles with electric equivalents where reasonably practicable"),
        ("DEEE_EXTRACTION", _ENG, "Use tail-pipe exhaust extraction and good general ventilation"),
        ("DEEE_ENGINE_OFF", _ADM, "Switch engines off when not in use; keep engines maintained"),
    ],
    "Flour/grain dust": [
        ("FLOUR_LOW_DUST", _SUB, "Use low-dust flour and dust-free improvers"),
        ("FLOUR_TIPPING", _ENG, "Use extracted tipping stations and lids on mixers"),
        ("FLOUR_RPE", _PPE, "Wear FFP3 RPE for dusty tasks such as tipping and sieving"),
    ],
    "Rubber processing fumes": [
        ("RUBBER_LEV", _ENG, "Provide LEV at curing presses and autoclave opening points"),
        ("RUBBER_HYGIENE", _ADM, "Provide washing facilities and prohibit eating in process areas"),
    ],
    "Vehicle exhaust": [
        ("CO_ELIMINATE", _ELI, "Do not run petrol engines in enclosed spaces"),
        ("CO_MONITOR", _ENG, "Install carbon monoxide detection with alarm"),
    ],
}


def search_by_keyword(text: str) -> List[ProcessGeneratedHazard]:
    """
    Hazards whose name, category or process type contains the query text.
    """
    query = (text or "").strip().lower()
    if not query:
        return []
    matches = [
        hazard
        for hazard in PROCESS_HAZARDS
        if query in hazard.hazard_name.lower()
        or query in hazard.hazard_category.lower()
        or query in hazard.process_type.lower()
    ]
    return sorted(matches, key=lambda h: h.hazard_name)


def get_by_name(name: str) -> Optional[ProcessGeneratedHazard]:
    wanted = (name or "").strip().lower()
    for hazard in PROCESS_HAZARDS:
        if hazard.hazard_name.lower() == wanted:
            return hazard
    return None


def get_by_category(category: str) -> List[ProcessGeneratedHazard]:
    return [h for h in PROCESS_HAZARDS if h.hazard_category == category]


def category_for_task(task_description: str) -> Optional[str]:
    text = (task_description or "").lower()
    for keywords, category in PROCESS_KEYWORD_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return None


def suggest_for_task(task_description: str) -> List[ProcessGeneratedHazard]:
    """
    Candidate hazards for a free-text task description: the whole category
    when a keyword rule fires, otherwise a plain keyword search.
    """
    category = category_for_task(task_description)
    if category:
        return get_by_category(category)
    return search_by_keyword(task_description)


def controls_for_hazard(hazard: ProcessGeneratedHazard) -> List[ControlMeasure]:
    return [
        ControlMeasure(id=control_id, description=description, hierarchy=hierarchy)
        for control_id, hierarchy, description in _CATEGORY_CONTROLS.get(hazard.hazard_category, [])
    ]


def requires_health_surveillance(hazard: ProcessGeneratedHazard) -> bool:
    return hazard.is_carcinogen or hazard.is_respiratory_sensitiser or hazard.is_asthmagen


def format_process_hazard(hazard: ProcessGeneratedHazard) -> str:
    parts = [f"**{hazard.hazard_name}** ({hazard.hazard_category})"]

    if hazard.has_eh40_wel and hazard.wel_8hr_twa_mgm3:
        parts.append(f"WEL: {hazard.wel_8hr_twa_mgm3:g} mg/m³ (8-hr TWA)")

    classifications = []
    if hazard.is_carcinogen:
        classifications.append("Carcinogen")
    if hazard.is_respiratory_sensitiser:
        classifications.append("Respiratory Sensitiser")
    if hazard.is_asthmagen:
        classifications.append("Asthmagen")
    if hazard.is_skin_sensitiser:
        classifications.append("Skin Sensitiser")
    if classifications:
        parts.append(f"[{', '.join(classifications)}]")

    return " | ".join(parts)
