# coshh/assessment/messages.py
"""
Chat text shown to the assessor. Kept apart from the state machine so the
wording can change without touching control flow.
"""
from __future__ import annotations

from typing import List, Optional

from coshh.assessment.controls import group_by_hierarchy
from coshh.assessment.schema import RiskAssessment, SubstanceRecord
from coshh.assessment.state import WorkflowState
from coshh.reference.process_hazards import format_process_hazard
from coshh.reference.schema import ControlMeasure, HealthSurveillanceRequirement, ProcessGeneratedHazard

WELCOME = (
    "Welcome! Let's create a new COSHH assessment.\n\n"
    "What kind of hazard are you assessing?\n"
    "1. **SDS** - a chemical substance supplied with a Safety Data Sheet\n"
    "2. **Process** - a hazard generated by the work itself (e.g. welding fume, wood dust)\n"
    "3. **Both** - chemicals and process-generated hazards in the same task\n\n"
    "You can also simply upload an SDS to get started."
)

ASK_FOR_SDS = (
    "Please upload the Safety Data Sheet (SDS) for the chemical substance you're assessing. "
    "I'll extract the key information automatically.\n\n"
    "You can upload a PDF or image file (JPG, PNG)."
)

ASK_FOR_NEXT_SDS = "Please upload the SDS for the next substance."

ASK_FOR_TASK = (
    "Please describe the task or process that generates the hazard "
    "(e.g. 'MIG welding stainless steel', 'sanding hardwood', 'cutting concrete blocks')."
)

ASK_FOR_NEXT_TASK = "Please describe the next task or process-generated hazard."

NO_PROCESS_MATCH = (
    "I couldn't match that to a known process-generated hazard. "
    "Try describing the activity, for example: welding, sanding wood, cutting stone or concrete, "
    "CNC machining with cutting fluid, forklift or diesel engine use, baking with flour, or rubber curing."
)

EXTRACTION_RETRY = (
    "Sorry, I couldn't read that Safety Data Sheet. Please try uploading it again, "
    "ideally as a clear PDF or a sharp image of the hazard identification section."
)

YES_NO_REMINDER = "Please answer **Yes** or **No**."

MORE_SUBSTANCES = "**Are there any other substances used at the same time in this task?** (Yes/No)"
MORE_PROCESS_HAZARDS = "**Are there any other process-generated hazards in this task?** (Yes/No)"

CONFIRM_HAZARDS_REMINDER = (
    "Please reply **Yes** to confirm the hazard information, or reset the assessment "
    "and upload a corrected SDS if something is wrong."
)

CONTROLS_PROMPT = (
    "Please review these control measures. Type **confirm** if they are adequate and feasible, "
    "or add your own with **add: <control measure>**."
)

ASK_FOR_EXPOSURE = (
    "This task involves an inhalation hazard, so I need to work out the respiratory protection required.\n\n"
    "**What is the estimated airborne concentration during the task?** "
    "(e.g. '5 mg/m³', '20 ppm', or 'unknown' if it has not been measured)"
)

EXPOSURE_REMINDER = "Please give a concentration with its unit (e.g. '5 mg/m³' or '20 ppm'), or 'unknown'."

FINAL_REVIEW_PROMPT = "Type **confirm** to generate and save the final assessment."

COMPLETE = "Your COSHH assessment is complete and has been saved."

ALREADY_COMPLETE = "This assessment is already complete. Reset the chat to start a new one."

NOT_UNDERSTOOD = "Sorry, I didn't catch that. "


def format_substance(record: SubstanceRecord) -> str:
    lines = [f"**{record.chemical_name}**"]
    if record.cas_number:
        lines.append(f"CAS: {record.cas_number}")
    if record.supplier:
        lines.append(f"Supplier: {record.supplier}")
    if record.hazards:
        lines.append("Hazards: " + ", ".join(h.type for h in record.hazards))
    if record.h_codes:
        lines.append("H-phrases: " + ", ".join(record.h_codes))
    if record.p_codes:
        lines.append("P-phrases: " + ", ".join(record.p_codes))
    for limit in record.exposure_limits:
        if limit.wel_long_term:
            lines.append(f"WEL (8-hr TWA): {limit.wel_long_term} [{limit.source}]")
    return "\n".join(lines)


def extracted(record: SubstanceRecord) -> str:
    return f"I've extracted the following from the SDS:\n\n{format_substance(record)}\n\n{MORE_SUBSTANCES}"


def process_hazard_added(hazard: ProcessGeneratedHazard) -> str:
    return f"I've added this process-generated hazard:\n\n{format_process_hazard(hazard)}\n\n{MORE_PROCESS_HAZARDS}"


def process_candidates(candidates: List[ProcessGeneratedHazard]) -> str:
    lines = ["I found several possible hazards for that task. Which one applies?", ""]
    for number, hazard in enumerate(candidates, start=1):
        lines.append(f"{number}. {format_process_hazard(hazard)}")
    lines.append("")
    lines.append(f"Reply with a number from 1 to {len(candidates)}.")
    return "\n".join(lines)


def selection_reminder(count: int) -> str:
    return f"Please reply with a number between 1 and {count}."


def confirm_hazards(state: WorkflowState) -> str:
    parts = ["Please review the hazard information for this assessment:", ""]
    if state.substance_records:
        names = ", ".join(record.chemical_name for record in state.substance_records)
        parts.append(f"**Substances ({len(state.substance_records)}):** {names}")
        parts.append("")
        for record in state.substance_records:
            parts.append(format_substance(record))
            parts.append("")
    if state.process_hazards:
        parts.append("**Process-generated hazards:**")
        for hazard in state.process_hazards:
            parts.append(f"- {format_process_hazard(hazard)}")
        parts.append("")
    parts.append("**Is this information correct?** (Yes to confirm)")
    return "\n".join(parts)


def usage_intro(form: Optional[str], routes: List[str]) -> str:
    if not form and not routes:
        return "Thank you for confirming. Let's collect the usage details."
    described = f"a **{form.lower()}** substance" if form else "a substance"
    route_text = ", ".join(routes) if routes else "not stated on the SDS"
    return (
        f"Thank you for confirming. I've identified that this is {described} with potential "
        f"exposure routes: **{route_text}**.\n\nLet's collect the usage details."
    )


def _format_controls(controls: List[ControlMeasure]) -> List[str]:
    lines: List[str] = []
    for level, items in group_by_hierarchy(controls).items():
        if not items:
            continue
        lines.append(f"**{level.capitalize()}**")
        for control in items:
            marker = " (emergency)" if control.category == "emergency" else ""
            lines.append(f"- {control.description}{marker}")
    return lines


def _format_risk(risk: RiskAssessment) -> List[str]:
    lines = [f"**Risk level:** {risk.overall_risk_level} (max score {risk.max_risk_score}/25)"]
    for label, route in (("Inhalation", risk.inhalation), ("Ingestion", risk.ingestion), ("Skin/eye", risk.skin_eye)):
        if route.severity:
            lines.append(f"- {label}: severity {route.severity} x likelihood {route.likelihood} = {route.risk_score}")
    for control in risk.additional_controls_required:
        lines.append(f"- Additional control required: {control}")
    return lines


def _format_surveillance(requirements: List[HealthSurveillanceRequirement]) -> List[str]:
    lines: List[str] = []
    for req in requirements:
        kind = "Mandatory" if req.mandatory else "Recommended"
        lines.append(f"- {req.substance}: {kind}, {req.frequency} ({req.legal_reference})")
    return lines


def control_summary(state: WorkflowState) -> str:
    parts = ["Based on the information provided, here are the recommended control measures:", ""]
    parts.extend(_format_controls(state.control_measures or []))
    if state.risk_assessment is not None:
        parts.append("")
        parts.extend(_format_risk(state.risk_assessment))
    if state.health_surveillance_requirements:
        parts.append("")
        parts.append("**Health surveillance:**")
        parts.extend(_format_surveillance(state.health_surveillance_requirements))
    parts.append("")
    parts.append(CONTROLS_PROMPT)
    return "\n".join(parts)


def final_review(state: WorkflowState, rating: Optional[str]) -> str:
    parts = ["Here is your complete COSHH assessment. Please review carefully.", ""]
    if state.substance_records:
        parts.append("**Substances:** " + ", ".join(r.chemical_name for r in state.substance_records))
    if state.process_hazards:
        parts.append("**Process hazards:** " + ", ".join(h.hazard_name for h in state.process_hazards))
    usage = state.usage_data
    if usage is not None:
        parts.append(f"**Task:** {usage.purpose} ({usage.quantity}, {usage.frequency})")
    env = state.environment_data
    if env is not None:
        parts.append(f"**Ventilation:** {env.ventilation}")
    workers = state.worker_data
    if workers is not None:
        parts.append(f"**Workers exposed:** {workers.number_of_workers}")
    if rating:
        parts.append(f"**Risk rating:** {rating}")
    parts.append(f"**Control measures:** {len(state.control_measures or [])}")
    if state.health_surveillance_requirements:
        parts.append(
            "**Health surveillance:** "
            + ", ".join(req.substance for req in state.health_surveillance_requirements)
        )
    if state.apf_requirements is not None and state.apf_requirements.required:
        apf = state.apf_requirements
        parts.append(f"**RPE:** {apf.recommended_rpe} (APF {apf.assigned_apf})")
    parts.append("")
    parts.append(FINAL_REVIEW_PROMPT)
    return "\n".join(parts)
