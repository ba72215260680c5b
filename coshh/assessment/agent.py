# coshh/assessment/agent.py
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from coshh.assessment import messages
from coshh.assessment.apf import (
    calculate_apf,
    format_apf,
    is_sensitiser_or_carcinogen,
    is_unknown_answer,
    parse_exposure,
    workplace_exposure_limits,
)
from coshh.assessment.controls import ControlContext, resolve_assessment_controls, user_control
from coshh.assessment.extraction import ExtractionError, SDSDocument, SDSExtractor
from coshh.assessment.fields import STEP_FIELDS, capture, is_yes, next_unfilled
from coshh.assessment.likelihood import ChemicalSummary, LikelihoodEstimator, TaskDescription
from coshh.assessment.risk import assess_task_risk, risk_rating
from coshh.assessment.schema import EnvironmentData, PendingSelection, UsageData, WorkerData
from coshh.assessment.state import WorkflowState
from coshh.assessment.steps import STEP_ORDER, HazardSource, WorkflowStep
from coshh.reference import get_h_phrases_by_codes, substances_requiring_surveillance, suggest_for_task
from coshh.reference.process_hazards import requires_health_surveillance
from coshh.reference.schema import HealthSurveillanceRequirement, ProcessGeneratedHazard
from coshh.reference.surveillance import surveillance_for

logger = logging.getLogger(__name__)

INHALATION_KEYWORDS = ("respiratory", "inhalation", "vapour", "dust", "fume", "gas", "mist", "aerosol")

MAX_PROCESS_CANDIDATES = 5

_CONFIRM_WORDS = {"confirm", "confirmed", "yes", "y", "correct", "ok", "okay", "agreed", "agree"}
_NEGATIONS = {"not", "incorrect", "wrong", "don't", "dont"}
_NO_ANSWERS = {"no", "n", "nope", "none", "no more", "that's all", "thats all"}


def _is_no(text: str) -> bool:
    lowered = text.strip().lower().rstrip(".!")
    return lowered in _NO_ANSWERS or lowered.startswith("no ") or lowered.startswith("no,")


def _is_confirmation(text: str) -> bool:
    words = re.findall(r"[a-z']+", text.lower())
    # "no" only negates as the opening word; "yes, no changes" still confirms
    if not words or words[0] in ("no", "nope") or set(words) & _NEGATIONS:
        return False
    return bool(set(words) & _CONFIRM_WORDS) or "looks good" in text.lower()


def _parse_hazard_source(text: str) -> Optional[HazardSource]:
    lowered = text.strip().lower()
    if lowered in ("3",) or "both" in lowered:
        return HazardSource.BOTH
    if lowered in ("2",) or "process" in lowered:
        return HazardSource.PROCESS
    if lowered in ("1",) or any(w in lowered for w in ("sds", "safety data sheet", "substance", "chemical")):
        return HazardSource.SDS
    return None


class CoshhWorkflowAgent:
    """
    Drives one COSHH assessment conversation, one user turn at a time.

    Steps run in a fixed order:
      upload_sds -> confirm_hazard -> usage_details -> environment_assessment
      -> worker_exposure -> control_verification -> [apf_calculation]
      -> final_review -> complete

    apf_calculation is only visited when something in the assessment is an
    inhalation hazard. A step is appended to completed_steps, and the next
    step entered, only once its completion predicate holds. The message
    that completes a step is never also used as data for the next one.

    The agent never touches storage; the caller persists the returned state
    and, once the state is complete, the assembled record.
    """

    def __init__(self, extractor: SDSExtractor, estimator: LikelihoodEstimator):
        self.extractor = extractor
        self.estimator = estimator
        self._handlers: Dict[WorkflowStep, Callable[[WorkflowState, str, Optional[SDSDocument]], str]] = {
            WorkflowStep.UPLOAD_SDS: self._handle_upload,
            WorkflowStep.CONFIRM_HAZARD: self._handle_confirm_hazard,
            WorkflowStep.USAGE_DETAILS: self._handle_fields,
            WorkflowStep.ENVIRONMENT_ASSESSMENT: self._handle_fields,
            WorkflowStep.WORKER_EXPOSURE: self._handle_fields,
            WorkflowStep.CONTROL_VERIFICATION: self._handle_controls,
            WorkflowStep.APF_CALCULATION: self._handle_apf,
            WorkflowStep.FINAL_REVIEW: self._handle_final_review,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> Tuple[WorkflowState, str]:
        return WorkflowState(), messages.WELCOME

    def step(
        self,
        state: WorkflowState,
        message: str = "",
        document: Optional[SDSDocument] = None,
    ) -> Tuple[WorkflowState, str]:
        """
        Apply one user turn. Works on a copy, so the caller's state is
        untouched if anything raises.
        """
        if state.is_complete:
            return state, messages.ALREADY_COMPLETE

        state = state.model_copy(deep=True)
        handler = self._handlers[state.current_step]
        reply = handler(state, message or "", document)
        return state, reply

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    def _handle_upload(self, state: WorkflowState, message: str, document: Optional[SDSDocument]) -> str:
        if state.hazard_source is None:
            if document is not None:
                return self._accept_sds(state, document, source=HazardSource.SDS)
            source = _parse_hazard_source(message)
            if source is None:
                return messages.WELCOME
            state.hazard_source = source
            logger.info("Hazard source chosen: %s", source.value)
            return messages.ASK_FOR_SDS if state.collects_sds() else messages.ASK_FOR_TASK

        if state.collects_sds() and not state.sds_collection_closed:
            return self._collect_sds(state, message, document)

        if state.collects_process() and not state.process_collection_closed:
            return self._collect_process(state, message)

        return self._try_advance(state, messages.WELCOME)

    def _collect_sds(self, state: WorkflowState, message: str, document: Optional[SDSDocument]) -> str:
        if document is not None:
            # A new file while we wait for yes/no is taken as "yes"
            return self._accept_sds(state, document)

        if not state.awaiting_additional_substance:
            return messages.ASK_FOR_SDS

        if is_yes(message):
            state.awaiting_additional_substance = False
            return messages.ASK_FOR_NEXT_SDS
        if _is_no(message):
            state.awaiting_additional_substance = False
            state.sds_collection_closed = True
            if state.collects_process():
                return messages.ASK_FOR_TASK
            return self._try_advance(state, messages.ASK_FOR_SDS)
        return f"{messages.YES_NO_REMINDER} {messages.MORE_SUBSTANCES}"

    def _accept_sds(
        self,
        state: WorkflowState,
        document: SDSDocument,
        source: Optional[HazardSource] = None,
    ) -> str:
        try:
            record = self.extractor.extract(document)
        except ExtractionError:
            logger.warning("SDS extraction failed for %s", document.filename or "upload", exc_info=True)
            return messages.EXTRACTION_RETRY

        if source is not None:
            state.hazard_source = source
        state.substance_records.append(record)
        state.awaiting_additional_substance = True
        return messages.extracted(record)

    def _collect_process(self, state: WorkflowState, message: str) -> str:
        if state.pending_selection is not None:
            return self._resolve_selection(state, message)

        if state.awaiting_additional_process_hazard:
            if is_yes(message):
                state.awaiting_additional_process_hazard = False
                return messages.ASK_FOR_NEXT_TASK
            if _is_no(message):
                state.awaiting_additional_process_hazard = False
                state.process_collection_closed = True
                return self._try_advance(state, messages.ASK_FOR_TASK)
            return f"{messages.YES_NO_REMINDER} {messages.MORE_PROCESS_HAZARDS}"

        candidates = suggest_for_task(message)
        if not candidates:
            return messages.NO_PROCESS_MATCH
        if len(candidates) == 1:
            return self._add_process_hazard(state, candidates[0])

        shown = candidates[:MAX_PROCESS_CANDIDATES]
        state.pending_selection = PendingSelection(
            candidates=shown,
            prompted_at=datetime.now(timezone.utc).isoformat(),
        )
        return messages.process_candidates(shown)

    def _resolve_selection(self, state: WorkflowState, message: str) -> str:
        candidates = state.pending_selection.candidates
        text = message.strip().rstrip(".")
        if not text.isdigit() or not 1 <= int(text) <= len(candidates):
            return messages.selection_reminder(len(candidates))
        state.pending_selection = None
        return self._add_process_hazard(state, candidates[int(text) - 1])

    def _add_process_hazard(self, state: WorkflowState, hazard: ProcessGeneratedHazard) -> str:
        if all(existing.hazard_name != hazard.hazard_name for existing in state.process_hazards):
            state.process_hazards.append(hazard)
        state.awaiting_additional_process_hazard = True
        return messages.process_hazard_added(hazard)

    def _handle_confirm_hazard(self, state: WorkflowState, message: str, document: Optional[SDSDocument]) -> str:
        if _is_confirmation(message):
            state.hazards_confirmed = True
        return self._try_advance(state, messages.CONFIRM_HAZARDS_REMINDER)

    def _handle_fields(self, state: WorkflowState, message: str, document: Optional[SDSDocument]) -> str:
        fields = STEP_FIELDS[state.current_step]
        data = self._bucket(state)
        used = capture(fields, data, message)

        upcoming = next_unfilled(fields, data)
        if upcoming is not None:
            prompt = self._prompt(state, upcoming.prompt)
            # Same slot again means the answer was not usable
            if used is not None and upcoming.name == used.name:
                return messages.NOT_UNDERSTOOD + prompt
            return prompt
        return self._try_advance(state, messages.NOT_UNDERSTOOD)

    def _handle_controls(self, state: WorkflowState, message: str, document: Optional[SDSDocument]) -> str:
        text = message.strip()
        if text.lower().startswith("add:"):
            description = text[4:].strip()
            if not description:
                return messages.CONTROLS_PROMPT
            controls = state.control_measures or []
            controls.append(user_control(description, len(controls) + 1))
            state.control_measures = controls
            return f"Added: {description}\n\n{messages.CONTROLS_PROMPT}"

        if _is_confirmation(text):
            state.validated = True
        return self._try_advance(state, messages.CONTROLS_PROMPT)

    def _handle_apf(self, state: WorkflowState, message: str, document: Optional[SDSDocument]) -> str:
        exposure = parse_exposure(message)
        if exposure is None and not is_unknown_answer(message):
            return messages.EXPOSURE_REMINDER

        state.apf_requirements = calculate_apf(
            exposure,
            workplace_exposure_limits(state.substance_records, state.process_hazards),
            is_sensitiser_or_carcinogen(state.substance_records, state.process_hazards),
        )
        reply = self._try_advance(state, messages.EXPOSURE_REMINDER)
        return f"{format_apf(state.apf_requirements)}\n\n{reply}"

    def _handle_final_review(self, state: WorkflowState, message: str, document: Optional[SDSDocument]) -> str:
        if _is_confirmation(message):
            state.final_confirmed = True
        return self._try_advance(state, messages.FINAL_REVIEW_PROMPT)

    # ------------------------------------------------------------------
    # Step transitions
    # ------------------------------------------------------------------

    def is_step_complete(self, state: WorkflowState) -> bool:
        step = state.current_step
        if step == WorkflowStep.UPLOAD_SDS:
            if state.hazard_source is None:
                return False
            sds_done = not state.collects_sds() or (bool(state.substance_records) and state.sds_collection_closed)
            process_done = not state.collects_process() or (
                bool(state.process_hazards) and state.process_collection_closed
            )
            return sds_done and process_done
        if step == WorkflowStep.CONFIRM_HAZARD:
            return state.hazards_confirmed
        if step == WorkflowStep.USAGE_DETAILS:
            usage = state.usage_data
            return usage is not None and bool(usage.purpose and usage.quantity and usage.frequency) and (
                next_unfilled(STEP_FIELDS[step], usage) is None
            )
        if step == WorkflowStep.ENVIRONMENT_ASSESSMENT:
            env = state.environment_data
            return (
                env is not None
                and bool(env.ventilation and env.working_environment_description and env.temperature)
                and env.confined_space is not None
                and env.other_hazards is not None
                and next_unfilled(STEP_FIELDS[step], env) is None
            )
        if step == WorkflowStep.WORKER_EXPOSURE:
            workers = state.worker_data
            return workers is not None and workers.number_of_workers > 0 and (
                next_unfilled(STEP_FIELDS[step], workers) is None
            )
        if step == WorkflowStep.CONTROL_VERIFICATION:
            return bool(state.control_measures) and state.validated
        if step == WorkflowStep.APF_CALCULATION:
            return state.apf_requirements is not None
        if step == WorkflowStep.FINAL_REVIEW:
            return state.final_confirmed
        return step == WorkflowStep.COMPLETE

    def next_step(self, state: WorkflowState) -> WorkflowStep:
        index = STEP_ORDER.index(state.current_step) + 1
        if index >= len(STEP_ORDER):
            return WorkflowStep.COMPLETE
        step = STEP_ORDER[index]
        if step == WorkflowStep.APF_CALCULATION and not has_inhalation_hazard(state):
            step = STEP_ORDER[index + 1]
        return step

    def _try_advance(self, state: WorkflowState, otherwise: str) -> str:
        if not self.is_step_complete(state):
            return otherwise

        finished = state.current_step
        state.completed_steps.append(finished)
        state.current_step = self.next_step(state)
        logger.info("Workflow step %s -> %s", finished.value, state.current_step.value)
        return self._enter_step(state)

    def _enter_step(self, state: WorkflowState) -> str:
        step = state.current_step
        if step == WorkflowStep.CONFIRM_HAZARD:
            return messages.confirm_hazards(state)
        if step == WorkflowStep.USAGE_DETAILS:
            state.usage_data = self._prefilled_usage(state)
            first = next_unfilled(STEP_FIELDS[step], state.usage_data)
            intro = messages.usage_intro(state.usage_data.substance_form, state.usage_data.exposure_routes)
            return f"{intro}\n\n{self._prompt(state, first.prompt)}"
        if step == WorkflowStep.ENVIRONMENT_ASSESSMENT:
            state.environment_data = EnvironmentData()
            first = next_unfilled(STEP_FIELDS[step], state.environment_data)
            return f"Now I need to understand the working environment.\n\n{first.prompt}"
        if step == WorkflowStep.WORKER_EXPOSURE:
            state.worker_data = WorkerData()
            first = next_unfilled(STEP_FIELDS[step], state.worker_data)
            return f"Next, some questions about the workers involved.\n\n{first.prompt}"
        if step == WorkflowStep.CONTROL_VERIFICATION:
            self._derive_controls(state)
            return messages.control_summary(state)
        if step == WorkflowStep.APF_CALCULATION:
            return messages.ASK_FOR_EXPOSURE
        if step == WorkflowStep.FINAL_REVIEW:
            rating = None
            if state.risk_assessment is not None:
                rating = risk_rating(state.risk_assessment.max_risk_score)
            return messages.final_review(state, rating)
        return messages.COMPLETE

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _bucket(self, state: WorkflowState):
        if state.current_step == WorkflowStep.USAGE_DETAILS:
            if state.usage_data is None:
                state.usage_data = self._prefilled_usage(state)
            return state.usage_data
        if state.current_step == WorkflowStep.ENVIRONMENT_ASSESSMENT:
            if state.environment_data is None:
                state.environment_data = EnvironmentData()
            return state.environment_data
        if state.worker_data is None:
            state.worker_data = WorkerData()
        return state.worker_data

    def _prompt(self, state: WorkflowState, template: str) -> str:
        if state.primary_substance is not None:
            name = state.primary_substance.chemical_name
        elif state.process_hazards:
            name = state.process_hazards[0].hazard_name.lower()
        else:
            name = "this substance"
        return template.format(substance=name)

    def _prefilled_usage(self, state: WorkflowState) -> UsageData:
        return UsageData(substance_form=substance_form(state), exposure_routes=exposure_routes(state))

    def _derive_controls(self, state: WorkflowState) -> None:
        usage = state.usage_data or UsageData()
        env = state.environment_data or EnvironmentData()
        context = ControlContext(
            ventilation=env.ventilation,
            confined_space=bool(env.confined_space),
            exposure_routes=list(usage.exposure_routes),
            substance_form=usage.substance_form,
            hazards=[hazard for record in state.substance_records for hazard in record.hazards],
        )
        state.control_measures = resolve_assessment_controls(
            [record.p_codes for record in state.substance_records],
            state.process_hazards,
            context,
        )
        state.health_surveillance_requirements = surveillance_requirements(state)
        state.risk_assessment = assess_task_risk(
            task_description(state),
            self.estimator,
            state.process_hazards,
        )


# ----------------------------------------------------------------------
# Derived data
# ----------------------------------------------------------------------

def _is_health_statement(code: str) -> bool:
    code = code.upper()
    return code.startswith("H3") or code.startswith("EUH")


def has_inhalation_hazard(state: WorkflowState) -> bool:
    """
    True when any hazard type, health hazard statement or process hazard
    mentions an inhalation keyword. Physical hazard statements (H2xx) are
    left out: "flammable liquid and vapour" is not an inhalation hazard.
    """
    texts: List[str] = []
    for record in state.substance_records:
        texts.extend(hazard.type for hazard in record.hazards)
        texts.extend(
            phrase.description
            for phrase in get_h_phrases_by_codes(record.h_codes)
            if _is_health_statement(phrase.code)
        )
    for hazard in state.process_hazards:
        if hazard.inhalation_severity > 0:
            return True
        texts.append(f"{hazard.physical_form} {hazard.hazard_name}")

    lowered = " ".join(texts).lower()
    return any(keyword in lowered for keyword in INHALATION_KEYWORDS)


def substance_form(state: WorkflowState) -> Optional[str]:
    record = state.primary_substance
    if record is None:
        if state.process_hazards:
            return state.process_hazards[0].physical_form
        return None
    if record.physical_properties is None or not record.physical_properties.appearance:
        return None
    appearance = record.physical_properties.appearance.lower()
    if "liquid" in appearance:
        return "Liquid"
    if "gas" in appearance:
        return "Gas"
    if "solid" in appearance or "powder" in appearance:
        return "Solid/Powder"
    return "Liquid"


def exposure_routes(state: WorkflowState) -> List[str]:
    first_aid = " ".join(record.first_aid or "" for record in state.substance_records).lower()
    hazards = " ".join(
        hazard.type for record in state.substance_records for hazard in record.hazards
    ).lower()

    routes: List[str] = []
    if "inhalation" in first_aid or "respiratory" in hazards or "inhalation" in hazards or state.process_hazards:
        routes.append("Inhalation")
    skin_process = any(h.skin_eye_severity > 0 for h in state.process_hazards)
    if "skin" in first_aid or "skin" in hazards or "dermal" in hazards or skin_process:
        routes.append("Skin contact")
    if "eye" in first_aid or "eye" in hazards:
        routes.append("Eye contact")
    if "ingestion" in first_aid or "swallowed" in first_aid:
        routes.append("Ingestion")
    return routes


def _process_surveillance(hazard: ProcessGeneratedHazard) -> Optional[HealthSurveillanceRequirement]:
    matched = surveillance_for(hazard.hazard_name)
    if matched is not None:
        return matched
    if not requires_health_surveillance(hazard):
        return None
    checks = ["Health questionnaire", "Respiratory symptom enquiry"]
    if hazard.is_asthmagen or hazard.is_respiratory_sensitiser:
        checks.append("Lung function tests if indicated")
    return HealthSurveillanceRequirement(
        substance=hazard.hazard_name,
        mandatory=True,
        frequency="Before exposure, then at least every 12 months",
        surveillance_type=checks,
        legal_reference="COSHH Regulation 11",
        additional_info=hazard.health_effects,
    )


def surveillance_requirements(state: WorkflowState) -> List[HealthSurveillanceRequirement]:
    """
    One requirement per canonical substance across every SDS and process hazard.
    """
    requirements = substances_requiring_surveillance(
        (record.chemical_name, record.cas_number) for record in state.substance_records
    )
    seen = {req.substance for req in requirements}
    for hazard in state.process_hazards:
        req = _process_surveillance(hazard)
        if req is not None and req.substance not in seen:
            requirements.append(req)
            seen.add(req.substance)
    return requirements


def task_description(state: WorkflowState) -> TaskDescription:
    usage = state.usage_data or UsageData()
    env = state.environment_data or EnvironmentData()
    workers = state.worker_data or WorkerData()

    description_parts = [usage.method_of_use or "", ", ".join(usage.activities or [])]
    environment_parts = [env.working_environment_description or "", f"ventilation: {env.ventilation or 'unknown'}"]
    if env.temperature:
        environment_parts.append(f"temperature: {env.temperature}")

    chemicals = [
        ChemicalSummary(
            name=record.chemical_name,
            cas_number=record.cas_number,
            physical_state=(record.physical_properties.appearance if record.physical_properties else None)
            or usage.substance_form,
            quantity_used=usage.quantity,
            h_codes=record.h_codes,
        )
        for record in state.substance_records
    ]
    chemicals.extend(
        ChemicalSummary(name=hazard.hazard_name, physical_state=hazard.physical_form, h_codes=hazard.equivalent_h_codes)
        for hazard in state.process_hazards
    )

    existing = list(workers.existing_ppe or [])
    if env.ventilation:
        existing.append(env.ventilation)

    return TaskDescription(
        task_type=state.hazard_source.value if state.hazard_source else "chemical use",
        task_name=usage.purpose or "COSHH task",
        description="; ".join(part for part in description_parts if part) or None,
        duration=usage.duration,
        frequency=usage.frequency,
        environment="; ".join(part for part in environment_parts if part),
        existing_controls=existing,
        chemicals=chemicals,
    )
