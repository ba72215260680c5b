# coshh/assessment/fields.py
"""
Ordered question slots for the data-collection steps.

Every user message fills the next unfilled slot of the current step,
purely by position. A slot can be conditional
(``applies``), in which case it is skipped while the predicate is false.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from coshh.assessment.steps import WorkflowStep


_UNIT_RE = re.compile(r"(\d\s*°?\s*[cf]|°|celsius|fahrenheit)\s*$", re.IGNORECASE)
_INT_RE = re.compile(r"\d+")
_NONE_ANSWERS = {"none", "no", "n/a", "na", "nil", "nothing"}


def is_yes(text: str) -> bool:
    lowered = text.strip().lower()
    return "yes" in lowered or lowered in {"y", "yeah", "yep", "true", "correct"}


def split_list(text: str) -> List[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def has_temperature_unit(temperature: str) -> bool:
    return bool(_UNIT_RE.search(temperature.strip()))


def needs_temperature_unit(data: BaseModel) -> bool:
    temperature = getattr(data, "temperature", None) or ""
    return any(ch.isdigit() for ch in temperature) and not has_temperature_unit(temperature)


def parse_int_lenient(text: str) -> int:
    # Non-numeric answers become 0, which leaves the slot unfilled
    match = _INT_RE.search(text)
    return int(match.group()) if match else 0


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


@dataclass(frozen=True)
class FieldSpec:
    name: str
    prompt: str
    parse: Callable[[BaseModel, str], None]
    is_filled: Optional[Callable[[BaseModel], bool]] = None
    applies: Optional[Callable[[BaseModel], bool]] = None

    def filled(self, data: BaseModel) -> bool:
        if self.is_filled is not None:
            return self.is_filled(data)
        return _has_value(getattr(data, self.name))

    def needed(self, data: BaseModel) -> bool:
        if self.applies is not None and not self.applies(data):
            return False
        return not self.filled(data)


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def _text(name: str) -> Callable[[BaseModel, str], None]:
    def parse(data: BaseModel, message: str) -> None:
        setattr(data, name, message.strip())
    return parse


def _listing(name: str, allow_none: bool = False) -> Callable[[BaseModel, str], None]:
    def parse(data: BaseModel, message: str) -> None:
        if allow_none and message.strip().lower() in _NONE_ANSWERS:
            setattr(data, name, [])
        else:
            setattr(data, name, split_list(message))
    return parse


def _yes_no(name: str) -> Callable[[BaseModel, str], None]:
    def parse(data: BaseModel, message: str) -> None:
        setattr(data, name, is_yes(message))
    return parse


def _parse_environment_description(data: BaseModel, message: str) -> None:
    data.working_environment_description = message.strip()
    if "confined" in message.lower():
        data.confined_space = True


def _parse_temperature_unit(data: BaseModel, message: str) -> None:
    lowered = message.strip().lower()
    unit = "°F" if lowered.startswith("f") or "fahrenheit" in lowered else "°C"
    data.temperature_unit = unit
    data.temperature = f"{data.temperature}{unit}"


def _parse_worker_count(data: BaseModel, message: str) -> None:
    data.number_of_workers = parse_int_lenient(message)


def _list_given(name: str) -> Callable[[BaseModel], bool]:
    def filled(data: BaseModel) -> bool:
        value = getattr(data, name)
        return value is not None
    return filled


def _non_empty_list(name: str) -> Callable[[BaseModel], bool]:
    def filled(data: BaseModel) -> bool:
        return bool(getattr(data, name))
    return filled


def _answered(name: str) -> Callable[[BaseModel], bool]:
    def filled(data: BaseModel) -> bool:
        return getattr(data, name) is not None
    return filled


# ---------------------------------------------------------------------------
# Step schemas
# ---------------------------------------------------------------------------

USAGE_FIELDS: List[FieldSpec] = [
    FieldSpec(
        "purpose",
        "**What is the primary purpose or task for using {substance}?** "
        "(e.g., cleaning, degreasing, parts washing)",
        _text("purpose"),
    ),
    FieldSpec(
        "activities",
        "**What specific activities involve this substance?** Please list them separated by commas "
        "(e.g., cleaning, surface preparation, degreasing).",
        _listing("activities"),
        is_filled=_non_empty_list("activities"),
    ),
    FieldSpec(
        "method_of_use",
        "**How is the substance used or applied?** (e.g., Spray, Hand apply, Pour, "
        "Connecting/disconnecting hose, Generated from task, Cleaning up)",
        _text("method_of_use"),
    ),
    FieldSpec(
        "quantity",
        "**Approximately how much is used per operation?** (e.g., 500ml, 1 litre, 2 litres)",
        _text("quantity"),
    ),
    FieldSpec(
        "frequency",
        "**How frequently is it used?** (e.g., Daily, Weekly, Monthly, Occasionally)",
        _text("frequency"),
    ),
    FieldSpec(
        "duration",
        "**What is the typical duration of exposure per session?** (e.g., 15-30 minutes, 1-2 hours)",
        _text("duration"),
    ),
    FieldSpec(
        "location",
        "**Where is this work carried out?** (e.g., Workshop Area 3, Production Floor, Maintenance Bay)",
        _text("location"),
    ),
]

ENVIRONMENT_FIELDS: List[FieldSpec] = [
    FieldSpec(
        "confined_space",
        "**Is this work carried out in a confined space?** (Yes/No)",
        _yes_no("confined_space"),
        is_filled=_answered("confined_space"),
    ),
    FieldSpec(
        "working_environment_description",
        "**Can you describe the working environment?** (Confined space, Inside, Outside)",
        _parse_environment_description,
    ),
    FieldSpec(
        "ventilation",
        "**What type of ventilation/extraction is in place?** (e.g., Natural ventilation, "
        "Mechanical ventilation, Local Exhaust Ventilation (LEV), None)",
        _text("ventilation"),
    ),
    FieldSpec(
        "temperature",
        "**What is the typical temperature in this area?** (e.g., 20°C, 68°F, Ambient, Hot, Cold)",
        _text("temperature"),
    ),
    FieldSpec(
        "temperature_unit",
        "Is that temperature in **Celsius or Fahrenheit**? (C/F)",
        _parse_temperature_unit,
        applies=needs_temperature_unit,
    ),
    FieldSpec(
        "other_hazards",
        "**Are there any other hazards in the area?** (e.g., noise, hot work, moving vehicles) "
        "- or type 'none'",
        _listing("other_hazards", allow_none=True),
        is_filled=_list_given("other_hazards"),
    ),
]

WORKER_FIELDS: List[FieldSpec] = [
    FieldSpec(
        "who_exposed",
        "**Who will be exposed?** (e.g., Maintenance workers, Production staff)",
        _listing("who_exposed"),
        is_filled=_non_empty_list("who_exposed"),
    ),
    FieldSpec(
        "number_of_workers",
        "**How many workers will potentially be exposed?** (Please provide a number)",
        _parse_worker_count,
        is_filled=lambda data: data.number_of_workers > 0,
    ),
    FieldSpec(
        "training_level",
        "**What is the training level of these workers?** (e.g., COSHH awareness trained, "
        "No formal training, Advanced chemical handling)",
        _text("training_level"),
    ),
    FieldSpec(
        "training_provided",
        "**Has specific training been provided for handling this substance?** (Yes/No)",
        _yes_no("training_provided"),
        is_filled=_answered("training_provided"),
    ),
    FieldSpec(
        "existing_ppe",
        "**What PPE is currently available or being used?** (e.g., Nitrile gloves, Safety glasses) "
        "- or type 'none' if no PPE currently used",
        _listing("existing_ppe", allow_none=True),
        is_filled=_list_given("existing_ppe"),
    ),
    FieldSpec(
        "health_surveillance",
        "**Is health surveillance currently in place for these workers?** (Yes/No)",
        _yes_no("health_surveillance"),
        is_filled=_answered("health_surveillance"),
    ),
]

STEP_FIELDS: Dict[WorkflowStep, List[FieldSpec]] = {
    WorkflowStep.USAGE_DETAILS: USAGE_FIELDS,
    WorkflowStep.ENVIRONMENT_ASSESSMENT: ENVIRONMENT_FIELDS,
    WorkflowStep.WORKER_EXPOSURE: WORKER_FIELDS,
}


def next_unfilled(fields: List[FieldSpec], data: BaseModel) -> Optional[FieldSpec]:
    for spec in fields:
        if spec.needed(data):
            return spec
    return None


def capture(fields: List[FieldSpec], data: BaseModel, message: str) -> Optional[FieldSpec]:
    """
    Put the message into the next unfilled slot. Returns the slot used.
    """
    spec = next_unfilled(fields, data)
    if spec is not None:
        spec.parse(data, message)
    return spec
