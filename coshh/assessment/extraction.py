# coshh/assessment/extraction.py
from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from coshh.assessment.schema import SubstanceRecord
from coshh.config import get_settings
from coshh.llm import LLMClient, clean_json_from_llm
from coshh.reference import extract_hazard_codes, suggested_control_measures

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """
    The document could not be turned into a substance record.
    """


@dataclass(frozen=True)
class SDSDocument:
    content: bytes
    mime_type: str = "application/pdf"
    filename: Optional[str] = None

    def as_data_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class SDSExtractor(ABC):
    @abstractmethod
    def extract(self, document: SDSDocument) -> SubstanceRecord:
        """
        Returns the structured SDS data, or raises ExtractionError.
        """
        ...


SYSTEM_PROMPT = (
    "You are an expert Occupational Hygienist specialising in COSHH assessments. "
    "Extract key information from Safety Data Sheets (SDS) following UK HSE guidelines.\n\n"
    "Extract the following information:\n"
    "1. Chemical/Product name\n"
    "2. CAS number(s)\n"
    "3. Supplier information and product code\n"
    "4. Hazard classifications, pictograms and signal words\n"
    "5. Hazard statements (H-codes) and precautionary statements (P-codes) from Section 2\n"
    "6. Physical properties (appearance, odour, pH, flash point)\n"
    "7. Workplace Exposure Limits (WEL) - both long-term (8hr TWA) and short-term (15min)\n"
    "8. First aid measures\n"
    "9. Storage requirements\n"
    "10. Disposal guidance\n\n"
    "Return structured JSON data only."
)

SCHEMA_DESCRIPTION = """
Return a single JSON object with this structure:

{
  "chemical_name": string,
  "cas_number": string or null,
  "supplier": string or null,
  "product_code": string or null,
  "hazards": [
    {"type": string, "hazard_class": string, "pictogram": string or null, "signal_word": string or null},
    ...
  ],
  "h_codes": [string, ...],
  "p_codes": [string, ...],
  "physical_properties": {
    "appearance": string or null,
    "odour": string or null,
    "ph": string or null,
    "flash_point": string or null
  },
  "exposure_limits": [
    {"substance": string, "wel_long_term": string or null, "wel_short_term": string or null, "source": string},
    ...
  ],
  "first_aid": string or null,
  "storage_requirements": string or null,
  "disposal_guidance": string or null
}

For "type", describe the hazard in words (e.g. "respiratory sensitiser", "skin irritant").
Leave fields null or lists empty when the SDS does not state them.
"""


def _document_part(document: SDSDocument) -> Dict[str, Any]:
    if document.mime_type == "application/pdf":
        return {
            "type": "file",
            "file": {
                "filename": document.filename or "sds.pdf",
                "file_data": document.as_data_url(),
            },
        }
    return {
        "type": "image_url",
        "image_url": {"url": document.as_data_url(), "detail": "high"},
    }


def _hazard_text(data: Dict[str, Any]) -> str:
    chunks: List[str] = []
    for hazard in data.get("hazards") or []:
        if isinstance(hazard, dict):
            chunks.extend(str(v) for v in hazard.values() if v)
    return " ".join(chunks)


def _merge_codes(listed: List[str], found: List[str]) -> List[str]:
    merged: List[str] = []
    seen = set()
    for code in list(listed) + list(found):
        key = code.strip().upper()
        if key and key not in seen:
            merged.append(code.strip())
            seen.add(key)
    return merged


def build_substance_record(data: Dict[str, Any]) -> SubstanceRecord:
    """
    Validate raw extraction output and fill in the derived fields:
    H/P codes mentioned only inside hazard text and the COSHH-section
    grouping of the P-phrases.
    """
    if not data.get("chemical_name"):
        raise ExtractionError("No chemical name found in document")

    try:
        record = SubstanceRecord.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(f"Extraction result did not match schema: {e}") from e

    h_from_text, p_from_text = extract_hazard_codes(_hazard_text(data))
    record.h_codes = _merge_codes(record.h_codes, h_from_text)
    record.p_codes = _merge_codes(record.p_codes, p_from_text)
    record.suggested_controls = suggested_control_measures(record.p_codes)
    return record


class LLMSDSExtractor(SDSExtractor):
    """
    Reads an SDS with a vision-capable chat model.
    """

    def __init__(self, llm_client: LLMClient, model: Optional[str] = None):
        self.llm_client = llm_client
        self.model = model or get_settings().vision_model

    def extract(self, document: SDSDocument) -> SubstanceRecord:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": (
                            "Extract all relevant COSHH data from this SDS document. "
                            "Focus on hazards, exposure limits, and control measures.\n"
                            f"{SCHEMA_DESCRIPTION}"
                        ),
                    },
                    _document_part(document),
                ],
            },
        ]

        try:
            raw = self.llm_client.chat(messages, temperature=0.1, model=self.model, json_mode=True)
        except Exception as e:
            raise ExtractionError(f"SDS extraction call failed: {e}") from e

        if not raw:
            raise ExtractionError("No response from extraction model")

        try:
            data = clean_json_from_llm(raw)
        except ValueError as e:
            raise ExtractionError(f"Extraction model returned invalid JSON: {e}") from e

        record = build_substance_record(data)
        logger.info(
            "Extracted SDS for %s (%d H-codes, %d P-codes)",
            record.chemical_name,
            len(record.h_codes),
            len(record.p_codes),
        )
        return record
