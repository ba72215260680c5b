import json

import pytest

from coshh.assessment.extraction import (
    ExtractionError,
    LLMSDSExtractor,
    SDSDocument,
    build_substance_record,
)

from conftest import ScriptedLLM


ACETONE = {
    "chemical_name": "Acetone",
    "cas_number": "67-64-1",
    "hazards": [
        {"type": "flammable liquid", "hazard_class": "Flam. Liq. 2 H225", "signal_word": "Danger"},
        {"type": "eye irritant", "hazard_class": "Eye Irrit. 2 (H319) - use P305+P351+P338"},
    ],
    "h_codes": ["H225", "H336"],
    "p_codes": ["P210", "P280"],
    "exposure_limits": [
        {"substance": "Acetone", "wel_long_term": "500 ppm (1210 mg/m³)", "wel_short_term": "1500 ppm"}
    ],
}


def test_record_picks_up_codes_from_hazard_text():
    record = build_substance_record(ACETONE)

    assert record.chemical_name == "Acetone"
    assert record.h_codes == ["H225", "H336", "H319"]
    assert record.p_codes == ["P210", "P280", "P305+P351+P338"]
    assert record.exposure_limits[0].source == "EH40/2005"


def test_record_groups_suggested_controls():
    record = build_substance_record(ACETONE)

    assert "ppe" in record.suggested_controls
    assert any("protective gloves" in text for text in record.suggested_controls["ppe"])


def test_missing_chemical_name_is_rejected():
    with pytest.raises(ExtractionError):
        build_substance_record({"chemical_name": "", "h_codes": ["H315"]})


def test_schema_mismatch_is_rejected():
    with pytest.raises(ExtractionError):
        build_substance_record({"chemical_name": "X", "hazards": "not a list"})


def test_pdf_is_sent_as_file_part():
    llm = ScriptedLLM(reply=json.dumps(ACETONE))
    extractor = LLMSDSExtractor(llm, model="vision-model")

    record = extractor.extract(SDSDocument(content=b"%PDF-1.4", filename="acetone.pdf"))

    assert record.chemical_name == "Acetone"
    call = llm.calls[0]
    assert call["json_mode"] is True
    assert call["model"] == "vision-model"
    part = call["messages"][1]["content"][1]
    assert part["type"] == "file"
    assert part["file"]["filename"] == "acetone.pdf"
    assert part["file"]["file_data"].startswith("data:application/pdf;base64,")


def test_image_is_sent_as_image_url():
    llm = ScriptedLLM(reply="```json\n" + json.dumps(ACETONE) + "\n```")
    extractor = LLMSDSExtractor(llm, model="vision-model")

    extractor.extract(SDSDocument(content=b"\x89PNG", mime_type="image/png"))

    part = llm.calls[0]["messages"][1]["content"][1]
    assert part["type"] == "image_url"
    assert part["image_url"]["url"].startswith("data:image/png;base64,")


@pytest.mark.parametrize(
    "llm",
    [
        ScriptedLLM(reply=""),
        ScriptedLLM(reply="this is not json"),
        ScriptedLLM(reply="[1, 2, 3]"),
        ScriptedLLM(error=RuntimeError("timeout")),
    ],
)
def test_unusable_model_output_raises_extraction_error(llm):
    extractor = LLMSDSExtractor(llm, model="vision-model")

    with pytest.raises(ExtractionError):
        extractor.extract(SDSDocument(content=b"%PDF-1.4"))
