from coshh.reference import (
    controls_for_codes,
    extract_hazard_codes,
    get_by_name,
    group_by_statement_type,
    severities_for_codes,
    substances_requiring_surveillance,
    suggest_for_task,
    suggested_control_measures,
    surveillance_for,
)
from coshh.reference.h_phrases import H_PHRASES, get_h_phrase, get_h_phrases_by_codes
from coshh.reference.process_hazards import (
    category_for_task,
    controls_for_hazard,
    format_process_hazard,
    requires_health_surveillance,
    search_by_keyword,
)
from coshh.reference.schema import PhraseTag


def test_worst_statement_dominates_each_route():
    severities = severities_for_codes(["H315", "H334", "H999"])

    assert severities.inhalation == 4
    assert severities.skin_eye == 2
    assert severities.ingestion == 0


def test_unknown_codes_contribute_nothing():
    severities = severities_for_codes(["H999", "XYZ"])

    assert (severities.inhalation, severities.ingestion, severities.skin_eye, severities.other) == (0, 0, 0, 0)


def test_combined_statements_count_each_part():
    severities = severities_for_codes(["H300+H310"])

    assert severities.ingestion == 5
    assert severities.skin_eye == 5


def test_combined_statements_are_looked_up_by_part():
    assert all("+" not in code for code in H_PHRASES)

    phrases = get_h_phrases_by_codes(["H302+H332", "H332"])
    assert [p.code for p in phrases] == ["H302", "H332"]

    severities = severities_for_codes(["H301+H311+H331"])
    assert (severities.inhalation, severities.ingestion, severities.skin_eye) == (4, 4, 4)


def test_suffixed_codes_fall_back_to_base_statement():
    assert get_h_phrase("h360fd") is not None
    assert get_h_phrase(" H315 ").code == "H315"


def test_hazard_codes_are_found_in_free_text():
    text = "Hazard statements: H315, H319 and H300+H310. Precautions: P280, P305+P351+P338, P280."
    h_codes, p_codes = extract_hazard_codes(text)

    assert h_codes == ["H315", "H319", "H300+H310"]
    assert p_codes == ["P280", "P305+P351+P338"]


def test_precautionary_controls_filtered_by_tag():
    all_phrases = controls_for_codes(["P280", "P261", "P280", "P999"])
    assert [p.code for p in all_phrases] == ["P280", "P261"]

    ppe_only = controls_for_codes(["P280", "P261"], tag=PhraseTag.PPE)
    assert [p.code for p in ppe_only] == ["P280"]


def test_suggested_controls_cover_every_section():
    suggested = suggested_control_measures(["P280"])

    assert set(suggested) == {tag.value for tag in PhraseTag}
    assert suggested["ppe"]
    assert suggested["disposal"] == []


def test_statement_type_grouping():
    grouped = group_by_statement_type(["P280", "P501"])

    assert [p.code for p in grouped["prevention"]] == ["P280"]
    assert [p.code for p in grouped["disposal"]] == ["P501"]


def test_surveillance_matches_by_cas_first():
    req = surveillance_for("Some trade name", "584-84-9")
    assert req.substance == "Toluene diisocyanate (TDI)"


def test_surveillance_matches_by_name_substring():
    req = surveillance_for("Benzene, technical grade")
    assert req.substance == "Benzene"


def test_surveillance_keyword_rule():
    req = surveillance_for("Desmodur isocyanate hardener")
    assert req.substance == "Isocyanates (all types)"


def test_no_surveillance_for_unlisted_substance():
    assert surveillance_for("Water") is None


def test_surveillance_is_deduplicated_by_canonical_substance():
    reqs = substances_requiring_surveillance(
        [("Hardener A isocyanate", None), ("Hardener B isocyanate", None), ("Water", None)]
    )
    assert [r.substance for r in reqs] == ["Isocyanates (all types)"]


def test_task_keywords_pick_a_category():
    assert category_for_task("MIG welding stainless steel") == "Welding fumes"
    assert category_for_task("cutting concrete blocks") == "Silica dust"
    assert category_for_task("writing emails") is None


def test_suggest_for_task_returns_whole_category():
    welding = suggest_for_task("welding")
    assert len(welding) == 4
    assert all(h.hazard_category == "Welding fumes" for h in welding)

    assert [h.hazard_name for h in suggest_for_task("forklift")] == ["Diesel engine exhaust emissions"]


def test_keyword_search_and_lookup_by_name():
    assert [h.hazard_name for h in search_by_keyword("mdf")] == ["MDF dust"]
    assert get_by_name("flour dust").hazard_name == "Flour dust"
    assert get_by_name("unknown") is None


def test_process_hazard_helpers():
    hazard = get_by_name("Hardwood dust")

    assert requires_health_surveillance(hazard)
    assert "Wood dust" in format_process_hazard(hazard)
    assert [c.id for c in controls_for_hazard(hazard)][0] == "WOOD_SHARP_TOOLS"
