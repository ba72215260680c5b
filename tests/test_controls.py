from coshh.assessment.controls import (
    ControlContext,
    P_PHRASE_TO_CONTROLS,
    group_by_hierarchy,
    merge_controls,
    resolve_assessment_controls,
    resolve_controls,
)
from coshh.assessment.schema import Hazard
from coshh.reference import get_by_name


def _context(**kwargs):
    defaults = dict(
        ventilation="Natural ventilation",
        confined_space=False,
        exposure_routes=[],
        substance_form="Liquid",
        hazards=[],
    )
    defaults.update(kwargs)
    return ControlContext(**defaults)


def test_p_codes_map_to_templates_and_unknown_are_dropped():
    controls = resolve_controls(["P280", "P999", "P280", "P501"], _context())

    assert [c.id for c in controls] == ["P280", "P501", "SUPERVISION", "TRAINING"]
    assert controls[0].hierarchy.value == "ppe"


def test_contextual_controls_follow_fixed_order():
    context = _context(
        ventilation="Local exhaust ventilation at the bench",
        confined_space=True,
        exposure_routes=["Inhalation", "Skin contact"],
        hazards=[Hazard(type="respiratory sensitiser", hazard_class="Resp. Sens. 1")],
    )
    controls = resolve_controls(["P284"], context)

    assert [c.id for c in controls] == [
        "P284",
        "LEV_TESTING",
        "CONFINED_SPACE",
        "RPE_FIT_TEST",
        "SKIN_PROTECTION",
        "SUPERVISION",
        "TRAINING",
    ]


def test_fit_testing_needs_both_hazard_and_route():
    hazard_only = _context(hazards=[Hazard(type="respiratory sensitiser", hazard_class="Resp. Sens. 1")])
    route_only = _context(exposure_routes=["Inhalation"], hazards=[Hazard(type="flammable", hazard_class="Flam. Liq. 2")])

    assert "RPE_FIT_TEST" not in [c.id for c in resolve_controls([], hazard_only)]
    assert "RPE_FIT_TEST" not in [c.id for c in resolve_controls([], route_only)]


def test_resolution_is_deterministic():
    context = _context(ventilation="LEV", exposure_routes=["Skin contact"])

    first = resolve_controls(["P260", "P280", "P305+P351+P338"], context)
    second = resolve_controls(["P260", "P280", "P305+P351+P338"], context)

    assert first == second


def test_templates_are_not_shared_between_calls():
    controls = resolve_controls(["P280"], _context())
    controls[0].description = "changed"

    assert P_PHRASE_TO_CONTROLS["P280"].description != "changed"


def test_assessment_controls_merge_substances_and_process_hazards():
    controls = resolve_assessment_controls(
        [["P280", "P261"], ["P280", "P501"]],
        [get_by_name("Hardwood dust")],
        _context(),
    )
    ids = [c.id for c in controls]

    assert ids.count("P280") == 1
    assert ids[:3] == ["P280", "P261", "P501"]
    assert "WOOD_LEV" in ids
    assert ids[-2:] == ["SUPERVISION", "TRAINING"]


def test_merge_keeps_first_occurrence():
    a = resolve_controls(["P280"], _context())
    b = resolve_controls(["P280", "P264"], _context())

    assert [c.id for c in merge_controls(a, b)] == ["P280", "SUPERVISION", "TRAINING", "P264"]


def test_grouping_by_hierarchy_for_display():
    grouped = group_by_hierarchy(resolve_controls(["P280", "P271"], _context()))

    assert list(grouped) == ["elimination", "substitution", "engineering", "administrative", "ppe"]
    assert [c.id for c in grouped["engineering"]] == ["P271"]
    assert [c.id for c in grouped["ppe"]] == ["P280"]
    assert [c.id for c in grouped["administrative"]] == ["SUPERVISION", "TRAINING"]
