from coshh.assessment.apf import (
    calculate_apf,
    is_sensitiser_or_carcinogen,
    parse_exposure,
    parse_measurements,
    select_rpe,
    workplace_exposure_limits,
)
from coshh.reference import get_by_name

from conftest import citric_acid_record, tdi_record


def test_limit_strings_are_parsed_with_units():
    assert parse_measurements("50 ppm (191 mg/m³)") == [(50.0, "ppm"), (191.0, "mg/m3")]
    assert parse_measurements(None) == []


def test_exposure_answers():
    assert parse_exposure("about 2.5 mg/m3") == (2.5, "mg/m3")
    assert parse_exposure("120 ppm") == (120.0, "ppm")
    assert parse_exposure("3") == (3.0, "mg/m3")
    assert parse_exposure("unknown") is None
    assert parse_exposure("we don't know") is None


def test_ladder_rounds_up():
    assert select_rpe(3.2).apf == 4
    assert select_rpe(4).apf == 4
    assert select_rpe(11).apf == 20
    assert select_rpe(150).apf == 200
    assert select_rpe(5000).apf == 2000


def test_required_apf_from_exposure_and_wel():
    limits = workplace_exposure_limits([tdi_record()])
    result = calculate_apf((0.5, "mg/m3"), limits, sensitiser_or_carcinogen=True)

    assert result.required is True
    assert result.workplace_exposure_limit == 0.02
    assert result.calculated_apf == 25
    assert result.assigned_apf == 40
    assert result.fit_testing_required is True


def test_exposure_below_wel_needs_no_rpe():
    result = calculate_apf((0.01, "mg/m3"), [(0.02, "mg/m3")], sensitiser_or_carcinogen=True)

    assert result.required is False
    assert result.assigned_apf is None
    assert result.fit_testing_required is False


def test_unknown_exposure_defaults():
    assert calculate_apf(None, [(3.0, "mg/m3")], sensitiser_or_carcinogen=True).assigned_apf == 20
    assert calculate_apf(None, [(3.0, "mg/m3")], sensitiser_or_carcinogen=False).assigned_apf == 10


def test_exposure_in_unit_without_limit_uses_default():
    result = calculate_apf((10.0, "ppm"), [(3.0, "mg/m3")], sensitiser_or_carcinogen=False)

    assert result.assigned_apf == 10
    assert "ppm" in result.basis


def test_lowest_limit_is_used():
    limits = workplace_exposure_limits([tdi_record()], [get_by_name("Hardwood dust")])
    result = calculate_apf((1.0, "mg/m3"), limits, sensitiser_or_carcinogen=True)

    assert result.workplace_exposure_limit == 0.02


def test_sensitiser_detection():
    assert is_sensitiser_or_carcinogen([tdi_record()])
    assert not is_sensitiser_or_carcinogen([citric_acid_record()])
    assert is_sensitiser_or_carcinogen([], [get_by_name("Flour dust")])
