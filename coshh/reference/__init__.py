# coshh/reference/__init__.py
from .h_phrases import H_PHRASES, severities_for_codes, extract_hazard_codes, get_h_phrases_by_codes
from .p_phrases import P_PHRASES, controls_for_codes, suggested_control_measures, group_by_statement_type
from .surveillance import surveillance_for, substances_requiring_surveillance
from .process_hazards import search_by_keyword, get_by_name, suggest_for_task

__all__ = [
    "H_PHRASES",
    "severities_for_codes",
    "extract_hazard_codes",
    "get_h_phrases_by_codes",
    "P_PHRASES",
    "controls_for_codes",
    "suggested_control_measures",
    "group_by_statement_type",
    "surveillance_for",
    "substances_requiring_surveillance",
    "search_by_keyword",
    "get_by_name",
    "suggest_for_task",
]
