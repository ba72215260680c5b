# coshh/reference/surveillance.py
"""
Mandatory health surveillance reference list.

Based on COSHH Regulations 2002 (as amended) Schedule 6, Regulation 11
and HSE guidance HSG61.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from coshh.reference.schema import HealthSurveillanceRequirement as Req


_ANNUAL = "At least every 12 months"
_ASTHMA = "Before exposure, then at least every 24 months"
_ASTHMA_CHECKS = ["Health questionnaire", "Respiratory symptom enquiry", "Lung function tests if indicated"]
_SKIN_RESP_CHECKS = ["Health questionnaire", "Respiratory symptom enquiry", "Skin inspection"]
_CHROMATE_CHECKS = ["Medical examination", "Skin inspection", "Respiratory assessment"]
_URINE_CYTOLOGY = ["Medical examination", "Urine cytology"]
_ISOCYANATE_CHECKS = ["Health questionnaire", "Respiratory assessment", "Lung function tests"]
_ISOCYANATE_FREQ = "Before exposure, then at least every 12 months"
_SCHEDULE_6_I = "COSHH Schedule 6, Part I"
_SCHEDULE_6_II = "COSHH Schedule 6, Part II"
_REG_11_HSG61 = "COSHH Regulation 11, HSG61"
_REG_11_EH40 = "COSHH Regulation 11, EH40"

HEALTH_SURVEILLANCE_REQUIREMENTS: List[Req] = [
    # Schedule 6
    Req(substance="Vinyl chloride monomer", cas_numbers=["75-01-4"], frequency=_ANNUAL,
        surveillance_type=["Medical examination", "Clinical assessment", "Biological monitoring"],
        legal_reference=_SCHEDULE_6_I,
        additional_info="Specific medical surveillance required under VCM Regulations"),
    Req(substance="Nitro or amino derivatives of phenol and of benzene or its homologues", frequency=_ANNUAL,
        surveillance_type=["Medical examination", "Blood tests (methaemoglobinaemia)"],
        legal_reference=_SCHEDULE_6_I),
    Req(substance="Potassium chromate", cas_numbers=["7789-00-6"], frequency=_ANNUAL,
        surveillance_type=_CHROMATE_CHECKS, legal_reference=_SCHEDULE_6_I),
    Req(substance="Sodium chromate", cas_numbers=["7775-11-3"], frequency=_ANNUAL,
        surveillance_type=_CHROMATE_CHECKS, legal_reference=_SCHEDULE_6_I),
    Req(substance="Potassium dichromate", cas_numbers=["7778-50-9"], frequency=_ANNUAL,
        surveillance_type=_CHROMATE_CHECKS, legal_reference=_SCHEDULE_6_I),
    Req(substance="Sodium dichromate", cas_numbers=["10588-01-9", "7789-12-0"], frequency=_ANNUAL,
        surveillance_type=_CHROMATE_CHECKS, legal_reference=_SCHEDULE_6_I),
    Req(substance="Chromium VI compounds", frequency=_ANNUAL,
        surveillance_type=_CHROMATE_CHECKS + ["Biological monitoring"], legal_reference=_SCHEDULE_6_I),
    Req(substance="Ortho-toluidine", cas_numbers=["95-53-4"], frequency=_ANNUAL,
        surveillance_type=_URINE_CYTOLOGY, legal_reference=_SCHEDULE_6_I),
    Req(substance="Dianisidine", cas_numbers=["119-90-4"], frequency=_ANNUAL,
        surveillance_type=_URINE_CYTOLOGY, legal_reference=_SCHEDULE_6_I),
    Req(substance="Dichlorobenzidine", cas_numbers=["91-94-1"], frequency=_ANNUAL,
        surveillance_type=_URINE_CYTOLOGY, legal_reference=_SCHEDULE_6_I),
    Req(substance="Auramine", cas_numbers=["492-80-8"], frequency=_ANNUAL,
        surveillance_type=_URINE_CYTOLOGY, legal_reference=_SCHEDULE_6_I),
    Req(substance="Magenta", cas_numbers=["569-61-9"], frequency=_ANNUAL,
        surveillance_type=_URINE_CYTOLOGY, legal_reference=_SCHEDULE_6_I),
    Req(substance="Carbon disulphide", cas_numbers=["75-15-0"], frequency=_ANNUAL,
        surveillance_type=["Medical examination", "Neurological assessment", "Biological monitoring"],
        legal_reference=_SCHEDULE_6_I),
    Req(substance="Benzene", cas_numbers=["71-43-2"], frequency=_ANNUAL,
        surveillance_type=["Medical examination", "Blood tests (FBC)", "Biological monitoring"],
        legal_reference=_SCHEDULE_6_I, additional_info="Full blood count required"),
    # Isocyanates
    Req(substance="Isocyanates (all types)", frequency=_ISOCYANATE_FREQ,
        surveillance_type=_ISOCYANATE_CHECKS, legal_reference=_SCHEDULE_6_II,
        additional_info="Includes MDI, TDI, HDI and all other isocyanates"),
    Req(substance="Methylene diphenyl diisocyanate (MDI)", cas_numbers=["101-68-8", "26447-40-5"],
        frequency=_ISOCYANATE_FREQ, surveillance_type=_ISOCYANATE_CHECKS, legal_reference=_SCHEDULE_6_II),
    Req(substance="Toluene diisocyanate (TDI)", cas_numbers=["584-84-9", "91-08-7", "26471-62-5"],
        frequency=_ISOCYANATE_FREQ, surveillance_type=_ISOCYANATE_CHECKS, legal_reference=_SCHEDULE_6_II),
    Req(substance="Hexamethylene diisocyanate (HDI)", cas_numbers=["822-06-0"],
        frequency=_ISOCYANATE_FREQ, surveillance_type=_ISOCYANATE_CHECKS, legal_reference=_SCHEDULE_6_II),
    Req(substance="Work in compressed air", frequency="Before work, periodically during work",
        surveillance_type=["Medical examination", "Fitness assessment"], legal_reference=_SCHEDULE_6_I,
        additional_info="Work in Compressed Air Regulations 1996 apply"),
    # Occupational asthma
    Req(substance="Flour dust", frequency=_ASTHMA, surveillance_type=_ASTHMA_CHECKS,
        legal_reference=_REG_11_HSG61),
    Req(substance="Grain dust", frequency=_ASTHMA, surveillance_type=_ASTHMA_CHECKS,
        legal_reference=_REG_11_HSG61),
    Req(substance="Wood dust (hardwood)", frequency=_ASTHMA,
        surveillance_type=["Health questionnaire", "Respiratory symptom enquiry", "Nasal examination"],
        legal_reference="COSHH Regulation 11, HSG61, Carcinogen regulations",
        additional_info="Hardwood dust is a known carcinogen"),
    Req(substance="Colophony (rosin)", cas_numbers=["8050-09-7"], frequency=_ASTHMA,
        surveillance_type=_ASTHMA_CHECKS, legal_reference=_REG_11_HSG61),
    Req(substance="Glutaraldehyde", cas_numbers=["111-30-8"], frequency=_ASTHMA,
        surveillance_type=_SKIN_RESP_CHECKS, legal_reference=_REG_11_HSG61),
    Req(substance="Formaldehyde", cas_numbers=["50-00-0"], frequency=_ASTHMA,
        surveillance_type=_SKIN_RESP_CHECKS, legal_reference=_REG_11_HSG61),
    Req(substance="Latex", frequency=_ASTHMA, surveillance_type=_SKIN_RESP_CHECKS,
        legal_reference=_REG_11_HSG61, additional_info="Natural rubber latex proteins"),
    Req(substance="Laboratory animals", frequency=_ASTHMA, surveillance_type=_ASTHMA_CHECKS,
        legal_reference=_REG_11_HSG61, additional_info="Includes rats, mice, guinea pigs, rabbits"),
    Req(substance="Proteolytic enzymes", frequency=_ASTHMA, surveillance_type=_ASTHMA_CHECKS,
        legal_reference=_REG_11_HSG61),
    Req(substance="Epoxy resin systems", frequency=_ASTHMA, surveillance_type=_SKIN_RESP_CHECKS,
        legal_reference=_REG_11_HSG61),
    Req(substance="Acrylates", frequency=_ASTHMA, surveillance_type=_SKIN_RESP_CHECKS,
        legal_reference=_REG_11_HSG61),
    # Biological monitoring
    Req(substance="Lead and inorganic lead compounds", cas_numbers=["7439-92-1"],
        frequency="At least every 12 months, or more frequently",
        surveillance_type=["Blood lead levels", "Medical examination"],
        legal_reference="Control of Lead at Work Regulations 2002",
        additional_info="Blood lead 60 ug/100ml for men, 25 ug/100ml for women of reproductive capacity"),
    Req(substance="Mercury and inorganic mercury compounds", cas_numbers=["7439-97-6"], frequency=_ANNUAL,
        surveillance_type=["Urine mercury levels", "Medical examination", "Neurological assessment"],
        legal_reference=_REG_11_EH40, additional_info="BMGV: Urine mercury 20 umol/mol creatinine"),
    Req(substance="Cadmium and cadmium compounds", cas_numbers=["7440-43-9"], frequency=_ANNUAL,
        surveillance_type=["Urine cadmium levels", "Medical examination", "Kidney function tests"],
        legal_reference=_REG_11_EH40, additional_info="BMGV: Urine cadmium 5 umol/mol creatinine"),
    Req(substance="Arsenic and arsenic compounds", cas_numbers=["7440-38-2"], frequency=_ANNUAL,
        surveillance_type=["Urine arsenic levels", "Medical examination"],
        legal_reference=_REG_11_EH40, additional_info="BMGV: Urine inorganic arsenic 10 umol/mol creatinine"),
    Req(substance="Trichloroethylene", cas_numbers=["79-01-6"], frequency=_ANNUAL,
        surveillance_type=["Biological monitoring", "Medical examination", "Liver function tests"],
        legal_reference=_REG_11_EH40, additional_info="BMGV: Urine trichloroacetic acid 150 mg/L"),
    Req(substance="Aniline", cas_numbers=["62-53-3"], frequency=_ANNUAL,
        surveillance_type=["Blood tests (methaemoglobinaemia)", "Medical examination"],
        legal_reference=_REG_11_EH40, additional_info="BMGV: Total p-aminophenol in urine 50 mg/L"),
    # Carcinogens and fibrogenic dusts
    Req(substance="Respirable crystalline silica (RCS)", cas_numbers=["14808-60-7"],
        frequency="Before exposure, then every 3 years (or more frequently)",
        surveillance_type=["Health questionnaire", "Respiratory assessment", "Chest X-ray", "Lung function tests"],
        legal_reference=_REG_11_HSG61, additional_info="Silicosis risk - construction and quarrying"),
    Req(substance="Asbestos", cas_numbers=["1332-21-4", "12001-29-5"],
        frequency="Before exposure, then at least every 3 years",
        surveillance_type=["Health questionnaire", "Medical examination", "Chest X-ray"],
        legal_reference="Control of Asbestos Regulations 2012",
        additional_info="Specific asbestos medical required"),
    Req(substance="Beryllium", cas_numbers=["7440-41-7"], frequency=_ANNUAL,
        surveillance_type=["Blood beryllium lymphocyte proliferation test", "Chest X-ray", "Lung function tests"],
        legal_reference="COSHH Regulation 11"),
    # Dermatitis
    Req(substance="Cement (wet)", frequency="Before exposure, then periodically (at least annually)",
        surveillance_type=["Skin inspection", "Health questionnaire"],
        legal_reference=_REG_11_HSG61, additional_info="Chromate dermatitis risk"),
    Req(substance="Metalworking fluids", frequency=_ASTHMA,
        surveillance_type=["Skin inspection", "Respiratory symptom enquiry", "Health questionnaire"],
        legal_reference=_REG_11_HSG61),
    # Pesticides
    Req(substance="Organophosphate pesticides", frequency="Before exposure, then every 12 months",
        surveillance_type=["Blood cholinesterase levels", "Medical examination", "Neurological assessment"],
        legal_reference="COSHH Regulation 11", additional_info="Pre-exposure baseline essential"),
]

# Free-text keyword -> canonical entry. First match wins, so order matters.
SURVEILLANCE_KEYWORD_RULES: List[Tuple[str, str]] = [
    ("isocyanate", "Isocyanates (all types)"),
    ("flour", "Flour dust"),
    ("grain", "Grain dust"),
    ("wood dust", "Wood dust (hardwood)"),
    ("hardwood", "Wood dust (hardwood)"),
    ("latex", "Latex"),
    ("epoxy", "Epoxy resin systems"),
    ("acrylate", "Acrylates"),
    ("silica", "Respirable crystalline silica (RCS)"),
    ("asbestos", "Asbestos"),
    ("cement", "Cement (wet)"),
    ("chromate", "Chromium VI compounds"),
    ("chromium", "Chromium VI compounds"),
    ("metalworking fluid", "Metalworking fluids"),
]


def get_requirement(substance: str) -> Optional[Req]:
    for req in HEALTH_SURVEILLANCE_REQUIREMENTS:
        if req.substance == substance:
            return req
    return None


def surveillance_for(substance_name: str, cas_number: Optional[str] = None) -> Optional[Req]:
    """
    Mandatory surveillance entry for a substance, or None.

    Tries an exact CAS match, then a substring match on the name (either
    direction), then the keyword rules.
    """
    cas = (cas_number or "").strip()
    if cas:
        for req in HEALTH_SURVEILLANCE_REQUIREMENTS:
            if cas in req.cas_numbers:
                return req

    name = (substance_name or "").strip().lower()
    if not name:
        return None

    for req in HEALTH_SURVEILLANCE_REQUIREMENTS:
        substance = req.substance.lower()
        if substance in name or name in substance:
            return req

    for keyword, substance in SURVEILLANCE_KEYWORD_RULES:
        if keyword in name:
            return get_requirement(substance)

    return None


def substances_requiring_surveillance(
    substances: Iterable[Tuple[str, Optional[str]]],
) -> List[Req]:
    """
    Surveillance requirements for (name, cas) pairs, one entry per
    canonical substance.
    """
    requirements: List[Req] = []
    added = set()
    for name, cas in substances:
        req = surveillance_for(name, cas)
        if req is not None and req.substance not in added:
            requirements.append(req)
            added.add(req.substance)
    return requirements
