"""Legal citations for change of status to F-1, in plain ASCII for PDF output."""

INA_248 = "Section 248 of the Immigration and Nationality Act"
CFR_248_1 = "8 C.F.R. Section 248.1"
CFR_214_2_F = "8 C.F.R. Section 214.2(f)"

LEGAL_CITATIONS = {
    "INA_248": INA_248,
    "CFR_248_1": CFR_248_1,
    "CFR_214_2_F": CFR_214_2_F,
}


def format_legal_basis() -> str:
    return f"The request is submitted pursuant to {INA_248}, {CFR_248_1}, and {CFR_214_2_F}."
