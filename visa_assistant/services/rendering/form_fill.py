"""Form I-539 auto-fill.

Three strategies, tried in order:

1. Fill AcroForm widgets, matching each logical field against candidate
   names and labels (first match wins, with exclusions).
2. Draw text at fixed coordinates when the form has no widgets.
3. Return the untouched blank form with ``filled=False`` when the PDF
   cannot be parsed at all.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

import fitz  # PyMuPDF

from visa_assistant.core.exceptions import APIClientError
from visa_assistant.schemas.aggregation import AggregatedApplicationData
from visa_assistant.schemas.application import Address
from visa_assistant.services.rendering.form_source import FormSource
from visa_assistant.services.rendering.sanitize import sanitize_for_pdf
from visa_assistant.utils.dates import format_uscis_date
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

REQUESTED_STATUS = "F-1"
DEFAULT_CURRENT_STATUS = "F-1"
DURATION_OF_STATUS = "D/S"
MAX_FIELD_LENGTH = 65535
OVERLAY_FONT = "helv"

# The admission number must never land in a mailing address field
ADDRESS_EXCLUSIONS = (
    "CareOf", "Care Of", "In Care Of", "InCareOf", "Mailing", "Street",
    "City", "State", "ZIP", "Apt", "Physical", "Address",
)
PASSPORT_NUMBER_EXCLUSIONS = ("Expir", "Expiration", "Expiry", "Country", "14a", "14b")


@dataclass
class PersonName:
    family: str = ""
    given: str = ""
    middle: str = ""


@dataclass
class FormContext:
    """Values the I-539 needs, resolved once from the aggregated application."""

    name: PersonName
    address: Address
    country_of_birth: str = ""
    nationality: str = ""
    date_of_birth: str = ""
    date_of_last_arrival: str = ""
    admission_number: str = ""
    passport_number: str = ""
    passport_expiration: str = ""
    current_status: str = DEFAULT_CURRENT_STATUS
    status_expiration: str = DURATION_OF_STATUS
    requested_status: str = REQUESTED_STATUS
    effective_date: str = ""
    people_in_group: str = "1"
    school_name: str = ""
    sevis_id: str = ""
    extend_until: str = ""
    email: str = ""
    signature_date: str = ""
    gender: str = ""


@dataclass
class TextRule:
    candidates: Sequence[str]
    value: str
    exclude: Sequence[str] = ()


@dataclass
class CheckRule:
    candidates: Sequence[str]
    checked: bool


@dataclass
class Overlay:
    """Text placed in PDF user space (origin bottom-left, y upwards)."""

    page: int
    x: float
    y: float
    text: str
    size: float = 10


@dataclass
class FormFillResult:
    success: bool
    filled: bool = False
    pdf_bytes: Optional[bytes] = None
    error: Optional[str] = None
    method: Optional[str] = None
    unmatched_fields: List[str] = field(default_factory=list)


def parse_full_name(data: AggregatedApplicationData) -> PersonName:
    """Split the applicant's name: family is the last token, given the first, middle the rest."""
    documents = data.documents
    raw = (
        (documents.passport.name if documents.passport else None)
        or (documents.i94.name if documents.i94 else None)
        or (documents.i20.student_name if documents.i20 else None)
        or data.user.full_name
        or " ".join(p for p in (data.user.last_name, data.user.first_name) if p)
        or ""
    )
    parts = str(raw).split()
    if not parts:
        return PersonName()
    if len(parts) == 1:
        return PersonName(family=parts[0])
    return PersonName(family=parts[-1], given=parts[0], middle=" ".join(parts[1:-1]))


def build_form_context(data: AggregatedApplicationData, today: Optional[date] = None) -> FormContext:
    documents = data.documents
    passport = documents.passport
    i94 = documents.i94
    i20 = documents.i20
    country = data.application.country or ""

    return FormContext(
        name=parse_full_name(data),
        address=data.application.current_address or Address(),
        country_of_birth=(passport.place_of_birth if passport else None) or country,
        nationality=(passport.nationality if passport else None) or country,
        date_of_birth=format_uscis_date(
            (passport.date_of_birth if passport else None) or (i20.date_of_birth if i20 else None)
        ),
        date_of_last_arrival=format_uscis_date(i94.date_of_admission if i94 else None),
        admission_number=(i94.admission_number if i94 else None) or "",
        passport_number=(passport.passport_number if passport else None) or "",
        passport_expiration=format_uscis_date(passport.expiry_date if passport else None),
        current_status=(i94.class_of_admission if i94 else None) or DEFAULT_CURRENT_STATUS,
        status_expiration=format_uscis_date(i94.admit_until_date if i94 else None) or DURATION_OF_STATUS,
        effective_date=format_uscis_date(i20.start_date if i20 else None),
        school_name=(i20.school_name if i20 else None) or "",
        sevis_id=(i20.sevis_id if i20 else None) or "",
        extend_until=format_uscis_date(i20.end_date if i20 else None),
        email=data.user.email or "",
        signature_date=(today or date.today()).strftime("%m/%d/%Y"),
        gender=((passport.gender if passport else None) or "").lower(),
    )


def text_rules(ctx: FormContext) -> List[TextRule]:
    """Candidate field names per value, most specific first.

    Candidates cover the official ``p01_num_XXX`` names, names produced by
    XFA conversion tools and the printed item labels.
    """
    name = ctx.name
    addr = ctx.address
    return [
        TextRule(["p01_num_001", "FamilyName", "Family Name", "LastName", "1a", "Family", "Line1a", "Last Name"], name.family),
        TextRule(["p01_num_002", "GivenName", "Given Name", "FirstName", "1b", "Given", "Line1b", "First Name"], name.given),
        TextRule(["p01_num_003", "MiddleName", "Middle Name", "1c", "Middle", "Line1c", "if applicable"], name.middle),
        TextRule(["In Care Of", "InCareOf", "p01_num_006", "4a", "CareOf"], ""),
        TextRule(["p01_num_007", "Street", "Street Number and Name", "StreetNumber", "4b", "Line4_Street"], addr.street),
        TextRule(["p01_num_008", "Apt", "AptSteFlr", "4c", "Apt. Ste. Flr", "Ste", "Flr"], ""),
        TextRule(["p01_num_009", "City", "City or Town", "4d", "CityOrTown", "Line4_City"], addr.city),
        TextRule(["p01_num_010", "State", "4e", "Line4_State"], addr.state),
        TextRule(["p01_num_011", "ZIP", "ZIPCode", "4f", "ZIP Code", "Line4_ZIP"], addr.zip_code),
        TextRule(
            ["p01_num_017", "CountryOfBirth", "Country of Birth", "6", "CoBirth", "Line6", "Item6", "Part1_6"],
            ctx.country_of_birth,
        ),
        TextRule(
            ["p01_num_018", "CountryOfCitizenship", "Country of Citizenship", "Nationality", "7", "Line7",
             "Citizenship", "Item7", "Part1_7"],
            ctx.nationality,
        ),
        TextRule(
            ["p01_num_019", "DateOfBirth", "Date of Birth", "8", "DOB", "Line8", "Item8", "Part1_8", "Date of Birth (mm"],
            ctx.date_of_birth,
        ),
        TextRule(
            ["p01_num_021", "DateOfLastArrival", "Date of Last Arrival", "10", "DateLastArrival", "Line10",
             "Last Arrival", "Item10", "Part1_10", "Last Arrival Into the United States"],
            ctx.date_of_last_arrival,
        ),
        TextRule(
            ["p01_num_022", "I94", "I-94", "I_94", "11", "AdmissionNumber", "AdmissionNo", "AdmNumber", "I94Number",
             "I94_Number", "Arrival-Departure", "Form I-94", "FormI94", "Item11", "Item_11", "Part1_11", "Pt1_11", "1.11"],
            ctx.admission_number,
            exclude=ADDRESS_EXCLUSIONS,
        ),
        TextRule(
            ["p01_num_023", "PassportNumber", "Passport Number", "Passport No", "PassportNo", "Passport_Number",
             "PassportNum", "12", "Item12", "Item_12", "Part1_12", "Pt1_12", "Passport Number (if any)",
             "Passport(if any)", "Passport#", "Passport #", "Doc. No.", "DocNo", "Doc_No", "12 -"],
            ctx.passport_number,
            exclude=PASSPORT_NUMBER_EXCLUSIONS,
        ),
        TextRule(
            ["p01_num_025", "CountryOfPassport", "Country of Passport", "CountryPassport", "PassportCountry", "14a",
             "CoPassport", "Passport Issuance", "PassportIssuance", "Travel Document Issuance", "Item14a",
             "Part1_14a", "Pt1_14a", "Issuance"],
            ctx.nationality,
        ),
        TextRule(
            ["p01_num_026", "PassportExpiration", "Passport Expiration", "14b", "Expiration", "Expiry",
             "Travel Document Expiration", "Passport or Travel Document Expiration", "Item14b", "Part1_14b",
             "Expiration Date (mm", "Validity"],
            ctx.passport_expiration,
        ),
        TextRule(
            ["p01_num_027", "CurrentStatus", "Current Nonimmigrant Status", "Nonimmigrant", "15a", "Status",
             "Item15a", "Item_15a", "Part1_15a", "Pt1_15a", "ClassOfAdmission"],
            ctx.current_status,
        ),
        TextRule(
            ["p01_num_028", "StatusExpiration", "Date Status Expires", "StatusExp", "DateExpires", "15b", "D/S",
             "Status Expires", "Item15b", "Item_15b", "Part1_15b", "Pt1_15b", "Date Status Expires (mm"],
            ctx.status_expiration,
        ),
        TextRule(
            ["p02_num_001", "ChangeTo", "Change to", "Changeto", "change my status", "requesting to change",
             "status or employer", "ToStatus", "RequestedStatus", "NewStatus", "F-1", "F1", "ToF1", "Pt2_1", "Part2_1"],
            ctx.requested_status,
        ),
        TextRule(
            ["p02_num_002", "EffectiveDate", "ChangeEffective", "Effective", "change to be effective", "effective date"],
            ctx.effective_date,
        ),
        TextRule(
            ["p02_num_003", "TotalNumber", "Total number", "Total", "total number of people", "people (including"],
            ctx.people_in_group,
        ),
        TextRule(
            ["p02_num_004", "SchoolName", "School", "name of the school", "school you will attend", "Institution",
             "University", "College", "NameOfSchool", "Pt2_4", "Part2_5", "Item_5", "Item5"],
            ctx.school_name,
        ),
        TextRule(
            ["p02_num_005", "SEVIS", "SEVISID", "SEVIS ID", "SEVISNumber", "SEVIS_Number", "SevisId", "Sevis",
             "Student and Exchange Visitor", "Pt2_6", "Part2_6", "Item_6", "Item6"],
            ctx.sevis_id,
        ),
        TextRule(
            ["p03_num_001", "ExtendUntil", "ExtensionUntil", "extended until", "extend until", "extended until (mm",
             "Part3_1", "Part3_Extend", "ExtensionDate", "UntilDate", "RequestedEnd", "Pt3_1"],
            ctx.extend_until,
        ),
        TextRule(["Applicant's Email", "Email Address", "Email", "Pt5_3", "5_3", "Part5_Email", "contact email"], ctx.email),
        TextRule(
            ["Date of Signature", "DateOfSignature", "Signature Date", "SigDate", "DateSig", "SignDate", "Pt5_4",
             "5_4", "Part5_4", "Date of Signature (mm", "ApplicantDate", "Pt5Item4", "5.Item4"],
            ctx.signature_date,
        ),
        TextRule(["Daytime Telephone", "Daytime", "Telephone Number", "Phone", "Pt5_1", "5_1", "Applicant's Daytime"], ""),
        TextRule(["Mobile Telephone", "Mobile Number", "Mobile", "Pt5_2", "5_2", "Applicant's Mobile"], ""),
    ]


def check_rules(ctx: FormContext) -> List[CheckRule]:
    rules = [
        CheckRule(["p02_chk_001", "ChangeOfStatus", "Change", "change of status", "A change of status"], True),
        CheckRule(["p02_chk_002", "Extension", "An extension", "extension of stay"], False),
        CheckRule(["p02_chk_003", "Reinstatement", "Reinstatement to student"], False),
        CheckRule(
            ["p01_chk_003", "SameAsMailing", "MailingSamePhysical", "PhysicalSame", "same as your physical",
             "mailing address the same", "5. Yes", "Item5_Yes"],
            True,
        ),
        CheckRule(
            ["OnlyApplicant", "Only applicant", "only applicant", "I am the only", "Item3_Only", "p02_chk_004",
             "3. I am the only"],
            True,
        ),
    ]
    if ctx.gender in ("m", "male"):
        rules.append(CheckRule(["p01_chk_001", "Male", "Gender_M", "Gender", "M"], True))
    elif ctx.gender in ("f", "female"):
        rules.append(CheckRule(["p01_chk_002", "Female", "Gender_F", "F"], True))
    return rules


def overlay_items(ctx: FormContext) -> List[Overlay]:
    """Fixed positions on the official XFA edition, for forms without widgets."""
    name = ctx.name
    addr = ctx.address
    placements = [
        # Part 1, page 1
        (0, 72, 698, name.family),
        (0, 190, 698, name.given),
        (0, 300, 698, name.middle),
        (0, 72, 658, addr.street),
        (0, 72, 638, addr.city),
        (0, 200, 638, addr.state),
        (0, 280, 638, addr.zip_code),
        (0, 72, 598, ctx.country_of_birth),
        (0, 240, 598, ctx.nationality),
        (0, 380, 598, ctx.date_of_birth),
        (0, 72, 576, ctx.date_of_last_arrival),
        (0, 200, 576, ctx.admission_number),
        (0, 72, 554, ctx.passport_number),
        (0, 220, 554, ctx.nationality),
        (0, 360, 554, ctx.passport_expiration),
        (0, 72, 532, ctx.current_status),
        (0, 220, 532, ctx.status_expiration),
        # Parts 2 and 3, page 2
        (1, 72, 680, ctx.requested_status),
        (1, 220, 680, ctx.effective_date),
        (1, 72, 658, ctx.people_in_group),
        (1, 72, 636, ctx.school_name),
        (1, 72, 614, ctx.sevis_id),
        (1, 72, 572, ctx.extend_until),
    ]
    return [Overlay(page=p, x=x, y=y, text=text) for p, x, y, text in placements if text]


def find_field(names: Sequence[str], candidates: Sequence[str], exclude: Sequence[str] = ()) -> Optional[str]:
    """Pick the form field for a logical value.

    Names containing any excluded fragment (case-insensitive) are discarded
    first. An exact candidate match wins; otherwise the first name that
    contains, or is contained in, a candidate.
    """
    pool = list(names)
    if exclude:
        lowered = [e.lower() for e in exclude]
        pool = [n for n in pool if not any(e in n.lower() for e in lowered)]
    for name in pool:
        if name in candidates:
            return name
    for name in pool:
        if any(c in name or name in c for c in candidates):
            return name
    return None


class I539FormFiller:
    """Fills Form I-539 from aggregated application data.

    Args:
        source: Where to obtain the blank form
    """

    def __init__(self, source: FormSource):
        self.source = source

    async def fill(self, data: AggregatedApplicationData, today: Optional[date] = None) -> FormFillResult:
        try:
            pdf_bytes = await self.source.get_form_bytes()
        except APIClientError as e:
            LOGGER.error(f"No I-539 source available: {e}")
            return FormFillResult(success=False, error=str(e))
        return self.fill_bytes(pdf_bytes, build_form_context(data, today))

    def fill_bytes(self, pdf_bytes: bytes, ctx: FormContext) -> FormFillResult:
        """Fill a form already in memory; never raises for unparsable PDFs."""
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
                names = self._field_names(doc)
                if names:
                    unmatched = self._fill_widgets(doc, names, ctx)
                    method = "acroform"
                else:
                    unmatched = []
                    self._draw_overlays(doc, overlay_items(ctx))
                    method = "overlay"
                filled = doc.tobytes(garbage=1, deflate=True)
        except Exception as e:
            LOGGER.warning(
                f"Unsupported I-539 structure, returning the blank form: {e}",
                extra={"size": len(pdf_bytes)},
            )
            return FormFillResult(success=True, filled=False, pdf_bytes=pdf_bytes, method="blank")

        LOGGER.info(
            f"Filled I-539 via {method}",
            extra={"fields": len(names), "unmatched": len(unmatched)},
        )
        return FormFillResult(
            success=True,
            filled=True,
            pdf_bytes=filled,
            method=method,
            unmatched_fields=unmatched,
        )

    @staticmethod
    def _field_names(doc: "fitz.Document") -> List[str]:
        names: List[str] = []
        for page in doc:
            for widget in page.widgets() or []:
                if widget.field_name and widget.field_name not in names:
                    names.append(widget.field_name)
        return names

    @staticmethod
    def _apply(doc: "fitz.Document", field_name: str, setter: Callable[["fitz.Widget"], bool]) -> bool:
        applied = False
        for page in doc:
            for widget in page.widgets() or []:
                if widget.field_name == field_name and setter(widget):
                    widget.update()
                    applied = True
        return applied

    def _fill_widgets(self, doc: "fitz.Document", names: List[str], ctx: FormContext) -> List[str]:
        text_names = [n for n in names if self._has_type(doc, n, fitz.PDF_WIDGET_TYPE_TEXT)]
        check_names = [n for n in names if self._has_type(doc, n, fitz.PDF_WIDGET_TYPE_CHECKBOX)]
        unmatched: List[str] = []

        for rule in text_rules(ctx):
            target = find_field(text_names, rule.candidates, rule.exclude)
            if target is None:
                if rule.value:
                    unmatched.append(rule.candidates[0])
                continue
            value = sanitize_for_pdf(rule.value)[:MAX_FIELD_LENGTH]

            def set_text(widget, value=value):
                widget.field_value = value
                return True

            self._apply(doc, target, set_text)

        for rule in check_rules(ctx):
            target = find_field(check_names, rule.candidates)
            if target is None:
                continue

            def set_check(widget, checked=rule.checked):
                widget.field_value = widget.on_state() if checked else "Off"
                return True

            self._apply(doc, target, set_check)

        if unmatched:
            LOGGER.debug("I-539 fields not found", extra={"fields": unmatched, "available": names})
        return unmatched

    @staticmethod
    def _has_type(doc: "fitz.Document", field_name: str, field_type: int) -> bool:
        for page in doc:
            for widget in page.widgets() or []:
                if widget.field_name == field_name:
                    return widget.field_type == field_type
        return False

    @staticmethod
    def _draw_overlays(doc: "fitz.Document", overlays: Sequence[Overlay]) -> None:
        page_count = doc.page_count
        for overlay in overlays:
            if not overlay.text or not 0 <= overlay.page < page_count:
                continue
            page = doc[overlay.page]
            # Overlay coordinates are bottom-left based; PyMuPDF draws top-left based
            point = fitz.Point(overlay.x, page.rect.height - overlay.y)
            page.insert_text(point, sanitize_for_pdf(overlay.text), fontsize=overlay.size, fontname=OVERLAY_FONT)


def guide_rows(ctx: FormContext) -> Dict[str, str]:
    """I-539 item labels and values for manual completion, in form order."""
    name = ctx.name
    addr = ctx.address
    return {
        "1.a Family Name (Last Name)": name.family,
        "1.b Given Name (First Name)": name.given,
        "1.c Middle Name": name.middle,
        "4.b Street Number and Name": addr.street,
        "4.d City or Town": addr.city,
        "4.e State": addr.state,
        "4.f ZIP Code": addr.zip_code,
        "6. Country of Birth": ctx.country_of_birth,
        "7. Country of Citizenship or Nationality": ctx.nationality,
        "8. Date of Birth (mm/dd/yyyy)": ctx.date_of_birth,
        "10. Date of Last Arrival": ctx.date_of_last_arrival,
        "11. I-94 Arrival-Departure Record Number": ctx.admission_number,
        "12. Passport Number": ctx.passport_number,
        "14.a Country of Passport Issuance": ctx.nationality,
        "14.b Passport Expiration Date (mm/dd/yyyy)": ctx.passport_expiration,
        "15.a Current Nonimmigrant Status": ctx.current_status,
        "15.b Expiration of Current Status (or D/S)": ctx.status_expiration,
        "Part 2 - Requested change to": ctx.requested_status,
        "Part 2 - Effective date": ctx.effective_date,
        "Part 2 - Total number in group": ctx.people_in_group,
        "Part 2 - School name": ctx.school_name,
        "Part 2 - SEVIS ID": ctx.sevis_id,
        "Part 3 - Requested extension until": ctx.extend_until,
    }
