"""Split an assembled letter into the sections the page planner lays out."""

import re
from typing import List, Optional, Sequence

from visa_assistant.schemas.layout import FinancialData, ParsedForPdf
from visa_assistant.services.layout.financial import extract_financial_data
from visa_assistant.services.layout.paragraphs import merge_short_paragraphs
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

PARAGRAPH_SPLIT = re.compile(r"\n\n+")

PERSONAL_STATEMENT_HEADING = "PERSONAL STATEMENT"
EXHIBIT_LIST_HEADING = "EXHIBIT LIST"
EXHIBIT_ITEM_PATTERN = re.compile(r"^Exhibit\s+[A-Z]:")

# Only the opening paragraphs of a letter can belong to its header
MAX_HEADER_INDEX = 5
MAX_ADDRESS_LINES = 3
MAX_ADDRESS_LINE_LENGTH = 60

HEADER_PATTERNS = [
    # 3 January 2026
    re.compile(r"^\d{1,2}\s+\w+\s+\d{4}"),
    re.compile(r"^re:\s*form"),
    re.compile(r"^dear\s+(sir|madam|officer)"),
    re.compile(r"u\.s\.\s+citizenship\s+and\s+immigration"),
    re.compile(r"p\.o\.\s+box"),
    re.compile(r"chicago,\s+il"),
    # ZIP code
    re.compile(r"\d{5}"),
]

CLOSING_PATTERN = re.compile(r"^(respectfully submitted|sincerely|respectfully yours)\b", re.IGNORECASE)


def split_paragraphs(text: str) -> List[str]:
    return [p.strip() for p in PARAGRAPH_SPLIT.split(text or "") if p.strip()]


def is_header_paragraph(paragraph: str, index: int) -> bool:
    """Whether a paragraph looks like part of the letter header.

    Matches dates, the ``Re:`` line, the salutation, the USCIS address and
    short address-like blocks, within the first paragraphs only.
    """
    if index > MAX_HEADER_INDEX:
        return False
    text = paragraph.lower()
    if any(pattern.search(text) for pattern in HEADER_PATTERNS):
        return True
    lines = paragraph.split("\n")
    return len(lines) <= MAX_ADDRESS_LINES and all(len(line.strip()) < MAX_ADDRESS_LINE_LENGTH for line in lines)


def _first_line(paragraph: str) -> str:
    return paragraph.split("\n", 1)[0].strip()


def _rest(paragraph: str) -> Optional[str]:
    parts = paragraph.split("\n", 1)
    return parts[1].strip() if len(parts) > 1 and parts[1].strip() else None


def _exhibit_items(paragraphs: Sequence[str]) -> List[str]:
    lines = [line.strip() for p in paragraphs for line in p.split("\n") if line.strip()]
    items = [line for line in lines if EXHIBIT_ITEM_PATTERN.match(line)]
    return items or lines


def parse_letter_for_layout(
    letter: str,
    personal_statement: Optional[str] = None,
    exhibit_items: Optional[Sequence[str]] = None,
    applicant_name: Optional[str] = None,
    merge_short: bool = True,
) -> ParsedForPdf:
    """Parse an assembled cover letter into header, body, financial block and appendices.

    The letter may carry its own ``PERSONAL STATEMENT`` and ``EXHIBIT LIST``
    sections; explicitly passed personal statement text and exhibit items
    take precedence over them. The closing and signature lines are dropped
    because the signature is drawn on its own page.

    Args:
        letter: Assembled letter text
        personal_statement: Personal statement text, paragraphs split by blank lines
        exhibit_items: Exhibit list lines
        applicant_name: Name for the signature block; read from the closing when omitted
        merge_short: Run the short-paragraph merge pass over body and personal paragraphs

    Returns:
        Sections ready for ``plan_pages``
    """
    cover: List[str] = []
    personal: List[str] = []
    exhibits: List[str] = []
    target = cover
    for paragraph in split_paragraphs(letter):
        heading = _first_line(paragraph)
        if heading == PERSONAL_STATEMENT_HEADING:
            target = personal
            paragraph = _rest(paragraph)
        elif heading == EXHIBIT_LIST_HEADING:
            target = exhibits
            paragraph = _rest(paragraph)
        if paragraph:
            target.append(paragraph)

    header: List[str] = []
    index = 0
    while index < len(cover) and is_header_paragraph(cover[index], index):
        header.append(cover[index])
        index += 1

    body: List[str] = []
    financial: Optional[FinancialData] = None
    signatory = applicant_name
    remaining = cover[index:]
    for position, paragraph in enumerate(remaining):
        if CLOSING_PATTERN.match(paragraph):
            if not signatory:
                signatory = _signature_name(paragraph, remaining[position + 1:])
            break
        data = extract_financial_data(paragraph)
        if data is not None:
            if financial is None and data.has_values:
                financial = data
            continue
        body.append(paragraph)

    if personal_statement:
        personal = split_paragraphs(personal_statement)
    if merge_short:
        body = merge_short_paragraphs(body).merged_paragraphs
        personal = merge_short_paragraphs(personal).merged_paragraphs

    parsed = ParsedForPdf(
        cover_header="\n\n".join(header),
        cover_body_paragraphs=body,
        financial=financial,
        personal_paragraphs=personal,
        applicant_name=signatory or "",
        exhibit_items=list(exhibit_items) if exhibit_items is not None else _exhibit_items(exhibits),
    )
    LOGGER.debug(
        "Parsed letter for layout",
        extra={
            "header_paragraphs": len(header),
            "body_paragraphs": len(parsed.cover_body_paragraphs),
            "personal_paragraphs": len(parsed.personal_paragraphs),
            "exhibit_items": len(parsed.exhibit_items),
            "has_financial": financial is not None,
        },
    )
    return parsed


def _signature_name(closing: str, following: Sequence[str]) -> Optional[str]:
    after = _rest(closing)
    if after:
        return _first_line(after)
    for paragraph in following:
        line = _first_line(paragraph)
        if line:
            return line
    return None
