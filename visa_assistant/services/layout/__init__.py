"""Letter layout: paragraph sizing, financial block detection and pagination."""

from visa_assistant.services.layout.financial import extract_financial_data, is_financial_section
from visa_assistant.services.layout.letter_parser import is_header_paragraph, parse_letter_for_layout
from visa_assistant.services.layout.pagination import PageBudgets, PaginationPlanner, fold_orphans, plan_pages
from visa_assistant.services.layout.paragraphs import merge_short_paragraphs

__all__ = [
    "PageBudgets",
    "PaginationPlanner",
    "extract_financial_data",
    "fold_orphans",
    "is_financial_section",
    "is_header_paragraph",
    "merge_short_paragraphs",
    "parse_letter_for_layout",
    "plan_pages",
]
