"""Pagination planner turning parsed letter sections into page contents.

The planner is pure: the same ``ParsedForPdf`` and budgets always produce
the same page sequence.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from visa_assistant.core.config import LetterSettings, settings
from visa_assistant.schemas.layout import PageContent, ParsedForPdf
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

COVER_LETTER_TITLE = "COVER LETTER"
PERSONAL_STATEMENT_TITLE = "PERSONAL STATEMENT"
EXHIBIT_LIST_TITLE = "EXHIBIT LIST"


@dataclass(frozen=True)
class PageBudgets:
    """Items per page for each section."""

    cover_paragraphs: int = 3
    max_cover_paragraphs: int = 4
    personal_paragraphs: int = 4
    exhibit_items: int = 25

    @classmethod
    def from_settings(cls, letter_settings: Optional[LetterSettings] = None) -> "PageBudgets":
        letter_settings = letter_settings or settings.letters
        return cls(
            cover_paragraphs=letter_settings.cover_paragraphs_per_page,
            max_cover_paragraphs=letter_settings.max_cover_paragraphs,
            personal_paragraphs=letter_settings.personal_paragraphs_per_page,
            exhibit_items=letter_settings.exhibit_items_per_page,
        )


def chunk(items: Sequence[str], size: int) -> List[List[str]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def fold_orphans(chunks: List[List[str]], max_per_page: int) -> List[List[str]]:
    """Fold single-paragraph groups into the group before them when it has room.

    Groups are visited from the last to the second. ``[3, 3, 1]`` with a
    maximum of 4 becomes ``[3, 4]``.
    """
    folded = [list(c) for c in chunks]
    for i in range(len(folded) - 1, 0, -1):
        if len(folded[i]) == 1 and len(folded[i - 1]) < max_per_page:
            folded[i - 1].extend(folded[i])
            del folded[i]
    return folded


class PaginationPlanner:
    """Lays out cover letter, financial summary, personal statement, signature and exhibits.

    The first page of the document always carries the letterhead. Each
    section's first page carries its own section title; continuation pages,
    the financial page and the signature page do not, unless they happen to
    be the first page.
    """

    def __init__(self, budgets: Optional[PageBudgets] = None):
        self.budgets = budgets or PageBudgets.from_settings()

    def plan(self, parsed: ParsedForPdf) -> List[PageContent]:
        pages: List[PageContent] = []

        def with_first(page: PageContent, title: Optional[str] = None) -> PageContent:
            if not pages:
                page.letterhead = True
                page.letterhead_title = title
            return page

        cover_chunks = chunk(parsed.cover_body_paragraphs, self.budgets.cover_paragraphs)
        if not cover_chunks and (parsed.cover_header or parsed.financial):
            cover_chunks.append([])
        cover_chunks = fold_orphans(cover_chunks, self.budgets.max_cover_paragraphs)

        for i, paragraphs in enumerate(cover_chunks):
            pages.append(with_first(
                PageContent(
                    cover_title=i == 0,
                    cover_header=(parsed.cover_header or None) if i == 0 else None,
                    cover_body=paragraphs or None,
                ),
                COVER_LETTER_TITLE,
            ))

        if parsed.financial is not None:
            pages.append(with_first(PageContent(financial=parsed.financial)))

        for i, paragraphs in enumerate(chunk(parsed.personal_paragraphs, self.budgets.personal_paragraphs) or [[]]):
            page = PageContent(personal_heading=i == 0, personal_paragraphs=paragraphs or None)
            if i == 0:
                page.letterhead = True
                page.letterhead_title = PERSONAL_STATEMENT_TITLE
            pages.append(page)

        pages.append(with_first(PageContent(signature=parsed.applicant_name)))

        for i, items in enumerate(chunk(parsed.exhibit_items, self.budgets.exhibit_items) or [[]]):
            page = PageContent(exhibit_heading=i == 0, exhibit_items=items or None)
            if i == 0:
                page.letterhead = True
                page.letterhead_title = EXHIBIT_LIST_TITLE
            pages.append(page)

        LOGGER.debug(
            f"Planned {len(pages)} pages",
            extra={
                "cover_pages": len(cover_chunks),
                "has_financial": parsed.financial is not None,
                "exhibit_items": len(parsed.exhibit_items),
            },
        )
        return pages


def plan_pages(parsed: ParsedForPdf, budgets: Optional[PageBudgets] = None) -> List[PageContent]:
    """Plan the page sequence for the combined PDF; see ``PaginationPlanner``."""
    return PaginationPlanner(budgets).plan(parsed)
