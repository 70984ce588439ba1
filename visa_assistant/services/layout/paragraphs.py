"""Short-paragraph merge pass run before pagination."""

from typing import List, Optional

from visa_assistant.core.config import settings
from visa_assistant.schemas.layout import ParagraphMergeAction, ParagraphMergeResult


def word_count(paragraph: str) -> int:
    return len(paragraph.split())


def merge_short_paragraphs(paragraphs: List[str], min_words: Optional[int] = None) -> ParagraphMergeResult:
    """Fold paragraphs under ``min_words`` words into the paragraph after them.

    The final paragraph is always emitted on its own. A merged pair is not
    re-examined, so two short paragraphs in a row produce one merged paragraph
    and the scan resumes after both.

    Args:
        paragraphs: Paragraph texts in reading order
        min_words: Threshold; defaults to the configured short-paragraph size

    Returns:
        Merged paragraphs and one action per merge, indexed by the original position
    """
    threshold = settings.letters.short_paragraph_words if min_words is None else min_words
    merged: List[str] = []
    actions: List[ParagraphMergeAction] = []

    i = 0
    while i < len(paragraphs):
        current = paragraphs[i]
        if i == len(paragraphs) - 1:
            merged.append(current)
            break
        if word_count(current) < threshold:
            merged.append(f"{current} {paragraphs[i + 1]}")
            actions.append(ParagraphMergeAction(index=i))
            i += 2
            continue
        merged.append(current)
        i += 1

    return ParagraphMergeResult(merged_paragraphs=merged, actions=actions)
