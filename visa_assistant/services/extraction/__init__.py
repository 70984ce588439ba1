"""Extraction services: alias resolution and merging of OCR field bags.

- field_aliases: data-driven table of logical fields, aliases and raw-text patterns
- merger: folds completed documents into the canonical application record
"""

from visa_assistant.services.extraction.field_aliases import FIELD_RULES, FieldAliasResolver, FieldRule
from visa_assistant.services.extraction.merger import (
    FieldExtractionMerger,
    MergeResult,
    MergeWarning,
    distribute_ties_texts,
    merge,
)

__all__ = [
    "FIELD_RULES",
    "FieldAliasResolver",
    "FieldRule",
    "FieldExtractionMerger",
    "MergeResult",
    "MergeWarning",
    "distribute_ties_texts",
    "merge",
]
