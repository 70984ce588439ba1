"""Visa application assistant backend.

Document requirement resolution, extraction merging, cover letter assembly
and PDF/DOCX rendering for change-of-status applications.
"""

__version__ = "0.1.0"
