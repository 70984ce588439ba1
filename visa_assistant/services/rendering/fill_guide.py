"""HTML fill guide for completing Form I-539 by hand."""

from html import escape
from typing import Dict

from visa_assistant.services.rendering.form_fill import FormContext, guide_rows

EMPTY_VALUE = "—"
I539_URL = "https://www.uscis.gov/i-539"

CELL_STYLE = "padding:6px 12px;border:1px solid #ddd;"
HEAD_STYLE = "padding:8px 12px;border:1px solid #ddd;text-align:left;"


def render_rows(rows: Dict[str, str]) -> str:
    return "".join(
        f'<tr><td style="{CELL_STYLE}">{escape(label)}</td>'
        f'<td style="{CELL_STYLE}font-weight:600;">{escape(value or EMPTY_VALUE)}</td></tr>'
        for label, value in rows.items()
    )


def render_fill_guide(ctx: FormContext) -> str:
    """Render the guide as a standalone HTML page."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>I-539 Fill Guide</title></head>
<body style="font-family:sans-serif;max-width:720px;margin:24px auto;padding:0 16px;">
<h1 style="font-size:1.25rem;">I-539 Fill Guide</h1>
<p style="color:#555;">Use this table to complete Form I-539 manually. The blank form is available at <a href="{I539_URL}">uscis.gov/i-539</a>.</p>
<table style="width:100%;border-collapse:collapse;margin-top:16px;">
<thead><tr style="background:#f5f5f5;"><th style="{HEAD_STYLE}">Item</th><th style="{HEAD_STYLE}">Value</th></tr></thead>
<tbody>{render_rows(guide_rows(ctx))}</tbody>
</table>
<p style="margin-top:24px;font-size:0.9rem;color:#666;">Download the blank I-539, copy the values above and sign the form.</p>
</body>
</html>"""
