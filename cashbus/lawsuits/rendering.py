"""HTML and PDF rendering of an assembled lawsuit payload."""

from typing import Any, Dict

from django.template.loader import render_to_string

LAWSUIT_TEMPLATE = "cashbus/lawsuit/lawsuit.html"


def render_lawsuit_html(document: Dict[str, Any]) -> str:
    return render_to_string(LAWSUIT_TEMPLATE, {"document": document})


def render_lawsuit_pdf(document: Dict[str, Any]) -> bytes:
    """Render the filing to PDF bytes. Requires WeasyPrint's system libraries."""
    from weasyprint import HTML

    return HTML(string=render_lawsuit_html(document)).write_pdf()
