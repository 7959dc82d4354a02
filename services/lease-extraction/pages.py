"""Default page source: per-page text from a PDF via pdfplumber.

PDFs are read in-memory; nothing is written to disk.
"""

import io
import logging
from pathlib import Path
from typing import Callable, Union

import pdfplumber

from models import PageContent

logger = logging.getLogger(__name__)

PdfSource = Union[str, Path, bytes]

# Any renderer with this shape can stand in for render_pdf_pages
PageSource = Callable[[PdfSource], list[PageContent]]


class PdfReadError(Exception):
    """The document could not be opened or read as a PDF."""


def render_pdf_pages(source: PdfSource) -> list[PageContent]:
    """Return the text of every page, 1-indexed, in document order.

    Raises PdfReadError when pdfplumber cannot read the document.
    """
    stream = io.BytesIO(source) if isinstance(source, bytes) else source

    pages = []
    try:
        with pdfplumber.open(stream) as pdf:
            for i, page in enumerate(pdf.pages, start=1):
                pages.append(PageContent(
                    page_number=i,
                    content=page.extract_text() or "",
                    width=float(page.width),
                    height=float(page.height),
                ))
    except Exception as e:
        logger.exception("pdfplumber could not read document")
        raise PdfReadError(f"Could not read PDF: {e}") from e

    logger.info("Rendered %d pages", len(pages))
    return pages
