"""Plain-text extraction from PDF documents using pypdf.

Text is pulled page by page with pypdf's layout-free extractor. Pages that
yield no text (scanned images, blank pages) are skipped; the rest are joined
with blank lines so the flat splitter can break between pages.
"""

from pathlib import Path

from pypdf import PdfReader

from ragline.lib.logging_config import get_logger

logger = get_logger(__name__)


def extract_text_from_pdf(file_path: Path | str) -> str:
    """Extract the text of every page of a PDF file.

    Args:
        file_path: Path to the PDF file

    Returns:
        Page texts joined by blank lines, possibly empty.

    Raises:
        OSError: If the file cannot be opened
        pypdf.errors.PyPdfError: If the file is not a readable PDF
    """
    logger.debug(f"Extracting text from PDF: {file_path}")

    reader = PdfReader(str(file_path))
    pages = [(page.extract_text() or "").strip() for page in reader.pages]
    text = "\n\n".join(page for page in pages if page)

    logger.debug(
        f"Extracted {len(text)} characters from {len(pages)} pages of {file_path}"
    )
    return text
