"""Plain-text extraction from HTML documents for ingestion."""

import re

from bs4 import BeautifulSoup

# Elements that never carry document content
NON_CONTENT_TAGS = (
    "script",
    "style",
    "noscript",
    "iframe",
    "svg",
    "canvas",
    "meta",
    "link",
    "title",
    "aside",
    "nav",
    "header",
    "footer",
)

_HORIZONTAL_SPACE = re.compile(r"[\t ]+")
_SPACE_AROUND_NEWLINE = re.compile(r"\s*\n\s*")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def extract_text_from_html(html: str) -> str:
    """Extract readable text from an HTML document.

    Non-content elements (scripts, navigation, page chrome) are removed, the
    body text is taken (falling back to the whole document), and whitespace
    is normalized: runs of spaces and tabs collapse to one space and
    whitespace around line breaks is removed.

    Args:
        html: Raw HTML.

    Returns:
        Normalized text, possibly empty.

    Example:
        >>> extract_text_from_html("<body><nav>menu</nav><p>Hello   world</p></body>")
        'Hello world'
    """
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.find_all(NON_CONTENT_TAGS):
        element.decompose()

    body = soup.body
    raw = (body.get_text() if body is not None else "") or soup.get_text()
    raw = raw.strip()

    text = raw.replace("\r\n", "\n")
    text = _HORIZONTAL_SPACE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()
