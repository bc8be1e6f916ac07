"""Markdown heading detection.

Scans document lines for ATX-style headings (1-6 ``#`` markers followed by
whitespace and text). The result is the foundation for both hierarchical
split strategies in ``ragline.lib.structured_chunker``.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
HEADING_PREFIX_PATTERN = re.compile(r"^(#{1,6})\s+")


@dataclass(frozen=True)
class Heading:
    """A heading found in a document.

    Attributes:
        level: Number of ``#`` markers (1-6).
        text: Heading text with surrounding whitespace removed.
        line_index: Zero-based index of the heading line in the document.
    """

    level: int
    text: str
    line_index: int

    def render(self) -> str:
        """Render the heading back to its markdown form.

        Example:
            >>> Heading(level=3, text="Setup", line_index=0).render()
            '### Setup'
        """
        return f"{'#' * self.level} {self.text}"


def parse_headings(lines: Sequence[str]) -> list[Heading]:
    """Extract headings from document lines in line order.

    Lines that do not match the heading pattern are body text; malformed
    headings (e.g. ``#NoSpace`` or seven markers) are never an error.

    Args:
        lines: Document split into lines.

    Returns:
        List of Heading records, possibly empty.

    Example:
        >>> parse_headings(["body", "## Part"])
        [Heading(level=2, text='Part', line_index=1)]
    """
    headings: list[Heading] = []
    for index, line in enumerate(lines):
        match = HEADING_PATTERN.match(line)
        if match is None:
            continue
        text = match.group(2).strip()
        if not text:
            continue
        headings.append(Heading(level=len(match.group(1)), text=text, line_index=index))
    return headings


def get_heading_level(line: str) -> int:
    """Return the heading level of a line, or 0 if it is not a heading."""
    match = HEADING_PREFIX_PATTERN.match(line)
    return len(match.group(1)) if match else 0


def extract_heading_text(line: str) -> str | None:
    """Return the trimmed heading text of a line, or None if not a heading."""
    match = HEADING_PATTERN.match(line)
    if match is None:
        return None
    return match.group(2).strip() or None
