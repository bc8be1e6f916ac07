"""Hierarchical markdown chunking with heading context preservation.

This module splits long structured documents into chunks that line up with
heading boundaries, so that each chunk can be embedded and retrieved on its
own without losing its place in the document hierarchy.

Key Features:
- Coarse (chapter-level) split at a configurable heading level
- Fine (sub-section-level) split that prepends ancestor headings to each chunk
- Size-bounded line packer that falls back to word boundaries for long lines
- Recursive character splitting for unstructured text (extracted HTML or PDF)

Usage:
    from ragline.lib.structured_chunker import HierarchicalChunker

    chunker = HierarchicalChunker(max_chunk_size=1500)
    chunks = chunker.split_fine(markdown)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter

from ragline.lib.heading_parser import Heading, parse_headings
from ragline.lib.logging_config import get_logger

if TYPE_CHECKING:
    from ragline.models.config import ChunkingConfig

logger = get_logger(__name__)

# Break points for unstructured text, tried in order
DEFAULT_FLAT_SEPARATORS: tuple[str, ...] = (
    "\n\n",
    "\n",
    "。",
    "、",
    " ",
    "：",
    "（",
    "）",
    "【",
    "】",
)


class ChunkingMode(str, Enum):
    """Split strategy used by ``HierarchicalChunker.chunk``.

    Attributes:
        FINE: Sub-section chunks with ancestor heading context (ingestion default).
        COARSE: Chapter-level chunks bounded by one heading level.
    """

    FINE = "fine"
    COARSE = "coarse"


class FineSplitTarget(str, Enum):
    """Which headings become chunk boundaries in a fine split.

    Attributes:
        ALL: Every heading at or below ``fine_min_level``.
        DEEPEST: Only headings at the deepest level present at or below
            ``fine_min_level``.
    """

    ALL = "all"
    DEEPEST = "deepest"


@dataclass
class Section:
    """A contiguous span of document lines owned by one chunking pass.

    Attributes:
        heading: The heading that opens the section (None for a preamble).
        content: The section text, lines joined with newlines.
        start_line: Index of the first line of the section.
        end_line: Index of the last line of the section (inclusive).
    """

    heading: Heading | None
    content: str
    start_line: int
    end_line: int


def _pack(pieces: Iterable[str], max_size: int, separator: str) -> list[str]:
    """Greedily join pieces into strings no longer than max_size.

    The buffer is flushed before adding a piece that would push the joined
    length over budget. A single piece longer than max_size is emitted alone.
    """
    chunks: list[str] = []
    buffer: list[str] = []
    size = 0

    for piece in pieces:
        added = len(piece) + (len(separator) if buffer else 0)
        if buffer and size + added > max_size:
            chunks.append(separator.join(buffer))
            buffer = []
            size = 0
            added = len(piece)
        buffer.append(piece)
        size += added

    if buffer:
        chunks.append(separator.join(buffer))

    return chunks


def _trim_blank_edges(lines: Sequence[str]) -> list[str]:
    """Drop whitespace-only lines from both ends of a block."""
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return list(lines[start:end])


def pack_lines(lines: Sequence[str], max_chunk_size: int) -> list[str]:
    """Pack lines into newline-joined chunks bounded by max_chunk_size.

    Lines are accumulated in order. When the next line would make the chunk
    exceed the budget, the current chunk is emitted first. A line that is
    longer than the budget on its own flushes the buffer and is split on
    whitespace word boundaries using the same rule, with words joined by a
    single space.

    Every returned chunk is at most ``max_chunk_size`` characters long, except
    a chunk holding one word that is itself longer than the budget.

    Args:
        lines: Lines to pack, in document order.
        max_chunk_size: Maximum characters per chunk.

    Returns:
        List of chunk strings in document order.

    Raises:
        ValueError: If max_chunk_size is not positive.

    Example:
        >>> pack_lines(["aaaa", "bbbb", "cccc"], 9)
        ['aaaa\\nbbbb', 'cccc']
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    chunks: list[str] = []
    pending: list[str] = []

    for line in lines:
        if len(line) > max_chunk_size:
            if pending:
                chunks.extend(_pack(pending, max_chunk_size, "\n"))
                pending = []
            chunks.extend(_pack(line.split(), max_chunk_size, " "))
        else:
            pending.append(line)

    if pending:
        chunks.extend(_pack(pending, max_chunk_size, "\n"))

    return chunks


class HierarchicalChunker:
    """Heading-aware markdown chunker.

    Provides two split strategies sharing the heading parser:

    - ``split_coarse``: one chunk per section at a chapter-like heading level,
      oversized sections packed by ``pack_lines``.
    - ``split_fine``: one chunk per sub-section, each prefixed with the
      nearest level-1 heading and the nearest intermediate ancestor heading.
    - ``split_flat_text``: recursive character split for text without
      headings, bounded by ``flat_chunk_size`` instead of ``max_chunk_size``.

    By default (``FineSplitTarget.ALL``) a fine split starts a chunk at every
    heading whose level is ``fine_min_level`` or deeper. A ``###`` chunk runs
    through its ``####`` children and each child also gets its own chunk. Pass
    ``FineSplitTarget.DEEPEST`` to split only at the deepest level present.

    Attributes:
        max_chunk_size: Character budget per chunk (default 1500).

    Example:
        >>> chunker = HierarchicalChunker()
        >>> chunker.split_fine("### A\\ncontent\\n### B\\nmore")
        ['### A\\n\\ncontent', '### B\\n\\nmore']
    """

    DEFAULT_MAX_CHUNK_SIZE = 1500
    DEFAULT_FINE_MIN_LEVEL = 3
    DEFAULT_FLAT_CHUNK_SIZE = 400
    DEFAULT_FLAT_CHUNK_OVERLAP = 80
    FALLBACK_SECTION_LEVEL = 2

    def __init__(
        self,
        max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
        coarse_level: int | None = None,
        fine_min_level: int = DEFAULT_FINE_MIN_LEVEL,
        fine_target: FineSplitTarget = FineSplitTarget.ALL,
        include_preamble: bool = False,
        flat_chunk_size: int = DEFAULT_FLAT_CHUNK_SIZE,
        flat_chunk_overlap: int = DEFAULT_FLAT_CHUNK_OVERLAP,
        flat_separators: Sequence[str] = DEFAULT_FLAT_SEPARATORS,
    ) -> None:
        """Initialize the hierarchical chunker.

        Args:
            max_chunk_size: Maximum characters per chunk. Defaults to 1500.
            coarse_level: Heading level that bounds coarse sections. If None,
                the shallowest level >= 2 present in the document is used,
                falling back to the shallowest level present.
            fine_min_level: Shallowest heading level that starts a fine chunk.
            fine_target: Whether every heading at or below fine_min_level
                starts a chunk, or only the deepest level present.
            include_preamble: Emit text before the first boundary heading as
                its own chunk instead of dropping it.
            flat_chunk_size: Maximum characters per chunk for unstructured
                text. Defaults to 400.
            flat_chunk_overlap: Characters shared by neighbouring unstructured
                chunks. Defaults to 80.
            flat_separators: Break points for unstructured text, tried in order.

        Raises:
            ValueError: If max_chunk_size is not positive.
            ValueError: If a heading level is outside 1-6.
            ValueError: If the flat overlap is negative or not below the flat
                chunk size.
        """
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        if coarse_level is not None and not 1 <= coarse_level <= 6:
            raise ValueError("coarse_level must be between 1 and 6")
        if not 1 <= fine_min_level <= 6:
            raise ValueError("fine_min_level must be between 1 and 6")
        if flat_chunk_size <= 0:
            raise ValueError("flat_chunk_size must be positive")
        if not 0 <= flat_chunk_overlap < flat_chunk_size:
            raise ValueError("flat_chunk_overlap must be >= 0 and below flat_chunk_size")

        self._max_chunk_size = max_chunk_size
        self._coarse_level = coarse_level
        self._fine_min_level = fine_min_level
        self._fine_target = FineSplitTarget(fine_target)
        self._include_preamble = include_preamble
        self._flat_splitter = RecursiveCharacterTextSplitter(
            chunk_size=flat_chunk_size,
            chunk_overlap=flat_chunk_overlap,
            separators=list(flat_separators),
            keep_separator="end",
            length_function=len,
        )

    @classmethod
    def from_config(cls, config: ChunkingConfig) -> HierarchicalChunker:
        """Build a chunker from a ChunkingConfig model."""
        return cls(
            max_chunk_size=config.max_chunk_size,
            coarse_level=config.coarse_level,
            fine_min_level=config.fine_min_level,
            fine_target=config.fine_target,
            include_preamble=config.include_preamble,
            flat_chunk_size=config.flat_chunk_size,
            flat_chunk_overlap=config.flat_chunk_overlap,
            flat_separators=config.flat_separators,
        )

    @property
    def max_chunk_size(self) -> int:
        """Get the maximum characters per chunk."""
        return self._max_chunk_size

    def chunk(self, markdown: str, mode: ChunkingMode = ChunkingMode.FINE) -> list[str]:
        """Split markdown with the requested strategy.

        Args:
            markdown: Document text.
            mode: Fine (default) or coarse split.

        Returns:
            List of non-empty chunk strings in document order.
        """
        if ChunkingMode(mode) == ChunkingMode.COARSE:
            return self.split_coarse(markdown)
        return self.split_fine(markdown)

    def split_coarse(self, markdown: str) -> list[str]:
        """Split markdown into chapter-level chunks.

        Sections are bounded by headings at the coarse target level and run
        to one line before the next heading of that level. Sections longer
        than max_chunk_size are packed by ``pack_lines``.

        Args:
            markdown: Document text.

        Returns:
            List of non-empty chunk strings. A document without headings
            yields exactly one chunk holding the whole (stripped) document.
        """
        lines = markdown.split("\n")
        headings = parse_headings(lines)
        if not headings:
            return self._whole_document(markdown)

        level = self._resolve_coarse_level(headings)
        sections = self._group_by_level(lines, headings, level)
        if not sections:
            logger.debug(f"No level-{level} headings found, keeping whole document")
            return self._whole_document(markdown)

        chunks = self._preamble(lines, sections[0].start_line)
        chunks.extend(self._emit_sections(sections))
        logger.debug(f"Coarse split at level {level}: {len(chunks)} chunks")
        return self._finalize(chunks)

    def split_fine(self, markdown: str) -> list[str]:
        """Split markdown into sub-section chunks with ancestor context.

        Each boundary heading produces one chunk made of, in order: the
        nearest level-1 ancestor heading, the nearest ancestor heading whose
        level lies strictly between 1 and the current level, the current
        heading, a blank line, and the lines up to the next heading of equal
        or shallower level. When no heading reaches fine_min_level, the
        document is split at level-2 headings; without those it stays whole.

        Args:
            markdown: Document text.

        Returns:
            List of non-empty chunk strings in document order.
        """
        lines = markdown.split("\n")
        headings = parse_headings(lines)
        if not headings:
            return self._whole_document(markdown)

        targets = self._resolve_fine_targets(headings)
        if not targets:
            sections = self._group_by_level(lines, headings, self.FALLBACK_SECTION_LEVEL)
            if not sections:
                return self._whole_document(markdown)
            chunks = self._preamble(lines, sections[0].start_line)
            chunks.extend(self._emit_sections(sections))
            logger.debug(f"Fine split fell back to level-2 sections: {len(chunks)}")
            return self._finalize(chunks)

        target_lines = {h.line_index for h in targets}
        chunks = self._preamble(lines, targets[0].line_index)
        parent_stack: list[Heading] = []

        for i, heading in enumerate(headings):
            # Pop until the stack only holds ancestors of this heading
            while parent_stack and parent_stack[-1].level >= heading.level:
                parent_stack.pop()

            if heading.line_index in target_lines:
                context = self._context_headings(parent_stack, heading)
                end_line = self._section_end(headings, i, len(lines))
                body = lines[heading.line_index + 1 : end_line]
                chunks.extend(self._render_with_context(context, body))

            parent_stack.append(heading)

        logger.debug(f"Fine split on {len(targets)} headings: {len(chunks)} chunks")
        return self._finalize(chunks)

    def split_flat_text(self, text: str) -> list[str]:
        """Split unstructured text with a recursive character splitter.

        Text is broken on the flat separators in order (paragraphs, lines,
        Japanese sentence and clause marks, spaces, brackets) until every
        chunk fits ``flat_chunk_size``. Neighbouring chunks share up to
        ``flat_chunk_overlap`` characters.

        Args:
            text: Plain text without meaningful headings.

        Returns:
            List of non-empty chunk strings.
        """
        return self._finalize(self._flat_splitter.split_text(text))

    def _resolve_coarse_level(self, headings: list[Heading]) -> int:
        """Pick the heading level that bounds coarse sections."""
        if self._coarse_level is not None:
            return self._coarse_level
        levels = {h.level for h in headings}
        below_title = [level for level in levels if level >= 2]
        return min(below_title) if below_title else min(levels)

    def _resolve_fine_targets(self, headings: list[Heading]) -> list[Heading]:
        """Select the headings that start fine chunks."""
        candidates = [h for h in headings if h.level >= self._fine_min_level]
        if not candidates or self._fine_target == FineSplitTarget.ALL:
            return candidates
        deepest = max(h.level for h in candidates)
        return [h for h in candidates if h.level == deepest]

    def _group_by_level(
        self, lines: list[str], headings: list[Heading], level: int
    ) -> list[Section]:
        """Group lines into sections opened by headings of one level."""
        level_headings = [h for h in headings if h.level == level]
        sections: list[Section] = []

        for i, heading in enumerate(level_headings):
            end_line = (
                level_headings[i + 1].line_index - 1
                if i + 1 < len(level_headings)
                else len(lines) - 1
            )
            sections.append(
                Section(
                    heading=heading,
                    content="\n".join(lines[heading.line_index : end_line + 1]),
                    start_line=heading.line_index,
                    end_line=end_line,
                )
            )

        return sections

    def _emit_sections(self, sections: list[Section]) -> list[str]:
        """Turn sections into chunks, packing the oversized ones."""
        chunks: list[str] = []
        for section in sections:
            if len(section.content) > self._max_chunk_size:
                chunks.extend(
                    pack_lines(section.content.split("\n"), self._max_chunk_size)
                )
            else:
                chunks.append(section.content)
        return chunks

    def _preamble(self, lines: list[str], first_line: int) -> list[str]:
        """Return packed text before the first boundary heading, if enabled."""
        if not self._include_preamble or first_line <= 0:
            return []
        return pack_lines(lines[:first_line], self._max_chunk_size)

    @staticmethod
    def _context_headings(ancestors: list[Heading], heading: Heading) -> list[Heading]:
        """Build the heading context for a fine chunk.

        Args:
            ancestors: Open headings shallower than ``heading``, outermost first.
            heading: The heading that starts the chunk.

        Returns:
            Nearest level-1 ancestor, nearest intermediate ancestor and the
            heading itself, skipping the ones that do not exist.
        """
        context: list[Heading] = []
        top = next((a for a in reversed(ancestors) if a.level == 1), None)
        if top is not None:
            context.append(top)
        parent = next(
            (a for a in reversed(ancestors) if 1 < a.level < heading.level), None
        )
        if parent is not None:
            context.append(parent)
        context.append(heading)
        return context

    @staticmethod
    def _section_end(headings: list[Heading], index: int, line_count: int) -> int:
        """Line index where the body of headings[index] stops (exclusive)."""
        level = headings[index].level
        for following in headings[index + 1 :]:
            if following.level <= level:
                return following.line_index
        return line_count

    def _render_with_context(self, context: list[Heading], body: list[str]) -> list[str]:
        """Render a fine chunk, packing the body when it is over budget."""
        header = "\n".join(h.render() for h in context)
        body = _trim_blank_edges(body)
        text = f"{header}\n\n" + "\n".join(body)
        if len(text.strip()) <= self._max_chunk_size:
            return [text]

        budget = self._max_chunk_size - len(header) - 2
        if budget <= 0:
            # Header alone fills the budget; pack without repeating it
            return pack_lines(text.split("\n"), self._max_chunk_size)

        pieces = [p for p in (s.strip() for s in pack_lines(body, budget)) if p]
        if not pieces:
            return [header]
        # A single word longer than the budget cannot carry the header
        return [
            piece if len(piece) > budget else f"{header}\n\n{piece}"
            for piece in pieces
        ]

    @staticmethod
    def _whole_document(markdown: str) -> list[str]:
        """Return the stripped document as a single chunk, or none if blank."""
        stripped = markdown.strip()
        return [stripped] if stripped else []

    @staticmethod
    def _finalize(chunks: Iterable[str]) -> list[str]:
        """Strip chunks and drop the empty ones."""
        return [c for c in (chunk.strip() for chunk in chunks) if c]
