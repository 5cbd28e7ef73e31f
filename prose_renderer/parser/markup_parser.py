"""Parse article markup into a tree of block elements.

Block structure comes from markdown-it's own block grammar: the body is
tokenized with ``MarkdownIt.parse`` and walked as a ``SyntaxTreeNode`` tree,
so block boundaries always agree with what the renderer's Markdown engine
would produce.  Custom tags are only looked for in paragraph, heading and
list item content, and in HTML blocks that open with a custom tag.  Code and
other raw HTML blocks are never scanned.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from prose_renderer.errors import ParseError
from prose_renderer.model.document_model import Document
from prose_renderer.model.elements import (
    BlockElement,
    CodeFenceBlock,
    CustomTagNode,
    HeadingBlock,
    ListBlock,
    ListItem,
    ParagraphBlock,
    Placement,
    QuoteBlock,
    RawBlock,
    SourcePosition,
    ThematicBreakBlock,
    contains_tags,
)
from prose_renderer.model.tag_model import TagCatalog, default_catalog
from prose_renderer.parser.front_matter import FrontMatterParser
from prose_renderer.parser.line_index import LineIndex
from prose_renderer.parser.tag_scanner import TagScanner
from prose_renderer.renderer.utils import build_markdown
from prose_renderer.utils.logger import get_logger
from prose_renderer.utils.text_normalizer import normalize_source

LOGGER = get_logger(__name__)

ATX_CLOSING_RE = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
QUOTE_MARKER_RE = re.compile(r"^ {0,3}> ?")
LIST_MARKER_RE = re.compile(r"^([ \t]*)([-*+]|\d{1,9}[.)])([ \t]*)")

_TAG_CANDIDATES = ("paragraph", "html_block")


class MarkupParser:
    """Transforms article text into an immutable ``Document``.

    ``md`` must be configured like the renderer's engine (same preset and
    extensions) so that both agree on where blocks start and end.
    """

    def __init__(
        self,
        text: str,
        catalog: Optional[TagCatalog] = None,
        source_name: Optional[str] = None,
        *,
        md: Optional[MarkdownIt] = None,
        first_line: int = 1,
        column_shifts: Optional[Sequence[int]] = None,
    ) -> None:
        self._text = normalize_source(text)
        self._catalog = catalog or default_catalog()
        self._source_name = source_name
        self._md = md or build_markdown()
        self._index = LineIndex(self._text, first_line, column_shifts)
        self._scanner = TagScanner(self._text, self._index, self._catalog)
        self._lines = self._text.split("\n")
        self._offsets = self._index.line_starts
        self._references: Dict[str, Dict[str, object]] = {}

    @property
    def references(self) -> Dict[str, Dict[str, object]]:
        """Link reference definitions seen so far, first definition wins."""
        return self._references

    def parse(self) -> Document:
        """Parse front matter and body into a ``Document``."""
        front = FrontMatterParser(self._text).parse()
        blocks = self._parse_region(front.line_count, len(self._lines))
        LOGGER.debug("Parsed %d block(s) from %s", len(blocks), self._source_name or "<string>")
        return Document(
            blocks=tuple(blocks),
            metadata=dict(front.data),
            source_name=self._source_name,
            references=dict(self._references),
        )

    def parse_blocks(self) -> Tuple[BlockElement, ...]:
        """Parse the text as a bare block sequence, without front matter."""
        return tuple(self._parse_region(0, len(self._lines)))

    # ------------------------------------------------------------------
    # Regions

    def _parse_region(self, start: int, stop: int) -> List[BlockElement]:
        """Convert lines ``[start, stop)`` into blocks.

        A standalone custom tag may span several Markdown blocks (its body can
        hold blank lines), so after one is consumed the rest of the region is
        tokenized again from the line following its closing tag.
        """
        blocks: List[BlockElement] = []
        while start < stop:
            resume = None
            for node in self._block_nodes(start, stop):
                first, last = node.map[0] + start, node.map[1] + start
                standalone = self._standalone_tag(node, first, stop)
                if standalone is not None:
                    tag, end_line = standalone
                    LOGGER.debug("Standalone <%s> at %s", tag.name, tag.position)
                    blocks.append(tag)
                    resume = end_line + 1
                    break
                block = self._convert(node, first, last, start)
                LOGGER.debug("%s at %s", type(block).__name__, block.position)
                blocks.append(block)
            if resume is None:
                break
            start = resume
        return blocks

    def _block_nodes(self, start: int, stop: int) -> List[SyntaxTreeNode]:
        env: Dict[str, object] = {}
        tokens = self._md.parse("\n".join(self._lines[start:stop]), env)
        for label, definition in env.get("references", {}).items():
            self._references.setdefault(label, definition)
        return SyntaxTreeNode(tokens).children

    def _standalone_tag(self, node: SyntaxTreeNode, first: int, stop: int) -> Optional[Tuple[CustomTagNode, int]]:
        """Return the tag owning a block and its last line, or None to treat the block as prose."""
        if node.type not in _TAG_CANDIDATES:
            return None
        offset = self._offsets[first] + _lead(self._lines[first])
        region_end = self._line_end(stop - 1)
        if self._scanner.match_open(offset, region_end) is None:
            return None

        tag, end = self._scanner.scan_tag(offset, Placement.STANDALONE, end=region_end)
        end_line = self._index.line_of(end)
        if self._text[end:self._line_end(end_line)].strip():
            return None
        return tag, end_line

    # ------------------------------------------------------------------
    # Node conversion

    def _convert(self, node: SyntaxTreeNode, first: int, last: int, base: int) -> BlockElement:
        kind = node.type
        source = self._source(first, last)
        position = self._position(first, _lead(self._lines[first]))

        if kind == "paragraph":
            return ParagraphBlock(inlines=self._scan_lines(first, last), source=source, position=position)
        if kind == "heading":
            return self._heading(node, first, last)
        if kind in ("fence", "code_block"):
            return self._code(node, first, last)
        if kind == "hr":
            return ThematicBreakBlock(source=source, position=position)
        if kind == "blockquote":
            return self._quote(first, last)
        if kind in ("bullet_list", "ordered_list"):
            return self._list(node, first, last, base)
        if kind == "html_block":
            if self._opens_with_tag(first):
                return ParagraphBlock(inlines=self._scan_lines(first, last), source=source, position=position)
            return RawBlock(kind=kind, source=source, position=position)

        inlines = self._scan_lines(first, last)
        if contains_tags(inlines):
            tag = next(item for item in inlines if isinstance(item, CustomTagNode))
            raise ParseError(f"Custom tag <{tag.name}> is not supported inside a {kind} block", tag.position)
        return RawBlock(kind=kind, source=source, position=position)

    def _heading(self, node: SyntaxTreeNode, first: int, last: int) -> HeadingBlock:
        level = int(node.tag[1:])
        line = self._lines[first]
        if not node.markup.startswith("#"):
            return HeadingBlock(
                level=level,
                inlines=self._scan_lines(first, last - 1),
                source=self._source(first, last),
                position=self._position(first, _lead(line)),
                setext=True,
            )

        content_start = _lead(line) + len(node.markup)
        content_start += len(line[content_start:]) - len(line[content_start:].lstrip(" \t"))
        content = line[content_start:]
        closing = ATX_CLOSING_RE.search(content)
        if closing:
            content = content[:closing.start()]
        content = content.rstrip(" \t")

        start = self._offsets[first] + content_start
        return HeadingBlock(
            level=level,
            inlines=self._scanner.scan_inlines(start, start + len(content)),
            source=self._source(first, last),
            position=self._position(first, _lead(line)),
        )

    def _code(self, node: SyntaxTreeNode, first: int, last: int) -> CodeFenceBlock:
        fenced = node.type == "fence"
        position = self._position(first, _lead(self._lines[first]))
        if fenced and not self._fence_closed(node.markup, first, last):
            raise ParseError("Unterminated code fence", position)
        return CodeFenceBlock(
            code=node.content,
            info=node.info.strip(),
            source=self._source(first, last),
            position=position,
            fenced=fenced,
        )

    def _quote(self, first: int, last: int) -> QuoteBlock:
        inner: List[str] = []
        shifts: List[int] = []
        for idx in range(first, last):
            line = self._lines[idx]
            match = QUOTE_MARKER_RE.match(line)
            # lazy continuation lines carry no marker
            cut = match.end() if match else 0
            inner.append(line[cut:])
            shifts.append(self._index.column_shift(idx) + cut)

        return QuoteBlock(
            blocks=self._nested(inner, first, shifts),
            source=self._source(first, last),
            position=self._position(first, _lead(self._lines[first])),
        )

    def _list(self, node: SyntaxTreeNode, first: int, last: int, base: int) -> ListBlock:
        ordered = node.type == "ordered_list"
        start = None
        if ordered:
            start = int(node.attrs.get("start", 1))
        tight = all(
            child.hidden for item in node.children for child in item.children if child.type == "paragraph"
        )
        items = tuple(self._list_item(item.map[0] + base, item.map[1] + base) for item in node.children)
        return ListBlock(
            items=items,
            ordered=ordered,
            source=self._source(first, last),
            position=self._position(first, _lead(self._lines[first])),
            start=start,
            tight=tight,
        )

    def _list_item(self, first: int, last: int) -> ListItem:
        line = self._lines[first]
        marker = LIST_MARKER_RE.match(line)
        width = marker.end(2)
        spaces = len(marker.group(3))
        if not line[marker.end():].strip():
            cut, column = len(line), width + 1
        elif spaces > 4:
            # the extra spaces make the content indented code
            cut = column = width + 1
        else:
            cut = column = width + spaces

        inner = [line[cut:]]
        shifts = [self._index.column_shift(first) + cut]
        for idx in range(first + 1, last):
            text, removed = _strip_indent(self._lines[idx], column)
            inner.append(text)
            shifts.append(self._index.column_shift(idx) + removed)

        return ListItem(
            blocks=self._nested(inner, first, shifts),
            source=self._source(first, last),
            position=self._position(first, min(cut, len(line))),
        )

    def _nested(self, lines: List[str], first: int, shifts: List[int]) -> Tuple[BlockElement, ...]:
        nested = MarkupParser(
            "\n".join(lines),
            self._catalog,
            self._source_name,
            md=self._md,
            first_line=self._index.line_number(first),
            column_shifts=shifts,
        )
        blocks = nested.parse_blocks()
        for label, definition in nested.references.items():
            self._references.setdefault(label, definition)
        return blocks

    # ------------------------------------------------------------------
    # Helpers

    def _opens_with_tag(self, idx: int) -> bool:
        offset = self._offsets[idx] + _lead(self._lines[idx])
        return self._scanner.match_open(offset) is not None or self._scanner.match_close(offset) is not None

    def _fence_closed(self, markup: str, first: int, last: int) -> bool:
        if last - first < 2:
            return False
        closing = self._lines[last - 1].strip()
        return len(closing) >= len(markup) and set(closing) == {markup[0]}

    def _scan_lines(self, first: int, last: int):
        start = self._offsets[first] + _lead(self._lines[first])
        return self._scanner.scan_inlines(start, self._line_end(last - 1))

    def _line_end(self, idx: int) -> int:
        return self._offsets[idx] + len(self._lines[idx])

    def _position(self, idx: int, column: int = 0) -> SourcePosition:
        return self._index.position(self._offsets[idx] + column)

    def _source(self, start: int, end: int) -> str:
        return "\n".join(self._lines[start:end]) + "\n"


def _lead(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _strip_indent(line: str, amount: int) -> Tuple[str, int]:
    if line.startswith("\t"):
        return line[1:], 1
    removed = 0
    while removed < amount and removed < len(line) and line[removed] == " ":
        removed += 1
    return line[removed:], removed


def parse_text(
    text: str,
    catalog: Optional[TagCatalog] = None,
    source_name: Optional[str] = None,
    md: Optional[MarkdownIt] = None,
) -> Document:
    """Parse a complete article into a ``Document``."""
    return MarkupParser(text, catalog, source_name, md=md).parse()
