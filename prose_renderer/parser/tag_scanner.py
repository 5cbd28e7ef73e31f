"""Character-level scanner for custom tags embedded in prose."""
from __future__ import annotations

import html
import re
from typing import List, Optional, Tuple

from prose_renderer.errors import ParseError
from prose_renderer.model.elements import CustomTagNode, InlineNode, Placement, SourcePosition, TextSpan
from prose_renderer.model.tag_model import TagCatalog
from prose_renderer.parser.line_index import LineIndex
from prose_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

TAG_NAME_RE = re.compile(r"[A-Za-z][A-Za-z0-9_-]*")
ATTR_NAME_RE = re.compile(r"[A-Za-z_:][-A-Za-z0-9_:.]*")
CLOSE_TAG_RE = re.compile(r"</([A-Za-z][A-Za-z0-9_-]*)[ \t\n]*>")
UNCLOSED_CLOSE_RE = re.compile(r"</([A-Za-z][A-Za-z0-9_-]*)")

_SEPARATORS = " \t\n"

# Names passed through to Markdown as raw HTML: HTML proper, then the SVG and
# MathML vocabularies (lowercased, since tag matching ignores case).
HTML_ELEMENTS = frozenset(
    """
    a abbr acronym address area article aside audio b base bdi bdo big blockquote body br button
    canvas caption center cite code col colgroup data datalist dd del details dfn dialog dir div dl dt
    em embed fieldset figcaption figure font footer form frame frameset h1 h2 h3 h4 h5 h6 head header
    hgroup hr html i iframe img input ins kbd label legend li link main map mark marquee menu meta meter
    nav nobr noembed noframes noscript object ol optgroup option output p param picture plaintext pre
    progress q rb rp rt rtc ruby s samp script search section select slot small source span strike
    strong style sub summary sup table tbody td template textarea tfoot th thead time title tr track tt
    u ul var video wbr xmp
    """.split()
)

SVG_ELEMENTS = frozenset(
    """
    svg a animate animatemotion animatetransform circle clippath defs desc discard ellipse feblend
    fecolormatrix fecomponenttransfer fecomposite feconvolvematrix fediffuselighting fedisplacementmap
    fedistantlight fedropshadow feflood fefunca fefuncb fefuncg fefuncr fegaussianblur feimage femerge
    femergenode femorphology feoffset fepointlight fespecularlighting fespotlight fetile feturbulence
    filter foreignobject g image line lineargradient marker mask metadata mpath path pattern polygon
    polyline radialgradient rect set stop switch symbol text textpath tspan use view
    """.split()
)

MATHML_ELEMENTS = frozenset(
    """
    math annotation annotation-xml maction menclose merror mfenced mfrac mi mmultiscripts mn mo mover
    mpadded mphantom mprescripts mroot mrow ms mspace msqrt mstyle msub msubsup msup mtable mtd mtext
    mtr munder munderover none semantics
    """.split()
)

PASS_THROUGH_ELEMENTS = HTML_ELEMENTS | SVG_ELEMENTS | MATHML_ELEMENTS

# Letters and inner hyphens only: ``u8`` or ``i32`` in ``Vec<u8>`` stay prose.
GENERIC_NAME_RE = re.compile(r"[a-z][a-z-]*[a-z]\Z")


class TagScanner:
    """Recognizes custom tags inside a bounded region of the source text."""

    def __init__(self, text: str, index: LineIndex, catalog: TagCatalog) -> None:
        self._text = text
        self._index = index
        self._catalog = catalog
        self._end = len(text)

    def is_custom_name(self, name: str) -> bool:
        """Return True when ``name`` should be treated as a custom tag.

        Catalog names always are. Other names qualify when they are made of
        lowercase letters and inner hyphens, are longer than one character and
        are not HTML, SVG or MathML elements, so that prose such as
        ``Result<T>``, ``Vec<u8>`` or ``<Foo>`` is left to Markdown.
        """
        if self._catalog.get(name) is not None:
            return True
        return GENERIC_NAME_RE.match(name) is not None and name not in PASS_THROUGH_ELEMENTS

    def match_open(self, offset: int, end: Optional[int] = None) -> Optional[str]:
        """Return the tag name when a custom opening tag starts at ``offset``."""
        end = self._end if end is None else end
        if offset >= end or self._text[offset] != "<":
            return None
        match = TAG_NAME_RE.match(self._text, offset + 1, end)
        if match is None:
            return None
        after = match.end()
        if after < end and self._text[after] not in _SEPARATORS + "/>":
            return None
        name = match.group(0)
        if not self.is_custom_name(name):
            return None
        return name

    def match_close(self, offset: int, end: Optional[int] = None) -> Optional[Tuple[str, int]]:
        """Return ``(name, end_offset)`` when a custom closing tag starts at ``offset``."""
        end = self._end if end is None else end
        if not self._text.startswith("</", offset):
            return None
        match = CLOSE_TAG_RE.match(self._text, offset, end)
        if match is None:
            partial = UNCLOSED_CLOSE_RE.match(self._text, offset, end)
            if partial is not None and self.is_custom_name(partial.group(1)):
                raise ParseError(f"Malformed closing tag </{partial.group(1)}", self._index.position(offset))
            return None
        name = match.group(1)
        if not self.is_custom_name(name):
            return None
        return name, match.end()

    # ------------------------------------------------------------------
    # Public scanning entry points

    def scan_tag(
        self,
        offset: int,
        placement: Placement,
        end: Optional[int] = None,
        parent: Optional[str] = None,
    ) -> Tuple[CustomTagNode, int]:
        """Scan one complete custom tag starting at ``offset``.

        Returns the node and the offset just past its closing marker.
        """
        end = self._end if end is None else end
        position = self._index.position(offset)
        name_match = TAG_NAME_RE.match(self._text, offset + 1, end)
        if name_match is None:
            raise ParseError("Expected a tag name after '<'", position)
        name = name_match.group(0)

        attributes, self_closing, cursor = self._scan_attributes(name, name_match.end(), end, position)
        self._check_placement(name, attributes, placement, parent, position)

        children: Tuple[InlineNode, ...] = ()
        if not self_closing:
            children, cursor = self._scan_sequence(cursor, end, name, position)

        node = CustomTagNode(
            name=name,
            attribute_items=tuple(attributes),
            placement=placement,
            position=position,
            children=children,
            self_closing=self_closing,
            source=self._text[offset:cursor],
        )
        LOGGER.debug("Scanned <%s> (%s) at %s", name, placement.value, position)
        return node, cursor

    def scan_inlines(self, start: int, end: int) -> Tuple[InlineNode, ...]:
        """Split ``text[start:end]`` into text spans and inline custom tags."""
        children, _ = self._scan_sequence(start, end, None, None)
        return children

    # ------------------------------------------------------------------
    # Internals

    def _check_placement(
        self,
        name: str,
        attributes: List[Tuple[str, str]],
        placement: Placement,
        parent: Optional[str],
        position: SourcePosition,
    ) -> None:
        if placement is Placement.STANDALONE:
            return
        wants_block = self._catalog.is_block_only(name) or any(key == "standalone" for key, _ in attributes)
        if not wants_block:
            return
        if parent is not None:
            raise ParseError(f"Block-level tag <{name}> cannot be nested inside <{parent}>", position)
        raise ParseError(f"Block-level tag <{name}> cannot appear inline; give it its own block", position)

    def _scan_attributes(
        self, name: str, cursor: int, end: int, position: SourcePosition
    ) -> Tuple[List[Tuple[str, str]], bool, int]:
        text = self._text
        attributes: List[Tuple[str, str]] = []
        seen = set()
        while True:
            cursor = self._skip_whitespace(cursor, end)
            if cursor >= end:
                raise ParseError(f"Unterminated tag <{name}>", position)
            char = text[cursor]
            if char == ">":
                return attributes, False, cursor + 1
            if text.startswith("/>", cursor):
                return attributes, True, cursor + 2

            attr_match = ATTR_NAME_RE.match(text, cursor, end)
            if attr_match is None:
                raise ParseError(
                    f"Malformed attribute list in <{name}>: unexpected {char!r}",
                    self._index.position(cursor),
                )
            attr_name = attr_match.group(0)
            if attr_name in seen:
                raise ParseError(f"Duplicate attribute '{attr_name}' in <{name}>", self._index.position(cursor))
            seen.add(attr_name)
            cursor = attr_match.end()

            after = self._skip_whitespace(cursor, end)
            if after < end and text[after] == "=":
                cursor = self._skip_whitespace(after + 1, end)
                if cursor >= end:
                    raise ParseError(f"Unterminated tag <{name}>", position)
                if text[cursor] != '"':
                    raise ParseError(
                        f"Attribute '{attr_name}' in <{name}> needs a double-quoted value",
                        self._index.position(cursor),
                    )
                value, cursor = self._scan_quoted(name, attr_name, cursor, end)
                if cursor < end and text[cursor] not in _SEPARATORS + "/>":
                    raise ParseError(
                        f"Unescaped quote in value of attribute '{attr_name}' in <{name}>",
                        self._index.position(cursor - 1),
                    )
            else:
                value = ""
            attributes.append((attr_name, value))

    def _scan_quoted(self, name: str, attr_name: str, cursor: int, end: int) -> Tuple[str, int]:
        text = self._text
        buffer: List[str] = []
        idx = cursor + 1
        while idx < end:
            char = text[idx]
            if char == "\\" and idx + 1 < end and text[idx + 1] in '"\\':
                buffer.append(text[idx + 1])
                idx += 2
                continue
            if char == '"':
                return html.unescape("".join(buffer)), idx + 1
            buffer.append(char)
            idx += 1
        raise ParseError(
            f"Unterminated value for attribute '{attr_name}' in <{name}>",
            self._index.position(cursor),
        )

    def _scan_sequence(
        self,
        start: int,
        end: int,
        parent: Optional[str],
        parent_position: Optional[SourcePosition],
    ) -> Tuple[Tuple[InlineNode, ...], int]:
        text = self._text
        nodes: List[InlineNode] = []
        span_start = start
        idx = start

        def flush(upto: int) -> None:
            if upto > span_start:
                nodes.append(TextSpan(text[span_start:upto], self._index.position(span_start)))

        while idx < end:
            char = text[idx]
            if char == "\\":
                idx += 2
                continue
            if char == "`":
                idx = self._skip_code_span(idx, end)
                continue
            if char == "<":
                if text.startswith("<!--", idx):
                    closing = text.find("-->", idx + 4, end)
                    idx = end if closing < 0 else closing + 3
                    continue
                closed = self.match_close(idx, end)
                if closed is not None:
                    close_name, close_end = closed
                    if parent is not None and close_name.lower() == parent.lower():
                        flush(idx)
                        return tuple(nodes), close_end
                    if parent is not None:
                        raise ParseError(
                            f"Closing tag </{close_name}> does not match open tag <{parent}>",
                            self._index.position(idx),
                        )
                    raise ParseError(
                        f"Closing tag </{close_name}> has no matching opening tag",
                        self._index.position(idx),
                    )
                if self.match_open(idx, end) is not None:
                    flush(idx)
                    child, idx = self.scan_tag(idx, Placement.INLINE, end=end, parent=parent)
                    nodes.append(child)
                    span_start = idx
                    continue
            idx += 1

        if parent is not None:
            raise ParseError(f"Unterminated tag <{parent}>: missing </{parent}>", parent_position)
        flush(end)
        return tuple(nodes), end

    def _skip_code_span(self, idx: int, end: int) -> int:
        """Skip a backtick code span; an unmatched run is literal text."""
        text = self._text
        run_end = idx
        while run_end < end and text[run_end] == "`":
            run_end += 1
        run = text[idx:run_end]
        search = run_end
        while True:
            found = text.find(run, search, end)
            if found < 0:
                return run_end
            after = found + len(run)
            if after < end and text[after] == "`":
                search = after
                while search < end and text[search] == "`":
                    search += 1
                continue
            return after

    def _skip_whitespace(self, cursor: int, end: int) -> int:
        while cursor < end and self._text[cursor] in _SEPARATORS:
            cursor += 1
        return cursor
