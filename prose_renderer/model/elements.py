"""In-memory representation of parsed article content."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True, slots=True)
class SourcePosition:
    """1-based line/column of a node's first character in the input."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class Placement(Enum):
    """Where a custom tag sits relative to the surrounding text flow."""

    STANDALONE = "standalone"
    INLINE = "inline"


@dataclass(frozen=True, slots=True)
class TextSpan:
    """Contiguous run of raw Markdown text between custom tags."""

    text: str
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class CustomTagNode:
    """An application-specific tag embedded in the prose markup."""

    name: str
    attribute_items: Tuple[Tuple[str, str], ...]
    placement: Placement
    position: SourcePosition
    children: Tuple["InlineNode", ...] = ()
    self_closing: bool = False
    source: str = ""

    @property
    def attributes(self) -> Dict[str, str]:
        return dict(self.attribute_items)

    def get(self, attr_name: str, default: Optional[str] = None) -> Optional[str]:
        for key, value in self.attribute_items:
            if key == attr_name:
                return value
        return default

    def has_attribute(self, attr_name: str) -> bool:
        return any(key == attr_name for key, _ in self.attribute_items)

    @property
    def is_standalone(self) -> bool:
        return self.placement is Placement.STANDALONE


@dataclass(frozen=True, slots=True)
class RenderInstruction:
    """A custom tag after resolution: canonical kind plus typed parameters."""

    kind: str
    params: Mapping[str, object]
    placement: Placement
    position: SourcePosition
    children: Tuple["ResolvedInline", ...] = ()
    tag_name: str = ""


InlineNode = TextSpan | CustomTagNode
ResolvedInline = TextSpan | RenderInstruction


def contains_tags(inlines: Tuple[object, ...]) -> bool:
    """Return True when any inline node is a custom tag (resolved or not)."""
    return any(not isinstance(node, TextSpan) for node in inlines)


@dataclass(frozen=True, slots=True)
class ParagraphBlock:
    """Blank-line separated run of prose."""

    inlines: Tuple[object, ...]
    source: str
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class HeadingBlock:
    """ATX (``# Title``) or setext (underlined) heading."""

    level: int
    inlines: Tuple[object, ...]
    source: str
    position: SourcePosition
    setext: bool = False


@dataclass(frozen=True, slots=True)
class CodeFenceBlock:
    """Fenced or indented code; its content is never scanned for tags."""

    code: str
    info: str
    source: str
    position: SourcePosition
    fenced: bool = True

    @property
    def language(self) -> str:
        return self.info.split(None, 1)[0] if self.info.strip() else ""


@dataclass(frozen=True, slots=True)
class ListItem:
    """A single list entry; its content is parsed as nested blocks."""

    blocks: Tuple[object, ...]
    source: str
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ListBlock:
    """Bullet or ordered list."""

    items: Tuple[ListItem, ...]
    ordered: bool
    source: str
    position: SourcePosition
    start: Optional[int] = None
    tight: bool = True


@dataclass(frozen=True, slots=True)
class QuoteBlock:
    """Block quote whose content is parsed as nested blocks."""

    blocks: Tuple[object, ...]
    source: str
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ThematicBreakBlock:
    """Horizontal rule (``---``, ``***``, ``___``)."""

    source: str
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class RawBlock:
    """HTML block, table or other block handed to Markdown untouched.

    ``kind`` is the markdown-it node type, e.g. ``html_block`` or ``table``.
    """

    kind: str
    source: str
    position: SourcePosition


BlockElement = (
    ParagraphBlock
    | HeadingBlock
    | CodeFenceBlock
    | ListBlock
    | QuoteBlock
    | ThematicBreakBlock
    | RawBlock
    | CustomTagNode
)

ResolvedBlock = (
    ParagraphBlock
    | HeadingBlock
    | CodeFenceBlock
    | ListBlock
    | QuoteBlock
    | ThematicBreakBlock
    | RawBlock
    | RenderInstruction
)


@dataclass(frozen=True, slots=True)
class FrontMatter:
    """Metadata block found at the very top of an article."""

    data: Dict[str, object] = field(default_factory=dict)
    line_count: int = 0
