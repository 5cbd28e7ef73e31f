"""Top-level document containers handed between pipeline stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from prose_renderer.model.elements import (
    BlockElement,
    CustomTagNode,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    RenderInstruction,
    ResolvedBlock,
)


@dataclass(frozen=True, slots=True)
class Document:
    """Parsed article: ordered blocks plus front-matter metadata.

    ``references`` holds the link reference definitions found anywhere in the
    body, keyed by normalized label, in markdown-it's env format.
    """

    blocks: Tuple[BlockElement, ...]
    metadata: Dict[str, object] = field(default_factory=dict)
    source_name: Optional[str] = None
    references: Dict[str, Dict[str, object]] = field(default_factory=dict)

    @property
    def title(self) -> Optional[str]:
        value = self.metadata.get("title")
        return str(value) if value is not None else None

    def iter_custom_tags(self) -> Iterator[CustomTagNode]:
        """Yield every custom tag, standalone or inline, in document order."""
        yield from _walk_tags(self.blocks, CustomTagNode)


@dataclass(frozen=True, slots=True)
class ResolvedDocument:
    """Document whose custom tags have all been turned into render instructions."""

    blocks: Tuple[ResolvedBlock, ...]
    metadata: Dict[str, object] = field(default_factory=dict)
    source_name: Optional[str] = None
    references: Dict[str, Dict[str, object]] = field(default_factory=dict)

    @property
    def title(self) -> Optional[str]:
        value = self.metadata.get("title")
        return str(value) if value is not None else None

    def iter_instructions(self) -> Iterator[RenderInstruction]:
        yield from _walk_tags(self.blocks, RenderInstruction)


def _walk_tags(blocks, tag_type) -> Iterator:
    for block in blocks:
        if isinstance(block, tag_type):
            yield block
            yield from _walk_inlines(block.children, tag_type)
        elif isinstance(block, (ParagraphBlock, HeadingBlock)):
            yield from _walk_inlines(block.inlines, tag_type)
        elif isinstance(block, ListBlock):
            for item in block.items:
                yield from _walk_tags(item.blocks, tag_type)
        elif isinstance(block, QuoteBlock):
            yield from _walk_tags(block.blocks, tag_type)


def _walk_inlines(inlines, tag_type) -> Iterator:
    for node in inlines:
        if isinstance(node, tag_type):
            yield node
            yield from _walk_inlines(node.children, tag_type)
