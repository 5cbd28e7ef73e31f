"""Render a resolved document into HTML."""
from __future__ import annotations

import html
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from prose_renderer.config import RenderConfig
from prose_renderer.errors import InternalConsistencyError
from prose_renderer.model.document_model import ResolvedDocument
from prose_renderer.model.elements import (
    CodeFenceBlock,
    CustomTagNode,
    HeadingBlock,
    ListBlock,
    ListItem,
    ParagraphBlock,
    Placement,
    QuoteBlock,
    RawBlock,
    RenderInstruction,
    TextSpan,
    ThematicBreakBlock,
    contains_tags,
)
from prose_renderer.renderer import tag_templates
from prose_renderer.renderer.assets import AssetResolver
from prose_renderer.renderer.utils import attrs_to_html, build_markdown
from prose_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

# Private-use code point, passed through untouched by markdown-it.
_PLACEHOLDER = "\uf8ff{}\uf8ff"


@dataclass
class _RenderPass:
    """State local to one ``render`` call."""

    env: Dict[str, Any] = field(default_factory=dict)
    components: int = 0

    def next_component(self) -> int:
        self.components += 1
        return self.components


class HtmlRenderer:
    """Produce an HTML body fragment from a resolved document, in document order."""

    def __init__(self, config: Optional[RenderConfig] = None) -> None:
        self._config = config or RenderConfig()
        self._assets = AssetResolver(self._config.assets)
        self._md = build_markdown(self._config.markdown)

    def render(self, document: ResolvedDocument) -> str:
        if not isinstance(document, ResolvedDocument):
            raise InternalConsistencyError(
                f"Renderer expects a ResolvedDocument, got {type(document).__name__}; run the tag resolver first"
            )
        # link reference definitions are document-wide
        state = _RenderPass(env={"references": {label: dict(entry) for label, entry in document.references.items()}})
        return "".join(self._render_block(block, state) for block in document.blocks)

    def render_page(self, document: ResolvedDocument) -> str:
        """Wrap the rendered body in a minimal standalone HTML page."""
        body = self.render(document)
        title = html.escape(document.title or document.source_name or "Untitled")
        return f"""<!DOCTYPE html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <title>{title}</title>
</head>
<body>
<article>
{body}</article>
</body>
</html>
"""

    def write(self, document: ResolvedDocument, output_path: Path, *, page: bool = True) -> Path:
        content = self.render_page(document) if page else self.render(document)
        output_path.write_text(content, encoding="utf-8")
        LOGGER.debug("Wrote %d characters to %s", len(content), output_path)
        return output_path

    # ------------------------------------------------------------------
    # Blocks

    def _render_block(self, block: object, state: _RenderPass) -> str:
        if isinstance(block, RenderInstruction):
            return self._render_instruction(block, state) + "\n"
        if isinstance(block, CustomTagNode):
            raise InternalConsistencyError(f"Unresolved tag <{block.name}> reached the renderer", block.position)
        if isinstance(block, (CodeFenceBlock, ThematicBreakBlock, RawBlock)):
            return self._md.render(block.source, state.env)
        if isinstance(block, ParagraphBlock):
            if not contains_tags(block.inlines):
                return self._md.render(block.source, state.env)
            return f"<p>{self._render_inlines(block.inlines, state)}</p>\n"
        if isinstance(block, HeadingBlock):
            if not contains_tags(block.inlines):
                return self._md.render(block.source, state.env)
            return f"<h{block.level}>{self._render_inlines(block.inlines, state)}</h{block.level}>\n"
        if isinstance(block, ListBlock):
            return self._render_list(block, state)
        if isinstance(block, QuoteBlock):
            if not _has_tags(block.blocks):
                return self._md.render(block.source, state.env)
            inner = "".join(self._render_block(child, state) for child in block.blocks)
            return f"<blockquote>\n{inner}</blockquote>\n"
        raise InternalConsistencyError(f"Cannot render node of type {type(block).__name__}")

    def _render_list(self, block: ListBlock, state: _RenderPass) -> str:
        if not any(_has_tags(item.blocks) for item in block.items):
            return self._md.render(block.source, state.env)
        tag = "ol" if block.ordered else "ul"
        start = str(block.start) if block.ordered and block.start not in (None, 1) else None
        items = "".join(self._render_item(item, block.tight, state) for item in block.items)
        return f"<{tag}{attrs_to_html({'start': start})}>\n{items}</{tag}>\n"

    def _render_item(self, item: ListItem, tight: bool, state: _RenderPass) -> str:
        # tight lists drop the <p> around paragraphs, like markdown-it does
        parts = []
        for child in item.blocks:
            if tight and isinstance(child, ParagraphBlock):
                parts.append(self._render_inlines(child.inlines, state))
                continue
            if not parts or not parts[-1].endswith("\n"):
                parts.append("\n")
            parts.append(self._render_block(child, state))
        return f"<li>{''.join(parts)}</li>\n"

    # ------------------------------------------------------------------
    # Inline content and tags

    def _render_inlines(self, inlines: Iterable[object], state: _RenderPass) -> str:
        """Render text and inline tags as one Markdown run.

        Each tag is swapped for a placeholder so emphasis and links may span
        it, then the placeholders are replaced by the tag's HTML.
        """
        parts = []
        fragments: Dict[str, str] = {}
        for node in inlines:
            if isinstance(node, TextSpan):
                parts.append(node.text)
            elif isinstance(node, RenderInstruction):
                marker = _PLACEHOLDER.format(len(fragments))
                fragments[marker] = self._render_instruction(node, state)
                parts.append(marker)
            elif isinstance(node, CustomTagNode):
                raise InternalConsistencyError(f"Unresolved tag <{node.name}> reached the renderer", node.position)
            else:
                raise InternalConsistencyError(f"Cannot render inline node of type {type(node).__name__}")

        rendered = self._md.renderInline("".join(parts), state.env)
        for marker, fragment in fragments.items():
            rendered = rendered.replace(marker, fragment, 1)
        return rendered.strip()

    def _render_instruction(self, instruction: RenderInstruction, state: _RenderPass) -> str:
        params = instruction.params
        kind = instruction.kind
        assets = self._assets

        if kind == "dialogue":
            body = self._render_inlines(instruction.children, state)
            if instruction.placement is Placement.INLINE:
                return tag_templates.inline_conversation(
                    assets, params["speaker"], params["speaker_slug"], params["mood"], body
                )
            return tag_templates.conversation(
                assets,
                params["speaker"],
                params["speaker_slug"],
                params["mood"],
                body,
                standalone=bool(params["standalone"]),
            )
        if kind == "hero":
            return tag_templates.hero(assets, params["file"], params["ai"], params["prompt"])
        if kind == "sticker":
            return tag_templates.sticker(assets, params["name"], params["slug"], params["mood"])
        if kind == "illustration":
            return tag_templates.picture(assets, params["path"])
        if kind == "slide":
            return tag_templates.slide(assets, params["name"], bool(params["essential"]))
        if kind == "video-embed":
            return tag_templates.video(assets, params["path"], state.next_component())
        if kind == "talk-warning":
            return tag_templates.talk_warning(assets, state.next_component())
        raise InternalConsistencyError(f"No template for tag kind '{kind}'", instruction.position)


def _has_tags(blocks: Iterable[object]) -> bool:
    for child in blocks:
        if isinstance(child, (RenderInstruction, CustomTagNode)):
            return True
        if isinstance(child, (ParagraphBlock, HeadingBlock)) and contains_tags(child.inlines):
            return True
        if isinstance(child, ListBlock) and any(_has_tags(item.blocks) for item in child.items):
            return True
        if isinstance(child, QuoteBlock) and _has_tags(child.blocks):
            return True
    return False
