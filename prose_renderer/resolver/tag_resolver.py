"""Map parsed custom tags onto typed rendering instructions."""
from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, Optional, Tuple

from prose_renderer.errors import MissingRequiredAttribute, UnknownTag
from prose_renderer.model.document_model import Document, ResolvedDocument
from prose_renderer.model.elements import (
    BlockElement,
    CustomTagNode,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    RenderInstruction,
    ResolvedBlock,
    ResolvedInline,
    TextSpan,
)
from prose_renderer.model.tag_model import TagCatalog, default_catalog
from prose_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_AI = "MidJourney"
_FALSE_VALUES = {"false", "0", "no"}

ParamBuilder = Callable[[CustomTagNode], Dict[str, object]]


class TagResolver:
    """Validate custom tags against the catalog and attach render parameters.

    Resolution is pure: nothing here touches the filesystem or the network.
    Whether an asset referenced by ``file`` or ``path`` exists is the asset
    host's business.
    """

    def __init__(self, catalog: Optional[TagCatalog] = None, *, default_ai: str = DEFAULT_AI) -> None:
        self._catalog = catalog or default_catalog()
        self._default_ai = default_ai
        self._builders: Dict[str, ParamBuilder] = {
            "dialogue": self._dialogue_params,
            "hero": self._hero_params,
            "sticker": self._sticker_params,
            "illustration": self._path_params,
            "slide": self._slide_params,
            "video-embed": self._path_params,
            "talk-warning": lambda node: {},
        }

    def resolve(self, document: Document) -> ResolvedDocument:
        """Resolve every custom tag in the document, failing on the first bad one."""
        blocks = tuple(self._resolve_block(block) for block in document.blocks)
        return ResolvedDocument(
            blocks=blocks,
            metadata=dict(document.metadata),
            source_name=document.source_name,
            references=dict(document.references),
        )

    def resolve_node(self, node: CustomTagNode) -> RenderInstruction:
        """Resolve a single tag, including any nested inline tags it wraps."""
        spec = self._catalog.get(node.name)
        if spec is None:
            raise UnknownTag(node.name, node.position)

        missing = [attr for attr in spec.required if not (node.get(attr) or "").strip()]
        if missing:
            raise MissingRequiredAttribute(node.name, missing, node.position)

        unknown = [key for key, _ in node.attribute_items if key not in spec.known_attributes]
        if unknown:
            LOGGER.warning("Ignoring unknown attribute(s) %s on <%s> at %s", ", ".join(unknown), node.name, node.position)

        children: Tuple[ResolvedInline, ...] = ()
        if spec.wraps_content:
            children = self._resolve_inlines(node.children)
        elif _has_content(node):
            LOGGER.warning("<%s> does not take content; ignoring it at %s", node.name, node.position)

        builder = self._builders.get(spec.name, self._generic_params)
        return RenderInstruction(
            kind=spec.name,
            params=builder(node),
            placement=node.placement,
            position=node.position,
            children=children,
            tag_name=node.name,
        )

    # ------------------------------------------------------------------
    # Tree walking

    def _resolve_block(self, block: BlockElement) -> ResolvedBlock:
        if isinstance(block, CustomTagNode):
            return self.resolve_node(block)
        if isinstance(block, (ParagraphBlock, HeadingBlock)):
            return replace(block, inlines=self._resolve_inlines(block.inlines))
        if isinstance(block, ListBlock):
            items = tuple(
                replace(item, blocks=tuple(self._resolve_block(child) for child in item.blocks)) for item in block.items
            )
            return replace(block, items=items)
        if isinstance(block, QuoteBlock):
            return replace(block, blocks=tuple(self._resolve_block(child) for child in block.blocks))
        return block

    def _resolve_inlines(self, inlines) -> Tuple[ResolvedInline, ...]:
        resolved = []
        for node in inlines:
            if isinstance(node, CustomTagNode):
                resolved.append(self.resolve_node(node))
            else:
                resolved.append(node)
        return tuple(resolved)

    # ------------------------------------------------------------------
    # Per-kind parameters

    def _dialogue_params(self, node: CustomTagNode) -> Dict[str, object]:
        name = node.get("name", "")
        return {
            "speaker": name.replace("_", " "),
            "speaker_slug": name.lower(),
            "mood": node.get("mood", ""),
            "standalone": _flag(node, "standalone"),
        }

    def _hero_params(self, node: CustomTagNode) -> Dict[str, object]:
        return {
            "file": node.get("file", ""),
            "prompt": node.get("prompt") or None,
            "ai": node.get("ai") or self._default_ai,
        }

    def _sticker_params(self, node: CustomTagNode) -> Dict[str, object]:
        name = node.get("name", "")
        return {"name": name, "slug": name.lower(), "mood": node.get("mood", "")}

    def _path_params(self, node: CustomTagNode) -> Dict[str, object]:
        return {"path": node.get("path", "")}

    def _slide_params(self, node: CustomTagNode) -> Dict[str, object]:
        return {"name": node.get("name", ""), "essential": _flag(node, "essential")}

    def _generic_params(self, node: CustomTagNode) -> Dict[str, object]:
        return dict(node.attributes)


def _flag(node: CustomTagNode, attr_name: str) -> bool:
    """Boolean attribute: present and not spelled false/0/no."""
    value = node.get(attr_name)
    if value is None:
        return False
    return value.strip().lower() not in _FALSE_VALUES


def _has_content(node: CustomTagNode) -> bool:
    for child in node.children:
        if not isinstance(child, TextSpan) or child.text.strip():
            return True
    return False
