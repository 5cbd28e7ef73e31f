"""Catalog of the custom tags the renderer understands."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple


@dataclass(frozen=True, slots=True)
class TagSpec:
    """Attribute contract and placement rules for one tag kind."""

    name: str
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    block_only: bool = True
    wraps_content: bool = False

    @property
    def known_attributes(self) -> Tuple[str, ...]:
        return self.required + self.optional


class TagCatalog:
    """Collection of tag specs keyed by canonical name and alias."""

    def __init__(self, specs: Iterable[TagSpec]):
        self._specs: Dict[str, TagSpec] = {}
        self._lookup: Dict[str, TagSpec] = {}
        for spec in specs:
            self._specs[spec.name] = spec
            for key in (spec.name, *spec.aliases):
                self._lookup[key.lower()] = spec

    def get(self, tag_name: Optional[str]) -> Optional[TagSpec]:
        """Return the spec for a tag name or alias, ignoring case."""
        if tag_name is None:
            return None
        return self._lookup.get(tag_name.lower())

    def all(self) -> Mapping[str, TagSpec]:
        """Return specs keyed by canonical name."""
        return dict(self._specs)

    def is_block_only(self, tag_name: str) -> bool:
        spec = self.get(tag_name)
        return spec is not None and spec.block_only


DEFAULT_TAGS: Tuple[TagSpec, ...] = (
    TagSpec(
        name="dialogue",
        required=("name", "mood"),
        optional=("standalone",),
        aliases=("conv", "xeblog-conv"),
        block_only=False,
        wraps_content=True,
    ),
    TagSpec(name="hero", required=("file",), optional=("prompt", "ai"), aliases=("hero-image", "xeblog-hero")),
    TagSpec(name="sticker", required=("name", "mood"), aliases=("xeblog-sticker",)),
    TagSpec(name="illustration", required=("path",), aliases=("xeblog-picture",)),
    TagSpec(name="slide", required=("name",), optional=("essential",), aliases=("xeblog-slide",)),
    TagSpec(name="video-embed", required=("path",), aliases=("xeblog-video",)),
    TagSpec(name="talk-warning", aliases=("xeblog-talk-warning",)),
)


def default_catalog() -> TagCatalog:
    return TagCatalog(DEFAULT_TAGS)
