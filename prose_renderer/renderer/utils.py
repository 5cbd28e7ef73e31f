"""Common helpers shared by renderer implementations."""
from __future__ import annotations

import html
from typing import Dict, Optional

from markdown_it import MarkdownIt

from prose_renderer.config import MarkdownConfig
from prose_renderer.errors import ConfigError


def build_markdown(config: Optional[MarkdownConfig] = None) -> MarkdownIt:
    """Create the Markdown engine used for prose blocks."""
    config = config or MarkdownConfig()
    md = MarkdownIt(config.preset)
    if config.enable:
        try:
            md.enable(list(config.enable))
        except ValueError as exc:
            raise ConfigError(f"Invalid config: markdown.enable: {exc}") from exc
    return md


def attrs_to_html(attributes: Dict[str, Optional[str]]) -> str:
    """Serialize attributes in insertion order, skipping ``None`` values."""
    parts = []
    for key, value in attributes.items():
        if value is None:
            continue
        parts.append(f' {key}="{html.escape(value, quote=True)}"')
    return "".join(parts)


def text(value: object) -> str:
    """Escape a value for use as element text."""
    return html.escape(str(value), quote=False)
