"""Extract the YAML metadata block that may open an article."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict

import yaml

from prose_renderer.errors import ParseError
from prose_renderer.model.elements import FrontMatter, SourcePosition
from prose_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

DELIMITER = "---"
CLOSING_DELIMITERS = ("---", "...")


class FrontMatterParser:
    """Split ``---`` delimited YAML front matter from the article body."""

    def __init__(self, text: str) -> None:
        self._text = text

    def parse(self) -> FrontMatter:
        """Return the metadata and how many leading lines it occupied."""
        lines = self._text.split("\n")
        if not lines or lines[0].rstrip() != DELIMITER:
            return FrontMatter()

        end_index = None
        for idx in range(1, len(lines)):
            if lines[idx].rstrip() in CLOSING_DELIMITERS:
                end_index = idx
                break

        if end_index is None:
            raise ParseError("Front matter is not closed with '---'", SourcePosition(1, 1))

        payload = "\n".join(lines[1:end_index])
        data = _load_yaml_mapping(payload)
        LOGGER.debug("Front matter with %d key(s) spans %d line(s)", len(data), end_index + 1)
        return FrontMatter(data=data, line_count=end_index + 1)


def _load_yaml_mapping(payload: str) -> Dict[str, Any]:
    """Parse a YAML string into a mapping, enforcing a dictionary output."""
    if not payload.strip():
        return {}
    try:
        loaded = yaml.safe_load(payload)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        # payload starts on the line after the opening delimiter
        position = SourcePosition(mark.line + 2, mark.column + 1) if mark is not None else SourcePosition(2, 1)
        raise ParseError(f"Invalid YAML front matter: {exc}", position) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, Mapping):
        raise ParseError("Front matter must be a YAML mapping", SourcePosition(2, 1))
    return {str(key): value for key, value in loaded.items()}
