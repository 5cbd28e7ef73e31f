"""Exception hierarchy raised by the parse/resolve/render pipeline."""
from __future__ import annotations

from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from prose_renderer.model.elements import SourcePosition


class RenderError(Exception):
    """Base class for every error surfaced by the pipeline."""

    def __init__(self, message: str, position: Optional["SourcePosition"] = None) -> None:
        self.message = message
        self.position = position
        super().__init__(self._format())

    def _format(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at {self.position})"


class ParseError(RenderError):
    """Malformed input: unterminated tags, bad attributes, illegal nesting."""


class UnknownTag(RenderError):
    """A custom tag name that the catalog does not define."""

    def __init__(self, tag_name: str, position: Optional["SourcePosition"] = None) -> None:
        self.tag_name = tag_name
        super().__init__(f"Unknown custom tag <{tag_name}>", position)


class MissingRequiredAttribute(RenderError):
    """A known tag is missing one or more of its required attributes."""

    def __init__(self, tag_name: str, missing: Sequence[str], position: Optional["SourcePosition"] = None) -> None:
        self.tag_name = tag_name
        self.missing = tuple(missing)
        names = ", ".join(self.missing)
        super().__init__(f"<{tag_name}> is missing required attribute(s): {names}", position)


class InternalConsistencyError(RenderError):
    """A programmer error, e.g. an unresolved node reaching the renderer."""


class ConfigError(RenderError):
    """Invalid renderer configuration."""
