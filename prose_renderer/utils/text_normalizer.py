"""
Source text normalization for article input.

Handles UTF-8 decoding, byte-order marks, line endings and stray control
characters before the block scanner ever sees the text.
"""

import re
from typing import Union

from prose_renderer.errors import ParseError
from prose_renderer.model.elements import SourcePosition


class TextNormalizer:
    """Normalizes raw article text into the form the parser expects."""

    BYTE_ORDER_MARK = '\ufeff'

    # CRLF first so it is not counted as two line breaks
    LINE_ENDING_PATTERN = re.compile(r'\r\n?')

    # Control characters except tab (\x09) and newline (\x0a)
    CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

    def __init__(self, strip_control_chars: bool = True):
        """Initialize text normalizer.

        Args:
            strip_control_chars: If True, drop C0 control characters other
                                 than tab and newline.
        """
        self.strip_control_chars = strip_control_chars

    def decode(self, data: bytes) -> str:
        """Decode UTF-8 input, reporting the position of the first bad byte."""
        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError as exc:
            prefix = data[:exc.start].decode('utf-8', errors='replace')
            line = prefix.count('\n') + 1
            column = len(prefix) - (prefix.rfind('\n') + 1) + 1
            raise ParseError(
                f"Input is not valid UTF-8 (byte 0x{data[exc.start]:02x})",
                SourcePosition(line, column),
            ) from exc
        return self.normalize_text(text)

    def normalize_text(self, text: str) -> str:
        """Normalize line endings, BOM and control characters."""
        if not text:
            return text

        if text.startswith(self.BYTE_ORDER_MARK):
            text = text[len(self.BYTE_ORDER_MARK):]

        normalized = self.LINE_ENDING_PATTERN.sub('\n', text)

        if self.strip_control_chars:
            normalized = self.CONTROL_CHARS_PATTERN.sub('', normalized)

        return normalized


def normalize_source(text: Union[str, bytes, None]) -> str:
    """Convenience function to normalize article input.

    Args:
        text: Raw UTF-8 bytes or an already decoded string

    Returns:
        Normalized text string
    """
    normalizer = TextNormalizer()

    if text is None:
        return ""
    if isinstance(text, bytes):
        return normalizer.decode(text)
    return normalizer.normalize_text(text)
