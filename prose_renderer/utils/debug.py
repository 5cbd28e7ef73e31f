"""Helpers to persist intermediate representations for debugging."""
from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

from prose_renderer.model.document_model import Document, ResolvedDocument


class DebugDumper:
    """Writes intermediate artifacts onto disk for inspection."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def dump(self, document: Union[Document, ResolvedDocument], name: str = "document_model.json") -> Path:
        """Persist the document tree as JSON for offline analysis."""
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = self.serialize(document)
        target = self.directory / name
        target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return target

    def serialize(self, value: Any) -> Any:
        if is_dataclass(value) and not isinstance(value, type):
            payload = {"type": type(value).__name__}
            for item in fields(value):
                payload[item.name] = self.serialize(getattr(value, item.name))
            return payload
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return {str(k): self.serialize(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.serialize(v) for v in value]
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        return str(value)
