"""Renderer configuration loading.

Reads an optional ``prose_renderer.toml``. Every setting has a default, so
the renderer works without any file present.
"""
from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Tuple

from prose_renderer.errors import ConfigError

CONFIG_FILENAME = "prose_renderer.toml"
DEFAULT_CDN_BASE = "https://cdn.xeiaso.net/file/christine-static"
KNOWN_PRESETS = ("commonmark", "default", "zero", "js-default")


@dataclass(frozen=True)
class AssetsConfig:
    cdn_base: str = DEFAULT_CDN_BASE
    characters_page: str = "/characters"
    component_base: str = "/static/xeact"


@dataclass(frozen=True)
class MarkdownConfig:
    preset: str = "commonmark"
    enable: Tuple[str, ...] = ("table", "strikethrough")


@dataclass(frozen=True)
class HeroConfig:
    default_ai: str = "MidJourney"


@dataclass(frozen=True)
class RenderConfig:
    assets: AssetsConfig = field(default_factory=AssetsConfig)
    markdown: MarkdownConfig = field(default_factory=MarkdownConfig)
    hero: HeroConfig = field(default_factory=HeroConfig)


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"Expected {name} to be a string.")
    return value


def _as_str_list(value: Any, *, name: str) -> list[str]:
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise ConfigError(f"Expected {name} to be a list of strings.")
    return list(value)


def parse_config(data: dict[str, Any]) -> RenderConfig:
    """Validate an already decoded TOML mapping."""
    assets_tbl = _as_table(data.get("assets"), name="assets")
    markdown_tbl = _as_table(data.get("markdown"), name="markdown")
    hero_tbl = _as_table(data.get("hero"), name="hero")

    defaults = AssetsConfig()
    cdn_base = _as_str(assets_tbl.get("cdn_base", defaults.cdn_base), name="assets.cdn_base")
    characters_page = _as_str(
        assets_tbl.get("characters_page", defaults.characters_page), name="assets.characters_page"
    )
    component_base = _as_str(
        assets_tbl.get("component_base", defaults.component_base), name="assets.component_base"
    )

    if "preset" in markdown_tbl:
        preset = _as_str(markdown_tbl["preset"], name="markdown.preset")
    else:
        preset = MarkdownConfig.preset

    if "enable" in markdown_tbl:
        enable = tuple(_as_str_list(markdown_tbl["enable"], name="markdown.enable"))
    else:
        enable = MarkdownConfig.enable

    default_ai = _as_str(hero_tbl.get("default_ai", HeroConfig.default_ai), name="hero.default_ai")

    if preset not in KNOWN_PRESETS:
        raise ConfigError(f"Invalid config: markdown.preset must be one of {', '.join(KNOWN_PRESETS)}.")
    if not cdn_base:
        raise ConfigError("Invalid config: assets.cdn_base must not be empty.")
    if not default_ai.strip():
        raise ConfigError("Invalid config: hero.default_ai must not be empty.")

    return RenderConfig(
        assets=AssetsConfig(
            cdn_base=cdn_base.rstrip("/"),
            characters_page=characters_page,
            component_base=component_base.rstrip("/"),
        ),
        markdown=MarkdownConfig(preset=preset, enable=enable),
        hero=HeroConfig(default_ai=default_ai),
    )


def load_config(config_path: Optional[Path] = None, *, root: Optional[Path] = None) -> RenderConfig:
    """Load ``prose_renderer.toml``.

    An explicit ``config_path`` must exist. Without one, the file is looked up
    in ``root`` (default: the working directory) and defaults are used when it
    is absent.
    """
    if config_path is None:
        config_path = (root or Path.cwd()) / CONFIG_FILENAME
        if not config_path.is_file():
            return RenderConfig()

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise ConfigError(f"Missing config file at: {config_path}") from e
    except OSError as e:
        raise ConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    return parse_config(data)
