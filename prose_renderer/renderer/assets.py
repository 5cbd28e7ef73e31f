"""Map asset references found in tags onto CDN URLs."""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from prose_renderer.config import AssetsConfig

THUMBNAIL_SUFFIX = "-smol.png"


class AssetResolver:
    """Builds asset URLs from the configured CDN prefix.

    No existence checks happen here; uploading and hosting the files is
    somebody else's job.
    """

    def __init__(self, config: Optional[AssetsConfig] = None) -> None:
        self._config = config or AssetsConfig()

    def _url(self, *parts: str) -> str:
        path = "/".join(quote(part.strip("/"), safe="/-_.~") for part in parts)
        return f"{self._config.cdn_base}/{path}"

    def hero(self, file: str, ext: str) -> str:
        return self._url("hero", f"{file}.{ext}")

    def hero_thumbnail(self, file: str) -> str:
        return self._url("hero", f"{file}{THUMBNAIL_SUFFIX}")

    def sticker(self, slug: str, mood: str, ext: str) -> str:
        return self._url("stickers", slug, f"{mood}.{ext}")

    def picture(self, path: str, ext: str) -> str:
        return self._url(f"{path}.{ext}")

    def picture_thumbnail(self, path: str) -> str:
        return self._url(f"{path}{THUMBNAIL_SUFFIX}")

    def slide(self, name: str, ext: str) -> str:
        return self._url("talks", f"{name}.{ext}")

    def slide_thumbnail(self, name: str) -> str:
        return self._url("talks", f"{name}{THUMBNAIL_SUFFIX}")

    def character_link(self, slug: str) -> str:
        return f"{self._config.characters_page}#{quote(slug, safe='-_.~')}"

    def component_script(self, name: str) -> str:
        return f"{self._config.component_base}/{quote(name, safe='-_.~')}.js"
