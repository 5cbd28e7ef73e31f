"""HTML snippets for each custom tag kind."""
from __future__ import annotations

import hashlib
import json
from typing import Optional

from prose_renderer.renderer.assets import AssetResolver
from prose_renderer.renderer.utils import attrs_to_html, text

NOSCRIPT_NOTICE = "This dynamic component requires JavaScript to function, sorry!"
TALK_WARNING_TEXT = (
    "So you are aware: you are reading the written version of a conference talk. This is written in a "
    "different style that is more lighthearted, conversational and different than the content normally on "
    "this blog. The words being said are the verbatim words that were spoken at the conference. The slides "
    "are the literal slides for each spoken utterance. If you want to hide the non-essential slides, please "
    "press this button: "
)


def _sources(avif: str, webp: str) -> str:
    return (
        f"<source{attrs_to_html({'type': 'image/avif', 'srcset': avif})}/>"
        f"<source{attrs_to_html({'type': 'image/webp', 'srcset': webp})}/>"
    )


def conversation(
    assets: AssetResolver,
    speaker: str,
    slug: str,
    mood: str,
    body_html: str,
    standalone: bool = False,
) -> str:
    """Speech-bubble block: speaker sticker on the left, chat line on the right."""
    classes = "conversation standalone" if standalone else "conversation"
    image = attrs_to_html(
        {
            "style": "max-height:4.5rem",
            "alt": f"{speaker} is {mood}",
            "loading": "lazy",
            "src": assets.sticker(slug, mood, "png"),
        }
    )
    return (
        f'<div class="{classes}">'
        '<div class="conversation-standalone">'
        f"<picture>{_sources(assets.sticker(slug, mood, 'avif'), assets.sticker(slug, mood, 'webp'))}<img{image}/></picture>"
        "</div>"
        '<div class="conversation-chat">'
        f"&lt;<a{attrs_to_html({'href': assets.character_link(slug)})}><b>{text(speaker)}</b></a>&gt; {body_html}"
        "</div>"
        "</div>"
    )


def inline_conversation(assets: AssetResolver, speaker: str, slug: str, mood: str, body_html: str) -> str:
    """Compact speech bubble that sits inside running text."""
    image = attrs_to_html(
        {
            "class": "conversation-inline-sticker",
            "style": "max-height:1.5rem",
            "alt": f"{speaker} is {mood}",
            "loading": "lazy",
            "src": assets.sticker(slug, mood, "png"),
        }
    )
    return (
        '<span class="conversation conversation-inline">'
        f"<img{image}/>"
        f"&lt;<a{attrs_to_html({'href': assets.character_link(slug)})}><b>{text(speaker)}</b></a>&gt; {body_html}"
        "</span>"
    )


def hero(assets: AssetResolver, file: str, ai: str, prompt: Optional[str]) -> str:
    thumbnail = assets.hero_thumbnail(file)
    image = attrs_to_html({"style": "padding:0", "loading": "lazy", "alt": f"hero image {file}", "src": thumbnail})
    caption = text(ai)
    if prompt:
        caption += f" -- {text(prompt)}"
    return (
        f"<meta{attrs_to_html({'property': 'og:image', 'content': thumbnail})}/>"
        '<figure class="hero" style="margin:0">'
        f'<picture style="margin:0">{_sources(assets.hero(file, "avif"), assets.hero(file, "webp"))}<img{image}/></picture>'
        f"<figcaption>{caption}</figcaption>"
        "</figure>"
    )


def picture(assets: AssetResolver, path: str) -> str:
    image = attrs_to_html(
        {
            "class": "picture",
            "style": "padding:0",
            "loading": "lazy",
            "alt": f"hero image {path}",
            "src": assets.picture_thumbnail(path),
        }
    )
    return (
        f"<a{attrs_to_html({'href': assets.picture(path, 'jpg'), 'target': '_blank'})}>"
        '<picture class="picture" style="margin:0">'
        f"{_sources(assets.picture(path, 'avif'), assets.picture(path, 'webp'))}<img{image}/>"
        "</picture>"
        "</a>"
    )


def sticker(assets: AssetResolver, name: str, slug: str, mood: str) -> str:
    image = attrs_to_html({"alt": f"{name} is {mood}", "src": assets.sticker(slug, mood, "png")})
    return (
        "<center><picture>"
        f"{_sources(assets.sticker(slug, mood, 'avif'), assets.sticker(slug, mood, 'webp'))}<img{image}/>"
        "</picture></center>"
    )


def slide(assets: AssetResolver, name: str, essential: bool) -> str:
    variant = "xeblog-slides-essential" if essential else "xeblog-slides-fluff"
    image = attrs_to_html({"style": "padding:0", "loading": "lazy", "src": assets.slide_thumbnail(name)})
    return (
        f'<div class="hero {variant}">'
        f'<picture style="margin:0">{_sources(assets.slide(name, "avif"), assets.slide(name, "webp"))}<img{image}/></picture>'
        "</div>"
    )


def component(assets: AssetResolver, name: str, data: object, ordinal: int) -> str:
    """Mount point plus module script for an interactive component.

    The element id is derived from the component name, its props and its
    ordinal within the document so that output is reproducible.
    """
    payload = json.dumps(data, sort_keys=True).replace("</", "<\\/")
    digest = hashlib.sha256(f"{name}:{payload}".encode("utf-8")).hexdigest()[:16]
    mount_id = f"xeact-{digest}-{ordinal}"
    fallback = conversation(assets, "Aoi", "aoi", "coffee", text(NOSCRIPT_NOTICE))
    script_src = json.dumps(assets.component_script(name))
    return (
        f'<div id="{mount_id}"><noscript><div class="warning">{fallback}</div></noscript></div>'
        '<script type="module">\n'
        f"import Component from {script_src};\n"
        f'const root = document.getElementById("{mount_id}");\n'
        "while (root.lastChild) {\n"
        "    root.removeChild(root.lastChild);\n"
        "}\n"
        f"root.appendChild(Component({payload}));\n"
        "</script>"
    )


def video(assets: AssetResolver, path: str, ordinal: int) -> str:
    return component(assets, "Video", {"path": path}, ordinal)


def talk_warning(assets: AssetResolver, ordinal: int) -> str:
    body = text(TALK_WARNING_TEXT) + component(assets, "NoFunAllowed", None, ordinal)
    return f'<div class="warning">{conversation(assets, "Cadey", "cadey", "coffee", body)}</div>'
