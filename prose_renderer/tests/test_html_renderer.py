"""Test cases for HTML rendering of resolved documents."""

import unittest

from prose_renderer.config import AssetsConfig, RenderConfig
from prose_renderer.errors import InternalConsistencyError
from prose_renderer.model.document_model import ResolvedDocument
from prose_renderer.parser.markup_parser import parse_text
from prose_renderer.renderer.html_renderer import HtmlRenderer
from prose_renderer.renderer.utils import build_markdown
from prose_renderer.resolver.tag_resolver import TagResolver

PLAIN_ARTICLE = """# Why compile times matter

Rust compile times are *famously* slow. See [the book][book] or
the [docs](https://doc.rust-lang.org/) for `cargo build` details.

## Things to try

1. Use `sccache`
2. Split crates

- fewer generics
- less **macro** magic

> Measure first,
> optimize later.

```toml
[profile.dev]
debug = 0
```

    indented code

Setext heading
--------------

| crate | seconds |
| ----- | ------- |
| serde | 12 |

This is ~~slow~~ fast now.

***

[book]: https://doc.rust-lang.org/book/
"""


def _render(text, config=None):
    resolved = TagResolver().resolve(parse_text(text))
    return HtmlRenderer(config).render(resolved)


class HtmlRendererTest(unittest.TestCase):
    """Test HTML output for prose and custom tags."""

    def test_plain_prose_matches_markdown_converter(self):
        expected = build_markdown().render(PLAIN_ARTICLE)
        self.assertEqual(_render(PLAIN_ARTICLE), expected)

    def test_rendering_is_deterministic(self):
        text = (
            '<hero file="compile-times" prompt="a crab waiting"/>\n\n'
            '<dialogue name="Aoi" mood="wut">Why is it so *slow*?</dialogue>\n\n'
            '<xeblog-video path="talks/rust/demo"/>\n\n'
            "<xeblog-talk-warning/>\n"
        )
        resolved = TagResolver().resolve(parse_text(text))
        renderer = HtmlRenderer()
        first = renderer.render(resolved)
        self.assertEqual(renderer.render(resolved), first)
        self.assertEqual(HtmlRenderer().render(resolved), first)

    def test_dialogue_example(self):
        html = _render('<dialogue name="Aoi" mood="wut">Hi</dialogue>\n')

        self.assertTrue(html.startswith('<div class="conversation">'))
        self.assertIn('alt="Aoi is wut"', html)
        self.assertIn("/stickers/aoi/wut.png", html)
        self.assertIn('<a href="/characters#aoi"><b>Aoi</b></a>&gt; Hi</div>', html)
        self.assertTrue(html.endswith("</div>\n"))

    def test_dialogue_body_keeps_emphasis(self):
        html = _render('<dialogue name="Mara" mood="hacker">This is **important**.</dialogue>\n')
        self.assertIn("&gt; This is <strong>important</strong>.</div>", html)

    def test_standalone_flag_adds_class(self):
        html = _render('<dialogue name="Cadey" mood="enby" standalone>Sure.</dialogue>\n')
        self.assertTrue(html.startswith('<div class="conversation standalone">'))

    def test_inline_dialogue_inside_paragraph(self):
        html = _render('Then <conv name="Aoi" mood="wut">what?</conv> happened.\n')

        self.assertTrue(html.startswith("<p>Then <span class=\"conversation conversation-inline\">"))
        self.assertIn("&gt; what?</span> happened.</p>\n", html)

    def test_hero_caption_and_og_image(self):
        html = _render('<hero file="compile-times" prompt="a crab &amp; a clock" ai="Flux"/>\n')

        self.assertIn('<meta property="og:image"', html)
        self.assertIn("/hero/compile-times.avif", html)
        self.assertIn("<figcaption>Flux -- a crab &amp; a clock</figcaption>", html)

    def test_hero_without_prompt_uses_default_ai(self):
        html = _render('<hero file="foo"/>\n')
        self.assertIn("<figcaption>MidJourney</figcaption>", html)

    def test_asset_urls_follow_config(self):
        config = RenderConfig(assets=AssetsConfig(cdn_base="https://cdn.example.com"))
        html = _render('<xeblog-picture path="blog/2023/diagram"/>\n', config)

        self.assertIn('href="https://cdn.example.com/blog/2023/diagram.jpg"', html)
        self.assertIn('src="https://cdn.example.com/blog/2023/diagram-smol.png"', html)

    def test_slide_variants(self):
        essential = _render('<xeblog-slide name="rust/001" essential/>\n')
        fluff = _render('<xeblog-slide name="rust/002"/>\n')
        self.assertIn("xeblog-slides-essential", essential)
        self.assertIn("xeblog-slides-fluff", fluff)

    def test_component_ids_are_numbered_in_order(self):
        html = _render('<xeblog-video path="a"/>\n\n<xeblog-video path="a"/>\n')
        first = html.index("-1\"")
        second = html.index("-2\"")
        self.assertLess(first, second)

    def test_prose_around_tags_keeps_order(self):
        html = _render('Before.\n\n<xeblog-sticker name="Aoi" mood="happy"/>\n\nAfter.\n')
        self.assertLess(html.index("<p>Before.</p>"), html.index("<center>"))
        self.assertLess(html.index("<center>"), html.index("<p>After.</p>"))

    def test_reference_links_resolve_across_tagged_blocks(self):
        html = _render('Read <conv name="Aoi" mood="wut">the [guide][g]</conv>.\n\n[g]: https://example.com/guide\n')
        self.assertIn('<a href="https://example.com/guide">guide</a>', html)

    def test_quote_with_tag(self):
        html = _render('> <conv name="Aoi" mood="wut">Hi</conv>\n')
        self.assertTrue(html.startswith("<blockquote>\n<div class=\"conversation\">"))
        self.assertTrue(html.endswith("</blockquote>\n"))

    def test_html_blocks_with_blank_lines_match_markdown_converter(self):
        for text in (
            "Intro.\n\n<!--\nhidden draft\n\nstill hidden\n-->\n\nOutro.\n",
            "<pre>\nline one\n\nline two\n</pre>\n",
            "<div>\n*not emphasis*\n</div>\n\n*emphasis*\n",
        ):
            self.assertEqual(_render(text), build_markdown().render(text), text)

    def test_commented_out_tag_is_not_rendered(self):
        text = '<!--\n\n<hero file="draft"/>\n\n-->\n'
        html = _render(text)
        self.assertNotIn("og:image", html)
        self.assertEqual(html, build_markdown().render(text))

    def test_inline_svg_matches_markdown_converter(self):
        for text in (
            'Icon: <svg width="10" height="10"><path d="M0 0"/><rect width="2"/></svg> done.\n',
            '<svg width="10" height="10">\n<path d="M0 0"/>\n</svg>\n',
            "A Vec<u8> is bytes.\n",
        ):
            self.assertEqual(_render(text), build_markdown().render(text), text)

    def test_nested_list_under_tagged_item(self):
        html = _render('- a <conv name="Aoi" mood="wut">x</conv>\n  - nested\n')

        self.assertTrue(html.startswith('<ul>\n<li>a <span class="conversation conversation-inline">'))
        self.assertTrue(html.endswith("x</span>\n<ul>\n<li>nested</li>\n</ul>\n</li>\n</ul>\n"))

    def test_second_paragraph_in_tagged_item(self):
        html = _render('- a <conv name="Aoi" mood="wut">x</conv>\n\n  second para\n')

        self.assertTrue(html.startswith('<ul>\n<li>\n<p>a <span class="conversation conversation-inline">'))
        self.assertTrue(html.endswith("x</span></p>\n<p>second para</p>\n</li>\n</ul>\n"))

    def test_untagged_lists_keep_markdown_output(self):
        text = "1. one\n\n   more\n2. two\n   - nested\n"
        self.assertEqual(_render(text), build_markdown().render(text))

    def test_tag_inside_link_text_stays_in_the_link(self):
        html = _render('[see <conv name="Aoi" mood="wut">x</conv>](https://example.com)\n')

        self.assertTrue(html.startswith('<p><a href="https://example.com">see <span class="conversation conversation-inline">'))
        self.assertTrue(html.endswith("x</span></a></p>\n"))
        self.assertNotIn("[see", html)

    def test_emphasis_spanning_an_inline_tag(self):
        html = _render('*a <conv name="Aoi" mood="wut">b</conv> c*\n')

        self.assertTrue(html.startswith('<p><em>a <span class="conversation conversation-inline">'))
        self.assertTrue(html.endswith("b</span> c</em></p>\n"))
        self.assertNotIn("\uf8ff", html)

    def test_unresolved_document_is_rejected(self):
        with self.assertRaises(InternalConsistencyError):
            HtmlRenderer().render(parse_text('<hero file="foo"/>\n'))

    def test_unresolved_node_is_rejected(self):
        document = parse_text('<hero file="foo"/>\n')
        smuggled = ResolvedDocument(blocks=document.blocks)
        with self.assertRaises(InternalConsistencyError) as ctx:
            HtmlRenderer().render(smuggled)
        self.assertIsNotNone(ctx.exception.position)

    def test_render_page_uses_front_matter_title(self):
        resolved = TagResolver().resolve(parse_text("---\ntitle: Fast <builds>\n---\n\nBody.\n"))
        page = HtmlRenderer().render_page(resolved)

        self.assertIn("<title>Fast &lt;builds&gt;</title>", page)
        self.assertIn("<article>\n<p>Body.</p>\n</article>", page)


if __name__ == "__main__":
    unittest.main()
