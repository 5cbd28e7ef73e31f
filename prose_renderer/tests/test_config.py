"""Test cases for renderer configuration loading."""

import tempfile
import unittest
from pathlib import Path

from prose_renderer.config import CONFIG_FILENAME, DEFAULT_CDN_BASE, RenderConfig, load_config, parse_config
from prose_renderer.errors import ConfigError
from prose_renderer.renderer.utils import build_markdown


class ConfigTest(unittest.TestCase):

    def test_defaults_without_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = load_config(root=Path(tmp))
        self.assertEqual(config, RenderConfig())
        self.assertEqual(config.assets.cdn_base, DEFAULT_CDN_BASE)
        self.assertEqual(config.markdown.preset, "commonmark")
        self.assertEqual(config.hero.default_ai, "MidJourney")

    def test_file_in_root_is_picked_up(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / CONFIG_FILENAME).write_text(
                '[assets]\ncdn_base = "https://cdn.example.com/"\n\n[hero]\ndefault_ai = "Flux"\n',
                encoding="utf-8",
            )
            config = load_config(root=Path(tmp))
        self.assertEqual(config.assets.cdn_base, "https://cdn.example.com")
        self.assertEqual(config.hero.default_ai, "Flux")
        self.assertEqual(config.assets.characters_page, "/characters")

    def test_explicit_missing_path_is_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ConfigError):
                load_config(Path(tmp) / "nope.toml")

    def test_invalid_toml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / CONFIG_FILENAME
            path.write_text("[assets\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(path)

    def test_type_errors(self):
        for data in (
            {"assets": "nope"},
            {"assets": {"cdn_base": 3}},
            {"markdown": {"enable": "table"}},
            {"markdown": {"preset": "gfm"}},
            {"hero": {"default_ai": "  "}},
            {"assets": {"cdn_base": ""}},
        ):
            with self.assertRaises(ConfigError, msg=repr(data)):
                parse_config(data)

    def test_markdown_rules(self):
        config = parse_config({"markdown": {"preset": "commonmark", "enable": []}})
        self.assertEqual(config.markdown.enable, ())
        md = build_markdown(config.markdown)
        self.assertIn("~~a~~", md.render("~~a~~"))

    def test_unknown_markdown_rule_is_config_error(self):
        config = parse_config({"markdown": {"enable": ["no-such-rule"]}})
        with self.assertRaises(ConfigError):
            build_markdown(config.markdown)


if __name__ == "__main__":
    unittest.main()
