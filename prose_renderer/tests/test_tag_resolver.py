"""Test cases for resolving custom tags into render instructions."""

import unittest

from prose_renderer.errors import MissingRequiredAttribute, UnknownTag
from prose_renderer.model.document_model import ResolvedDocument
from prose_renderer.model.elements import (
    CustomTagNode,
    ParagraphBlock,
    Placement,
    RenderInstruction,
    SourcePosition,
    TextSpan,
)
from prose_renderer.model.tag_model import default_catalog
from prose_renderer.parser.markup_parser import parse_text
from prose_renderer.resolver.tag_resolver import TagResolver


def _node(name, attributes, children=(), placement=Placement.STANDALONE):
    return CustomTagNode(
        name=name,
        attribute_items=tuple(attributes.items()),
        placement=placement,
        position=SourcePosition(1, 1),
        children=tuple(children),
    )


class TagResolverTest(unittest.TestCase):
    """Test the catalog-driven resolution rules."""

    def setUp(self):
        self.resolver = TagResolver()

    def test_dialogue_resolves_to_speech_bubble(self):
        document = parse_text('<dialogue name="Aoi" mood="wut">Hi</dialogue>\n')
        resolved = self.resolver.resolve(document)

        self.assertIsInstance(resolved, ResolvedDocument)
        instruction = resolved.blocks[0]
        self.assertIsInstance(instruction, RenderInstruction)
        self.assertEqual(instruction.kind, "dialogue")
        self.assertEqual(instruction.params["speaker"], "Aoi")
        self.assertEqual(instruction.params["speaker_slug"], "aoi")
        self.assertEqual(instruction.params["mood"], "wut")
        self.assertFalse(instruction.params["standalone"])
        self.assertEqual([child.text for child in instruction.children], ["Hi"])

    def test_aliases_resolve_to_canonical_kind(self):
        for tag_name, attributes, kind in (
            ("xeblog-conv", {"name": "Mara", "mood": "hacker"}, "dialogue"),
            ("xeblog-hero", {"file": "foo"}, "hero"),
            ("xeblog-picture", {"path": "blog/foo"}, "illustration"),
            ("xeblog-video", {"path": "talks/foo"}, "video-embed"),
            ("XEBLOG-STICKER", {"name": "Aoi", "mood": "happy"}, "sticker"),
        ):
            instruction = self.resolver.resolve_node(_node(tag_name, attributes))
            self.assertEqual(instruction.kind, kind, tag_name)
            self.assertEqual(instruction.tag_name, tag_name)

    def test_unknown_tag(self):
        document = parse_text('<nonsense foo="bar"/>\n')
        with self.assertRaises(UnknownTag) as ctx:
            self.resolver.resolve(document)
        self.assertEqual(ctx.exception.tag_name, "nonsense")
        self.assertEqual(ctx.exception.position, SourcePosition(1, 1))

    def test_missing_required_attributes_are_listed(self):
        with self.assertRaises(MissingRequiredAttribute) as ctx:
            self.resolver.resolve_node(_node("dialogue", {}, [TextSpan("Hi", SourcePosition(1, 1))]))
        self.assertEqual(ctx.exception.missing, ("name", "mood"))

    def test_blank_required_attribute_counts_as_missing(self):
        with self.assertRaises(MissingRequiredAttribute) as ctx:
            self.resolver.resolve_node(_node("hero", {"file": "  "}))
        self.assertEqual(ctx.exception.missing, ("file",))

    def test_missing_attribute_on_nested_tag_fails_whole_document(self):
        document = parse_text('Before <conv name="Aoi">Hi</conv> after\n')
        with self.assertRaises(MissingRequiredAttribute):
            self.resolver.resolve(document)

    def test_hero_defaults(self):
        instruction = self.resolver.resolve_node(_node("hero", {"file": "foo"}))
        self.assertEqual(instruction.params, {"file": "foo", "prompt": None, "ai": "MidJourney"})

        custom = TagResolver(default_ai="Stable Diffusion").resolve_node(
            _node("hero", {"file": "foo", "prompt": "a cat"})
        )
        self.assertEqual(custom.params["ai"], "Stable Diffusion")
        self.assertEqual(custom.params["prompt"], "a cat")

    def test_dialogue_speaker_underscores_and_flags(self):
        instruction = self.resolver.resolve_node(
            _node("dialogue", {"name": "Big_Numa", "mood": "neutral", "standalone": ""})
        )
        self.assertEqual(instruction.params["speaker"], "Big Numa")
        self.assertEqual(instruction.params["speaker_slug"], "big_numa")
        self.assertTrue(instruction.params["standalone"])

    def test_false_boolean_spellings(self):
        for value in ("false", "0", "no", "FALSE"):
            instruction = self.resolver.resolve_node(_node("slide", {"name": "intro", "essential": value}))
            self.assertFalse(instruction.params["essential"], value)
        instruction = self.resolver.resolve_node(_node("slide", {"name": "intro", "essential": "yes"}))
        self.assertTrue(instruction.params["essential"])

    def test_unknown_attributes_are_ignored_with_warning(self):
        with self.assertLogs("prose_renderer.resolver.tag_resolver", level="WARNING"):
            instruction = self.resolver.resolve_node(_node("hero", {"file": "foo", "width": "20"}))
        self.assertNotIn("width", instruction.params)

    def test_inline_tags_in_paragraph_are_replaced(self):
        document = parse_text('Before <conv name="Aoi" mood="wut">Hi</conv> after\n')
        resolved = self.resolver.resolve(document)

        paragraph = resolved.blocks[0]
        self.assertIsInstance(paragraph, ParagraphBlock)
        self.assertIsInstance(paragraph.inlines[1], RenderInstruction)
        self.assertEqual(paragraph.inlines[1].placement, Placement.INLINE)
        self.assertEqual(len(list(resolved.iter_instructions())), 1)

    def test_catalog_lists_canonical_kinds(self):
        kinds = set(default_catalog().all())
        self.assertEqual(
            kinds,
            {"dialogue", "hero", "sticker", "illustration", "slide", "video-embed", "talk-warning"},
        )
        self.assertFalse(default_catalog().is_block_only("conv"))
        self.assertTrue(default_catalog().is_block_only("xeblog-hero"))

    def test_resolution_does_not_mutate_document(self):
        document = parse_text('<hero file="foo"/>\n')
        self.resolver.resolve(document)
        self.assertIsInstance(document.blocks[0], CustomTagNode)


if __name__ == "__main__":
    unittest.main()
