"""Test chain.templates"""

# pyright: basic

import unittest

from lmchain.chain.links import ContentBlock
from lmchain.chain.results import LinkResults
from lmchain.chain.templates import (
    build_content,
    fill_content_template,
    format_value,
)

link_results = {
    'letter': "i",
    'name': "Ivan",
    'gender': {'name': "Ivan", 'gender': "boy"},
    'nested': {'a': {'b': {'c': "deep"}}},
    'names': ["Ivan", "Irina"],
    'count': 3,
}


class TestFillContentTemplate(unittest.TestCase):

    def test_no_results(self):
        template = "Name starting with {{letter}}"
        self.assertEqual(fill_content_template(template), template)
        self.assertEqual(fill_content_template(template, None), template)

    def test_no_matching_key(self):
        template = "Name starting with {{initial}}, {{other.path}}"
        self.assertEqual(
            fill_content_template(template, link_results), template
        )

    def test_empty_results(self):
        template = "Name starting with {{letter}}"
        self.assertEqual(fill_content_template(template, {}), template)

    def test_simple_reference(self):
        self.assertEqual(
            fill_content_template(
                "Name starting with {{letter}}", link_results
            ),
            "Name starting with i",
        )

    def test_multi_segment_path(self):
        self.assertEqual(
            fill_content_template("{{nested.a.b.c}}", link_results),
            link_results['nested']['a']['b']['c'],
        )
        self.assertEqual(
            fill_content_template(
                "{{gender.name}} is a {{gender.gender}}", link_results
            ),
            "Ivan is a boy",
        )

    def test_partial_path_left_untouched(self):
        template = "Value: {{nested.a.b.x}}"
        self.assertEqual(
            fill_content_template(template, link_results), template
        )
        template = "Value: {{name.first}}"
        self.assertEqual(
            fill_content_template(template, link_results), template
        )

    def test_tokens_resolved_independently(self):
        self.assertEqual(
            fill_content_template(
                "{{name}} {{missing}} {{letter}} {{name}}", link_results
            ),
            "Ivan {{missing}} i Ivan",
        )

    def test_list_index(self):
        self.assertEqual(
            fill_content_template("{{names.1}}", link_results), "Irina"
        )
        self.assertEqual(
            fill_content_template("{{names.2}}", link_results),
            "{{names.2}}",
        )

    def test_structured_value(self):
        self.assertEqual(
            fill_content_template("{{gender}}", link_results),
            '{"name": "Ivan", "gender": "boy"}',
        )

    def test_number_value(self):
        self.assertEqual(
            fill_content_template("{{count}} names", link_results),
            "3 names",
        )

    def test_not_a_reference(self):
        template = "{single} {{ spaced }} {{a-b}}"
        self.assertEqual(
            fill_content_template(template, link_results), template
        )

    def test_link_results_object(self):
        results = LinkResults(link_results)
        self.assertEqual(
            fill_content_template("{{gender.name}}", results), "Ivan"
        )


class TestFormatValue(unittest.TestCase):

    def test_format(self):
        self.assertEqual(format_value("text"), "text")
        self.assertEqual(format_value(2), "2")
        self.assertEqual(format_value(0.5), "0.5")
        self.assertEqual(format_value(True), "true")
        self.assertEqual(format_value(None), "null")
        self.assertEqual(format_value(["a", 1]), '["a", 1]')


class TestBuildContent(unittest.TestCase):

    def test_string_content(self):
        self.assertEqual(
            build_content("Hello {{name}}", link_results), "Hello Ivan"
        )

    def test_string_content_not_formatted(self):
        # formatting flags apply to content blocks only
        self.assertEqual(
            build_content("Hello  {{name}}", link_results),
            "Hello  Ivan",
        )

    def test_blocks_filtered_and_ordered(self):
        content = [
            ContentBlock(template="t1 {{name}}", include=True),
            ContentBlock(template="t2 {{name}}", include=False),
            ContentBlock(template="t3 {{letter}}", include=True),
        ]
        self.assertEqual(
            build_content(content, link_results), "t1 Ivan\nt3 i"
        )

    def test_include_default(self):
        content = [
            ContentBlock(template="first"),
            ContentBlock(template="second"),
        ]
        self.assertEqual(build_content(content), "first\nsecond")

    def test_space_join(self):
        content = [
            ContentBlock(template="Come up with a name"),
            ContentBlock(template="starting with {{letter}}"),
        ]
        self.assertEqual(
            build_content(
                content, link_results, auto_newline_content=False
            ),
            "Come up with a name starting with i",
        )

    def test_remove_double_spaces(self):
        content = [
            ContentBlock(template="Hello  "),
            ContentBlock(template=" world,   {{name}}"),
        ]
        self.assertEqual(
            build_content(content, link_results), "Hello world, Ivan"
        )

    def test_keep_double_spaces(self):
        content = [
            ContentBlock(template="Hello  "),
            ContentBlock(template="world"),
        ]
        self.assertEqual(
            build_content(content, remove_double_spaces=False),
            "Hello  \nworld",
        )

    def test_all_blocks_excluded(self):
        content = [ContentBlock(template="hidden", include=False)]
        self.assertEqual(build_content(content, link_results), "")

    def test_unresolved_reference_in_block(self):
        content = [ContentBlock(template="Name: {{missing.name}}")]
        self.assertEqual(
            build_content(content, link_results), "Name: {{missing.name}}"
        )


if __name__ == "__main__":
    unittest.main()
