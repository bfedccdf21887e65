"""Test chain.links"""

# pyright: basic

import unittest

from pydantic import TypeAdapter, ValidationError

from lmchain.chain.links import (
    ContentBlock,
    FunctionLink,
    Link,
    MessageTemplate,
    ModelLink,
    as_link,
    function_link,
)


def get_random_letter() -> str:
    return "i"


class TestFunctionLink(unittest.TestCase):

    def test_name_from_function(self):
        link = FunctionLink(func=get_random_letter)  # type: ignore
        self.assertEqual(link.name, "get_random_letter")
        self.assertEqual(link.kind, "function")

    def test_explicit_name(self):
        link = FunctionLink(name="step1", func=get_random_letter)
        self.assertEqual(link.name, "step1")
        self.assertEqual(link.func(), "i")

    def test_not_callable(self):
        with self.assertRaises(ValidationError):
            FunctionLink(name="step1", func="get_random_letter")  # type: ignore

    def test_decorator(self):
        @function_link
        def add_honorific(name: str, gender: str) -> str:
            return f"{name}-kun" if gender == "boy" else f"{name}-chan"

        self.assertIsInstance(add_honorific, FunctionLink)
        self.assertEqual(add_honorific.name, "add_honorific")
        self.assertEqual(
            add_honorific.func(name="Ivan", gender="boy"), "Ivan-kun"
        )

    def test_decorator_with_name(self):
        @function_link(name="honorific")
        def add_honorific(name: str, gender: str) -> str:
            return f"{name}-kun"

        self.assertEqual(add_honorific.name, "honorific")

    def test_as_link(self):
        link = as_link(get_random_letter)
        self.assertIsInstance(link, FunctionLink)
        self.assertEqual(link.name, "get_random_letter")
        self.assertIs(as_link(link), link)

    def test_as_link_invalid(self):
        with self.assertRaises(TypeError):
            as_link("get_random_letter")  # type: ignore


class TestModelLink(unittest.TestCase):

    def test_defaults(self):
        link = ModelLink(
            name="getRandomName",
            templates=[MessageTemplate(content="A name with {{letter}}")],
        )
        self.assertEqual(link.kind, "model")
        self.assertIsNone(link.model)
        self.assertIsNone(link.retries)
        self.assertEqual(link.templates[0].role, "user")  # type: ignore

    def test_model_spec(self):
        link = ModelLink(name="x", model="OpenAI /gpt-4o")
        self.assertEqual(link.model, "OpenAI/gpt-4o")

    def test_invalid_model_spec(self):
        with self.assertRaises(ValidationError):
            ModelLink(name="x", model="gpt-4o")
        with self.assertRaises(ValidationError):
            ModelLink(name="x", model="Cohere/command")

    def test_invalid_retries(self):
        with self.assertRaises(ValidationError):
            ModelLink(name="x", retries=0)

    def test_invalid_temperature(self):
        with self.assertRaises(ValidationError):
            ModelLink(name="x", temperature=3.0)

    def test_empty_name(self):
        with self.assertRaises(ValidationError):
            ModelLink(name="  ")

    def test_extra_field(self):
        with self.assertRaises(ValidationError):
            ModelLink(name="x", template="typo")  # type: ignore

    def test_frozen(self):
        link = ModelLink(name="x")
        with self.assertRaises(ValidationError):
            link.retries = 2  # type: ignore

    def test_content_blocks(self):
        template = MessageTemplate(
            role="system",
            content=[
                {'template': "first"},  # type: ignore
                {'template': "second", 'include': False},  # type: ignore
            ],
        )
        self.assertIsInstance(template.content[0], ContentBlock)
        self.assertTrue(template.content[0].include)  # type: ignore
        self.assertFalse(template.content[1].include)  # type: ignore

    def test_invalid_role(self):
        with self.assertRaises(ValidationError):
            MessageTemplate(role="assistant", content="x")  # type: ignore

    def test_function_call_directive(self):
        link = ModelLink(name="x", function_call={'name': "getGender"})
        self.assertEqual(link.function_call, {'name': "getGender"})
        link = ModelLink(name="x", function_call="auto")
        self.assertEqual(link.function_call, "auto")
        with self.assertRaises(ValidationError):
            ModelLink(name="x", function_call="always")  # type: ignore


class TestLinkUnion(unittest.TestCase):

    def test_from_dicts(self):
        links = TypeAdapter(list[Link]).validate_python(
            [
                {'kind': "function", 'func': get_random_letter},
                {
                    'kind': "model",
                    'name': "getRandomName",
                    'templates': [{'content': "A name with {{letter}}"}],
                },
            ]
        )
        self.assertIsInstance(links[0], FunctionLink)
        self.assertIsInstance(links[1], ModelLink)
        self.assertEqual(links[0].name, "get_random_letter")

    def test_missing_kind(self):
        with self.assertRaises(ValidationError):
            TypeAdapter(Link).validate_python({'name': "x"})


if __name__ == "__main__":
    unittest.main()
