"""Test chain.invoker"""

# pyright: basic

import unittest
from unittest.mock import patch

from lmchain.config.config import ChainSettings, LanguageModelSettings
from lmchain.chain import invoker
from lmchain.chain.base import CompletionProvider
from lmchain.chain.errors import (
    LinkConfigurationError,
    ModelInvocationError,
    ProviderError,
)
from lmchain.chain.invoker import (
    build_request,
    extract_result,
    invoke_model,
    render_messages,
)
from lmchain.chain.links import ContentBlock, MessageTemplate, ModelLink
from lmchain.chain.messages import (
    ChatMessage,
    CompletionRequest,
    CompletionResponse,
    FunctionCall,
    TokenUsage,
)
from lmchain.chain.results import LinkResults
from lmchain.utils.logging import LoglistLogger


class ScriptedProvider(CompletionProvider):
    """Returns or raises the scripted outcomes in order."""

    def __init__(self, *outcomes: CompletionResponse | Exception):
        self.outcomes = list(outcomes)
        self.requests: list[CompletionRequest] = []

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _text(content: str, prompt: int = 0, completion: int = 0):
    return CompletionResponse(
        content=content,
        usage=TokenUsage(
            prompt_tokens=prompt, completion_tokens=completion
        ),
    )


name_link = ModelLink(
    name="getRandomName",
    templates=[
        MessageTemplate(role="system", content="You name people."),
        MessageTemplate(
            content=[
                ContentBlock(template="Come up with one first name"),
                ContentBlock(template="starting with {{letter}}"),
                ContentBlock(template="and a surname", include=False),
            ]
        ),
    ],
)


class TestRenderMessages(unittest.TestCase):

    def test_templates(self):
        messages = render_messages(name_link, {'letter': "i"})
        self.assertEqual(
            messages,
            [
                ChatMessage(role="system", content="You name people."),
                ChatMessage(
                    role="user",
                    content="Come up with one first name\nstarting with i",
                ),
            ],
        )

    def test_link_flags(self):
        link = name_link.model_copy(update={'auto_newline_content': False})
        messages = render_messages(link, {'letter': "i"})
        self.assertEqual(
            messages[1].content,
            "Come up with one first name starting with i",
        )

    def test_settings_flags(self):
        messages = render_messages(
            name_link,
            {'letter': "i"},
            ChainSettings(auto_newline_content=False),
        )
        self.assertEqual(
            messages[1].content,
            "Come up with one first name starting with i",
        )

    def test_static_messages(self):
        link = ModelLink(
            name="x",
            messages=[ChatMessage(role="user", content="{{letter}}")],
        )
        # static messages are not templates
        self.assertEqual(
            render_messages(link, {'letter': "i"})[0].content,
            "{{letter}}",
        )

    def test_templates_take_precedence(self):
        link = ModelLink(
            name="x",
            messages=[ChatMessage(role="user", content="static")],
            templates=[MessageTemplate(content="templated")],
        )
        self.assertEqual(render_messages(link, {})[0].content, "templated")

    def test_no_messages(self):
        with self.assertRaises(LinkConfigurationError) as context:
            render_messages(ModelLink(name="empty"), {})
        self.assertEqual(context.exception.link_name, "empty")


class TestBuildRequest(unittest.TestCase):

    def test_defaults_from_settings(self):
        settings = LanguageModelSettings(
            model="Mistral/mistral-small-latest", temperature=0.2
        )
        messages = [ChatMessage(role="user", content="hi")]
        request = build_request(
            ModelLink(name="x", top_p=0.5), messages, settings
        )
        self.assertEqual(request.model, "Mistral/mistral-small-latest")
        self.assertEqual(request.temperature, 0.2)
        self.assertEqual(request.top_p, 0.5)

    def test_link_values(self):
        link = ModelLink(
            name="x",
            model="OpenAI/gpt-4o",
            temperature=0.0,
            function_call={'name': "getGender"},
        )
        request = build_request(link, [])
        self.assertEqual(request.model, "OpenAI/gpt-4o")
        # zero is a value, not a missing setting
        self.assertEqual(request.temperature, 0.0)
        self.assertEqual(request.function_call, {'name': "getGender"})


class TestInvokeModel(unittest.IsolatedAsyncioTestCase):

    async def test_first_attempt(self):
        provider = ScriptedProvider(_text("Ivan", 10, 2))
        invocation = await invoke_model(
            name_link, LinkResults({'letter': "i"}), provider
        )
        self.assertEqual(invocation.completion.content, "Ivan")
        self.assertEqual(len(provider.requests), 1)
        self.assertEqual(
            invocation.sent_messages, provider.requests[0].messages
        )

    async def test_retry_then_success(self):
        provider = ScriptedProvider(
            ProviderError("timeout"),
            RuntimeError("connection reset"),
            _text("Ivan"),
        )
        logger = LoglistLogger()
        results = LinkResults({'letter': "i"})
        with patch.object(
            invoker, "render_messages", wraps=render_messages
        ) as render:
            invocation = await invoke_model(
                name_link, results, provider, retries=3, logger=logger
            )
        self.assertEqual(invocation.completion.content, "Ivan")
        # rendered at every attempt, with the same results
        self.assertEqual(render.call_count, 3)
        for call in render.call_args_list:
            self.assertIs(call.args[1], results)
        self.assertEqual(len(provider.requests), 3)
        self.assertEqual(
            provider.requests[0].messages, provider.requests[2].messages
        )
        self.assertEqual(logger.count_logs(level=1), 2)

    async def test_exhausted_with_detail(self):
        provider = ScriptedProvider(
            ProviderError("HTTP 500"),
            ProviderError(
                "HTTP 429", detail="Rate limit reached", status=429
            ),
        )
        logger = LoglistLogger()
        with self.assertRaises(ModelInvocationError) as context:
            await invoke_model(
                name_link, {'letter': "i"}, provider, retries=2,
                logger=logger,
            )
        self.assertEqual(str(context.exception), "Rate limit reached")
        self.assertEqual(context.exception.link_name, "getRandomName")
        self.assertIsInstance(context.exception.__cause__, ProviderError)
        self.assertEqual(len(logger.get_logs(level=2)), 1)

    async def test_exhausted_without_detail(self):
        provider = ScriptedProvider(RuntimeError("connection refused"))
        with self.assertRaises(ModelInvocationError) as context:
            await invoke_model(
                name_link, {'letter': "i"}, provider, retries=1,
                logger=LoglistLogger(),
            )
        self.assertEqual(str(context.exception), "connection refused")

    async def test_configuration_error_not_retried(self):
        provider = ScriptedProvider(_text("never"))
        with self.assertRaises(LinkConfigurationError):
            await invoke_model(ModelLink(name="empty"), {}, provider)
        self.assertEqual(provider.requests, [])

    async def test_invalid_retries(self):
        with self.assertRaises(ValueError):
            await invoke_model(
                name_link, {}, ScriptedProvider(), retries=0
            )


class TestExtractResult(unittest.TestCase):

    def test_text(self):
        self.assertEqual(extract_result(_text("Ivan")), "Ivan")

    def test_no_content(self):
        self.assertEqual(extract_result(CompletionResponse()), "")

    def test_function_call(self):
        completion = CompletionResponse(
            function_call=FunctionCall(
                name="getGender",
                arguments='{"name": "Ivan", "gender": "boy"}',
            )
        )
        self.assertEqual(
            extract_result(completion), {'name': "Ivan", 'gender': "boy"}
        )

    def test_function_call_wins(self):
        completion = CompletionResponse(
            content="some text",
            function_call=FunctionCall(name="f", arguments='{"a": 1}'),
        )
        self.assertEqual(extract_result(completion), {'a': 1})

    def test_invalid_arguments(self):
        completion = CompletionResponse(
            function_call=FunctionCall(name="f", arguments='{"a": ')
        )
        with self.assertRaises(ModelInvocationError) as context:
            extract_result(completion, "getGender")
        self.assertEqual(context.exception.link_name, "getGender")


if __name__ == "__main__":
    unittest.main()
