"""
Calls to the language model for a model link.

The messages of a model link are built from its templates at every
attempt, filling in the results of the links that were executed before
it. A failed call is attempted again until the retry budget of the
link is exhausted; the error reported then is the message given by the
provider, if the provider gave one.

Behaviour:
    Raises LinkConfigurationError if the link has neither templates
    nor messages, ModelInvocationError if all attempts fail.
"""

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from lmchain.config.config import ChainSettings, LanguageModelSettings
from lmchain.utils.logging import LoggerBase, get_logger

from .base import CompletionProvider
from .errors import (
    LinkConfigurationError,
    ModelInvocationError,
    ProviderError,
)
from .links import ModelLink
from .messages import ChatMessage, CompletionRequest, CompletionResponse
from .templates import build_content

logger: LoggerBase = get_logger(__name__)


class ModelInvocation(BaseModel):
    """The completion obtained for a model link and the messages that
    were sent to obtain it."""

    completion: CompletionResponse
    sent_messages: list[ChatMessage]


def render_messages(
    link: ModelLink,
    link_results: Mapping[str, Any] | None,
    chain_settings: ChainSettings | None = None,
) -> list[ChatMessage]:
    """The messages to send for a model link. Templates, if present,
    take precedence over the static messages of the link.

    Raises:
        LinkConfigurationError: if the link has neither templates nor
            messages.
    """
    if chain_settings is None:
        chain_settings = ChainSettings()
    auto_newline_content = (
        link.auto_newline_content
        if link.auto_newline_content is not None
        else chain_settings.auto_newline_content
    )
    remove_double_spaces = (
        link.remove_double_spaces
        if link.remove_double_spaces is not None
        else chain_settings.remove_double_spaces
    )

    if link.templates:
        return [
            ChatMessage(
                role=template.role,
                content=build_content(
                    template.content,
                    link_results,
                    auto_newline_content=auto_newline_content,
                    remove_double_spaces=remove_double_spaces,
                ),
            )
            for template in link.templates
        ]
    if link.messages:
        return list(link.messages)
    raise LinkConfigurationError(link.name)


def build_request(
    link: ModelLink,
    messages: list[ChatMessage],
    model_settings: LanguageModelSettings | None = None,
) -> CompletionRequest:
    """Complete the model parameters of the link with the defaults of
    the settings."""
    if model_settings is None:
        model_settings = LanguageModelSettings()
    return CompletionRequest(
        model=link.model or model_settings.model,
        temperature=(
            link.temperature
            if link.temperature is not None
            else model_settings.temperature
        ),
        top_p=link.top_p if link.top_p is not None else model_settings.top_p,
        messages=messages,
        functions=link.functions,
        function_call=link.function_call,
    )


def _error_message(error: Exception) -> str:
    if isinstance(error, ProviderError) and error.detail:
        return error.detail
    return str(error) or type(error).__name__


async def invoke_model(
    link: ModelLink,
    link_results: Mapping[str, Any] | None,
    provider: CompletionProvider,
    retries: int = 3,
    *,
    model_settings: LanguageModelSettings | None = None,
    chain_settings: ChainSettings | None = None,
    logger: LoggerBase = logger,
) -> ModelInvocation:
    """
    Obtain a completion for a model link.

    Args:
        link: the model link.
        link_results: the results of the links executed so far.
        provider: the model-call boundary.
        retries: the number of attempts.
        model_settings: defaults for the model parameters the link
            does not specify.
        chain_settings: defaults for the content formatting flags.
        logger: receives a warning for each failed attempt.

    Returns:
        the completion and the messages sent in the successful
        attempt.
    """
    if retries < 1:
        raise ValueError(f"Invalid number of retries: {retries}")

    for attempt in range(1, retries + 1):
        messages = render_messages(link, link_results, chain_settings)
        request = build_request(link, messages, model_settings)
        try:
            completion = await provider.acomplete(request)
        except Exception as e:
            message = _error_message(e)
            if attempt == retries:
                logger.error(
                    f"Link '{link.name}' failed after {retries} "
                    f"attempt(s): {message}"
                )
                raise ModelInvocationError(link.name, message) from e
            logger.warning(
                f"Link '{link.name}', attempt {attempt} of {retries} "
                f"failed: {message}"
            )
            continue
        return ModelInvocation(completion=completion, sent_messages=messages)

    # unreachable, the last attempt either returns or raises
    raise ModelInvocationError(link.name, "No attempt was made")


def extract_result(
    completion: CompletionResponse, link_name: str = ""
) -> str | object:
    """The result of a model link: the decoded arguments of a function
    call, or else the text of the completion ('' if absent)."""
    if completion.function_call is not None:
        try:
            return json.loads(completion.function_call.arguments)
        except json.JSONDecodeError as e:
            raise ModelInvocationError(
                link_name,
                f"Invalid arguments in call to function "
                f"'{completion.function_call.name}': {e}",
            ) from e
    return completion.content or ""
