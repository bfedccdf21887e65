"""
LangChain implementation of the model-call boundary.

The provider obtains a LangChain chat model for the model of each
request (see the models module), converts the chat messages to
LangChain messages, binds the function schemas as tools, and converts
the response back into a CompletionResponse. The errors raised by the
LangChain clients are converted into ProviderError, retaining the
message of the provider when the provider returned a structured error.
Errors raised while creating the chat model, such as a missing
integration package, are converted in the same way.

Note:
    The offline 'Debug' source cannot call functions: a request with
    function schemas fails with a ProviderError for Debug models.

Example:
    ```python
    from lmchain.config.config import LanguageModelSettings
    from lmchain.providers.langchain import LangChainCompletionProvider

    provider = LangChainCompletionProvider(
        LanguageModelSettings(model="OpenAI/gpt-4o", timeout=30)
    )
    report = await execute_chain(links, provider=provider)
    ```
"""

import json
from collections.abc import Mapping
from typing import Any

from langchain_core.language_models import LanguageModelInput
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    FunctionMessage,
    HumanMessage,
    SystemMessage,
)
from langchain_core.runnables import Runnable

from lmchain.config.config import LanguageModelSettings
from lmchain.chain.base import CompletionProvider
from lmchain.chain.errors import ProviderError
from lmchain.chain.messages import (
    ChatMessage,
    CompletionRequest,
    CompletionResponse,
    FunctionCall,
    FunctionCallDirective,
    TokenUsage,
)
from .models import create_model_from_settings


def convert_messages(messages: list[ChatMessage]) -> list[BaseMessage]:
    """Convert chat messages to LangChain messages."""
    lc_messages: list[BaseMessage] = []
    for msg in messages:
        content = msg.content or ""
        match msg.role:
            case 'system':
                lc_messages.append(SystemMessage(content=content))
            case 'user':
                lc_messages.append(HumanMessage(content=content))
            case 'assistant':
                additional_kwargs: dict[str, Any] = {}
                if msg.function_call is not None:
                    additional_kwargs['function_call'] = (
                        msg.function_call.model_dump()
                    )
                lc_messages.append(
                    AIMessage(
                        content=content,
                        additional_kwargs=additional_kwargs,
                    )
                )
            case 'function':
                lc_messages.append(
                    FunctionMessage(content=content, name=msg.name or "")
                )
    return lc_messages


def _text_content(content: str | list[Any]) -> str | None:
    if isinstance(content, str):
        return content or None
    # content blocks, as returned by some providers
    parts: list[str] = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, Mapping) and part.get('type') == 'text':  # type: ignore
            parts.append(str(part.get('text', "")))  # type: ignore
    return "".join(parts) or None


def _token_usage(response: BaseMessage) -> TokenUsage | None:
    usage_metadata = getattr(response, 'usage_metadata', None)
    if usage_metadata:
        return TokenUsage(
            prompt_tokens=usage_metadata.get('input_tokens', 0),
            completion_tokens=usage_metadata.get('output_tokens', 0),
        )
    token_usage = response.response_metadata.get('token_usage')
    if isinstance(token_usage, Mapping):
        return TokenUsage(
            prompt_tokens=token_usage.get('prompt_tokens', 0) or 0,  # type: ignore
            completion_tokens=token_usage.get('completion_tokens', 0) or 0,  # type: ignore
        )
    return None


def convert_response(response: BaseMessage) -> CompletionResponse:
    """Convert a LangChain response into a CompletionResponse. The
    first tool call of the response, if any, is the function call."""
    function_call: FunctionCall | None = None
    tool_calls = getattr(response, 'tool_calls', None)
    if tool_calls:
        call = tool_calls[0]
        function_call = FunctionCall(
            name=call['name'], arguments=json.dumps(call['args'])
        )
    elif 'function_call' in response.additional_kwargs:
        legacy_call = response.additional_kwargs['function_call']
        function_call = FunctionCall(
            name=legacy_call.get('name', ""),
            arguments=legacy_call.get('arguments', "{}"),
        )

    metadata = dict(response.response_metadata)
    model_name = metadata.get('model_name') or metadata.get('model')
    return CompletionResponse(
        content=_text_content(response.content),  # type: ignore
        function_call=function_call,
        usage=_token_usage(response),
        model=str(model_name) if model_name else None,
        raw={'id': response.id, 'response_metadata': metadata},
    )


def provider_error(error: Exception) -> ProviderError:
    """Convert an exception of a LangChain client into a ProviderError.
    The structured detail is read from the body of the error response,
    as given by the OpenAI and Anthropic clients."""
    detail: str | None = None
    body = getattr(error, 'body', None)
    if isinstance(body, Mapping):
        error_body = body.get('error', body)  # type: ignore
        if isinstance(error_body, Mapping):
            message = error_body.get('message')  # type: ignore
            detail = str(message) if message else None  # type: ignore

    status = getattr(error, 'status_code', None)
    if not isinstance(status, int):
        response = getattr(error, 'response', None)
        status = getattr(response, 'status_code', None)
        if not isinstance(status, int):
            status = None

    return ProviderError(
        str(error) or type(error).__name__, detail=detail, status=status
    )


def _tool_choice(directive: FunctionCallDirective | None) -> str | None:
    match directive:
        case None:
            return None
        case {'name': name}:
            return name
        case str():
            return directive
        case _:
            raise ValueError(f"Invalid function_call directive: {directive}")


class LangChainCompletionProvider(CompletionProvider):
    """Completion provider calling LangChain chat models.

    Args:
        settings: the parameters of the model clients that are not
            given in the requests (max_tokens, timeout, max_retries,
            provider_params). The model, temperature and top_p come
            from each request.
    """

    def __init__(self, settings: LanguageModelSettings | None = None):
        self.settings = settings or LanguageModelSettings()

    def model_settings(
        self, request: CompletionRequest
    ) -> LanguageModelSettings:
        """The settings of the model client for the request."""
        spec = LanguageModelSettings(model=request.model)
        same_source = (
            spec.get_model_source() == self.settings.get_model_source()
        )
        return self.settings.from_instance(
            model=request.model,
            temperature=request.temperature,
            top_p=request.top_p,
            provider_params=(
                self.settings.provider_params if same_source else {}
            ),
        )

    def _runnable(
        self, request: CompletionRequest
    ) -> Runnable[LanguageModelInput, BaseMessage]:
        settings = self.model_settings(request)
        model = create_model_from_settings(settings)
        if not request.functions:
            return model
        if settings.get_model_source() == 'Debug':
            raise ValueError(
                "Function calls are not supported by the Debug source"
            )
        tools = [
            function.model_dump(exclude_none=True)
            for function in request.functions
        ]
        tool_choice = _tool_choice(request.function_call)
        if tool_choice is None:
            return model.bind_tools(tools)
        return model.bind_tools(tools, tool_choice=tool_choice)

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        try:
            runnable = self._runnable(request)
            response = runnable.invoke(convert_messages(request.messages))
        except Exception as e:
            raise provider_error(e) from e
        return convert_response(response)

    async def acomplete(
        self, request: CompletionRequest
    ) -> CompletionResponse:
        try:
            runnable = self._runnable(request)
            response = await runnable.ainvoke(
                convert_messages(request.messages)
            )
        except Exception as e:
            raise provider_error(e) from e
        return convert_response(response)
