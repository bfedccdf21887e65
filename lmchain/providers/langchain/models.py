"""
Creation of LangChain chat model objects from LanguageModelSettings.

The chat models wrap the message exchange with the provider API, and
give a unified programming interface to the models of different
vendors. The objects are memoized in the global repository
`langchain_models`, keyed by the settings that created them, so that
all model links with the same model parameters share one client.

Examples:

```python
from lmchain.config.config import LanguageModelSettings
from lmchain.providers.langchain.models import (
    create_model_from_settings,
    create_model_from_spec,
    langchain_models,
)

settings = LanguageModelSettings(model="OpenAI/gpt-4o", top_p=0.9)
model = langchain_models[settings]
model = create_model_from_settings(settings)  # same object
model = create_model_from_spec("OpenAI/gpt-4o", top_p=0.9)  # same
```

Behaviour:
    Raises ImportError if the LangChain integration package of the
    model source is not installed, and the exceptions of LangChain.

Note:
    Support for new model sources should be added here by extending
    the match ... case statement in _create_model_instance, and in the
    ModelSource literal of lmchain.config.config.
"""

from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel

from lmchain.config.config import (
    LanguageModelSettings,
    ModelSource,
    ProviderParam,
)
from ..lazy_dict import LazyLoadingDict


def _create_model_instance(
    model: LanguageModelSettings,
) -> BaseChatModel:
    """
    Factory function to create Langchain models while checking
    permissible sources.
    """
    model_source: ModelSource = model.get_model_source()
    model_name: str = model.get_model_name()
    match model_source:
        case "Anthropic":
            try:
                from langchain_anthropic.chat_models import (
                    ChatAnthropic,
                )
            except ImportError as e:
                raise ImportError(
                    "Anthropic models require the "
                    "'langchain-anthropic' package. "
                    "Install it with: pip install langchain-anthropic"
                ) from e

            kwargs: dict[str, Any] = {
                "model_name": model_name,
                "temperature": model.temperature,
                "top_p": model.top_p,
                "max_tokens_to_sample": model.max_tokens or 1024,
                "timeout": model.timeout,
                "max_retries": model.max_retries,
                "stop": None,
            }
            kwargs.update(model.provider_params)

            return ChatAnthropic(**kwargs)

        case "Gemini":
            try:
                from langchain_google_genai import (
                    ChatGoogleGenerativeAI,
                )
            except ImportError as e:
                raise ImportError(
                    "Gemini models require the "
                    "'langchain-google-genai' package. "
                    "Install it with: pip install "
                    "langchain-google-genai"
                ) from e

            kwargs = {
                "model": model_name,
                "temperature": model.temperature,
                "top_p": model.top_p,
                "max_retries": model.max_retries,
            }
            if model.max_tokens is not None:
                kwargs["max_output_tokens"] = model.max_tokens
            if model.timeout is not None:
                kwargs["request_timeout"] = model.timeout
            kwargs.update(model.provider_params)

            return ChatGoogleGenerativeAI(**kwargs)

        case "Mistral":
            try:
                from langchain_mistralai.chat_models import (
                    ChatMistralAI,
                )
            except ImportError as e:
                raise ImportError(
                    "Mistral models require the 'langchain-mistralai'"
                    " package. Install it with: pip install "
                    "langchain-mistralai"
                ) from e

            kwargs = {
                "model_name": model_name,
                "temperature": model.temperature,
                "top_p": model.top_p,
                "max_retries": model.max_retries,
            }
            if model.max_tokens is not None:
                kwargs["max_tokens"] = model.max_tokens
            if model.timeout is not None:
                kwargs["timeout"] = int(model.timeout)
            kwargs.update(model.provider_params)

            return ChatMistralAI(**kwargs)

        case "OpenAI":
            from langchain_openai.chat_models import ChatOpenAI

            kwargs = {
                "model": model_name,
                "temperature": model.temperature,
                "top_p": model.top_p,
                "max_retries": model.max_retries,
                "use_responses_api": False,
            }
            if model.max_tokens is not None:
                kwargs["max_tokens"] = model.max_tokens
            if model.timeout is not None:
                kwargs["timeout"] = model.timeout
            kwargs.update(model.provider_params)

            return ChatOpenAI(**kwargs)

        case "Debug":
            from langchain_core.language_models.fake_chat_models import (
                GenericFakeChatModel,
            )
            from ..message_iterator import (
                yield_message,
                yield_constant_message,
            )

            if "message" in model.provider_params:
                return GenericFakeChatModel(
                    name="Langchain fake messages",
                    messages=yield_constant_message(
                        str(model.provider_params["message"])
                    ),
                )
            return GenericFakeChatModel(
                name="Langchain fake chat",
                messages=yield_message(model_name),
            )

        case _:
            raise ValueError(
                f"Unreachable code reached: invalid source {model_source}"
            )


# Public interface----------------------------------------------
langchain_models: LazyLoadingDict[LanguageModelSettings, BaseChatModel] = \
    LazyLoadingDict(_create_model_instance)


def create_model_from_spec(
    model: str,
    *,
    temperature: float = 0.7,
    top_p: float = 1.0,
    max_tokens: int | None = None,
    max_retries: int = 0,
    timeout: float | None = None,
    provider_params: dict[str, ProviderParam] | None = None,
) -> BaseChatModel:
    """
    Create langchain model from specifications.

    Args:
        model: the model in the form source/model, such as
            'OpenAI/gpt-4o'

    Returns:
        a Langchain model object.

    Raises ValueError, TypeError, ValidationError
    """
    spec = LanguageModelSettings(
        model=model,
        temperature=temperature,
        top_p=top_p,
        max_tokens=max_tokens,
        max_retries=max_retries,
        timeout=timeout,
        provider_params=provider_params or {},
    )
    return langchain_models[spec]


def create_model_from_settings(
    settings: LanguageModelSettings,
) -> BaseChatModel:
    """
    Create langchain model from a LanguageModelSettings object.
    Raises a ValueError if the source argument is not supported.
    """
    return langchain_models[settings]
