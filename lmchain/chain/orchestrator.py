"""
Execution of a chain of links.

The links of a chain are executed one at a time, in the order given.
The result of each link is recorded under the name of the link, and is
available to all the links that follow it. The result of the chain is
the result of its last link, reported together with the results of all
links, the messages sent to the model, the completions received, and
the tokens used.

Example:
    ```python
    import random
    from lmchain.chain import (
        ContentBlock,
        FunctionDefinition,
        MessageTemplate,
        ModelLink,
        execute_chain,
    )

    def get_random_letter() -> str:
        return random.choice("abcdefghijklmnopqrstuvwxyz")

    get_random_name = ModelLink(
        name="getRandomName",
        temperature=0.9,
        templates=[MessageTemplate(content=[ContentBlock(
            template="Come up with one first name that starts with "
            "the letter {{get_random_letter}}",
        )])],
    )
    get_gender = ModelLink(
        name="getGender",
        retries=2,
        templates=[MessageTemplate(
            content="What is the gender of {{getRandomName}}"
        )],
        functions=[FunctionDefinition(
            name="getGender",
            description="Gets the gender of a name",
            parameters={'type': "object", 'properties': {
                'gender': {'type': "string", 'enum': ["boy", "girl"]},
                'name': {'type': "string"},
            }},
        )],
        function_call={'name': "getGender"},
    )

    def add_honorific(gender: str, name: str) -> str:
        return f"{name}-kun" if gender == "boy" else f"{name}-chan"

    report = await execute_chain([
        get_random_letter, get_random_name, get_gender, add_honorific,
    ])
    print(report.final_result, report.total_tokens)
    ```

Behaviour:
    The first error raised by a link aborts the chain and is raised to
    the caller. No report is produced for a chain that failed.
"""

import asyncio
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from lmchain.config.config import Settings
from lmchain.utils.logging import LoggerBase, get_logger

from .base import CompletionProvider
from .errors import ChainConfigurationError
from .executor import execute_link
from .links import Link, ModelLink, as_link
from .messages import ChatMessage, CompletionResponse
from .results import LinkResults

logger: LoggerBase = get_logger(__name__)


class ChainConfig(BaseModel):
    """Options of a chain execution. The retries of a model link take
    precedence over the retries given here."""

    retries: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(frozen=True, extra='forbid')


class ChainReport(BaseModel):
    """
    The result of a chain execution.

    Attributes:
        final_result: the result of the last link
        total_tokens: sum of prompt and completion tokens
        total_prompt_tokens: prompt tokens of all model links
        total_completion_tokens: completion tokens of all model links
        completion_responses: the completion of each model link
        link_results: the result of each link
        link_messages: the messages sent by each model link
    """

    final_result: Any
    total_tokens: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    completion_responses: dict[str, CompletionResponse] = Field(
        default_factory=dict
    )
    link_results: dict[str, Any] = Field(default_factory=dict)
    link_messages: dict[str, list[ChatMessage]] = Field(
        default_factory=dict
    )


_links_adapter: TypeAdapter[list[Link]] = TypeAdapter(list[Link])


class Chain:
    """
    An ordered, immutable sequence of links with unique names.

    Args:
        links: links, link definitions as dictionaries, or bare
            callables, which are wrapped into function links.

    Raises:
        ChainConfigurationError: if the chain is empty or two links
            have the same name.
        ValidationError: if a link definition is invalid.
    """

    def __init__(
        self, links: Iterable[Link | Callable[..., Any] | dict[str, Any]]
    ) -> None:
        items = [
            link if isinstance(link, dict) else as_link(link)
            for link in links
        ]
        self._links: tuple[Link, ...] = tuple(
            _links_adapter.validate_python(items)
        )
        self._validate_names()

    def _validate_names(self) -> None:
        if not self._links:
            raise ChainConfigurationError(
                "A chain requires one link at least"
            )
        seen: set[str] = set()
        duplicates: set[str] = set()
        for link in self._links:
            if link.name in seen:
                duplicates.add(link.name)
            seen.add(link.name)
        if duplicates:
            raise ChainConfigurationError(
                f"Duplicate link names in chain: {sorted(duplicates)}"
            )

    @property
    def links(self) -> tuple[Link, ...]:
        return self._links

    def __len__(self) -> int:
        return len(self._links)

    def __iter__(self) -> Iterator[Link]:
        return iter(self._links)

    def __repr__(self) -> str:
        names = ", ".join(link.name for link in self._links)
        return f"Chain([{names}])"

    async def ainvoke(
        self,
        config: ChainConfig | None = None,
        **kwargs: Any,
    ) -> ChainReport:
        """Execute the chain, see execute_chain."""
        return await execute_chain(self, config, **kwargs)

    def invoke(
        self,
        config: ChainConfig | None = None,
        **kwargs: Any,
    ) -> ChainReport:
        """Execute the chain synchronously, see run_chain."""
        return run_chain(self, config, **kwargs)


ChainLike = Chain | Iterable[Link | Callable[..., Any] | dict[str, Any]]


def _effective_retries(
    link: Link, config: ChainConfig | None, settings: Settings
) -> int:
    if isinstance(link, ModelLink) and link.retries is not None:
        return link.retries
    if config is not None and config.retries is not None:
        return config.retries
    return settings.chain.retries


def _default_provider(settings: Settings) -> CompletionProvider:
    from lmchain.providers.langchain.adapter import (
        LangChainCompletionProvider,
    )

    return LangChainCompletionProvider(settings.model)


async def execute_chain(
    chain: ChainLike,
    config: ChainConfig | dict[str, int] | None = None,
    *,
    provider: CompletionProvider | None = None,
    settings: Settings | None = None,
    logger: LoggerBase = logger,
) -> ChainReport:
    """
    Execute the links of a chain in order.

    Args:
        chain: a Chain, or a sequence of links and callables.
        config: chain options, such as {'retries': 2}.
        provider: the model-call boundary. Defaults to a LangChain
            provider if the chain contains model links.
        settings: defaults for model parameters and chain options.
            Read from config.toml if not given.
        logger: receives the report of the execution.

    Returns:
        a ChainReport with the final result and the token counts.

    Raises:
        ChainConfigurationError, ValidationError: invalid chain.
        the first error raised by a link.
    """
    if not isinstance(chain, Chain):
        chain = Chain(chain)
    if isinstance(config, dict):
        config = ChainConfig(**config)
    if settings is None:
        settings = Settings()
    links: tuple[Link, ...] = chain.links
    if provider is None and any(isinstance(l, ModelLink) for l in links):
        provider = _default_provider(settings)

    link_results = LinkResults()
    link_messages: dict[str, list[ChatMessage]] = {}
    completion_responses: dict[str, CompletionResponse] = {}
    total_prompt_tokens = 0
    total_completion_tokens = 0

    logger.info(f"Executing chain of {len(links)} link(s)")
    for index, link in enumerate(links):
        logger.info(f"Executing link '{link.name}' ({link.kind})")
        outcome = await execute_link(
            link,
            link_results,
            _effective_retries(link, config, settings),
            links,
            index,
            provider,
            model_settings=settings.model,
            chain_settings=settings.chain,
            logger=logger,
        )
        link_results.record(outcome.name, outcome.result)
        if outcome.sent_messages is not None:
            link_messages[outcome.name] = outcome.sent_messages
        if outcome.completion_response is not None:
            completion_responses[outcome.name] = outcome.completion_response
            usage = outcome.completion_response.usage
            if usage is not None:
                total_prompt_tokens += usage.prompt_tokens
                total_completion_tokens += usage.completion_tokens

    total_tokens = total_prompt_tokens + total_completion_tokens
    logger.info(
        f"Chain completed, {total_tokens} token(s) used "
        f"({total_prompt_tokens} prompt, "
        f"{total_completion_tokens} completion)"
    )

    return ChainReport(
        final_result=link_results[links[-1].name],
        total_tokens=total_tokens,
        total_prompt_tokens=total_prompt_tokens,
        total_completion_tokens=total_completion_tokens,
        completion_responses=completion_responses,
        link_results=link_results.to_dict(),
        link_messages=link_messages,
    )


def run_chain(
    chain: ChainLike,
    config: ChainConfig | dict[str, int] | None = None,
    **kwargs: Any,
) -> ChainReport:
    """Synchronous version of execute_chain. Cannot be called from a
    running event loop."""
    return asyncio.run(execute_chain(chain, config, **kwargs))
