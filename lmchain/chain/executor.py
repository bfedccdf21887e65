"""
Execution of a single link.

A function link receives its arguments by keyword. If the link that
precedes it produced a structured result (for example, the arguments
of a function call requested by a model), the fields of that result
are the arguments:

    ```python
    # follows a model link that calls getGender
    def add_honorific(name: str, gender: str) -> str: ...
    ```

Otherwise, the function receives all the results recorded so far,
keyed by link name:

    ```python
    def shout(getRandomName: str, **results: object) -> str: ...
    ```

Arguments that the function does not declare are dropped, unless the
function accepts **kwargs.
"""

import copy
import inspect
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict

from lmchain.config.config import ChainSettings, LanguageModelSettings
from lmchain.utils.logging import LoggerBase, get_logger

from .base import CompletionProvider
from .errors import LinkExecutionError
from .invoker import extract_result, invoke_model
from .links import FunctionLink, Link, ModelLink
from .messages import ChatMessage, CompletionResponse

logger: LoggerBase = get_logger(__name__)


class LinkOutcome(BaseModel):
    """What the execution of a link produced."""

    name: str
    result: Any
    sent_messages: list[ChatMessage] | None = None
    completion_response: CompletionResponse | None = None

    model_config = ConfigDict(frozen=True)


def _spread_arguments(
    func: Callable[..., Any], values: Mapping[str, Any]
) -> dict[str, Any]:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # builtins without signature: pass everything
        return dict(values)
    parameters = signature.parameters.values()
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters):
        return dict(values)
    accepted = {
        p.name
        for p in parameters
        if p.kind
        in (
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.KEYWORD_ONLY,
        )
    }
    return {k: v for k, v in values.items() if k in accepted}


def function_arguments(
    link_results: Mapping[str, Any],
    chain: Sequence[Link],
    index: int,
) -> Mapping[str, Any]:
    """The values spread into the arguments of the function link at
    position index of the chain: the previous result if structured,
    otherwise all the results."""
    if index > 0:
        previous = link_results.get(chain[index - 1].name)
        if isinstance(previous, Mapping):
            return previous  # type: ignore
    return link_results


def is_empty_result(result: Any) -> bool:
    """None, False, zero and the empty string are not results. Empty
    collections are."""
    match result:
        case None | False | "":
            return True
        case bool():
            return False
        case int() | float():
            return result == 0
        case _:
            return False


async def _call_function(
    link: FunctionLink, arguments: Mapping[str, Any]
) -> Any:
    # the function receives copies, the recorded results stay as they are
    kwargs = copy.deepcopy(_spread_arguments(link.func, arguments))
    result = link.func(**kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


async def execute_link(
    link: Link,
    link_results: Mapping[str, Any],
    retries: int,
    chain: Sequence[Link],
    index: int,
    provider: CompletionProvider | None = None,
    *,
    model_settings: LanguageModelSettings | None = None,
    chain_settings: ChainSettings | None = None,
    logger: LoggerBase = logger,
) -> LinkOutcome:
    """
    Execute the link at position index of the chain.

    Args:
        link: the link to execute.
        link_results: the results of the links executed so far.
        retries: the attempts available to a model link.
        chain: the links of the chain.
        index: position of the link in the chain.
        provider: the model-call boundary. Required by model links.

    Returns:
        the outcome of the link. Model links also report the messages
        sent and the completion received.

    Raises:
        LinkExecutionError: if the link produced an empty result.
    """
    sent_messages: list[ChatMessage] | None = None
    completion: CompletionResponse | None = None
    result: Any

    match link:
        case FunctionLink():
            arguments = function_arguments(link_results, chain, index)
            result = await _call_function(link, arguments)
        case ModelLink():
            if provider is None:
                raise ValueError(
                    f"A completion provider is required by model link "
                    f"'{link.name}'"
                )
            invocation = await invoke_model(
                link,
                link_results,
                provider,
                retries,
                model_settings=model_settings,
                chain_settings=chain_settings,
                logger=logger,
            )
            sent_messages = invocation.sent_messages
            completion = invocation.completion
            result = extract_result(completion, link.name)

    if is_empty_result(result):
        logger.error(f"Link '{link.name}' produced an empty result")
        raise LinkExecutionError(link.name)

    return LinkOutcome(
        name=link.name,
        result=result,
        sent_messages=sent_messages,
        completion_response=completion,
    )
