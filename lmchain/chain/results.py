"""
Storage of the results produced by the links of a chain.

LinkResults is an ordered mapping from link names to results that only
grows: a result is recorded once, when its link completes, and is
never replaced. Links read the results of the links that preceded them
by name, or by a dotted path into a structured result:

    ```python
    results = LinkResults()
    results.record("gender", {'name': "Ivan", 'gender': "boy"})
    results.resolve("gender.name")      # "Ivan"
    results.resolve("gender.age")       # NOT_FOUND
    ```

Recorded results are copies: changing the object a link returned, or
the arguments a function link received, does not change what the
following links see. Pydantic models and dataclass instances are
recorded as dictionaries of their fields.
"""

import copy
import dataclasses
from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from typing import Any, Final

from pydantic import BaseModel

from .errors import ChainConfigurationError

# A link produces a natural language text or a structured object
LinkResult = str | object


class NotFound(Enum):
    """Type of the signal returned when a path cannot be resolved."""

    NOT_FOUND = 0


NOT_FOUND: Final = NotFound.NOT_FOUND


def _lookup_segment(value: Any, segment: str) -> Any | NotFound:
    match value:
        case Mapping():
            if segment in value:
                return value[segment]  # type: ignore
            return NOT_FOUND
        case str():
            return NOT_FOUND
        case Sequence():
            if not segment.isdigit():
                return NOT_FOUND
            index = int(segment)
            if index >= len(value):  # type: ignore
                return NOT_FOUND
            return value[index]  # type: ignore
        case _:
            return NOT_FOUND


def resolve_path(values: Mapping[str, Any], path: str) -> Any | NotFound:
    """Follow the dot-separated path into values.

    Returns:
        the value at the end of the path, or NOT_FOUND if any segment
        of the path does not exist on the value reached so far.
    """
    value: Any = values
    for segment in path.split('.'):
        value = _lookup_segment(value, segment)
        if value is NOT_FOUND:
            return NOT_FOUND
    return value


class LinkResults(Mapping[str, LinkResult]):
    """Append-only, ordered mapping of link names to link results."""

    def __init__(
        self, initial: Mapping[str, LinkResult] | None = None
    ) -> None:
        self._results: dict[str, LinkResult] = {}
        if initial:
            for name, result in initial.items():
                self.record(name, result)

    def __getitem__(self, name: str) -> LinkResult:
        return self._results[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __repr__(self) -> str:
        return f"LinkResults({self._results!r})"

    def record(self, name: str, result: LinkResult) -> None:
        """Store the result of a completed link.

        Raises:
            ChainConfigurationError: if a result was already recorded
                under this name.
        """
        if name in self._results:
            raise ChainConfigurationError(
                f"A result for link '{name}' was already recorded."
            )
        self._results[name] = snapshot(result)

    def resolve(self, path: str) -> Any | NotFound:
        """The value at the dotted path, or NOT_FOUND."""
        return resolve_path(self._results, path)

    def to_dict(self) -> dict[str, LinkResult]:
        """A plain dictionary copy of the results."""
        return copy.deepcopy(self._results)


def snapshot(result: LinkResult) -> LinkResult:
    """A copy of result that shares no mutable state with it. Models
    and dataclass instances become dictionaries of their fields."""
    match result:
        case str() | int() | float() | bool() | None:
            return result
        case BaseModel():
            return result.model_dump()
        case _ if dataclasses.is_dataclass(result) and not isinstance(
            result, type
        ):
            return dataclasses.asdict(result)
        case _:
            return copy.deepcopy(result)
