"""
Iterators of canned replies for the 'Debug' model source.

The Debug source answers from a LangChain fake chat model instead of
calling a provider, so that chains can be run offline. The fake model
draws its replies from one of these iterators.
"""

from typing import Iterator


class MessageIterator:
    """
    Infinite iterator of numbered messages, "{prefix} {counter}", with
    the counter starting at 1.
    """

    def __init__(self, prefix: str = "Message") -> None:
        self.prefix = prefix
        self.counter = 1

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        message = f"{self.prefix} {self.counter}"
        self.counter += 1
        return message


class ConstantMessageIterator:
    """
    Infinite iterator repeating the same message.
    """

    def __init__(self, message: str = "Message") -> None:
        self.message = message
        self.counter = 0

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        self.counter += 1
        return self.message


def yield_message(prefix: str = "Message") -> MessageIterator:
    """
    Iterator of numbered messages.

    Example:
        >>> iterator = yield_message("Reply")
        >>> next(iterator)
        'Reply 1'
        >>> next(iterator)
        'Reply 2'
    """
    return MessageIterator(prefix)


def yield_constant_message(
    message: str = "Message",
) -> ConstantMessageIterator:
    """
    Iterator repeating message.

    Example:
        >>> iterator = yield_constant_message("Ivan")
        >>> next(iterator)
        'Ivan'
        >>> next(iterator)
        'Ivan'
    """
    return ConstantMessageIterator(message)
