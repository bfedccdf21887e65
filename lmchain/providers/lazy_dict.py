"""
The utility class `LazyLoadingDict` memoizes the objects produced by a
factory function, using the factory argument as key. The providers use
it to create one chat model client per model configuration, and reuse
the client for all the links of all the chains that call that model.

Keys must be hashable. Frozen pydantic models, such as
LanguageModelSettings, are convenient keys because they are validated
when created: an invalid model configuration raises before the factory
is called.

Example:
    ```python
    def _create_client(settings: LanguageModelSettings) -> Client:
        return Client(settings.get_model_name())

    clients = LazyLoadingDict(_create_client)
    client = clients[LanguageModelSettings(model="OpenAI/gpt-4o")]
    # same object, not created again
    client = clients[LanguageModelSettings(model="OpenAI/gpt-4o")]
    ```
"""

from collections.abc import Callable
from typing import TypeVar

ValueT = TypeVar('ValueT')
KeyT = TypeVar('KeyT')


class LazyLoadingDict(dict[KeyT, ValueT]):
    """A dictionary that creates its values on first access by calling
    a factory function with the key.

    Values may also be assigned directly, bypassing the factory, but a
    value cannot be replaced: it must be deleted first. Deleted values
    are closed (through destructor_func, or their close or dispose
    method, if any).

    Expected behaviour: raises the errors of the factory function, and
    ValueError when assigning to an existing key.
    """

    def __init__(
        self,
        key_creator_func: Callable[[KeyT], ValueT],
        destructor_func: Callable[[ValueT], None] | None = None,
    ):
        super().__init__()
        self._key_creator_func = key_creator_func
        self._destructor_func = destructor_func

    def _destroy_value(self, value: ValueT) -> None:
        if self._destructor_func:
            self._destructor_func(value)
        elif callable(getattr(value, "close", None)):
            value.close()  # type: ignore (checked)
        elif callable(getattr(value, "dispose", None)):
            value.dispose()  # type: ignore (checked)

    def __getitem__(self, key: KeyT) -> ValueT:
        if key in self:
            return super().__getitem__(key)

        value: ValueT = self._key_creator_func(key)
        super().__setitem__(key, value)
        return value

    def __setitem__(self, key: KeyT, value: ValueT) -> None:
        if key in self:
            raise ValueError(
                f"Key '{key}' already exists. Delete it first to "
                "overwrite."
            )
        super().__setitem__(key, value)

    def __delitem__(self, key: KeyT) -> None:
        if key in self:
            self._destroy_value(super().__getitem__(key))
        super().__delitem__(key)

    def clear(self) -> None:
        for value in list(self.values()):
            self._destroy_value(value)
        super().clear()
