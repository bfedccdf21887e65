"""
Definition of the links of a chain.

A link is a named unit of work, of one of two kinds:

- a function link wraps a Python callable. The callable receives the
    results of the previous links as keyword arguments (see
    lmchain.chain.executor for which results it receives).
- a model link describes a call to a language model: the model and its
    sampling settings, the messages to send (given directly, or as
    templates filled with the results of the previous links), and
    optionally the schemas of functions the model may call.

The two kinds are distinguished by the `kind` field, so that a list of
link definitions given as dictionaries (for example, read from a file)
is validated into the right class:

    ```python
    from pydantic import TypeAdapter
    links = TypeAdapter(list[Link]).validate_python([
        {'kind': "model", 'name': "getName", 'templates': [
            {'content': "Come up with a name starting with {{letter}}"}
        ]},
    ])
    ```

Model settings left unspecified in a model link are taken from the
`model` section of the configuration (see lmchain.config.config).
"""

from collections.abc import Callable
from typing import Annotated, Any, Literal, overload

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from lmchain.config.config import check_model_spec
from .messages import (
    ChatMessage,
    FunctionCallDirective,
    FunctionDefinition,
)


class ContentBlock(BaseModel):
    """A template fragment, part of the message only if include is
    True."""

    template: str
    include: bool = True

    model_config = ConfigDict(frozen=True, extra='forbid')


ContentTemplate = str | list[ContentBlock]


class MessageTemplate(BaseModel):
    """The template of a message sent to the model."""

    content: ContentTemplate
    role: Literal['user', 'system'] = 'user'

    model_config = ConfigDict(frozen=True, extra='forbid')


TemplateSet = list[MessageTemplate]


class FunctionLink(BaseModel):
    """A link that calls a Python function. The name of the link is
    that of the function, unless given explicitly."""

    kind: Literal['function'] = 'function'
    name: str
    func: Callable[..., Any]

    model_config = ConfigDict(frozen=True, extra='forbid')

    @model_validator(mode='before')
    @classmethod
    def default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get('name'):  # type: ignore
            func = data.get('func')  # type: ignore
            name = getattr(func, '__name__', None)
            if name:
                data = {**data, 'name': name}  # type: ignore
        return data  # type: ignore


class ModelLink(BaseModel):
    """
    A link that calls a language model.

    Attributes:
        name: the name under which the result is stored
        model: model specification, 'source/model'
        temperature: sampling temperature
        top_p: nucleus sampling parameter
        messages: messages sent as they are
        templates: message templates, filled at each attempt. If
            given, the messages are ignored
        functions: schemas of the functions the model may call
        function_call: 'auto', 'none', or {'name': ...} to force the
            call of a function
        retries: attempts made to call the model
        auto_newline_content: join content blocks with newlines
        remove_double_spaces: collapse whitespace in content blocks
    """

    kind: Literal['model'] = 'model'
    name: str
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    messages: list[ChatMessage] | None = None
    templates: TemplateSet | None = None
    functions: list[FunctionDefinition] | None = None
    function_call: FunctionCallDirective | None = None
    retries: int | None = Field(default=None, ge=1)
    auto_newline_content: bool | None = None
    remove_double_spaces: bool | None = None

    model_config = ConfigDict(frozen=True, extra='forbid')

    @field_validator('name', mode='after')
    @classmethod
    def validate_name(cls, name: str) -> str:
        if not name.strip():
            raise ValueError("The name of a model link cannot be empty")
        return name

    @field_validator('model', mode='after')
    @classmethod
    def validate_model_spec(cls, spec: str | None) -> str | None:
        return None if spec is None else check_model_spec(spec)


Link = Annotated[FunctionLink | ModelLink, Field(discriminator='kind')]


def as_link(item: Link | Callable[..., Any]) -> Link:
    """Wrap a bare callable into a FunctionLink."""
    if isinstance(item, (FunctionLink, ModelLink)):
        return item
    if callable(item):
        return FunctionLink(func=item)  # type: ignore (name from func)
    raise TypeError(f"Not a link or a callable: {item!r}")


@overload
def function_link(func: Callable[..., Any]) -> FunctionLink: ...


@overload
def function_link(
    *, name: str
) -> Callable[[Callable[..., Any]], FunctionLink]: ...


def function_link(
    func: Callable[..., Any] | None = None, *, name: str | None = None
) -> FunctionLink | Callable[[Callable[..., Any]], FunctionLink]:
    """Create a function link, also usable as a decorator.

    Example:
        ```python
        @function_link
        def get_random_letter() -> str:
            return random.choice(string.ascii_lowercase)

        @function_link(name="honorific")
        def add_honorific(name: str, gender: str) -> str:
            return f"{name}-kun" if gender == "boy" else f"{name}-chan"
        ```
    """

    def _wrap(f: Callable[..., Any]) -> FunctionLink:
        if name is None:
            return FunctionLink(func=f)  # type: ignore (name from func)
        return FunctionLink(name=name, func=f)

    if func is None:
        return _wrap
    return _wrap(func)
