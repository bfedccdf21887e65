"""
Data structures exchanged with the model-call boundary.
"""

from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field

Role = Literal['system', 'user', 'assistant', 'function']


class FunctionCall(BaseModel):
    """A function invocation requested by the model. The arguments
    are the JSON text produced by the model."""

    name: str
    arguments: str = "{}"


class ChatMessage(BaseModel):
    """A role-tagged message in a chat conversation."""

    role: Role
    content: str | None = None
    name: str | None = None
    function_call: FunctionCall | None = None

    model_config = ConfigDict(frozen=True)


class FunctionDefinition(BaseModel):
    """Schema of a function the model may call."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {'type': "object", 'properties': {}}
    )


# 'auto', 'none', or {'name': <function name>} to force a call
FunctionCallDirective = Literal['auto', 'none'] | dict[str, str]


class TokenUsage(BaseModel):
    """Token counts reported by the provider for one completion."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class CompletionRequest(BaseModel):
    """Everything the provider needs to produce one completion."""

    model: str
    temperature: float
    top_p: float
    messages: list[ChatMessage]
    functions: list[FunctionDefinition] | None = None
    function_call: FunctionCallDirective | None = None


class CompletionResponse(BaseModel):
    """A completion: either free text or a function call, with the
    token usage of the exchange."""

    content: str | None = None
    function_call: FunctionCall | None = None
    usage: TokenUsage | None = None
    model: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)
