"""
Exceptions raised while building and executing chains.

A reference in a template that cannot be resolved is not an error: the
reference is left in the text as it was written.
"""


class ChainError(Exception):
    """Base class of the errors raised by lmchain."""


class ChainConfigurationError(ChainError, ValueError):
    """The chain cannot be executed as defined: empty chain, duplicate
    link names, or an attempt to overwrite a link result."""


class LinkConfigurationError(ChainConfigurationError):
    """A model link has neither messages nor templates."""

    def __init__(self, link_name: str, message: str | None = None):
        self.link_name = link_name
        super().__init__(
            message or f"No messages or templates provided for link "
            f"'{link_name}'"
        )


class ProviderError(ChainError):
    """Raised by the model-call boundary.

    Attributes:
        detail: the error message given by the provider, if the
            provider returned a structured error
        status: the status code of the response, if any
    """

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        status: int | None = None,
    ):
        super().__init__(message)
        self.detail = detail
        self.status = status


class ModelInvocationError(ChainError):
    """A model link could not obtain a usable completion."""

    def __init__(self, link_name: str, message: str):
        super().__init__(message)
        self.link_name = link_name


class LinkExecutionError(ChainError):
    """A link produced an empty result."""

    def __init__(self, link_name: str):
        super().__init__(f"Execution failed for link {link_name}")
        self.link_name = link_name
