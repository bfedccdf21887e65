"""
Abstract base class for the model-call boundary.
"""

from abc import ABC, abstractmethod
import asyncio

from .messages import CompletionRequest, CompletionResponse


class CompletionProvider(ABC):
    """Produces chat completions for the model links of a chain.

    Implementations raise lmchain.chain.errors.ProviderError when the
    call fails, filling in the detail of the error if the provider
    returned a structured error.
    """

    @abstractmethod
    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Get a completion synchronously.

        Args:
            request: model, sampling settings, messages, and the
                optional function schemas.

        Returns:
            The completion, containing text or a function call, and
            the token usage.
        """
        pass

    async def acomplete(
        self, request: CompletionRequest
    ) -> CompletionResponse:
        """
        Get a completion asynchronously.

        Default implementation delegates to the synchronous complete
        method in a thread pool.
        """
        return await asyncio.to_thread(self.complete, request)
