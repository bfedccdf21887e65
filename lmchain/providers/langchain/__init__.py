""" LangChain implementation of the model-call boundary

The model links of a chain call the language model through a
CompletionProvider. This package provides the default provider, based
on LangChain chat models, so that the model of a link may be any of
the sources supported by the LangChain integrations (OpenAI,
Anthropic, Mistral, Gemini), or the offline 'Debug' source.
"""

# pyright: reportUnusedImport=false
# flake8: noqa

from .adapter import LangChainCompletionProvider
from .models import (
    create_model_from_settings,
    create_model_from_spec,
    langchain_models,
)
