# pyright: reportUnusedImport=false
# flake8: noqa

from .errors import (
    ChainError,
    ChainConfigurationError,
    LinkConfigurationError,
    LinkExecutionError,
    ModelInvocationError,
    ProviderError,
)
from .messages import (
    ChatMessage,
    CompletionRequest,
    CompletionResponse,
    FunctionCall,
    FunctionDefinition,
    TokenUsage,
)
from .links import (
    ContentBlock,
    FunctionLink,
    Link,
    MessageTemplate,
    ModelLink,
    function_link,
)
from .results import LinkResults, NOT_FOUND
from .templates import build_content, fill_content_template
from .base import CompletionProvider
from .invoker import invoke_model, extract_result
from .executor import execute_link
from .orchestrator import (
    Chain,
    ChainConfig,
    ChainReport,
    execute_chain,
    run_chain,
)
