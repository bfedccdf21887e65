"""
lmchain: chains of Python functions and language model calls.

The results of each link of a chain are available to the following
links, as keyword arguments of functions or as {{name.path}} references
in the templates of the messages sent to the model.
"""

# pyright: reportUnusedImport=false
# flake8: noqa

from .chain import (
    Chain,
    ChainConfig,
    ChainReport,
    ContentBlock,
    FunctionDefinition,
    FunctionLink,
    MessageTemplate,
    ModelLink,
    execute_chain,
    function_link,
    run_chain,
)
