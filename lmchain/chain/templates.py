"""
Substitution of link results into message templates.

A template refers to the result of a previous link with the syntax
`{{name}}`, or to a field of a structured result with
`{{name.field.subfield}}`. A reference that cannot be resolved is left
in the text as it was written, so that a template may be filled by
links that produce only part of the results it refers to.

The content of a message is either a template string, or a list of
content blocks, each containing a template and a flag that says
whether the block is part of the message:

    ```python
    content = [
        ContentBlock(template="Come up with a first name"),
        ContentBlock(
            template="that starts with {{letter}}",
            include=use_letter,
        ),
    ]
    text = build_content(content, link_results)
    ```
"""

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from .links import ContentBlock, ContentTemplate
from .results import NOT_FOUND, resolve_path

REFERENCE_PATTERN = re.compile(r"\{\{([\w.]+)\}\}")
WHITESPACE_RUN = re.compile(r"\s\s+")


def format_value(value: Any) -> str:
    """The text form of a value substituted into a template."""
    match value:
        case str():
            return value
        case bool() | None:
            return json.dumps(value)
        case int() | float():
            return str(value)
        case _:
            return json.dumps(value, default=str)


def fill_content_template(
    template: str,
    link_results: Mapping[str, Any] | None = None,
) -> str:
    """Replace the {{path}} references in template with the values
    found in link_results. Unresolved references are left unchanged,
    as is the whole template if no link results are given."""
    if link_results is None:
        return template

    def _replace(match: re.Match[str]) -> str:
        value = resolve_path(link_results, match.group(1))
        if value is NOT_FOUND:
            return match.group(0)
        return format_value(value)

    return REFERENCE_PATTERN.sub(_replace, template)


def build_content(
    content: ContentTemplate,
    link_results: Mapping[str, Any] | None = None,
    *,
    auto_newline_content: bool = True,
    remove_double_spaces: bool = True,
) -> str:
    """Build the text of a message.

    Args:
        content: a template string, or a list of content blocks.
        link_results: the results the templates refer to.
        auto_newline_content: join blocks with a newline if True,
            with a space otherwise.
        remove_double_spaces: replace runs of two or more whitespace
            characters with a single space after joining the blocks.

    Returns:
        the text of the message. The formatting flags only apply to
        lists of blocks; a template string is only filled.
    """
    if isinstance(content, str):
        return fill_content_template(content, link_results)

    blocks: Sequence[ContentBlock] = content
    filled_blocks = [
        fill_content_template(block.template, link_results)
        for block in blocks
        if block.include is not False
    ]
    separator = "\n" if auto_newline_content else " "
    result = separator.join(filled_blocks)
    if remove_double_spaces:
        result = WHITESPACE_RUN.sub(" ", result)
    return result
