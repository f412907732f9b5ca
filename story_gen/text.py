"""
Module: story_gen.text
Purpose: Prompt composition and post-processing of generated text
"""

from collections.abc import Mapping, Sequence
from typing import Any

from story_gen.errors import InvalidResponseError

PROMPT_TEMPLATE = "Title: {title}\nDescription: {description}\nStory:\n\n"


def compose_prompt(title: str, description: str) -> str:
    """
    Build the plain-text prompt sent to the engine.

    Args:
        title: Story title
        description: Story description

    Returns:
        Prompt string

    Example:
        >>> compose_prompt("T", "D")
        'Title: T\\nDescription: D\\nStory:\\n\\n'
    """
    return PROMPT_TEMPLATE.format(title=title, description=description)


def extract_generated_text(response: Any) -> str:
    """
    Pull the generated text out of a pipeline response.

    Accepts a single mapping with ``generated_text`` or a sequence whose first
    element carries it (the shape ``transformers`` pipelines return).

    Raises:
        InvalidResponseError: For any other shape
    """
    if isinstance(response, Mapping):
        if "generated_text" in response:
            return response["generated_text"] or ""
        raise InvalidResponseError()

    if isinstance(response, Sequence) and not isinstance(response, (str, bytes)):
        if not response:
            raise InvalidResponseError()
        first = response[0]
        if isinstance(first, Mapping):
            return first.get("generated_text") or ""
        raise InvalidResponseError()

    raise InvalidResponseError()


def strip_prompt_echo(text: str, prompt: str) -> str:
    """Remove one leading copy of the prompt, then trim whitespace."""
    if prompt and text.startswith(prompt):
        text = text[len(prompt):]
    return text.strip()


def count_words(text: str) -> int:
    # str.split() collapses runs of whitespace and drops empty tokens
    return len(text.split())
