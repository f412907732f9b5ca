"""
Module: story_gen.errors
Purpose: Exception types and user-facing error classification

Classification matches lowercase substrings of the failure message against a
fixed table, first match wins. Engine libraries do not promise stable wording,
so the category is a best-effort hint for the message shown to the user and
nothing else branches on it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

VALIDATION_MESSAGE = "Please fill in both the title and description fields."
ENGINE_BUSY_MESSAGE = "Model is already loading. Please wait."
INVALID_RESPONSE_MESSAGE = "Invalid response format from model"
EMPTY_STORY_MESSAGE = "No story was generated. Please try again with different parameters."


class StoryGenError(Exception):
    """Base class for story generation failures."""


class InputValidationError(StoryGenError):
    """Title or description is blank."""

    def __init__(self, message: str = VALIDATION_MESSAGE):
        super().__init__(message)


class EngineBusyError(StoryGenError):
    """An engine acquisition is already in progress."""

    def __init__(self, message: str = ENGINE_BUSY_MESSAGE):
        super().__init__(message)


class EngineLoadError(StoryGenError):
    """The text-generation engine could not be created."""


class InvalidResponseError(StoryGenError):
    """The engine returned something other than generated text."""

    def __init__(self, message: str = INVALID_RESPONSE_MESSAGE):
        super().__init__(message)


class EmptyStoryError(StoryGenError):
    """Nothing was left after removing the prompt echo."""

    def __init__(self, message: str = EMPTY_STORY_MESSAGE):
        super().__init__(message)


class ErrorCategory(str, Enum):
    CONNECTIVITY = "connectivity"
    ENGINE_LOAD = "engine_load"
    RESOURCE_EXHAUSTION = "resource_exhaustion"
    TIMEOUT = "timeout"
    GENERIC = "generic"


@dataclass(frozen=True)
class ErrorClassification:
    category: ErrorCategory
    message: str


# (substrings, category, message), checked in order
_RULES: Tuple[Tuple[Tuple[str, ...], ErrorCategory, str], ...] = (
    (
        ("network", "fetch"),
        ErrorCategory.CONNECTIVITY,
        "Network error: Please check your internet connection and try again.",
    ),
    (
        ("model", "load"),
        ErrorCategory.ENGINE_LOAD,
        "Model loading failed: The AI model could not be loaded. "
        "Please try a different model or refresh the page.",
    ),
    (
        ("memory", "quota"),
        ErrorCategory.RESOURCE_EXHAUSTION,
        "Memory error: The model is too large for your device. "
        "Please try the SmolLM model instead.",
    ),
    (
        ("timeout",),
        ErrorCategory.TIMEOUT,
        "Request timeout: The generation is taking too long. "
        "Please try again with a shorter word count.",
    ),
)


def classify_error(error: BaseException) -> ErrorClassification:
    """
    Map a failure onto a user-readable message.

    Args:
        error: Any exception raised while generating

    Returns:
        ErrorClassification with the category and the message to display

    Example:
        >>> classify_error(RuntimeError("Network request failed")).category
        <ErrorCategory.CONNECTIVITY: 'connectivity'>
    """
    text = str(error)
    lowered = text.lower()

    for needles, category, message in _RULES:
        if any(needle in lowered for needle in needles):
            return ErrorClassification(category, message)

    return ErrorClassification(
        ErrorCategory.GENERIC,
        f"Generation error: {text}. Please try again or contact support if the problem persists.",
    )
