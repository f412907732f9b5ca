"""
Module: tests.test_errors
Purpose: Tests for error classification
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from story_gen.errors import EngineBusyError, EngineLoadError, ErrorCategory, classify_error


@pytest.mark.parametrize(
    "message, category",
    [
        ("Network request failed", ErrorCategory.CONNECTIVITY),
        ("Failed to fetch", ErrorCategory.CONNECTIVITY),
        ("Could not load weights", ErrorCategory.ENGINE_LOAD),
        ("Out of memory", ErrorCategory.RESOURCE_EXHAUSTION),
        ("Storage QUOTA exceeded", ErrorCategory.RESOURCE_EXHAUSTION),
        ("Operation timeout after 30s", ErrorCategory.TIMEOUT),
        ("something odd", ErrorCategory.GENERIC),
    ],
)
def test_classification_table(message, category):
    assert classify_error(RuntimeError(message)).category == category


def test_first_match_wins():
    # Contains both "network" and "model"
    wrapped = EngineLoadError("Failed to load model: Network request failed")
    assert classify_error(wrapped).category == ErrorCategory.CONNECTIVITY

    # Contains both "model" and "memory"
    assert classify_error(RuntimeError("model ran out of memory")).category == ErrorCategory.ENGINE_LOAD


def test_generic_message_echoes_original():
    classification = classify_error(ValueError("bad things"))
    assert classification.message.startswith("Generation error: bad things.")


def test_busy_error_reads_as_load_failure():
    assert classify_error(EngineBusyError()).category == ErrorCategory.ENGINE_LOAD


def test_connectivity_message():
    message = classify_error(RuntimeError("Network request failed")).message
    assert message == "Network error: Please check your internet connection and try again."
