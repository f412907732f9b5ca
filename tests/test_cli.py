"""
Module: tests.test_cli
Purpose: Tests for the story-gen command line
"""

import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from helpers import FakeEngineFactory
from story_gen import cli as cli_module
from story_gen import core
from story_gen.cli import cli


@pytest.fixture
def factory(monkeypatch):
    factory = FakeEngineFactory(response=[{"generated_text": "The gears bloomed at dawn."}])
    monkeypatch.setattr(core, "_default_engine_factory", factory)
    return factory


def test_models_lists_choices():
    result = CliRunner().invoke(cli, ["models"])

    assert result.exit_code == 0
    assert "HuggingFaceTB/SmolLM2-135M" in result.output
    assert "distilbert/distilgpt2" in result.output
    assert "500" in result.output


def test_generate_prints_story(factory):
    result = CliRunner().invoke(
        cli, ["generate", "Clockwork Garden", "Mechanical flowers", "-m", "gpt2", "-t", "100"]
    )

    assert result.exit_code == 0, result.output
    assert "The gears bloomed at dawn." in result.output
    assert "Words: 5" in result.output
    assert factory.calls[0]["model_id"] == "openai-community/gpt2"
    _, options = factory.engines[0].calls[0]
    assert options["max_new_tokens"] == 100


def test_generate_blank_title_fails(factory):
    result = CliRunner().invoke(cli, ["generate", "  ", "Mechanical flowers"])

    assert result.exit_code == 1
    assert "Please fill in both the title and description fields." in result.output
    assert factory.calls == []


def test_generate_unknown_model_is_usage_error(factory):
    result = CliRunner().invoke(cli, ["generate", "T", "D", "--model", "nope"])

    assert result.exit_code == 2
    assert "Unknown model" in result.output


def test_resolve_model_accepts_full_id():
    assert cli_module._resolve_model("openai-community/gpt2") == "openai-community/gpt2"
    assert cli_module._resolve_model("smollm") == "HuggingFaceTB/SmolLM2-135M"
