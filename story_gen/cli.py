"""
Module: story_gen.cli
Purpose: Command-line interface for story generation
Dependencies: click, pathlib
Author: Generated for StoryGenerator

This module provides a CLI for generating stories in the terminal and for
starting the web interface.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from story_gen.config import get_config, set_config
from story_gen.core import StoryGenerator
from story_gen.state import GenerationResult, StoryRequest
from story_gen.views import ViewRenderer


class ConsoleRenderer(ViewRenderer):
    """Echo view-state changes to the terminal."""

    def __init__(self):
        self._last_message: Optional[str] = None

    def render_loading(self, progress: int, message: str) -> None:
        line = f"[{progress:3d}%] {message}"
        if line != self._last_message:
            click.echo(line, err=True)
            self._last_message = line

    def render_error(self, message: str) -> None:
        click.echo(f"✗ {message}", err=True)

    def render_result(self, result: GenerationResult) -> None:
        click.echo("")
        click.echo(result.text)
        click.echo("")
        click.echo(
            f"Model: {result.model_id} | Words: {result.word_count} | Time: {result.elapsed_seconds:.1f}s",
            err=True,
        )

    def render_copy_label(self, label: str) -> None:
        if label == get_config().clipboard["copied_label"]:
            click.echo(f"✓ {label}", err=True)


def _resolve_model(model: Optional[str]) -> str:
    """Accept a short name (smollm) or a full model id."""
    config = get_config()
    if model is None:
        return config.get_model_id(config.default_model)
    if model in config.models:
        return config.get_model_id(model)
    if config.is_known_model(model):
        return model
    raise click.BadParameter(
        f"Unknown model '{model}'. Choose from: {', '.join(config.models)}",
        param_hint="--model",
    )


@click.group()
@click.version_option(version="0.1.0", prog_name="story-gen")
@click.option(
    "--config", "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with configuration overrides"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(config_file: Optional[Path], verbose: bool):
    """
    StoryGenerator - Write short stories with a local language model.

    Examples:

    \b
      # Generate a story in the terminal
      story-gen generate "Clockwork Garden" "Mechanical flowers start to bloom"

    \b
      # Pick a model and a length, copy the result
      story-gen generate "The Map" "A map that grows" --model gpt2 --max-tokens 300 --copy

    \b
      # Start the web interface
      story-gen serve --port 8000
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if config_file is not None:
        set_config(config_file)


@cli.command()
@click.argument("title")
@click.argument("description")
@click.option(
    "--model", "-m",
    default=None,
    help="Model short name or Hugging Face id (see 'story-gen models')"
)
@click.option(
    "--max-tokens", "-t",
    type=int,
    default=None,
    help="Maximum new tokens (see 'story-gen models' for choices)"
)
@click.option(
    "--copy", "copy_result",
    is_flag=True,
    help="Copy the story to the clipboard"
)
def generate(
    title: str,
    description: str,
    model: Optional[str],
    max_tokens: Optional[int],
    copy_result: bool
):
    """
    Generate a story from a title and a description.

    \b
    Examples:
      story-gen generate "The Last Lighthouse Keeper" "The light guides something else"
      story-gen generate "Clockwork Garden" "Flowers bloom" -m distilgpt2 -t 100
    """
    model_id = _resolve_model(model)
    try:
        request = StoryRequest.from_form(title, description, model_id=model_id, max_tokens=max_tokens)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--max-tokens")

    async def run() -> Optional[GenerationResult]:
        gen = StoryGenerator(renderer=ConsoleRenderer())
        result = await gen.generate(request)
        if result is not None and copy_result:
            await gen.copy()
        return result

    result = asyncio.run(run())
    if result is None:
        sys.exit(1)


@cli.command()
@click.option("--host", default=None, help="Host to bind to (default from config)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (default from config)")
@click.option("--reload", is_flag=True, default=None, help="Enable auto-reload for development")
def serve(host: Optional[str], port: Optional[int], reload: Optional[bool]):
    """
    Start the web interface and REST API.

    \b
    Examples:
      story-gen serve
      story-gen serve --host 0.0.0.0 --port 8080
    """
    from story_gen.server import run_server

    api = get_config().api
    click.echo("📖 Story Generator")
    click.echo(f"Open your browser to: http://localhost:{port or api['port']}")
    click.echo("Press Ctrl+C to stop\n")
    run_server(host=host, port=port, reload=reload)


@cli.command()
def models():
    """List selectable models and story lengths."""
    config = get_config()
    default_id = config.get_model_id(config.default_model)

    click.echo("--- Models ---")
    for name, entry in config.models.items():
        marker = "*" if entry["model_id"] == default_id else " "
        click.echo(f" {marker} {name:<12} {entry['model_id']:<32} {entry.get('label', '')}")

    click.echo("\n--- Lengths (--max-tokens) ---")
    for label, tokens in config.length_choices.items():
        marker = "*" if tokens == config.default_max_tokens else " "
        click.echo(f" {marker} {tokens:<6} {label}")


@cli.command()
def info():
    """
    Display system and device information.

    Shows:
    - Device type (CUDA/MPS/CPU)
    - Torch version
    - Model cache location
    - Sampling settings
    """
    try:
        from story_gen.utils.device import get_device_info

        click.echo("=== StoryGenerator System Info ===\n")

        device = get_device_info()
        click.echo("--- Device ---")
        click.echo(f"Current device: {device['current_device']}")
        click.echo(f"CUDA available: {device['cuda_available']}")
        click.echo(f"MPS available: {device['mps_available']}")
        click.echo(f"CPU threads: {device['cpu_threads']}")
        click.echo(f"Torch: {device['torch_version']}")
        if "cuda_device_name" in device:
            click.echo(f"CUDA device: {device['cuda_device_name']} ({device['total_memory_gb']:.1f} GB)")

        config = get_config()
        click.echo("\n--- Configuration ---")
        click.echo(f"Default model: {config.get_model_id(config.default_model)}")
        click.echo(f"Quantized: {config.engine['quantized']}")
        click.echo(f"Model cache: {config.engine['cache_dir']}")
        click.echo(f"Sampling: {config.sampling}")

    except Exception as e:
        click.echo(f"✗ Error: {e}", err=True)
        sys.exit(1)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
