"""
Example: Basic Python API Usage

This example shows direct Python usage of the StoryGenerator class
without needing the REST API or CLI.
"""

import asyncio

from story_gen.core import StoryGenerator
from story_gen.state import StoryRequest
from story_gen.views import ViewRenderer


class PrintRenderer(ViewRenderer):
    """Print progress and errors as they happen."""

    def render_loading(self, progress, message):
        print(f"  [{progress:3d}%] {message}")

    def render_error(self, message):
        print(f"✗ {message}")


async def example_single_story():
    """Generate a single story with the default model."""
    print("=== Single Story ===\n")

    gen = StoryGenerator(renderer=PrintRenderer())
    request = StoryRequest.from_form(
        "The Last Lighthouse Keeper",
        "An old keeper discovers the light guides something other than ships",
    )

    result = await gen.generate(request)
    if result is not None:
        print(f"\n{result.text}\n")
        print(f"✓ {result.word_count} words in {result.elapsed_seconds}s\n")


async def example_reuse_engine():
    """Two stories with one model load."""
    print("=== Cached Engine ===\n")

    gen = StoryGenerator(renderer=PrintRenderer())
    for title, description in [
        ("Clockwork Garden", "A botanist builds mechanical flowers that bloom at midnight"),
        ("The Map That Grows", "A cartographer's map adds new places every night"),
    ]:
        request = StoryRequest.from_form(title, description, model_id="distilbert/distilgpt2", max_tokens=100)
        result = await gen.generate(request)
        if result is not None:
            print(f"✓ {title}: {result.word_count} words\n")

    gen.release_engine()


async def example_copy():
    """Generate, then copy the story to the system clipboard."""
    print("=== Copy to Clipboard ===\n")

    gen = StoryGenerator(renderer=PrintRenderer())
    request = StoryRequest.from_form("Starlight Post", "Letters arrive from a star that burned out")
    if await gen.generate(request) is not None:
        copied = await gen.copy()
        print("✓ Copied\n" if copied else "✗ Clipboard not available\n")


if __name__ == "__main__":
    asyncio.run(example_single_story())
    asyncio.run(example_reuse_engine())
    asyncio.run(example_copy())
