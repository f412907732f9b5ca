"""
StoryGenerator - Short stories from a local language model

This package turns a story title and description into a short story using a
Hugging Face text-generation pipeline running on the local machine.

Main Components:
    - StoryGenerator: Session controller (validation, engine cache, generation)
    - Web interface: FastAPI page with live progress over WebSocket
    - CLI: story-gen generate / serve / models / info

Example:
    >>> import asyncio
    >>> from story_gen import StoryGenerator, StoryRequest
    >>> gen = StoryGenerator()
    >>> request = StoryRequest.from_form("Clockwork Garden", "Mechanical flowers bloom")
    >>> result = asyncio.run(gen.generate(request))
"""

__version__ = "0.1.0"

from story_gen.core import StoryGenerator
from story_gen.state import GenerationResult, StoryRequest

__all__ = ["StoryGenerator", "StoryRequest", "GenerationResult"]
