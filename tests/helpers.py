"""
Module: tests.helpers
Purpose: Offline stand-ins for the engine, clipboard and renderer
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from story_gen.config import Config
from story_gen.state import ProgressEvent, StoryRequest
from story_gen.views import Loading, ViewRenderer


class RecordingRenderer(ViewRenderer):
    """Keeps every view state and control update for assertions."""

    def __init__(self):
        self.views: List[Any] = []
        self.enabled: List[bool] = []
        self.copy_labels: List[str] = []

    def render(self, view) -> None:
        self.views.append(view)

    def render_generate_enabled(self, enabled: bool) -> None:
        self.enabled.append(enabled)

    def render_copy_label(self, label: str) -> None:
        self.copy_labels.append(label)

    @property
    def progress_values(self) -> List[int]:
        return [v.progress for v in self.views if isinstance(v, Loading)]

    @property
    def last(self):
        return self.views[-1] if self.views else None


class FakeEngine:
    """Callable engine returning a canned response."""

    def __init__(self, model_id: str, response: Any = None, delay: float = 0.0, error: Optional[Exception] = None):
        self.model_id = model_id
        self.response = response if response is not None else [{"generated_text": "Once upon a time there was a fox."}]
        self.delay = delay
        self.error = error
        self.calls: List[tuple] = []
        self.unloaded = False

    async def __call__(self, prompt: str, **options: Any) -> Any:
        self.calls.append((prompt, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response

    def unload(self) -> None:
        self.unloaded = True


class FakeEngineFactory:
    """
    Engine factory recording every creation.

    Args:
        response: Response every created engine returns
        delay: Seconds each creation takes
        events: ProgressEvents reported before the engine is returned
        error: Raised instead of returning an engine
    """

    def __init__(
        self,
        response: Any = None,
        delay: float = 0.0,
        events: Optional[List[ProgressEvent]] = None,
        error: Optional[Exception] = None,
        engine_delay: float = 0.0,
        engine_error: Optional[Exception] = None,
    ):
        self.response = response
        self.delay = delay
        self.events = events or []
        self.error = error
        self.engine_delay = engine_delay
        self.engine_error = engine_error
        self.calls: List[dict] = []
        self.engines: List[FakeEngine] = []

    async def __call__(self, task: str, model_id: str, quantized: bool = True, on_progress=None) -> FakeEngine:
        self.calls.append({"task": task, "model_id": model_id, "quantized": quantized})
        for event in self.events:
            if on_progress is not None:
                on_progress(event)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        engine = FakeEngine(model_id, self.response, self.engine_delay, self.engine_error)
        self.engines.append(engine)
        return engine

    @property
    def engine_calls(self) -> int:
        return sum(len(engine.calls) for engine in self.engines)


class FakeClipboard:
    """Clipboard whose primary and fallback paths can be made to fail."""

    def __init__(self, primary_fails: bool = False, fallback_fails: bool = False):
        self.primary_fails = primary_fails
        self.fallback_fails = fallback_fails
        self.primary_writes: List[str] = []
        self.fallback_writes: List[str] = []

    async def write_text(self, text: str) -> None:
        if self.primary_fails:
            raise RuntimeError("clipboard API unavailable")
        self.primary_writes.append(text)

    async def fallback_write_text(self, text: str) -> None:
        if self.fallback_fails:
            raise RuntimeError("execCommand failed")
        self.fallback_writes.append(text)


def make_config(**progress) -> Config:
    config = Config()
    config.progress.update(progress)
    return config


def make_request(
    config: Config,
    title: str = "Clockwork Garden",
    description: str = "A botanist builds mechanical flowers",
    model: str = "smollm",
    max_tokens: int = 200,
) -> StoryRequest:
    return StoryRequest(
        title=title,
        description=description,
        model_id=config.get_model_id(model),
        max_tokens=max_tokens,
    )
