"""
Module: story_gen.core
Purpose: Generation session controller for StoryGenerator
Dependencies: asyncio
Author: Generated for StoryGenerator

StoryGenerator sequences a single story request: validate the form, acquire
(or reuse) a text-generation engine, run the prompt, clean the output and
hand the outcome to a ViewRenderer. Engine creation and clipboard access are
injected so the controller can run without a model or a UI.
"""

import asyncio
import contextlib
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from story_gen.config import Config, get_config
from story_gen.errors import (
    EmptyStoryError,
    EngineLoadError,
    VALIDATION_MESSAGE,
    classify_error,
)
from story_gen.state import GenerationResult, ProgressEvent, Session, StoryRequest
from story_gen.text import compose_prompt, count_words, extract_generated_text, strip_prompt_echo
from story_gen.views import Error, Idle, Loading, Result, ViewRenderer, ViewState

logger = logging.getLogger(__name__)

EngineFactory = Callable[..., Awaitable[Any]]


async def _default_engine_factory(task: str, model_id: str, **options: Any) -> Any:
    # Deferred so torch/transformers load only when a model is actually needed
    from story_gen.models.text_generation import create_engine

    return await create_engine(task, model_id, **options)


class StoryGenerator:
    """
    Controller for one story-generation session.

    Features:
    - Input validation gating the generate action
    - Lazy, single-slot engine cache keyed by model identifier
    - Single-flight generation and engine loading
    - Simulated progress with a cancellable trickle task
    - Copy to clipboard with a transient "Copied!" label

    Attributes:
        config: Configuration instance
        session: Current immutable Session
        view: Current ViewState
        renderer: ViewRenderer receiving every state change

    Example:
        >>> gen = StoryGenerator()
        >>> request = StoryRequest.from_form("Clockwork Garden", "Mechanical flowers bloom")
        >>> result = asyncio.run(gen.generate(request))
        >>> print(result.word_count)
    """

    def __init__(
        self,
        renderer: Optional[ViewRenderer] = None,
        engine_factory: Optional[EngineFactory] = None,
        clipboard: Optional[Any] = None,
        config: Optional[Config] = None,
    ):
        """
        Initialize the controller.

        Args:
            renderer: Receives view-state updates (default: no-op renderer)
            engine_factory: ``async (task, model_id, quantized=, on_progress=)``
                returning a callable engine (default: transformers pipeline)
            clipboard: Object with async ``write_text`` / ``fallback_write_text``
                (default: SystemClipboard)
            config: Configuration (default: global config)
        """
        self.config = config or get_config()
        self.renderer = renderer or ViewRenderer()
        self.engine_factory = engine_factory or _default_engine_factory

        if clipboard is None:
            from story_gen.clipboard import SystemClipboard
            clipboard = SystemClipboard()
        self.clipboard = clipboard

        self.session = Session()
        self.view: ViewState = Idle()

        self._engine: Optional[Any] = None
        self._progress = 0
        self._progress_event_seen = False
        self._last_request: Optional[StoryRequest] = None
        self._last_result: Optional[GenerationResult] = None
        self._copy_revert: Optional[asyncio.Task] = None

        logger.info("StoryGenerator initialized")

    @property
    def engine_loaded(self) -> bool:
        return self._engine is not None

    @property
    def last_result(self) -> Optional[GenerationResult]:
        return self._last_result

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_inputs(self, title: str, description: str) -> bool:
        """
        Check that title and description are non-blank.

        Also enables the generate action iff the inputs are valid and no
        generation is running.

        Returns:
            True if both fields have content after trimming
        """
        is_valid = len(title.strip()) > 0 and len(description.strip()) > 0
        self.renderer.render_generate_enabled(is_valid and not self.session.is_generating)
        return is_valid

    # ------------------------------------------------------------------
    # Engine acquisition
    # ------------------------------------------------------------------

    async def acquire_engine(self, model_id: str) -> Any:
        """
        Return an engine for ``model_id``, loading it if needed.

        A cached engine for the same identifier is returned immediately. A
        different identifier drops the cached engine first.

        Raises:
            EngineBusyError: If another acquisition is in progress
            EngineLoadError: If the engine could not be created
        """
        if self._engine is not None and self.session.current_engine_key == model_id:
            return self._engine

        self.session = self.session.start_engine_load()
        self.release_engine()

        progress_cfg = self.config.progress
        self._set_loading("Loading model...", progress_cfg["trickle_floor"])
        self._progress_event_seen = False
        trickle = asyncio.create_task(self._trickle_progress())

        logger.info(f"Loading model: {model_id}")
        start_time = time.monotonic()
        engine = None
        try:
            engine = await self.engine_factory(
                self.config.engine.get("task", "text-generation"),
                model_id,
                quantized=self.config.engine.get("quantized", True),
                on_progress=self._on_engine_progress,
            )
        except Exception as e:
            logger.error(f"Failed to load model {model_id}: {e}")
            raise EngineLoadError(f"Failed to load model: {e}") from e
        finally:
            trickle.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await trickle
            self.session = self.session.finish_engine_load(model_id if engine is not None else None)

        self._engine = engine
        logger.info(f"✓ Model {model_id} ready in {time.monotonic() - start_time:.1f}s")
        self._set_loading("Model loaded successfully!", 100)
        return engine

    def release_engine(self) -> None:
        """Drop the cached engine; the next request loads a fresh one."""
        if self._engine is None:
            return

        logger.info(f"Releasing model: {self.session.current_engine_key}")
        unload = getattr(self._engine, "unload", None)
        if callable(unload):
            unload()
        self._engine = None
        self.session = self.session.clear_engine()

    def select_model(self, model_id: str) -> None:
        """Forget the cached engine when the user switches to another model."""
        if self._engine is not None and self.session.current_engine_key != model_id:
            self.release_engine()

    def _on_engine_progress(self, event: ProgressEvent) -> None:
        if event.status == "downloading":
            loaded = event.loaded or 0
            total = event.total or 0
            percent = int(loaded / total * 100 + 0.5) if total else 0
            self._set_loading(
                f"Downloading model: {percent}%",
                min(percent, self.config.progress["trickle_ceiling"]),
            )
        elif event.status == "loading":
            self._set_loading("Initializing model...", 80)
        else:
            return
        self._progress_event_seen = True

    async def _trickle_progress(self) -> None:
        """Nudge the bar forward while the engine reports nothing."""
        cfg = self.config.progress
        while True:
            await asyncio.sleep(cfg["trickle_interval"])
            if self._progress_event_seen:
                self._progress_event_seen = False
                continue
            current = max(self._progress, cfg["trickle_floor"])
            if current < cfg["trickle_ceiling"]:
                self._set_progress(min(current + cfg["trickle_step"], cfg["trickle_ceiling"]))

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, request: StoryRequest) -> Optional[GenerationResult]:
        """
        Generate a story for ``request`` and render the outcome.

        Failures never propagate: they end in an Error view. A call made
        while another generation is running is ignored.

        Args:
            request: Title, description, model and length

        Returns:
            GenerationResult on success, None on failure or when ignored
        """
        if not self.validate_inputs(request.title, request.description):
            self._show(Error(VALIDATION_MESSAGE))
            return None

        if self.session.is_generating:
            logger.debug("Generation already in progress, ignoring request")
            return None

        self._last_request = request

        self.session = self.session.start_generation()
        self.renderer.render_generate_enabled(False)
        self._progress = 0
        self._show(Loading(0, "Loading model..."))
        start_time = time.monotonic()

        try:
            title = request.title.strip()
            description = request.description.strip()

            engine = await self.acquire_engine(request.model_id)

            prompt = compose_prompt(title, description)
            self._set_loading("Generating your story...", 90)

            sampling = self.config.sampling
            response = await engine(
                prompt,
                max_new_tokens=request.max_tokens,
                temperature=sampling["temperature"],
                do_sample=sampling["do_sample"],
                top_k=sampling["top_k"],
                top_p=sampling["top_p"],
                repetition_penalty=sampling["repetition_penalty"],
                return_full_text=sampling["return_full_text"],
            )
            self._set_loading("Story generated!", 100)

            story = strip_prompt_echo(extract_generated_text(response), prompt)
            if not story:
                raise EmptyStoryError()

            result = GenerationResult(
                text=story,
                word_count=count_words(story),
                elapsed_seconds=round(time.monotonic() - start_time, 1),
                model_id=request.model_id,
            )
            self._last_result = result
            logger.info(
                f"✓ Story generated: {result.word_count} words in {result.elapsed_seconds}s"
            )
            self._show(Result(result))
            return result

        except Exception as e:
            logger.error(f"Story generation error: {e}")
            self._show(Error(classify_error(e).message))
            return None

        finally:
            self.session = self.session.finish_generation()
            self.renderer.render_generate_enabled(True)

    async def retry(self) -> Optional[GenerationResult]:
        """Run the last submitted request again."""
        if self._last_request is None:
            logger.debug("Nothing to retry")
            return None
        return await self.generate(self._last_request)

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------

    async def copy(self, text: Optional[str] = None) -> bool:
        """
        Copy text (default: the last story) to the clipboard.

        Tries the primary clipboard, then the fallback. Failures are logged
        and reported only through the return value.

        Returns:
            True if either path succeeded
        """
        if text is None:
            if self._last_result is None:
                logger.warning("Nothing to copy yet")
                return False
            text = self._last_result.text

        try:
            await self.clipboard.write_text(text)
        except Exception as e:
            logger.warning(f"Copy failed, trying fallback: {e}")
            try:
                await self.clipboard.fallback_write_text(text)
            except Exception as fallback_error:
                logger.error(f"Fallback copy failed: {fallback_error}")
                return False

        self._flash_copied()
        return True

    def _flash_copied(self) -> None:
        cfg = self.config.clipboard
        if self._copy_revert is not None and not self._copy_revert.done():
            self._copy_revert.cancel()

        self.renderer.render_copy_label(cfg["copied_label"])
        self._copy_revert = asyncio.get_running_loop().create_task(
            self._revert_copy_label(cfg["feedback_seconds"], cfg["label"])
        )

    async def _revert_copy_label(self, delay: float, label: str) -> None:
        await asyncio.sleep(delay)
        self.renderer.render_copy_label(label)

    # ------------------------------------------------------------------
    # View helpers
    # ------------------------------------------------------------------

    def _show(self, view: ViewState) -> None:
        self.view = view
        self.renderer.render(view)

    def _set_loading(self, message: str, progress: int) -> None:
        self._progress = max(0, min(int(progress), 100))
        self._show(Loading(self._progress, message))

    def _set_progress(self, progress: int) -> None:
        # Timers only move the bar; they never change which view is shown
        if not isinstance(self.view, Loading):
            return
        self._set_loading(self.view.message, progress)
