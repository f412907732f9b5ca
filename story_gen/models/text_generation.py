"""
Module: story_gen.models.text_generation
Purpose: Hugging Face text-generation engine with download progress reporting
Dependencies: transformers, huggingface_hub, tqdm, torch
Author: Generated for StoryGenerator

The engine is a thin asynchronous wrapper over ``transformers.pipeline``.
Downloading and inference are blocking, so both run in the event loop's
default executor; progress callbacks are marshalled back onto the loop.
"""

import asyncio
import functools
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

from huggingface_hub import snapshot_download
from tqdm.auto import tqdm
from transformers import pipeline

from story_gen.config import get_config
from story_gen.state import ProgressEvent
from story_gen.utils.device import detect_device, select_dtype, empty_cache

logger = logging.getLogger(__name__)

# Weights, tokenizer and generation config; skips ONNX/TF/Flax duplicates
_ALLOW_PATTERNS = ["*.json", "*.safetensors", "*.txt", "*.model"]


ProgressCallback = Callable[[ProgressEvent], None]


def _reporting_tqdm(report: Callable[[float, Optional[float]], None]):
    """Build a tqdm class that forwards every update to ``report``."""

    class _ReportingTqdm(tqdm):
        def update(self, n=1):
            displayed = super().update(n)
            report(self.n, self.total)
            return displayed

    return _ReportingTqdm


class TextGenerationEngine:
    """
    Loaded text-generation pipeline.

    Calling the engine runs generation off the event loop and returns the
    pipeline's raw response (a list of ``{"generated_text": ...}`` dicts).

    Attributes:
        model_id: Hugging Face model identifier
        device: Device string the pipeline runs on
        pipeline: The underlying transformers pipeline

    Example:
        >>> engine = await create_engine("text-generation", "distilbert/distilgpt2")
        >>> response = await engine("Once upon a time", max_new_tokens=20)
    """

    def __init__(self, model_id: str, text_pipeline: Any, device: str):
        self.model_id = model_id
        self.pipeline = text_pipeline
        self.device = device

    async def __call__(self, prompt: str, **options: Any) -> Any:
        if self.pipeline is None:
            raise RuntimeError(f"Model {self.model_id} has been unloaded")

        logger.info(f"Generating with {self.model_id}: '{prompt[:50]}...'")
        start_time = time.time()

        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None, functools.partial(self.pipeline, prompt, **options)
        )

        logger.info(f"✓ Generation finished in {time.time() - start_time:.2f}s")
        return response

    def unload(self) -> None:
        """
        Drop the pipeline and release GPU memory.

        The engine cannot generate after this; acquire a new one instead.
        """
        if self.pipeline is None:
            return

        logger.info(f"Unloading {self.model_id} from memory")
        self.pipeline = None
        empty_cache(self.device)


def _load_pipeline(
    task: str,
    model_id: str,
    quantized: bool,
    device: Optional[str],
    cache_dir: Optional[str],
    emit: ProgressCallback,
) -> TextGenerationEngine:
    """Blocking part of create_engine, run in a worker thread."""
    if cache_dir:
        Path(cache_dir).mkdir(parents=True, exist_ok=True)

    start_time = time.time()
    local_dir = snapshot_download(
        repo_id=model_id,
        cache_dir=cache_dir,
        allow_patterns=_ALLOW_PATTERNS,
        tqdm_class=_reporting_tqdm(
            lambda loaded, total: emit(ProgressEvent("downloading", loaded, total))
        ),
    )
    logger.info(f"Model files ready in {time.time() - start_time:.1f}s: {local_dir}")

    emit(ProgressEvent("loading"))

    device = detect_device(device)
    dtype = select_dtype(device, quantized)
    text_pipeline = pipeline(task, model=local_dir, torch_dtype=dtype, device=device)

    # GPT-2 style tokenizers ship without a pad token
    tokenizer = text_pipeline.tokenizer
    if tokenizer is not None and tokenizer.pad_token_id is None:
        text_pipeline.model.generation_config.pad_token_id = tokenizer.eos_token_id

    logger.info(
        f"✓ {model_id} loaded on {device} ({dtype}) in {time.time() - start_time:.1f}s"
    )
    return TextGenerationEngine(model_id, text_pipeline, device)


async def create_engine(
    task: str,
    model_id: str,
    quantized: bool = True,
    on_progress: Optional[ProgressCallback] = None,
) -> TextGenerationEngine:
    """
    Download (if needed) and load a text-generation pipeline.

    Args:
        task: Pipeline task, "text-generation"
        model_id: Hugging Face model identifier
        quantized: Load half-precision weights on GPU devices
        on_progress: Called on the event loop with ProgressEvent updates

    Returns:
        Ready TextGenerationEngine

    Raises:
        Whatever huggingface_hub or transformers raise; callers wrap it.
    """
    config = get_config()
    loop = asyncio.get_running_loop()

    def emit(event: ProgressEvent) -> None:
        if on_progress is not None:
            loop.call_soon_threadsafe(on_progress, event)

    logger.info(f"Creating {task} engine for {model_id} (quantized={quantized})")

    return await loop.run_in_executor(
        None,
        functools.partial(
            _load_pipeline,
            task,
            model_id,
            quantized,
            config.engine.get("device"),
            config.engine.get("cache_dir"),
            emit,
        ),
    )
