"""
Module: tests.test_engine
Purpose: Tests for the transformers-backed engine with the hub and pipeline stubbed
"""

import asyncio
import io
import sys
from pathlib import Path
from types import SimpleNamespace

import torch

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from story_gen.models import text_generation
from story_gen.utils.device import select_dtype


class StubPipeline:
    def __init__(self):
        self.tokenizer = SimpleNamespace(pad_token_id=None, eos_token_id=50256)
        self.model = SimpleNamespace(generation_config=SimpleNamespace(pad_token_id=None))
        self.calls = []

    def __call__(self, prompt, **options):
        self.calls.append((prompt, options))
        return [{"generated_text": "A quiet story."}]


def install_stubs(monkeypatch, tmp_path):
    created = {}

    def fake_snapshot_download(repo_id, cache_dir=None, allow_patterns=None, tqdm_class=None):
        bar = tqdm_class(total=2, file=io.StringIO())
        bar.update(1)
        bar.update(1)
        bar.close()
        created["repo_id"] = repo_id
        return str(tmp_path / "snapshot")

    def fake_pipeline(task, model=None, torch_dtype=None, device=None):
        created.update(task=task, model=model, torch_dtype=torch_dtype, device=device)
        created["pipeline"] = StubPipeline()
        return created["pipeline"]

    monkeypatch.setattr(text_generation, "snapshot_download", fake_snapshot_download)
    monkeypatch.setattr(text_generation, "pipeline", fake_pipeline)
    monkeypatch.setattr(text_generation, "detect_device", lambda prefer=None: "cpu")
    return created


def test_create_engine_reports_progress_and_loads(monkeypatch, tmp_path):
    created = install_stubs(monkeypatch, tmp_path)
    monkeypatch.setitem(text_generation.get_config().engine, "cache_dir", str(tmp_path / "cache"))
    events = []

    engine = asyncio.run(
        text_generation.create_engine(
            "text-generation", "distilbert/distilgpt2", quantized=True, on_progress=events.append
        )
    )

    assert [e.status for e in events] == ["downloading", "downloading", "loading"]
    assert (events[0].loaded, events[0].total) == (1, 2)
    assert (events[1].loaded, events[1].total) == (2, 2)

    assert created["repo_id"] == "distilbert/distilgpt2"
    assert created["task"] == "text-generation"
    assert created["model"] == str(tmp_path / "snapshot")
    assert created["torch_dtype"] == torch.float32  # quantized only matters on GPU
    assert engine.device == "cpu"
    # Missing pad token falls back to EOS
    assert created["pipeline"].model.generation_config.pad_token_id == 50256


def test_engine_call_passes_options_through(monkeypatch, tmp_path):
    created = install_stubs(monkeypatch, tmp_path)
    monkeypatch.setitem(text_generation.get_config().engine, "cache_dir", str(tmp_path / "cache"))

    async def scenario():
        engine = await text_generation.create_engine("text-generation", "openai-community/gpt2")
        return await engine("Title: T\n", max_new_tokens=5, return_full_text=False)

    response = asyncio.run(scenario())

    assert response == [{"generated_text": "A quiet story."}]
    assert created["pipeline"].calls == [("Title: T\n", {"max_new_tokens": 5, "return_full_text": False})]


def test_unload_drops_pipeline():
    engine = text_generation.TextGenerationEngine("gpt2", StubPipeline(), "cpu")
    engine.unload()

    assert engine.pipeline is None
    engine.unload()  # second call is harmless


def test_select_dtype():
    assert select_dtype("cuda", quantized=True) == torch.float16
    assert select_dtype("mps", quantized=True) == torch.float16
    assert select_dtype("cuda", quantized=False) == torch.float32
    assert select_dtype("cpu", quantized=True) == torch.float32
