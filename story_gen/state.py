"""
Module: story_gen.state
Purpose: Session flags, story requests and generation results

Session is immutable: every transition returns a new instance, so the
single-flight rules live here and can be checked without a controller.
"""

from dataclasses import dataclass, replace, asdict
from typing import Any, Dict, Optional

from story_gen.config import Config, get_config
from story_gen.errors import EngineBusyError


@dataclass(frozen=True)
class Session:
    """In-memory session state, one per controller."""
    current_engine_key: str = ""
    is_generating: bool = False
    is_engine_loading: bool = False

    def start_generation(self) -> "Session":
        return replace(self, is_generating=True)

    def finish_generation(self) -> "Session":
        return replace(self, is_generating=False)

    def start_engine_load(self) -> "Session":
        """
        Mark an engine load as in flight.

        Raises:
            EngineBusyError: If a load is already running
        """
        if self.is_engine_loading:
            raise EngineBusyError()
        return replace(self, is_engine_loading=True)

    def finish_engine_load(self, engine_key: Optional[str] = None) -> "Session":
        """End the load; ``engine_key`` is recorded only when it succeeded."""
        if engine_key is None:
            return replace(self, is_engine_loading=False)
        return replace(self, is_engine_loading=False, current_engine_key=engine_key)

    def clear_engine(self) -> "Session":
        return replace(self, current_engine_key="")


@dataclass(frozen=True)
class ProgressEvent:
    """
    Progress notification emitted while an engine is being created.

    Attributes:
        status: "downloading" while files are fetched, "loading" once the
            pipeline is being built
        loaded: Units completed so far (downloading only)
        total: Total units expected (downloading only)
    """
    status: str
    loaded: Optional[float] = None
    total: Optional[float] = None


@dataclass(frozen=True)
class StoryRequest:
    """
    A single story submission.

    Attributes:
        title: Story title as typed
        description: Story description as typed
        model_id: Hugging Face model identifier
        max_tokens: Upper bound on newly generated tokens
    """
    title: str
    description: str
    model_id: str
    max_tokens: int

    @classmethod
    def from_form(
        cls,
        title: str,
        description: str,
        model_id: Optional[str] = None,
        max_tokens: Optional[int] = None,
        config: Optional[Config] = None,
    ) -> "StoryRequest":
        """
        Build a request from form values, filling defaults from config.

        Raises:
            ValueError: If the model or length is not one of the configured choices
        """
        config = config or get_config()
        model_id = model_id or config.get_model_id(config.default_model)
        max_tokens = max_tokens or config.default_max_tokens

        if not config.is_known_model(model_id):
            raise ValueError(f"Unknown model: {model_id}. Available: {config.model_ids()}")
        if max_tokens not in config.max_token_choices():
            raise ValueError(
                f"Unsupported length: {max_tokens}. Available: {config.max_token_choices()}"
            )

        return cls(title=title, description=description, model_id=model_id, max_tokens=int(max_tokens))


@dataclass(frozen=True)
class GenerationResult:
    text: str
    word_count: int
    elapsed_seconds: float
    model_id: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
