"""
Module: story_gen.views
Purpose: View states and the renderer interface the controller drives

The controller never touches a UI directly. It calls a ViewRenderer, which
the server implements by broadcasting over WebSocket and the CLI implements
by echoing to the terminal.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from story_gen.state import GenerationResult


@dataclass(frozen=True)
class Idle:
    def to_dict(self) -> Dict[str, Any]:
        return {"view": "idle"}


@dataclass(frozen=True)
class Loading:
    progress: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"view": "loading", "progress": self.progress, "message": self.message}


@dataclass(frozen=True)
class Error:
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"view": "error", "message": self.message}


@dataclass(frozen=True)
class Result:
    result: GenerationResult

    def to_dict(self) -> Dict[str, Any]:
        return {"view": "result", "result": self.result.to_dict()}


ViewState = Union[Idle, Loading, Error, Result]


class ViewRenderer:
    """
    Rendering capability used by StoryGenerator.

    Subclasses override what they display; every hook defaults to a no-op so
    a renderer can ignore states it has no use for.
    """

    def render_idle(self) -> None:
        pass

    def render_loading(self, progress: int, message: str) -> None:
        pass

    def render_error(self, message: str) -> None:
        pass

    def render_result(self, result: GenerationResult) -> None:
        pass

    def render_generate_enabled(self, enabled: bool) -> None:
        pass

    def render_copy_label(self, label: str) -> None:
        pass

    def render(self, view: ViewState) -> None:
        """Dispatch a view state to the matching hook."""
        if isinstance(view, Loading):
            self.render_loading(view.progress, view.message)
        elif isinstance(view, Error):
            self.render_error(view.message)
        elif isinstance(view, Result):
            self.render_result(view.result)
        else:
            self.render_idle()
