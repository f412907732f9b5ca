"""
Module: story_gen.server
Purpose: FastAPI server with the story page, REST routes and live view updates
Dependencies: fastapi, uvicorn, pydantic
Author: Generated for StoryGenerator

The page talks to a single StoryGenerator. View-state changes are pushed to
every connected browser over /ws; the REST routes return the final state so
non-browser clients can use the API directly.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field, field_validator

from story_gen.config import get_config
from story_gen.core import StoryGenerator
from story_gen.interface import html_content
from story_gen.state import GenerationResult, StoryRequest
from story_gen.views import Error, Idle, Loading, Result, ViewRenderer

logger = logging.getLogger(__name__)

INIT_FAILURE_MESSAGE = "Failed to initialize the application. Please refresh the page and try again."


class ConnectionManager:
    """Manage WebSocket connections for real-time updates."""

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"Client connected. Total: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        logger.info(f"Client disconnected. Total: {len(self.active_connections)}")

    async def broadcast(self, message: dict):
        """Send message to all connected clients."""
        disconnected = []
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.error(f"Error sending to client: {e}")
                disconnected.append(connection)

        # Clean up disconnected clients
        for conn in disconnected:
            if conn in self.active_connections:
                self.active_connections.remove(conn)


class WebSocketRenderer(ViewRenderer):
    """
    ViewRenderer that broadcasts every update to connected pages.

    Hooks are synchronous, so each broadcast is scheduled as a task; tasks
    run in creation order, which keeps updates ordered on the wire.
    """

    def __init__(self, connections: ConnectionManager):
        self.connections = connections
        self.last_view: Dict[str, Any] = Idle().to_dict()
        self.generate_enabled = True
        self.copy_label = get_config().clipboard["label"]
        self._pending: set = set()

    def _emit(self, message: Dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.connections.broadcast(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def snapshot(self) -> List[Dict[str, Any]]:
        """Messages that bring a newly connected page up to date."""
        return [
            {"type": "view", **self.last_view},
            {"type": "controls", "generate_enabled": self.generate_enabled},
            {"type": "copy_label", "label": self.copy_label},
        ]

    def render(self, view) -> None:
        self.last_view = view.to_dict()
        self._emit({"type": "view", **self.last_view})

    def render_idle(self) -> None:
        self.render(Idle())

    def render_loading(self, progress: int, message: str) -> None:
        self.render(Loading(progress, message))

    def render_error(self, message: str) -> None:
        self.render(Error(message))

    def render_result(self, result: GenerationResult) -> None:
        self.render(Result(result))

    def render_generate_enabled(self, enabled: bool) -> None:
        self.generate_enabled = enabled
        self._emit({"type": "controls", "generate_enabled": enabled})

    def render_copy_label(self, label: str) -> None:
        self.copy_label = label
        self._emit({"type": "copy_label", "label": label})


manager = ConnectionManager()
renderer = WebSocketRenderer(manager)

# Global generator instance (created on startup)
_generator: Optional[StoryGenerator] = None


def _log_unhandled(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    """Event-loop exception handler: log stray async failures and carry on."""
    exception = context.get("exception")
    logger.error(f"Unhandled async error: {exception or context.get('message')}", exc_info=exception)


def init_generator() -> Optional[StoryGenerator]:
    """Create the global generator, recording (not raising) any failure."""
    global _generator
    try:
        logger.info("Initializing StoryGenerator...")
        _generator = StoryGenerator(renderer=renderer)
    except Exception as e:
        logger.error(f"Failed to initialize StoryGenerator: {e}")
        _generator = None
    return _generator


def get_generator() -> StoryGenerator:
    """Get or create the global generator instance."""
    if _generator is None:
        init_generator()
    if _generator is None:
        raise HTTPException(status_code=503, detail=INIT_FAILURE_MESSAGE)
    return _generator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Install the async exception guard and create the generator."""
    asyncio.get_running_loop().set_exception_handler(_log_unhandled)
    init_generator()
    yield
    if _generator is not None:
        _generator.release_engine()


# Initialize FastAPI app
app = FastAPI(
    title="StoryGenerator API",
    description="Generate short stories from a title and description with a local language model",
    version="0.1.0",
    lifespan=lifespan,
)


# Request/Response models
class GenerateRequest(BaseModel):
    """Request model for story generation."""
    title: str = Field("", description="Story title")
    description: str = Field("", description="What the story is about")
    model: Optional[str] = Field(None, description="Hugging Face model id (default from config)")
    max_tokens: Optional[int] = Field(None, description="Maximum new tokens (one of the length choices)")

    @field_validator("model")
    @classmethod
    def model_is_known(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not get_config().is_known_model(value):
            raise ValueError(f"Unknown model: {value}")
        return value

    @field_validator("max_tokens")
    @classmethod
    def length_is_known(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value not in get_config().max_token_choices():
            raise ValueError(f"Unsupported length: {value}")
        return value


class ModelSelection(BaseModel):
    model: str


class GenerateResponse(BaseModel):
    """Response model for generate and retry."""
    success: bool
    busy: bool = False
    state: Dict[str, Any]


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    engine_loaded: bool
    current_model: str
    device: str


# API Routes
@app.get("/", response_class=HTMLResponse)
async def get_interface():
    return HTMLResponse(content=html_content)


@app.get("/options")
async def options():
    """Models, length choices and example prompts for the form."""
    return get_config().options()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for real-time view updates."""
    await manager.connect(websocket)
    try:
        for message in renderer.snapshot():
            await websocket.send_json(message)
        while True:
            # Keep connection alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)


@app.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest):
    """
    Generate a story.

    Example:
        POST /generate
        {
            "title": "Clockwork Garden",
            "description": "A botanist builds mechanical flowers",
            "model": "HuggingFaceTB/SmolLM2-135M",
            "max_tokens": 200
        }
    """
    gen = get_generator()
    story_request = StoryRequest.from_form(
        title=request.title,
        description=request.description,
        model_id=request.model,
        max_tokens=request.max_tokens,
        config=gen.config,
    )

    busy = gen.session.is_generating
    result = await gen.generate(story_request)
    return GenerateResponse(
        success=result is not None,
        busy=busy and result is None,
        state=gen.view.to_dict(),
    )


@app.post("/retry", response_model=GenerateResponse)
async def retry():
    """Re-run the last submitted request."""
    gen = get_generator()
    busy = gen.session.is_generating
    result = await gen.retry()
    return GenerateResponse(
        success=result is not None,
        busy=busy and result is None,
        state=gen.view.to_dict(),
    )


@app.post("/model")
async def select_model(selection: ModelSelection):
    """Switching models drops the cached engine."""
    if not get_config().is_known_model(selection.model):
        raise HTTPException(status_code=422, detail=f"Unknown model: {selection.model}")
    get_generator().select_model(selection.model)
    return {"success": True, "model": selection.model}


@app.get("/health", response_model=HealthResponse)
async def health():
    """
    Health check endpoint.

    Returns server status and engine information.
    """
    if _generator is None:
        return HealthResponse(
            status="unhealthy", engine_loaded=False, current_model="", device="unknown"
        )

    try:
        from story_gen.utils.device import detect_device

        device = detect_device(get_config().engine.get("device"))
    except Exception as e:
        logger.error(f"Device detection failed: {e}")
        device = "unknown"

    return HealthResponse(
        status="healthy",
        engine_loaded=_generator.engine_loaded,
        current_model=_generator.session.current_engine_key,
        device=device,
    )


@app.post("/unload")
async def unload_models():
    """
    Unload the cached engine from memory.

    Returns:
        Success message
    """
    try:
        gen = get_generator()
        if gen.engine_loaded:
            gen.release_engine()
            return {"success": True, "message": "Model unloaded successfully"}
        return {"success": True, "message": "No model was loaded"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to unload model: {e}")
        raise HTTPException(status_code=500, detail=str(e))


def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: Optional[bool] = None,
):
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to (default from config)
        port: Port to listen on (default from config)
        reload: Enable auto-reload for development (default from config)
    """
    import uvicorn

    api = get_config().api
    host = host or api["host"]
    port = port or api["port"]
    reload = api["reload"] if reload is None else reload

    logger.info(f"Starting StoryGenerator server on http://{host}:{port}")

    uvicorn.run(
        "story_gen.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level=api["log_level"],
    )


if __name__ == "__main__":
    run_server(reload=True)
