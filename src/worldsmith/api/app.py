"""
Core API backend for Worldsmith.

This module exposes the turn controller through a RESTful API used by frontends (the 3D client
renders the world and the notices).  It exposes the following endpoints:
- **GET /health**       - liveness probe for health checks.
- **GET /status**       - controller state, engine and temperature.
- **GET /tools**        - the current tool catalogue, synthesized tools included.
- **GET /history**      - stored conversation messages.
- **GET /world**        - snapshot of the scene.
- **POST /chat**        - run one turn: {"message": "..."}
- **POST /reload**      - switch engine/model, resetting session and tools.
- **PUT /temperature**  - change the sampling temperature.
"""

import logging
from contextlib import asynccontextmanager
from typing import (
    Any,
    AsyncIterator,
    Dict,
    List,
)

from fastapi import (
    APIRouter,
    Depends,
    FastAPI,
    HTTPException,
    Request,
)

from worldsmith.agent.engine import load_engine
from worldsmith.agent.turn_controller import (
    ControllerBusy,
    TurnController,
)
from worldsmith.api.models import (
    ChatRequest,
    HistoryResponse,
    ReloadRequest,
    ReloadResponse,
    StatusResponse,
    TemperatureRequest,
    ToolInfo,
)
from worldsmith.common import (
    AnsiColors,
    colored_print,
)
from worldsmith.config import settings
from worldsmith.core.schema import TurnOutcome

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the controller at startup unless one was injected (tests)."""
    controller: TurnController | None = getattr(app.state, "controller", None)
    if controller is None:
        controller = TurnController()
        await controller.reload_engine(load_engine())
        app.state.controller = controller
    yield
    if controller.engine is not None:
        await controller.engine.close()


def create_app(controller: TurnController | None = None) -> FastAPI:
    """Build the FastAPI application, optionally around an existing controller."""
    api = FastAPI(
        title="Worldsmith API",
        version="0.1.0",
        description="Tool-orchestration runtime for an LLM-controlled world",
        lifespan=lifespan,
    )
    if controller is not None:
        api.state.controller = controller
    api.include_router(router)
    return api


def get_controller(request: Request) -> TurnController:
    return request.app.state.controller


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
router = APIRouter()


@router.get("/health", summary="Health check")
async def health() -> Dict[str, str]:
    """Return a simple liveness payload."""
    return {"status": "ok"}


@router.get("/status", response_model=StatusResponse, summary="Controller state")
async def status(controller: TurnController = Depends(get_controller)) -> StatusResponse:
    engine = controller.engine
    return StatusResponse(
        status=controller.status,
        engine=engine.name if engine else None,
        model=engine.model if engine else None,
        temperature=controller.temperature,
        retry_count=controller.retry_count,
        history_length=len(controller.session),
    )


@router.get("/tools", response_model=List[ToolInfo], summary="List registered tools")
async def tools(controller: TurnController = Depends(get_controller)) -> List[ToolInfo]:
    return [
        ToolInfo(
            name=tool.name,
            description=tool.description,
            parameters=dict(tool.parameters),
            synthesized=tool.synthesized,
        )
        for tool in controller.registry.list_all()
    ]


@router.get("/history", response_model=HistoryResponse, summary="Stored conversation")
async def history(controller: TurnController = Depends(get_controller)) -> HistoryResponse:
    return HistoryResponse(messages=controller.session.history)


@router.get("/world", summary="Scene snapshot")
async def world(controller: TurnController = Depends(get_controller)) -> Dict[str, Any]:
    return controller.world.snapshot()


@router.post("/chat", response_model=TurnOutcome, summary="Process a message")
async def chat(
    req: ChatRequest, controller: TurnController = Depends(get_controller)
) -> TurnOutcome:
    """Run one turn; 409 if another turn is still in flight."""
    if not req.message.strip():
        raise HTTPException(status_code=400, detail="Message is empty.")
    outcome = await controller.handle_user_message(req.message)
    if not outcome.accepted:
        if outcome.notices:
            raise HTTPException(status_code=503, detail=outcome.notices[0].text)
        raise HTTPException(status_code=409, detail="A turn is already in progress.")
    return outcome


@router.post("/reload", response_model=ReloadResponse, summary="Switch engine or model")
async def reload(
    req: ReloadRequest, controller: TurnController = Depends(get_controller)
) -> ReloadResponse:
    try:
        engine = load_engine(req.engine, req.model)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        notice = await controller.reload_engine(engine)
    except ControllerBusy as exc:
        await engine.close()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return ReloadResponse(notice=notice)


@router.put("/temperature", summary="Set sampling temperature")
async def temperature(
    req: TemperatureRequest, controller: TurnController = Depends(get_controller)
) -> Dict[str, float]:
    return {"temperature": controller.set_temperature(req.temperature)}


app = create_app()


# ---------------------------------------------------------------------------
# Public helper to launch the API (imported by main.py)
# ---------------------------------------------------------------------------
def run_api(
    host: str = "0.0.0.0", port: int = 8000, reload: bool = False, log_level: str | None = None
) -> None:
    """Start a uvicorn server hosting *app*.

    Parameters
    ----------
    host, port:
        Bind address for the HTTP server.
    reload:
        If *True*, enable auto-reload (useful in development).
    log_level:
        Logging level to use (default from settings if not provided).
    """

    # Lazy import - keeps uvicorn an optional dependency at pkg-import time
    import uvicorn  # pylint: disable=import-outside-toplevel

    if log_level is None:  # Use the default from settings if not provided
        log_level = settings.LOG_LEVEL

    logger.info(
        "Starting Worldsmith API at %s:%d (reload=%s, log_level=%s)", host, port, reload, log_level
    )
    logger.debug("API settings: %s", settings.model_dump())

    colored_print(f"🔮 Worldsmith API is running at http://localhost:{port}.", AnsiColors.GREEN)
    colored_print(f"Visit http://localhost:{port}/docs for API documentation.", AnsiColors.BLUE)
    uvicorn.run(
        "worldsmith.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# ---------------------------------------------------------------------------
# `python -m worldsmith.api.app` helper
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    run_api(reload=True)
