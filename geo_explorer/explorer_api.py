import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from geo_explorer.config import (
    CORS_ALLOW_CREDENTIALS,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_MAX_AGE,
    CORS_ORIGINS,
    LOG_LEVEL,
    MAX_QUERY_LENGTH,
)
from geo_explorer.exceptions import ExplorerError, QuerySuperseded
from geo_explorer.logging_config import get_logger, setup_logging
from geo_explorer.models import Coordinate, ThoughtStep
from geo_explorer.presentation.chart_renderer import render_chart_image
from geo_explorer.presentation.chart_view import build_bar_chart
from geo_explorer.presentation.timeline_view import build_timeline
from geo_explorer.services.explorer_session import ExplorerMode, ExplorerSession, get_session_registry

# Setup logging with secret redaction
setup_logging(log_level=LOG_LEVEL, enable_redaction=True)
logger = get_logger("geo_explorer")


def _check_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError('Query cannot be empty')
    if len(v) > MAX_QUERY_LENGTH:
        raise ValueError(f'Query too long (max {MAX_QUERY_LENGTH} characters)')
    return v.strip()


class SessionRequest(BaseModel):
    session_id: Optional[str] = None


class ModeRequest(SessionRequest):
    mode: ExplorerMode


class QueryRequest(SessionRequest):
    query: str

    @field_validator('query')
    @classmethod
    def validate_query(cls, v):
        return _check_text(v)


class DirectionsRequest(SessionRequest):
    origin: str
    destination: str

    @field_validator('origin', 'destination')
    @classmethod
    def validate_places(cls, v):
        return _check_text(v)


class DrawClickRequest(SessionRequest):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    zoom: float = Field(..., ge=0, le=24)


class StreamRequest(SessionRequest):
    mode: ExplorerMode
    query: str
    destination: Optional[str] = None

    @field_validator('query', 'destination')
    @classmethod
    def validate_text(cls, v):
        return _check_text(v)

    @model_validator(mode='after')
    def check_destination(self) -> 'StreamRequest':
        if self.mode == ExplorerMode.DIRECTIONS and not self.destination:
            raise ValueError('Destination is required for directions')
        return self


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info("Starting Geo Explorer API...")
    yield
    logger.info("Shutdown complete")


app = FastAPI(
    title="Geo Explorer API",
    description="AI-driven map exploration: place lookup, route comparison and geographic Q&A",
    version="1.0.0",
    lifespan=lifespan
)

logger.info(f"🔒 CORS:mode - Allowing origins: {CORS_ORIGINS}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ALLOW_CREDENTIALS,
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
    max_age=CORS_MAX_AGE,
)


# ============================================================================
# Response envelope
# ============================================================================

def _failure(message: str, session_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "error": message,
        "session_id": session_id,
        "view": None,
        "thought_steps": [],
        "chart": None,
        "chart_image": None,
    }


def _validation_message(e: ValidationError) -> str:
    error_msg = "Invalid request format"
    if e.errors():
        detail = e.errors()[0].get("msg", "")
        if "Query cannot be empty" in detail:
            error_msg = "Query cannot be empty"
        elif "Query too long" in detail:
            error_msg = "Query exceeds maximum length"
        elif "Destination is required" in detail:
            error_msg = "Destination is required for directions"
    return error_msg


def _envelope(session: ExplorerSession, success: bool, error: Optional[str] = None) -> Dict[str, Any]:
    chart = build_bar_chart(session.chart_data) if session.chart_data else None
    return {
        "success": success,
        "message": session.message,
        "error": error,
        "session_id": session.session_id,
        "view": session.view().model_dump(mode="json"),
        "thought_steps": [entry.model_dump(mode="json") for entry in build_timeline(session.thought_steps())],
        "chart": chart.model_dump(mode="json") if chart else None,
        "chart_image": session.chart_image if chart else None,
    }


async def _render_chart(session: ExplorerSession) -> None:
    """Render the session's chart once, off the event loop."""
    chart_data = session.chart_data
    if chart_data is None or not chart_data.data:
        return
    image = await asyncio.to_thread(render_chart_image, chart_data)
    # A newer query may have replaced the chart meanwhile
    if session.chart_data is chart_data:
        session.chart_image = image


async def _run_action(
    session: ExplorerSession,
    action: Callable[[ExplorerSession], Awaitable[Any]],
) -> Dict[str, Any]:
    try:
        await action(session)
    except QuerySuperseded as e:
        logger.info(f"Session {session.session_id}: {e}")
        return _envelope(session, success=False, error=str(e))
    except ExplorerError as e:
        logger.warning(f"Session {session.session_id}: query failed: {e}")
        return _envelope(session, success=False, error=str(e))
    except Exception as e:
        logger.exception(f"Unexpected error in API endpoint: {e}")
        return _failure("An unexpected error occurred", session.session_id)
    return _envelope(session, success=True)


async def _handle(
    http_request: Request,
    request_model,
    action: Callable[[ExplorerSession, Any], Awaitable[Any]],
) -> Dict[str, Any]:
    """Parse the body, resolve the session and run the action."""
    try:
        request_data = await http_request.json()
        request = request_model.model_validate(request_data)
    except ValidationError as e:
        error_msg = _validation_message(e)
        logger.warning(f"Validation failed: {error_msg}")
        return _failure(error_msg)
    except ValueError:
        logger.warning("Request body is not valid JSON")
        return _failure("Invalid request format")

    session = get_session_registry().get_or_create(request.session_id)
    return await _run_action(session, lambda s: action(s, request))


async def _dispatch_mode_query(
    session: ExplorerSession,
    request: StreamRequest,
    on_step: Optional[Callable[[ThoughtStep], None]] = None,
):
    if request.mode == ExplorerMode.SINGLE:
        return await session.search_place(request.query, on_step)
    if request.mode == ExplorerMode.DIRECTIONS:
        return await session.search_directions(request.query, request.destination, on_step)
    if request.mode == ExplorerMode.KNOWLEDGE:
        await session.ask_knowledge(request.query, on_step)
    else:
        await session.ask_drawn_area(request.query, on_step)
    await _render_chart(session)


# ============================================================================
# Endpoints
# ============================================================================

@app.post("/api/explorer/mode", response_model=Dict[str, Any])
async def change_mode(http_request: Request) -> Dict[str, Any]:
    """Switch search mode; resets every result including the drawn area."""
    async def action(session: ExplorerSession, request: ModeRequest):
        session.set_mode(request.mode)

    return await _handle(http_request, ModeRequest, action)


@app.post("/api/explorer/place", response_model=Dict[str, Any])
async def search_place(http_request: Request) -> Dict[str, Any]:
    """Find a place: boundary polygon if possible, otherwise a single point."""
    async def action(session: ExplorerSession, request: QueryRequest):
        await session.search_place(request.query)

    return await _handle(http_request, QueryRequest, action)


@app.post("/api/explorer/directions", response_model=Dict[str, Any])
async def search_directions(http_request: Request) -> Dict[str, Any]:
    """Compare AI-generated routes between two places."""
    async def action(session: ExplorerSession, request: DirectionsRequest):
        await session.search_directions(request.origin, request.destination)

    return await _handle(http_request, DirectionsRequest, action)


@app.post("/api/explorer/knowledge", response_model=Dict[str, Any])
async def ask_knowledge(http_request: Request) -> Dict[str, Any]:
    """Answer a question about a place."""
    async def action(session: ExplorerSession, request: QueryRequest):
        await session.ask_knowledge(request.query)
        await _render_chart(session)

    return await _handle(http_request, QueryRequest, action)


@app.post("/api/explorer/draw/click", response_model=Dict[str, Any])
async def draw_click(http_request: Request) -> Dict[str, Any]:
    """Add a vertex to the polygon being drawn, closing it near the first point."""
    async def action(session: ExplorerSession, request: DrawClickRequest):
        point = Coordinate(latitude=request.latitude, longitude=request.longitude)
        outcome = session.register_click(point, request.zoom)
        logger.debug(f"Session {session.session_id}: draw click {outcome.value}")

    return await _handle(http_request, DrawClickRequest, action)


@app.delete("/api/explorer/draw", response_model=Dict[str, Any])
async def clear_drawing(session_id: Optional[str] = None) -> Dict[str, Any]:
    """Remove the drawn area and any points in progress."""
    session = get_session_registry().get_or_create(session_id)

    async def action(s: ExplorerSession):
        s.clear_drawing()

    return await _run_action(session, action)


@app.post("/api/explorer/draw/knowledge", response_model=Dict[str, Any])
async def ask_drawn_area(http_request: Request) -> Dict[str, Any]:
    """Answer a question about the drawn area."""
    async def action(session: ExplorerSession, request: QueryRequest):
        await session.ask_drawn_area(request.query)
        await _render_chart(session)

    return await _handle(http_request, QueryRequest, action)


@app.post("/api/explorer/stream")
async def stream_query(http_request: Request):
    """
    Run a query and stream thought-step updates as NDJSON.

    Emits one {"event": "step", "step": ...} line per step update, then a
    single {"event": "result", ...} line carrying the usual envelope.
    """
    try:
        request_data = await http_request.json()
        request = StreamRequest.model_validate(request_data)
    except ValidationError as e:
        error_msg = _validation_message(e)
        logger.warning(f"Validation failed: {error_msg}")
        return _failure(error_msg)
    except ValueError:
        return _failure("Invalid request format")

    session = get_session_registry().get_or_create(request.session_id)

    async def events():
        queue: asyncio.Queue = asyncio.Queue()
        task = asyncio.ensure_future(
            _run_action(session, lambda s: _dispatch_mode_query(s, request, queue.put_nowait))
        )
        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield _ndjson_step(getter.result())
                    continue
                getter.cancel()
                break

            while not queue.empty():
                yield _ndjson_step(queue.get_nowait())

            yield json.dumps({"event": "result", **task.result()}) + "\n"
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(events(), media_type="application/x-ndjson")


def _ndjson_step(step: ThoughtStep) -> str:
    entry = build_timeline([step])[0]
    return json.dumps({"event": "step", "step": entry.model_dump(mode="json")}) + "\n"


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    return {"status": "healthy", "service": "geo-explorer"}
