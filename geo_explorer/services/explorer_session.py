import asyncio
import logging
import uuid
from collections import OrderedDict
from enum import Enum
from typing import Awaitable, Callable, List, Optional, TypeVar

from pydantic import BaseModel

from geo_explorer.config import MAX_SESSIONS
from geo_explorer.exceptions import ExplorerError, QuerySuperseded, ValidationError
from geo_explorer.llm.structured_client import StructuredQueryClient, get_structured_query_client
from geo_explorer.models import (
    ChartData,
    Coordinate,
    KnowledgeResult,
    PlaceLookupResult,
    RouteAnalysisResult,
    StepStatus,
    ThoughtStep,
)
from geo_explorer.orchestration.knowledge_query import (
    DRAWN_AREA_REQUIRED_MESSAGE,
    ask_about_area,
    ask_about_place,
)
from geo_explorer.orchestration.place_lookup import lookup_place
from geo_explorer.orchestration.progress import ThoughtTimeline
from geo_explorer.orchestration.route_comparison import compare_routes
from geo_explorer.presentation.drawing import PolygonDrawing
from geo_explorer.presentation.map_view import MapView, build_map_view

logger = logging.getLogger("geo_explorer.session")

T = TypeVar("T")

StepListener = Callable[[ThoughtStep], None]


class ExplorerMode(str, Enum):
    SINGLE = "single"
    DIRECTIONS = "directions"
    KNOWLEDGE = "knowledge"
    DRAW = "draw"


MODE_MESSAGES = {
    ExplorerMode.SINGLE: "Where would you like to explore today?",
    ExplorerMode.DIRECTIONS: "Enter a starting point and a destination.",
    ExplorerMode.DRAW: "Click on the map to draw a polygon. Click the first point to finish.",
    ExplorerMode.KNOWLEDGE: "Ask a question about a place (e.g., 'population of Tokyo').",
}

PLACE_FAILURE_MESSAGE = "Could not find the location. Please try again."
ROUTE_FAILURE_MESSAGE = "Could not calculate the route. Please try again."
KNOWLEDGE_FAILURE_MESSAGE = "Could not find an answer. Please try a different query."
DRAWN_AREA_FAILURE_MESSAGE = "Could not find an answer for the drawn area."
AREA_DEFINED_MESSAGE = "Area defined. Now ask a question about it below."
DRAWING_CLEARED_MESSAGE = "Drawing cleared. Click map to start again."
SUPERSEDED_MESSAGE = "Query was replaced by a newer query"
CLOSED_MESSAGE = "Session was closed before the query finished"
CANCELLED_STEP_DETAILS = "Cancelled."


class ClickOutcome(str, Enum):
    IGNORED = "ignored"
    ADDED = "added"
    CLOSED = "closed"


class ExplorerView(BaseModel):
    """Snapshot of everything the client renders for a session."""
    mode: ExplorerMode
    is_loading: bool
    map: MapView
    drawing_points: List[Coordinate]
    drawn_area: Optional[List[Coordinate]] = None
    route_analysis: Optional[RouteAnalysisResult] = None
    location_name: Optional[str] = None
    answer: Optional[str] = None
    source: Optional[str] = None


class ExplorerSession:
    """
    Per-user explorer state machine.

    Holds the search mode, the current results and the thought timeline of
    the latest query. Starting a query cancels the previous in-flight query
    of this session; the superseded one never touches the view state and
    raises QuerySuperseded to its caller.
    """

    def __init__(self, session_id: str, client: Optional[StructuredQueryClient] = None):
        self.session_id = session_id
        self._client = client
        self.mode = ExplorerMode.SINGLE
        self.message = MODE_MESSAGES[ExplorerMode.SINGLE]
        self.error: Optional[str] = None
        self.is_loading = False

        self.coordinate: Optional[Coordinate] = None
        self.highlighted_area: Optional[List[Coordinate]] = None
        self.drawn_area: Optional[List[Coordinate]] = None
        self.route_analysis: Optional[RouteAnalysisResult] = None
        self.knowledge: Optional[KnowledgeResult] = None
        self.chart_data: Optional[ChartData] = None
        # Base64 PNG of chart_data, filled in by the API layer
        self.chart_image: Optional[str] = None

        self.timeline = ThoughtTimeline()
        self.drawing = PolygonDrawing()
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        # Bumped by every query start and mode change; older runs compare against it
        self._generation = 0

    @property
    def client(self) -> StructuredQueryClient:
        if self._client is None:
            self._client = get_structured_query_client()
        return self._client

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _reset_results(self, keep_drawn_area: bool = False) -> None:
        self.error = None
        self.coordinate = None
        self.highlighted_area = None
        self.route_analysis = None
        self.knowledge = None
        self.chart_data = None
        self.chart_image = None
        self.timeline = ThoughtTimeline()
        if not keep_drawn_area:
            self.drawn_area = None
            self.drawing.reset()

    def cancel_in_flight(self) -> None:
        if self._task is not None and not self._task.done():
            logger.info(f"Session {self.session_id}: cancelling in-flight query")
            self._task.cancel()

    def close(self) -> None:
        """Retire the session; an in-flight query ends as superseded."""
        self._closed = True
        self.cancel_in_flight()
        self._generation += 1
        self._task = None
        self.is_loading = False

    def set_mode(self, mode: ExplorerMode) -> None:
        """Switch mode, dropping every result including the drawn area."""
        mode = ExplorerMode(mode)
        self.cancel_in_flight()
        self._generation += 1
        self._task = None
        self.is_loading = False
        self.mode = mode
        self._reset_results()
        self.message = MODE_MESSAGES[mode]
        logger.info(f"Session {self.session_id}: mode -> {mode.value}")

    async def _run(
        self,
        operation: Callable[[ThoughtTimeline], Awaitable[T]],
        on_step: Optional[StepListener] = None,
    ) -> T:
        self.cancel_in_flight()
        self._generation += 1
        generation = self._generation

        if on_step is not None:
            self.timeline.add_listener(on_step)
        timeline = self.timeline

        task = asyncio.ensure_future(operation(timeline))
        self._task = task
        self.is_loading = True

        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                self._fail_running_steps(timeline)
                raise QuerySuperseded(CLOSED_MESSAGE if self._closed else SUPERSEDED_MESSAGE)
            raise
        finally:
            if on_step is not None:
                timeline.remove_listener(on_step)
            if generation == self._generation:
                self._task = None
                self.is_loading = False

        if generation != self._generation:
            raise QuerySuperseded(CLOSED_MESSAGE if self._closed else SUPERSEDED_MESSAGE)
        return result

    @staticmethod
    def _fail_running_steps(timeline: ThoughtTimeline) -> None:
        for step in timeline.steps():
            if step.status == StepStatus.RUNNING:
                timeline.report({"id": step.id, "status": StepStatus.ERROR, "details": CANCELLED_STEP_DETAILS})

    async def _run_query(
        self,
        operation: Callable[[ThoughtTimeline], Awaitable[T]],
        failure_message: str,
        on_step: Optional[StepListener] = None,
    ) -> T:
        try:
            return await self._run(operation, on_step)
        except QuerySuperseded:
            raise
        except ExplorerError as e:
            self.error = str(e)
            self.message = failure_message
            raise

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def search_place(self, query: str, on_step: Optional[StepListener] = None) -> PlaceLookupResult:
        self._reset_results()
        self.message = f"Searching for {query}..."

        result = await self._run_query(
            lambda timeline: lookup_place(query, self.client, timeline),
            PLACE_FAILURE_MESSAGE,
            on_step,
        )

        if result.is_area:
            self.highlighted_area = list(result.area)
            self.message = f"Showing area for {query}."
        else:
            self.coordinate = result.coordinate
            self.message = f"Flying to {query}..."
        return result

    async def search_directions(
        self,
        origin: str,
        destination: str,
        on_step: Optional[StepListener] = None,
    ) -> RouteAnalysisResult:
        self._reset_results()
        self.message = f"Calculating route from {origin} to {destination}..."

        result = await self._run_query(
            lambda timeline: compare_routes(origin, destination, self.client, timeline),
            ROUTE_FAILURE_MESSAGE,
            on_step,
        )

        self.route_analysis = result
        self.message = (
            f"Route analysis complete. Recommended route from {origin} to {destination} is highlighted."
        )
        return result

    async def ask_knowledge(self, query: str, on_step: Optional[StepListener] = None) -> KnowledgeResult:
        self._reset_results()
        self.message = f"Thinking about {query}..."

        result = await self._run_query(
            lambda timeline: ask_about_place(query, self.client, timeline),
            KNOWLEDGE_FAILURE_MESSAGE,
            on_step,
        )

        self._apply_knowledge(result)
        self.highlighted_area = list(result.area)
        return result

    async def ask_drawn_area(self, query: str, on_step: Optional[StepListener] = None) -> KnowledgeResult:
        if not self.drawn_area:
            self.error = DRAWN_AREA_REQUIRED_MESSAGE
            raise ValidationError(DRAWN_AREA_REQUIRED_MESSAGE)

        self._reset_results(keep_drawn_area=True)
        self.message = "Thinking about your drawn area..."
        area = list(self.drawn_area)

        result = await self._run_query(
            lambda timeline: ask_about_area(area, query, self.client, timeline),
            DRAWN_AREA_FAILURE_MESSAGE,
            on_step,
        )

        self._apply_knowledge(result)
        return result

    def _apply_knowledge(self, result: KnowledgeResult) -> None:
        self.knowledge = result
        self.chart_data = result.chart_data
        self.message = result.answer

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def register_click(self, point: Coordinate, zoom: float) -> ClickOutcome:
        """Feed a map click to the drawing workflow."""
        if self.mode != ExplorerMode.DRAW or self.drawn_area is not None:
            return ClickOutcome.IGNORED

        area = self.drawing.click(point, zoom)
        if area is None:
            return ClickOutcome.ADDED

        self.drawn_area = area
        self.message = AREA_DEFINED_MESSAGE
        logger.info(f"Session {self.session_id}: area committed ({len(area)} points)")
        return ClickOutcome.CLOSED

    def clear_drawing(self) -> None:
        self.drawn_area = None
        self.drawing.reset()
        self.message = DRAWING_CLEARED_MESSAGE

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def thought_steps(self) -> List[ThoughtStep]:
        return self.timeline.steps()

    def view(self) -> ExplorerView:
        drawing_points = self.drawing.points
        return ExplorerView(
            mode=self.mode,
            is_loading=self.is_loading,
            map=build_map_view(
                coordinate=self.coordinate,
                highlighted_area=self.highlighted_area,
                drawn_area=self.drawn_area,
                route_analysis=self.route_analysis,
                drawing_points=drawing_points,
            ),
            drawing_points=drawing_points,
            drawn_area=self.drawn_area,
            route_analysis=self.route_analysis,
            location_name=self.knowledge.location_name if self.knowledge else None,
            answer=self.knowledge.answer if self.knowledge else None,
            source=self.knowledge.source if self.knowledge else None,
        )


class SessionRegistry:
    """
    In-memory session store with least-recently-used eviction.

    Nothing is persisted; a restart forgets every session.
    """

    def __init__(self, max_sessions: int = MAX_SESSIONS, client: Optional[StructuredQueryClient] = None):
        self.max_sessions = max_sessions
        self._client = client
        self._sessions: "OrderedDict[str, ExplorerSession]" = OrderedDict()

    def get_or_create(self, session_id: Optional[str] = None) -> ExplorerSession:
        if session_id and session_id in self._sessions:
            self._sessions.move_to_end(session_id)
            return self._sessions[session_id]

        session = ExplorerSession(session_id or str(uuid.uuid4()), client=self._client)
        self._sessions[session.session_id] = session
        logger.info(f"Created explorer session {session.session_id}")

        while len(self._sessions) > self.max_sessions:
            evicted_id, evicted = self._sessions.popitem(last=False)
            evicted.close()
            logger.info(f"Evicted explorer session {evicted_id}")
        return session

    def get(self, session_id: str) -> Optional[ExplorerSession]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()

    def __len__(self) -> int:
        return len(self._sessions)


# Singleton instance
_session_registry = None


def get_session_registry() -> SessionRegistry:
    """Get the process-wide session registry."""
    global _session_registry
    if _session_registry is None:
        _session_registry = SessionRegistry()
    return _session_registry
