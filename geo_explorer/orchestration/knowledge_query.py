import logging
from typing import List, Optional, Sequence

from geo_explorer.exceptions import QueryFailed, StructuredQueryError, ValidationError
from geo_explorer.llm.structured_client import StructuredQueryClient
from geo_explorer.models import Coordinate, KnowledgeResult, StepKind
from geo_explorer.orchestration.progress import ProgressCallback, StepTracker
from geo_explorer.prompts.knowledge_prompts import AreaKnowledgePrompt, PlaceKnowledgePrompt

logger = logging.getLogger("geo_explorer.knowledge_query")

ANALYZE_STEP_ID = "analyze_query"
FINAL_ANSWER_STEP_ID = "final_answer"
DATA_SOURCE_STEP_ID = "data_source"

# Degrees; echoed polygons are compared point by point within this tolerance
_ECHO_TOLERANCE = 1e-6

DRAWN_AREA_REQUIRED_MESSAGE = "Please draw an area on the map first."


def _expand_answer(result: KnowledgeResult, tracker: StepTracker) -> None:
    for i, step in enumerate(result.reasoning):
        tracker.completed(f"reasoning_{i}", step.title, StepKind.REASONING, step.details)
    tracker.completed(FINAL_ANSWER_STEP_ID, "Answer", StepKind.FINAL_ANSWER, result.answer)
    if result.source:
        tracker.completed(DATA_SOURCE_STEP_ID, "Data Source", StepKind.DATA_SOURCE, result.source)


async def ask_about_place(
    query: str,
    client: StructuredQueryClient,
    report: Optional[ProgressCallback] = None,
) -> KnowledgeResult:
    """
    Answer a free-text question about a place in one combined request.

    The returned result carries the place boundary, the answer, the source,
    the model's reasoning and optional chart data.

    Raises:
        ValidationError: If the query is blank
        QueryFailed: If the request fails
    """
    if not query or not query.strip():
        raise ValidationError("Query cannot be empty")
    query = query.strip()

    tracker = StepTracker(report)
    tracker.declare(ANALYZE_STEP_ID, f'Analyzing "{query}"', StepKind.ANALYSIS)
    tracker.running(ANALYZE_STEP_ID)

    try:
        result: KnowledgeResult = await client.request(PlaceKnowledgePrompt(), query=query)
    except (StructuredQueryError, ValidationError) as e:
        message = f'Could not process the request for "{query}".'
        logger.exception(f"Knowledge query failed: {query}")
        tracker.error(ANALYZE_STEP_ID, message)
        raise QueryFailed(message, step_id=ANALYZE_STEP_ID, cause=e) from e

    tracker.success(ANALYZE_STEP_ID, f"Found answer for {result.location_name}")
    _expand_answer(result, tracker)
    return result


def _same_polygon(first: Sequence[Coordinate], second: Sequence[Coordinate]) -> bool:
    if len(first) != len(second):
        return False
    return all(
        abs(a.latitude - b.latitude) <= _ECHO_TOLERANCE and abs(a.longitude - b.longitude) <= _ECHO_TOLERANCE
        for a, b in zip(first, second)
    )


async def ask_about_area(
    area: Optional[Sequence[Coordinate]],
    query: str,
    client: StructuredQueryClient,
    report: Optional[ProgressCallback] = None,
) -> KnowledgeResult:
    """
    Answer a free-text question about a user-drawn polygon.

    Without a committed area this fails before any external call and
    without reporting progress. The model is asked to echo the polygon; a
    differing echo is logged and replaced by the supplied polygon.

    Raises:
        ValidationError: If no area was drawn or the query is blank
        QueryFailed: If the request fails
    """
    if not area or len(area) < 3:
        raise ValidationError(DRAWN_AREA_REQUIRED_MESSAGE)
    if not query or not query.strip():
        raise ValidationError("Query cannot be empty")
    query = query.strip()
    polygon: List[Coordinate] = list(area)

    tracker = StepTracker(report)
    tracker.declare(ANALYZE_STEP_ID, f'Analyzing your area for "{query}"', StepKind.ANALYSIS)
    tracker.running(ANALYZE_STEP_ID)

    try:
        result: KnowledgeResult = await client.request(AreaKnowledgePrompt(), query=query, area=polygon)
    except (StructuredQueryError, ValidationError) as e:
        message = "Could not process the request for the drawn area."
        logger.exception(f"Drawn-area query failed: {query}")
        tracker.error(ANALYZE_STEP_ID, message)
        raise QueryFailed(message, step_id=ANALYZE_STEP_ID, cause=e) from e

    if not _same_polygon(result.area, polygon):
        logger.warning(
            f"Model echoed a different polygon ({len(result.area)} points, "
            f"expected {len(polygon)}); keeping the drawn area"
        )
        result = result.model_copy(update={"area": polygon})

    tracker.success(ANALYZE_STEP_ID, f"Found answer for {result.location_name}")
    _expand_answer(result, tracker)
    return result
