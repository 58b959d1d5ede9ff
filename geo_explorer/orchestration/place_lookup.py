import logging
from typing import Optional

from geo_explorer.exceptions import FallbackExhausted, StructuredQueryError, ValidationError
from geo_explorer.llm.structured_client import StructuredQueryClient
from geo_explorer.models import PlaceLookupResult, StepKind
from geo_explorer.orchestration.progress import ProgressCallback, StepTracker
from geo_explorer.prompts.place_prompts import AreaPrompt, CoordinatesPrompt

logger = logging.getLogger("geo_explorer.place_lookup")

LOOKUP_STEP_ID = "lookup"


async def lookup_place(
    query: str,
    client: StructuredQueryClient,
    report: Optional[ProgressCallback] = None,
) -> PlaceLookupResult:
    """
    Resolve a place name to a boundary, degrading to a single point.

    The area request is tried first. If it fails for any structured-query
    reason the coordinate request runs instead; the area failure is logged
    and kept as ``suppressed_cause`` but never surfaces as an error step.

    Raises:
        ValidationError: If the query is blank
        FallbackExhausted: If both the area and the coordinate request fail
    """
    if not query or not query.strip():
        raise ValidationError("Query cannot be empty")
    query = query.strip()

    tracker = StepTracker(report)
    tracker.declare(LOOKUP_STEP_ID, f"Locate '{query}'", StepKind.LOOKUP)
    tracker.running(LOOKUP_STEP_ID)

    try:
        area = await client.request(AreaPrompt(), place_name=query)
    except (StructuredQueryError, ValidationError) as e:
        area_error = e
        logger.warning(f"Area lookup for '{query}' failed, falling back to coordinates: {e}")
    else:
        tracker.success(LOOKUP_STEP_ID, f"Found area with {len(area)} points.")
        return PlaceLookupResult(area=area)

    try:
        coordinate = await client.request(CoordinatesPrompt(), place_name=query)
    except (StructuredQueryError, ValidationError) as point_error:
        message = f'Could not find coordinates for "{query}". Please try a different name.'
        logger.exception(f"Place lookup failed for '{query}'")
        tracker.error(LOOKUP_STEP_ID, message)
        raise FallbackExhausted(message, primary_cause=area_error, fallback_cause=point_error) from point_error

    tracker.success(LOOKUP_STEP_ID, f"Found: {coordinate.latitude:.2f}, {coordinate.longitude:.2f}")
    return PlaceLookupResult(coordinate=coordinate, suppressed_cause=str(area_error))
