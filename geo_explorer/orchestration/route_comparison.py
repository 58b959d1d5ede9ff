import logging
from typing import Optional, TypedDict

from langgraph.graph import END, StateGraph

from geo_explorer.exceptions import QueryFailed, StructuredQueryError, ValidationError
from geo_explorer.llm.structured_client import StructuredQueryClient
from geo_explorer.models import Coordinate, RouteAnalysisResult, StepKind
from geo_explorer.orchestration.progress import ProgressCallback, StepTracker
from geo_explorer.prompts.place_prompts import CoordinatesPrompt
from geo_explorer.prompts.route_prompts import RouteAnalysisPrompt

logger = logging.getLogger("geo_explorer.route_comparison")

FROM_STEP_ID = "from_coords"
TO_STEP_ID = "to_coords"
ROUTE_STEP_ID = "generate_route"
RECOMMENDATION_STEP_ID = "recommendation"


class RouteState(TypedDict, total=False):
    """State for the route comparison workflow."""
    origin: str
    destination: str
    origin_coordinate: Coordinate
    destination_coordinate: Coordinate
    analysis: RouteAnalysisResult


async def geocode_place(place: str, client: StructuredQueryClient) -> Coordinate:
    """
    Geocode a place name to a single point.

    Raises:
        QueryFailed: If the coordinate request fails
    """
    try:
        return await client.request(CoordinatesPrompt(), place_name=place)
    except (StructuredQueryError, ValidationError) as e:
        raise QueryFailed(
            f'Could not find coordinates for "{place}". Please try a different name.',
            cause=e,
        ) from e


def build_route_graph(client: StructuredQueryClient, tracker: StepTracker):
    """
    Build the three-step route workflow.

    Flow: geocode_origin -> geocode_destination -> generate_routes -> END

    A failing node marks its own step ``error`` and raises QueryFailed,
    which aborts the graph and leaves later steps ``pending``.
    """

    async def _geocode(step_id: str, place: str) -> Coordinate:
        tracker.running(step_id)
        try:
            coordinate = await geocode_place(place, client)
        except QueryFailed as e:
            tracker.error(step_id, str(e))
            e.step_id = step_id
            raise
        tracker.success(step_id, f"Found: {coordinate.latitude:.2f}, {coordinate.longitude:.2f}")
        return coordinate

    async def geocode_origin(state: RouteState) -> dict:
        return {"origin_coordinate": await _geocode(FROM_STEP_ID, state["origin"])}

    async def geocode_destination(state: RouteState) -> dict:
        return {"destination_coordinate": await _geocode(TO_STEP_ID, state["destination"])}

    async def generate_routes(state: RouteState) -> dict:
        tracker.running(ROUTE_STEP_ID)
        try:
            analysis = await client.request(
                RouteAnalysisPrompt(),
                origin_name=state["origin"],
                origin=state["origin_coordinate"],
                destination_name=state["destination"],
                destination=state["destination_coordinate"],
            )
        except (StructuredQueryError, ValidationError) as e:
            message = f'Could not generate a route from "{state["origin"]}" to "{state["destination"]}".'
            tracker.error(ROUTE_STEP_ID, message)
            raise QueryFailed(message, step_id=ROUTE_STEP_ID, cause=e) from e

        tracker.success(ROUTE_STEP_ID, f"Found {len(analysis.routes)} options.")
        return {"analysis": analysis}

    workflow = StateGraph(RouteState)

    workflow.add_node("geocode_origin", geocode_origin)
    workflow.add_node("geocode_destination", geocode_destination)
    workflow.add_node("generate_routes", generate_routes)

    workflow.set_entry_point("geocode_origin")
    workflow.add_edge("geocode_origin", "geocode_destination")
    workflow.add_edge("geocode_destination", "generate_routes")
    workflow.add_edge("generate_routes", END)

    return workflow.compile()


async def compare_routes(
    origin: str,
    destination: str,
    client: StructuredQueryClient,
    report: Optional[ProgressCallback] = None,
) -> RouteAnalysisResult:
    """
    Geocode both endpoints, then ask for and compare candidate routes.

    On success one ``route_<i>`` step per route and a ``recommendation``
    step are appended after the three workflow steps.

    Raises:
        ValidationError: If either endpoint is blank
        QueryFailed: If any workflow step fails
    """
    if not origin or not origin.strip() or not destination or not destination.strip():
        raise ValidationError("Both origin and destination are required")
    origin, destination = origin.strip(), destination.strip()

    tracker = StepTracker(report)
    tracker.declare(FROM_STEP_ID, f"Geocode '{origin}'", StepKind.GEOCODE)
    tracker.declare(TO_STEP_ID, f"Geocode '{destination}'", StepKind.GEOCODE)
    tracker.declare(ROUTE_STEP_ID, "Analyze All Routes", StepKind.ROUTE_GENERATION)

    logger.info(f"Comparing routes from '{origin}' to '{destination}'")
    graph = build_route_graph(client, tracker)

    try:
        final_state = await graph.ainvoke({"origin": origin, "destination": destination})
    except QueryFailed:
        logger.exception(f"Route comparison from '{origin}' to '{destination}' failed")
        raise

    analysis: RouteAnalysisResult = final_state["analysis"]

    for i, route in enumerate(analysis.routes):
        tracker.completed(
            f"route_{i}",
            f"Option {i + 1}: {route.name}",
            StepKind.ROUTE_SUMMARY,
            f"Distance: {route.distance} | Time: {route.time} | Traffic: {route.traffic}",
        )
    tracker.completed(
        RECOMMENDATION_STEP_ID,
        "AI Recommendation",
        StepKind.RECOMMENDATION,
        analysis.recommendation.reason,
    )

    logger.info(f"Route comparison complete: {len(analysis.routes)} options, "
                f"best index {analysis.recommendation.best_route_index}")
    return analysis
