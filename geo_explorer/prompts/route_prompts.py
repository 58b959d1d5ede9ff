from typing import Any, Dict

from geo_explorer.models import Coordinate, RouteAnalysisResult
from geo_explorer.prompts.base_prompt import StructuredPromptTemplate
from geo_explorer.prompts.schemas import ROUTE_ANALYSIS_SCHEMA


class RouteAnalysisPrompt(StructuredPromptTemplate):
    """
    Generate and compare driving routes between two geocoded points.

    The recommendation index is range-checked against the returned routes
    by RouteAnalysisResult; an out-of-range index is a SchemaMismatch.
    """

    TEMPLATE = """You are an expert route planning assistant.

Analyze and generate 2-3 distinct driving routes between the origin and destination coordinates the user provides.

For each route provide:
- name: a descriptive name, e.g. 'Via A6'
- distance: total distance in kilometers, e.g. '52 km'
- time: estimated travel time, e.g. '45 min'
- traffic: current traffic conditions ('Light', 'Moderate', 'Heavy')
- path: a detailed array of coordinate points from the origin to the destination

Finally, recommend the best route: 'bestRouteIndex' is the 0-based index into 'routes', with a brief 'reason'."""

    SCHEMA_NAME = "route_analysis"
    OUTPUT_SCHEMA = ROUTE_ANALYSIS_SCHEMA

    def _format_message(
        self,
        origin_name: str,
        origin: Coordinate,
        destination_name: str,
        destination: Coordinate,
    ) -> str:
        origin_section = self.build_user_section("ORIGIN", origin_name)
        destination_section = self.build_user_section("DESTINATION", destination_name)
        return (
            f"Generate driving routes from [{origin.latitude}, {origin.longitude}] "
            f"to [{destination.latitude}, {destination.longitude}].\n\n"
            f"{origin_section}\n{destination_section}"
        )

    def _build_result(self, data: Dict[str, Any]) -> RouteAnalysisResult:
        return RouteAnalysisResult.model_validate(data)
