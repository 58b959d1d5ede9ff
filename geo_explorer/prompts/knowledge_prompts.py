import json
import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from geo_explorer.models import ChartData, Coordinate, KnowledgeResult
from geo_explorer.prompts.base_prompt import StructuredPromptTemplate
from geo_explorer.prompts.schemas import KNOWLEDGE_SCHEMA

logger = logging.getLogger(__name__)


class _KnowledgePromptBase(StructuredPromptTemplate):
    SCHEMA_NAME = "knowledge"
    OUTPUT_SCHEMA = KNOWLEDGE_SCHEMA

    def _build_result(self, data: Dict[str, Any]) -> KnowledgeResult:
        # An unusable chart is dropped instead of failing the whole answer
        payload = dict(data)
        raw_chart = payload.pop("chartData", None)
        result = KnowledgeResult.model_validate(payload)

        if raw_chart:
            try:
                result.chart_data = ChartData.model_validate(raw_chart)
            except PydanticValidationError as e:
                logger.warning(f"Dropping invalid chart data for '{result.location_name}': {e.errors()[:1]}")

        return result


class PlaceKnowledgePrompt(_KnowledgePromptBase):
    """Answer a question about a named place in one combined request."""

    TEMPLATE = """You are a geographical knowledge expert. Provide a complete analysis of the user's question in a single JSON response.

1. **Identify Location**: Determine the primary geographical location in the query. This is 'locationName'.
2. **Generate Boundary**: Create an approximate boundary polygon (an array of latitude/longitude points) for this location. This is 'area'.
3. **Answer Question**: Formulate a concise, direct answer to the user's specific question about that location.
4. **Cite Source**: Provide the single, most authoritative source URL or name (e.g., Wikipedia, World Bank Data) for the answer.
5. **Provide Reasoning**: Detail your process in a series of 3-5 reasoning steps, each with a title and details. For example: "Identifying Region -> Located in Karnataka, India", "Data Retrieval -> Fetched population data from trusted sources."
6. **Generate Chart Data (Optional)**: If the question involves quantifiable data (e.g., population growth, economic data, climate statistics), provide data for a simple 'bar' chart with a title and data points with string labels and numerical values. If a chart is not relevant (e.g., "what is the capital of France?"), omit the 'chartData' field entirely."""

    def _format_message(self, query: str) -> str:
        return "Answer the following question:\n\n" + self.build_user_section("USER_QUERY", query)


class AreaKnowledgePrompt(_KnowledgePromptBase):
    """Answer a question about a user-drawn polygon."""

    TEMPLATE = """You are a geographical knowledge expert. The user has defined a custom area on the map as a boundary polygon and asks a question about it. Provide a complete analysis in a single JSON response.

1. **Identify Location Name**: Give a descriptive name for the custom area, e.g., "Area in Downtown San Francisco". This is 'locationName'.
2. **Use Boundary**: The 'area' field in your response must be exactly the polygon provided by the user. Do not change it.
3. **Answer Question**: Formulate a concise, direct answer strictly within the provided polygon boundaries.
4. **Cite Source**: Provide the single, most authoritative source URL or name (e.g., OpenStreetMap, Wikipedia) for the answer.
5. **Provide Reasoning**: Detail your process in a series of reasoning steps, each with a title and details.
6. **Generate Chart Data (Optional)**: If the question involves quantifiable data within the area, provide data for a 'bar' chart. If not relevant, omit the 'chartData' field."""

    def _format_message(self, query: str, area: List[Coordinate]) -> str:
        polygon = json.dumps([{"latitude": c.latitude, "longitude": c.longitude} for c in area])
        return (
            f"Boundary polygon (latitude/longitude points): {polygon}\n\n"
            "Answer the following question about this area:\n\n"
            + self.build_user_section("USER_QUERY", query)
        )
