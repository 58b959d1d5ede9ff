from typing import Any, Dict, List

from pydantic import BaseModel

from geo_explorer.models import Area, Coordinate
from geo_explorer.prompts.base_prompt import StructuredPromptTemplate
from geo_explorer.prompts.schemas import AREA_SCHEMA, LOCATION_SCHEMA


class CoordinatesPrompt(StructuredPromptTemplate):
    """Geocode a free-text place name to a single point."""

    TEMPLATE = """You are a geocoding assistant for an interactive world map.

Find the geographic coordinates (latitude and longitude) of the place the user names.

Rules:
- Return the single most likely match for the place name.
- latitude must be within -90..90 and longitude within -180..180.
- Respond with a JSON object containing only 'latitude' and 'longitude'."""

    SCHEMA_NAME = "location"
    OUTPUT_SCHEMA = LOCATION_SCHEMA

    def _format_message(self, place_name: str) -> str:
        return "Find the geographic coordinates for the following place:\n\n" + self.build_user_section(
            "PLACE_NAME", place_name
        )

    def _build_result(self, data: Dict[str, Any]) -> Coordinate:
        return Coordinate.model_validate(data)


class _AreaResponse(BaseModel):
    area: Area


class AreaPrompt(StructuredPromptTemplate):
    """Generate an approximate boundary polygon for a place."""

    TEMPLATE = """You are a cartography assistant for an interactive world map.

Generate an approximate boundary polygon for the place the user names.

Rules:
- Respond with a JSON object with a single key 'area': an array of numerous coordinate objects.
- Each coordinate object must have 'latitude' and 'longitude' properties.
- Order the points along the outline; do not repeat the first point at the end.
- If the place is a point (like a specific address), return a small box-shaped polygon around it."""

    SCHEMA_NAME = "area"
    OUTPUT_SCHEMA = AREA_SCHEMA

    def _format_message(self, place_name: str) -> str:
        return "Generate an approximate boundary polygon for the following place:\n\n" + self.build_user_section(
            "PLACE_NAME", place_name
        )

    def _build_result(self, data: Dict[str, Any]) -> List[Coordinate]:
        return _AreaResponse.model_validate(data).area
