"""
Data model for explorer query results and the thought timeline.

Field aliases follow the camelCase JSON shape the model is asked to
produce (``bestRouteIndex``, ``locationName``, ``chartData``); Python code
uses the snake_case attribute names.
"""
from enum import Enum
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Coordinate(BaseModel):
    """A point on the globe. Immutable."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")


# Closed polygon boundary; the first point is not repeated at the end
Area = Annotated[List[Coordinate], Field(min_length=3)]


class RouteOption(BaseModel):
    name: str
    distance: str
    time: str
    traffic: str
    path: List[Coordinate] = Field(..., min_length=2, description="Ordered route path, start to end")


class Recommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    best_route_index: int = Field(..., alias="bestRouteIndex", ge=0)
    reason: str


class RouteAnalysisResult(BaseModel):
    routes: List[RouteOption] = Field(..., min_length=1)
    recommendation: Recommendation

    @model_validator(mode="after")
    def check_recommendation_index(self) -> "RouteAnalysisResult":
        if self.recommendation.best_route_index >= len(self.routes):
            raise ValueError(
                f"bestRouteIndex {self.recommendation.best_route_index} is out of range "
                f"for {len(self.routes)} routes"
            )
        return self

    @property
    def recommended_route(self) -> RouteOption:
        return self.routes[self.recommendation.best_route_index]


class ReasoningStep(BaseModel):
    title: str
    details: str


class ChartDataPoint(BaseModel):
    label: str
    value: float


class ChartData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    type: Literal["bar"] = "bar"
    data: List[ChartDataPoint]
    x_axis_label: Optional[str] = Field(None, alias="xAxisLabel")
    y_axis_label: Optional[str] = Field(None, alias="yAxisLabel")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class KnowledgeResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location_name: str = Field(..., alias="locationName")
    area: Area
    answer: str
    source: Optional[str] = None
    reasoning: List[ReasoningStep] = Field(default_factory=list)
    chart_data: Optional[ChartData] = Field(None, alias="chartData")


class PlaceLookupResult(BaseModel):
    """
    Outcome of a single-place lookup: either a boundary or a point.

    ``suppressed_cause`` keeps the message of the failed area attempt when
    the lookup degraded to a point.
    """
    area: Optional[Area] = None
    coordinate: Optional[Coordinate] = None
    suppressed_cause: Optional[str] = None

    @model_validator(mode="after")
    def check_exactly_one_shape(self) -> "PlaceLookupResult":
        if (self.area is None) == (self.coordinate is None):
            raise ValueError("PlaceLookupResult needs exactly one of area or coordinate")
        return self

    @property
    def is_area(self) -> bool:
        return self.area is not None


# ============================================================================
# Thought timeline
# ============================================================================

class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class StepKind(str, Enum):
    LOOKUP = "lookup"
    GEOCODE = "geocode"
    ROUTE_GENERATION = "route_generation"
    ROUTE_SUMMARY = "route_summary"
    RECOMMENDATION = "recommendation"
    ANALYSIS = "analysis"
    REASONING = "reasoning"
    FINAL_ANSWER = "final_answer"
    DATA_SOURCE = "data_source"


class ThoughtStep(BaseModel):
    id: str
    title: str
    status: StepStatus = StepStatus.PENDING
    kind: Optional[StepKind] = None
    details: Optional[str] = None


class ThoughtStepUpdate(BaseModel):
    """Partial update for one step. Only explicitly set fields are merged."""
    id: str
    title: Optional[str] = None
    status: Optional[StepStatus] = None
    kind: Optional[StepKind] = None
    details: Optional[str] = None
