"""
Tests for the explorer data model.
"""
import pytest
from pydantic import ValidationError

from geo_explorer.models import (
    ChartData,
    Coordinate,
    KnowledgeResult,
    PlaceLookupResult,
    RouteAnalysisResult,
    RouteOption,
    StepStatus,
    ThoughtStep,
)


class TestCoordinate:

    def test_bounds_enforced(self):
        with pytest.raises(ValidationError):
            Coordinate(latitude=-90.5, longitude=0)
        with pytest.raises(ValidationError):
            Coordinate(latitude=0, longitude=180.1)

    def test_immutable(self):
        point = Coordinate(latitude=1, longitude=2)
        with pytest.raises(ValidationError):
            point.latitude = 5

    def test_value_equality(self):
        assert Coordinate(latitude=1, longitude=2) == Coordinate(latitude=1.0, longitude=2.0)


class TestRouteAnalysisResult:

    def _route(self, name):
        return RouteOption(
            name=name,
            distance="10 km",
            time="12 min",
            traffic="Light",
            path=[Coordinate(latitude=0, longitude=0), Coordinate(latitude=1, longitude=1)],
        )

    def test_accepts_aliased_index(self):
        result = RouteAnalysisResult.model_validate({
            "routes": [self._route("A").model_dump(), self._route("B").model_dump()],
            "recommendation": {"bestRouteIndex": 1, "reason": "shorter"},
        })
        assert result.recommendation.best_route_index == 1
        assert result.recommended_route.name == "B"

    def test_index_must_be_in_range(self):
        with pytest.raises(ValidationError):
            RouteAnalysisResult.model_validate({
                "routes": [self._route("A").model_dump()],
                "recommendation": {"bestRouteIndex": 1, "reason": "none"},
            })

    def test_routes_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            RouteAnalysisResult.model_validate({
                "routes": [],
                "recommendation": {"bestRouteIndex": 0, "reason": "none"},
            })

    def test_path_needs_two_points(self):
        with pytest.raises(ValidationError):
            RouteOption(name="A", distance="1 km", time="1 min", traffic="Light",
                        path=[Coordinate(latitude=0, longitude=0)])


class TestKnowledgeResult:

    def test_area_needs_three_points(self):
        with pytest.raises(ValidationError):
            KnowledgeResult.model_validate({
                "locationName": "Nowhere",
                "area": [{"latitude": 0, "longitude": 0}, {"latitude": 1, "longitude": 1}],
                "answer": "n/a",
                "reasoning": [],
            })

    def test_source_optional(self, square_area):
        result = KnowledgeResult(location_name="Area", area=square_area, answer="Yes")
        assert result.source is None
        assert result.reasoning == []


class TestChartData:

    def test_only_bar_supported(self):
        with pytest.raises(ValidationError):
            ChartData.model_validate({"title": "t", "type": "line", "data": []})

    def test_axis_label_aliases(self):
        chart = ChartData.model_validate({
            "title": "t", "type": "bar", "data": [], "xAxisLabel": "Year", "yAxisLabel": "People",
        })
        assert chart.x_axis_label == "Year"
        assert chart.y_axis_label == "People"


class TestPlaceLookupResult:

    def test_exactly_one_shape(self, square_area):
        point = Coordinate(latitude=1, longitude=1)
        with pytest.raises(ValidationError):
            PlaceLookupResult()
        with pytest.raises(ValidationError):
            PlaceLookupResult(area=square_area, coordinate=point)

        assert PlaceLookupResult(area=square_area).is_area is True
        assert PlaceLookupResult(coordinate=point).is_area is False


def test_thought_step_defaults():
    step = ThoughtStep(id="from_coords", title="Geocode 'Paris'")
    assert step.status == StepStatus.PENDING
    assert step.details is None
    assert step.kind is None
