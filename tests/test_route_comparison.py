"""
Tests for the route comparison workflow.
"""
import pytest
from unittest.mock import Mock, AsyncMock

from geo_explorer.exceptions import QueryFailed, RequestFailed, SchemaMismatch, ValidationError
from geo_explorer.llm.structured_client import StructuredQueryClient
from geo_explorer.models import (
    Coordinate,
    Recommendation,
    RouteAnalysisResult,
    RouteOption,
    StepKind,
    StepStatus,
)
from geo_explorer.orchestration.progress import ThoughtTimeline
from geo_explorer.orchestration.route_comparison import compare_routes, geocode_place
from geo_explorer.prompts import CoordinatesPrompt, RouteAnalysisPrompt


def make_client(*outcomes):
    client = Mock()
    client.request = AsyncMock(side_effect=list(outcomes))
    return client


@pytest.fixture
def paris_berlin_analysis(paris, berlin):
    middle = Coordinate(latitude=50.9, longitude=7.0)
    return RouteAnalysisResult(
        routes=[
            RouteOption(name="Via A1", distance="1054 km", time="9 h 50 min", traffic="Heavy",
                        path=[paris, middle, berlin]),
            RouteOption(name="Via A4", distance="1090 km", time="10 h 5 min", traffic="Light",
                        path=[paris, berlin]),
        ],
        recommendation=Recommendation(best_route_index=1, reason="Lighter traffic outweighs the distance."),
    )


class TestCompareRoutes:

    @pytest.mark.asyncio
    async def test_paris_to_berlin_step_order(self, paris, berlin, paris_berlin_analysis):
        client = make_client(paris, berlin, paris_berlin_analysis)
        timeline = ThoughtTimeline()

        result = await compare_routes("Paris", "Berlin", client, timeline)

        assert result.recommended_route.name == "Via A4"

        steps = timeline.steps()
        assert [s.id for s in steps] == [
            "from_coords", "to_coords", "generate_route", "route_0", "route_1", "recommendation",
        ]
        assert all(s.status == StepStatus.SUCCESS for s in steps)

        assert steps[0].title == "Geocode 'Paris'"
        assert steps[0].details == "Found: 48.86, 2.35"
        assert steps[1].title == "Geocode 'Berlin'"
        assert steps[2].title == "Analyze All Routes"
        assert steps[2].details == "Found 2 options."
        assert steps[3].title == "Option 1: Via A1"
        assert steps[3].details == "Distance: 1054 km | Time: 9 h 50 min | Traffic: Heavy"
        assert steps[3].kind == StepKind.ROUTE_SUMMARY
        assert steps[5].title == "AI Recommendation"
        assert steps[5].details == "Lighter traffic outweighs the distance."

    @pytest.mark.asyncio
    async def test_requests_in_order_with_geocoded_points(self, paris, berlin, paris_berlin_analysis):
        client = make_client(paris, berlin, paris_berlin_analysis)

        await compare_routes("Paris", "Berlin", client)

        calls = client.request.call_args_list
        assert isinstance(calls[0].args[0], CoordinatesPrompt)
        assert calls[0].kwargs == {"place_name": "Paris"}
        assert calls[1].kwargs == {"place_name": "Berlin"}
        assert isinstance(calls[2].args[0], RouteAnalysisPrompt)
        assert calls[2].kwargs["origin"] == paris
        assert calls[2].kwargs["destination"] == berlin

    @pytest.mark.asyncio
    async def test_destination_failure_leaves_route_step_pending(self, paris):
        client = make_client(paris, RequestFailed("timeout"))
        timeline = ThoughtTimeline()

        with pytest.raises(QueryFailed) as exc_info:
            await compare_routes("Paris", "Nowhereville", client, timeline)

        assert exc_info.value.step_id == "to_coords"
        assert str(exc_info.value) == 'Could not find coordinates for "Nowhereville". Please try a different name.'
        assert client.request.await_count == 2

        assert timeline.get("from_coords").status == StepStatus.SUCCESS
        assert timeline.get("to_coords").status == StepStatus.ERROR
        assert timeline.get("to_coords").details == str(exc_info.value)
        assert timeline.get("generate_route").status == StepStatus.PENDING
        assert timeline.get("recommendation") is None

    @pytest.mark.asyncio
    async def test_route_generation_failure(self, paris, berlin):
        client = make_client(paris, berlin, SchemaMismatch("bestRouteIndex 3 is out of range"))
        timeline = ThoughtTimeline()

        with pytest.raises(QueryFailed) as exc_info:
            await compare_routes("Paris", "Berlin", client, timeline)

        assert str(exc_info.value) == 'Could not generate a route from "Paris" to "Berlin".'
        assert exc_info.value.step_id == "generate_route"
        assert isinstance(exc_info.value.cause, SchemaMismatch)
        assert timeline.get("generate_route").status == StepStatus.ERROR
        assert [s.id for s in timeline.steps()] == ["from_coords", "to_coords", "generate_route"]

    @pytest.mark.asyncio
    async def test_rejected_origin_marks_first_step_error(self):
        mock_llm = Mock()
        mock_llm.bind.return_value.ainvoke = AsyncMock()
        client = StructuredQueryClient(llm=mock_llm)
        timeline = ThoughtTimeline()

        with pytest.raises(QueryFailed) as exc_info:
            await compare_routes("\ufdfa" * 300, "Berlin", client, timeline)

        assert exc_info.value.step_id == "from_coords"
        assert isinstance(exc_info.value.cause, ValidationError)
        assert timeline.get("from_coords").status == StepStatus.ERROR
        assert timeline.get("to_coords").status == StepStatus.PENDING
        assert timeline.get("generate_route").status == StepStatus.PENDING
        mock_llm.bind.return_value.ainvoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_callback_still_sequences(self, paris, berlin, paris_berlin_analysis):
        client = make_client(paris, berlin, paris_berlin_analysis)

        result = await compare_routes("Paris", "Berlin", client, None)

        assert len(result.routes) == 2
        assert client.request.await_count == 3


class TestGeocodePlace:

    @pytest.mark.asyncio
    async def test_failure_message(self):
        client = make_client(RequestFailed("bad key"))

        with pytest.raises(QueryFailed) as exc_info:
            await geocode_place("Gotham", client)

        assert 'Could not find coordinates for "Gotham"' in str(exc_info.value)
        assert isinstance(exc_info.value.cause, RequestFailed)
