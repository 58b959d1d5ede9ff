"""
Tests for the single-place lookup orchestrator.
"""
import pytest
from unittest.mock import Mock, AsyncMock

from geo_explorer.exceptions import FallbackExhausted, RequestFailed, SchemaMismatch, ValidationError
from geo_explorer.llm.structured_client import StructuredQueryClient
from geo_explorer.models import Coordinate, StepStatus
from geo_explorer.orchestration.place_lookup import lookup_place
from geo_explorer.orchestration.progress import ThoughtTimeline
from geo_explorer.prompts import AreaPrompt, CoordinatesPrompt


def make_client(*outcomes):
    """Mock client whose successive request() calls return or raise ``outcomes``."""
    client = Mock()
    client.request = AsyncMock(side_effect=list(outcomes))
    return client


class TestLookupPlace:

    @pytest.mark.asyncio
    async def test_area_found(self, square_area):
        client = make_client(square_area)
        timeline = ThoughtTimeline()

        result = await lookup_place("Bangalore", client, timeline)

        assert result.is_area
        assert result.area == square_area
        assert result.suppressed_cause is None
        assert client.request.await_count == 1
        assert isinstance(client.request.call_args.args[0], AreaPrompt)

        step = timeline.get("lookup")
        assert step.status == StepStatus.SUCCESS
        assert step.details == "Found area with 4 points."

    @pytest.mark.asyncio
    async def test_falls_back_to_coordinates_without_error_step(self):
        point = Coordinate(latitude=48.8584, longitude=2.2944)
        client = make_client(SchemaMismatch("area has 2 points"), point)
        timeline = ThoughtTimeline()

        result = await lookup_place("Eiffel Tower", client, timeline)

        assert result.is_area is False
        assert result.coordinate == point
        assert "area has 2 points" in result.suppressed_cause
        assert isinstance(client.request.call_args_list[1].args[0], CoordinatesPrompt)

        assert all(step.status != StepStatus.ERROR for step in timeline.steps())
        assert timeline.get("lookup").details == "Found: 48.86, 2.29"

    @pytest.mark.asyncio
    async def test_both_failing_raises_fallback_exhausted(self):
        area_error = RequestFailed("quota exceeded")
        point_error = SchemaMismatch("missing longitude")
        client = make_client(area_error, point_error)
        timeline = ThoughtTimeline()

        with pytest.raises(FallbackExhausted) as exc_info:
            await lookup_place("Atlantis", client, timeline)

        error = exc_info.value
        assert str(error) == 'Could not find coordinates for "Atlantis". Please try a different name.'
        assert error.primary_cause is area_error
        assert error.fallback_cause is point_error

        step = timeline.get("lookup")
        assert step.status == StepStatus.ERROR
        assert step.details == str(error)

    @pytest.mark.asyncio
    async def test_prompt_rejection_marks_step_error(self):
        mock_llm = Mock()
        mock_llm.bind.return_value.ainvoke = AsyncMock()
        client = StructuredQueryClient(llm=mock_llm)
        timeline = ThoughtTimeline()
        # Short enough for the API limit, too long once NFKC-normalized
        query = "\ufdfa" * 300

        with pytest.raises(FallbackExhausted) as exc_info:
            await lookup_place(query, client, timeline)

        assert isinstance(exc_info.value.primary_cause, ValidationError)
        assert isinstance(exc_info.value.fallback_cause, ValidationError)
        assert timeline.get("lookup").status == StepStatus.ERROR
        mock_llm.bind.return_value.ainvoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_works_without_progress_callback(self, square_area):
        client = make_client(square_area)

        result = await lookup_place("Bangalore", client)

        assert result.area == square_area

    @pytest.mark.asyncio
    async def test_blank_query_rejected_before_any_call(self):
        client = make_client()

        with pytest.raises(ValidationError):
            await lookup_place("  ", client)

        client.request.assert_not_called()
