"""
Tests for the knowledge chart view and its PNG rendering.
"""
import base64
from unittest.mock import patch

from geo_explorer.models import ChartData, ChartDataPoint
from geo_explorer.presentation.chart_renderer import KnowledgeChartRenderer, render_chart_image
from geo_explorer.presentation.chart_view import build_bar_chart, format_tick


def tokyo_population_chart():
    return ChartData(
        title="Population of Tokyo",
        data=[
            ChartDataPoint(label="1980", value=11_600_000),
            ChartDataPoint(label="1990", value=11_800_000),
            ChartDataPoint(label="2000", value=12_060_000),
            ChartDataPoint(label="2010", value=13_160_000),
            ChartDataPoint(label="2020", value=14_040_000),
        ],
        y_axis_label="Residents",
    )


class TestBuildBarChart:

    def test_positive_values_domain_starts_at_zero(self):
        view = build_bar_chart(tokyo_population_chart())

        assert view.domain_min == 0
        assert view.domain_max == 14_040_000
        assert [bar.label for bar in view.bars] == ["1980", "1990", "2000", "2010", "2020"]
        assert view.bars[-1].height_fraction == 1.0
        assert view.y_axis_label == "Residents"

    def test_negative_minimum_kept(self):
        chart = ChartData(title="Temperature", data=[
            ChartDataPoint(label="Jan", value=-5),
            ChartDataPoint(label="Jul", value=25),
        ])
        view = build_bar_chart(chart)

        assert view.domain_min == -5
        assert view.domain_max == 25
        assert view.bars[0].height_fraction == 0.0

    def test_six_ticks_rounded_to_two_significant_digits(self):
        view = build_bar_chart(tokyo_population_chart())

        assert len(view.ticks) == 6
        assert view.ticks[0].value == 0
        assert view.ticks[1].value == 2_800_000
        assert view.ticks[1].label == "2.8M"
        assert view.ticks[-1].value == 14_000_000
        assert view.ticks[-1].label == "14.0M"

    def test_empty_data_gives_no_chart(self):
        assert build_bar_chart(ChartData(title="Nothing", data=[])) is None

    def test_equal_values_do_not_divide_by_zero(self):
        chart = ChartData(title="Flat", data=[ChartDataPoint(label="a", value=0), ChartDataPoint(label="b", value=0)])
        view = build_bar_chart(chart)

        assert all(bar.height_fraction == 0.0 for bar in view.bars)


class TestFormatTick:

    def test_suffixes(self):
        assert format_tick(2_500_000_000) == "2.5B"
        assert format_tick(14_000_000) == "14.0M"
        assert format_tick(1_500) == "1.5K"
        assert format_tick(250) == "250"
        assert format_tick(0.5) == "0.5"


class TestChartRenderer:

    def test_renders_base64_png(self):
        image = KnowledgeChartRenderer().render(tokyo_population_chart())

        assert image is not None
        assert base64.b64decode(image).startswith(b"\x89PNG")

    def test_empty_chart_renders_nothing(self):
        assert render_chart_image(ChartData(title="Nothing", data=[])) is None

    @patch('geo_explorer.presentation.chart_renderer.plt.subplots', side_effect=RuntimeError("no display"))
    def test_render_failure_returns_none(self, mock_subplots):
        assert KnowledgeChartRenderer().render(tokyo_population_chart()) is None
