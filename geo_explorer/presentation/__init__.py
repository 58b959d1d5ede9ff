"""
Presentation adapter: turns orchestrator results into renderable view state.
"""

from geo_explorer.presentation.map_view import MapView, build_map_view, compute_bounds
from geo_explorer.presentation.chart_view import BarChartView, build_bar_chart, format_tick
from geo_explorer.presentation.chart_renderer import render_chart_image
from geo_explorer.presentation.timeline_view import TimelineEntry, build_timeline
from geo_explorer.presentation.drawing import PolygonDrawing, pixel_distance

__all__ = [
    'MapView',
    'build_map_view',
    'compute_bounds',
    'BarChartView',
    'build_bar_chart',
    'format_tick',
    'render_chart_image',
    'TimelineEntry',
    'build_timeline',
    'PolygonDrawing',
    'pixel_distance',
]
