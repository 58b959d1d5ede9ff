"""
Query orchestrators.

Each orchestrator sequences structured model requests for one query kind,
reports per-step progress through an optional callback and returns a typed
result or raises one summarized error.
"""

from geo_explorer.orchestration.progress import ProgressCallback, StepTracker, ThoughtTimeline
from geo_explorer.orchestration.place_lookup import lookup_place
from geo_explorer.orchestration.route_comparison import build_route_graph, compare_routes, geocode_place
from geo_explorer.orchestration.knowledge_query import ask_about_area, ask_about_place

__all__ = [
    'ProgressCallback',
    'StepTracker',
    'ThoughtTimeline',
    'lookup_place',
    'build_route_graph',
    'compare_routes',
    'geocode_place',
    'ask_about_place',
    'ask_about_area',
]
