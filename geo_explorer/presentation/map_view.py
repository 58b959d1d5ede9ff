"""
Map view state: overlays and camera commands for the map renderer.

The renderer (Leaflet in the browser client) receives plain descriptions
of what to draw and where to move; it owns styling details beyond the
colours, weights and dash patterns given here.
"""
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from geo_explorer.config import (
    FIT_BOUNDS_DURATION_SECONDS,
    FIT_BOUNDS_PADDING_PX,
    FLY_TO_DURATION_SECONDS,
    FLY_TO_ZOOM,
)
from geo_explorer.models import Coordinate, RouteAnalysisResult


class OverlayStyle(BaseModel):
    color: str
    weight: int
    opacity: float = 1.0
    fill_color: Optional[str] = None
    fill_opacity: Optional[float] = None
    dash_array: Optional[str] = None


HIGHLIGHTED_AREA_STYLE = OverlayStyle(color="cyan", weight=2, fill_color="cyan", fill_opacity=0.2)
DRAWN_AREA_STYLE = OverlayStyle(color="magenta", weight=3, fill_color="magenta", fill_opacity=0.2)
RECOMMENDED_ROUTE_STYLE = OverlayStyle(color="cyan", weight=5, opacity=1.0)
ALTERNATIVE_ROUTE_STYLE = OverlayStyle(color="gray", weight=3, opacity=0.7, dash_array="5, 10")
DRAWING_IN_PROGRESS_STYLE = OverlayStyle(color="cyan", weight=3, dash_array="5, 5")


class PolygonOverlay(BaseModel):
    role: Literal["highlighted_area", "drawn_area"]
    points: List[Coordinate]
    style: OverlayStyle


class PolylineOverlay(BaseModel):
    role: Literal["route", "drawing"]
    points: List[Coordinate]
    style: OverlayStyle
    name: Optional[str] = None
    recommended: bool = False


class MarkerOverlay(BaseModel):
    role: Literal["place", "route_start", "route_end", "vertex"]
    position: Coordinate
    label: Optional[str] = None


class Bounds(BaseModel):
    south: float
    west: float
    north: float
    east: float


class CameraCommand(BaseModel):
    """Either fly to a point at a zoom level or fit the view to bounds."""
    action: Literal["fly_to", "fit_bounds"]
    duration_seconds: float
    center: Optional[Coordinate] = None
    zoom: Optional[int] = None
    bounds: Optional[Bounds] = None
    padding_px: Optional[int] = None


class MapView(BaseModel):
    polygons: List[PolygonOverlay] = Field(default_factory=list)
    polylines: List[PolylineOverlay] = Field(default_factory=list)
    markers: List[MarkerOverlay] = Field(default_factory=list)
    camera: Optional[CameraCommand] = None


def compute_bounds(points: Sequence[Coordinate]) -> Bounds:
    if not points:
        raise ValueError("Cannot compute bounds of an empty point list")
    latitudes = [p.latitude for p in points]
    longitudes = [p.longitude for p in points]
    return Bounds(south=min(latitudes), west=min(longitudes), north=max(latitudes), east=max(longitudes))


def fly_to(coordinate: Coordinate) -> CameraCommand:
    return CameraCommand(
        action="fly_to",
        center=coordinate,
        zoom=FLY_TO_ZOOM,
        duration_seconds=FLY_TO_DURATION_SECONDS,
    )


def fit_bounds(points: Sequence[Coordinate]) -> CameraCommand:
    return CameraCommand(
        action="fit_bounds",
        bounds=compute_bounds(points),
        padding_px=FIT_BOUNDS_PADDING_PX,
        duration_seconds=FIT_BOUNDS_DURATION_SECONDS,
    )


def route_overlays(analysis: RouteAnalysisResult) -> tuple:
    """Polylines for every route plus start/end markers of the recommended one."""
    best_index = analysis.recommendation.best_route_index
    polylines = [
        PolylineOverlay(
            role="route",
            name=route.name,
            points=list(route.path),
            style=RECOMMENDED_ROUTE_STYLE if i == best_index else ALTERNATIVE_ROUTE_STYLE,
            recommended=i == best_index,
        )
        for i, route in enumerate(analysis.routes)
    ]
    recommended = analysis.recommended_route
    markers = [
        MarkerOverlay(role="route_start", position=recommended.path[0], label=recommended.name),
        MarkerOverlay(role="route_end", position=recommended.path[-1], label=recommended.name),
    ]
    return polylines, markers


def build_map_view(
    coordinate: Optional[Coordinate] = None,
    highlighted_area: Optional[Sequence[Coordinate]] = None,
    drawn_area: Optional[Sequence[Coordinate]] = None,
    route_analysis: Optional[RouteAnalysisResult] = None,
    drawing_points: Optional[Sequence[Coordinate]] = None,
) -> MapView:
    """
    Compose the map view for the current session state.

    Camera: routes, then the highlighted area, then the drawn area are
    fitted in that order of preference; a lone coordinate gets a fly-to.
    The place marker is only shown when no highlighted area exists.
    """
    view = MapView()

    if coordinate is not None and not highlighted_area:
        view.markers.append(MarkerOverlay(role="place", position=coordinate))

    if highlighted_area:
        view.polygons.append(
            PolygonOverlay(role="highlighted_area", points=list(highlighted_area), style=HIGHLIGHTED_AREA_STYLE)
        )
    if drawn_area:
        view.polygons.append(
            PolygonOverlay(role="drawn_area", points=list(drawn_area), style=DRAWN_AREA_STYLE)
        )

    if route_analysis is not None:
        polylines, markers = route_overlays(route_analysis)
        view.polylines.extend(polylines)
        view.markers.extend(markers)

    if drawing_points:
        view.polylines.append(
            PolylineOverlay(role="drawing", points=list(drawing_points), style=DRAWING_IN_PROGRESS_STYLE)
        )
        view.markers.extend(
            MarkerOverlay(role="vertex", position=point, label="start" if i == 0 else None)
            for i, point in enumerate(drawing_points)
        )

    if route_analysis is not None:
        boundary = [point for route in route_analysis.routes for point in route.path]
    else:
        boundary = list(highlighted_area or drawn_area or [])

    if len(boundary) >= 2:
        view.camera = fit_bounds(boundary)
    elif coordinate is not None:
        view.camera = fly_to(coordinate)

    return view
