import logging
import math
from typing import List, Optional, Tuple

from geo_explorer.config import DRAW_CLOSE_RADIUS_PX, MAP_TILE_SIZE_PX
from geo_explorer.models import Coordinate

logger = logging.getLogger("geo_explorer.drawing")

# Web Mercator is undefined at the poles; the map clamps latitudes here
MAX_MERCATOR_LATITUDE = 85.0511287798


def project(point: Coordinate, zoom: float, tile_size: int = MAP_TILE_SIZE_PX) -> Tuple[float, float]:
    """Project a coordinate to world pixel space (spherical Web Mercator)."""
    scale = tile_size * (2 ** zoom)
    latitude = max(-MAX_MERCATOR_LATITUDE, min(MAX_MERCATOR_LATITUDE, point.latitude))
    sin_lat = math.sin(math.radians(latitude))

    x = (point.longitude + 180.0) / 360.0 * scale
    y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * scale
    return x, y


def pixel_distance(first: Coordinate, second: Coordinate, zoom: float, tile_size: int = MAP_TILE_SIZE_PX) -> float:
    x1, y1 = project(first, zoom, tile_size)
    x2, y2 = project(second, zoom, tile_size)
    return math.hypot(x2 - x1, y2 - y1)


class PolygonDrawing:
    """
    Accumulates map clicks into a polygon.

    A click within ``close_radius_px`` screen pixels of the first point
    closes the polygon once at least three points exist; the closing click
    itself is not added.
    """

    MIN_POINTS = 3

    def __init__(self, close_radius_px: float = DRAW_CLOSE_RADIUS_PX, tile_size: int = MAP_TILE_SIZE_PX):
        self.close_radius_px = close_radius_px
        self.tile_size = tile_size
        self._points: List[Coordinate] = []

    @property
    def points(self) -> List[Coordinate]:
        return list(self._points)

    @property
    def is_drawing(self) -> bool:
        return bool(self._points)

    def click(self, point: Coordinate, zoom: float) -> Optional[List[Coordinate]]:
        """
        Register a click.

        Returns:
            The finished polygon when this click closed it, otherwise None
        """
        if self._points and len(self._points) >= self.MIN_POINTS:
            distance = pixel_distance(self._points[0], point, zoom, self.tile_size)
            if distance < self.close_radius_px:
                area = list(self._points)
                self._points = []
                logger.info(f"Polygon closed with {len(area)} points")
                return area

        self._points.append(point)
        logger.debug(f"Drawing point {len(self._points)} added")
        return None

    def reset(self) -> None:
        self._points = []
