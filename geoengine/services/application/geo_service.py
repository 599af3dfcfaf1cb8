"""
Application service: Orchestration layer for feature declarations and queries.
"""
import logging
import threading
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import shapely
from rdflib import Literal
from shapely.geometry import (
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)
from shapely.geometry.base import BaseGeometry

from geoengine.domain.exceptions import GeometryParseError, SpatialDeclarationError
from geoengine.domain.expressions import GeoExpression
from geoengine.domain.models import GeographicPoint, GeometryPair, GeometryResult
from geoengine.services.domain.expression_evaluator import ExpressionEvaluator
from geoengine.services.domain.feature_registry import SpatialFeatureRegistry
from geoengine.services.domain.spatial_analysis import SpatialAnalysisEngine
from geoengine.utils.geo_projection import project_pair
from geoengine.utils.geometry_codec import coerce_term, parse_geo_literal

logger = logging.getLogger(__name__)

Coordinates = Tuple[float, float]


class GeoService:
    """
    Application service for geometry declarations and spatial queries.

    Validates declarations, projects them and stores them in the registry,
    then delegates queries to the analysis engine and the expression
    evaluator. Writes are serialised with a lock since FastAPI runs sync
    endpoints on a thread pool.
    """

    def __init__(
        self,
        registry: Optional[SpatialFeatureRegistry] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            registry: Feature registry (a fresh one when omitted)
            evaluator: Expression evaluator (a fresh one when omitted)
        """
        self.registry = registry if registry is not None else SpatialFeatureRegistry()
        self.engine = SpatialAnalysisEngine(self.registry)
        self.evaluator = evaluator if evaluator is not None else ExpressionEvaluator()
        self._lock = threading.Lock()

    # ============================================================
    # Validation
    # ============================================================

    @staticmethod
    def _feature_id(feature_id: Optional[str], kind: str) -> str:
        if feature_id is None or not str(feature_id).strip():
            raise SpatialDeclarationError(f"Cannot declare {kind}: feature identifier is required")
        return str(feature_id)

    @staticmethod
    def _points(coordinates: Optional[Sequence[Coordinates]], kind: str, minimum: int) -> List[Coordinates]:
        if coordinates is None:
            raise SpatialDeclarationError(f"Cannot declare {kind}: coordinates are required")
        points = []
        for coordinate in coordinates:
            try:
                longitude, latitude = coordinate
                points.append(GeographicPoint.of(longitude, latitude).as_tuple())
            except (TypeError, ValueError) as e:
                raise SpatialDeclarationError(
                    f"Cannot declare {kind}: {coordinate!r} is not a valid (longitude, latitude) "
                    f"pair within [-180,180] and [-90,90]"
                ) from e
        if len(points) < minimum:
            raise SpatialDeclarationError(
                f"Cannot declare {kind}: at least {minimum} points are required, got {len(points)}"
            )
        return points

    @classmethod
    def _ring(cls, coordinates: Optional[Sequence[Coordinates]], kind: str) -> List[Coordinates]:
        points = cls._points(coordinates, kind, 3)
        if points[0] != points[-1]:
            points.append(points[0])
        if len(points) < 4:
            raise SpatialDeclarationError(
                f"Cannot declare {kind}: a ring needs at least 3 distinct points"
            )
        return points

    def _store(self, feature_id: str, geometry: BaseGeometry, is_default: bool) -> bool:
        pair: GeometryPair = project_pair(geometry)
        with self._lock:
            stored = self.registry.declare(feature_id, pair, is_default)
        if stored:
            logger.info(
                f"Declared {'default' if is_default else 'secondary'} {geometry.geom_type} "
                f"for feature '{feature_id}' ({pair.crs})"
            )
        return stored

    # ============================================================
    # Declarations
    # ============================================================

    def declare_point(
        self,
        feature_id: str,
        longitude: float,
        latitude: float,
        is_default: bool = True,
    ) -> bool:
        """
        Declare a point geometry for a feature.

        Args:
            feature_id: Feature identifier
            longitude: Longitude in degrees
            latitude: Latitude in degrees
            is_default: Declare as the feature's default geometry

        Returns:
            True if stored, False if the feature already had a default geometry

        Raises:
            SpatialDeclarationError: If the identifier or coordinates are invalid
        """
        feature_id = self._feature_id(feature_id, "point")
        (point,) = self._points([(longitude, latitude)], "point", 1)
        return self._store(feature_id, Point(point), is_default)

    def declare_line_string(
        self,
        feature_id: str,
        coordinates: Sequence[Coordinates],
        is_default: bool = True,
    ) -> bool:
        """Declare a line string of at least 2 (longitude, latitude) points."""
        feature_id = self._feature_id(feature_id, "line string")
        points = self._points(coordinates, "line string", 2)
        return self._store(feature_id, LineString(points), is_default)

    def declare_polygon(
        self,
        feature_id: str,
        coordinates: Sequence[Coordinates],
        is_default: bool = True,
    ) -> bool:
        """Declare a polygon of at least 3 points; the ring is closed when needed."""
        feature_id = self._feature_id(feature_id, "polygon")
        return self._store(feature_id, Polygon(self._ring(coordinates, "polygon")), is_default)

    def declare_multi_point(
        self,
        feature_id: str,
        coordinates: Sequence[Coordinates],
        is_default: bool = True,
    ) -> bool:
        """Declare a multi point of at least 2 points."""
        feature_id = self._feature_id(feature_id, "multi point")
        points = self._points(coordinates, "multi point", 2)
        return self._store(feature_id, MultiPoint(points), is_default)

    def declare_multi_line_string(
        self,
        feature_id: str,
        line_strings: Sequence[Sequence[Coordinates]],
        is_default: bool = True,
    ) -> bool:
        """Declare a multi line string of at least 2 lines, each of at least 2 points."""
        feature_id = self._feature_id(feature_id, "multi line string")
        lines = [self._points(line, "multi line string", 2) for line in line_strings or []]
        if len(lines) < 2:
            raise SpatialDeclarationError(
                "Cannot declare multi line string: at least 2 line strings are required"
            )
        return self._store(feature_id, MultiLineString(lines), is_default)

    def declare_multi_polygon(
        self,
        feature_id: str,
        polygons: Sequence[Sequence[Coordinates]],
        is_default: bool = True,
    ) -> bool:
        """Declare a multi polygon of at least 2 polygons, each of at least 3 points."""
        feature_id = self._feature_id(feature_id, "multi polygon")
        rings = [self._ring(polygon, "multi polygon") for polygon in polygons or []]
        if len(rings) < 2:
            raise SpatialDeclarationError(
                "Cannot declare multi polygon: at least 2 polygons are required"
            )
        return self._store(feature_id, MultiPolygon([Polygon(r) for r in rings]), is_default)

    def declare_geometry_collection(
        self,
        feature_id: str,
        points: Optional[Sequence[Coordinates]] = None,
        line_strings: Optional[Sequence[Sequence[Coordinates]]] = None,
        polygons: Optional[Sequence[Sequence[Coordinates]]] = None,
        is_default: bool = True,
    ) -> bool:
        """
        Declare a heterogeneous collection of points, line strings and polygons.

        Raises:
            SpatialDeclarationError: If the collection would be empty or any
                member is invalid
        """
        feature_id = self._feature_id(feature_id, "geometry collection")
        kind = "geometry collection"
        members: List[BaseGeometry] = []
        members.extend(Point(p) for p in self._points(points or [], kind, 0))
        members.extend(LineString(self._points(line, kind, 2)) for line in line_strings or [])
        members.extend(Polygon(self._ring(ring, kind)) for ring in polygons or [])
        if not members:
            raise SpatialDeclarationError(
                "Cannot declare geometry collection: at least one member is required"
            )
        return self._store(feature_id, GeometryCollection(members), is_default)

    def declare_literal(self, feature_id: str, literal: Any, is_default: bool = True) -> bool:
        """
        Declare a geometry from a ``geo:wktLiteral`` or ``geo:gmlLiteral``.

        Args:
            feature_id: Feature identifier
            literal: rdflib literal, or ``lexical^^<datatype>`` text
            is_default: Declare as the feature's default geometry

        Raises:
            SpatialDeclarationError: If the literal is not a parsable WGS84 geometry
        """
        feature_id = self._feature_id(feature_id, "geometry literal")
        try:
            geometry = parse_geo_literal(coerce_term(literal))
        except GeometryParseError as e:
            raise SpatialDeclarationError(f"Cannot declare geometry literal: {e}") from e
        if geometry.is_empty:
            raise SpatialDeclarationError("Cannot declare geometry literal: geometry is empty")
        self._points(shapely.get_coordinates(geometry).tolist(), "geometry literal", 1)
        return self._store(feature_id, geometry, is_default)

    # ============================================================
    # Queries
    # ============================================================

    def geometries_of(self, feature_id: str) -> List[GeometryPair]:
        return self.registry.geometries_of(feature_id)

    def default_of(self, feature_id: str) -> Optional[GeometryPair]:
        return self.registry.default_of(feature_id)

    def distance(self, from_feature: str, to_feature: str) -> Optional[float]:
        return self.engine.distance(from_feature, to_feature)

    def length(self, feature_id: str) -> Optional[float]:
        return self.engine.length(feature_id)

    def area(self, feature_id: str) -> Optional[float]:
        return self.engine.area(feature_id)

    def centroid(self, feature_id: str) -> Optional[GeometryResult]:
        return self.engine.centroid(feature_id)

    def boundary(self, feature_id: str) -> Optional[GeometryResult]:
        return self.engine.boundary(feature_id)

    def buffer_around(self, feature_id: str, meters: float) -> Optional[GeometryResult]:
        return self.engine.buffer_around(feature_id, meters)

    def near_by(self, feature_id: str, radius: float) -> Optional[List[str]]:
        return self.engine.near_by(feature_id, radius)

    def near_point(self, point: Coordinates, radius: float) -> List[str]:
        return self.engine.near_point(point, radius)

    def north_of(self, point: Coordinates) -> List[str]:
        return self.engine.north_of(point)

    def south_of(self, point: Coordinates) -> List[str]:
        return self.engine.south_of(point)

    def east_of(self, point: Coordinates) -> List[str]:
        return self.engine.east_of(point)

    def west_of(self, point: Coordinates) -> List[str]:
        return self.engine.west_of(point)

    def inside_box(self, lower_left: Coordinates, upper_right: Coordinates) -> List[str]:
        return self.engine.inside_box(lower_left, upper_right)

    def outside_box(self, lower_left: Coordinates, upper_right: Coordinates) -> List[str]:
        return self.engine.outside_box(lower_left, upper_right)

    def crossed_by(self, feature_id: str) -> Optional[List[str]]:
        return self.engine.crossed_by(feature_id)

    def evaluate(
        self,
        expression: GeoExpression,
        rows: Iterable[Mapping[str, Any]],
    ) -> List[Optional[Literal]]:
        """
        Evaluate an expression over result rows.

        Args:
            expression: GeoSPARQL expression
            rows: Variable bindings, one mapping per row

        Returns:
            One typed literal (or None) per row, in row order
        """
        return self.evaluator.evaluate_rows(expression, rows)
