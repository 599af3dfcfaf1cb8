"""
Domain service: metric and topological analysis over registered features.

Measurements run on the projected (meter) form of each geometry. When two
geometries are compared they are first expressed in a shared planar frame.
Unknown features are a soft failure (None or empty results); malformed
arguments are a hard failure (SpatialQueryError).
"""
import logging
import math
from typing import Callable, List, Optional, Tuple

import numpy as np
import shapely
from shapely.geometry import Point, box
from shapely.geometry.base import BaseGeometry

from geoengine.domain.exceptions import SpatialQueryError
from geoengine.domain.models import GeographicPoint, GeometryPair, GeometryResult
from geoengine.services.domain.feature_registry import SpatialFeatureRegistry
from geoengine.utils.geo_projection import (
    project_pair,
    project_to_shared_frame,
    unproject,
)
from geoengine.utils.geometry_codec import write_boundary_wkt, write_wkt

logger = logging.getLogger(__name__)

Coordinates = Tuple[float, float]


def _validate_feature_id(feature_id: Optional[str], name: str = "feature_id") -> str:
    if feature_id is None or not str(feature_id).strip():
        raise SpatialQueryError(f"Cannot query spatial features: '{name}' is required")
    return str(feature_id)


def _validate_point(coordinates: Coordinates, name: str = "point") -> GeographicPoint:
    try:
        longitude, latitude = coordinates
        return GeographicPoint.of(longitude, latitude)
    except (TypeError, ValueError) as e:
        raise SpatialQueryError(
            f"Cannot query spatial features: '{name}' must be a (longitude, latitude) pair "
            f"within [-180,180] and [-90,90], got {coordinates!r}"
        ) from e


def _validate_distance(value: float, name: str) -> float:
    if value is None or not math.isfinite(value) or value < 0:
        raise SpatialQueryError(
            f"Cannot query spatial features: '{name}' must be a non-negative number of meters"
        )
    return float(value)


class SpatialAnalysisEngine:
    """
    Domain service answering spatial questions about registered features.

    Features:
    - Calibrated measurements over all geometries of a feature
      (minimum distance, maximum length and area)
    - Derived geometries (centroid, boundary, buffer) returned in WGS84
    - Proximity, directional and bounding-box searches
    - Crossing detection between features
    """

    def __init__(self, registry: SpatialFeatureRegistry):
        self.registry = registry

    # ============================================================
    # Measurements
    # ============================================================

    def distance(self, from_feature: str, to_feature: str) -> Optional[float]:
        """
        Minimum distance in meters between any geometry of two features.

        Args:
            from_feature: Identifier of the first feature
            to_feature: Identifier of the second feature

        Returns:
            Distance in meters, or None if either feature has no geometry
        """
        from_feature = _validate_feature_id(from_feature, "from_feature")
        to_feature = _validate_feature_id(to_feature, "to_feature")

        sources = self.registry.geometries_of(from_feature)
        targets = self.registry.geometries_of(to_feature)
        if not sources or not targets:
            return None

        distances = []
        for source in sources:
            for target in targets:
                source_geometry, target_geometry = project_to_shared_frame(source, target)
                distances.append(source_geometry.distance(target_geometry))
        return min(distances)

    def length(self, feature_id: str) -> Optional[float]:
        """Maximum length (perimeter for areal geometries) in meters, or None."""
        return self._max_measure(feature_id, lambda g: g.length)

    def area(self, feature_id: str) -> Optional[float]:
        """Maximum area in square meters, or None."""
        return self._max_measure(feature_id, lambda g: g.area)

    def _max_measure(
        self,
        feature_id: str,
        measure: Callable[[BaseGeometry], float],
    ) -> Optional[float]:
        feature_id = _validate_feature_id(feature_id)
        pairs = self.registry.geometries_of(feature_id)
        if not pairs:
            return None
        return max(measure(pair.projected) for pair in pairs)

    # ============================================================
    # Derived geometries
    # ============================================================

    def centroid(self, feature_id: str) -> Optional[GeometryResult]:
        """Centroid of the feature's default (or first) geometry, in WGS84."""
        return self._derive(feature_id, lambda g: g.centroid, write_wkt)

    def boundary(self, feature_id: str) -> Optional[GeometryResult]:
        """
        Boundary of the feature's default (or first) geometry, in WGS84.

        The boundary of a point is an empty geometry collection.
        """
        return self._derive(feature_id, lambda g: g.boundary, write_boundary_wkt)

    def buffer_around(self, feature_id: str, meters: float) -> Optional[GeometryResult]:
        """
        Area within the given distance of the feature's default (or first) geometry.

        Args:
            feature_id: Feature identifier
            meters: Buffer distance in meters

        Returns:
            Buffer polygon in WGS84, or None for unknown features
        """
        if meters is None or not math.isfinite(meters):
            raise SpatialQueryError("Cannot query spatial features: 'meters' must be a finite number")
        return self._derive(feature_id, lambda g: g.buffer(meters), write_wkt)

    def _derive(
        self,
        feature_id: str,
        operation: Callable[[BaseGeometry], BaseGeometry],
        render: Callable[[BaseGeometry], str],
    ) -> Optional[GeometryResult]:
        feature_id = _validate_feature_id(feature_id)
        pair = self.registry.representative_of(feature_id)
        if pair is None:
            return None
        geometry = unproject(operation(pair.projected), pair.crs)
        return GeometryResult(geometry=geometry, wkt=render(geometry))

    # ============================================================
    # Proximity
    # ============================================================

    def _candidates(self, exclude: Optional[str] = None) -> List[Tuple[str, GeometryPair]]:
        return [
            (entity_id, self.registry.representative_of(entity_id))
            for entity_id in self.registry.entity_ids()
            if entity_id != exclude
        ]

    def near_by(self, feature_id: str, radius: float) -> Optional[List[str]]:
        """
        Features whose default (or first) geometry lies within a radius.

        Args:
            feature_id: Feature to search around (excluded from the results)
            radius: Search radius in meters

        Returns:
            Matching feature identifiers, or None if the feature has no geometry
        """
        feature_id = _validate_feature_id(feature_id)
        radius = _validate_distance(radius, "radius")

        origin = self.registry.representative_of(feature_id)
        if origin is None:
            return None
        return self._within(origin, radius, exclude=feature_id)

    def near_point(self, point: Coordinates, radius: float) -> List[str]:
        """
        Features whose default (or first) geometry lies within a radius of a point.

        Args:
            point: (longitude, latitude) in degrees
            radius: Search radius in meters

        Returns:
            Matching feature identifiers
        """
        location = _validate_point(point)
        radius = _validate_distance(radius, "radius")
        origin = project_pair(Point(location.as_tuple()))
        return self._within(origin, radius)

    def _within(
        self,
        origin: GeometryPair,
        radius: float,
        exclude: Optional[str] = None,
    ) -> List[str]:
        matches = []
        for entity_id, candidate in self._candidates(exclude):
            origin_geometry, candidate_geometry = project_to_shared_frame(origin, candidate)
            if origin_geometry.distance(candidate_geometry) <= radius:
                matches.append(entity_id)
        logger.debug(f"Found {len(matches)} features within {radius:.1f}m")
        return matches

    # ============================================================
    # Direction
    # ============================================================

    def north_of(self, point: Coordinates) -> List[str]:
        """Features with at least one vertex north of the point's latitude."""
        location = _validate_point(point)
        return self._by_vertex(lambda c: c[:, 1] > location.latitude)

    def south_of(self, point: Coordinates) -> List[str]:
        """Features with at least one vertex south of the point's latitude."""
        location = _validate_point(point)
        return self._by_vertex(lambda c: c[:, 1] < location.latitude)

    def east_of(self, point: Coordinates) -> List[str]:
        """Features with at least one vertex east of the point's longitude."""
        location = _validate_point(point)
        return self._by_vertex(lambda c: c[:, 0] > location.longitude)

    def west_of(self, point: Coordinates) -> List[str]:
        """Features with at least one vertex west of the point's longitude."""
        location = _validate_point(point)
        return self._by_vertex(lambda c: c[:, 0] < location.longitude)

    def _by_vertex(self, test: Callable[[np.ndarray], np.ndarray]) -> List[str]:
        matches = []
        for entity_id, candidate in self._candidates():
            coordinates = shapely.get_coordinates(candidate.wgs84)
            if len(coordinates) and bool(np.any(test(coordinates))):
                matches.append(entity_id)
        return matches

    # ============================================================
    # Bounding box
    # ============================================================

    def inside_box(self, lower_left: Coordinates, upper_right: Coordinates) -> List[str]:
        """
        Features whose default (or first) geometry lies inside a WGS84 box.

        Args:
            lower_left: (longitude, latitude) of the south-west corner
            upper_right: (longitude, latitude) of the north-east corner

        Returns:
            Matching feature identifiers
        """
        return self._by_box(lower_left, upper_right, inside=True)

    def outside_box(self, lower_left: Coordinates, upper_right: Coordinates) -> List[str]:
        """Features whose default (or first) geometry is not inside a WGS84 box."""
        return self._by_box(lower_left, upper_right, inside=False)

    def _by_box(
        self,
        lower_left: Coordinates,
        upper_right: Coordinates,
        inside: bool,
    ) -> List[str]:
        south_west = _validate_point(lower_left, "lower_left")
        north_east = _validate_point(upper_right, "upper_right")
        if south_west.longitude >= north_east.longitude:
            raise SpatialQueryError(
                "Cannot query spatial features: lower-left longitude must be less than upper-right longitude"
            )
        if south_west.latitude >= north_east.latitude:
            raise SpatialQueryError(
                "Cannot query spatial features: lower-left latitude must be less than upper-right latitude"
            )

        area = project_pair(box(
            south_west.longitude, south_west.latitude,
            north_east.longitude, north_east.latitude,
        ))
        matches = []
        for entity_id, candidate in self._candidates():
            area_geometry, candidate_geometry = project_to_shared_frame(area, candidate)
            if area_geometry.contains(candidate_geometry) == inside:
                matches.append(entity_id)
        logger.debug(f"Found {len(matches)} features {'inside' if inside else 'outside'} box {area.wgs84.bounds}")
        return matches

    # ============================================================
    # Topology
    # ============================================================

    def crossed_by(self, feature_id: str) -> Optional[List[str]]:
        """
        Features crossed by any geometry of the given feature.

        Args:
            feature_id: Feature whose geometries are tested

        Returns:
            Identifiers of other features with at least one crossed geometry,
            or None if the feature has no geometry
        """
        feature_id = _validate_feature_id(feature_id)
        sources = self.registry.geometries_of(feature_id)
        if not sources:
            return None

        matches: List[str] = []
        for entry in self.registry.all_with_geometry():
            if entry.entity_id == feature_id or entry.entity_id in matches:
                continue
            for source in sources:
                source_geometry, target_geometry = project_to_shared_frame(source, entry)
                if source_geometry.crosses(target_geometry):
                    matches.append(entry.entity_id)
                    break
        logger.debug(f"Feature '{feature_id}' crosses {len(matches)} features")
        return matches
