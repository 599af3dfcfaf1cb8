"""
Geospatial projection utilities for coordinate transformations.

Geometries are stored in WGS84 and projected to a planar CRS in meters for
metric work: the UTM zone containing every vertex, or a fixed equal-area CRS
when the vertices do not agree on a single zone and hemisphere.
"""
import math
from functools import lru_cache
from typing import Iterable, Tuple

import numpy as np
import shapely
from pyproj import Transformer
from shapely.geometry.base import BaseGeometry

from geoengine.config import settings
from geoengine.domain.models import (
    CRSDescriptor,
    EqualAreaFallback,
    GeometryPair,
    UTMZone,
)

WGS84_CRS = "EPSG:4326"


def get_utm_zone(longitude: float, latitude: float) -> UTMZone:
    """
    Calculate the UTM zone for a location.

    Honors the Norway and Svalbard exceptions to the regular 6 degree grid.

    Args:
        longitude: Longitude in degrees
        latitude: Latitude in degrees

    Returns:
        UTM zone (1-60) and hemisphere
    """
    north = latitude >= 0

    # Southwest coast of Norway
    if 55 < latitude < 64 and 2 < longitude < 6:
        return UTMZone(32, north)

    # Svalbard
    if latitude > 71:
        if 6 <= longitude < 9:
            return UTMZone(31, north)
        if 9 <= longitude < 12 or 18 <= longitude < 21:
            return UTMZone(33, north)
        if 21 <= longitude < 24 or 30 <= longitude < 33:
            return UTMZone(35, north)

    zone = math.floor((longitude + 180) / 6) % 60 + 1
    return UTMZone(zone, north)


def select_crs(coordinates: Iterable[Tuple[float, float]]) -> CRSDescriptor:
    """
    Select the planar CRS for a set of WGS84 vertices.

    Args:
        coordinates: (longitude, latitude) pairs in degrees

    Returns:
        The UTM zone shared by every vertex, otherwise the equal-area fallback

    Raises:
        ValueError: If no coordinates are given
    """
    selected = None
    for longitude, latitude in coordinates:
        zone = get_utm_zone(float(longitude), float(latitude))
        if selected is None:
            selected = zone
        elif zone != selected:
            return EqualAreaFallback(settings.fallback_epsg)

    if selected is None:
        raise ValueError("Coordinates list cannot be empty")
    return selected


def select_crs_for(*geometries: BaseGeometry) -> CRSDescriptor:
    """
    Select one planar CRS covering the vertices of all given WGS84 geometries.

    Args:
        geometries: WGS84 geometries

    Returns:
        CRS selected over the union of their vertices
    """
    coordinates = np.concatenate([shapely.get_coordinates(g) for g in geometries])
    return select_crs(coordinates.tolist())


@lru_cache(maxsize=256)
def _get_transformer(source: str, target: str) -> Transformer:
    return Transformer.from_crs(source, target, always_xy=True)


def _transform(
    geometry: BaseGeometry,
    transformer: Transformer,
) -> BaseGeometry:
    precision = settings.coordinate_precision

    def apply(coordinates: np.ndarray) -> np.ndarray:
        if len(coordinates) == 0:
            return coordinates
        x, y = transformer.transform(
            coordinates[:, 0], coordinates[:, 1], errcheck=True
        )
        return np.round(np.column_stack([x, y]), precision)

    # shapely.transform rebuilds the geometry; the input is left untouched
    return shapely.transform(geometry, apply)


def project(geometry: BaseGeometry, crs: CRSDescriptor) -> BaseGeometry:
    """
    Project a WGS84 geometry to a planar CRS in meters.

    Every vertex of every component is transformed and rounded to the
    configured precision.

    Args:
        geometry: Geometry with (longitude, latitude) coordinates
        crs: Target planar CRS

    Returns:
        New geometry with (x, y) coordinates in meters
    """
    return _transform(geometry, _get_transformer(WGS84_CRS, crs.srs))


def unproject(geometry: BaseGeometry, crs: CRSDescriptor) -> BaseGeometry:
    """
    Project a planar geometry back to WGS84.

    Args:
        geometry: Geometry with (x, y) coordinates in meters
        crs: CRS the coordinates are expressed in

    Returns:
        New geometry with (longitude, latitude) coordinates in degrees
    """
    return _transform(geometry, _get_transformer(crs.srs, WGS84_CRS))


def project_pair(geometry: BaseGeometry) -> GeometryPair:
    """
    Build the WGS84/projected pair for a geometry.

    Args:
        geometry: WGS84 geometry

    Returns:
        GeometryPair holding both forms and the selected CRS
    """
    crs = select_crs_for(geometry)
    return GeometryPair(wgs84=geometry, projected=project(geometry, crs), crs=crs)


def project_to_shared_frame(
    first: GeometryPair,
    second: GeometryPair,
) -> Tuple[BaseGeometry, BaseGeometry]:
    """
    Express two paired geometries in one planar frame.

    Pairs already sharing a CRS reuse their projected forms; otherwise both
    WGS84 forms are projected to the CRS selected over all their vertices.

    Args:
        first: First geometry pair (or registry entry)
        second: Second geometry pair (or registry entry)

    Returns:
        Tuple of the two geometries in the common planar CRS
    """
    if first.crs == second.crs:
        return first.projected, second.projected
    crs = select_crs_for(first.wgs84, second.wgs84)
    return project(first.wgs84, crs), project(second.wgs84, crs)
