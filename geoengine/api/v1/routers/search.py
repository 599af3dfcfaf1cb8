"""
API router for coordinate-based spatial searches.
"""
from typing import Annotated

from fastapi import APIRouter, Query

from geoengine.api.dependencies import GeoServiceDep
from geoengine.api.v1.models.responses import FeatureListResponse

router = APIRouter(
    prefix="/search",
    tags=["search"],
)

Longitude = Annotated[float, Query(description="Longitude in degrees")]
Latitude = Annotated[float, Query(description="Latitude in degrees")]

COMMON_RESPONSES = {
    400: {"description": "Invalid coordinates or box"},
    429: {"description": "Rate limit exceeded"},
}


@router.get(
    "/near-point",
    response_model=FeatureListResponse,
    summary="Find features near a point",
    responses=COMMON_RESPONSES,
)
def near_point(
    lon: Longitude,
    lat: Latitude,
    radius: Annotated[float, Query(description="Search radius in meters")],
    geo_service: GeoServiceDep,
) -> FeatureListResponse:
    return FeatureListResponse.of(geo_service.near_point((lon, lat), radius))


@router.get(
    "/north-of",
    response_model=FeatureListResponse,
    summary="Find features north of a point",
    description="Features with at least one vertex north of the given latitude.",
    responses=COMMON_RESPONSES,
)
def north_of(lon: Longitude, lat: Latitude, geo_service: GeoServiceDep) -> FeatureListResponse:
    return FeatureListResponse.of(geo_service.north_of((lon, lat)))


@router.get(
    "/south-of",
    response_model=FeatureListResponse,
    summary="Find features south of a point",
    description="Features with at least one vertex south of the given latitude.",
    responses=COMMON_RESPONSES,
)
def south_of(lon: Longitude, lat: Latitude, geo_service: GeoServiceDep) -> FeatureListResponse:
    return FeatureListResponse.of(geo_service.south_of((lon, lat)))


@router.get(
    "/east-of",
    response_model=FeatureListResponse,
    summary="Find features east of a point",
    description="Features with at least one vertex east of the given longitude.",
    responses=COMMON_RESPONSES,
)
def east_of(lon: Longitude, lat: Latitude, geo_service: GeoServiceDep) -> FeatureListResponse:
    return FeatureListResponse.of(geo_service.east_of((lon, lat)))


@router.get(
    "/west-of",
    response_model=FeatureListResponse,
    summary="Find features west of a point",
    description="Features with at least one vertex west of the given longitude.",
    responses=COMMON_RESPONSES,
)
def west_of(lon: Longitude, lat: Latitude, geo_service: GeoServiceDep) -> FeatureListResponse:
    return FeatureListResponse.of(geo_service.west_of((lon, lat)))


@router.get(
    "/inside-box",
    response_model=FeatureListResponse,
    summary="Find features inside a box",
    responses=COMMON_RESPONSES,
)
def inside_box(
    min_lon: Longitude,
    min_lat: Latitude,
    max_lon: Longitude,
    max_lat: Latitude,
    geo_service: GeoServiceDep,
) -> FeatureListResponse:
    """
    Find features whose geometry lies inside a lon/lat box.

    Args:
        min_lon: Lower-left longitude
        min_lat: Lower-left latitude
        max_lon: Upper-right longitude
        max_lat: Upper-right latitude
        geo_service: Geo service (injected dependency)

    Returns:
        FeatureListResponse with matching identifiers
    """
    return FeatureListResponse.of(geo_service.inside_box((min_lon, min_lat), (max_lon, max_lat)))


@router.get(
    "/outside-box",
    response_model=FeatureListResponse,
    summary="Find features outside a box",
    responses=COMMON_RESPONSES,
)
def outside_box(
    min_lon: Longitude,
    min_lat: Latitude,
    max_lon: Longitude,
    max_lat: Latitude,
    geo_service: GeoServiceDep,
) -> FeatureListResponse:
    return FeatureListResponse.of(geo_service.outside_box((min_lon, min_lat), (max_lon, max_lat)))
