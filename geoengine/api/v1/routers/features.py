"""
API router for feature endpoints.
"""
from typing import Annotated

from fastapi import APIRouter, Path, Query

from geoengine.api.dependencies import GeoServiceDep
from geoengine.api.v1.models.requests import GeometryDeclarationRequest, GeometryType
from geoengine.api.v1.models.responses import (
    DeclarationResponse,
    DistanceResponse,
    FeatureListResponse,
    FeatureResponse,
    GeometryResponse,
    GeometryView,
    MeasurementResponse,
)
from geoengine.services.application.geo_service import GeoService
from geoengine.utils.geometry_codec import write_gml, write_wkt

router = APIRouter(
    prefix="/features",
    tags=["features"],
)

FeatureId = Annotated[str, Path(description="Feature identifier")]

COMMON_RESPONSES = {
    400: {"description": "Invalid arguments"},
    429: {"description": "Rate limit exceeded"},
}


def _declare(service: GeoService, feature_id: str, request: GeometryDeclarationRequest) -> bool:
    literal = request.literal()
    if literal is not None:
        return service.declare_literal(feature_id, literal, request.is_default)

    coordinates = request.coordinates
    is_default = request.is_default
    if request.type is GeometryType.POINT:
        if len(coordinates) != 2:
            raise ValueError("Point coordinates must be [longitude, latitude]")
        return service.declare_point(feature_id, coordinates[0], coordinates[1], is_default)
    if request.type is GeometryType.LINE_STRING:
        return service.declare_line_string(feature_id, coordinates, is_default)
    if request.type is GeometryType.POLYGON:
        return service.declare_polygon(feature_id, coordinates, is_default)
    if request.type is GeometryType.MULTI_POINT:
        return service.declare_multi_point(feature_id, coordinates, is_default)
    if request.type is GeometryType.MULTI_LINE_STRING:
        return service.declare_multi_line_string(feature_id, coordinates, is_default)
    if request.type is GeometryType.MULTI_POLYGON:
        return service.declare_multi_polygon(feature_id, coordinates, is_default)
    return service.declare_geometry_collection(
        feature_id,
        points=request.points,
        line_strings=request.line_strings,
        polygons=request.polygons,
        is_default=is_default,
    )


@router.post(
    "/{feature_id}/geometries",
    response_model=DeclarationResponse,
    summary="Declare a geometry",
    description="""
    Attach a geometry to a feature, given as coordinates, WKT or GML.

    A feature keeps its first default geometry; later defaults are ignored
    and reported with `stored: false`. Secondary geometries accumulate.
    """,
    responses=COMMON_RESPONSES,
)
def declare_geometry(
    feature_id: FeatureId,
    request: GeometryDeclarationRequest,
    geo_service: GeoServiceDep,
) -> DeclarationResponse:
    stored = _declare(geo_service, feature_id, request)
    return DeclarationResponse(feature_id=feature_id, stored=stored)


@router.get(
    "/{feature_id}",
    response_model=FeatureResponse,
    summary="Get feature geometries",
    responses=COMMON_RESPONSES,
)
def get_feature(feature_id: FeatureId, geo_service: GeoServiceDep) -> FeatureResponse:
    """
    List the geometries of a feature.

    Args:
        feature_id: Feature identifier
        geo_service: Geo service (injected dependency)

    Returns:
        FeatureResponse; unknown features have no geometries
    """
    default = geo_service.default_of(feature_id)
    return FeatureResponse(
        feature_id=feature_id,
        geometries=[
            GeometryView(
                wkt=write_wkt(pair.wgs84),
                gml=write_gml(pair.wgs84),
                crs=pair.crs.srs,
                is_default=pair is default,
            )
            for pair in geo_service.geometries_of(feature_id)
        ],
    )


@router.get(
    "/{feature_id}/length",
    response_model=MeasurementResponse,
    summary="Get feature length",
    responses=COMMON_RESPONSES,
)
def get_length(feature_id: FeatureId, geo_service: GeoServiceDep) -> MeasurementResponse:
    return MeasurementResponse(
        feature_id=feature_id,
        value=geo_service.length(feature_id),
        unit="metre",
    )


@router.get(
    "/{feature_id}/area",
    response_model=MeasurementResponse,
    summary="Get feature area",
    responses=COMMON_RESPONSES,
)
def get_area(feature_id: FeatureId, geo_service: GeoServiceDep) -> MeasurementResponse:
    return MeasurementResponse(
        feature_id=feature_id,
        value=geo_service.area(feature_id),
        unit="square metre",
    )


@router.get(
    "/{feature_id}/centroid",
    response_model=GeometryResponse,
    summary="Get feature centroid",
    responses=COMMON_RESPONSES,
)
def get_centroid(feature_id: FeatureId, geo_service: GeoServiceDep) -> GeometryResponse:
    result = geo_service.centroid(feature_id)
    return GeometryResponse(feature_id=feature_id, wkt=result.wkt if result else None)


@router.get(
    "/{feature_id}/boundary",
    response_model=GeometryResponse,
    summary="Get feature boundary",
    responses=COMMON_RESPONSES,
)
def get_boundary(feature_id: FeatureId, geo_service: GeoServiceDep) -> GeometryResponse:
    result = geo_service.boundary(feature_id)
    return GeometryResponse(feature_id=feature_id, wkt=result.wkt if result else None)


@router.get(
    "/{feature_id}/buffer",
    response_model=GeometryResponse,
    summary="Buffer a feature",
    responses=COMMON_RESPONSES,
)
def get_buffer(
    feature_id: FeatureId,
    geo_service: GeoServiceDep,
    meters: Annotated[float, Query(description="Buffer distance in meters")],
) -> GeometryResponse:
    result = geo_service.buffer_around(feature_id, meters)
    return GeometryResponse(feature_id=feature_id, wkt=result.wkt if result else None)


@router.get(
    "/{feature_id}/near",
    response_model=FeatureListResponse,
    summary="Find features near a feature",
    responses=COMMON_RESPONSES,
)
def get_near_by(
    feature_id: FeatureId,
    geo_service: GeoServiceDep,
    radius: Annotated[float, Query(description="Search radius in meters")],
) -> FeatureListResponse:
    return FeatureListResponse.of(geo_service.near_by(feature_id, radius))


@router.get(
    "/{feature_id}/crossed-by",
    response_model=FeatureListResponse,
    summary="Find features crossed by a feature",
    responses=COMMON_RESPONSES,
)
def get_crossed_by(feature_id: FeatureId, geo_service: GeoServiceDep) -> FeatureListResponse:
    return FeatureListResponse.of(geo_service.crossed_by(feature_id))


@router.get(
    "/{feature_id}/distance/{other_id}",
    response_model=DistanceResponse,
    summary="Get distance between features",
    responses=COMMON_RESPONSES,
)
def get_distance(
    feature_id: FeatureId,
    other_id: Annotated[str, Path(description="Identifier of the other feature")],
    geo_service: GeoServiceDep,
) -> DistanceResponse:
    return DistanceResponse(
        from_feature=feature_id,
        to_feature=other_id,
        distance=geo_service.distance(feature_id, other_id),
    )
