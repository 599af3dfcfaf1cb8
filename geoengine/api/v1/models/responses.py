"""
API response models using Pydantic.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class GeometryView(BaseModel):
    """A declared geometry as seen through the API."""
    wkt: str = Field(description="WGS84 geometry as WKT")
    gml: str = Field(description="WGS84 geometry as a GML 3 fragment")
    crs: str = Field(description="Planar CRS used for metric operations", examples=["EPSG:32632"])
    is_default: bool


class FeatureResponse(BaseModel):
    """Geometries attached to a feature, default first."""
    feature_id: str
    geometries: List[GeometryView]


class DeclarationResponse(BaseModel):
    """Outcome of a geometry declaration."""
    feature_id: str
    stored: bool = Field(description="False when the feature already had a default geometry")


class MeasurementResponse(BaseModel):
    """A length or area measurement; null when the feature has no geometry."""
    feature_id: str
    value: Optional[float]
    unit: str = Field(examples=["metre", "square metre"])


class DistanceResponse(BaseModel):
    """Minimum distance between two features; null when either has no geometry."""
    from_feature: str
    to_feature: str
    distance: Optional[float]
    unit: str = "metre"


class GeometryResponse(BaseModel):
    """A derived geometry; null when the feature has no geometry."""
    feature_id: str
    wkt: Optional[str]


class FeatureListResponse(BaseModel):
    """Identifiers matched by a spatial search."""
    features: Optional[List[str]] = Field(
        description="Matching feature identifiers; null when the queried feature has no geometry"
    )
    count: int

    @classmethod
    def of(cls, features: Optional[List[str]]) -> "FeatureListResponse":
        return cls(features=features, count=len(features or []))


class EvaluationResult(BaseModel):
    """Typed result for one row; both fields are null when the row did not evaluate."""
    value: Optional[str]
    datatype: Optional[str]


class EvaluationResponse(BaseModel):
    """Results of evaluating an expression, one per input row."""
    expression: str
    results: List[EvaluationResult]

    class Config:
        json_schema_extra = {
            "example": {
                "expression": "(geof:sfIntersects(?a, \"POINT (9.18854 45.464664)\"^^geo:wktLiteral))",
                "results": [
                    {"value": "true", "datatype": "http://www.w3.org/2001/XMLSchema#boolean"},
                ]
            }
        }


class FunctionInfo(BaseModel):
    """A GeoSPARQL function supported by the evaluator."""
    name: str
    uri: str
    prefixed: str
    arity: int
    result_kind: str
