"""
API request models using Pydantic.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator
from rdflib import Literal, Variable
from rdflib.namespace import GEO

from geoengine.domain.expressions import GeoExpression

Position = List[float]


class GeometryType(str, Enum):
    """Geometry kinds accepted by the declaration endpoint."""
    POINT = "Point"
    LINE_STRING = "LineString"
    POLYGON = "Polygon"
    MULTI_POINT = "MultiPoint"
    MULTI_LINE_STRING = "MultiLineString"
    MULTI_POLYGON = "MultiPolygon"
    GEOMETRY_COLLECTION = "GeometryCollection"


class GeometryDeclarationRequest(BaseModel):
    """
    Geometry to attach to a feature.

    Either ``wkt``, ``gml`` or ``type`` (with coordinates) must be given.
    Coordinates are [longitude, latitude] and nest like GeoJSON, except that
    polygons are a single outer ring.
    """
    type: Optional[GeometryType] = Field(default=None, description="Geometry kind")
    coordinates: Optional[list] = Field(
        default=None,
        description="Nested [longitude, latitude] positions for the geometry kind",
        examples=[[9.18854, 45.464664]],
    )
    points: List[Position] = Field(default_factory=list, description="GeometryCollection points")
    line_strings: List[List[Position]] = Field(default_factory=list, description="GeometryCollection lines")
    polygons: List[List[Position]] = Field(default_factory=list, description="GeometryCollection polygons")
    wkt: Optional[str] = Field(default=None, examples=["POINT (9.18854 45.464664)"])
    gml: Optional[str] = Field(default=None)
    is_default: bool = Field(default=True, description="Declare as the feature's default geometry")

    @model_validator(mode="after")
    def check_single_source(self) -> "GeometryDeclarationRequest":
        sources = [s for s in (self.type, self.wkt, self.gml) if s is not None]
        if len(sources) != 1:
            raise ValueError("Exactly one of 'type', 'wkt' or 'gml' must be provided")
        if self.type not in (None, GeometryType.GEOMETRY_COLLECTION) and self.coordinates is None:
            raise ValueError(f"'coordinates' are required for {self.type.value}")
        return self

    def literal(self) -> Optional[Literal]:
        if self.wkt is not None:
            return Literal(self.wkt, datatype=GEO.wktLiteral)
        if self.gml is not None:
            return Literal(self.gml, datatype=GEO.gmlLiteral)
        return None


class ExpressionArgument(BaseModel):
    """One operand: a variable name, a WKT/GML constant or a nested expression."""
    variable: Optional[str] = Field(default=None, examples=["a"])
    wkt: Optional[str] = None
    gml: Optional[str] = None
    expression: Optional["ExpressionSpec"] = None

    @model_validator(mode="after")
    def check_single_kind(self) -> "ExpressionArgument":
        kinds = [k for k in (self.variable, self.wkt, self.gml, self.expression) if k is not None]
        if len(kinds) != 1:
            raise ValueError("Exactly one of 'variable', 'wkt', 'gml' or 'expression' must be provided")
        return self

    def to_operand(self):
        if self.variable is not None:
            return Variable(self.variable)
        if self.wkt is not None:
            return Literal(self.wkt, datatype=GEO.wktLiteral)
        if self.gml is not None:
            return Literal(self.gml, datatype=GEO.gmlLiteral)
        return self.expression.to_expression()


class ExpressionSpec(BaseModel):
    """A GeoSPARQL function application."""
    function: str = Field(description="Function name, e.g. sfIntersects or geof:distance")
    arguments: List[ExpressionArgument] = Field(min_length=1, max_length=2)
    buffer_meters: Optional[float] = Field(default=None, description="Distance for buffer")
    pattern: Optional[str] = Field(default=None, description="DE-9IM pattern for relate")

    def to_expression(self) -> GeoExpression:
        """
        Build the domain expression.

        Raises:
            ExpressionConstructionError: If the function or operands are invalid
        """
        operands = [argument.to_operand() for argument in self.arguments]
        right = operands[1] if len(operands) > 1 else None
        parameters = {}
        if self.buffer_meters is not None:
            parameters["buffer_meters"] = self.buffer_meters
        if self.pattern is not None:
            parameters["pattern"] = self.pattern
        return GeoExpression.of(self.function, operands[0], right, **parameters)


ExpressionArgument.model_rebuild()


class EvaluationRequest(BaseModel):
    """Expression plus the rows to evaluate it against."""
    expression: ExpressionSpec
    rows: List[Dict[str, Optional[str]]] = Field(
        default_factory=list,
        description="Variable bindings; values may carry a datatype as 'lexical^^<datatype>'",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "expression": {
                    "function": "sfIntersects",
                    "arguments": [{"variable": "a"}, {"wkt": "POINT (9.18854 45.464664)"}],
                },
                "rows": [
                    {"a": "POINT (9.18854 45.464664)^^<http://www.opengis.net/ont/geosparql#wktLiteral>"}
                ],
            }
        }
