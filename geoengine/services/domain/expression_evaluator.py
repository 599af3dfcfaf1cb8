"""
Domain service: evaluation of GeoSPARQL expressions against result rows.

Evaluation is total: a missing binding, a non-geographic operand or a failure
inside the geometry or projection libraries yields None for that row.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import shapely
from rdflib import Literal, Variable
from rdflib.namespace import GEO, XSD
from shapely.geometry.base import BaseGeometry

from geoengine.domain.exceptions import GeometryParseError
from geoengine.domain.expressions import GeoExpression, Operand
from geoengine.domain.models import CRSDescriptor
from geoengine.domain.operations import RELATION_PATTERNS, GeoOperation, ResultKind
from geoengine.domain.vocabulary import WGS84_EPSG, crs_uri
from geoengine.utils.geo_projection import project, select_crs_for, unproject
from geoengine.utils.geometry_codec import (
    coerce_term,
    parse_geo_literal,
    wkt_literal,
    write_boundary_wkt,
)

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]
Handler = Callable[[GeoExpression, BaseGeometry, Optional[BaseGeometry], CRSDescriptor], Any]


def _relation(operation: GeoOperation) -> Handler:
    patterns = RELATION_PATTERNS[operation]
    return lambda expr, left, right, crs: any(
        left.relate_pattern(right, pattern) for pattern in patterns
    )


# Dispatch table: one handler per operation, applied to projected operands
HANDLERS: Dict[GeoOperation, Handler] = {
    GeoOperation.BUFFER: lambda expr, left, right, crs: left.buffer(expr.buffer_meters),
    GeoOperation.DISTANCE: lambda expr, left, right, crs: left.distance(right),
    GeoOperation.SF_INTERSECTS: lambda expr, left, right, crs: left.intersects(right),
    GeoOperation.SF_CROSSES: lambda expr, left, right, crs: left.crosses(right),
    GeoOperation.SF_TOUCHES: lambda expr, left, right, crs: left.touches(right),
    GeoOperation.SF_CONTAINS: lambda expr, left, right, crs: left.contains(right),
    GeoOperation.SF_DISJOINT: lambda expr, left, right, crs: left.disjoint(right),
    GeoOperation.SF_EQUALS: lambda expr, left, right, crs: left.equals(right),
    GeoOperation.SF_OVERLAPS: lambda expr, left, right, crs: left.overlaps(right),
    GeoOperation.SF_WITHIN: lambda expr, left, right, crs: left.within(right),
    GeoOperation.UNION: lambda expr, left, right, crs: left.union(right),
    GeoOperation.INTERSECTION: lambda expr, left, right, crs: left.intersection(right),
    GeoOperation.DIFFERENCE: lambda expr, left, right, crs: left.difference(right),
    GeoOperation.SYM_DIFFERENCE: lambda expr, left, right, crs: left.symmetric_difference(right),
    GeoOperation.CONVEX_HULL: lambda expr, left, right, crs: left.convex_hull,
    GeoOperation.ENVELOPE: lambda expr, left, right, crs: left.envelope,
    GeoOperation.BOUNDARY: lambda expr, left, right, crs: left.boundary,
    GeoOperation.CENTROID: lambda expr, left, right, crs: left.centroid,
    GeoOperation.DIMENSION: lambda expr, left, right, crs: int(shapely.get_dimensions(left)),
    GeoOperation.IS_SIMPLE: lambda expr, left, right, crs: left.is_simple,
    # Literals carry WGS84 coordinates whatever frame they were evaluated in
    GeoOperation.GET_SRID: lambda expr, left, right, crs: crs_uri(WGS84_EPSG),
    GeoOperation.RELATE: lambda expr, left, right, crs: left.relate_pattern(right, expr.pattern),
}
HANDLERS.update({operation: _relation(operation) for operation in RELATION_PATTERNS})


class ExpressionEvaluator:
    """
    Evaluates ``GeoExpression`` trees one row at a time.

    Operands are projected into a single planar CRS selected over the
    vertices of all operands, so binary operations always compare geometries
    in the same frame. Geometry results are unprojected with that same CRS.
    """

    def evaluate(self, expression: GeoExpression, row: Row) -> Optional[Literal]:
        """
        Evaluate an expression against one row of bindings.

        Args:
            expression: Expression to evaluate
            row: Mapping of variable name (with or without ``?``) to bound value

        Returns:
            Typed literal result, or None when the row cannot be evaluated
        """
        try:
            return self._evaluate(expression, row)
        except GeometryParseError as e:
            logger.debug(f"Unparsable operand in {expression.operation.value}: {e}")
            return None
        except Exception as e:
            logger.debug(
                f"Evaluation of {expression.operation.value} failed: {e}",
                exc_info=True,
            )
            return None

    def evaluate_rows(self, expression: GeoExpression, rows: Iterable[Row]) -> List[Optional[Literal]]:
        return [self.evaluate(expression, row) for row in rows]

    def _evaluate(self, expression: GeoExpression, row: Row) -> Optional[Literal]:
        operation = expression.operation

        left_term = self._resolve(expression.left, row)
        if left_term is None:
            return None
        left = parse_geo_literal(left_term)

        if operation is GeoOperation.IS_EMPTY:
            return Literal(left.is_empty)

        right = None
        if operation.arity == 2:
            right_term = self._resolve(expression.right, row)
            if right_term is None:
                return None
            right = parse_geo_literal(right_term)

        operands = [left] if right is None else [left, right]
        crs = select_crs_for(*operands)
        left_projected = project(left, crs)
        right_projected = project(right, crs) if right is not None else None

        value = HANDLERS[operation](expression, left_projected, right_projected, crs)
        return self._to_literal(operation, value, crs)

    def _resolve(self, operand: Operand, row: Row):
        if isinstance(operand, GeoExpression):
            return self._evaluate(operand, row)
        if isinstance(operand, Variable):
            name = str(operand)
            value = row.get(name, row.get(f"?{name}"))
            if value is None:
                logger.debug(f"Variable ?{name} is not bound in row")
            return coerce_term(value)
        return operand

    @staticmethod
    def _to_literal(operation: GeoOperation, value: Any, crs: CRSDescriptor) -> Literal:
        kind = operation.result_kind
        if kind is ResultKind.GEOMETRY:
            geometry = unproject(value, crs)
            if operation is GeoOperation.BOUNDARY:
                return Literal(write_boundary_wkt(geometry), datatype=GEO.wktLiteral)
            return wkt_literal(geometry)
        if kind is ResultKind.BOOLEAN:
            return Literal(bool(value))
        if kind is ResultKind.NUMERIC:
            return Literal(float(value), datatype=XSD.double)
        if kind is ResultKind.INTEGER:
            return Literal(int(value), datatype=XSD.integer)
        return Literal(str(value), datatype=XSD.anyURI)
