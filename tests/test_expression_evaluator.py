"""
Unit tests for GeoSPARQL expressions and their evaluation.

Tests cover:
- Expression construction and validation
- Rendering with prefixes and full URIs
- Row evaluation with null semantics
- Simple Features, Egenhofer, RCC8 and relate predicates
- Geometry, numeric and URI results
"""
import pytest
from pyproj import Geod
from rdflib import Literal, Variable
from rdflib.namespace import GEO, XSD

from geoengine.domain.exceptions import ExpressionConstructionError
from geoengine.domain.expressions import GeoExpression
from geoengine.domain.operations import GeoOperation, ResultKind
from geoengine.services.domain.expression_evaluator import ExpressionEvaluator
from geoengine.utils.geometry_codec import read_wkt

from conftest import wkt

A = Variable("a")
B = Variable("b")

SQUARE_WEST = wkt("POLYGON ((9.0 45.0, 9.1 45.0, 9.1 45.1, 9.0 45.1, 9.0 45.0))")
SQUARE_EAST = wkt("POLYGON ((9.1 45.0, 9.2 45.0, 9.2 45.1, 9.1 45.1, 9.1 45.0))")
BIG_SQUARE = wkt("POLYGON ((9.0 45.0, 9.5 45.0, 9.5 45.5, 9.0 45.5, 9.0 45.0))")
SMALL_SQUARE = wkt("POLYGON ((9.1 45.1, 9.2 45.1, 9.2 45.2, 9.1 45.2, 9.1 45.1))")
# Shares part of its western edge with BIG_SQUARE along the 9E central meridian
EDGE_SQUARE = wkt("POLYGON ((9.0 45.2, 9.1 45.2, 9.1 45.3, 9.0 45.3, 9.0 45.2))")


@pytest.fixture
def evaluator() -> ExpressionEvaluator:
    return ExpressionEvaluator()


def evaluate(evaluator, function, left, right=None, row=None, **parameters):
    return evaluator.evaluate(GeoExpression.of(function, left, right, **parameters), row or {})


# ============================================================
# Construction Tests
# ============================================================

class TestExpressionConstruction:
    """Tests for building expression nodes."""

    def test_operation_signatures(self):
        assert GeoOperation.DISTANCE.arity == 2
        assert GeoOperation.DISTANCE.result_kind is ResultKind.NUMERIC
        assert GeoOperation.BOUNDARY.arity == 1
        assert GeoOperation.EH_MEET.result_kind is ResultKind.BOOLEAN
        assert GeoOperation.GET_SRID.result_kind is ResultKind.URI

    @pytest.mark.parametrize("name", [
        "sfWithin",
        "geof:sfWithin",
        "http://www.opengis.net/def/function/geosparql/sfWithin",
        "<http://www.opengis.net/def/function/geosparql/sfWithin>",
    ])
    def test_function_names(self, name):
        assert GeoExpression.of(name, A, B).operation is GeoOperation.SF_WITHIN

    def test_null_left_argument(self):
        with pytest.raises(ExpressionConstructionError, match="leftArgument"):
            GeoExpression(GeoOperation.SF_INTERSECTS, None, B)

    def test_null_right_argument(self):
        with pytest.raises(ExpressionConstructionError, match="rightArgument"):
            GeoExpression(GeoOperation.SF_INTERSECTS, A, None)

    def test_non_geographic_right_argument(self):
        with pytest.raises(ExpressionConstructionError, match="not a geographic"):
            GeoExpression(GeoOperation.SF_INTERSECTS, A, Literal("Hello", datatype=XSD.string))

    def test_unary_with_right_argument(self):
        with pytest.raises(ExpressionConstructionError):
            GeoExpression(GeoOperation.CENTROID, A, B)

    def test_unknown_function(self):
        with pytest.raises(ExpressionConstructionError, match="Unknown GeoSPARQL function"):
            GeoExpression.of("sfNearby", A, B)

    def test_buffer_requires_distance(self):
        with pytest.raises(ExpressionConstructionError):
            GeoExpression(GeoOperation.BUFFER, A)

    def test_negative_buffer_allowed(self):
        assert GeoExpression(GeoOperation.BUFFER, A, buffer_meters=-10).buffer_meters == -10

    def test_relate_requires_valid_pattern(self):
        with pytest.raises(ExpressionConstructionError):
            GeoExpression(GeoOperation.RELATE, A, B, pattern="T*F")

    def test_construction_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            GeoExpression(GeoOperation.SF_TOUCHES, A, None)

    def test_variables(self):
        nested = GeoExpression(GeoOperation.BUFFER, A, buffer_meters=10)
        expression = GeoExpression(GeoOperation.SF_INTERSECTS, nested, B)

        assert expression.variables() == {"a", "b"}


class TestExpressionRendering:
    """Tests for SPARQL rendering."""

    def test_variable_and_literal(self):
        expression = GeoExpression(
            GeoOperation.SF_INTERSECTS, Variable("V"), wkt("POINT (1 1)"),
        )

        assert expression.to_string(prefixed=True) == (
            '(geof:sfIntersects(?V, "POINT (1 1)"^^geo:wktLiteral))'
        )
        assert str(expression) == (
            '(<http://www.opengis.net/def/function/geosparql/sfIntersects>'
            '(?V, "POINT (1 1)"^^<http://www.opengis.net/ont/geosparql#wktLiteral>))'
        )

    def test_distance_carries_unit(self):
        expression = GeoExpression(GeoOperation.DISTANCE, A, B)

        assert expression.to_string() == "(geof:distance(?a, ?b, uom:metre))"
        assert str(expression).endswith("<http://www.opengis.net/def/uom/OGC/1.0/metre>))")

    def test_buffer_carries_distance_and_unit(self):
        expression = GeoExpression(GeoOperation.BUFFER, A, buffer_meters=150)

        assert expression.to_string() == "(geof:buffer(?a, 150, uom:metre))"

    def test_relate_carries_pattern(self):
        expression = GeoExpression(GeoOperation.RELATE, A, B, pattern="t*f**f***")

        assert expression.to_string() == '(geof:relate(?a, ?b, "T*F**F***"))'

    def test_nested(self):
        nested = GeoExpression(GeoOperation.CENTROID, A)
        expression = GeoExpression(GeoOperation.SF_WITHIN, nested, B)

        assert expression.to_string() == "(geof:sfWithin((geof:centroid(?a)), ?b))"


# ============================================================
# Null Semantics Tests
# ============================================================

class TestNullSemantics:
    """Tests for rows that cannot be evaluated."""

    def test_unbound_column(self, evaluator, milan_wkt):
        assert evaluate(evaluator, "sfIntersects", A, milan_wkt, row={}) is None

    def test_unbound_right_column(self, evaluator, milan_wkt):
        assert evaluate(evaluator, "distance", A, B, row={"a": milan_wkt}) is None

    def test_non_geographic_literal(self, evaluator, milan_wkt):
        row = {"a": Literal("POINT (9.18854 45.464664)")}

        assert evaluate(evaluator, "sfIntersects", A, milan_wkt, row=row) is None

    def test_unparsable_wkt(self, evaluator, milan_wkt):
        row = {"a": wkt("POINT (9.18854")}

        assert evaluate(evaluator, "sfIntersects", A, milan_wkt, row=row) is None

    def test_evaluate_rows(self, evaluator, milan_wkt, rome_wkt):
        expression = GeoExpression(GeoOperation.SF_EQUALS, A, milan_wkt)

        results = evaluator.evaluate_rows(expression, [{"a": milan_wkt}, {}, {"a": rome_wkt}])

        assert [r.toPython() if r is not None else None for r in results] == [True, None, False]


# ============================================================
# Evaluation Tests
# ============================================================

class TestEvaluation:
    """Tests for evaluating functions on bound rows."""

    def test_intersects_self(self, evaluator, milan_wkt):
        result = evaluate(evaluator, "sfIntersects", A, milan_wkt, row={"a": milan_wkt})

        assert result.datatype == XSD.boolean
        assert result.toPython() is True

    def test_question_mark_keys(self, evaluator, milan_wkt):
        result = evaluate(evaluator, "sfIntersects", A, milan_wkt, row={"?a": milan_wkt})

        assert result.toPython() is True

    def test_typed_string_values(self, evaluator, milan_wkt):
        row = {"a": "POINT (9.18854 45.464664)^^<http://www.opengis.net/ont/geosparql#wktLiteral>"}

        assert evaluate(evaluator, "sfEquals", A, milan_wkt, row=row).toPython() is True

    def test_distance_across_zones(self, evaluator, milan_wkt, rome_wkt):
        result = evaluate(evaluator, "distance", A, B, row={"a": milan_wkt, "b": rome_wkt})

        assert result.datatype == XSD.double
        assert 450000 <= result.toPython() <= 480000

    def test_disjoint_across_zones(self, evaluator, milan_wkt, rome_wkt):
        assert evaluate(evaluator, "sfDisjoint", milan_wkt, rome_wkt).toPython() is True

    def test_get_srid(self, evaluator, milan_wkt):
        """Literals are WGS84 whatever planar frame the evaluation used."""
        result = evaluate(evaluator, "getSRID", A, row={"a": milan_wkt})

        assert result.datatype == XSD.anyURI
        assert str(result) == "http://www.opengis.net/def/crs/EPSG/0/4326"

    def test_get_srid_across_zones(self, evaluator):
        line = wkt("LINESTRING (9.18854 45.464664, 12.496365 41.902782)")

        result = evaluate(evaluator, "getSRID", A, row={"a": line})

        assert str(result) == "http://www.opengis.net/def/crs/EPSG/0/4326"

    def test_distance_across_zones_outside_europe(self, evaluator):
        """Points either side of the 150E zone boundary near Sydney."""
        row = {"a": wkt("POINT (149.995 -33.8)"), "b": wkt("POINT (150.005 -33.8)")}
        _, _, expected = Geod(ellps="WGS84").inv(149.995, -33.8, 150.005, -33.8)

        result = evaluate(evaluator, "distance", A, B, row=row)

        assert result.toPython() == pytest.approx(expected, rel=0.05)

    def test_buffer(self, evaluator, milan_wkt):
        result = evaluate(evaluator, "buffer", A, row={"a": milan_wkt}, buffer_meters=500)

        assert result.datatype == GEO.wktLiteral
        assert str(result).startswith("POLYGON")
        assert read_wkt(str(result)).contains(read_wkt(str(milan_wkt)))

    def test_nested_buffer(self, evaluator, milan_wkt):
        """A point 555m away intersects a 1km buffer; one 2.2km away does not."""
        buffered = GeoExpression(GeoOperation.BUFFER, A, buffer_meters=1000)
        expression = GeoExpression(GeoOperation.SF_INTERSECTS, buffered, B)

        near = evaluator.evaluate(expression, {"a": milan_wkt, "b": wkt("POINT (9.18854 45.469664)")})
        far = evaluator.evaluate(expression, {"a": milan_wkt, "b": wkt("POINT (9.18854 45.484664)")})

        assert near.toPython() is True
        assert far.toPython() is False

    def test_dimension(self, evaluator):
        result = evaluate(evaluator, "dimension", SQUARE_WEST)

        assert result.datatype == XSD.integer
        assert result.toPython() == 2

    def test_is_empty(self, evaluator, milan_wkt):
        assert evaluate(evaluator, "isEmpty", wkt("POINT EMPTY")).toPython() is True
        assert evaluate(evaluator, "isEmpty", milan_wkt).toPython() is False

    def test_is_simple(self, evaluator):
        bowtie = wkt("LINESTRING (9.0 45.0, 9.1 45.1, 9.1 45.0, 9.0 45.1)")

        assert evaluate(evaluator, "isSimple", bowtie).toPython() is False
        assert evaluate(evaluator, "isSimple", SQUARE_WEST).toPython() is True

    def test_boundary_of_point(self, evaluator, milan_wkt):
        assert str(evaluate(evaluator, "boundary", milan_wkt)) == "GEOMETRYCOLLECTION EMPTY"

    def test_boundary_of_polygon(self, evaluator):
        assert str(evaluate(evaluator, "boundary", SQUARE_WEST)).startswith("LINESTRING")

    def test_union(self, evaluator):
        result = read_wkt(str(evaluate(evaluator, "union", SQUARE_WEST, SQUARE_EAST)))

        assert result.geom_type == "Polygon"
        assert abs(result.bounds[0] - 9.0) < 1e-6
        assert abs(result.bounds[2] - 9.2) < 1e-6

    def test_envelope(self, evaluator):
        line = wkt("LINESTRING (9.0 45.0, 9.2 45.1)")

        assert str(evaluate(evaluator, "envelope", line)).startswith("POLYGON")


class TestTopologicalRelations:
    """Tests for Simple Features, Egenhofer, RCC8 and relate predicates."""

    @pytest.mark.parametrize("function", ["sfTouches", "ehMeet", "rcc8ec"])
    def test_adjacent_squares(self, evaluator, function):
        assert evaluate(evaluator, function, SQUARE_WEST, SQUARE_EAST).toPython() is True

    @pytest.mark.parametrize("function", ["sfOverlaps", "ehOverlap", "rcc8po", "ehDisjoint", "rcc8dc"])
    def test_adjacent_squares_negative(self, evaluator, function):
        assert evaluate(evaluator, function, SQUARE_WEST, SQUARE_EAST).toPython() is False

    @pytest.mark.parametrize("function", ["sfWithin", "ehInside", "rcc8ntpp"])
    def test_small_inside_big(self, evaluator, function):
        assert evaluate(evaluator, function, SMALL_SQUARE, BIG_SQUARE).toPython() is True

    @pytest.mark.parametrize("function", ["sfContains", "ehContains", "rcc8ntppi"])
    def test_big_contains_small(self, evaluator, function):
        assert evaluate(evaluator, function, BIG_SQUARE, SMALL_SQUARE).toPython() is True

    @pytest.mark.parametrize("function", ["sfEquals", "ehEquals", "rcc8eq"])
    def test_equal_geometries(self, evaluator, function):
        assert evaluate(evaluator, function, SQUARE_WEST, SQUARE_WEST).toPython() is True

    def test_covered_by_touching_inner_square(self, evaluator):
        """A square sharing an edge with its container is covered but not inside."""
        assert evaluate(evaluator, "ehCoveredBy", EDGE_SQUARE, BIG_SQUARE).toPython() is True
        assert evaluate(evaluator, "rcc8tpp", EDGE_SQUARE, BIG_SQUARE).toPython() is True
        assert evaluate(evaluator, "ehInside", EDGE_SQUARE, BIG_SQUARE).toPython() is False
        assert evaluate(evaluator, "ehCovers", BIG_SQUARE, EDGE_SQUARE).toPython() is True

    def test_relate_pattern(self, evaluator):
        assert evaluate(evaluator, "relate", SMALL_SQUARE, BIG_SQUARE, pattern="T*F**F***").toPython() is True
        assert evaluate(evaluator, "relate", BIG_SQUARE, SMALL_SQUARE, pattern="T*F**F***").toPython() is False
