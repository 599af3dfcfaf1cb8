"""
Domain exceptions.

Hard failures (bad declarations, bad query arguments, malformed expressions)
are raised as ``ValueError`` subclasses so the HTTP layer can map them to 400.
Soft failures (unknown feature, unbound variable, unparsable operand) never
raise; they surface as ``None``.
"""


class GeoEngineError(Exception):
    """Base class for every error raised by the engine."""


class SpatialDeclarationError(GeoEngineError, ValueError):
    """A geometry declaration was rejected before touching the registry."""


class SpatialQueryError(GeoEngineError, ValueError):
    """A spatial query received invalid arguments."""


class ExpressionConstructionError(GeoEngineError, ValueError):
    """An expression node could not be built from its operands."""


class GeometryParseError(GeoEngineError, ValueError):
    """Text could not be decoded as a WKT or GML geometry."""
