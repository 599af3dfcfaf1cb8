"""
The closed set of GeoSPARQL functions understood by the expression evaluator.

Each operation carries its arity and the kind of value it produces; the
Egenhofer and RCC8 families are expressed as DE-9IM intersection patterns.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from rdflib import URIRef

from geoengine.domain.vocabulary import GEOF


class ResultKind(str, Enum):
    """Datatype family of an operation result."""
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    INTEGER = "integer"
    GEOMETRY = "geometry"
    URI = "uri"


class GeoOperation(str, Enum):
    """GeoSPARQL function names (local part of the ``geof:`` URI)."""
    BUFFER = "buffer"
    DISTANCE = "distance"

    SF_INTERSECTS = "sfIntersects"
    SF_CROSSES = "sfCrosses"
    SF_TOUCHES = "sfTouches"
    SF_CONTAINS = "sfContains"
    SF_DISJOINT = "sfDisjoint"
    SF_EQUALS = "sfEquals"
    SF_OVERLAPS = "sfOverlaps"
    SF_WITHIN = "sfWithin"

    UNION = "union"
    INTERSECTION = "intersection"
    DIFFERENCE = "difference"
    SYM_DIFFERENCE = "symDifference"

    CONVEX_HULL = "convexHull"
    ENVELOPE = "envelope"
    BOUNDARY = "boundary"
    CENTROID = "centroid"
    DIMENSION = "dimension"
    IS_SIMPLE = "isSimple"
    IS_EMPTY = "isEmpty"
    GET_SRID = "getSRID"

    EH_EQUALS = "ehEquals"
    EH_DISJOINT = "ehDisjoint"
    EH_MEET = "ehMeet"
    EH_OVERLAP = "ehOverlap"
    EH_COVERS = "ehCovers"
    EH_COVERED_BY = "ehCoveredBy"
    EH_INSIDE = "ehInside"
    EH_CONTAINS = "ehContains"

    RCC8_EQ = "rcc8eq"
    RCC8_DC = "rcc8dc"
    RCC8_EC = "rcc8ec"
    RCC8_PO = "rcc8po"
    RCC8_TPPI = "rcc8tppi"
    RCC8_TPP = "rcc8tpp"
    RCC8_NTPP = "rcc8ntpp"
    RCC8_NTPPI = "rcc8ntppi"

    RELATE = "relate"

    @property
    def uri(self) -> URIRef:
        return GEOF[self.value]

    @property
    def signature(self) -> "OperationSignature":
        return OPERATION_SIGNATURES[self]

    @property
    def arity(self) -> int:
        return self.signature.arity

    @property
    def result_kind(self) -> ResultKind:
        return self.signature.result_kind

    @classmethod
    def from_name(cls, name: str) -> "GeoOperation":
        """
        Look up an operation by local name, prefixed name or full URI.

        Args:
            name: ``sfIntersects``, ``geof:sfIntersects`` or the full function URI

        Returns:
            The matching operation

        Raises:
            ValueError: If the name does not denote a known operation
        """
        local = name.strip()
        if local.startswith("<") and local.endswith(">"):
            local = local[1:-1]
        if local.startswith(str(GEOF)):
            local = local[len(str(GEOF)):]
        elif local.startswith("geof:"):
            local = local[len("geof:"):]
        for operation in cls:
            if operation.value == local:
                return operation
        raise ValueError(f"Unknown GeoSPARQL function: {name}")


@dataclass(frozen=True)
class OperationSignature:
    """Arity and result kind of an operation."""
    arity: int
    result_kind: ResultKind


_BINARY_BOOLEAN = OperationSignature(2, ResultKind.BOOLEAN)
_BINARY_GEOMETRY = OperationSignature(2, ResultKind.GEOMETRY)
_UNARY_GEOMETRY = OperationSignature(1, ResultKind.GEOMETRY)

OPERATION_SIGNATURES: Dict[GeoOperation, OperationSignature] = {
    GeoOperation.BUFFER: _UNARY_GEOMETRY,
    GeoOperation.DISTANCE: OperationSignature(2, ResultKind.NUMERIC),
    GeoOperation.UNION: _BINARY_GEOMETRY,
    GeoOperation.INTERSECTION: _BINARY_GEOMETRY,
    GeoOperation.DIFFERENCE: _BINARY_GEOMETRY,
    GeoOperation.SYM_DIFFERENCE: _BINARY_GEOMETRY,
    GeoOperation.CONVEX_HULL: _UNARY_GEOMETRY,
    GeoOperation.ENVELOPE: _UNARY_GEOMETRY,
    GeoOperation.BOUNDARY: _UNARY_GEOMETRY,
    GeoOperation.CENTROID: _UNARY_GEOMETRY,
    GeoOperation.DIMENSION: OperationSignature(1, ResultKind.INTEGER),
    GeoOperation.IS_SIMPLE: OperationSignature(1, ResultKind.BOOLEAN),
    GeoOperation.IS_EMPTY: OperationSignature(1, ResultKind.BOOLEAN),
    GeoOperation.GET_SRID: OperationSignature(1, ResultKind.URI),
}
OPERATION_SIGNATURES.update({
    operation: _BINARY_BOOLEAN
    for operation in GeoOperation
    if operation not in OPERATION_SIGNATURES
})


# DE-9IM patterns for the Egenhofer and RCC8 relation families.
# A relation holds when any of its patterns matches.
RELATION_PATTERNS: Dict[GeoOperation, Tuple[str, ...]] = {
    GeoOperation.EH_EQUALS: ("TFFFTFFFT",),
    GeoOperation.EH_DISJOINT: ("FF*FF****",),
    GeoOperation.EH_MEET: ("FT*******", "F**T*****", "F***T****"),
    GeoOperation.EH_OVERLAP: ("T*T***T**",),
    GeoOperation.EH_COVERS: ("T*TFT*FF*",),
    GeoOperation.EH_COVERED_BY: ("TFF*TFT**",),
    GeoOperation.EH_INSIDE: ("TFF*FFT**",),
    GeoOperation.EH_CONTAINS: ("T*TFF*FF*",),
    GeoOperation.RCC8_EQ: ("TFFFTFFFT",),
    GeoOperation.RCC8_DC: ("FFTFFTTTT",),
    GeoOperation.RCC8_EC: ("FFTFTTTTT",),
    GeoOperation.RCC8_PO: ("TTTTTTTTT",),
    GeoOperation.RCC8_TPPI: ("TTTFTTFFT",),
    GeoOperation.RCC8_TPP: ("TFFTTFTTT",),
    GeoOperation.RCC8_NTPP: ("TFFTFFTTT",),
    GeoOperation.RCC8_NTPPI: ("TTTFFTFFT",),
}
