"""
Text encodings for geometries: WKT, GML 3 and GeoSPARQL typed literals.

WKT goes through ``shapely.wkt``; GML is read and written with
``xml.etree.ElementTree``. Coordinates are always (longitude, latitude).
"""
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple
from xml.etree import ElementTree as ET

import shapely
import shapely.wkt
from rdflib import Literal, URIRef
from rdflib.namespace import GEO
from rdflib.term import Node
from shapely.errors import ShapelyError
from shapely.geometry import (
    GeometryCollection,
    LinearRing,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)
from shapely.geometry.base import BaseGeometry

from geoengine.config import settings
from geoengine.domain.exceptions import GeometryParseError
from geoengine.domain.vocabulary import (
    CRS84,
    GEO_LITERAL_TYPES,
    GML_NAMESPACE,
    WGS84_EPSG,
    GeoPrefixes,
    crs_uri,
)

logger = logging.getLogger(__name__)

ET.register_namespace("gml", GML_NAMESPACE)

_CRS_PREFIX = re.compile(r"^\s*<([^>]*)>\s*(.*)$", re.DOTALL)
_TYPED_VALUE = re.compile(r"^(.*)\^\^<?([^<>]+)>?$", re.DOTALL)
_SUPPORTED_CRS = {str(CRS84), str(crs_uri(WGS84_EPSG))}


# ============================================================
# WKT
# ============================================================

def read_wkt(text: str) -> BaseGeometry:
    """
    Parse WKT text, optionally prefixed by a WGS84 CRS IRI.

    Args:
        text: WKT such as ``POINT (9.18854 45.464664)``

    Returns:
        Parsed geometry

    Raises:
        GeometryParseError: If the text is not valid WKT or names another CRS
    """
    match = _CRS_PREFIX.match(text)
    if match:
        crs, text = match.groups()
        if crs not in _SUPPORTED_CRS:
            raise GeometryParseError(f"Unsupported CRS in WKT literal: {crs}")
    try:
        return shapely.wkt.loads(text)
    except (ShapelyError, TypeError, AttributeError) as e:
        raise GeometryParseError(f"Invalid WKT: {text!r}") from e


def write_wkt(geometry: BaseGeometry) -> str:
    """Render a geometry as WKT, rounded to the configured precision."""
    return shapely.to_wkt(
        geometry,
        rounding_precision=settings.coordinate_precision,
        trim=True,
    )


def write_boundary_wkt(geometry: BaseGeometry) -> str:
    """Render a boundary geometry, reporting closed rings as line strings."""
    text = write_wkt(geometry)
    if settings.boundary_ring_as_linestring:
        text = text.replace("LINEARRING", "LINESTRING")
    return text


# ============================================================
# GML
# ============================================================

def _gml(tag: str) -> str:
    return f"{{{GML_NAMESPACE}}}{tag}"


def _local_name(element: ET.Element) -> str:
    return element.tag.rsplit("}", 1)[-1]


def _format_ordinate(value: float) -> str:
    return repr(round(float(value), settings.coordinate_precision))


def _format_positions(coordinates) -> str:
    return " ".join(
        f"{_format_ordinate(x)} {_format_ordinate(y)}"
        for x, y in ((c[0], c[1]) for c in coordinates)
    )


def _ring_element(parent: ET.Element, tag: str, ring: LinearRing) -> None:
    holder = ET.SubElement(parent, _gml(tag))
    linear_ring = ET.SubElement(holder, _gml("LinearRing"))
    ET.SubElement(linear_ring, _gml("posList")).text = _format_positions(ring.coords)


def _point_element(point: Point) -> ET.Element:
    element = ET.Element(_gml("Point"))
    if not point.is_empty:
        ET.SubElement(element, _gml("pos")).text = _format_positions(point.coords)
    return element


def _curve_element(line: LineString) -> ET.Element:
    tag = "LinearRing" if line.geom_type == "LinearRing" else "LineString"
    element = ET.Element(_gml(tag))
    if not line.is_empty:
        ET.SubElement(element, _gml("posList")).text = _format_positions(line.coords)
    return element


def _polygon_element(polygon: Polygon) -> ET.Element:
    element = ET.Element(_gml("Polygon"))
    if not polygon.is_empty:
        _ring_element(element, "exterior", polygon.exterior)
        for interior in polygon.interiors:
            _ring_element(element, "interior", interior)
    return element


def _collection_element(tag: str, member_tag: str, collection) -> ET.Element:
    element = ET.Element(_gml(tag))
    for part in collection.geoms:
        member = ET.SubElement(element, _gml(member_tag))
        member.append(_to_gml_element(part))
    return element


_GML_WRITERS: Dict[str, Callable[[BaseGeometry], ET.Element]] = {
    "Point": _point_element,
    "LineString": _curve_element,
    "LinearRing": _curve_element,
    "Polygon": _polygon_element,
    "MultiPoint": lambda g: _collection_element("MultiPoint", "pointMember", g),
    "MultiLineString": lambda g: _collection_element("MultiCurve", "curveMember", g),
    "MultiPolygon": lambda g: _collection_element("MultiSurface", "surfaceMember", g),
    "GeometryCollection": lambda g: _collection_element("MultiGeometry", "geometryMember", g),
}


def _to_gml_element(geometry: BaseGeometry) -> ET.Element:
    writer = _GML_WRITERS.get(geometry.geom_type)
    if writer is None:
        raise GeometryParseError(f"Cannot encode {geometry.geom_type} as GML")
    return writer(geometry)


def write_gml(geometry: BaseGeometry) -> str:
    """
    Render a geometry as a GML 3 fragment.

    Args:
        geometry: Geometry to encode

    Returns:
        XML text rooted at the geometry element, e.g.
        ``<gml:Point xmlns:gml="http://www.opengis.net/gml"><gml:pos>9.18854 45.464664</gml:pos></gml:Point>``
    """
    return ET.tostring(_to_gml_element(geometry), encoding="unicode")


def _parse_ordinates(text: str) -> List[float]:
    return [float(token) for token in text.split()]


def _pairs(values: List[float], dimension: int = 2) -> List[Tuple[float, float]]:
    if dimension < 2 or len(values) % dimension:
        raise GeometryParseError(
            f"Coordinate list of length {len(values)} does not match dimension {dimension}"
        )
    return [(values[i], values[i + 1]) for i in range(0, len(values), dimension)]


def _element_coordinates(element: ET.Element) -> List[Tuple[float, float]]:
    """Collect the positions held directly by a Point, LineString or LinearRing."""
    coordinates: List[Tuple[float, float]] = []
    for child in element:
        name = _local_name(child)
        text = (child.text or "").strip()
        if name == "pos":
            dimension = int(child.get("srsDimension", child.get("dimension", 2)))
            coordinates.extend(_pairs(_parse_ordinates(text), dimension)[:1])
        elif name == "posList":
            dimension = int(child.get("srsDimension", child.get("dimension", 2)))
            coordinates.extend(_pairs(_parse_ordinates(text), dimension))
        elif name == "coordinates":
            decimal = child.get("decimal", ".")
            cs = child.get("cs", ",")
            ts = child.get("ts", " ")
            for token in (t for t in text.split(ts if ts.strip() else None) if t):
                values = [float(v.replace(decimal, ".")) for v in token.split(cs)]
                coordinates.append((values[0], values[1]))
        elif name == "coord":
            values = {_local_name(c): float(c.text) for c in child}
            coordinates.append((values["X"], values["Y"]))
        elif name == "pointProperty":
            for point in child:
                coordinates.extend(_element_coordinates(point))
    return coordinates


def _ring_coordinates(holder: ET.Element) -> List[Tuple[float, float]]:
    for ring in holder:
        if _local_name(ring) == "LinearRing":
            return _element_coordinates(ring)
    raise GeometryParseError(f"<{_local_name(holder)}> has no LinearRing")


def _members(element: ET.Element) -> List[BaseGeometry]:
    members = []
    for child in element:
        if _local_name(child).endswith(("Member", "Members")):
            members.extend(_from_gml_element(part) for part in child)
    return members


def _read_polygon(element: ET.Element) -> Polygon:
    shell = None
    holes = []
    for child in element:
        name = _local_name(child)
        if name in ("exterior", "outerBoundaryIs"):
            shell = _ring_coordinates(child)
        elif name in ("interior", "innerBoundaryIs"):
            holes.append(_ring_coordinates(child))
    if shell is None:
        return Polygon()
    return Polygon(shell, holes)


def _read_point(element: ET.Element) -> Point:
    coordinates = _element_coordinates(element)
    return Point(coordinates[0]) if coordinates else Point()


_GML_READERS: Dict[str, Callable[[ET.Element], BaseGeometry]] = {
    "Point": _read_point,
    "LineString": lambda e: LineString(_element_coordinates(e)),
    "LinearRing": lambda e: LinearRing(_element_coordinates(e)),
    "Polygon": _read_polygon,
    "MultiPoint": lambda e: MultiPoint(_members(e)),
    "MultiCurve": lambda e: MultiLineString(_members(e)),
    "MultiLineString": lambda e: MultiLineString(_members(e)),
    "MultiSurface": lambda e: MultiPolygon(_members(e)),
    "MultiPolygon": lambda e: MultiPolygon(_members(e)),
    "MultiGeometry": lambda e: GeometryCollection(_members(e)),
}


def _from_gml_element(element: ET.Element) -> BaseGeometry:
    reader = _GML_READERS.get(_local_name(element))
    if reader is None:
        raise GeometryParseError(f"Unsupported GML element <{_local_name(element)}>")
    return reader(element)


def read_gml(text: str) -> BaseGeometry:
    """
    Parse a GML geometry fragment.

    Accepts GML 3 (``pos``/``posList``) and legacy GML 2 (``coordinates``)
    encodings of points, curves, surfaces and their collections.

    Args:
        text: XML text rooted at a geometry element

    Returns:
        Parsed geometry

    Raises:
        GeometryParseError: If the text is not well-formed or not a geometry
    """
    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as e:
        raise GeometryParseError(f"Invalid GML: {e}") from e

    try:
        return _from_gml_element(root)
    except GeometryParseError:
        raise
    except (ValueError, TypeError, KeyError, IndexError, ShapelyError) as e:
        logger.debug(f"Rejected GML geometry rooted at <{_local_name(root)}>: {e}")
        raise GeometryParseError(f"Invalid GML geometry: {e}") from e


# ============================================================
# GeoSPARQL literals
# ============================================================

def is_geo_literal(term: Any) -> bool:
    """Whether a term is a literal typed ``geo:wktLiteral`` or ``geo:gmlLiteral``."""
    return isinstance(term, Literal) and term.datatype in GEO_LITERAL_TYPES


def parse_geo_literal(term: Any) -> BaseGeometry:
    """
    Decode a GeoSPARQL literal into a WGS84 geometry.

    Args:
        term: rdflib literal typed ``geo:wktLiteral`` or ``geo:gmlLiteral``

    Returns:
        Parsed geometry

    Raises:
        GeometryParseError: If the term is not a geographic literal or its
            lexical form cannot be parsed
    """
    if not is_geo_literal(term):
        raise GeometryParseError(f"Not a geographic literal: {term!r}")
    if term.datatype == GEO.gmlLiteral:
        return read_gml(str(term))
    return read_wkt(str(term))


def wkt_literal(geometry: BaseGeometry) -> Literal:
    return Literal(write_wkt(geometry), datatype=GEO.wktLiteral)


def _expand(name: str) -> str:
    prefix, _, local = name.partition(":")
    namespace = GeoPrefixes.BINDINGS.get(prefix)
    return namespace + local if namespace else name


def coerce_term(value: Any) -> Optional[Node]:
    """
    Turn a bound row value into an rdflib term.

    Strings may carry a datatype as ``lexical^^<datatype>``; strings without
    one become plain literals.

    Args:
        value: rdflib term, string, or Python scalar

    Returns:
        rdflib term, or None when the value is unbound
    """
    if value is None:
        return None
    if isinstance(value, Node):
        return value
    if isinstance(value, str):
        match = _TYPED_VALUE.match(value)
        if match:
            lexical, datatype = match.groups()
            datatype = _expand(datatype)
            if len(lexical) >= 2 and lexical[0] == lexical[-1] == '"':
                lexical = lexical[1:-1]
            return Literal(lexical, datatype=URIRef(datatype))
        return Literal(value)
    return Literal(value)
