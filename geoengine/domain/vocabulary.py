"""
GeoSPARQL vocabulary constants.

Centralizes function, datatype, unit and CRS URIs so that expressions,
literals and API responses all render them from the same table.
"""
from rdflib import Namespace, URIRef
from rdflib.namespace import GEO, XSD

GEOF = Namespace("http://www.opengis.net/def/function/geosparql/")
UOM = Namespace("http://www.opengis.net/def/uom/OGC/1.0/")
EPSG_CRS = Namespace("http://www.opengis.net/def/crs/EPSG/0/")
OGC_CRS = Namespace("http://www.opengis.net/def/crs/OGC/1.3/")

GML_NAMESPACE = "http://www.opengis.net/gml"

WGS84_EPSG = 4326
CRS84 = OGC_CRS["CRS84"]
METRE = UOM["metre"]

GEO_LITERAL_TYPES = frozenset({GEO.wktLiteral, GEO.gmlLiteral})


class GeoPrefixes:
    """Prefix table used when rendering URIs in compact form."""

    BINDINGS = {
        "geof": str(GEOF),
        "geo": str(GEO),
        "uom": str(UOM),
        "xsd": str(XSD),
    }

    @classmethod
    def compact(cls, uri: URIRef) -> str:
        """
        Render a URI as ``prefix:name`` when a bound namespace covers it.

        Args:
            uri: URI to render

        Returns:
            Prefixed name, or the URI in angle brackets when no prefix applies
        """
        text = str(uri)
        for prefix, namespace in cls.BINDINGS.items():
            if text.startswith(namespace) and len(text) > len(namespace):
                return f"{prefix}:{text[len(namespace):]}"
        return f"<{text}>"


def crs_uri(epsg: int) -> URIRef:
    """URI of an EPSG coordinate reference system."""
    return EPSG_CRS[str(epsg)]
