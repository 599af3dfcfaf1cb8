"""
Domain models for features, coordinate systems and paired geometries.

Projection frames are plain value objects; a geometry is only ever stored
together with its projected form and the frame it was projected into.
"""
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from rdflib import Literal
from shapely.geometry.base import BaseGeometry

from geoengine.domain.vocabulary import GEO


class GeographicPoint(BaseModel):
    """WGS84 position in degrees, longitude first."""
    model_config = ConfigDict(frozen=True)

    longitude: float = Field(ge=-180.0, le=180.0, description="Longitude in degrees")
    latitude: float = Field(ge=-90.0, le=90.0, description="Latitude in degrees")

    @classmethod
    def of(cls, longitude: float, latitude: float) -> "GeographicPoint":
        return cls(longitude=longitude, latitude=latitude)

    def as_tuple(self) -> tuple[float, float]:
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class UTMZone:
    """Universal Transverse Mercator zone with its hemisphere."""
    zone: int
    north: bool = True

    def __post_init__(self):
        if not 1 <= self.zone <= 60:
            raise ValueError(f"UTM zone must be within 1..60, got {self.zone}")

    @property
    def epsg(self) -> int:
        # Northern hemisphere: EPSG:326XX, Southern hemisphere: EPSG:327XX
        return (32600 if self.north else 32700) + self.zone

    @property
    def srs(self) -> str:
        return f"EPSG:{self.epsg}"

    def __str__(self) -> str:
        return f"UTM {self.zone}{'N' if self.north else 'S'}"


@dataclass(frozen=True)
class EqualAreaFallback:
    """
    Fixed global equal-area CRS used when a geometry does not fit a single UTM zone.

    EASE-Grid 2.0 Global is true to scale along the 30th parallels; east-west
    distances stretch by about 4% at 34 degrees and shrink by about 13% at
    the equator.
    """
    epsg: int = 6933

    @property
    def srs(self) -> str:
        return f"EPSG:{self.epsg}"

    def __str__(self) -> str:
        return f"Equal-area fallback ({self.srs})"


CRSDescriptor = Union[UTMZone, EqualAreaFallback]


@dataclass(frozen=True)
class GeometryPair:
    """
    A geometry held in both WGS84 and the planar CRS selected for it.

    Both members are built together by ``project_pair`` and are never
    observed apart.
    """
    wgs84: BaseGeometry
    projected: BaseGeometry
    crs: CRSDescriptor


class RegisteredGeometry(NamedTuple):
    """One registry entry as seen by scans over every declared geometry."""
    entity_id: str
    wgs84: BaseGeometry
    projected: BaseGeometry
    crs: CRSDescriptor


@dataclass
class FeatureGeometrySet:
    """Geometries attached to a single feature."""
    default: Optional[GeometryPair] = None
    secondaries: List[GeometryPair] = field(default_factory=list)

    def all(self) -> List[GeometryPair]:
        """Default geometry first (when present), then secondaries in order."""
        pairs = [self.default] if self.default is not None else []
        pairs.extend(self.secondaries)
        return pairs

    def representative(self) -> Optional[GeometryPair]:
        """Default geometry, or the first secondary when no default exists."""
        if self.default is not None:
            return self.default
        return self.secondaries[0] if self.secondaries else None

    def is_empty(self) -> bool:
        return self.default is None and not self.secondaries


@dataclass(frozen=True)
class GeometryResult:
    """A computed WGS84 geometry together with its WKT rendering."""
    geometry: BaseGeometry
    wkt: str

    @property
    def literal(self) -> Literal:
        return Literal(self.wkt, datatype=GEO.wktLiteral)
