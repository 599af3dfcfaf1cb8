"""
Domain service: in-memory registry of feature geometries.

Each feature holds at most one default geometry and any number of secondary
geometries, every one stored as a WGS84/projected pair. Entries are only ever
inserted; a second default for the same feature is ignored.
"""
import logging
from typing import Dict, Iterator, List, Optional

from geoengine.domain.models import (
    FeatureGeometrySet,
    GeometryPair,
    RegisteredGeometry,
)

logger = logging.getLogger(__name__)


class SpatialFeatureRegistry:
    """
    Registry mapping feature identifiers to their geometry pairs.

    Not thread-safe: callers serialise writes (see ``GeoService``).
    Iteration follows declaration order.
    """

    def __init__(self):
        self._features: Dict[str, FeatureGeometrySet] = {}

    def declare(self, entity_id: str, pair: GeometryPair, is_default: bool = True) -> bool:
        """
        Attach a geometry to a feature if not already present.

        Args:
            entity_id: Feature identifier
            pair: WGS84/projected geometry pair
            is_default: Whether the geometry is the feature's default one

        Returns:
            True if the geometry was stored, False if it was dropped
            (a default already exists, or this very pair is already attached)
        """
        geometry_set = self._features.get(entity_id)
        if geometry_set is None:
            geometry_set = self._features[entity_id] = FeatureGeometrySet()

        if any(existing is pair for existing in geometry_set.all()):
            return False

        if is_default:
            if geometry_set.default is not None:
                logger.debug(f"Feature '{entity_id}' already has a default geometry, ignoring")
                return False
            geometry_set.default = pair
        else:
            geometry_set.secondaries.append(pair)
        return True

    def default_of(self, entity_id: str) -> Optional[GeometryPair]:
        geometry_set = self._features.get(entity_id)
        return geometry_set.default if geometry_set else None

    def secondaries_of(self, entity_id: str) -> List[GeometryPair]:
        geometry_set = self._features.get(entity_id)
        return list(geometry_set.secondaries) if geometry_set else []

    def geometries_of(self, entity_id: str) -> List[GeometryPair]:
        """Default geometry first, then secondaries; empty for unknown features."""
        geometry_set = self._features.get(entity_id)
        return geometry_set.all() if geometry_set else []

    def representative_of(self, entity_id: str) -> Optional[GeometryPair]:
        """Default geometry, falling back to the first secondary."""
        geometry_set = self._features.get(entity_id)
        return geometry_set.representative() if geometry_set else None

    def all_with_geometry(self) -> List[RegisteredGeometry]:
        """
        Flatten the registry into one entry per declared geometry.

        Returns:
            Entries grouped by feature in declaration order, each feature's
            default first, then its secondaries
        """
        return [
            RegisteredGeometry(entity_id, pair.wgs84, pair.projected, pair.crs)
            for entity_id, geometry_set in self._features.items()
            for pair in geometry_set.all()
        ]

    def entity_ids(self) -> List[str]:
        return [
            entity_id
            for entity_id, geometry_set in self._features.items()
            if not geometry_set.is_empty()
        ]

    def __contains__(self, entity_id: object) -> bool:
        geometry_set = self._features.get(entity_id)
        return geometry_set is not None and not geometry_set.is_empty()

    def __len__(self) -> int:
        return len(self.entity_ids())

    def __iter__(self) -> Iterator[str]:
        return iter(self.entity_ids())
