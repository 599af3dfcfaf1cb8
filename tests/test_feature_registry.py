"""
Unit tests for the feature geometry registry.
"""
import pytest
from shapely.geometry import LineString, Point

from geoengine.services.domain.feature_registry import SpatialFeatureRegistry
from geoengine.utils.geo_projection import project_pair

from conftest import MILAN, MILAN_SECONDARY, ROME


@pytest.fixture
def registry() -> SpatialFeatureRegistry:
    return SpatialFeatureRegistry()


class TestDeclare:
    """Tests for insert-if-absent declarations."""

    def test_first_default_is_stored(self, registry):
        pair = project_pair(Point(MILAN))

        assert registry.declare("milan", pair) is True
        assert registry.default_of("milan") is pair

    def test_second_default_is_dropped(self, registry):
        """First writer wins for the default geometry."""
        first = project_pair(Point(MILAN))
        second = project_pair(Point(MILAN_SECONDARY))

        registry.declare("milan", first)

        assert registry.declare("milan", second) is False
        assert registry.default_of("milan") is first
        assert registry.secondaries_of("milan") == []

    def test_secondaries_accumulate(self, registry):
        first = project_pair(Point(MILAN_SECONDARY))
        second = project_pair(LineString([MILAN, MILAN_SECONDARY]))

        assert registry.declare("milan", first, is_default=False)
        assert registry.declare("milan", second, is_default=False)
        assert registry.secondaries_of("milan") == [first, second]

    def test_same_pair_is_not_attached_twice(self, registry):
        pair = project_pair(Point(MILAN_SECONDARY))

        registry.declare("milan", pair, is_default=False)

        assert registry.declare("milan", pair, is_default=False) is False
        assert len(registry.secondaries_of("milan")) == 1


class TestLookups:
    """Tests for registry reads."""

    def test_geometries_default_first(self, registry):
        secondary = project_pair(Point(MILAN_SECONDARY))
        default = project_pair(Point(MILAN))
        registry.declare("milan", secondary, is_default=False)
        registry.declare("milan", default)

        assert registry.geometries_of("milan") == [default, secondary]

    def test_representative_falls_back_to_first_secondary(self, registry):
        secondary = project_pair(Point(MILAN_SECONDARY))
        registry.declare("milan", secondary, is_default=False)

        assert registry.default_of("milan") is None
        assert registry.representative_of("milan") is secondary

    def test_unknown_feature(self, registry):
        """Unknown features behave as having no geometry."""
        assert registry.default_of("atlantis") is None
        assert registry.secondaries_of("atlantis") == []
        assert registry.geometries_of("atlantis") == []
        assert registry.representative_of("atlantis") is None
        assert "atlantis" not in registry

    def test_all_with_geometry_order(self, registry):
        """Entries are grouped by feature in declaration order, default first."""
        registry.declare("milan", project_pair(Point(MILAN_SECONDARY)), is_default=False)
        registry.declare("rome", project_pair(Point(ROME)))
        registry.declare("milan", project_pair(Point(MILAN)))

        entries = registry.all_with_geometry()

        assert [e.entity_id for e in entries] == ["milan", "milan", "rome"]
        assert entries[0].wgs84.equals(Point(MILAN))
        assert entries[1].wgs84.equals(Point(MILAN_SECONDARY))
        entity_id, wgs84, projected, crs = entries[2]
        assert entity_id == "rome"
        assert crs.epsg == 32633

    def test_membership_and_size(self, registry):
        registry.declare("milan", project_pair(Point(MILAN)))
        registry.declare("rome", project_pair(Point(ROME)))

        assert "milan" in registry
        assert len(registry) == 2
        assert registry.entity_ids() == ["milan", "rome"]
        assert list(registry) == ["milan", "rome"]
