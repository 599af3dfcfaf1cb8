"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample city coordinates
- A GeoService populated with Italian cities
- Geographic literals
- FastAPI test client wired to an isolated GeoService
"""
import os

# Keep the whole suite under the per-client rate limit
os.environ.setdefault("RATE_LIMIT_REQUESTS", "1000")

import pytest
from fastapi.testclient import TestClient
from rdflib import Literal
from rdflib.namespace import GEO

from geoengine.main import app
from geoengine.api.dependencies import get_geo_service
from geoengine.services.application.geo_service import GeoService


# ============================================================
# Sample Data Fixtures
# ============================================================

MILAN = (9.188540, 45.464664)
MILAN_SECONDARY = (9.191934556314395, 45.46420722396936)
ROME = (12.496365, 41.902782)
ROME_SECONDARY = (12.492218708798534, 41.8903301420294)
TIVOLI = (12.799386614751448, 41.9621771776109)
NAPLES = (14.2681244, 40.8517746)


def wkt(text: str) -> Literal:
    """Build a geo:wktLiteral."""
    return Literal(text, datatype=GEO.wktLiteral)


def gml(text: str) -> Literal:
    """Build a geo:gmlLiteral."""
    return Literal(text, datatype=GEO.gmlLiteral)


@pytest.fixture
def geo_service() -> GeoService:
    """Create an empty GeoService."""
    return GeoService()


@pytest.fixture
def cities_service() -> GeoService:
    """Create a GeoService with Milan, Rome, Tivoli and Naples declared."""
    service = GeoService()
    service.declare_point("milan", *MILAN)
    service.declare_point("milan", *MILAN_SECONDARY, is_default=False)
    service.declare_point("rome", *ROME)
    service.declare_point("rome", *ROME_SECONDARY, is_default=False)
    service.declare_point("tivoli", *TIVOLI)
    service.declare_point("naples", *NAPLES)
    return service


@pytest.fixture
def milan_wkt() -> Literal:
    return wkt("POINT (9.18854 45.464664)")


@pytest.fixture
def rome_wkt() -> Literal:
    return wkt("POINT (12.496365 41.902782)")


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)


@pytest.fixture
def api_client(cities_service):
    """Test client whose routes use the populated cities service."""
    app.dependency_overrides[get_geo_service] = lambda: cities_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
