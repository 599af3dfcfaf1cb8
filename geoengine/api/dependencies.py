"""
Dependency injection for FastAPI.
"""
from typing import Annotated, Optional

from fastapi import Depends

from geoengine.services.application.geo_service import GeoService


_geo_service: Optional[GeoService] = None


def get_geo_service() -> GeoService:
    """
    Dependency factory for the process-wide GeoService.

    The registry lives in memory, so every request shares one instance.

    Returns:
        GeoService instance
    """
    global _geo_service
    if _geo_service is None:
        _geo_service = GeoService()
    return _geo_service


# Type aliases for cleaner route signatures
GeoServiceDep = Annotated[GeoService, Depends(get_geo_service)]
