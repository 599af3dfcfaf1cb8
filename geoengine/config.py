"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Projection Configuration
    coordinate_precision: int = Field(
        default=8,
        description="Decimal digits kept on every projected or unprojected coordinate"
    )
    fallback_epsg: int = Field(
        default=6933,
        description="EPSG code of the global equal-area CRS used when geometries span UTM zones "
                    "(6933: WGS 84 / NSIDC EASE-Grid 2.0 Global)"
    )
    boundary_ring_as_linestring: bool = Field(
        default=True,
        description="Render boundary rings as LINESTRING instead of LINEARRING"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="GeoEngine Spatial Analysis API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
