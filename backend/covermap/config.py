"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

# Census Bureau generalized state boundaries (layer 0 = States)
TIGERWEB_STATES_URL = (
    "https://tigerweb.geo.census.gov/arcgis/rest/services/TIGERweb/State_County/MapServer/0"
)


class Settings(BaseSettings):
    covermap_env: str = "development"
    covermap_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Boundary source
    boundary_service_url: str = TIGERWEB_STATES_URL

    # Live analysis
    boundary_timeout_s: float = 25.0
    query_timeout_s: float = 10.0
    live_concurrency: int = 4
    live_buffer_km: float = -2.0
    live_max_allowable_offset: float = 0.05

    # Offline precomputation
    offline_boundary_timeout_s: float = 30.0
    offline_query_timeout_s: float = 15.0
    offline_dataset_concurrency: int = 2
    offline_region_concurrency: int = 4
    offline_max_retries: int = 2
    offline_retry_delay_s: float = 2.0
    offline_max_allowable_offset: float = 0.1
    # Unset: counts are unbuffered, matching historical precomputed records
    offline_buffer_km: float | None = None

    # Persistence
    catalog_path: str = "data/catalog.json"
    coverage_store_path: str = "data/coverage.json"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
