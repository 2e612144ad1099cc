from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # App Settings
    app_name: str = "Award Route Builder"
    env: str = "development"
    log_level: str = "INFO"

    # Award data backend (availability + trip details)
    award_api_base_url: str = "http://localhost:8080/api"
    award_api_key: str = ""  # Can also be sent per request as Partner-Authorization
    request_timeout: float = 15.0
    max_retries: int = 3

    # Trust policy
    source_priority: List[str] = ["united", "velocity", "lufthansa", "aeroplan"]
    trust_policy_path: Optional[str] = None  # JSON rule table, built-in table when unset

    # Reference data (bundled files when unset)
    airports_path: Optional[str] = None
    pricing_path: Optional[str] = None
    default_segment_distance: int = 1000

    # Search limits
    max_itineraries: int = 5000
    max_search_days: int = 31

    # CORS
    cors_origins: str = ""  # Comma-separated production origins

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
