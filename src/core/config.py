from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    nominatim_url: str = Field("https://nominatim.openstreetmap.org")
    nominatim_user_agent: str = Field("RusunawaApp/1.0 (contact@rusunawa.com)")

    # Forward lookups are scoped to one country
    country_codes: str = Field("id")
    query_suffix: str = Field("Indonesia")

    # Campus reference point for distance display
    campus_lat: float = Field(-6.371355292523935, ge=-90, le=90)
    campus_lng: float = Field(106.82418567314572, ge=-180, le=180)

    # Lookup policy
    min_address_length: int = Field(10, ge=1)
    rate_limit_interval_ms: int = Field(2000, ge=0)
    max_retries: int = Field(2, ge=0)
    base_timeout_ms: int = Field(15000, gt=0)
    timeout_step_ms: int = Field(5000, ge=0)
    backoff_step_ms: int = Field(2000, ge=0)
    suppression_window_ms: int = Field(100, ge=0)
    drop_stale_results: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )


settings = Settings()
