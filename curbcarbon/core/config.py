from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./curbcarbon.db"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "chrome-extension://abcdef,https://dashboard.example.com"
    CORS_ORIGINS: str = "*"

    # ── Grid intensity (Electricity Maps) ────────────────────────────────
    # Used only when no token has been stored via PUT /settings/grid-token.
    ELECTRICITY_MAPS_TOKEN: str = ""
    ELECTRICITY_MAPS_URL: str = "https://api.electricitymaps.com/v3/carbon-intensity/latest"
    GRID_FALLBACK_ZONE: str = "US"
    GRID_INTENSITY_TTL_SECONDS: int = 600
    GRID_FETCH_TIMEOUT_SECONDS: float = 10.0

    # ── Location ─────────────────────────────────────────────────────────
    LOCATION_FRESH_SECONDS: int = 1800
    LOCATION_TIMEOUT_SECONDS: float = 8.0
    GEOLOCATION_URL: str = "https://ipapi.co/json/"
    GEOCODING_URL: str = "https://nominatim.openstreetmap.org/reverse"

    # ── Device ───────────────────────────────────────────────────────────
    DEFAULT_DEVICE_TYPE: str = "laptop"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
