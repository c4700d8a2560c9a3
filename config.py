"""
Settings for the LEGO hub controller.

Values come from environment variables (case-insensitive) or a .env file in
the working directory; unknown keys are ignored.
"""
from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide configuration, see get_settings()."""

    # HTTP control API
    host: str = Field(default="0.0.0.0", description="Address the control API binds to")
    port: int = Field(default=8000, description="Port the control API listens on")
    api_keys: str = Field(default="", description="Comma-separated API keys accepted in X-API-Key")
    allowed_origins: str = Field(default="*", description="Comma-separated CORS origins")
    require_auth: bool = Field(default=True, description="Reject API requests without a valid key")

    # Logging
    log_level: str = Field(default="INFO", description="DEBUG shows every frame in and out")
    log_format: str = Field(default="json", description="json or text")
    log_file: Optional[str] = Field(default=None, description="Also log to this file")

    # BLE
    lego_service_uuid: str = Field(
        default="00001623-1212-efde-1623-785feabcd123",
        description="LEGO Wireless Protocol GATT service"
    )
    lego_char_uuid: str = Field(
        default="00001624-1212-efde-1623-785feabcd123",
        description="Characteristic carrying frames in both directions"
    )
    lego_manufacturer_id: int = Field(default=919, description="LEGO company id in advertisement data")
    scan_timeout: float = Field(default=5.0, description="Seconds a discovery scan runs")
    max_hub_connections: int = Field(default=4, description="Hubs connected at the same time")

    # Protocol timing
    ready_delay: float = Field(
        default=0.4,
        description="Seconds between the initial property requests and READY"
    )
    wait_for_device_timeout: float = Field(
        default=5.0,
        description="Default timeout of Hub.wait_for_device_by_name"
    )

    # Motor power range, brake (127) is outside it
    power_min: int = Field(default=-100)
    power_max: int = Field(default=100)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def api_keys_list(self) -> List[str]:
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def allowed_origins_list(self) -> List[str]:
        origins = [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return origins or ["*"]


settings = Settings()


def get_settings() -> Settings:
    return settings
