"""Application configuration from environment variables (SAFEHOME_*)."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Console settings loaded from the environment or a .env file."""

    model_config = SettingsConfigDict(env_prefix="SAFEHOME_", env_file=".env", extra="ignore")

    # Document store project; with app_id it names the store namespace
    project_id: str = "smart-home-cloud"

    # Tenant / app identifier
    app_id: str = "smart-home-demo"

    # Pre-provisioned session token; blank → anonymous sign-in
    custom_token: str = ""

    default_home_id: str = "home-alpha"

    # Simulated inference latency
    ingestion_delay_sec: float = Field(default=3.0, ge=0.0)

    # Optional relay for sms/email deliveries
    notify_webhook_url: Optional[str] = None
    notify_webhook_key: Optional[str] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @property
    def store_namespace(self) -> str:
        return f"{self.project_id}/{self.app_id}"
