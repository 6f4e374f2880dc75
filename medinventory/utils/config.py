"""Configuration management using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class APIConfig(BaseModel):
    """API configuration settings."""
    timeout: int = 30
    max_retries: int = 3
    retry_delay: int = 1
    exponential_backoff: bool = True


class InventoryConfig(BaseModel):
    """Thresholds and view behaviour for the medicine list."""
    low_stock_threshold: int = 10
    list_expiry_window_days: int = 7
    summary_expiry_window_days: int = 30
    search_manufacturer: bool = False
    page_size_options: List[int] = [5, 10, 25]
    default_page_size: int = 10


class FeaturesConfig(BaseModel):
    """Optional capabilities."""
    barcode_lookup: bool = False


class ExportConfig(BaseModel):
    """Export file settings."""
    csv_filename: str = "medicines.csv"
    pdf_filename: str = "medicines.pdf"
    pdf_title: str = "Medicine Inventory"


class LoggingFilesConfig(BaseModel):
    """Log file paths."""
    inventory: str = "logs/inventory.log"
    server: str = "logs/server.log"
    error: str = "logs/error.log"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5
    files: LoggingFilesConfig = LoggingFilesConfig()


class SchedulerConfig(BaseModel):
    """Scheduler configuration."""
    timezone: str = "UTC"
    max_instances: int = 1
    coalesce: bool = True
    misfire_grace_time: int = 300


class YAMLConfig(BaseModel):
    """Configuration loaded from YAML file."""
    api: APIConfig = APIConfig()
    inventory: InventoryConfig = InventoryConfig()
    features: FeaturesConfig = FeaturesConfig()
    export: ExportConfig = ExportConfig()
    logging: LoggingConfig = LoggingConfig()
    scheduler: SchedulerConfig = SchedulerConfig()


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Backend API
    api_base_url: str = Field(default="http://localhost:5000", description="Medicine API base URL")
    api_token: Optional[str] = Field(default=None, description="Bearer token for the medicine API")

    # Application settings
    environment: str = Field(default="development", description="Environment (development/production)")
    log_level: Optional[str] = Field(default=None, description="Override log level")
    refresh_interval_minutes: int = Field(default=15, description="Dashboard refresh interval in minutes")
    port: int = Field(default=8000, description="Server port")

    model_config = SettingsConfigDict(
        env_prefix="MEDINVENTORY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig:
    """Combined application configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.env = Settings()

        # Load YAML config
        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "config" / "config.yml"
        if config_path.exists():
            with open(config_path, "r") as f:
                yaml_data = yaml.safe_load(f) or {}
            try:
                self.yaml = YAMLConfig(**yaml_data)
            except ValidationError as e:
                raise ConfigurationError(
                    f"Invalid configuration file {config_path}",
                    details={"errors": e.errors()}
                )
        else:
            self.yaml = YAMLConfig()

        # Override log level if specified in env
        if self.env.log_level:
            self.yaml.logging.level = self.env.log_level

    @property
    def api(self) -> APIConfig:
        return self.yaml.api

    @property
    def inventory(self) -> InventoryConfig:
        return self.yaml.inventory

    @property
    def features(self) -> FeaturesConfig:
        return self.yaml.features

    @property
    def export(self) -> ExportConfig:
        return self.yaml.export

    @property
    def logging(self) -> LoggingConfig:
        return self.yaml.logging

    @property
    def scheduler(self) -> SchedulerConfig:
        return self.yaml.scheduler

    @property
    def is_production(self) -> bool:
        return self.env.environment.lower() == "production"


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration instance."""
    return AppConfig()
