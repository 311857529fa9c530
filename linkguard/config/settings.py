import json
import logging
import os
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_PATH = os.getenv("CONFIG_PATH", "config.json")


class DeepLinkConfig(BaseModel):
    """Shape of accepted deep links and the allow-sets used to interpret them"""
    model_config = ConfigDict(frozen=True)

    scheme: str = Field(default="youwee", description="Custom URL scheme")
    host: str = Field(default="download", description="Only accepted deep-link host")
    version: str = Field(default="1", description="Required value of the v= parameter")
    max_length: int = Field(default=4096, ge=1, description="Max raw deep-link length")
    trusted_sources: FrozenSet[str] = Field(
        default=frozenset({"ext-chromium", "ext-firefox"}),
        description="Source tags preserved on parsed links",
    )
    platform_hosts: FrozenSet[str] = Field(
        default=frozenset({
            "youtube.com",
            "www.youtube.com",
            "m.youtube.com",
            "music.youtube.com",
            "youtu.be",
        }),
        description="Hosts routed to the YouTube handler",
    )
    short_link_hosts: FrozenSet[str] = Field(
        default=frozenset({"youtu.be"}),
        description="Platform hosts that carry the item id in the path",
    )
    item_param: str = Field(default="v", description="Query parameter naming a single item")
    playlist_params: Tuple[str, ...] = Field(
        default=("list", "index"),
        description="Parameters stripped from single-item links",
    )
    video_qualities: FrozenSet[str] = Field(
        default=frozenset({"best", "8k", "4k", "2k", "1080", "720", "480", "360"}),
        description="Accepted video quality tokens",
    )
    audio_bitrates: FrozenSet[str] = Field(
        default=frozenset({"128"}),
        description="Accepted explicit audio bitrates, anything else is auto",
    )

    @field_validator("trusted_sources", "platform_hosts", "short_link_hosts")
    @classmethod
    def lowercase_members(cls, v):
        return frozenset(item.strip().lower() for item in v if item.strip())

    @property
    def link_prefix(self) -> str:
        return f"{self.scheme}://{self.host}"


class IntRange(BaseModel):
    """Inclusive integer range with a fallback default"""
    model_config = ConfigDict(frozen=True)

    min: int
    max: int
    default: int

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min > self.max:
            raise ValueError(f"min {self.min} is greater than max {self.max}")
        if not self.min <= self.default <= self.max:
            raise ValueError(f"default {self.default} outside [{self.min}, {self.max}]")
        return self


class RetryConfig(BaseModel):
    max_attempts: IntRange = Field(
        default=IntRange(min=1, max=10, default=3),
        description="Automatic retry attempt limits",
    )
    delay_seconds: IntRange = Field(
        default=IntRange(min=1, max=60, default=5),
        description="Delay between automatic retries",
    )


class PendingConfig(BaseModel):
    max_pending: int = Field(default=100, ge=1, description="Max links held before the UI is ready")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="%(message)s", description="Log format")
    enable_rich: bool = Field(default=True, description="Enable rich console logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class ApiConfig(BaseModel):
    title: str = Field(default="Youwee Link Guard", description="API title")
    version: str = Field(default="1.0.0", description="API version")
    debug: bool = Field(default=False, description="Enable debug mode")
    admin_api_key: Optional[str] = Field(default=None, description="Key required by admin endpoints")


class Config(BaseSettings):
    """Main configuration model"""
    model_config = SettingsConfigDict(env_prefix="LINKGUARD_", env_nested_delimiter="__")

    deeplink: DeepLinkConfig = Field(default_factory=DeepLinkConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    pending: PendingConfig = Field(default_factory=PendingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @classmethod
    def load_from_file(cls, config_path: str = "config.json") -> "Config":
        """Load configuration from JSON file, environment still overrides unset keys"""
        if os.path.exists(config_path):
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config_data = json.load(f)
                logger.info(f"Configuration loaded from {config_path}")
                return cls(**config_data)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config from {config_path}: {str(e)}")
                logger.info("Using default configuration")
        else:
            logger.warning(f"Config file {config_path} not found, using defaults")

        return cls()

    def save_to_file(self, config_path: str = "config.json"):
        """Save configuration to JSON file"""
        try:
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(self.model_dump_json(indent=2, exclude_none=True))
            logger.info(f"Configuration saved to {config_path}")
        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {str(e)}")


def load_config() -> Config:
    """Load configuration with priority: config file > env vars > defaults"""
    if os.path.exists(CONFIG_PATH):
        return Config.load_from_file(CONFIG_PATH)

    logger.info(f"Config file not found at {CONFIG_PATH}, checking environment variables")
    return Config()


config = load_config()
