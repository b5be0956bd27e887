# Configuration loader with environment variable support
# YAML file (config/<ENV>.yaml or CONFIG_PATH) plus environment settings

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from graphsync.indexing.dispatcher import DispatchMode
from graphsync.indexing.errors import ConfigError
from graphsync.indexing.spec import IndexSpecTable

from .models import GraphSyncBaseModel

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"
DEFAULT_SEARCH_URL = "http://localhost:9200"


class AppConfig(BaseModel):
    name: str = "graphsync"
    version: str = "0.1.0"


class IndexingConfig(BaseModel):
    """Which labels are indexed, and how stale documents are treated."""

    spec: Optional[str] = None
    # Delete documents from indices a node no longer maps to while it is
    # still indexed elsewhere. Off: only fully irrelevant nodes are deleted.
    prune_stale_documents: bool = False


class DispatchConfig(BaseModel):
    mode: DispatchMode = DispatchMode.ASYNC
    max_workers: int = Field(default=4, gt=0)
    refresh: Optional[str] = None  # None | "true" | "false" | "wait_for"
    include_document_type: bool = False

    @field_validator("refresh", mode="before")
    @classmethod
    def coerce_refresh_bool(cls, v):
        # YAML reads unquoted true/false as booleans
        if isinstance(v, bool):
            return "true" if v else "false"
        return v

    @field_validator("refresh")
    @classmethod
    def validate_refresh(cls, v):
        if v is None:
            return v
        valid = {"true", "false", "wait_for"}
        if v not in valid:
            raise ValueError(f"refresh must be one of {sorted(valid)}, got {v}")
        return v


class SearchConfig(BaseModel):
    request_timeout: float = Field(default=30.0, gt=0)
    verify_certs: bool = True


class BackfillConfig(BaseModel):
    # None sends one bulk request per index spec
    chunk_size: Optional[int] = Field(default=None, gt=0)


class MonitoringConfig(BaseModel):
    metrics_enabled: bool = True


class Config(GraphSyncBaseModel):
    """Main configuration model"""

    app: AppConfig = Field(default_factory=AppConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    backfill: BackfillConfig = Field(default_factory=BackfillConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


class Settings(BaseSettings):
    """Environment-based settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="development", alias="ENV")
    config_path: Optional[str] = Field(default=None, alias="CONFIG_PATH")

    # Neo4j
    neo4j_uri: str = Field(default="bolt://localhost:7687", alias="NEO4J_URI")
    neo4j_user: str = Field(default="neo4j", alias="NEO4J_USER")
    neo4j_password: str = Field(default="", alias="NEO4J_PASSWORD")

    # Elasticsearch
    elasticsearch_url: str = Field(default=DEFAULT_SEARCH_URL, alias="ELASTICSEARCH_URL")
    elasticsearch_api_key: Optional[str] = Field(
        default=None, alias="ELASTICSEARCH_API_KEY"
    )
    elasticsearch_user: Optional[str] = Field(default=None, alias="ELASTICSEARCH_USER")
    elasticsearch_password: Optional[str] = Field(
        default=None, alias="ELASTICSEARCH_PASSWORD"
    )

    # Overrides indexing.spec from the YAML file
    index_spec: Optional[str] = Field(default=None, alias="INDEX_SPEC")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


def resolve_config_path(settings: Settings) -> Path:
    if settings.config_path:
        return Path(settings.config_path)
    return DEFAULT_CONFIG_DIR / f"{settings.env}.yaml"


def load_index_spec_table(config: Config) -> IndexSpecTable:
    """Build the label lookup table from the configured index spec."""
    if not config.indexing.spec:
        raise ConfigError("no index spec configured (indexing.spec or INDEX_SPEC)")
    return IndexSpecTable.load(config.indexing.spec)


def validate_config_at_startup(config: Config, settings: Settings) -> None:
    """
    Fail fast on configuration that would break synchronization.

    Raises:
        ConfigError: if the index spec is missing or malformed
    """
    table = load_index_spec_table(config)
    logger.info(
        "Index spec loaded: %d label(s), indices=%s",
        len(table),
        table.index_names(),
    )
    if config.dispatch.mode is DispatchMode.SYNC:
        logger.warning(
            "Synchronous dispatch enabled: commits wait on %s",
            settings.elasticsearch_url,
        )


def load_config(validate: bool = True) -> tuple[Config, Settings]:
    """
    Load configuration from YAML file and environment variables.

    Args:
        validate: Run startup validation (requires a configured index spec).
            Tools that take the spec from their own arguments pass False.

    Returns:
        tuple: (Config, Settings) - YAML config and environment settings

    Raises:
        ConfigError: If the config file is missing, unreadable or invalid
    """
    settings = Settings()
    config_path = resolve_config_path(settings)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f) or {}
        config = Config(**config_dict)
    except (yaml.YAMLError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

    if settings.index_spec:
        config.indexing.spec = settings.index_spec

    if validate:
        validate_config_at_startup(config, settings)

    return config, settings


# Global config instances (loaded once at startup)
_config: Optional[Config] = None
_settings: Optional[Settings] = None


def get_config() -> Config:
    """Get the global Config instance"""
    global _config, _settings
    if _config is None:
        _config, _settings = load_config()
    return _config


def get_settings() -> Settings:
    """Get the global Settings instance"""
    global _config, _settings
    if _settings is None:
        _config, _settings = load_config()
    return _settings


def init_config() -> tuple[Config, Settings]:
    """Initialize and cache global config instances"""
    global _config, _settings
    _config, _settings = load_config()
    return _config, _settings


def reload_config() -> tuple[Config, Settings]:
    """Force reload of config/settings from disk and environment."""
    return init_config()
