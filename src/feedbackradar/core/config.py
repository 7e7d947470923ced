"""Configuration management for Feedback Radar."""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings."""

    # OpenAI API
    openai_api_key: str = Field("", description="OpenAI API key")
    OPENAI_API_KEY: str = Field("", description="OpenAI API key (alternative naming)")
    openai_model: str = Field("gpt-4o-mini", description="Chat model used for classification and synthesis")
    llm_timeout: float = Field(60.0, description="Timeout for a single model call in seconds")
    llm_cache_dir: str = Field("", description="diskcache directory for model responses (empty disables)")

    @property
    def effective_openai_key(self) -> str:
        """Get the effective OpenAI API key from either field."""
        return self.openai_api_key or self.OPENAI_API_KEY

    # Source APIs
    stackexchange_key: str = Field("", description="Optional Stack Exchange API key (raises daily quota)")
    user_agent: str = Field("FeedbackRadar/1.0", description="User agent sent to content sources")
    sources_config: str = Field("config/sources.yaml", description="Per-source YAML configuration")

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    # Source client behaviour
    source_cache_ttl: float = Field(300.0, description="Response cache TTL in seconds")
    source_max_retries: int = Field(2, description="Retries for 429 / 5xx responses")
    source_retry_delay: float = Field(1.0, description="Base retry delay in seconds (doubles per attempt)")
    source_request_delay: float = Field(0.2, description="Delay between sequential requests to one source")
    source_timeout: float = Field(15.0, description="HTTP timeout per request in seconds")
    child_batch_size: int = Field(3, description="Concurrent child fetches per batch")

    # Classification / synthesis
    classify_batch_size: int = Field(10, description="Concurrent classification calls per batch")
    synthesis_max_retries: int = Field(1, description="Re-prompts allowed when synthesis quality is low")
    synthesis_quality_threshold: float = Field(0.6, description="Minimum acceptable synthesis quality")
    synthesis_temperature: float = Field(0.3, description="Sampling temperature of the first synthesis attempt")
    synthesis_retry_temperature: float = Field(0.5, description="Sampling temperature of re-prompts")
    max_quote_count: int = Field(5, description="Maximum quotes attached to one insight")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


DEFAULT_SOURCES: Dict[str, Dict[str, Any]] = {
    "reddit": {"enabled": True, "parent_limit": 10, "children_per_parent": 20},
    "hackernews": {"enabled": True, "parent_limit": 10, "children_per_parent": 20},
    "stackoverflow": {"enabled": True, "parent_limit": 10, "children_per_parent": 20},
    "devto": {"enabled": True, "parent_limit": 10, "children_per_parent": 20},
}


def load_sources_config(path: str = None) -> Dict[str, Dict[str, Any]]:
    """Load per-source settings from YAML, falling back to defaults."""
    config = {name: dict(values) for name, values in DEFAULT_SOURCES.items()}
    config_path = Path(path or settings.sources_config)
    if not config_path.exists():
        logger.debug(f"Source config {config_path} not found, using defaults")
        return config

    with open(config_path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    for name, values in (loaded.get("sources") or {}).items():
        if name not in config:
            logger.warning(f"Ignoring unknown source '{name}' in {config_path}")
            continue
        config[name].update(values or {})
    return config


# Global settings instance
settings = Settings()
