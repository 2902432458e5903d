"""Configuration settings for the attack campaign simulator"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # API Configuration
    api_title: str = "Attack Campaign Simulator"
    api_version: str = "1.0.0"
    api_prefix: str = "/api"

    # Elasticsearch
    elastic_node: str = "http://localhost:9200"
    elastic_api_key: Optional[str] = None
    elastic_username: Optional[str] = None
    elastic_password: Optional[str] = None

    # Kibana
    kibana_node: str = "http://localhost:5601"
    kibana_api_key: Optional[str] = None
    kibana_username: Optional[str] = None
    kibana_password: Optional[str] = None

    # LLM content generation (OpenAI-compatible chat completions)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"

    # Generation fan-out
    generator_batch_size: int = 5
    generator_batch_pause_seconds: float = 0.2
    generator_call_timeout_seconds: float = 30.0
    generator_batch_deadline_seconds: float = 120.0

    # "batch" measures the correlation window from the newest event,
    # "wall_clock" from the moment the pass runs
    correlation_reference: str = "batch"

    # Indexing
    bulk_chunk_size: int = 1000
    alert_index_template: str = ".internal.alerts-security.alerts-{space}-000001"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


def alert_index_for(space: str, template: Optional[str] = None) -> str:
    """Render the security alerts index name for a Kibana space"""
    return (template or settings.alert_index_template).format(space=space)


settings = Settings()
