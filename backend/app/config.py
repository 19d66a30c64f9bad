from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Wholesale AI Assistant"
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"

    database_url: str = "sqlite:///./wholesale.db"

    llm_provider: Literal["claude", "openai"] = "claude"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1500

    cors_origins: str = "http://localhost:5173"

    # BatchData property search
    batchdata_api_key: str = ""
    batchdata_base_url: str = "https://api.batchdata.com"
    batchdata_page_size: int = 50
    batchdata_max_pages: int = 10
    default_search_location: str = "17112"

    # Chat parsing
    segment_min_block_chars: int = 30
    dedup_discriminator: Literal["owner", "conversation"] = "owner"

    model_config = {"env_file": ".env"}


settings = Settings()
