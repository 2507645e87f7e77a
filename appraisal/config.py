import os
from functools import lru_cache
from pathlib import Path

from dotenv import dotenv_values
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

_ENV_FILE = Path(os.getenv("APPRAISAL_ENV_FILE", str(Path.home() / "env" / ".env")))

# bare credential names -> settings fields
_FALLBACK_KEYS = {
    "ANTHROPIC_API_KEY": "anthropic_api_key",
    "SERPAPI_KEY": "serpapi_api_key",
    "BLOB_READ_WRITE_TOKEN": "blob_read_write_token",
}


class Settings(BaseSettings):
    app_name: str = "Item Appraisal"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 8000

    anthropic_api_key: str = Field(
        "", validation_alias=AliasChoices("APPRAISAL_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY")
    )
    vision_model: str = "claude-opus-4-6"
    vision_max_tokens: int = 1024
    vision_timeout: float = 120.0
    require_complete_analysis: bool = True

    serpapi_api_key: str = Field(
        "", validation_alias=AliasChoices("APPRAISAL_SERPAPI_KEY", "SERPAPI_KEY")
    )
    serpapi_base_url: str = "https://serpapi.com/search.json"
    search_timeout: float = 15.0
    max_web_results: int = 5

    blob_read_write_token: str = Field(
        "", validation_alias=AliasChoices("APPRAISAL_BLOB_READ_WRITE_TOKEN", "BLOB_READ_WRITE_TOKEN")
    )
    blob_api_url: str = "https://blob.vercel-storage.com"
    blob_prefix: str = "temp-scans"

    model_config = {
        "env_prefix": "APPRAISAL_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    def model_post_init(self, __context):
        env_vars = dotenv_values(str(_ENV_FILE)) if _ENV_FILE.exists() else {}
        for env_key, field_name in _FALLBACK_KEYS.items():
            if not getattr(self, field_name):
                setattr(self, field_name, env_vars.get(env_key) or "")

    @property
    def enrichment_enabled(self) -> bool:
        """Reverse image search runs only when both optional credentials are set."""
        return bool(self.serpapi_api_key and self.blob_read_write_token)


@lru_cache
def get_settings() -> Settings:
    return Settings()
