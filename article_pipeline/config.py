# article_pipeline/config.py
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


class ConfigError(RuntimeError):
    pass


class Settings(BaseModel):
    openai_api_key: str = ""
    model_name: str = "gpt-4o-mini"
    image_model: str = "gpt-image-1"
    image_size: str = "1536x1024"
    embed_model: str = "text-embedding-3-small"
    request_timeout: float = 60.0
    source_fetch_timeout: float = 10.0
    storage_dir: str = "storage"

    def require_api_key(self) -> str:
        if not self.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is not set in your environment (.env).")
        return self.openai_api_key


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Read settings from the process environment (after loading .env)."""
    load_dotenv(env_file)
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        model_name=os.getenv("MODEL_NAME", "gpt-4o-mini"),
        image_model=os.getenv("IMAGE_MODEL", "gpt-image-1"),
        image_size=os.getenv("IMAGE_SIZE", "1536x1024"),
        embed_model=os.getenv("EMBED_MODEL", "text-embedding-3-small"),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "60")),
        source_fetch_timeout=float(os.getenv("SOURCE_FETCH_TIMEOUT", "10")),
        storage_dir=os.getenv("STORAGE_DIR", "storage"),
    )
