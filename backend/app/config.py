import logging
import sys

from pydantic_settings import BaseSettings
from typing import Optional


def setup_logging(level: str = "INFO"):
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class Settings(BaseSettings):
    # Upstream endpoints
    openai_base_url: str = "https://api.openai.com/v1"
    perplexity_base_url: str = "https://api.perplexity.ai"

    # Fallback API keys, used when a request does not carry its own token
    openai_api_key: Optional[str] = None
    perplexity_api_key: Optional[str] = None

    # Timeout settings (seconds)
    provider_timeout: int = 60

    # Longest SSE line accepted from upstream (bytes)
    sse_max_line_size: int = (64 * 1024) << 9

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

# Initialize logging on import
setup_logging(settings.log_level)
