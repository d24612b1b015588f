from app.providers.base import BaseProvider
from app.providers.openai_compatible import OpenAICompatibleProvider
from app.providers.perplexity import PerplexityProvider

__all__ = ["BaseProvider", "OpenAICompatibleProvider", "PerplexityProvider"]
