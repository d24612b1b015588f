"""
Perplexity provider using the concise streaming mode.

Concise mode streams four chunk kinds (``chat.reasoning``,
``chat.reasoning.done``, ``chat.completion.chunk``, ``chat.completion.done``)
which all decode into ConciseChunk.
"""

import logging

from app.models.perplexity import SUPPORTED_MODELS, ConciseChunk, PerplexityRequest
from app.providers.base import BaseProvider
from app.streaming.stream import Stream
from app.utils.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


def validate_model(model: str) -> None:
    if model not in SUPPORTED_MODELS:
        raise InvalidArgumentError(f"unsupported model: {model}")


class PerplexityProvider(BaseProvider):
    name = "perplexity"
    base_url = "https://api.perplexity.ai"

    def stream_chat_completions(self, request: PerplexityRequest) -> Stream[ConciseChunk]:
        """Stream a chat completion; close the returned stream when done."""
        validate_model(request.model)

        request = request.model_copy(update={"stream": True, "stream_mode": "concise"})
        payload = request.model_dump(exclude_none=True)
        logger.debug(f"Perplexity request body: {payload}")

        return self._stream("/chat/completions", payload, ConciseChunk)
