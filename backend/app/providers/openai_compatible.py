"""
OpenAI-compatible provider for OpenAI, DeepSeek, Ollama, vLLM and other
chat-completions APIs.
"""

import httpx
import logging
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from app.models.openai import ChatCompletion, ChatCompletionChunk
from app.providers.base import BaseProvider
from app.streaming.stream import Stream
from app.utils.exceptions import DecodeError

logger = logging.getLogger(__name__)

_completion_adapter = TypeAdapter(ChatCompletion)


class OpenAICompatibleProvider(BaseProvider):
    """Provider for any API speaking the OpenAI chat-completions format.

    Unlike a fixed provider, the base URL is chosen per request.
    """

    name = "openai"
    base_url = "https://api.openai.com/v1"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize an OpenAI-compatible provider.

        Args:
            api_key: Optional API key (some local servers don't require auth)
            base_url: The base URL of the API (e.g., http://localhost:11434/v1)
            client: Optional shared httpx client (used by tests)
        """
        super().__init__(api_key, base_url, client)

    def create_chat_completion(self, payload: dict[str, Any]) -> ChatCompletion:
        """Non-streaming chat completion."""
        body = self._post("/chat/completions", {**payload, "stream": False})
        try:
            return _completion_adapter.validate_python(body)
        except ValidationError as e:
            raise DecodeError(str(e)) from e

    def stream_chat_completion(self, payload: dict[str, Any]) -> Stream[ChatCompletionChunk]:
        """Streaming chat completion; close the returned stream when done."""
        logger.debug(f"Opening chat completion stream for model '{payload.get('model')}'")
        return self._stream(
            "/chat/completions", {**payload, "stream": True}, ChatCompletionChunk
        )
