import logging
from typing import Any, Optional, Type, TypeVar

import httpx
import orjson

from app.config import settings
from app.streaming.sse import new_decoder
from app.streaming.stream import Stream
from app.utils.exceptions import ProviderHTTPError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseProvider:
    """Base class for upstream AI providers (one sync httpx client each)"""

    name: str  # Provider identifier: "openai", "perplexity"
    base_url: str = ""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        if base_url:
            self.base_url = base_url.rstrip("/")

        # An injected client is shared and stays open after cleanup()
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.timeout)

    @property
    def timeout(self) -> float:
        """Get the configured provider timeout in seconds."""
        return float(settings.provider_timeout)

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def cleanup(self):
        """Cleanup HTTP client resources."""
        if self._client and self._owns_client:
            self._client.close()
        self._client = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.cleanup()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Raise ProviderHTTPError with the upstream's message for a non-200 reply."""
        if response.status_code == 200:
            return

        # Read error response body for better debugging
        error_body = response.read()
        response.close()
        try:
            error_json = orjson.loads(error_body)
            error = error_json.get("error") if isinstance(error_json, dict) else None
            if isinstance(error, dict):
                error_msg = str(error.get("message", error_body.decode("utf-8", errors="replace")))
            elif error:
                error_msg = str(error)
            else:
                error_msg = error_body.decode("utf-8", errors="replace")
        except orjson.JSONDecodeError:
            error_msg = error_body.decode("utf-8", errors="replace")

        logger.error(
            f"{self.name} API error: status={response.status_code}, error={error_msg}"
        )
        raise ProviderHTTPError(response.status_code, error_msg)

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        """Send a non-streaming request and return the parsed JSON body."""
        response = self._client.post(
            self._url(path), content=orjson.dumps(payload), headers=self.headers
        )
        self._raise_for_status(response)
        return orjson.loads(response.content)

    def _open_stream(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        """Send a streaming request; the caller owns (and must close) the response."""
        request = self._client.build_request(
            "POST",
            self._url(path),
            content=orjson.dumps(payload),
            headers={**self.headers, "Accept": "text/event-stream"},
        )
        response = self._client.send(request, stream=True)
        self._raise_for_status(response)
        logger.info(f"{self.name} SSE connection established")
        return response

    def _stream(self, path: str, payload: dict[str, Any], schema: Type[T]) -> Stream[T]:
        response = self._open_stream(path, payload)
        return Stream(new_decoder(response), schema)
