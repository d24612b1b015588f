import orjson
from pydantic import BaseModel
from typing import Any, Optional, Union


def format_sse(event: str, data: Optional[Union[BaseModel, dict[str, Any]]] = None) -> str:
    """Format data as SSE event"""
    if isinstance(data, BaseModel):
        payload = data.model_dump(mode="json", exclude_none=True)
    else:
        payload = data or {}

    return f"event: {event}\ndata: {orjson.dumps(payload).decode()}\n\n"


def format_error_sse(reason: str, message: str) -> str:
    """Format the terminal error event"""
    return format_sse("error", {"reason": reason, "message": message})
