from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class MessageRole(str, Enum):
    """Role of an inbound message; "unspecified" is rejected by the services."""
    UNSPECIFIED = "unspecified"
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: MessageRole = MessageRole.UNSPECIFIED
    content: str = ""


class ChatCompletionRequest(BaseModel):
    """Request for an OpenAI-compatible upstream chosen by the caller."""
    url: Optional[str] = None  # Upstream base URL; falls back to settings
    model: str = Field(..., min_length=1)
    token: Optional[str] = None  # Upstream API key; falls back to settings
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    messages: List[ChatMessage] = []

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "url": "https://api.deepseek.com/v1",
                    "model": "deepseek-reasoner",
                    "token": "sk-...",
                    "temperature": 0.7,
                    "messages": [
                        {"role": "system", "content": "You are concise."},
                        {"role": "user", "content": "Why is the sky blue?"},
                    ],
                }
            ]
        }
    )


class PerplexityChatRequest(BaseModel):
    model: str = Field(..., min_length=1)  # "sonar" or "sonar-deep-research"
    token: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    messages: List[ChatMessage] = []
