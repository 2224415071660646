"""Prompt and request construction for the chat-completion endpoint."""

from dataclasses import dataclass, field
from typing import Any

from secanalyze.config import (
    API_URL,
    MAX_TOKENS,
    MODEL,
    PROMPT_TEMPLATES,
    SYSTEM_PROMPT,
    TEMPERATURE,
)
from secanalyze.models import AnalysisRequest


@dataclass(frozen=True)
class ChatRequest:
    """A ready-to-send HTTP request.

    Attributes:
        url: Endpoint to POST to.
        headers: HTTP headers, including the bearer token.
        payload: JSON body.
    """

    url: str
    headers: dict[str, str] = field(repr=False)
    payload: dict[str, Any]


def build_prompt(content_type: str, content: str) -> str:
    """Return the user prompt for *content* of the given type."""
    return PROMPT_TEMPLATES[content_type].format(content=content)


def build_payload(content_type: str, content: str) -> dict[str, Any]:
    """Wrap the prompt in a chat-completion body."""
    return {
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(content_type, content)},
        ],
        "model": MODEL,
        "temperature": TEMPERATURE,
        "max_tokens": MAX_TOKENS,
    }


def build_request(request: AnalysisRequest, *, url: str = API_URL) -> ChatRequest:
    """Build the outbound :class:`ChatRequest` for an analysis request."""
    return ChatRequest(
        url=url,
        headers={
            "Authorization": f"Bearer {request.api_key}",
            "Content-Type": "application/json",
        },
        payload=build_payload(request.type, request.content),
    )
