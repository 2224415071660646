"""HTTP transport for the chat-completion endpoint.

:class:`HttpTransport` POSTs a :class:`~secanalyze.ai.prompts.ChatRequest`
with ``httpx`` and retries retryable statuses with ``tenacity`` according
to a :class:`RetryPolicy`.  Anything implementing the :class:`Transport`
protocol can be handed to the analyzer instead.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)
from tenacity.wait import wait_base

from secanalyze.ai.prompts import ChatRequest
from secanalyze.config import MAX_ATTEMPTS, RETRY_DELAY_SECONDS, RETRYABLE_STATUSES
from secanalyze.errors import RetryExhaustedError, TransportError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response & protocol
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawResponse:
    """Status code and undecoded body of a successful HTTP exchange."""

    status_code: int
    body: str


class Transport(Protocol):
    """Anything that can deliver a :class:`ChatRequest`."""

    async def send(self, request: ChatRequest) -> RawResponse:
        ...


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


def fixed_delay(seconds: float) -> wait_base:
    """Wait strategy that always waits *seconds*."""
    return wait_fixed(seconds)


def exponential_delay(base: float, cap: float) -> wait_base:
    """Wait strategy doubling from *base* per attempt, bounded by *cap*."""
    return wait_exponential(multiplier=base, max=cap)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and how long to wait between tries.

    Attributes:
        max_attempts: Total attempts, including the first one.
        wait: ``tenacity`` wait strategy applied after each failed attempt.
        retryable_statuses: HTTP statuses worth another attempt.
    """

    max_attempts: int = MAX_ATTEMPTS
    wait: wait_base = fixed_delay(RETRY_DELAY_SECONDS)
    retryable_statuses: frozenset[int] = RETRYABLE_STATUSES

    def is_retryable(self, status_code: int) -> bool:
        return status_code in self.retryable_statuses


# ---------------------------------------------------------------------------
# Error body helpers
# ---------------------------------------------------------------------------


def error_message(response: httpx.Response) -> str:
    """Best-effort extraction of the server's error message.

    Understands ``{"error": {"message": ...}}`` (OpenAI style),
    ``{"error": "..."}`` and ``{"message": "..."}``.  Falls back to a
    generic message when the body is not JSON or has none of these.
    """
    fallback = f"API request failed with status {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return fallback

    if not isinstance(data, dict):
        return fallback

    error = data.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str) and error:
        return error
    if isinstance(data.get("message"), str) and data["message"]:
        return data["message"]
    return fallback


# ---------------------------------------------------------------------------
# HTTP transport
# ---------------------------------------------------------------------------


def _log_retry(retry_state: RetryCallState) -> None:
    response: httpx.Response = retry_state.outcome.result()
    logger.warning(
        "HTTP %d from %s, retrying in %.1fs (attempt %d)",
        response.status_code,
        response.request.url,
        retry_state.next_action.sleep,
        retry_state.attempt_number,
    )


class HttpTransport:
    """``httpx``-backed :class:`Transport` with bounded retry.

    Args:
        client: Optional shared ``httpx.AsyncClient``.  When omitted the
            transport creates and owns one.
        policy: Retry policy, fixed 1 s delay on 503 by default.
        sleep: Coroutine used to wait between attempts.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def send(self, request: ChatRequest) -> RawResponse:
        """POST *request* and return the first successful response.

        Raises:
            RetryExhaustedError: A retryable status persisted through every
                attempt.
            TransportError: Any other non-2xx status, or a network failure.
        """
        policy = self.policy
        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=policy.wait,
            retry=retry_if_result(lambda response: policy.is_retryable(response.status_code)),
            before_sleep=_log_retry,
            sleep=self._sleep,
        )

        try:
            response = await retrying(self._post, request)
        except RetryError as exc:
            last = exc.last_attempt
            status_code = last.result().status_code
            logger.error(
                "Giving up on %s after %d attempts (last status: %d)",
                request.url,
                last.attempt_number,
                status_code,
            )
            raise RetryExhaustedError(
                status_code=status_code, attempts=last.attempt_number
            ) from exc

        return RawResponse(status_code=response.status_code, body=response.text)

    async def _post(self, request: ChatRequest) -> httpx.Response:
        """One attempt.  Returns successful and retryable responses, raises otherwise."""
        logger.debug("POST %s", request.url)
        try:
            response = await self._client.post(
                request.url, headers=request.headers, json=request.payload
            )
        except httpx.HTTPError as exc:
            logger.error("Request to %s failed: %s", request.url, exc)
            raise TransportError(f"Network error: {exc}") from exc

        if response.is_success or self.policy.is_retryable(response.status_code):
            return response

        message = error_message(response)
        logger.error("HTTP %d from %s: %s", response.status_code, request.url, message)
        raise TransportError(message, status_code=response.status_code)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
