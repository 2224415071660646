"""Content analysis pipeline.

One call runs **once** through: validate input, build the chat request,
send it (retrying transient failures), parse the reply.  Any stage can end
the call with an :class:`~secanalyze.errors.AnalysisError`; no partial
result is ever returned.
"""

import asyncio
import logging

from secanalyze.ai.parser import parse_response
from secanalyze.ai.prompts import build_request
from secanalyze.ai.transport import HttpTransport, Transport
from secanalyze.config import DEFAULT_TIMEOUT_SECONDS, FAILURE_PREFIX
from secanalyze.errors import AnalysisError, DeadlineExceededError, TransportError
from secanalyze.models import AnalysisRequest, AnalysisResult

logger = logging.getLogger(__name__)


class ContentAnalyzer:
    """Ask the chat-completion endpoint to assess content for security risk.

    The analyzer keeps no per-call state, so one instance can serve any
    number of concurrent :meth:`analyze` calls.

    Args:
        transport: Anything with an async ``send(ChatRequest)``.  Defaults
            to an :class:`HttpTransport` owned by this analyzer.
        timeout: Optional deadline in seconds for the network part of a
            call, retries included.  ``None`` waits indefinitely.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._owns_transport = transport is None
        self.transport: Transport = transport if transport is not None else HttpTransport()
        self.timeout = timeout

    async def analyze(self, api_key: str, content: str, content_type: str) -> AnalysisResult:
        """Analyse *content* and return the structured result.

        Args:
            api_key: Bearer token for the endpoint.
            content: Email body or image description.
            content_type: ``"email"`` or ``"image"``.

        Raises:
            AnalysisError: The concrete subclass names the failing stage,
                with anything unexpected reported as a TransportError;
                its message reads ``"Failed to analyze content: ..."``.
        """
        try:
            request = AnalysisRequest.create(api_key, content, content_type)
            body = await self._send(request)
            result = parse_response(request, body)
        except AnalysisError as exc:
            raise exc.with_prefix(FAILURE_PREFIX) from exc
        except Exception as exc:
            logger.error("Unexpected %s during analysis: %s", type(exc).__name__, exc)
            raise TransportError(
                f"{FAILURE_PREFIX}{str(exc) or type(exc).__name__}"
            ) from exc

        logger.debug("Analysis: %s", result.analysis)
        logger.info(
            "Analysed %s content: risk=%s, %d recommendation(s)",
            result.type,
            result.risk_level,
            len(result.recommendations),
        )
        return result

    async def _send(self, request: AnalysisRequest) -> str:
        chat_request = build_request(request)
        if self.timeout is None:
            response = await self.transport.send(chat_request)
            return response.body

        try:
            response = await asyncio.wait_for(
                self.transport.send(chat_request), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            logger.error("No response from %s within %.1fs", chat_request.url, self.timeout)
            raise DeadlineExceededError(
                f"Request timed out after {self.timeout:g}s"
            ) from exc
        return response.body

    async def aclose(self) -> None:
        """Release the transport if this analyzer created it."""
        if self._owns_transport:
            await self.transport.aclose()

    async def __aenter__(self) -> "ContentAnalyzer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


async def analyze_content(
    api_key: str,
    content: str,
    content_type: str,
    *,
    transport: Transport | None = None,
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
) -> AnalysisResult:
    """Analyse one piece of content with a short-lived :class:`ContentAnalyzer`.

    Fails with an :class:`~secanalyze.errors.AnalysisError` rather than
    returning a partial result.
    """
    async with ContentAnalyzer(transport, timeout=timeout) as analyzer:
        return await analyzer.analyze(api_key, content, content_type)
