"""Unit tests for the ContentAnalyzer pipeline and analyze_content entry point."""

import asyncio
import json

import httpx
import pytest

from secanalyze.ai.prompts import ChatRequest
from secanalyze.ai.transport import HttpTransport, RawResponse
from secanalyze.config import MODEL, NO_RECOMMENDATIONS, SYSTEM_PROMPT
from secanalyze.core.analyzer import ContentAnalyzer, analyze_content
from secanalyze.errors import (
    AnalysisError,
    DeadlineExceededError,
    ErrorKind,
    InvalidInputError,
    MalformedResponseError,
    RetryExhaustedError,
    TransportError,
)
from secanalyze.models import EMAIL, HIGH, IMAGE, LOW, MEDIUM, AnalysisResult


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class _FakeTransport:
    """Transport spy returning a fixed body and recording every request."""

    def __init__(self, body) -> None:
        self.body = body
        self.requests: list[ChatRequest] = []

    async def send(self, request: ChatRequest) -> RawResponse:
        self.requests.append(request)
        return RawResponse(status_code=200, body=json.dumps(self.body))


class _FailingTransport:
    """Transport that always raises *error*."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def send(self, request: ChatRequest) -> RawResponse:
        raise self.error


class _SlowTransport:
    """Transport that never answers in time."""

    async def send(self, request: ChatRequest) -> RawResponse:
        await asyncio.sleep(10)
        raise AssertionError("deadline should have fired first")


def _analyze(transport, api_key="test-key", content="Hello", content_type=EMAIL, **kwargs):
    return asyncio.run(
        analyze_content(api_key, content, content_type, transport=transport, **kwargs)
    )


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class TestInputValidation:
    """Invalid input must fail before any network activity."""

    @pytest.mark.parametrize(
        "api_key, content, expected",
        [
            ("", "Hello", "API key is required"),
            ("key", "", "Content is required for analysis"),
            ("", "", "API key is required"),
        ],
    )
    def test_empty_inputs(self, api_key, content, expected) -> None:
        """Empty key or content should raise InvalidInputError with zero sends."""
        transport = _FakeTransport(_completion("unused"))

        with pytest.raises(InvalidInputError) as excinfo:
            _analyze(transport, api_key=api_key, content=content)

        assert transport.requests == []
        assert excinfo.value.kind is ErrorKind.INVALID_INPUT
        assert str(excinfo.value) == f"Failed to analyze content: {expected}"

    def test_unknown_content_type(self) -> None:
        """Content types other than image/email should be rejected."""
        transport = _FakeTransport(_completion("unused"))

        with pytest.raises(InvalidInputError):
            _analyze(transport, content_type="video")

        assert transport.requests == []


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------


class TestRequest:
    """The analyzer should hand the transport a complete chat request."""

    def test_email_request(self) -> None:
        """Email content should use the email prompt and fixed sampling settings."""
        transport = _FakeTransport(_completion("ok"))
        _analyze(transport, api_key="secret", content="Verify your account now")

        (request,) = transport.requests
        assert request.url == "https://api.groq.com/openai/v1/chat/completions"
        assert request.headers == {
            "Authorization": "Bearer secret",
            "Content-Type": "application/json",
        }
        assert request.payload == {
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        "Analyze this email for potential security risks, "
                        "phishing attempts, or spam: Verify your account now"
                    ),
                },
            ],
            "model": MODEL,
            "temperature": 0.7,
            "max_tokens": 1024,
        }

    def test_image_prompt(self) -> None:
        """Image content should use the image prompt."""
        transport = _FakeTransport(_completion("ok"))
        _analyze(transport, content="A QR code on a parking meter", content_type=IMAGE)

        user_message = transport.requests[0].payload["messages"][1]
        assert user_message == {
            "role": "user",
            "content": (
                "Analyze this image content for security implications: "
                "A QR code on a parking meter"
            ),
        }

    def test_braces_in_content_are_kept(self) -> None:
        """Template syntax inside the content must pass through untouched."""
        transport = _FakeTransport(_completion("ok"))
        _analyze(transport, content="Hi {name}, pay {amount}")

        assert transport.requests[0].payload["messages"][1]["content"].endswith(
            "Hi {name}, pay {amount}"
        )


# ---------------------------------------------------------------------------
# Result parsing
# ---------------------------------------------------------------------------


class TestResult:
    """End-to-end parsing through the analyzer."""

    def test_high_risk_with_bullets(self) -> None:
        """High-risk reply with both bullet styles should parse in order."""
        analysis = "This looks like high risk phishing.\n- Do X\n• Do Y\nNot a bullet"
        result = _analyze(_FakeTransport(_completion(analysis)), content="Win a prize")

        assert result == AnalysisResult(
            type=EMAIL,
            content="Win a prize",
            analysis=analysis,
            risk_level=HIGH,
            recommendations=("Do X", "Do Y"),
        )

    def test_no_bullets_placeholder(self) -> None:
        result = _analyze(_FakeTransport(_completion("Medium risk. Be careful.")))

        assert result.risk_level == MEDIUM
        assert result.recommendations == (NO_RECOMMENDATIONS,)

    def test_low_by_default(self) -> None:
        result = _analyze(_FakeTransport(_completion("Seems harmless.\n- Stay alert")))

        assert result.risk_level == LOW
        assert result.recommendations == ("Stay alert",)

    def test_repeat_calls_are_identical(self) -> None:
        """Identical inputs against a deterministic transport give identical results."""
        transport = _FakeTransport(_completion("high risk\n- Delete it"))

        async def run() -> tuple[AnalysisResult, AnalysisResult]:
            analyzer = ContentAnalyzer(transport)
            first = await analyzer.analyze("key", "Urgent: reset password", EMAIL)
            second = await analyzer.analyze("key", "Urgent: reset password", EMAIL)
            return first, second

        first, second = asyncio.run(run())
        assert first == second
        assert transport.requests[0] == transport.requests[1]

    def test_concurrent_calls_are_independent(self) -> None:
        """Concurrent calls on one analyzer should each get their own result."""
        transport = _FakeTransport(_completion("medium risk\n- Check sender"))

        async def run() -> list[AnalysisResult]:
            analyzer = ContentAnalyzer(transport)
            return await asyncio.gather(
                analyzer.analyze("key", "first", EMAIL),
                analyzer.analyze("key", "second", IMAGE),
            )

        first, second = asyncio.run(run())
        assert (first.content, first.type) == ("first", EMAIL)
        assert (second.content, second.type) == ("second", IMAGE)
        assert len(transport.requests) == 2


# ---------------------------------------------------------------------------
# Failure wrapping
# ---------------------------------------------------------------------------


class TestErrors:
    """Every failure keeps its kind and gains the uniform message prefix."""

    def test_malformed_response(self) -> None:
        """A body without choices should raise MalformedResponseError."""
        with pytest.raises(MalformedResponseError) as excinfo:
            _analyze(_FakeTransport({}))

        assert excinfo.value.message == (
            "Failed to analyze content: Invalid response format from API"
        )

    def test_transport_error_keeps_status(self) -> None:
        """A TransportError should keep its status code and chain the original."""
        original = TransportError("Invalid API Key", status_code=401)

        with pytest.raises(TransportError) as excinfo:
            _analyze(_FailingTransport(original))

        err = excinfo.value
        assert err.status_code == 401
        assert err.message == "Failed to analyze content: Invalid API Key"
        assert err.__cause__ is original
        assert original.message == "Invalid API Key"

    def test_retry_exhausted_keeps_attempts(self) -> None:
        original = RetryExhaustedError(status_code=503, attempts=3)

        with pytest.raises(RetryExhaustedError) as excinfo:
            _analyze(_FailingTransport(original))

        assert excinfo.value.attempts == 3
        assert excinfo.value.kind is ErrorKind.RETRY_EXHAUSTED
        assert str(excinfo.value) == "Failed to analyze content: Max retries reached"

    def test_all_failures_share_base_class(self) -> None:
        """Callers can catch every failure through AnalysisError."""
        with pytest.raises(AnalysisError):
            _analyze(_FakeTransport({"choices": []}))

    def test_unexpected_transport_failure_is_wrapped(self) -> None:
        """Exceptions outside the AnalysisError family still get the uniform message."""
        original = RuntimeError("socket exploded")

        with pytest.raises(TransportError) as excinfo:
            _analyze(_FailingTransport(original))

        assert excinfo.value.kind is ErrorKind.TRANSPORT
        assert excinfo.value.status_code is None
        assert str(excinfo.value) == "Failed to analyze content: socket exploded"
        assert excinfo.value.__cause__ is original

    def test_unexpected_failure_without_message(self) -> None:
        """A message-less exception is reported by its type name."""
        with pytest.raises(TransportError) as excinfo:
            _analyze(_FailingTransport(httpx.InvalidURL("")))

        assert excinfo.value.message == "Failed to analyze content: InvalidURL"

    def test_deadline(self) -> None:
        """A transport slower than the deadline should raise DeadlineExceededError."""
        with pytest.raises(DeadlineExceededError) as excinfo:
            _analyze(_SlowTransport(), timeout=0.05)

        assert excinfo.value.kind is ErrorKind.DEADLINE_EXCEEDED
        assert excinfo.value.status_code is None
        assert "timed out" in excinfo.value.message


# ---------------------------------------------------------------------------
# Over HTTP
# ---------------------------------------------------------------------------


class TestOverHttp:
    """analyze_content wired to a real HttpTransport over a mock server."""

    @staticmethod
    def _run(responses: list[httpx.Response]) -> tuple[AnalysisResult | AnalysisError, int]:
        calls = 0
        scripted = iter(responses)

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return next(scripted)

        async def no_sleep(seconds: float) -> None:
            return None

        async def run() -> AnalysisResult:
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                transport = HttpTransport(client, sleep=no_sleep)
                return await analyze_content("key", "Hello", EMAIL, transport=transport)

        try:
            return asyncio.run(run()), calls
        except AnalysisError as exc:
            return exc, calls

    def test_503_then_success(self) -> None:
        """The second response's content should be reflected in the result."""
        outcome, calls = self._run(
            [
                httpx.Response(503),
                httpx.Response(200, json=_completion("high risk\n- Report it")),
            ]
        )

        assert isinstance(outcome, AnalysisResult)
        assert outcome.risk_level == HIGH
        assert outcome.recommendations == ("Report it",)
        assert calls == 2

    def test_404_is_terminal(self) -> None:
        outcome, calls = self._run([httpx.Response(404)])

        assert type(outcome) is TransportError
        assert outcome.status_code == 404
        assert calls == 1

    def test_persistent_503(self) -> None:
        outcome, calls = self._run([httpx.Response(503)] * 3)

        assert isinstance(outcome, RetryExhaustedError)
        assert calls == 3

    def test_empty_object_body_is_malformed(self) -> None:
        outcome, calls = self._run([httpx.Response(200, json={})])

        assert isinstance(outcome, MalformedResponseError)
        assert calls == 1
