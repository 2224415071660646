"""SecAnalyze data models for analysis requests and results."""

from dataclasses import dataclass

from secanalyze.errors import InvalidInputError


# ---------------------------------------------------------------------------
# Content types
# ---------------------------------------------------------------------------

IMAGE: str = "image"
EMAIL: str = "email"

CONTENT_TYPES: tuple[str, ...] = (IMAGE, EMAIL)


# ---------------------------------------------------------------------------
# Risk level constants & ordering
# ---------------------------------------------------------------------------

HIGH: str = "high"
MEDIUM: str = "medium"
LOW: str = "low"

RISK_ORDER: dict[str, int] = {
    HIGH: 3,
    MEDIUM: 2,
    LOW: 1,
}


# ---------------------------------------------------------------------------
# AnalysisRequest model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisRequest:
    """Inputs of a single analysis call.

    Built fresh per call through :meth:`create`, never shared.

    Attributes:
        type: ``"image"`` or ``"email"``.
        content: Image description or email body to analyse.
        api_key: Bearer token for the chat-completion endpoint.
    """

    type: str
    content: str
    api_key: str

    def __repr__(self) -> str:
        return f"AnalysisRequest(type={self.type!r}, content_length={len(self.content)})"

    @classmethod
    def create(cls, api_key: str, content: str, content_type: str) -> "AnalysisRequest":
        """Validate the inputs and build a request.

        Raises:
            InvalidInputError: If *api_key* or *content* is empty, or
                *content_type* is not a known content type.
        """
        if not api_key:
            raise InvalidInputError("API key is required")
        if not content:
            raise InvalidInputError("Content is required for analysis")
        if content_type not in CONTENT_TYPES:
            raise InvalidInputError(
                f"Unsupported content type: {content_type!r}. "
                f"Must be one of: {', '.join(CONTENT_TYPES)}"
            )
        return cls(type=content_type, content=content, api_key=api_key)


# ---------------------------------------------------------------------------
# AnalysisResult model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisResult:
    """Structured outcome of one analysis call.

    Attributes:
        type: Content type that was analysed.
        content: Echo of the analysed input.
        analysis: The model's reply, verbatim.
        risk_level: ``high``, ``medium`` or ``low``.
        recommendations: Bullet lines from the reply, in order.  Never
            empty: a placeholder entry stands in when none were found.
    """

    type: str
    content: str
    analysis: str
    risk_level: str
    recommendations: tuple[str, ...]

    def meets(self, level: str) -> bool:
        """Return ``True`` if the risk level meets or exceeds *level*.

        Ordering: ``high > medium > low``.
        """
        threshold = RISK_ORDER.get(level.lower(), 0)
        return RISK_ORDER.get(self.risk_level, 0) >= threshold

    def to_dict(self) -> dict:
        """Return a JSON-serializable dictionary representation."""
        return {
            "type": self.type,
            "content": self.content,
            "analysis": self.analysis,
            "risk_level": self.risk_level,
            "recommendations": list(self.recommendations),
        }
