"""Turn a chat-completion reply into an :class:`AnalysisResult`.

Risk is read from keywords in the reply and recommendations from its
bullet lines.  No interpretation beyond that: the model does the judging.
"""

import json
import re
from typing import Any

from secanalyze.config import NO_RECOMMENDATIONS, RECOMMENDATION_MARKERS
from secanalyze.errors import MalformedResponseError
from secanalyze.models import HIGH, LOW, MEDIUM, AnalysisRequest, AnalysisResult

# Checked in order, first hit wins
_RISK_KEYWORDS: list[tuple[str, str]] = [
    ("high risk", HIGH),
    ("medium risk", MEDIUM),
]

# One leading bullet marker and the whitespace after it
_BULLET_RE = re.compile(
    "^(?:" + "|".join(map(re.escape, RECOMMENDATION_MARKERS)) + r")\s*"
)

_INVALID_FORMAT = "Invalid response format from API"


def extract_content(body: str | dict[str, Any]) -> str:
    """Return ``choices[0].message.content`` from a response body.

    Args:
        body: Raw JSON text or an already decoded object.

    Raises:
        MalformedResponseError: If the body is not JSON, the path is
            missing, or the content is not a non-empty string.
    """
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except ValueError as exc:
            raise MalformedResponseError(_INVALID_FORMAT) from exc

    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError(_INVALID_FORMAT) from exc

    if not isinstance(content, str) or not content:
        raise MalformedResponseError(_INVALID_FORMAT)
    return content


def classify_risk(analysis: str) -> str:
    """Map the reply to ``high``, ``medium`` or ``low``.

    Case-insensitive substring match, so "not high risk" still reads as
    high.  Replies without any risk wording default to ``low``.
    """
    lowered = analysis.lower()
    for keyword, level in _RISK_KEYWORDS:
        if keyword in lowered:
            return level
    return LOW


def extract_recommendations(analysis: str) -> list[str]:
    """Collect the ``-`` / ``•`` bullet lines of *analysis*, markers stripped."""
    recommendations = [
        _BULLET_RE.sub("", line.strip(), count=1)
        for line in analysis.split("\n")
        if line.strip().startswith(RECOMMENDATION_MARKERS)
    ]
    return recommendations or [NO_RECOMMENDATIONS]


def parse_response(request: AnalysisRequest, body: str | dict[str, Any]) -> AnalysisResult:
    """Build the :class:`AnalysisResult` for *request* from a response body."""
    analysis = extract_content(body)
    return AnalysisResult(
        type=request.type,
        content=request.content,
        analysis=analysis,
        risk_level=classify_risk(analysis),
        recommendations=tuple(extract_recommendations(analysis)),
    )
