"""SecAnalyze configuration constants."""

from secanalyze import __app_name__, __version__

APP_NAME: str = __app_name__
VERSION: str = __version__

# Environment variable the CLI reads the API key from
API_KEY_ENV_VAR: str = "SECANALYZE_API_KEY"

# ---------------------------------------------------------------------------
# Chat-completion endpoint
# ---------------------------------------------------------------------------

API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
MODEL: str = "mixtral-8x7b-32768"
TEMPERATURE: float = 0.7
MAX_TOKENS: int = 1024

SYSTEM_PROMPT: str = (
    "You are a cybersecurity expert specializing in analyzing images and "
    "emails for security risks. Provide clear, non-technical explanations "
    "and practical recommendations."
)

PROMPT_TEMPLATES: dict[str, str] = {
    "image": "Analyze this image content for security implications: {content}",
    "email": (
        "Analyze this email for potential security risks, phishing attempts, "
        "or spam: {content}"
    ),
}

# ---------------------------------------------------------------------------
# Retry / deadline
# ---------------------------------------------------------------------------

MAX_ATTEMPTS: int = 3
RETRY_DELAY_SECONDS: float = 1.0
RETRYABLE_STATUSES: frozenset[int] = frozenset({503})

# No deadline unless the caller asks for one
DEFAULT_TIMEOUT_SECONDS: float | None = None

# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

RECOMMENDATION_MARKERS: tuple[str, ...] = ("-", "•")
NO_RECOMMENDATIONS: str = "No specific recommendations provided"

FAILURE_PREFIX: str = "Failed to analyze content: "
