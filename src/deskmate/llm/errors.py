"""User-facing messages for provider failures.

Every failure kind maps to a distinct, actionable message. Adapters build
their `Failure` outcomes through `make_failure` so that no raw protocol text
reaches the user.
"""

from .models import Failure, FailureKind

FAILURE_MESSAGES: dict[FailureKind, str] = {
    FailureKind.MISSING_CREDENTIAL: (
        "{provider} API key not found. Please add it in Settings or set {env_var} in your .env file."
    ),
    FailureKind.INVALID_CREDENTIAL: "Invalid {provider} API key. Check the key in Settings.",
    FailureKind.RATE_LIMITED: "{provider} rate limit exceeded. Try again later.",
    FailureKind.SERVICE_UNAVAILABLE: "{provider} is not running. Start it with: {start_hint}",
    FailureKind.UNKNOWN: "Sorry, I encountered an error: {detail}",
}

_DEFAULTS = {
    "provider": "The model service",
    "env_var": "the provider's API key variable",
    "start_hint": "the service's start command",
    "detail": "the request failed",
}


def failure_message(kind: FailureKind, **context: str | None) -> str:
    """Render the user-facing message for a failure kind."""
    values = dict(_DEFAULTS)
    values.update({key: value for key, value in context.items() if value})
    return FAILURE_MESSAGES[kind].format(**values)


def make_failure(kind: FailureKind, detail: str | None = None, **context: str | None) -> Failure:
    """Build a Failure outcome with its user-facing message.

    Args:
        kind: Failure classification
        detail: Upstream error text to keep alongside the message
        **context: Message placeholders (provider, env_var, start_hint)
    """
    detail = detail.strip() if detail else None
    message = failure_message(kind, detail=detail, **context)
    return Failure(kind=kind, message=message, detail=detail)
