"""Error taxonomy for balance lookups.

Every error that may reach a caller derives from ``BalanceError`` and carries
the HTTP status the API maps it to:

  BadRequest (400)      malformed input, never retried
  InvalidAddress (400)  chain-specific address check failed
  RateLimited (429)     upstream throttling, retried internally
  UpstreamFailure (500) any other upstream error, after retries

``MetadataUnavailable`` is internal only and is always absorbed into a
fallback value or a skipped token.
"""

from __future__ import annotations

from collections.abc import Iterable

REDACTED = "***redacted***"


class BalanceError(Exception):
    """Base error for the balance pipeline."""

    http_status: int = 500

    def __init__(self, message: str, *, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_payload(self) -> dict[str, str]:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class BadRequest(BalanceError):
    http_status = 400


class InvalidAddress(BadRequest):
    """Raised when an address fails its chain's format check."""


class RateLimited(BalanceError):
    """Raised when an upstream API answers with HTTP 429."""

    http_status = 429


class UpstreamFailure(BalanceError):
    http_status = 500


class MetadataUnavailable(Exception):
    """Token metadata could not be resolved."""


def redact(text: str, secrets: Iterable[str | None]) -> str:
    """Replace every configured secret value occurring in ``text``."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text
