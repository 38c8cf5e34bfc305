"""Share-link encoding for daily summaries."""

import base64

from nutrition_balance.domain.errors import ShareLinkError
from nutrition_balance.domain.share import DailySummary


def encode_summary(summary: DailySummary) -> str:
    """Encode a summary as a URL-safe token."""
    payload = summary.model_dump_json().encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def decode_summary(token: str) -> DailySummary:
    """Decode a token produced by ``encode_summary``."""
    if not token:
        raise ShareLinkError("No summary data found in the link.")
    padded = token + "=" * (-len(token) % 4)
    try:
        payload = base64.urlsafe_b64decode(padded.encode("ascii"))
        return DailySummary.model_validate_json(payload)
    except ValueError as exc:
        raise ShareLinkError(
            "This sharing link is invalid or has expired. Please ask for a new link."
        ) from exc
