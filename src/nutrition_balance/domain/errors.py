"""Error types shared across the application."""


class InvalidInputError(ValueError):
    """User input rejected with a field-level message."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class EstimationError(RuntimeError):
    """AI estimation failed; the message is safe to show to the user."""


class EstimateParseError(EstimationError):
    """AI estimation returned a payload that does not match the schema."""


class ShareLinkError(ValueError):
    """A share link could not be decoded into a daily summary."""
