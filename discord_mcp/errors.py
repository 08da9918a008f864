"""Exception types raised by the Discord client and surfaced as tool errors."""

from typing import Optional


class DiscordMCPError(Exception):
    """Base class for every error this package raises on purpose."""


class ConfigurationError(DiscordMCPError):
    """Missing token, or no guild ID could be resolved."""


class InvalidInputError(DiscordMCPError, ValueError):
    """A caller-supplied value is empty or malformed."""


class ConnectionNotReadyError(DiscordMCPError):
    """The Discord session could not be established."""


class DiscordAPIError(DiscordMCPError):
    """Discord answered with a non-success status."""

    def __init__(self, message: str, status: int = 0, code: Optional[int] = None):
        super().__init__(message)
        self.status = status
        self.code = code


class NotFoundError(DiscordAPIError):
    pass


class ForbiddenError(DiscordAPIError):
    pass


class RateLimitedError(DiscordAPIError):
    def __init__(self, retry_after: float, code: Optional[int] = None):
        super().__init__(f"Rate limited: retry after {retry_after}s", status=429, code=code)
        self.retry_after = retry_after
