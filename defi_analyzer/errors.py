"""Error kinds raised by the analyzer and surfaced to tool callers."""

from typing import Optional


class AnalyzerError(Exception):
    """Base analyzer error."""
    pass


class InvalidInputError(AnalyzerError):
    """Caller supplied a malformed wallet address or tool argument."""
    pass


class UnresolvedTokenError(InvalidInputError):
    """Token symbol has no known contract address."""

    def __init__(self, symbol: str):
        super().__init__(f"Unresolved token symbol: {symbol}")
        self.symbol = symbol


class MissingCredentialError(AnalyzerError):
    """A required API key is not configured."""
    pass


class UpstreamError(AnalyzerError):
    """A data provider could not serve the request."""

    def __init__(self, message: str, *, provider: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class UpstreamTimeoutError(UpstreamError):
    """Provider job did not finish within the polling budget."""
    pass


class UpstreamFailureError(UpstreamError):
    """Provider reported failure or the transport broke."""
    pass


class RateLimitedError(UpstreamFailureError):
    """Provider answered HTTP 429."""
    pass
