class ProviderError(Exception):
    """Raised when a remote analysis or translation provider call fails."""


class ProviderNetworkError(ProviderError):
    """Raised on transient failures (network, timeout, rate limit, 5xx); retryable."""


class ProviderResponseError(ProviderError):
    """Raised when a provider answers with an unusable payload."""


class AnalysisError(Exception):
    """Raised when neither a provider nor the local fallback produced a result."""
