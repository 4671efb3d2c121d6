"""Typed exception hierarchy for provider errors.

Provides structured exceptions for differentiated error handling
(auth errors vs transient network errors vs data issues).
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors.

    Carries the provider name and, when the provider reported one, its
    machine-readable error code (e.g. Plaid's ``ITEM_LOGIN_REQUIRED``).
    """

    def __init__(self, message: str, provider_name: str = "", error_code: str = ""):
        self.provider_name = provider_name
        self.error_code = error_code
        super().__init__(message)

    @property
    def retriable(self) -> bool:
        return False

    @property
    def is_timeout(self) -> bool:
        return False


class ProviderAuthError(ProviderError):
    """Credentials missing, expired, or invalid (HTTP 401/403, login required)."""

    pass


class ProviderConnectionError(ProviderError):
    """Network failures such as timeouts or refused connections.

    Retriable by default.
    """

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        retriable: bool = True,
        timeout: bool = False,
    ):
        self._retriable = retriable
        self._timeout = timeout
        super().__init__(message, provider_name)

    @property
    def retriable(self) -> bool:
        return self._retriable

    @property
    def is_timeout(self) -> bool:
        return self._timeout


class ProviderAPIError(ProviderError):
    """HTTP 4xx/5xx responses from the provider API."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
        error_code: str = "",
    ):
        self.status_code = status_code
        super().__init__(message, provider_name, error_code)

    @property
    def retriable(self) -> bool:
        """429 (rate limit) and 5xx errors are generally retriable."""
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500

    @property
    def is_timeout(self) -> bool:
        return self.status_code in (408, 504)


class ProviderDataError(ProviderError):
    """Malformed or unparseable response from the provider."""

    pass
