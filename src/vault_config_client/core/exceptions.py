"""Custom exceptions for the Vault config client.

Defines a hierarchy of exceptions with error codes, messages and context
information so callers can tell authentication, HTTP, transport and
configuration-injection failures apart.
"""

from typing import Any


class VaultClientError(Exception):
    """Base exception for all Vault config client errors.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        details: Additional context information
        cause: Original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary format."""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"[{self.code}] {self.message}"


class ConfigurationError(VaultClientError):
    """Raised when client configuration is invalid or the client is unusable."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        config_details = details or {}
        if config_key:
            config_details["config_key"] = config_key

        super().__init__(message, "CONFIGURATION_ERROR", config_details, cause)
        self.config_key = config_key


class AuthError(VaultClientError):
    """Raised when authentication or token renewal is rejected."""

    def __init__(
        self,
        message: str,
        method: str | None = None,
        status_code: int | None = None,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        auth_details = details or {}
        if method:
            auth_details["method"] = method
        if status_code is not None:
            auth_details["status_code"] = status_code
        if errors:
            auth_details["errors"] = errors

        super().__init__(message, "AUTH_ERROR", auth_details, cause)
        self.method = method
        self.status_code = status_code
        self.errors = errors or []


class RenewalNotSupportedError(AuthError):
    """Raised when an auth method has no way to renew its token."""

    def __init__(self, method: str) -> None:
        super().__init__(f"Auth method '{method}' does not support renewal", method=method)
        self.code = "RENEWAL_NOT_SUPPORTED"


class HttpError(VaultClientError):
    """Raised for any non-2xx terminal response from the Vault API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any | None = None,
        method: str | None = None,
        url: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        http_details = details or {}
        if status_code is not None:
            http_details["status_code"] = status_code
        if method:
            http_details["method"] = method
        if url:
            http_details["url"] = url

        super().__init__(message, "HTTP_ERROR", http_details, cause)
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url

    @property
    def errors(self) -> list[str]:
        """Error strings reported by Vault in the response body."""
        if isinstance(self.body, dict):
            return [str(e) for e in self.body.get("errors") or []]
        return []


class TransportError(HttpError):
    """Raised when the request never produced an HTTP response."""

    def __init__(
        self,
        message: str,
        reason: str = "unreachable",
        method: str | None = None,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            status_code=None,
            method=method,
            url=url,
            details={"reason": reason},
            cause=cause,
        )
        self.code = "TRANSPORT_ERROR"
        self.reason = reason


class ConfigInjectionError(VaultClientError):
    """Raised when one or more secret references in a config tree cannot be resolved.

    Attributes:
        failures: One entry per unresolved reference with ``path``, ``key`` and ``reason``
    """

    def __init__(
        self,
        failures: list[dict[str, Any]],
        cause: Exception | None = None,
    ) -> None:
        refs = ", ".join(f"{f['path']}#{f['key']}" for f in failures)
        super().__init__(
            f"Unable to resolve secret references: {refs}",
            "CONFIG_INJECTION_ERROR",
            {"failures": failures},
            cause,
        )
        self.failures = failures
