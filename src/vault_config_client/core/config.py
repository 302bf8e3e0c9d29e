"""Configuration management for the Vault config client.

Provides centralized configuration using Pydantic settings with
environment variable support and validation. Every setting can be given
as a constructor argument or through ``VAULT_*`` environment variables;
nested settings use a double underscore, e.g. ``VAULT_AUTH__TYPE=approle``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic_settings import BaseSettings


class TokenAuthConfig(BaseModel):
    """Static token authentication."""

    model_config = ConfigDict(frozen=True)

    type: Literal["token"] = "token"
    token: str = Field(min_length=1, repr=False, description="Vault token")


class AppRoleAuthConfig(BaseModel):
    """AppRole machine authentication."""

    model_config = ConfigDict(frozen=True)

    type: Literal["approle"] = "approle"
    role_id: str = Field(min_length=1, description="AppRole role ID")
    secret_id: str | None = Field(
        default=None, repr=False, description="AppRole secret ID (optional)"
    )
    mount_path: str = Field(default="approle", description="AppRole auth mount")


AuthConfig = Annotated[
    TokenAuthConfig | AppRoleAuthConfig, Field(discriminator="type")
]

_auth_adapter: TypeAdapter[TokenAuthConfig | AppRoleAuthConfig] = TypeAdapter(AuthConfig)


def parse_auth_config(value: Any) -> TokenAuthConfig | AppRoleAuthConfig:
    """Validate a raw auth mapping (or pass through an existing config)."""
    if isinstance(value, TokenAuthConfig | AppRoleAuthConfig):
        return value
    return _auth_adapter.validate_python(value)


class RequestOptions(BaseModel):
    """Options passed on to the HTTP transport."""

    timeout: float | None = Field(
        default=None, gt=0, description="Per-request deadline in seconds"
    )
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    ca_cert_path: Path | None = Field(default=None, description="CA bundle path")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers sent with every request"
    )
    max_redirects: int = Field(
        default=1, ge=0, description="Redirect hops followed per request"
    )


class RenewalConfig(BaseModel):
    """Token renewal daemon settings."""

    lease_fraction: float = Field(
        default=0.5, gt=0.0, lt=1.0, description="Fraction of lease to wait before renewing"
    )
    retry_backoff_seconds: float = Field(
        default=3.0, gt=0, description="Fixed delay before retrying a failed renewal"
    )
    min_wait_seconds: float = Field(
        default=0.1, ge=0, description="Lower bound on the renewal wait"
    )


class VaultSettings(BaseSettings):
    """Vault client settings.

    All settings can be overridden via environment variables prefixed
    with ``VAULT_``. For nested settings, use double underscore notation:
    VAULT_AUTH__ROLE_ID=...
    """

    url: str = Field(description="Vault server URL")
    api_version: str = Field(default="v1", description="API version path segment")
    auth: AuthConfig = Field(description="Authentication method")
    namespace: str | None = Field(default=None, description="Vault Enterprise namespace")
    token_header: str = Field(default="X-Vault-Token", description="Auth header name")
    request_options: RequestOptions = Field(default_factory=RequestOptions)
    renewal: RenewalConfig = Field(default_factory=RenewalConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = {
        "env_prefix": "VAULT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the service URL scheme."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid Vault URL: {v}. Must start with http:// or https://")
        return v

    @field_validator("api_version")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        return v.strip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @property
    def auth_method(self) -> str:
        return self.auth.type


@lru_cache
def get_settings() -> VaultSettings:
    """Get cached client settings read from the environment.

    Returns:
        VaultSettings: Settings instance
    """
    return VaultSettings()


def get_settings_for_testing(**overrides: Any) -> VaultSettings:
    """Get settings for testing with optional overrides.

    Args:
        **overrides: Settings to override

    Returns:
        VaultSettings: Test settings instance
    """
    get_settings.cache_clear()

    defaults: dict[str, Any] = {
        "url": "http://127.0.0.1:8200",
        "auth": {"type": "token", "token": "test-root-token"},
        "log_level": "DEBUG",
        "renewal": {"retry_backoff_seconds": 0.05, "min_wait_seconds": 0.0},
    }
    defaults.update(overrides)
    return VaultSettings(**defaults)
