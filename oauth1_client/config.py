"""
OAuth 1.0a client configuration.

This module provides configuration management for an OAuth 1.0a
authorization session: provider endpoints, consumer credentials, the
signing method, callback listener settings and credential persistence.
Configuration can be loaded from environment variables or provided
programmatically.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import ConfigurationError

REQUEST_TOKEN_PATH = "/oauth/request_token"
ACCESS_TOKEN_PATH = "/oauth/access_token"
AUTHORIZATION_PATH = "/oauth/authorize"


class SigningMethod(str, Enum):
    """OAuth signature methods."""

    HMAC_SHA1 = "HMAC-SHA1"
    RSA_SHA1 = "RSA-SHA1"
    PLAINTEXT = "PLAINTEXT"


class HttpMethod(str, Enum):
    """HTTP methods that can be signed and sent."""

    GET = "GET"
    POST = "POST"


def append_query_separator(url: str) -> str:
    """
    Ensure a non-empty URL ends with a query separator.

    ``?`` is appended to URLs without a query, ``&`` to URLs that already
    carry one, so parameters can be concatenated directly.

    Args:
        url: Endpoint URL (may be empty)

    Returns:
        The URL terminated by ``?`` or ``&``, or an empty string
    """
    if not url or url.endswith(("?", "&")):
        return url
    return url + ("&" if "?" in url else "?")


@dataclass
class OAuthClientConfig:
    """
    Configuration for an OAuth 1.0a authorization session.

    The request token, access token and authorization endpoints are
    derived from ``api_base_url`` unless given explicitly, and always end
    with a query separator.

    Attributes:
        api_base_url: Provider API base URL (e.g. https://api.twitter.com)
        consumer_key: Consumer key issued by the provider
        consumer_secret: Consumer secret issued by the provider
        request_token_url: Request token endpoint (derived if omitted)
        access_token_url: Access token endpoint (derived if omitted)
        authorization_url: User authorization page (derived if omitted)
        realm: Optional realm, sent in the Authorization header only
        signing_method: Signature method used for every request
        rsa_private_key: PEM key for RSA-SHA1 (defaults to the consumer secret)
        api_name: Label persisted with the credentials
        credentials_file: Path of the credential store file
        ca_bundle: CA bundle used to verify TLS connections
        timeout: HTTP timeout in seconds
        max_retries: Retries for transient network errors
        enable_callback_server: Start a local listener to receive the verifier
        callback_host: Host the listener binds and advertises
        callback_port: Listener port (None picks a free port)
        callback_path: URL path of the listener
        callback_doc_root: Directory whose index.html is shown after redirect
        callback_url: Fixed oauth_callback (e.g. "oob") used without a listener
        application_display_name: Sent as xoauth_displayname when set
        application_scope: Sent as scope when set
        open_browser: Open the authorization page automatically
    """

    api_base_url: str = ""
    consumer_key: str = ""
    consumer_secret: str = ""

    # Endpoints (derived from api_base_url when None)
    request_token_url: Optional[str] = None
    access_token_url: Optional[str] = None
    authorization_url: Optional[str] = None

    # Signing
    realm: str = ""
    signing_method: SigningMethod = SigningMethod.HMAC_SHA1
    rsa_private_key: str = ""

    # Persistence
    api_name: str = "GENERIC"
    credentials_file: str = "credentials.json"

    # Transport
    ca_bundle: Optional[str] = None
    timeout: int = 30
    max_retries: int = 3

    # Verifier callback listener
    enable_callback_server: bool = True
    callback_host: str = "127.0.0.1"
    callback_port: Optional[int] = None
    callback_path: str = "/"
    callback_doc_root: str = "VerifierCallbackServer/"
    callback_url: str = ""

    # Provider specific request token parameters
    application_display_name: str = ""
    application_scope: str = ""

    open_browser: bool = True

    def __post_init__(self) -> None:
        """Validate configuration and derive endpoints."""
        if not isinstance(self.signing_method, SigningMethod):
            try:
                self.signing_method = SigningMethod(self.signing_method)
            except ValueError:
                raise ConfigurationError(
                    f"Unknown signing method: {self.signing_method}"
                ) from None

        if self.callback_port is not None and (
            not isinstance(self.callback_port, int)
            or not (0 <= self.callback_port <= 65535)
        ):
            raise ConfigurationError(
                f"callback_port must be between 0 and 65535, got {self.callback_port}"
            )

        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")

        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative")

        if not self.callback_path.startswith("/"):
            self.callback_path = "/" + self.callback_path

        self.api_base_url = self.api_base_url.rstrip("/")
        self.request_token_url = append_query_separator(
            self.request_token_url
            if self.request_token_url is not None
            else self._derive(REQUEST_TOKEN_PATH)
        )
        self.access_token_url = append_query_separator(
            self.access_token_url
            if self.access_token_url is not None
            else self._derive(ACCESS_TOKEN_PATH)
        )
        self.authorization_url = append_query_separator(
            self.authorization_url
            if self.authorization_url is not None
            else self._derive(AUTHORIZATION_PATH)
        )

    def _derive(self, path: str) -> str:
        return f"{self.api_base_url}{path}" if self.api_base_url else ""

    def set_api_url(self, api_base_url: str, auto_set_endpoints: bool = True) -> None:
        """
        Change the API base URL.

        Args:
            api_base_url: New base URL
            auto_set_endpoints: Re-derive the three OAuth endpoints from it
        """
        self.api_base_url = api_base_url.rstrip("/")
        if auto_set_endpoints:
            self.request_token_url = append_query_separator(self._derive(REQUEST_TOKEN_PATH))
            self.access_token_url = append_query_separator(self._derive(ACCESS_TOKEN_PATH))
            self.authorization_url = append_query_separator(self._derive(AUTHORIZATION_PATH))

    @classmethod
    def from_env(cls, prefix: str = "OAUTH1_") -> "OAuthClientConfig":
        """
        Load configuration from environment variables.

        Recognized variables (all prefixed, e.g. ``OAUTH1_CONSUMER_KEY``):
            API_BASE_URL, CONSUMER_KEY, CONSUMER_SECRET,
            REQUEST_TOKEN_URL, ACCESS_TOKEN_URL, AUTHORIZATION_URL,
            REALM, SIGNING_METHOD, CREDENTIALS_FILE, CA_BUNDLE,
            CALLBACK_HOST, CALLBACK_PORT, CALLBACK_URL, ENABLE_CALLBACK_SERVER,
            APP_DISPLAY_NAME, APP_SCOPE

        Args:
            prefix: Prefix shared by all variables

        Returns:
            OAuthClientConfig instance

        Raises:
            ConfigurationError: If a value cannot be parsed
        """

        def env(name: str, default: Optional[str] = None) -> Optional[str]:
            return os.environ.get(prefix + name, default)

        port = env("CALLBACK_PORT")
        try:
            callback_port = int(port) if port else None
        except ValueError:
            raise ConfigurationError(
                f"{prefix}CALLBACK_PORT must be an integer, got {port!r}"
            ) from None

        return cls(
            api_base_url=env("API_BASE_URL", ""),
            consumer_key=env("CONSUMER_KEY", ""),
            consumer_secret=env("CONSUMER_SECRET", ""),
            request_token_url=env("REQUEST_TOKEN_URL"),
            access_token_url=env("ACCESS_TOKEN_URL"),
            authorization_url=env("AUTHORIZATION_URL"),
            realm=env("REALM", ""),
            signing_method=env("SIGNING_METHOD", SigningMethod.HMAC_SHA1.value),
            credentials_file=env("CREDENTIALS_FILE", "credentials.json"),
            ca_bundle=env("CA_BUNDLE"),
            callback_host=env("CALLBACK_HOST", "127.0.0.1"),
            callback_port=callback_port,
            callback_url=env("CALLBACK_URL", ""),
            enable_callback_server=env("ENABLE_CALLBACK_SERVER", "true").lower()
            in ("1", "true", "yes"),
            application_display_name=env("APP_DISPLAY_NAME", ""),
            application_scope=env("APP_SCOPE", ""),
        )
