"""
OAuth 1.0a exception classes.

This module defines the exception hierarchy for the client. Only the
token exchange layer, the signer and the credential store raise these;
the authorization session catches them, logs, and reports failures via
its return values and the sticky ``access_failed`` flag.
"""

from typing import Dict, Optional


class OAuth1Error(Exception):
    """Base exception for all OAuth 1.0a client errors."""

    pass


class ConfigurationError(OAuth1Error):
    """OAuth configuration error (invalid configuration value)."""

    pass


class MissingConfigurationError(ConfigurationError):
    """A required field (URL, consumer key, token, ...) is empty."""

    pass


class SigningError(OAuth1Error):
    """The request could not be signed (missing consumer credentials, bad URL)."""

    pass


class ProtocolError(OAuth1Error):
    """
    The provider answered with an ``oauth_problem`` or a partial token response.

    Attributes:
        problem: Value of the ``oauth_problem`` field, if one was returned
        params: Every key/value pair parsed from the response body
    """

    def __init__(
        self,
        message: str,
        problem: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.problem = problem
        self.params = params or {}


class TransportError(OAuth1Error):
    """Network or TLS failure while talking to the provider."""

    pass


class ValidationMismatchError(OAuth1Error):
    """An out-of-band verifier was supplied for a request token not on record."""

    pass


class PersistenceError(OAuth1Error):
    """Credential store operation failed (file I/O error)."""

    pass
