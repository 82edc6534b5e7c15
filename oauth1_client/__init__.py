"""
OAuth 1.0a client.

This package implements the client side of three-legged OAuth 1.0a:
obtaining a request token, sending the user to the provider's
authorization page, receiving the verifier (through a local callback
server or out-of-band), exchanging it for an access token, and signing
authenticated API requests with that token.

Public API:
    OAuthClientConfig: Endpoint, consumer and listener configuration
    SigningMethod / HttpMethod: Signing context
    Credentials / CredentialRecord: Token state and its persisted form
    CredentialStore: File-based credential persistence
    RequestSigner / SignedRequest: Request signing
    HttpTransport: HTTP collaborator
    TokenExchangeClient / TokenResponse: Request/access token round trips
    VerifierCallbackServer: Local listener for the verifier redirect
    AuthorizationSession / AuthorizationPhase: Flow driver

Exceptions:
    OAuth1Error: Base exception
    ConfigurationError: Invalid configuration value
    MissingConfigurationError: Required value empty
    SigningError: Request could not be signed
    ProtocolError: Provider rejected the exchange
    TransportError: Network/TLS failure
    ValidationMismatchError: Verifier for an unknown request token
    PersistenceError: Credential store failure
"""

from .callback_server import VerifierCallbackHandler, VerifierCallbackServer
from .config import HttpMethod, OAuthClientConfig, SigningMethod
from .credential_store import CredentialStore
from .credentials import CredentialRecord, Credentials
from .exceptions import (
    ConfigurationError,
    MissingConfigurationError,
    OAuth1Error,
    PersistenceError,
    ProtocolError,
    SigningError,
    TransportError,
    ValidationMismatchError,
)
from .session import AuthorizationPhase, AuthorizationSession
from .signer import RequestSigner, SignedRequest
from .token_exchange import TokenExchangeClient, TokenResponse, parse_token_response
from .transport import HttpTransport

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "OAuthClientConfig",
    "SigningMethod",
    "HttpMethod",
    # Credentials
    "Credentials",
    "CredentialRecord",
    "CredentialStore",
    # Signing and transport
    "RequestSigner",
    "SignedRequest",
    "HttpTransport",
    # Token exchange
    "TokenExchangeClient",
    "TokenResponse",
    "parse_token_response",
    # Callback server
    "VerifierCallbackHandler",
    "VerifierCallbackServer",
    # Session
    "AuthorizationSession",
    "AuthorizationPhase",
    # Exceptions
    "OAuth1Error",
    "ConfigurationError",
    "MissingConfigurationError",
    "SigningError",
    "ProtocolError",
    "TransportError",
    "ValidationMismatchError",
    "PersistenceError",
]
