"""
Token exchange for OAuth 1.0a.

This module performs the two OAuth round trips:
- Temporary credentials: consumer credentials -> request token
- Token credentials: request token + verifier -> access token

Both responses are ``application/x-www-form-urlencoded`` bodies which are
parsed into a ``TokenResponse``.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
from urllib.parse import unquote_plus

from .config import HttpMethod
from .credentials import Credentials
from .exceptions import MissingConfigurationError, ProtocolError
from .signer import RequestSigner
from .transport import HttpTransport

logger = logging.getLogger(__name__)

# Keys with a dedicated TokenResponse attribute
KNOWN_FIELDS = {
    "oauth_token": "token",
    "oauth_token_secret": "token_secret",
    "oauth_callback_confirmed": "callback_confirmed",
    "oauth_problem": "problem",
    "user_id": "user_id",
    "screen_name": "screen_name",
    "encoded_user_id": "encoded_user_id",
}


@dataclass
class TokenResponse:
    """
    Parsed token endpoint response.

    Attributes:
        params: Every key/value pair in the response
        extensions: Pairs that are not known OAuth or identity fields
    """

    token: str = ""
    token_secret: str = ""
    callback_confirmed: bool = False
    problem: str = ""
    user_id: str = ""
    screen_name: str = ""
    encoded_user_id: str = ""
    params: Dict[str, str] = field(default_factory=dict)
    extensions: Dict[str, str] = field(default_factory=dict)

    @property
    def has_token(self) -> bool:
        return bool(self.token) and bool(self.token_secret)


def parse_token_response(body: str) -> TokenResponse:
    """
    Parse a ``key=value&key=value`` token response body.

    Segments that do not split into exactly one key and one value are
    skipped. An ``oauth_problem`` is logged but still recorded.

    Args:
        body: Raw response body

    Returns:
        TokenResponse with known fields populated
    """
    response = TokenResponse()

    for segment in (body or "").strip().split("&"):
        if not segment:
            continue
        parts = segment.split("=")
        if len(parts) != 2:
            logger.warning(f"Response parameter did not have 2 values: {segment} - skipping")
            continue

        key, value = unquote_plus(parts[0]), unquote_plus(parts[1])
        response.params[key] = value

        attribute = KNOWN_FIELDS.get(key)
        if attribute is None:
            logger.info(f"Got an unknown response parameter: {key}")
            response.extensions[key] = value
        elif attribute == "callback_confirmed":
            response.callback_confirmed = value.lower() == "true"
        else:
            setattr(response, attribute, value)

    if response.problem:
        logger.error(f"Got oauth problem: {response.problem}")

    return response


class TokenExchangeClient:
    """
    Performs the request-token and access-token exchanges.

    Requests are signed GETs; the provider's reply body is parsed even for
    error status codes so ``oauth_problem`` is visible to the caller.
    """

    def __init__(self, signer: RequestSigner, transport: HttpTransport):
        self.signer = signer
        self.transport = transport

    def obtain_request_token(
        self,
        request_token_url: str,
        consumer_key: str,
        consumer_secret: str,
        callback_url: str = "",
        extra_params: Optional[Mapping[str, str]] = None,
    ) -> TokenResponse:
        """
        Obtain temporary credentials (a request token).

        Args:
            request_token_url: Request token endpoint
            consumer_key: Consumer key
            consumer_secret: Consumer secret
            callback_url: Sent as ``oauth_callback`` when non-empty
            extra_params: Provider specific parameters passed through as-is
                (e.g. ``xoauth_displayname``, ``scope``)

        Returns:
            TokenResponse with ``token`` and ``token_secret`` set

        Raises:
            MissingConfigurationError: If URL or consumer credentials are empty
            ProtocolError: If the response lacks the token or its secret
            TransportError: If the request could not be sent
        """
        _require(
            request_token_url=request_token_url,
            consumer_key=consumer_key,
            consumer_secret=consumer_secret,
        )

        params = {}
        if callback_url:
            params["oauth_callback"] = callback_url
        for key, value in (extra_params or {}).items():
            if value:
                params[key] = value

        logger.info("Requesting request token")
        response = self._exchange(
            request_token_url,
            Credentials(consumer_key=consumer_key, consumer_secret=consumer_secret),
            params,
        )
        self._check_token(response, "Request token")
        return response

    def obtain_access_token(
        self,
        access_token_url: str,
        consumer_key: str,
        consumer_secret: str,
        request_token: str,
        request_token_secret: str,
        verifier: str,
    ) -> TokenResponse:
        """
        Exchange an authorized request token for token credentials.

        Args:
            access_token_url: Access token endpoint
            consumer_key: Consumer key
            consumer_secret: Consumer secret
            request_token: Request token approved by the user
            request_token_secret: Secret paired with the request token
            verifier: ``oauth_verifier`` returned to the callback (or PIN)

        Returns:
            TokenResponse with the access token pair and identity fields

        Raises:
            MissingConfigurationError: If any argument is empty
            ProtocolError: If the response lacks the token or its secret
            TransportError: If the request could not be sent
        """
        _require(
            access_token_url=access_token_url,
            consumer_key=consumer_key,
            consumer_secret=consumer_secret,
            request_token=request_token,
            request_token_secret=request_token_secret,
            verifier=verifier,
        )

        logger.info("Exchanging request token for access token")
        response = self._exchange(
            access_token_url,
            Credentials(consumer_key=consumer_key, consumer_secret=consumer_secret),
            {"oauth_verifier": verifier},
            token=request_token,
            token_secret=request_token_secret,
        )
        self._check_token(response, "Access token")
        return response

    def _exchange(
        self,
        url: str,
        credentials: Credentials,
        params: Mapping[str, str],
        token: str = "",
        token_secret: str = "",
    ) -> TokenResponse:
        signed = self.signer.sign(
            url,
            HttpMethod.GET,
            params,
            credentials,
            token=token,
            token_secret=token_secret,
        )
        body = self.transport.get(signed.url, headers=signed.headers)
        if not body:
            logger.warning(f"Empty response from {url}")
        return parse_token_response(body)

    @staticmethod
    def _check_token(response: TokenResponse, label: str) -> None:
        missing = []
        if not response.token:
            missing.append("token")
        if not response.token_secret:
            missing.append("token secret")
        if missing:
            message = f"{label} response is missing {' and '.join(missing)}"
            if response.problem:
                message += f" (oauth_problem={response.problem})"
            logger.warning(message)
            raise ProtocolError(message, problem=response.problem or None, params=response.params)


def _require(**values: str) -> None:
    for name, value in values.items():
        if not value:
            raise MissingConfigurationError(f"No {name.replace('_', ' ')} specified")
