"""
OAuth 1.0a request signing.

Builds the signed parameter set for a request and serializes it twice:
the non-oauth parameters go into the request URI, the ``oauth_*``
parameters go into the ``Authorization`` header. Signature primitives
and RFC 5849 percent-encoding come from ``oauthlib``.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from oauthlib.common import generate_nonce, generate_timestamp
from oauthlib.oauth1 import Client
from oauthlib.oauth1.rfc5849 import signature
from oauthlib.oauth1.rfc5849.utils import escape

from .config import HttpMethod, SigningMethod
from .credentials import Credentials
from .exceptions import SigningError

logger = logging.getLogger(__name__)

OAUTH_VERSION = "1.0"

Params = Union[Mapping[str, str], Iterable[Tuple[str, str]], None]


@dataclass
class SignedRequest:
    """
    Result of signing a request.

    Attributes:
        url: Request URI (base URL plus the non-oauth parameters)
        query: The non-oauth parameters, ``&``-joined and percent-encoded
        authorization: Value for the ``Authorization`` header
        base_string: Signature base string the signature was computed over
    """

    url: str
    query: str
    authorization: str
    base_string: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": self.authorization}


def _as_pairs(params: Params) -> List[Tuple[str, str]]:
    if not params:
        return []
    items = params.items() if isinstance(params, Mapping) else params
    return [(str(key), str(value)) for key, value in items]


class RequestSigner:
    """
    Signs requests with consumer and token credentials.

    Signing is a pure function of its inputs: given the same nonce and
    timestamp, the same request always produces the same header and URI.
    """

    def __init__(
        self,
        signing_method: SigningMethod = SigningMethod.HMAC_SHA1,
        realm: str = "",
        rsa_private_key: str = "",
    ):
        """
        Initialize the signer.

        Args:
            signing_method: Signature method for every request
            realm: Optional realm, placed in the header but never signed
            rsa_private_key: PEM private key for RSA-SHA1; the consumer
                secret is used when empty
        """
        self.signing_method = SigningMethod(signing_method)
        self.realm = realm
        self.rsa_private_key = rsa_private_key

    def sign(
        self,
        url: str,
        http_method: HttpMethod = HttpMethod.GET,
        params: Params = None,
        credentials: Optional[Credentials] = None,
        token: str = "",
        token_secret: str = "",
        nonce: Optional[str] = None,
        timestamp: Optional[str] = None,
        signing_method: Optional[SigningMethod] = None,
    ) -> SignedRequest:
        """
        Sign a request.

        Query parameters already present in ``url`` are merged with
        ``params``. The token pair is passed explicitly so the same
        credentials object can sign request-token, access-token and
        resource calls.

        Args:
            url: Target URL, optionally with a query string
            http_method: HTTP method that will be used to send the request
            params: Extra parameters (oauth_callback, oauth_verifier, ...)
            credentials: Consumer key and secret holder
            token: Token to include as ``oauth_token`` (omitted when empty)
            token_secret: Secret paired with ``token``
            nonce: Fixed nonce (generated when None)
            timestamp: Fixed timestamp (generated when None)
            signing_method: Override the signer's default method for this call

        Returns:
            SignedRequest with the request URI and Authorization header

        Raises:
            SigningError: If consumer credentials are empty or the URL is invalid
        """
        credentials = credentials or Credentials()
        if not credentials.consumer_key:
            raise SigningError("Cannot sign request: no consumer key specified")
        if not credentials.consumer_secret:
            raise SigningError("Cannot sign request: no consumer secret specified")

        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise SigningError(f"Cannot parse URL {url!r}: {e}") from e
        if not parts.scheme or not parts.netloc:
            raise SigningError(f"Cannot sign request: URL {url!r} has no scheme or host")

        base_url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
        request_params = parse_qsl(parts.query, keep_blank_values=True)
        request_params.extend(_as_pairs(params))
        # realm is never part of the signed parameter set
        request_params = [(k, v) for k, v in request_params if k != "realm"]

        method_used = SigningMethod(signing_method or self.signing_method)
        oauth_params = [
            ("oauth_consumer_key", credentials.consumer_key),
            ("oauth_nonce", nonce or generate_nonce()),
            ("oauth_signature_method", method_used.value),
            ("oauth_timestamp", timestamp or generate_timestamp()),
            ("oauth_version", OAUTH_VERSION),
        ]
        if token:
            oauth_params.append(("oauth_token", token))

        all_params = request_params + oauth_params
        try:
            base_uri = signature.base_string_uri(base_url)
        except ValueError as e:
            raise SigningError(f"Cannot sign request for {url!r}: {e}") from e

        method = HttpMethod(http_method).value
        base_string = signature.signature_base_string(
            method, base_uri, signature.normalize_parameters(all_params)
        )
        all_params.append(
            (
                "oauth_signature",
                self._signature(
                    method_used,
                    base_string,
                    credentials.consumer_key,
                    credentials.consumer_secret,
                    token_secret,
                ),
            )
        )

        query = self._serialize_query(all_params)
        request_url = f"{base_url}?{query}" if query else base_url
        authorization = self._serialize_header(all_params)

        logger.debug(f"Signed {method} {request_url}")
        return SignedRequest(
            url=request_url,
            query=query,
            authorization=authorization,
            base_string=base_string,
        )

    def _signature(
        self,
        method: SigningMethod,
        base_string: str,
        consumer_key: str,
        consumer_secret: str,
        token_secret: str,
    ) -> str:
        client = Client(
            consumer_key,
            client_secret=consumer_secret,
            resource_owner_secret=token_secret or None,
            signature_method=method.value,
            rsa_key=(self.rsa_private_key or consumer_secret)
            if method is SigningMethod.RSA_SHA1
            else None,
        )
        if method is SigningMethod.HMAC_SHA1:
            return signature.sign_hmac_sha1_with_client(base_string, client)
        if method is SigningMethod.PLAINTEXT:
            return signature.sign_plaintext_with_client(base_string, client)
        try:
            return signature.sign_rsa_sha1_with_client(base_string, client)
        except (ValueError, TypeError, ImportError) as e:
            raise SigningError(f"RSA-SHA1 signing failed: {e}") from e

    @staticmethod
    def _serialize_query(params: List[Tuple[str, str]]) -> str:
        return "&".join(
            f"{escape(key)}={escape(value)}"
            for key, value in sorted(params)
            if not key.startswith("oauth_")
        )

    def _serialize_header(self, params: List[Tuple[str, str]]) -> str:
        header_params = [
            f'{escape(key)}="{escape(value)}"'
            for key, value in sorted(params)
            if key.startswith("oauth_")
        ]
        if self.realm:
            header_params.insert(0, f'realm="{self.realm}"')
        return "OAuth " + ", ".join(header_params)
