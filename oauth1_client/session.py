"""
OAuth 1.0a authorization session.

This module provides the main interface for the OAuth 1.0a flow. An
``AuthorizationSession`` owns the credentials for one provider and drives
the three-legged dance one step per ``tick()``:

    NEED_REQUEST_TOKEN -> AWAITING_VERIFICATION -> READY_FOR_ACCESS_TOKEN
        -> AUTHORIZED

Any failed exchange moves the session to ACCESS_FAILED, where it stays
until ``reset_errors()`` is called. The host application calls ``tick()``
from its own loop; network calls made by a tick are blocking. The
verifier arrives either through the local callback server (on its own
thread) or through ``set_request_token_verifier()`` / ``submit_pin()``.

Once authorized, ``get()`` and ``post()`` sign and send API requests.
"""

import logging
import threading
import time
import webbrowser
from enum import Enum
from typing import Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode

from .callback_server import VerifierCallbackHandler, VerifierCallbackServer
from .config import HttpMethod, OAuthClientConfig
from .credential_store import CredentialStore, LoadStatus
from .credentials import CredentialRecord, Credentials
from .exceptions import (
    MissingConfigurationError,
    PersistenceError,
    ProtocolError,
    SigningError,
    TransportError,
    ValidationMismatchError,
)
from .signer import RequestSigner
from .token_exchange import TokenExchangeClient
from .transport import HttpTransport

logger = logging.getLogger(__name__)

Query = Union[str, Mapping[str, str], None]


class AuthorizationPhase(str, Enum):
    """Where the session is in the OAuth flow."""

    ACCESS_FAILED = "access_failed"
    NEED_REQUEST_TOKEN = "need_request_token"
    AWAITING_VERIFICATION = "awaiting_verification"
    READY_FOR_ACCESS_TOKEN = "ready_for_access_token"
    AUTHORIZED = "authorized"


class AuthorizationSession(VerifierCallbackHandler):
    """
    Drives the OAuth 1.0a flow and signs authenticated requests.

    Example:
        session = AuthorizationSession(OAuthClientConfig(
            api_base_url="https://api.twitter.com",
            consumer_key="...",
            consumer_secret="...",
        ))
        while not session.is_authorized:
            session.tick()      # from the host's update loop
        body = session.get("/1.1/statuses/mentions_timeline.json")
    """

    def __init__(
        self,
        config: Optional[OAuthClientConfig] = None,
        credential_store: Optional[CredentialStore] = None,
        transport: Optional[HttpTransport] = None,
        load_credentials: bool = True,
    ):
        """
        Initialize the session.

        Args:
            config: Client configuration (loads from environment if not provided)
            credential_store: Credential persistence (file from config if not provided)
            transport: HTTP transport (built from config if not provided)
            load_credentials: Load stored credentials matching the consumer
        """
        self.config = config or OAuthClientConfig.from_env()
        self.credentials = Credentials(
            consumer_key=self.config.consumer_key,
            consumer_secret=self.config.consumer_secret,
        )
        self.signer = RequestSigner(
            signing_method=self.config.signing_method,
            realm=self.config.realm,
            rsa_private_key=self.config.rsa_private_key,
        )
        self.transport = transport or HttpTransport(
            ca_bundle=self.config.ca_bundle,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
        )
        self.exchange = TokenExchangeClient(self.signer, self.transport)
        self.store = credential_store or CredentialStore(self.config.credentials_file)

        self.callback_url = self.config.callback_url
        self.callback_confirmed = False
        self.verification_requested = False
        self.verification_url = ""
        self.access_failed = False
        self.access_failed_reported = False

        self._callback_server: Optional[VerifierCallbackServer] = None
        # Shared by tick() and the callback server thread
        self._lock = threading.RLock()

        if load_credentials:
            self.load_credentials()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> AuthorizationPhase:
        with self._lock:
            if self.access_failed:
                return AuthorizationPhase.ACCESS_FAILED
            if self.credentials.is_authorized:
                return AuthorizationPhase.AUTHORIZED
            if self.credentials.has_verifier:
                return AuthorizationPhase.READY_FOR_ACCESS_TOKEN
            if self.credentials.has_request_token:
                return AuthorizationPhase.AWAITING_VERIFICATION
            return AuthorizationPhase.NEED_REQUEST_TOKEN

    @property
    def is_authorized(self) -> bool:
        return self.credentials.is_authorized

    @property
    def callback_server(self) -> Optional[VerifierCallbackServer]:
        return self._callback_server

    def tick(self) -> AuthorizationPhase:
        """
        Advance the flow by one step.

        Safe to call repeatedly from a host loop: steps that are waiting on
        the user do nothing, and a failure is logged only once.

        Returns:
            The phase after this step
        """
        with self._lock:
            if self.access_failed:
                if not self.access_failed_reported:
                    logger.error("Access failed.")
                    self.access_failed_reported = True
                self._stop_callback_server()

            elif not self.credentials.is_authorized:
                if not self.credentials.has_verifier:
                    if not self.credentials.has_request_token:
                        if self.config.enable_callback_server:
                            self._start_callback_server()
                        else:
                            logger.debug(
                                "Callback server disabled, expecting an out-of-band "
                                "verifier via set_request_token_verifier()"
                            )
                        self.obtain_request_token()

                    elif not self.verification_requested:
                        self.request_user_verification(
                            launch_browser=self.config.open_browser
                        )
                        self.verification_requested = True
                        logger.info("Waiting for user verification")

                else:
                    self.verification_requested = False
                    self._stop_callback_server()
                    self.obtain_access_token()

            else:
                self._stop_callback_server()

            return self.phase

    def ensure_authorized(self, timeout: float = 300, poll_interval: float = 0.5) -> bool:
        """
        Tick until authorized, failed, or out of time.

        For programs without their own update loop (scripts, the CLI).

        Args:
            timeout: Maximum seconds to wait for the user
            poll_interval: Seconds between ticks while waiting

        Returns:
            True if authorized, False on failure or timeout
        """
        deadline = time.monotonic() + timeout

        while True:
            phase = self.tick()
            if phase is AuthorizationPhase.AUTHORIZED:
                # one more tick releases the callback server
                self.tick()
                return True
            if phase is AuthorizationPhase.ACCESS_FAILED:
                self.tick()
                return False
            if time.monotonic() >= deadline:
                logger.warning(f"Timeout waiting for authorization after {timeout}s")
                self._stop_callback_server()
                return False

            server = self._callback_server
            if phase is AuthorizationPhase.AWAITING_VERIFICATION and server is not None:
                if (
                    server.wait_for_verifier(timeout=poll_interval)
                    and not self.credentials.has_verifier
                ):
                    # left over from a request token that was since reset
                    server.verifier_received.clear()
            else:
                time.sleep(poll_interval)

    def reset_errors(self) -> None:
        """Clear the sticky failure so the next tick retries."""
        with self._lock:
            self.access_failed = False
            self.access_failed_reported = False

    def reset(self) -> None:
        """Clear errors and any in-progress request token."""
        with self._lock:
            self.reset_errors()
            self.credentials.clear_request_token()
            self.callback_confirmed = False
            self.verification_requested = False
            self.verification_url = ""

    def revoke(self) -> bool:
        """
        Forget the access token locally and delete the stored credentials.

        Note: this does not revoke the token at the provider.

        Returns:
            True if a stored credentials file was deleted
        """
        with self._lock:
            self.reset()
            self.credentials.clear_access_token()
        try:
            deleted = self.store.delete()
        except PersistenceError as e:
            logger.error(f"Could not delete stored credentials: {e}")
            return False
        logger.info("Authorization revoked locally")
        return deleted

    def close(self) -> None:
        """Stop the callback server and release the HTTP session."""
        with self._lock:
            self._stop_callback_server()
        self.transport.close()

    def get_status(self) -> dict:
        """
        Get current authorization status for diagnostics.

        Returns:
            Dictionary with phase, authorization and identity information
        """
        with self._lock:
            server = self._callback_server
            return {
                "phase": self.phase.value,
                "authorized": self.credentials.is_authorized,
                "access_failed": self.access_failed,
                "api_name": self.config.api_name,
                "screen_name": self.credentials.screen_name,
                "user_id": self.credentials.user_id,
                "callback_url": self.callback_url,
                "callback_confirmed": self.callback_confirmed,
                "callback_server_running": server is not None and server.is_running,
                "verification_url": self.verification_url,
            }

    def _fail(self) -> None:
        self.access_failed = True
        self._stop_callback_server()

    # ------------------------------------------------------------------
    # Callback server
    # ------------------------------------------------------------------

    def _start_callback_server(self) -> None:
        if self._callback_server is not None:
            return

        self.callback_url = self.config.callback_url
        server = VerifierCallbackServer(
            self,
            host=self.config.callback_host,
            port=self.config.callback_port,
            path=self.config.callback_path,
            doc_root=self.config.callback_doc_root,
        )
        try:
            self.callback_url = server.start()
        except OSError as e:
            logger.error(f"Could not start verifier callback server: {e}")
            return
        self._callback_server = server

    def _stop_callback_server(self) -> None:
        if self._callback_server is not None:
            self._callback_server.stop()
            self._callback_server = None

    def received_get_params(self, params: Dict[str, str]) -> bool:
        """Take ``oauth_token`` and ``oauth_verifier`` from the redirect."""
        if "oauth_token" not in params or "oauth_verifier" not in params:
            return False
        try:
            self.set_request_token_verifier(params["oauth_token"], params["oauth_verifier"])
        except ValidationMismatchError as e:
            logger.error(str(e))
            return False
        return True

    # ------------------------------------------------------------------
    # Verifier
    # ------------------------------------------------------------------

    def set_request_token_verifier(self, request_token: str, verifier: str) -> None:
        """
        Supply the verifier for the request token on record.

        Args:
            request_token: Token the verifier was issued for
            verifier: ``oauth_verifier`` value

        Raises:
            ValidationMismatchError: If ``request_token`` is not the one on record
        """
        with self._lock:
            if not request_token or request_token != self.credentials.request_token:
                raise ValidationMismatchError(
                    "The request token didn't match the request token on record."
                )
            self.credentials.request_token_verifier = verifier
            logger.info("Received request token verifier")

    def submit_pin(self, verifier: str) -> None:
        """
        Supply an out-of-band verifier (PIN) for the current request token.

        Raises:
            ValidationMismatchError: If no request token has been obtained yet
        """
        self.set_request_token_verifier(self.credentials.request_token, verifier)

    def request_user_verification(
        self, additional_params: str = "", launch_browser: bool = True
    ) -> str:
        """
        Build the authorization page URL for the current request token.

        Args:
            additional_params: Appended verbatim (e.g. ``&force_login=true``)
            launch_browser: Open the URL in the default browser

        Returns:
            Authorization URL, or an empty string if it cannot be built
        """
        url = self.config.authorization_url
        if not url:
            logger.error("Authorization URL is not set.")
            return ""
        if not self.credentials.request_token:
            logger.error("No request token to authorize.")
            return ""

        url = f"{url}oauth_token={quote(self.credentials.request_token, safe='')}{additional_params}"
        self.verification_url = url
        logger.info(f"Authorize the application by visiting: {url}")

        if launch_browser:
            try:
                webbrowser.open(url)
            except webbrowser.Error as e:
                logger.warning(f"Could not open browser automatically: {e}")

        return url

    # ------------------------------------------------------------------
    # Token exchange
    # ------------------------------------------------------------------

    def obtain_request_token(self) -> Dict[str, str]:
        """
        Fetch a request token and record it.

        Returns:
            Every parameter of the provider's response (empty if no
            response was obtained). On a protocol failure the partial
            response is returned and the session enters ACCESS_FAILED.
        """
        extra_params = {}
        if self.config.application_display_name:
            extra_params["xoauth_displayname"] = self.config.application_display_name
        if self.config.application_scope:
            extra_params["scope"] = self.config.application_scope

        with self._lock:
            try:
                response = self.exchange.obtain_request_token(
                    self.config.request_token_url,
                    self.credentials.consumer_key,
                    self.credentials.consumer_secret,
                    callback_url=self.callback_url,
                    extra_params=extra_params,
                )
            except (MissingConfigurationError, SigningError) as e:
                logger.error(f"Cannot obtain request token: {e}")
                return {}
            except TransportError as e:
                logger.error(f"Request token call failed: {e}")
                return {}
            except ProtocolError as e:
                logger.warning(f"Request token rejected: {e}")
                self._fail()
                return dict(e.params)

            self.credentials.request_token = response.token
            self.credentials.request_token_secret = response.token_secret
            self.callback_confirmed = response.callback_confirmed
            logger.info("Obtained request token")
            return dict(response.params)

    def obtain_access_token(self) -> Dict[str, str]:
        """
        Exchange the verified request token for an access token and save it.

        Returns:
            Every parameter of the provider's response (empty if no
            response was obtained). On a protocol failure the partial
            response is returned and the session enters ACCESS_FAILED.
        """
        with self._lock:
            try:
                response = self.exchange.obtain_access_token(
                    self.config.access_token_url,
                    self.credentials.consumer_key,
                    self.credentials.consumer_secret,
                    self.credentials.request_token,
                    self.credentials.request_token_secret,
                    self.credentials.request_token_verifier,
                )
            except (MissingConfigurationError, SigningError) as e:
                logger.error(f"Cannot obtain access token: {e}")
                return {}
            except TransportError as e:
                logger.error(f"Access token call failed: {e}")
                return {}
            except ProtocolError as e:
                logger.warning(f"Access token rejected: {e}")
                self._fail()
                return dict(e.params)

            self.credentials.set_access_token(response.token, response.token_secret)
            if response.user_id:
                self.credentials.user_id = response.user_id
            if response.screen_name:
                self.credentials.screen_name = response.screen_name
            if response.encoded_user_id:
                self.credentials.encoded_user_id = response.encoded_user_id
            logger.info("Obtained access token")

            self.save_credentials()
            return dict(response.params)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_credentials(self) -> LoadStatus:
        """
        Load stored credentials if they belong to the configured consumer.

        Returns:
            LoadStatus.LOADED if a usable access token was loaded, otherwise
            the reason the stored record was not used
        """
        with self._lock:
            result = self.store.load_for(
                self.credentials.consumer_key, self.credentials.consumer_secret
            )

            if result.status is LoadStatus.CONSUMER_MISMATCH:
                logger.error(
                    "Found a credentials file, but it did not match the consumer "
                    "key/secret provided. Delete the credentials file and try again."
                )
            elif result.status is LoadStatus.NO_ACCESS_TOKEN:
                logger.error(
                    "Found a credentials file, but the access token/secret were empty. "
                    "Delete the credentials file and try again."
                )
            elif result.ok:
                result.record.apply_to(self.credentials)
                if result.record.api_name:
                    self.config.api_name = result.record.api_name
                logger.info("Loaded stored credentials")

            return result.status

    def save_credentials(self) -> bool:
        """
        Persist the current credentials.

        Returns:
            True if saved, False if the store failed (state is kept in memory)
        """
        record = CredentialRecord.from_credentials(self.credentials, api_name=self.config.api_name)
        try:
            self.store.save(record)
        except PersistenceError as e:
            logger.error(f"Could not save credentials, continuing in memory: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Authenticated requests
    # ------------------------------------------------------------------

    def get(self, path: str, query: Query = "") -> str:
        """
        Send a signed GET to ``api_base_url + path``.

        Args:
            path: Resource path (e.g. ``/1.1/statuses/mentions_timeline.json``)
            query: Query string (``a=1&b=2``) or mapping

        Returns:
            Response body, or an empty string on failure
        """
        return self._authenticated_request(HttpMethod.GET, path, query)

    def post(self, path: str, query: Query = "") -> str:
        """
        Send a signed POST to ``api_base_url + path``.

        Parameters travel in the request URI, as they are signed there.

        Returns:
            Response body, or an empty string on failure
        """
        return self._authenticated_request(HttpMethod.POST, path, query)

    def _authenticated_request(self, method: HttpMethod, path: str, query: Query) -> str:
        label = method.value.lower()
        with self._lock:
            credentials = Credentials(
                consumer_key=self.credentials.consumer_key,
                consumer_secret=self.credentials.consumer_secret,
                access_token=self.credentials.access_token,
                access_token_secret=self.credentials.access_token_secret,
            )

        required = [
            ("api URL", self.config.api_base_url),
            ("consumer key", credentials.consumer_key),
            ("consumer secret", credentials.consumer_secret),
            ("access token", credentials.access_token),
            ("access token secret", credentials.access_token_secret),
        ]
        for name, value in required:
            if not value:
                logger.error(f"{label}: No {name} specified.")
                return ""

        query_string = urlencode(query) if isinstance(query, Mapping) else (query or "")
        url = f"{self.config.api_base_url}{path}"
        if query_string:
            url = f"{url}?{query_string}"

        try:
            signed = self.signer.sign(
                url,
                method,
                credentials=credentials,
                token=credentials.access_token,
                token_secret=credentials.access_token_secret,
            )
        except SigningError as e:
            logger.error(f"{label}: {e}")
            return ""

        try:
            if method is HttpMethod.POST:
                body = self.transport.post(signed.url, "", headers=signed.headers)
            else:
                body = self.transport.get(signed.url, headers=signed.headers)
        except TransportError as e:
            logger.error(f"{label}: HTTP request failed: {e}")
            return ""

        if not body:
            logger.debug(f"{label}: empty response")
        return body
