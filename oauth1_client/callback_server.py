"""
Local verifier callback server.

When a callback URL is registered with the provider, the user's browser is
redirected to it after granting access, carrying ``oauth_token`` and
``oauth_verifier`` in the query string. This module runs a small Flask app
on a background thread to receive that redirect and hand the parameters to
a ``VerifierCallbackHandler`` (normally the authorization session).

The server is single-purpose: it is started lazily by the session, and
stopped as soon as a verifier has been obtained.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from flask import Flask, Response, request, send_from_directory
from werkzeug.serving import make_server

logger = logging.getLogger(__name__)

DEFAULT_PAGE = """<html>
<head><title>Authorization Complete</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px;">
    <h1>Authorization Complete</h1>
    <p>The application has received your authorization.</p>
    <p style="margin-top: 30px; color: #666;">You can close this window.</p>
</body>
</html>"""


class VerifierCallbackHandler:
    """
    Receives parsed callback requests.

    Every hook is a no-op by default; subclasses (or the session) override
    the ones they care about. Hooks run on the server thread.
    """

    def received_request(self, callback_request) -> None:
        pass

    def received_headers(self, headers: Dict[str, str]) -> None:
        pass

    def received_cookies(self, cookies: Dict[str, str]) -> None:
        pass

    def received_get_params(self, params: Dict[str, str]) -> bool:
        """Return True if the params carried a verifier that was accepted."""
        return False

    def received_post_params(self, params: Dict[str, str]) -> None:
        pass


class VerifierCallbackServer:
    """
    HTTP listener for the OAuth verifier redirect.

    Example:
        server = VerifierCallbackServer(handler, port=None)
        callback_url = server.start()   # e.g. http://127.0.0.1:54321/
        ...
        server.stop()
    """

    def __init__(
        self,
        handler: VerifierCallbackHandler,
        host: str = "127.0.0.1",
        port: Optional[int] = None,
        path: str = "/",
        doc_root: Optional[str] = None,
    ):
        """
        Initialize the callback server.

        Args:
            handler: Receiver of callback hooks
            host: Interface to bind and host name used in the callback URL
            port: Port to bind (None or 0 picks a free port)
            path: URL path of the callback route
            doc_root: Directory whose index.html is returned to the browser
        """
        self.handler = handler
        self.host = host
        self.port = port or 0
        self.path = path if path.startswith("/") else "/" + path
        self.doc_root = Path(doc_root) if doc_root else None
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)
        self.verifier_received = threading.Event()
        self._server = None
        self._thread: Optional[threading.Thread] = None

        self.app.add_url_rule(
            self.path,
            "oauth_callback",
            self._handle_callback,
            methods=["GET", "POST"],
        )

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def url(self) -> str:
        """Externally reachable callback URL (port is final once started)."""
        return f"http://{self.host}:{self.port}{self.path}"

    def _handle_callback(self) -> Response:
        """Handle the provider redirect."""
        logger.info("Received verifier callback")

        get_params = request.args.to_dict()
        post_params = request.form.to_dict() if request.method == "POST" else {}

        self.handler.received_request(request)
        self.handler.received_headers(dict(request.headers))
        self.handler.received_cookies(request.cookies.to_dict())
        accepted = self.handler.received_get_params(get_params)
        if post_params:
            self.handler.received_post_params(post_params)

        if accepted:
            self.verifier_received.set()
        elif "oauth_verifier" in get_params:
            logger.warning("Callback verifier was not accepted, still waiting")

        return self._page()

    def _page(self) -> Response:
        if self.doc_root is not None and (self.doc_root / "index.html").is_file():
            return send_from_directory(str(self.doc_root.resolve()), "index.html")
        return Response(DEFAULT_PAGE, status=200, content_type="text/html")

    def start(self) -> str:
        """
        Start listening on a background thread.

        Returns:
            The callback URL to register as ``oauth_callback``

        Raises:
            OSError: If the port cannot be bound
        """
        if self._server is not None:
            return self.url

        self._server = make_server(self.host, self.port, self.app, threaded=True)
        self.port = self._server.server_port
        self.verifier_received.clear()

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="oauth-verifier-callback",
            daemon=True,
        )
        self._thread.start()

        logger.info(f"Verifier callback server listening on {self.url}")
        return self.url

    def wait_for_verifier(self, timeout: float = 300) -> bool:
        """
        Block until a callback carrying a verifier arrives.

        Returns:
            True if a verifier arrived within ``timeout`` seconds
        """
        return self.verifier_received.wait(timeout=timeout)

    def stop(self) -> None:
        """Stop the server and wait for its thread to exit."""
        if self._server is None:
            return

        logger.info("Verifier callback server shutting down")
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
