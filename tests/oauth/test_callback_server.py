"""Tests for the verifier callback server."""

from unittest import mock

import pytest

from oauth1_client.callback_server import (
    DEFAULT_PAGE,
    VerifierCallbackHandler,
    VerifierCallbackServer,
)


class TestVerifierCallbackServer:
    """Tests for VerifierCallbackServer class."""

    @pytest.fixture
    def handler(self):
        """Handler that accepts every verifier."""
        handler = mock.Mock(spec=VerifierCallbackHandler)
        handler.received_get_params.return_value = True
        return handler

    @pytest.fixture
    def server(self, handler):
        """Server on a fixed port and path (not started)."""
        return VerifierCallbackServer(handler, port=8765, path="/callback")

    @pytest.fixture
    def client(self, server):
        """Flask test client for the callback app."""
        server.app.config["TESTING"] = True
        return server.app.test_client(use_cookies=False)

    def test_server_initialization(self, server, handler):
        """Server can be created without binding a port."""
        assert server.handler is handler
        assert server.is_running is False
        assert server.url == "http://127.0.0.1:8765/callback"

    def test_path_gets_leading_slash(self, handler):
        """Callback path is normalized to start with '/'."""
        server = VerifierCallbackServer(handler, path="cb")

        assert server.path == "/cb"

    def test_callback_with_verifier(self, server, client, handler):
        """A redirect carrying token and verifier reaches the handler."""
        response = client.get("/callback?oauth_token=abc&oauth_verifier=v123")

        assert response.status_code == 200
        assert b"Authorization Complete" in response.data
        handler.received_get_params.assert_called_once_with(
            {"oauth_token": "abc", "oauth_verifier": "v123"}
        )
        handler.received_request.assert_called_once()
        handler.received_headers.assert_called_once()
        handler.received_cookies.assert_called_once()
        handler.received_post_params.assert_not_called()
        assert server.verifier_received.is_set()

    def test_rejected_verifier_does_not_signal(self, server, client, handler):
        """A verifier the handler rejects leaves the server waiting."""
        handler.received_get_params.return_value = False

        client.get("/callback?oauth_token=stale&oauth_verifier=999")

        assert not server.verifier_received.is_set()
        assert server.wait_for_verifier(timeout=0.01) is False

    def test_callback_without_verifier(self, server, client, handler):
        """Other redirects are passed on but do not signal."""
        handler.received_get_params.return_value = False

        client.get("/callback?denied=abc")

        handler.received_get_params.assert_called_once_with({"denied": "abc"})
        assert not server.verifier_received.is_set()

    def test_post_params(self, client, handler):
        """Form parameters of a POST reach the handler."""
        client.post("/callback", data={"oauth_token": "abc", "oauth_verifier": "v"})

        handler.received_post_params.assert_called_once_with(
            {"oauth_token": "abc", "oauth_verifier": "v"}
        )

    def test_cookies_passed_to_handler(self, client, handler):
        """Request cookies reach the handler."""
        client.get("/callback", headers={"Cookie": "session=xyz"})

        handler.received_cookies.assert_called_once_with({"session": "xyz"})

    def test_other_paths_not_found(self, client, handler):
        """Only the callback path is routed."""
        response = client.get("/elsewhere")

        assert response.status_code == 404
        handler.received_get_params.assert_not_called()

    def test_serves_doc_root_index(self, tmp_path, handler):
        """index.html from the doc root is shown after the redirect."""
        (tmp_path / "index.html").write_text("<html>custom page</html>")
        server = VerifierCallbackServer(handler, doc_root=str(tmp_path))

        response = server.app.test_client().get("/?oauth_token=a&oauth_verifier=b")

        assert b"custom page" in response.data

    def test_missing_doc_root_uses_default_page(self, tmp_path, handler):
        """Without an index.html the built-in page is shown."""
        server = VerifierCallbackServer(handler, doc_root=str(tmp_path / "missing"))

        response = server.app.test_client().get("/")

        assert response.data.decode() == DEFAULT_PAGE

    def test_start_and_stop(self, handler):
        """start() binds a free port and returns the callback URL."""
        server = VerifierCallbackServer(handler, port=None)

        url = server.start()
        try:
            assert server.is_running is True
            assert server.port != 0
            assert url == f"http://127.0.0.1:{server.port}/"
            assert server.start() == url
        finally:
            server.stop()

        assert server.is_running is False
        server.stop()

    def test_wait_for_verifier_timeout(self, server):
        """wait_for_verifier returns False when nothing arrives."""
        assert server.wait_for_verifier(timeout=0.01) is False


class TestVerifierCallbackHandler:
    """Tests for the default handler hooks."""

    def test_default_hooks_are_noops(self):
        """Default hooks accept anything and never accept a verifier."""
        handler = VerifierCallbackHandler()

        handler.received_request(None)
        handler.received_headers({})
        handler.received_cookies({})
        assert handler.received_get_params({"oauth_token": "a", "oauth_verifier": "b"}) is False
        handler.received_post_params({})
