"""Tests for OAuth 1.0a exceptions."""

import pytest

from oauth1_client.exceptions import (
    ConfigurationError,
    MissingConfigurationError,
    OAuth1Error,
    PersistenceError,
    ProtocolError,
    SigningError,
    TransportError,
    ValidationMismatchError,
)


class TestOAuth1Exceptions:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "exc_class",
        [
            ConfigurationError,
            MissingConfigurationError,
            SigningError,
            ProtocolError,
            TransportError,
            ValidationMismatchError,
            PersistenceError,
        ],
    )
    def test_all_inherit_from_base(self, exc_class):
        """Every error can be caught as OAuth1Error."""
        error = exc_class("boom")
        assert isinstance(error, OAuth1Error)
        assert str(error) == "boom"

    def test_missing_configuration_is_configuration_error(self):
        """MissingConfigurationError is a ConfigurationError."""
        with pytest.raises(ConfigurationError):
            raise MissingConfigurationError("No consumer key specified")

    def test_protocol_error_carries_problem_and_params(self):
        """ProtocolError exposes oauth_problem and the parsed response."""
        error = ProtocolError(
            "rejected", problem="token_rejected", params={"oauth_problem": "token_rejected"}
        )

        assert error.problem == "token_rejected"
        assert error.params == {"oauth_problem": "token_rejected"}

    def test_protocol_error_defaults(self):
        """ProtocolError without details has no problem and empty params."""
        error = ProtocolError("partial")

        assert error.problem is None
        assert error.params == {}
