"""
Credential data structures.

``Credentials`` is the in-memory token state of an authorization session.
``CredentialRecord`` is the flat key/value form written by the credential
store once an access token has been obtained.
"""

from dataclasses import asdict, dataclass, fields


@dataclass
class Credentials:
    """
    Consumer and token credentials for one provider.

    All fields are opaque strings; an empty string means "not set".
    The access token and its secret are either both set or both empty.
    """

    consumer_key: str = ""
    consumer_secret: str = ""
    request_token: str = ""
    request_token_secret: str = ""
    request_token_verifier: str = ""
    access_token: str = ""
    access_token_secret: str = ""
    screen_name: str = ""
    user_id: str = ""
    encoded_user_id: str = ""
    user_password: str = ""
    encoded_user_password: str = ""

    @property
    def is_authorized(self) -> bool:
        """True when both the access token and its secret are present."""
        return bool(self.access_token) and bool(self.access_token_secret)

    @property
    def has_request_token(self) -> bool:
        return bool(self.request_token)

    @property
    def has_verifier(self) -> bool:
        return bool(self.request_token_verifier)

    def set_access_token(self, token: str, secret: str) -> bool:
        """
        Set the access token pair.

        Args:
            token: Access token
            secret: Access token secret

        Returns:
            True if the pair was stored, False if exactly one half was empty
            (nothing is changed in that case)
        """
        if bool(token) != bool(secret):
            return False
        self.access_token = token
        self.access_token_secret = secret
        return True

    def clear_access_token(self) -> None:
        self.access_token = ""
        self.access_token_secret = ""

    def clear_request_token(self) -> None:
        """Forget the request token, its secret and the verifier."""
        self.request_token = ""
        self.request_token_secret = ""
        self.request_token_verifier = ""


@dataclass
class CredentialRecord:
    """
    Persisted credential record.

    Field names follow the on-disk format. The consumer key and secret are
    stored so a record can be checked against the configured consumer
    before its access token is trusted.
    """

    api_name: str = ""
    consumer_key: str = ""
    consumer_secret: str = ""
    access_token: str = ""
    access_secret: str = ""
    screen_name: str = ""
    user_id: str = ""
    user_id_encoded: str = ""
    user_password: str = ""
    user_password_encoded: str = ""

    @property
    def has_access_token(self) -> bool:
        return bool(self.access_token) and bool(self.access_secret)

    def matches_consumer(self, consumer_key: str, consumer_secret: str) -> bool:
        """Check the stored consumer key/secret against the given pair."""
        return self.consumer_key == consumer_key and self.consumer_secret == consumer_secret

    def to_dict(self) -> dict:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the record
        """
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CredentialRecord":
        """
        Create a record from a dictionary.

        Unknown keys are ignored and missing keys default to empty strings.
        Values are coerced to ``str``.

        Raises:
            TypeError: If data is not a mapping
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        return cls(
            **{
                key: "" if value is None else str(value)
                for key, value in data.items()
                if key in known
            }
        )

    @classmethod
    def from_credentials(cls, credentials: Credentials, api_name: str = "") -> "CredentialRecord":
        """Build the persisted form of a session's credentials."""
        return cls(
            api_name=api_name,
            consumer_key=credentials.consumer_key,
            consumer_secret=credentials.consumer_secret,
            access_token=credentials.access_token,
            access_secret=credentials.access_token_secret,
            screen_name=credentials.screen_name,
            user_id=credentials.user_id,
            user_id_encoded=credentials.encoded_user_id,
            user_password=credentials.user_password,
            user_password_encoded=credentials.encoded_user_password,
        )

    def apply_to(self, credentials: Credentials) -> None:
        """Copy the stored access token and identity fields onto ``credentials``."""
        credentials.set_access_token(self.access_token, self.access_secret)
        credentials.screen_name = self.screen_name
        credentials.user_id = self.user_id
        credentials.encoded_user_id = self.user_id_encoded
        credentials.user_password = self.user_password
        credentials.encoded_user_password = self.user_password_encoded
