"""
Twitter (X) API v1.1 helpers.

Twitter uses the conventional ``/oauth/*`` endpoints under its API host,
so a session only needs the base URL. The functions below are thin
wrappers over ``AuthorizationSession.get``.
"""

from typing import Optional

from ..config import OAuthClientConfig
from ..session import AuthorizationSession

TWITTER_API_URL = "https://api.twitter.com"


def twitter_config(consumer_key: str, consumer_secret: str, **kwargs) -> OAuthClientConfig:
    """Configuration for Twitter; extra keyword arguments override defaults."""
    kwargs.setdefault("api_name", "TWITTER")
    return OAuthClientConfig(
        api_base_url=TWITTER_API_URL,
        consumer_key=consumer_key,
        consumer_secret=consumer_secret,
        **kwargs,
    )


def create_twitter_session(
    consumer_key: str, consumer_secret: str, **kwargs
) -> AuthorizationSession:
    return AuthorizationSession(twitter_config(consumer_key, consumer_secret, **kwargs))


def get_retweets_of_me(session: AuthorizationSession, count: Optional[int] = None) -> str:
    """Most recent tweets of the authenticating user that were retweeted by others."""
    query = {"count": str(count)} if count else ""
    return session.get("/1.1/statuses/retweets_of_me.json", query)


def get_mentions(session: AuthorizationSession, count: Optional[int] = None) -> str:
    """
    Most recent mentions (tweets containing the user's @screen_name).

    The timeline returned is the one seen on the user's mentions page;
    at most 800 tweets are reachable.
    """
    query = {"count": str(count)} if count else ""
    return session.get("/1.1/statuses/mentions_timeline.json", query)


def update_status(session: AuthorizationSession, status: str) -> str:
    """Post a tweet."""
    return session.post("/1.1/statuses/update.json", {"status": status})
