"""
OAuth 1.0a authorization command.

Runs the authorization flow for the provider configured in the
environment and stores the resulting access token, reports the current
status, revokes stored credentials, or makes a signed GET request.

Usage:
    # Authorize (opens the browser, waits for the callback)
    oauth1-authorize

    # Out-of-band: type the PIN shown by the provider
    oauth1-authorize --oob

    # Show status / delete stored credentials
    oauth1-authorize --status
    oauth1-authorize --revoke

    # Signed GET once authorized
    oauth1-authorize --get /1.1/statuses/mentions_timeline.json --query count=5

Prerequisites:
    export OAUTH1_API_BASE_URL='https://api.twitter.com'
    export OAUTH1_CONSUMER_KEY='your_consumer_key'
    export OAUTH1_CONSUMER_SECRET='your_consumer_secret'
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import OAuthClientConfig
from .exceptions import ConfigurationError, ValidationMismatchError
from .session import AuthorizationPhase, AuthorizationSession

logger = logging.getLogger(__name__)


def authorize(
    session: AuthorizationSession, open_browser: bool = True, timeout: float = 300
) -> int:
    """
    Run the authorization flow with the local callback server.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    if session.is_authorized:
        logger.info("Already authorized")
        logger.info("   Use --revoke to re-authorize")
        return 0

    session.config.open_browser = open_browser
    logger.info("Starting OAuth authorization flow...")

    if session.ensure_authorized(timeout=timeout):
        logger.info("✅ Authorization successful!")
        logger.info(f"   Credentials saved to: {session.config.credentials_file}")
        return 0

    logger.error("❌ Authorization failed")
    logger.error("   Please check the error messages above and try again")
    return 1


def authorize_oob(session: AuthorizationSession, open_browser: bool = True) -> int:
    """
    Run the authorization flow with an out-of-band PIN typed by the user.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    if session.is_authorized:
        logger.info("Already authorized")
        return 0

    session.config.enable_callback_server = False
    session.config.open_browser = open_browser
    if not session.callback_url:
        session.callback_url = "oob"

    # Request token, then the authorization page
    session.tick()
    phase = session.tick()
    if phase is not AuthorizationPhase.AWAITING_VERIFICATION:
        logger.error("❌ Could not obtain a request token")
        return 1

    print(f"\nAuthorize the application by visiting:\n\n  {session.verification_url}\n")
    pin = input("Enter the PIN shown by the provider: ").strip()

    try:
        session.submit_pin(pin)
    except ValidationMismatchError as e:
        logger.error(f"❌ {e}")
        return 1

    if session.tick() is AuthorizationPhase.AUTHORIZED:
        logger.info("✅ Authorization successful!")
        return 0

    logger.error("❌ Authorization failed")
    return 1


def show_status(session: AuthorizationSession) -> int:
    """
    Print the authorization status.

    Returns:
        Exit code (0 if authorized, 1 otherwise)
    """
    status = session.get_status()
    print(f"API:        {status['api_name']}")
    print(f"Phase:      {status['phase']}")
    print(f"Authorized: {'yes' if status['authorized'] else 'no'}")
    if status["screen_name"]:
        print(f"User:       {status['screen_name']} ({status['user_id']})")
    return 0 if status["authorized"] else 1


def revoke(session: AuthorizationSession) -> int:
    """Delete stored credentials. Returns exit code 0."""
    if session.revoke():
        logger.info("✅ Authorization revoked")
        logger.info(f"   Credentials file deleted: {session.config.credentials_file}")
    else:
        logger.info("No stored credentials found to revoke")
    return 0


def signed_get(session: AuthorizationSession, path: str, query: str = "") -> int:
    """Print the body of a signed GET. Returns exit code 0 on a non-empty reply."""
    body = session.get(path, query)
    if not body:
        logger.error("❌ Request failed or returned an empty body")
        return 1
    print(body)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oauth1-authorize",
        description="OAuth 1.0a authorization helper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration is read from OAUTH1_* environment variables:
  OAUTH1_API_BASE_URL, OAUTH1_CONSUMER_KEY, OAUTH1_CONSUMER_SECRET,
  OAUTH1_CREDENTIALS_FILE, OAUTH1_CALLBACK_PORT, OAUTH1_CA_BUNDLE, ...
        """,
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--status", action="store_true", help="Show authorization status")
    action.add_argument(
        "--revoke", action="store_true", help="Delete stored credentials"
    )
    action.add_argument("--get", metavar="PATH", help="Make a signed GET request")
    parser.add_argument("--query", default="", help="Query string for --get")
    parser.add_argument(
        "--oob",
        action="store_true",
        help="Enter the verifier PIN by hand instead of using the callback server",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't automatically open browser (display URL only)",
    )
    parser.add_argument(
        "--timeout", type=float, default=300, help="Seconds to wait for authorization"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        session = AuthorizationSession(OAuthClientConfig.from_env())
    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1

    try:
        if args.status:
            return show_status(session)
        if args.revoke:
            return revoke(session)
        if args.get:
            return signed_get(session, args.get, args.query)
        if args.oob:
            return authorize_oob(session, open_browser=not args.no_browser)
        return authorize(session, open_browser=not args.no_browser, timeout=args.timeout)
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
