from socialnet.infrastructure.oauth_client import OAuthClient


def get_oauth_client() -> OAuthClient:
    """Overridden in tests with a client on a mock transport."""
    return OAuthClient()
