# socialnet/infrastructure/oauth_client.py
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)

GOOGLE = "google"
MICROSOFT = "microsoft"
PROVIDERS = (GOOGLE, MICROSOFT)


class OAuthProviderError(Exception):
    pass


@dataclass
class OAuthUserInfo:
    provider: str
    provider_user_id: str
    email: str
    name: str
    avatar: str = ""


@dataclass
class OAuthProvider:
    name: str
    client_id: Optional[str]
    client_secret: Optional[str]
    redirect_url: Optional[str]
    auth_url: str
    token_url: str
    userinfo_url: str
    scopes: List[str] = field(default_factory=lambda: ["openid", "profile", "email"])

    def authorization_url(self, state: str, redirect_url: Optional[str] = None) -> str:
        if not self.client_id:
            raise OAuthProviderError(f"{self.name} OAuth not configured")
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_url or self.redirect_url or "",
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return str(httpx.URL(self.auth_url, params=params))


def _google() -> OAuthProvider:
    return OAuthProvider(
        name=GOOGLE,
        client_id=os.getenv("GOOGLE_CLIENT_ID"),
        client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
        redirect_url=os.getenv("GOOGLE_REDIRECT_URL", "http://localhost:8000/api/v1/auth/google/callback"),
        auth_url="https://accounts.google.com/o/oauth2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://www.googleapis.com/oauth2/v3/userinfo",
    )


def _microsoft() -> OAuthProvider:
    return OAuthProvider(
        name=MICROSOFT,
        client_id=os.getenv("MICROSOFT_CLIENT_ID"),
        client_secret=os.getenv("MICROSOFT_CLIENT_SECRET"),
        redirect_url=os.getenv("MICROSOFT_REDIRECT_URL", "http://localhost:8000/api/v1/auth/microsoft/callback"),
        auth_url="https://login.microsoftonline.com/consumers/oauth2/v2.0/authorize",
        token_url="https://login.microsoftonline.com/consumers/oauth2/v2.0/token",
        userinfo_url="https://graph.microsoft.com/v1.0/me",
        scopes=["User.Read", "openid", "profile", "email"],
    )


def default_providers() -> Dict[str, OAuthProvider]:
    return {GOOGLE: _google(), MICROSOFT: _microsoft()}


def _parse_userinfo(provider: str, data: dict) -> OAuthUserInfo:
    if provider == GOOGLE:
        info = OAuthUserInfo(
            provider=provider,
            provider_user_id=str(data.get("sub", "")),
            email=data.get("email") or "",
            name=data.get("name") or "",
            avatar=data.get("picture") or "",
        )
    else:
        info = OAuthUserInfo(
            provider=provider,
            provider_user_id=str(data.get("id", "")),
            # personal accounts often leave `mail` empty
            email=data.get("mail") or data.get("userPrincipalName") or "",
            name=data.get("displayName") or "",
        )
    if not info.email:
        raise OAuthProviderError(f"incomplete user info from {provider}")
    if not info.name:
        info.name = info.email.split("@")[0]
    return info


class OAuthClient:
    """Talks to the OAuth providers: code exchange and user-info lookup."""

    def __init__(
        self,
        providers: Optional[Dict[str, OAuthProvider]] = None,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.providers = providers or default_providers()
        self.timeout = timeout
        self.transport = transport

    def provider(self, name: str) -> OAuthProvider:
        try:
            return self.providers[name]
        except KeyError:
            raise OAuthProviderError(f"invalid provider: {name}")

    async def exchange_code(self, provider: str, code: str, redirect_url: Optional[str] = None) -> str:
        cfg = self.provider(provider)
        data = {
            "client_id": cfg.client_id,
            "client_secret": cfg.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_url or cfg.redirect_url,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                resp = await client.post(cfg.token_url, data=data, headers={"Accept": "application/json"})
                resp.raise_for_status()
                token_data = resp.json()
            except httpx.HTTPStatusError as e:
                logger.warning("oauth_token_exchange_failed", provider=provider, status=e.response.status_code)
                raise OAuthProviderError(f"token exchange failed: {e.response.text}")
            except httpx.HTTPError as e:
                logger.warning("oauth_token_exchange_error", provider=provider, error=str(e))
                raise OAuthProviderError("token exchange error")

        access_token = token_data.get("access_token")
        if not access_token:
            raise OAuthProviderError("no access token returned from provider")
        logger.info("oauth_token_exchanged", provider=provider, token_type=token_data.get("token_type"))
        return access_token

    async def fetch_userinfo(self, provider: str, access_token: str) -> OAuthUserInfo:
        cfg = self.provider(provider)
        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                resp = await client.get(cfg.userinfo_url, headers=headers)
                resp.raise_for_status()
                data = resp.json()
            except httpx.HTTPStatusError as e:
                logger.warning("oauth_userinfo_failed", provider=provider, status=e.response.status_code)
                raise OAuthProviderError(f"{provider} API error (status {e.response.status_code})")
            except httpx.HTTPError as e:
                logger.warning("oauth_userinfo_error", provider=provider, error=str(e))
                raise OAuthProviderError(f"failed to get user info from {provider}")
        return _parse_userinfo(provider, data)
