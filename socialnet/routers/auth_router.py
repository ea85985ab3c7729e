# socialnet/routers/auth_router.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from socialnet.dependencies.db import get_session_dep
from socialnet.dependencies.auth import Principal, get_current_principal
from socialnet.dependencies.oauth import get_oauth_client
from socialnet.UAA.repository import UserRepository
from socialnet.UAA.schemas import LoginResponse, OAuthURLResponse, SignoutResponse
from socialnet.UAA.services import AuthService, UserService
from socialnet.infrastructure.oauth_client import GOOGLE, MICROSOFT, OAuthClient

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_service(session: AsyncSession, oauth: OAuthClient) -> AuthService:
    return AuthService(UserService(UserRepository(session), oauth))


@router.get("/google", response_model=OAuthURLResponse)
async def google_login(
    redirect_url: Optional[str] = None,
    session: AsyncSession = Depends(get_session_dep),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    url, state = await _auth_service(session, oauth).login_url(GOOGLE, redirect_url)
    return OAuthURLResponse(url=url, state=state)


@router.get("/google/callback", response_model=LoginResponse)
async def google_callback(
    state: str = "",
    code: str = "",
    session: AsyncSession = Depends(get_session_dep),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    user_id, token = await _auth_service(session, oauth).callback(GOOGLE, state, code)
    return LoginResponse(user_id=user_id, access_token=token)


@router.get("/microsoft", response_model=OAuthURLResponse)
async def microsoft_login(
    redirect_url: Optional[str] = None,
    session: AsyncSession = Depends(get_session_dep),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    url, state = await _auth_service(session, oauth).login_url(MICROSOFT, redirect_url)
    return OAuthURLResponse(url=url, state=state)


@router.get("/microsoft/callback", response_model=LoginResponse)
async def microsoft_callback(
    state: str = "",
    code: str = "",
    session: AsyncSession = Depends(get_session_dep),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    user_id, token = await _auth_service(session, oauth).callback(MICROSOFT, state, code)
    return LoginResponse(user_id=user_id, access_token=token)


@router.post("/signout", response_model=SignoutResponse)
async def signout(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    """Revoke the presented access token until it expires."""
    ok = await _auth_service(session, oauth).signout(principal.token)
    return SignoutResponse(success=ok)
