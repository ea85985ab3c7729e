# socialnet/routers/user_router.py
from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from socialnet.dependencies.db import get_session_dep
from socialnet.dependencies.auth import Principal, get_current_principal
from socialnet.dependencies.oauth import get_oauth_client
from socialnet.UAA.models import User
from socialnet.UAA.repository import UserRepository
from socialnet.UAA.schemas import LoginResponse, ProfileResponse, ProfileUpdate, ProviderLogin
from socialnet.UAA.services import UserService
from socialnet.infrastructure.oauth_client import OAuthClient
from socialnet.schemas.common import rfc3339

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


def _profile(user: User) -> ProfileResponse:
    return ProfileResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        provider=user.provider,
        created_at=rfc3339(user.created_at),
    )


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: ProviderLogin,
    session: AsyncSession = Depends(get_session_dep),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    svc = UserService(UserRepository(session), oauth)
    user_id, token = await svc.register(payload.provider, payload.token)
    return LoginResponse(user_id=user_id, access_token=token)


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: ProviderLogin,
    session: AsyncSession = Depends(get_session_dep),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    svc = UserService(UserRepository(session), oauth)
    user_id, token = await svc.login(payload.provider, payload.token)
    return LoginResponse(user_id=user_id, access_token=token)


@router.get("/me", response_model=ProfileResponse)
async def me(principal: Principal = Depends(get_current_principal), session: AsyncSession = Depends(get_session_dep)):
    user = await UserService(UserRepository(session)).get_profile(principal.user_id)
    return _profile(user)


@router.put("/me", response_model=ProfileResponse)
async def update_me(
    payload: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    user = await UserService(UserRepository(session)).update_profile(principal.user_id, payload.name, payload.avatar)
    logger.info("profile_updated", user_id=user.id)
    return _profile(user)
