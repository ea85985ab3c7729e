# socialnet/dependencies/auth.py
from dataclasses import dataclass, field
from typing import List, Optional

import structlog
from fastapi import Depends, Header
from jose import JWTError
from sqlmodel.ext.asyncio.session import AsyncSession

from socialnet.UAA.utils import decode_token, extract_bearer, is_access_jti_blacklisted
from socialnet.dependencies.db import get_session_dep
from socialnet.services.errors import Unauthenticated
from socialnet.services.friend_service import FriendService

logger = structlog.get_logger(__name__)


@dataclass
class Principal:
    user_id: str
    token: str
    jti: Optional[str] = None
    # None when the token carries no friend_ids claim
    friend_ids: Optional[List[str]] = None


@dataclass
class Viewer:
    """Caller identity on routes that also serve anonymous users."""

    user_id: Optional[str] = None
    friend_ids: List[str] = field(default_factory=list)

    @property
    def anonymous(self) -> bool:
        return not self.user_id


async def authenticate(authorization: Optional[str]) -> Principal:
    if not authorization:
        raise Unauthenticated("authorization token is not provided")
    token = extract_bearer(authorization)
    if not token:
        raise Unauthenticated("invalid authorization format")
    try:
        payload = decode_token(token)
    except JWTError:
        raise Unauthenticated("invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("invalid token claims")
    jti = payload.get("jti")
    if jti and await is_access_jti_blacklisted(jti):
        raise Unauthenticated("token revoked")

    friend_ids = payload.get("friend_ids")
    if friend_ids is not None:
        friend_ids = [str(f) for f in friend_ids]
    return Principal(user_id=str(user_id), token=token, jti=jti, friend_ids=friend_ids)


async def get_current_principal(authorization: Optional[str] = Header(None)) -> Principal:
    return await authenticate(authorization)


async def get_optional_principal(authorization: Optional[str] = Header(None)) -> Optional[Principal]:
    if not authorization:
        return None
    try:
        return await authenticate(authorization)
    except Unauthenticated as e:
        logger.debug("optional_auth_ignored", reason=e.message)
        return None


async def _viewer_for(principal: Optional[Principal], session: AsyncSession) -> Viewer:
    if principal is None:
        return Viewer()
    friend_ids = principal.friend_ids
    if friend_ids is None:
        friend_ids = await FriendService(session).friend_ids(principal.user_id)
    return Viewer(user_id=principal.user_id, friend_ids=friend_ids)


async def get_viewer(
    principal: Optional[Principal] = Depends(get_optional_principal),
    session: AsyncSession = Depends(get_session_dep),
) -> Viewer:
    return await _viewer_for(principal, session)

