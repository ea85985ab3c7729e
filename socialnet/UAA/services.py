# socialnet/UAA/services.py
from typing import Optional, Tuple
import structlog
from jose import JWTError
from sqlalchemy.exc import IntegrityError

from .models import User
from .repository import UserRepository
from . import utils
from socialnet.infrastructure.oauth_client import OAuthClient, OAuthProviderError, OAuthUserInfo, PROVIDERS
from socialnet.services.errors import AlreadyExists, BadGateway, InvalidArgument, NotFound, Unauthenticated

logger = structlog.get_logger(__name__)


def _check_provider(provider: str) -> None:
    if provider not in PROVIDERS:
        raise InvalidArgument("invalid provider")


class UserService:
    def __init__(self, repo: UserRepository, oauth: Optional[OAuthClient] = None):
        self.repo = repo
        self.oauth = oauth or OAuthClient()

    async def _userinfo(self, provider: str, token: str) -> OAuthUserInfo:
        try:
            return await self.oauth.fetch_userinfo(provider, token)
        except OAuthProviderError as e:
            logger.warning("oauth_userinfo_unavailable", provider=provider, error=str(e))
            raise BadGateway(str(e))

    async def _create_from_info(self, info: OAuthUserInfo) -> User:
        user = User(name=info.name, email=info.email, avatar=info.avatar, provider=info.provider)
        try:
            created = await self.repo.create(user)
        except IntegrityError:
            # a concurrent registration took the email first
            await self.repo.session.rollback()
            logger.info("user_create_conflict", email=info.email, provider=info.provider)
            raise AlreadyExists("user already exists")
        logger.info("user_registered", user_id=created.id, provider=info.provider)
        return created

    async def _get_or_create(self, info: OAuthUserInfo) -> User:
        try:
            return await self._create_from_info(info)
        except AlreadyExists:
            user = await self.repo.get_by_email(info.email)
            if not user:
                raise
            return user

    async def register(self, provider: str, token: str) -> Tuple[str, str]:
        _check_provider(provider)
        info = await self._userinfo(provider, token)
        if await self.repo.get_by_email(info.email):
            logger.debug("register_email_exists", email=info.email)
            raise AlreadyExists("user already exists")
        user = await self._create_from_info(info)
        return user.id, utils.create_access_token(user.id)["token"]

    async def login(self, provider: str, token: str) -> Tuple[str, str]:
        _check_provider(provider)
        info = await self._userinfo(provider, token)
        user = await self.repo.get_by_email(info.email)
        if not user:
            # first login doubles as registration
            user = await self._get_or_create(info)
        logger.info("auth_success", user_id=user.id, provider=provider)
        return user.id, utils.create_access_token(user.id)["token"]

    async def find_or_create(self, info: OAuthUserInfo) -> User:
        user = await self.repo.get_by_email(info.email)
        if user:
            return user
        return await self._get_or_create(info)

    async def get_profile(self, user_id: str) -> User:
        user = await self.repo.get_by_id(user_id)
        if not user:
            raise NotFound("user not found")
        return user

    async def update_profile(self, user_id: str, name: Optional[str], avatar: Optional[str]) -> User:
        user = await self.get_profile(user_id)
        if name:
            user.name = name
        if avatar:
            user.avatar = avatar
        return await self.repo.update(user)


class AuthService:
    """OAuth authorization-code login and JWT sign-out."""

    def __init__(self, users: UserService, oauth: Optional[OAuthClient] = None):
        self.users = users
        self.oauth = oauth or users.oauth

    async def login_url(self, provider: str, redirect_url: Optional[str] = None) -> Tuple[str, str]:
        _check_provider(provider)
        state = await utils.create_oauth_state(provider, redirect_url)
        try:
            url = self.oauth.provider(provider).authorization_url(state, redirect_url)
        except OAuthProviderError as e:
            await utils.pop_oauth_state(state)
            logger.error("oauth_not_configured", provider=provider)
            raise BadGateway(str(e))
        logger.info("oauth_login_started", provider=provider)
        return url, state

    async def validate_state_token(self, state: str) -> bool:
        return await utils.pop_oauth_state(state) is not None

    async def callback(self, provider: str, state: str, code: str) -> Tuple[str, str]:
        _check_provider(provider)
        if not code:
            raise InvalidArgument("missing code")
        payload = await utils.pop_oauth_state(state)
        if not payload or payload.get("provider") != provider:
            logger.warning("oauth_invalid_state", provider=provider)
            raise InvalidArgument("invalid state token")

        try:
            access_token = await self.oauth.exchange_code(provider, code, payload.get("redirect_url"))
        except OAuthProviderError as e:
            raise BadGateway(str(e))
        info = await self.users._userinfo(provider, access_token)
        user = await self.users.find_or_create(info)
        token = utils.create_access_token(user.id)
        logger.info("tokens_issued", user_id=user.id, access_jti=token["jti"], provider=provider)
        return user.id, token["token"]

    async def signout(self, token: str) -> bool:
        try:
            payload = utils.decode_token(token)
        except JWTError:
            raise Unauthenticated("invalid or expired token")
        jti = payload.get("jti")
        exp = payload.get("exp")
        if jti and exp:
            await utils.blacklist_access_jti(jti, int(exp))
        logger.info("access_blacklisted_on_signout", jti=jti, user_id=payload.get("sub"))
        return True
