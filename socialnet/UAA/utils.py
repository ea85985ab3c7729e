# socialnet/UAA/utils.py
import os
import secrets
import uuid
import json
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional

import structlog
import redis.asyncio as aioredis
from jose import jwt, JWTError

logger = structlog.get_logger(__name__)

# Config (env)
SECRET_KEY = os.getenv("SECRET_KEY", "change_me_now")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# clients
redis_client = aioredis.from_url(REDIS_URL, decode_responses=True)


def _now_ts() -> int:
    return int(datetime.now(timezone.utc).timestamp())


# --- JWT helpers ---
def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    friend_ids: Optional[list] = None,
) -> Dict[str, Any]:
    jti = str(uuid.uuid4())
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": subject, "exp": int(expire.timestamp()), "jti": jti, "type": "access", "iat": _now_ts()}
    if friend_ids is not None:
        payload["friend_ids"] = list(friend_ids)
    token = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
    logger.debug("create_access_token", sub=subject, jti=jti, exp=payload["exp"])
    return {"token": token, "jti": jti, "exp": payload["exp"]}


def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises JWTError on any failure."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("token_decode_failed", error=str(e))
        raise


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token part of a 'Bearer <token>' header, or None when malformed."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


# --- Redis-based denylist for signed-out access tokens ---
async def blacklist_access_jti(jti: str, expires_at_ts: int) -> None:
    ttl = max(0, expires_at_ts - _now_ts())
    if ttl <= 0:
        return
    await redis_client.set(f"bl:{jti}", "1", ex=ttl)
    logger.info("access_jti_blacklisted", jti=jti, ttl=ttl)


async def is_access_jti_blacklisted(jti: str) -> bool:
    return await redis_client.exists(f"bl:{jti}") == 1


# --- OAuth CSRF state ---
OAUTH_STATE_TTL = 600


async def create_oauth_state(provider: str, redirect_url: Optional[str] = None) -> str:
    state = secrets.token_urlsafe(32)
    key = f"oauth_state:{state}"
    payload = {"provider": provider, "redirect_url": redirect_url}
    await redis_client.set(key, json.dumps(payload), ex=OAUTH_STATE_TTL)
    return state


async def pop_oauth_state(state: str) -> Optional[dict]:
    """Consume a state token. Unknown or expired tokens return None."""
    if not state:
        return None
    key = f"oauth_state:{state}"
    raw = await redis_client.getdel(key)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("oauth_state_corrupt", state_length=len(state))
        return None
