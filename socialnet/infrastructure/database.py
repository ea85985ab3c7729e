import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio.engine import create_async_engine, AsyncEngine

logger = structlog.get_logger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./socialnet.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

engine: AsyncEngine = create_async_engine(DATABASE_URL, echo=SQL_ECHO)


async def init_db(bind: AsyncEngine = engine) -> None:
    # table models must be imported so they register on SQLModel.metadata
    from socialnet.UAA import models as _user_models  # noqa: F401
    from socialnet.models import post as _post_models  # noqa: F401
    from socialnet.models import group as _group_models  # noqa: F401
    from socialnet.models import friend as _friend_models  # noqa: F401

    try:
        async with bind.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)
    except Exception as e:
        logger.exception("db_init_failed", error=str(e))
        raise


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session
