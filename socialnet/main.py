# socialnet/main.py
import os
import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from socialnet.routers.auth_router import router as auth_router
from socialnet.routers.user_router import router as user_router
from socialnet.routers.post_router import router as post_router
from socialnet.routers.group_router import router as group_router
from socialnet.routers.friend_router import router as friend_router
from socialnet.infrastructure.database import init_db
from socialnet.middleware.logging import RequestIdMiddleware
from socialnet.services.errors import ServiceError
import structlog

API_PREFIX = "/api/v1"


def configure_structlog():
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
    )


configure_structlog()
logger = structlog.get_logger()

app = FastAPI(title="Socialnet")

app.add_middleware(RequestIdMiddleware)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("request_failed", code=exc.code, error=exc.message)
    else:
        logger.info("request_rejected", code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "code": exc.code})


api = APIRouter(prefix=API_PREFIX)


@api.get("/health")
async def health():
    return {"status": "ok"}


api.include_router(auth_router)
api.include_router(user_router)
api.include_router(post_router)
api.include_router(friend_router)
api.include_router(group_router)
app.include_router(api)


@app.on_event("startup")
async def on_startup():
    await init_db()
    logger.info("app_startup")


if __name__ == "__main__":
    uvicorn.run("socialnet.main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)), reload=True)
