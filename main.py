from contextlib import asynccontextmanager

from ayomabar.config import settings
from ayomabar.dependencies.database import engine, redis_client
from ayomabar.dependencies.scheduler import start_scheduler, stop_scheduler
from ayomabar.helpers import bg_tasks, utcnow
from ayomabar.log import system_logger
from ayomabar.models.error import ErrorKind, RequestError
from ayomabar.models.model import envelope
from ayomabar.router import auth_router, discord_router, game_router, room_router, user_router
from ayomabar.service import subscribers  # noqa: F401
import ayomabar.tasks  # noqa: F401

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import sentry_sdk


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === on startup ===
    if settings.enable_room_expiry_sweep:
        start_scheduler()
    if not settings.discord_public_key:
        system_logger("Discord").warning("discord_public_key is unset, the interactions endpoint rejects everything")
    if not settings.discord_bot_token:
        system_logger("Discord").info("discord_bot_token is unset, lobby cards are only updated from Discord itself")

    yield

    # === on shutdown ===
    await bg_tasks.join()
    stop_scheduler()

    # close database & redis
    await engine.dispose()
    await redis_client.aclose()


desc = """ayomabar-server is the backend of a gaming community: accounts, a game catalog and matchmaking room lobbies.

Rooms are shared by two surfaces. The REST API below, and a Discord bot whose `/room` command and lobby buttons
(join, info, bump) drive the same lifecycle.

## Responses

Every endpoint answers with `{success, message, data, statusCode}`. Errors carry `data: null` and an `error`
object with the error kind and a stable `msg_key`.

## Authentication

Mutating endpoints take `Authorization: Bearer <access_token>` from `/auth/login` or `/auth/register`.
"""

if settings.sentry_dsn is not None:
    sentry_sdk.init(
        dsn=str(settings.sentry_dsn),
        send_default_pii=False,
        environment="production" if not settings.debug else "development",
    )

app = FastAPI(
    title="ayomabar-server",
    version="0.1.0",
    lifespan=lifespan,
    description=desc,
)

app.include_router(auth_router)
app.include_router(user_router)
app.include_router(game_router)
app.include_router(room_router)
app.include_router(discord_router)

# CORS
origins = []
for url in settings.cors_urls:
    origins.append(str(url))
    origins.append(str(url).removesuffix("/"))
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", include_in_schema=False)
async def health_check():
    return envelope({"status": "ok", "timestamp": utcnow().isoformat()}, "Service is healthy")


def error_response(status_code: int, message: str, error: dict, headers: dict[str, str] | None = None):
    content = envelope(None, message, status_code)
    content["error"] = error
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return error_response(
        400,
        "Validation failed",
        {"kind": ErrorKind.BAD_REQUEST, "msg_key": "validation_failed", "details": exc.errors()},
    )


@app.exception_handler(RequestError)
async def request_error_handler(request: Request, exc: RequestError):  # noqa: ARG001
    return error_response(
        exc.status_code,
        exc.formatted_message,
        {"kind": exc.kind, "msg_key": exc.msg_key, **exc.details},
        exc.headers,
    )


@app.exception_handler(exc_class_or_status_code=HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):  # noqa: ARG001
    return error_response(
        exc.status_code,
        str(exc.detail),
        {"kind": ErrorKind.from_status(exc.status_code)},
        exc.headers,
    )


if settings.secret_key == "your_jwt_secret_here" and not settings.debug:  # noqa: S105
    raise RuntimeError(
        "jwt_secret_key is unset. Your server is unsafe. Use this command to generate: openssl rand -hex 32"
    )
if settings.refresh_secret_key == "your_jwt_refresh_secret_here":  # noqa: S105
    system_logger("Security").opt(colors=True).warning(
        "<y>jwt_refresh_secret_key</y> is unset. Your server is unsafe. "
        "Use this command to generate: <blue>openssl rand -hex 32</blue>."
    )

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=None,
        access_log=True,
    )
