"""Account registration and JWT token endpoints."""

from ayomabar.database import UserResp
from ayomabar.dependencies.database import Database
from ayomabar.dependencies.event_hub import EventHub
from ayomabar.dependencies.user import CurrentUser
from ayomabar.log import log
from ayomabar.models.error import ErrorType, RequestError
from ayomabar.models.events import UserRegisteredEvent
from ayomabar.models.model import envelope
from ayomabar.service.auth import authenticate_user, issue_tokens, verify_refresh_token
from ayomabar.service.user import RegisterReq, get_user, register_user

from fastapi import APIRouter, status
from pydantic import BaseModel, Field
from sqlmodel.ext.asyncio.session import AsyncSession

logger = log("Auth")

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginReq(BaseModel):
    username: str = Field(min_length=3, description="Username or email")
    password: str = Field(min_length=6)


class RefreshReq(BaseModel):
    refresh_token: str


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    name="Register",
    description="Create an account and receive a token pair.",
)
async def register(db: Database, hub: EventHub, body: RegisterReq):
    user = await register_user(db, body)
    hub.emit(UserRegisteredEvent(user_id=user.id, username=user.username, source="rest"))
    return envelope(
        {"user": UserResp.model_validate(user), **issue_tokens(user).model_dump()},
        "User registered successfully",
        status.HTTP_201_CREATED,
    )


@router.post("/login", name="Login", description="Exchange a username or email and password for a token pair.")
async def login(db: Database, body: LoginReq):
    user = await authenticate_user(db, body.username, body.password)
    if user is None:
        logger.info(f"Failed login for {body.username}")
        raise RequestError(ErrorType.INVALID_CREDENTIALS)
    return envelope(
        {"user": UserResp.model_validate(user), **issue_tokens(user).model_dump()},
        "User logged in successfully",
    )


async def _user_from_refresh_token(db: AsyncSession, token: str):
    payload = verify_refresh_token(token)
    if payload is None or not str(payload.get("sub", "")).isdigit():
        raise RequestError(ErrorType.INVALID_REFRESH_TOKEN)
    try:
        return await get_user(db, int(payload["sub"]))
    except RequestError:
        raise RequestError(ErrorType.INVALID_REFRESH_TOKEN) from None


@router.post("/refresh", name="Refresh token", description="Exchange a refresh token for a new token pair.")
async def refresh(db: Database, body: RefreshReq):
    user = await _user_from_refresh_token(db, body.refresh_token)
    return envelope(issue_tokens(user).model_dump(), "Token refreshed successfully")


@router.get("/me", name="Current user", description="The account behind the bearer token.")
async def me(current_user: CurrentUser):
    return envelope(UserResp.model_validate(current_user), "Current user retrieved successfully")
