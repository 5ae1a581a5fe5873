from typing import Annotated

from ayomabar.database import PublicUserResp, UserResp
from ayomabar.dependencies.database import Database
from ayomabar.dependencies.user import CurrentUser
from ayomabar.models.model import envelope
from ayomabar.service.user import UpdateProfileReq, get_user, update_profile

from fastapi import APIRouter, Path

router = APIRouter(prefix="/user", tags=["Users"])


@router.put("/me", name="Update profile", description="Update the current user's profile fields.")
async def update_me(db: Database, current_user: CurrentUser, body: UpdateProfileReq):
    user = await update_profile(db, current_user, body)
    return envelope(UserResp.model_validate(user), "Profile updated successfully")


@router.get("/{user_id}", name="Get user", description="Public profile of a user.")
async def get_user_profile(db: Database, user_id: Annotated[int, Path(description="User ID", gt=0)]):
    user = await get_user(db, user_id)
    return envelope(PublicUserResp.model_validate(user), "User retrieved successfully")
