"""
User profile and follow-graph endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from mingle.errors import Unauthenticated
from mingle.services.access_control import require_owner
from mingle.utils.serialization import json_compat
from .auth import validate_new_password
from ..dependencies import get_current_user, get_current_user_optional
from ..schemas import ChangePasswordRequest, ProfileUpdateRequest
from mingle.utils.logger import get_logger

router = APIRouter(prefix="/api/users", tags=["users"])
logger = get_logger(__name__)


@router.get("")
async def list_users(
    request: Request,
    search: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
):
    """List users, optionally filtered by a case-insensitive username substring."""
    return request.app.state.identity.search_users(search, page=page, limit=limit).to_dict()


@router.get("/{user_id}/stats")
async def get_user_stats(request: Request, user_id: str):
    stats = request.app.state.content.user_stats(user_id)
    return {"user_id": user_id, "stats": json_compat(stats)}


@router.get("/{user_id}/followers")
async def get_followers(request: Request, user_id: str, page: int = Query(1), limit: int = Query(10)):
    return request.app.state.social_graph.followers(user_id, page=page, limit=limit).to_dict()


@router.get("/{user_id}/following")
async def get_following(request: Request, user_id: str, page: int = Query(1), limit: int = Query(10)):
    return request.app.state.social_graph.following(user_id, page=page, limit=limit).to_dict()


@router.get("/{user_id}/is-following")
async def is_following(request: Request, user_id: str, current_user_id: str = Depends(get_current_user)):
    """Whether the caller follows user_id."""
    return {"is_following": request.app.state.social_graph.is_following(current_user_id, user_id)}


@router.get("/{user_id}")
async def get_user(
    request: Request,
    user_id: str,
    viewer_id: Optional[str] = Depends(get_current_user_optional),
):
    """Public profile; email is included only when viewing your own profile."""
    profile = request.app.state.identity.get_profile(user_id, viewer_id=viewer_id)
    data = json_compat(profile)
    if profile.email is None:
        data.pop("email", None)
    if profile.is_following is None:
        data.pop("is_following", None)
    return {"user": data}


@router.put("/{user_id}")
async def update_user(
    request: Request,
    user_id: str,
    body: ProfileUpdateRequest,
    current_user_id: str = Depends(get_current_user),
):
    require_owner(current_user_id, user_id, "profile")
    user = request.app.state.identity.update_profile(user_id, body.model_dump(exclude_unset=True))
    return {"message": "Profile updated successfully", "user": user.to_dict()}


@router.delete("/{user_id}")
async def delete_user(request: Request, user_id: str, current_user_id: str = Depends(get_current_user)):
    require_owner(current_user_id, user_id, "account")
    request.app.state.identity.delete_user(user_id)
    return {"message": "User account deleted successfully"}


@router.post("/{user_id}/change-password")
async def change_password(
    request: Request,
    user_id: str,
    body: ChangePasswordRequest,
    current_user_id: str = Depends(get_current_user),
):
    require_owner(current_user_id, user_id, "password")
    validate_new_password(body.new_password, body.confirm_password)

    identity = request.app.state.identity
    credentials = request.app.state.credentials
    user = identity.get_user(user_id)
    if not credentials.verify_password(body.current_password, user.password_hash):
        raise Unauthenticated("Current password is incorrect")

    identity.change_password_hash(user_id, credentials.hash_password(body.new_password))
    return {"message": "Password changed successfully"}


@router.post("/{user_id}/follow", status_code=201)
async def follow_user(request: Request, user_id: str, current_user_id: str = Depends(get_current_user)):
    follow = request.app.state.social_graph.follow(current_user_id, user_id)
    return {"message": "Followed user", "follow": json_compat(follow)}


@router.post("/{user_id}/unfollow")
async def unfollow_user(request: Request, user_id: str, current_user_id: str = Depends(get_current_user)):
    request.app.state.social_graph.unfollow(current_user_id, user_id)
    return {"message": "Unfollowed user"}
