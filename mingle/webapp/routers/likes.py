"""
Like endpoints.
"""

from fastapi import APIRouter, Depends, Query, Request

from mingle.utils.serialization import json_compat
from ..dependencies import get_current_user

router = APIRouter(prefix="/api/likes", tags=["likes"])


@router.post("/post/{post_id}", status_code=201)
async def like_post(request: Request, post_id: str, user_id: str = Depends(get_current_user)):
    like = request.app.state.content.like(user_id, post_id)
    return {"message": "Post liked successfully", "like": json_compat(like)}


@router.delete("/post/{post_id}")
async def unlike_post(request: Request, post_id: str, user_id: str = Depends(get_current_user)):
    request.app.state.content.unlike(user_id, post_id)
    return {"message": "Post unliked successfully"}


@router.get("/post/{post_id}")
async def list_post_likes(request: Request, post_id: str, page: int = Query(1), limit: int = Query(10)):
    return request.app.state.content.likes_for_post(post_id, page=page, limit=limit).to_dict()


@router.get("/post/{post_id}/check")
async def check_liked(request: Request, post_id: str, user_id: str = Depends(get_current_user)):
    """Whether the caller has liked the post."""
    return {"post_id": post_id, "liked": request.app.state.content.has_liked(user_id, post_id)}
