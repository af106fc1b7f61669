"""
Post endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from mingle.utils.serialization import json_compat
from ..dependencies import get_current_user, get_current_user_optional
from ..schemas import PostCreateRequest, PostUpdateRequest

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.post("", status_code=201)
async def create_post(request: Request, body: PostCreateRequest, user_id: str = Depends(get_current_user)):
    post = request.app.state.content.create_post(user_id, content=body.content, image_url=body.image_url)
    return {"message": "Post created successfully", "post": json_compat(post)}


@router.get("")
async def list_posts(
    request: Request,
    page: int = Query(1),
    limit: int = Query(10),
    viewer_id: Optional[str] = Depends(get_current_user_optional),
):
    """All posts, newest first."""
    return request.app.state.content.posts_page(page=page, limit=limit, viewer_id=viewer_id).to_dict()


@router.get("/user/{user_id}")
async def list_user_posts(
    request: Request,
    user_id: str,
    page: int = Query(1),
    limit: int = Query(10),
    viewer_id: Optional[str] = Depends(get_current_user_optional),
):
    posts = request.app.state.content.posts_page(page=page, limit=limit, author_id=user_id, viewer_id=viewer_id)
    return posts.to_dict()


@router.get("/{post_id}")
async def get_post(request: Request, post_id: str, viewer_id: Optional[str] = Depends(get_current_user_optional)):
    post = request.app.state.content.get_post(post_id, viewer_id=viewer_id)
    return {"post": json_compat(post)}


@router.put("/{post_id}")
async def update_post(
    request: Request,
    post_id: str,
    body: PostUpdateRequest,
    user_id: str = Depends(get_current_user),
):
    post = request.app.state.content.update_post(post_id, user_id, body.model_dump(exclude_unset=True))
    return {"message": "Post updated successfully", "post": json_compat(post)}


@router.delete("/{post_id}")
async def delete_post(request: Request, post_id: str, user_id: str = Depends(get_current_user)):
    request.app.state.content.delete_post(post_id, user_id)
    return {"message": "Post deleted successfully"}
