"""
Comment endpoints.
"""

from fastapi import APIRouter, Depends, Query, Request

from mingle.utils.serialization import json_compat
from ..dependencies import get_current_user
from ..schemas import CommentCreateRequest, CommentUpdateRequest

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.post("", status_code=201)
async def create_comment(request: Request, body: CommentCreateRequest, user_id: str = Depends(get_current_user)):
    comment = request.app.state.content.create_comment(user_id, body.post_id, body.content)
    return {"message": "Comment created successfully", "comment": json_compat(comment)}


@router.get("/post/{post_id}")
async def list_post_comments(request: Request, post_id: str, page: int = Query(1), limit: int = Query(10)):
    """Comments on a post, newest first."""
    return request.app.state.content.comments_for_post(post_id, page=page, limit=limit).to_dict()


@router.get("/{comment_id}")
async def get_comment(request: Request, comment_id: str):
    return {"comment": json_compat(request.app.state.content.get_comment(comment_id))}


@router.put("/{comment_id}")
async def update_comment(
    request: Request,
    comment_id: str,
    body: CommentUpdateRequest,
    user_id: str = Depends(get_current_user),
):
    comment = request.app.state.content.update_comment(comment_id, user_id, body.content)
    return {"message": "Comment updated successfully", "comment": json_compat(comment)}


@router.delete("/{comment_id}")
async def delete_comment(request: Request, comment_id: str, user_id: str = Depends(get_current_user)):
    request.app.state.content.delete_comment(comment_id, user_id)
    return {"message": "Comment deleted successfully"}
