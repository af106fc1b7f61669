"""
Direct message endpoints.
"""

from fastapi import APIRouter, Depends, Request

from mingle.utils.serialization import json_compat
from ..dependencies import get_current_user
from ..schemas import MessageCreateRequest, MessageUpdateRequest

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.post("", status_code=201)
async def send_message(request: Request, body: MessageCreateRequest, user_id: str = Depends(get_current_user)):
    message = request.app.state.conversations.send_message(body.conversation_id, user_id, body.content)
    return json_compat(message)


@router.get("/{conversation_id}")
async def list_messages(request: Request, conversation_id: str, user_id: str = Depends(get_current_user)):
    """Messages of a conversation, oldest first. Participants only."""
    return json_compat(request.app.state.conversations.list_messages(conversation_id, user_id))


@router.put("/{message_id}")
async def edit_message(
    request: Request,
    message_id: str,
    body: MessageUpdateRequest,
    user_id: str = Depends(get_current_user),
):
    return json_compat(request.app.state.conversations.edit_message(message_id, user_id, body.content))


@router.delete("/{message_id}")
async def delete_message(request: Request, message_id: str, user_id: str = Depends(get_current_user)):
    request.app.state.conversations.delete_message(message_id, user_id)
    return {"message": "Message deleted successfully"}
