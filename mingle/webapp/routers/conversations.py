"""
Conversation endpoints.
"""

from fastapi import APIRouter, Depends, Request, Response

from mingle.utils.serialization import json_compat
from ..dependencies import get_current_user
from ..schemas import ConversationCreateRequest

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@router.post("", status_code=201)
async def create_conversation(
    request: Request,
    response: Response,
    body: ConversationCreateRequest,
    user_id: str = Depends(get_current_user),
):
    """Open the conversation with participant_id, or return the existing one (200)."""
    conversation, created = request.app.state.conversations.get_or_create_conversation(
        user_id, body.participant_id
    )
    if not created:
        response.status_code = 200
    return json_compat(conversation)


@router.get("")
async def list_conversations(request: Request, user_id: str = Depends(get_current_user)):
    """The caller's conversations, most recently active first."""
    return json_compat(request.app.state.conversations.list_conversations(user_id))


@router.get("/{conversation_id}")
async def get_conversation(request: Request, conversation_id: str, user_id: str = Depends(get_current_user)):
    return json_compat(request.app.state.conversations.get_conversation(conversation_id, user_id))
