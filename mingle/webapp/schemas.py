"""
Pydantic models for API request schemas.
"""

from typing import Optional
from pydantic import BaseModel


# Auth
class RegisterRequest(BaseModel):
    """Request model for account registration."""
    username: str
    email: str
    password: str
    confirm_password: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


# Users
class ProfileUpdateRequest(BaseModel):
    """Partial profile update; only fields present in the body change."""
    username: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


# Posts
class PostCreateRequest(BaseModel):
    content: Optional[str] = None
    image_url: Optional[str] = None


class PostUpdateRequest(BaseModel):
    """Partial post update; an explicit null clears the field."""
    content: Optional[str] = None
    image_url: Optional[str] = None


# Comments
class CommentCreateRequest(BaseModel):
    post_id: str
    content: str


class CommentUpdateRequest(BaseModel):
    content: str


# Conversations & messages
class ConversationCreateRequest(BaseModel):
    participant_id: str


class MessageCreateRequest(BaseModel):
    conversation_id: str
    content: str


class MessageUpdateRequest(BaseModel):
    content: str
