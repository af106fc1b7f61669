from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from mingle.utils.serialization import json_compat


@dataclass
class AuthorSummary:
    """Minimal public projection of a user embedded in listings."""
    id: str
    username: str
    avatar_url: Optional[str] = None


@dataclass
class User:
    id: str
    username: str
    email: str
    password_hash: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        # password_hash never leaves the process
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "bio": self.bio,
            "avatar_url": self.avatar_url,
            "created_at": json_compat(self.created_at),
        }


@dataclass
class UserStats:
    posts: int = 0
    comments: int = 0
    likes: int = 0


@dataclass
class UserListItem:
    id: str
    username: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    posts_count: int = 0


@dataclass
class UserProfile:
    id: str
    username: str
    bio: Optional[str]
    avatar_url: Optional[str]
    created_at: Optional[datetime]
    stats: UserStats
    followers_count: int = 0
    following_count: int = 0
    email: Optional[str] = None          # only set when the viewer is the user
    is_following: Optional[bool] = None  # only set when a viewer is known


@dataclass
class Post:
    id: str
    author_id: str
    content: Optional[str]
    image_url: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    author: Optional[AuthorSummary] = None
    likes_count: int = 0
    comments_count: int = 0
    liked_by_user: Optional[bool] = None
    comments: List["Comment"] = field(default_factory=list)


@dataclass
class Comment:
    id: str
    post_id: str
    author_id: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    author: Optional[AuthorSummary] = None


@dataclass
class Like:
    id: str
    user_id: str
    post_id: str
    created_at: Optional[datetime] = None
    user: Optional[AuthorSummary] = None


@dataclass
class Follow:
    follower_id: str
    following_id: str
    created_at: Optional[datetime] = None


@dataclass
class FollowEdge:
    """One row of a followers/following listing: the other user and when the edge was made."""
    user: AuthorSummary
    followed_at: Optional[datetime] = None


@dataclass
class Message:
    id: str
    conversation_id: str
    sender_id: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sender: Optional[AuthorSummary] = None


@dataclass
class Conversation:
    id: str
    participant_ids: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    participants: List[AuthorSummary] = field(default_factory=list)
    last_message: Optional[Message] = None

    def has_participant(self, user_id: Optional[str]) -> bool:
        return user_id is not None and str(user_id) in self.participant_ids
