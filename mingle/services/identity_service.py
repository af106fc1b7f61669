"""
Identity store: user accounts, profiles and the author projection other engines embed.
"""
from typing import Any, Dict, Iterable, Optional

from mingle.db.database import Database
from mingle.errors import DuplicateKey, InvalidArgument, NotFound
from mingle.models.models import AuthorSummary, User, UserListItem, UserProfile, UserStats
from mingle.repositories.follows_repo import FollowsRepository
from mingle.repositories.users_repo import UPDATABLE_FIELDS, UsersRepository
from mingle.utils.logger import get_logger
from mingle.utils.pagination import Page, PageRequest

logger = get_logger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _clean_username(username: Optional[str]) -> str:
    username = (username or "").strip()
    if not username:
        raise InvalidArgument("Username is required")
    return username


def _clean_email(email: Optional[str]) -> str:
    email = normalize_email(email)
    if not email:
        raise InvalidArgument("Email is required")
    if "@" not in email:
        raise InvalidArgument("Email is not valid")
    return email


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class IdentityStore:
    """Owns user records. Uniqueness of username and email is enforced by the store."""

    def __init__(self, db: Database):
        self.db = db
        self.users_repo = UsersRepository(db)
        self.follows_repo = FollowsRepository(db)

    def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        bio: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> User:
        """
        Register a new account.

        The pre-check only gives a friendlier answer in the common case; the unique
        indexes on lower(username) and email are what reject a concurrent duplicate.
        """
        username = _clean_username(username)
        email = _clean_email(email)
        if not password_hash:
            raise InvalidArgument("Password is required")

        if self.users_repo.get_user_by_email(email):
            raise DuplicateKey("Email already in use")
        if self.users_repo.get_user_by_username(username):
            raise DuplicateKey("Username already taken")

        user = self.users_repo.create_user(
            username=username,
            email=email,
            password_hash=password_hash,
            bio=_optional_text(bio),
            avatar_url=_optional_text(avatar_url),
        )
        logger.info(f"User {user.id} registered as {user.username}")
        return user

    def find_by_id(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        return self.users_repo.get_user(user_id)

    def find_by_email(self, email: Optional[str]) -> Optional[User]:
        email = normalize_email(email)
        if not email:
            return None
        return self.users_repo.get_user_by_email(email)

    def find_by_username(self, username: Optional[str]) -> Optional[User]:
        username = (username or "").strip()
        if not username:
            return None
        return self.users_repo.get_user_by_username(username)

    def get_user(self, user_id: str) -> User:
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def exists(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and self.users_repo.exists(user_id)

    def require_exists(self, user_id: Optional[str]) -> None:
        if not self.exists(user_id):
            raise NotFound("User not found")

    def update_profile(self, user_id: str, patch: Dict[str, Any]) -> User:
        """
        Partial profile update. Only keys present in `patch` change.

        Raises DuplicateKey when a different user already holds the requested
        username or email.
        """
        current = self.get_user(user_id)
        changes: Dict[str, Optional[str]] = {}
        for name in UPDATABLE_FIELDS:
            if name not in patch:
                continue
            value = patch[name]
            if name == "username":
                changes[name] = _clean_username(value)
            elif name == "email":
                changes[name] = _clean_email(value)
            else:
                changes[name] = _optional_text(value)

        if "username" in changes:
            holder = self.users_repo.get_user_by_username(changes["username"])
            if holder and holder.id != current.id:
                raise DuplicateKey("Username already taken")
        if "email" in changes:
            holder = self.users_repo.get_user_by_email(changes["email"])
            if holder and holder.id != current.id:
                raise DuplicateKey("Email already in use")

        updated = self.users_repo.update_user(current.id, changes)
        if updated is None:
            raise NotFound("User not found")
        if changes:
            logger.info(f"User {current.id} updated profile fields {sorted(changes)}")
        return updated

    def change_password_hash(self, user_id: str, new_hash: str) -> None:
        if not new_hash:
            raise InvalidArgument("Password is required")
        if not self.users_repo.update_password_hash(user_id, new_hash):
            raise NotFound("User not found")
        logger.info(f"User {user_id} changed password")

    def delete_user(self, user_id: str) -> None:
        """Delete the account and, in the same transaction, everything it owns."""
        if not self.users_repo.delete_user(user_id):
            raise NotFound("User not found")
        logger.info(f"User {user_id} deleted with all owned content")

    def search_users(self, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Page[UserListItem]:
        request = PageRequest(page=page, limit=limit)
        items, total = self.users_repo.search_users((search or "").strip(), request.limit, request.offset)
        return Page.of(items, request, total)

    def get_summaries(self, user_ids: Iterable[str]) -> Dict[str, AuthorSummary]:
        return self.users_repo.get_summaries(user_ids)

    def get_stats(self, user_id: str) -> UserStats:
        self.require_exists(user_id)
        return self.users_repo.get_stats(user_id)

    def get_profile(self, user_id: str, viewer_id: Optional[str] = None) -> UserProfile:
        """Public profile. Email is only shown to the user themselves."""
        user = self.get_user(user_id)
        profile = UserProfile(
            id=user.id,
            username=user.username,
            bio=user.bio,
            avatar_url=user.avatar_url,
            created_at=user.created_at,
            stats=self.users_repo.get_stats(user.id),
            followers_count=self.follows_repo.get_follower_count(user.id),
            following_count=self.follows_repo.get_following_count(user.id),
        )
        if viewer_id is not None:
            profile.is_following = (
                str(viewer_id) != user.id and self.follows_repo.is_following(str(viewer_id), user.id)
            )
            if str(viewer_id) == user.id:
                profile.email = user.email
        return profile
