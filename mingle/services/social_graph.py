"""
Service for the follow graph (followers, following, follow status).
"""
from mingle.errors import NotFound, SelfReference
from mingle.models.models import Follow, FollowEdge
from mingle.repositories.follows_repo import FollowsRepository
from mingle.services.identity_service import IdentityStore
from mingle.utils.logger import get_logger
from mingle.utils.pagination import Page, PageRequest

logger = get_logger(__name__)


class SocialGraphEngine:
    """Directed follow edges between users."""

    def __init__(self, identity: IdentityStore):
        self.identity = identity
        self.follows_repo = FollowsRepository(identity.db)

    def follow(self, follower_id: str, target_id: str) -> Follow:
        if str(follower_id) == str(target_id):
            raise SelfReference("Cannot follow yourself")
        self.identity.require_exists(target_id)
        follow = self.follows_repo.follow(follower_id, target_id)
        logger.info(f"User {follower_id} followed {target_id}")
        return follow

    def unfollow(self, follower_id: str, target_id: str) -> None:
        if not self.follows_repo.unfollow(follower_id, target_id):
            raise NotFound("Not following this user")
        logger.info(f"User {follower_id} unfollowed {target_id}")

    def is_following(self, follower_id: str, target_id: str) -> bool:
        return self.follows_repo.is_following(follower_id, target_id)

    def count_followers(self, user_id: str) -> int:
        return self.follows_repo.get_follower_count(user_id)

    def count_following(self, user_id: str) -> int:
        return self.follows_repo.get_following_count(user_id)

    def followers(self, user_id: str, page: int = 1, limit: int = 10) -> Page[FollowEdge]:
        """Users following `user_id`, most recent follow first."""
        request = PageRequest(page=page, limit=limit)
        self.identity.require_exists(user_id)
        edges, total = self.follows_repo.get_followers_page(user_id, request.limit, request.offset)
        return Page.of(edges, request, total)

    def following(self, user_id: str, page: int = 1, limit: int = 10) -> Page[FollowEdge]:
        """Users `user_id` follows, most recent follow first."""
        request = PageRequest(page=page, limit=limit)
        self.identity.require_exists(user_id)
        edges, total = self.follows_repo.get_following_page(user_id, request.limit, request.offset)
        return Page.of(edges, request, total)
