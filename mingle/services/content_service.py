"""
Content engine: posts, comments and likes.

Every update or delete goes through access_control.require_owner; reads are public.
Author projections are resolved through the identity store in one batch per call.
"""
from typing import Any, Dict, List, Optional

from mingle.errors import InvalidArgument, NotFound
from mingle.models.models import Comment, Like, Post, UserStats
from mingle.repositories.comments_repo import CommentsRepository
from mingle.repositories.likes_repo import LikesRepository
from mingle.repositories.posts_repo import PostsRepository
from mingle.services.access_control import require_actor, require_owner
from mingle.services.identity_service import IdentityStore
from mingle.utils.logger import get_logger
from mingle.utils.pagination import Page, PageRequest

logger = get_logger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    """Blank strings count as absent."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_text(value: Optional[str], what: str) -> str:
    value = _blank_to_none(value)
    if value is None:
        raise InvalidArgument(f"{what} is required")
    return value


class ContentEngine:
    def __init__(self, identity: IdentityStore):
        self.identity = identity
        self.posts_repo = PostsRepository(identity.db)
        self.comments_repo = CommentsRepository(identity.db)
        self.likes_repo = LikesRepository(identity.db)

    # ---- posts ----

    def create_post(self, author_id: str, content: Optional[str] = None, image_url: Optional[str] = None) -> Post:
        author_id = require_actor(author_id)
        content = _blank_to_none(content)
        image_url = _blank_to_none(image_url)
        if content is None and image_url is None:
            raise InvalidArgument("Post must have content or an image")
        self.identity.require_exists(author_id)

        post = self.posts_repo.create_post(author_id, content, image_url)
        logger.info(f"User {author_id} created post {post.id}")
        return self._with_authors([post])[0]

    def get_post(self, post_id: str, viewer_id: Optional[str] = None) -> Post:
        post = self.posts_repo.get_post(post_id)
        if post is None:
            raise NotFound("Post not found")
        return self._decorate_posts([post], viewer_id)[0]

    def update_post(self, post_id: str, actor_id: Optional[str], patch: Dict[str, Any]) -> Post:
        """
        Partial update: only keys present in `patch` change.

        Rejected when the result would leave both content and image empty.
        """
        post = self.posts_repo.get_post(post_id)
        if post is None:
            raise NotFound("Post not found")
        require_owner(actor_id, post.author_id, "post")

        changes = {name: _blank_to_none(patch[name]) for name in ("content", "image_url") if name in patch}
        content = changes.get("content", post.content)
        image_url = changes.get("image_url", post.image_url)
        if content is None and image_url is None:
            raise InvalidArgument("Post must have content or an image")

        if not self.posts_repo.update_post(post.id, changes):
            raise NotFound("Post not found")
        logger.info(f"User {actor_id} updated post {post.id}")
        return self.get_post(post.id, viewer_id=actor_id)

    def delete_post(self, post_id: str, actor_id: Optional[str]) -> None:
        author_id = self.posts_repo.get_author_id(post_id)
        if author_id is None:
            raise NotFound("Post not found")
        require_owner(actor_id, author_id, "post")
        if not self.posts_repo.delete_post(post_id):
            raise NotFound("Post not found")
        logger.info(f"User {actor_id} deleted post {post_id} with its comments and likes")

    def posts_page(
        self,
        page: int = 1,
        limit: int = 10,
        author_id: Optional[str] = None,
        viewer_id: Optional[str] = None,
    ) -> Page[Post]:
        """All posts, or one author's posts, newest first."""
        request = PageRequest(page=page, limit=limit)
        if author_id is not None:
            self.identity.require_exists(author_id)
        posts, total = self.posts_repo.list_posts(request.limit, request.offset, author_id=author_id)
        return Page.of(self._decorate_posts(posts, viewer_id), request, total)

    # ---- comments ----

    def create_comment(self, author_id: str, post_id: str, content: Optional[str]) -> Comment:
        author_id = require_actor(author_id)
        content = _require_text(content, "Comment content")
        if self.posts_repo.get_author_id(post_id) is None:
            raise NotFound("Post not found")

        comment = self.comments_repo.create_comment(post_id, author_id, content)
        logger.info(f"User {author_id} commented {comment.id} on post {post_id}")
        return self._with_authors([comment])[0]

    def get_comment(self, comment_id: str) -> Comment:
        comment = self.comments_repo.get_comment(comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        return self._with_authors([comment])[0]

    def update_comment(self, comment_id: str, actor_id: Optional[str], content: Optional[str]) -> Comment:
        comment = self.comments_repo.get_comment(comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        require_owner(actor_id, comment.author_id, "comment")
        content = _require_text(content, "Comment content")

        if not self.comments_repo.update_content(comment.id, content):
            raise NotFound("Comment not found")
        logger.info(f"User {actor_id} updated comment {comment.id}")
        return self.get_comment(comment.id)

    def delete_comment(self, comment_id: str, actor_id: Optional[str]) -> None:
        comment = self.comments_repo.get_comment(comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        require_owner(actor_id, comment.author_id, "comment")
        if not self.comments_repo.delete_comment(comment.id):
            raise NotFound("Comment not found")
        logger.info(f"User {actor_id} deleted comment {comment.id}")

    def comments_for_post(self, post_id: str, page: int = 1, limit: int = 10) -> Page[Comment]:
        request = PageRequest(page=page, limit=limit)
        if self.posts_repo.get_author_id(post_id) is None:
            raise NotFound("Post not found")
        comments, total = self.comments_repo.list_for_post(post_id, request.limit, request.offset)
        return Page.of(self._with_authors(comments), request, total)

    # ---- likes ----

    def like(self, user_id: str, post_id: str) -> Like:
        """Like a post once; a repeated like raises AlreadyExists."""
        user_id = require_actor(user_id)
        if self.posts_repo.get_author_id(post_id) is None:
            raise NotFound("Post not found")
        like = self.likes_repo.add_like(post_id, user_id)
        logger.info(f"User {user_id} liked post {post_id}")
        return like

    def unlike(self, user_id: str, post_id: str) -> None:
        user_id = require_actor(user_id)
        if not self.likes_repo.remove_like(post_id, user_id):
            raise NotFound("Like not found")
        logger.info(f"User {user_id} unliked post {post_id}")

    def has_liked(self, user_id: str, post_id: str) -> bool:
        return self.likes_repo.has_liked(post_id, user_id)

    def likes_for_post(self, post_id: str, page: int = 1, limit: int = 10) -> Page[Like]:
        request = PageRequest(page=page, limit=limit)
        if self.posts_repo.get_author_id(post_id) is None:
            raise NotFound("Post not found")
        likes, total = self.likes_repo.list_for_post(post_id, request.limit, request.offset)
        summaries = self.identity.get_summaries(like.user_id for like in likes)
        for like in likes:
            like.user = summaries.get(like.user_id)
        return Page.of(likes, request, total)

    def user_stats(self, user_id: str) -> UserStats:
        return self.identity.get_stats(user_id)

    # ---- helpers ----

    def _with_authors(self, items: List[Any]) -> List[Any]:
        summaries = self.identity.get_summaries(item.author_id for item in items)
        for item in items:
            item.author = summaries.get(item.author_id)
        return items

    def _decorate_posts(self, posts: List[Post], viewer_id: Optional[str]) -> List[Post]:
        """Attach authors, embedded comments (newest first) and the viewer's like flag."""
        comments = self.comments_repo.list_for_posts([post.id for post in posts])
        for post in posts:
            post.comments = comments.get(post.id, [])
        embedded = [comment for post in posts for comment in post.comments]
        # One summaries lookup covers post and comment authors
        summaries = self.identity.get_summaries([item.author_id for item in posts + embedded])
        for item in posts + embedded:
            item.author = summaries.get(item.author_id)

        if viewer_id is not None:
            liked = self.likes_repo.liked_post_ids(viewer_id, [post.id for post in posts])
            for post in posts:
                post.liked_by_user = post.id in liked
        return posts
