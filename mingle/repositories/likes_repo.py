from typing import List, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError

from mingle.db.database import Database, new_id
from mingle.db.integrity import FOREIGN_KEY, UNIQUE, constraint_kind
from mingle.errors import AlreadyExists, NotFound
from mingle.models.models import Like
from mingle.utils.time_utils import dt_from_utc_iso


def _row_to_like(row) -> Like:
    return Like(
        id=str(row["like_id"]),
        user_id=str(row["user_id"]),
        post_id=str(row["post_id"]),
        created_at=dt_from_utc_iso(row["created_at_utc"]),
    )


class LikesRepository:
    """Repository for likes; at most one row per (user, post)."""

    def __init__(self, db: Database):
        self.db = db

    def add_like(self, post_id: str, user_id: str) -> Like:
        """
        Insert a like.

        Raises AlreadyExists if the user already likes the post; the unique
        (user_id, post_id) constraint decides, never a prior SELECT.
        """
        like_id = new_id()
        now = self.db.now()
        try:
            with self.db.session() as session:
                session.execute(
                    text("""
                        INSERT INTO likes(like_id, user_id, post_id, created_at_utc)
                        VALUES (:like_id, :user_id, :post_id, :created_at_utc);
                    """),
                    {"like_id": like_id, "user_id": str(user_id), "post_id": str(post_id), "created_at_utc": now},
                )
        except IntegrityError as e:
            kind = constraint_kind(e)
            if kind == UNIQUE:
                raise AlreadyExists("You already liked this post") from e
            if kind == FOREIGN_KEY:
                raise NotFound("Post not found") from e
            raise
        return Like(id=like_id, user_id=str(user_id), post_id=str(post_id), created_at=dt_from_utc_iso(now))

    def remove_like(self, post_id: str, user_id: str) -> bool:
        """Delete the like. Returns False if there was none."""
        with self.db.session() as session:
            result = session.execute(
                text("DELETE FROM likes WHERE post_id = :post_id AND user_id = :user_id;"),
                {"post_id": str(post_id), "user_id": str(user_id)},
            )
            return result.rowcount > 0

    def has_liked(self, post_id: str, user_id: str) -> bool:
        with self.db.session() as session:
            row = session.execute(
                text("SELECT 1 FROM likes WHERE post_id = :post_id AND user_id = :user_id LIMIT 1;"),
                {"post_id": str(post_id), "user_id": str(user_id)},
            ).fetchone()
            return bool(row)

    def liked_post_ids(self, user_id: str, post_ids: List[str]) -> set:
        """Subset of post_ids the user has liked."""
        if not post_ids:
            return set()
        with self.db.session() as session:
            rows = session.execute(
                text("""
                    SELECT post_id FROM likes
                    WHERE user_id = :user_id AND post_id IN :post_ids;
                """).bindparams(bindparam("post_ids", expanding=True)),
                {"user_id": str(user_id), "post_ids": [str(pid) for pid in post_ids]},
            ).fetchall()
            return {str(row[0]) for row in rows}

    def list_for_post(self, post_id: str, limit: int, offset: int) -> Tuple[List[Like], int]:
        """Likes on a post, newest first."""
        with self.db.session() as session:
            rows = session.execute(
                text("""
                    SELECT like_id, user_id, post_id, created_at_utc FROM likes
                    WHERE post_id = :post_id
                    ORDER BY created_at_utc DESC, like_id DESC
                    LIMIT :limit OFFSET :offset;
                """),
                {"post_id": str(post_id), "limit": limit, "offset": offset},
            ).mappings().fetchall()
            total = session.execute(
                text("SELECT COUNT(*) FROM likes WHERE post_id = :post_id;"),
                {"post_id": str(post_id)},
            ).scalar()
        return [_row_to_like(row) for row in rows], int(total or 0)
