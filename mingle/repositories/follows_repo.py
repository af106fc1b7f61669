from typing import List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from mingle.db.database import Database
from mingle.db.integrity import FOREIGN_KEY, UNIQUE, constraint_kind
from mingle.errors import AlreadyExists, NotFound, SelfReference
from mingle.models.models import AuthorSummary, Follow, FollowEdge
from mingle.utils.time_utils import dt_from_utc_iso


class FollowsRepository:
    """Repository for managing directed follow edges."""

    def __init__(self, db: Database):
        self.db = db

    def follow(self, follower_user_id: str, followee_user_id: str) -> Follow:
        """
        Insert a follow edge.

        The primary key on (follower_id, following_id) is the only arbiter: of two
        concurrent inserts for the same pair exactly one commits, the other raises
        AlreadyExists.
        """
        follower = str(follower_user_id)
        followee = str(followee_user_id)

        if follower == followee:
            raise SelfReference("Cannot follow yourself")

        now = self.db.now()
        try:
            with self.db.session() as session:
                session.execute(
                    text("""
                        INSERT INTO follows(follower_id, following_id, created_at_utc)
                        VALUES (:follower_id, :following_id, :created_at_utc);
                    """),
                    {"follower_id": follower, "following_id": followee, "created_at_utc": now},
                )
        except IntegrityError as e:
            kind = constraint_kind(e)
            if kind == UNIQUE:
                raise AlreadyExists("Already following this user") from e
            if kind == FOREIGN_KEY:
                raise NotFound("User not found") from e
            raise
        return Follow(follower_id=follower, following_id=followee, created_at=dt_from_utc_iso(now))

    def unfollow(self, follower_user_id: str, followee_user_id: str) -> bool:
        """Remove a follow edge. Returns False if there was none."""
        with self.db.session() as session:
            result = session.execute(
                text("""
                    DELETE FROM follows
                    WHERE follower_id = :follower_id AND following_id = :following_id;
                """),
                {"follower_id": str(follower_user_id), "following_id": str(followee_user_id)},
            )
            return result.rowcount > 0

    def is_following(self, follower_user_id: str, followee_user_id: str) -> bool:
        """Check if follower is following followee."""
        with self.db.session() as session:
            row = session.execute(
                text("""
                    SELECT 1 FROM follows
                    WHERE follower_id = :follower_id AND following_id = :following_id
                    LIMIT 1;
                """),
                {"follower_id": str(follower_user_id), "following_id": str(followee_user_id)},
            ).fetchone()
            return bool(row)

    def count_edges(self, follower_user_id: Optional[str] = None, followee_user_id: Optional[str] = None) -> int:
        """Count all follow edges matching the given end(s) (O(matching rows))."""
        clauses = []
        params = {}
        if follower_user_id is not None:
            clauses.append("follower_id = :follower_id")
            params["follower_id"] = str(follower_user_id)
        if followee_user_id is not None:
            clauses.append("following_id = :following_id")
            params["following_id"] = str(followee_user_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self.db.session() as session:
            count = session.execute(text(f"SELECT COUNT(*) FROM follows {where};"), params).scalar()
            return int(count or 0)

    def get_follower_count(self, user_id: str) -> int:
        """Get count of followers for a user."""
        return self.count_edges(followee_user_id=user_id)

    def get_following_count(self, user_id: str) -> int:
        """Get count of users this user follows."""
        return self.count_edges(follower_user_id=user_id)

    def get_followers_page(self, user_id: str, limit: int, offset: int) -> Tuple[List[FollowEdge], int]:
        """Users that follow user_id, newest edge first."""
        return self._edges_page(
            match_column="following_id", other_column="follower_id", user_id=user_id, limit=limit, offset=offset
        )

    def get_following_page(self, user_id: str, limit: int, offset: int) -> Tuple[List[FollowEdge], int]:
        """Users that user_id follows, newest edge first."""
        return self._edges_page(
            match_column="follower_id", other_column="following_id", user_id=user_id, limit=limit, offset=offset
        )

    def _edges_page(
        self, match_column: str, other_column: str, user_id: str, limit: int, offset: int
    ) -> Tuple[List[FollowEdge], int]:
        params = {"user_id": str(user_id), "limit": limit, "offset": offset}
        with self.db.session() as session:
            rows = session.execute(
                text(f"""
                    SELECT u.user_id, u.username, u.avatar_url, f.created_at_utc
                    FROM follows f
                    JOIN users u ON u.user_id = f.{other_column}
                    WHERE f.{match_column} = :user_id
                    ORDER BY f.created_at_utc DESC, u.user_id DESC
                    LIMIT :limit OFFSET :offset;
                """),
                params,
            ).mappings().fetchall()
            total = session.execute(
                text(f"SELECT COUNT(*) FROM follows WHERE {match_column} = :user_id;"),
                {"user_id": str(user_id)},
            ).scalar()

        edges = [
            FollowEdge(
                user=AuthorSummary(id=str(row["user_id"]), username=row["username"], avatar_url=row["avatar_url"]),
                followed_at=dt_from_utc_iso(row["created_at_utc"]),
            )
            for row in rows
        ]
        return edges, int(total or 0)
