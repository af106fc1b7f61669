from typing import Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from mingle.db.database import Database, new_id
from mingle.db.integrity import CHECK, FOREIGN_KEY, constraint_kind
from mingle.errors import InvalidArgument, NotFound
from mingle.models.models import Post
from mingle.utils.time_utils import dt_from_utc_iso

_POST_SELECT = """
    SELECT p.post_id, p.author_id, p.content, p.image_url, p.created_at_utc, p.updated_at_utc,
           (SELECT COUNT(*) FROM likes l WHERE l.post_id = p.post_id) AS likes_count,
           (SELECT COUNT(*) FROM comments c WHERE c.post_id = p.post_id) AS comments_count
    FROM posts p
"""


def _row_to_post(row) -> Post:
    return Post(
        id=str(row["post_id"]),
        author_id=str(row["author_id"]),
        content=row["content"],
        image_url=row["image_url"],
        created_at=dt_from_utc_iso(row["created_at_utc"]),
        updated_at=dt_from_utc_iso(row["updated_at_utc"]),
        likes_count=int(row["likes_count"] or 0),
        comments_count=int(row["comments_count"] or 0),
    )


class PostsRepository:
    """Repository for posts."""

    def __init__(self, db: Database):
        self.db = db

    def create_post(self, author_id: str, content: Optional[str], image_url: Optional[str]) -> Post:
        post_id = new_id()
        now = self.db.now()
        try:
            with self.db.session() as session:
                session.execute(
                    text("""
                        INSERT INTO posts(post_id, author_id, content, image_url, created_at_utc, updated_at_utc)
                        VALUES (:post_id, :author_id, :content, :image_url, :created_at_utc, :updated_at_utc);
                    """),
                    {
                        "post_id": post_id,
                        "author_id": str(author_id),
                        "content": content,
                        "image_url": image_url,
                        "created_at_utc": now,
                        "updated_at_utc": now,
                    },
                )
        except IntegrityError as e:
            if constraint_kind(e) == FOREIGN_KEY:
                raise NotFound("User not found") from e
            raise
        return self.get_post(post_id)

    def get_post(self, post_id: str) -> Optional[Post]:
        with self.db.session() as session:
            row = session.execute(
                text(f"{_POST_SELECT} WHERE p.post_id = :post_id LIMIT 1;"),
                {"post_id": str(post_id)},
            ).mappings().fetchone()
            return _row_to_post(row) if row else None

    def get_author_id(self, post_id: str) -> Optional[str]:
        with self.db.session() as session:
            row = session.execute(
                text("SELECT author_id FROM posts WHERE post_id = :post_id LIMIT 1;"),
                {"post_id": str(post_id)},
            ).fetchone()
            return str(row[0]) if row else None

    def list_posts(self, limit: int, offset: int, author_id: Optional[str] = None) -> Tuple[List[Post], int]:
        """Posts newest first, optionally restricted to one author."""
        where = "WHERE p.author_id = :author_id" if author_id is not None else ""
        params = {"limit": limit, "offset": offset}
        count_params = {}
        if author_id is not None:
            params["author_id"] = str(author_id)
            count_params["author_id"] = str(author_id)

        with self.db.session() as session:
            rows = session.execute(
                text(f"""
                    {_POST_SELECT}
                    {where}
                    ORDER BY p.created_at_utc DESC, p.post_id DESC
                    LIMIT :limit OFFSET :offset;
                """),
                params,
            ).mappings().fetchall()
            total = session.execute(
                text(f"SELECT COUNT(*) FROM posts p {where};"),
                count_params,
            ).scalar()
        return [_row_to_post(row) for row in rows], int(total or 0)

    def update_post(self, post_id: str, changes: Dict[str, Optional[str]]) -> bool:
        """
        Apply a partial update of content/image_url. Returns False if the post is gone.

        Raises InvalidArgument when the stored row would end up with neither
        content nor image, e.g. after a concurrent update cleared the other field.
        """
        fields = {k: v for k, v in changes.items() if k in ("content", "image_url")}
        assignments = "".join(f"{name} = :{name}, " for name in fields)
        params = dict(fields)
        params.update({"post_id": str(post_id), "updated_at_utc": self.db.now()})
        try:
            with self.db.session() as session:
                result = session.execute(
                    text(f"""
                        UPDATE posts
                        SET {assignments}updated_at_utc = :updated_at_utc
                        WHERE post_id = :post_id;
                    """),
                    params,
                )
                return result.rowcount > 0
        except IntegrityError as e:
            if constraint_kind(e) == CHECK:
                raise InvalidArgument("Post must have content or an image") from e
            raise

    def delete_post(self, post_id: str) -> bool:
        """Delete a post together with its likes and comments, in one transaction."""
        params = {"post_id": str(post_id)}
        with self.db.session() as session:
            session.execute(text("DELETE FROM likes WHERE post_id = :post_id;"), params)
            session.execute(text("DELETE FROM comments WHERE post_id = :post_id;"), params)
            result = session.execute(text("DELETE FROM posts WHERE post_id = :post_id;"), params)
            return result.rowcount > 0
