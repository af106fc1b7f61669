from typing import Dict, List, Optional, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError

from mingle.db.database import Database, new_id
from mingle.db.integrity import FOREIGN_KEY, constraint_kind
from mingle.errors import NotFound
from mingle.models.models import Comment
from mingle.utils.time_utils import dt_from_utc_iso

_COMMENT_COLUMNS = "comment_id, post_id, author_id, content, created_at_utc, updated_at_utc"


def _row_to_comment(row) -> Comment:
    return Comment(
        id=str(row["comment_id"]),
        post_id=str(row["post_id"]),
        author_id=str(row["author_id"]),
        content=row["content"],
        created_at=dt_from_utc_iso(row["created_at_utc"]),
        updated_at=dt_from_utc_iso(row["updated_at_utc"]),
    )


class CommentsRepository:
    """Repository for comments on posts."""

    def __init__(self, db: Database):
        self.db = db

    def create_comment(self, post_id: str, author_id: str, content: str) -> Comment:
        comment_id = new_id()
        now = self.db.now()
        try:
            with self.db.session() as session:
                session.execute(
                    text(f"""
                        INSERT INTO comments({_COMMENT_COLUMNS})
                        VALUES (:comment_id, :post_id, :author_id, :content, :created_at_utc, :updated_at_utc);
                    """),
                    {
                        "comment_id": comment_id,
                        "post_id": str(post_id),
                        "author_id": str(author_id),
                        "content": content,
                        "created_at_utc": now,
                        "updated_at_utc": now,
                    },
                )
        except IntegrityError as e:
            # The post (or author) vanished between the existence check and the insert
            if constraint_kind(e) == FOREIGN_KEY:
                raise NotFound("Post not found") from e
            raise
        return Comment(
            id=comment_id,
            post_id=str(post_id),
            author_id=str(author_id),
            content=content,
            created_at=dt_from_utc_iso(now),
            updated_at=dt_from_utc_iso(now),
        )

    def get_comment(self, comment_id: str) -> Optional[Comment]:
        with self.db.session() as session:
            row = session.execute(
                text(f"SELECT {_COMMENT_COLUMNS} FROM comments WHERE comment_id = :comment_id LIMIT 1;"),
                {"comment_id": str(comment_id)},
            ).mappings().fetchone()
            return _row_to_comment(row) if row else None

    def list_for_post(self, post_id: str, limit: int, offset: int) -> Tuple[List[Comment], int]:
        """Comments on a post, newest first."""
        with self.db.session() as session:
            rows = session.execute(
                text(f"""
                    SELECT {_COMMENT_COLUMNS} FROM comments
                    WHERE post_id = :post_id
                    ORDER BY created_at_utc DESC, comment_id DESC
                    LIMIT :limit OFFSET :offset;
                """),
                {"post_id": str(post_id), "limit": limit, "offset": offset},
            ).mappings().fetchall()
            total = session.execute(
                text("SELECT COUNT(*) FROM comments WHERE post_id = :post_id;"),
                {"post_id": str(post_id)},
            ).scalar()
        return [_row_to_comment(row) for row in rows], int(total or 0)

    def update_content(self, comment_id: str, content: str) -> bool:
        with self.db.session() as session:
            result = session.execute(
                text("""
                    UPDATE comments SET content = :content, updated_at_utc = :updated_at_utc
                    WHERE comment_id = :comment_id;
                """),
                {"content": content, "updated_at_utc": self.db.now(), "comment_id": str(comment_id)},
            )
            return result.rowcount > 0

    def delete_comment(self, comment_id: str) -> bool:
        with self.db.session() as session:
            result = session.execute(
                text("DELETE FROM comments WHERE comment_id = :comment_id;"),
                {"comment_id": str(comment_id)},
            )
            return result.rowcount > 0

    def list_for_posts(self, post_ids: List[str]) -> Dict[str, List[Comment]]:
        """Every comment on each of post_ids, grouped by post, newest first."""
        if not post_ids:
            return {}
        with self.db.session() as session:
            rows = session.execute(
                text(f"""
                    SELECT {_COMMENT_COLUMNS} FROM comments
                    WHERE post_id IN :post_ids
                    ORDER BY created_at_utc DESC, comment_id DESC;
                """).bindparams(bindparam("post_ids", expanding=True)),
                {"post_ids": [str(pid) for pid in post_ids]},
            ).mappings().fetchall()

        grouped: Dict[str, List[Comment]] = {str(pid): [] for pid in post_ids}
        for row in rows:
            grouped[str(row["post_id"])].append(_row_to_comment(row))
        return grouped
