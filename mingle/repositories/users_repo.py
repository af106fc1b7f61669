from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError

from mingle.db.database import Database, new_id
from mingle.db.integrity import UNIQUE, constraint_kind, constraint_message
from mingle.errors import DuplicateKey
from mingle.models.models import AuthorSummary, User, UserListItem, UserStats
from mingle.utils.time_utils import dt_from_utc_iso

_USER_COLUMNS = """
    user_id, username, email, password_hash, bio, avatar_url, created_at_utc, updated_at_utc
"""

# Only these columns can be changed through update_user()
UPDATABLE_FIELDS = ("username", "email", "bio", "avatar_url")


def _row_to_user(row) -> User:
    return User(
        id=str(row["user_id"]),
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        bio=row["bio"],
        avatar_url=row["avatar_url"],
        created_at=dt_from_utc_iso(row["created_at_utc"]),
        updated_at=dt_from_utc_iso(row["updated_at_utc"]),
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _duplicate_key_error(error: IntegrityError) -> DuplicateKey:
    if "email" in constraint_message(error):
        return DuplicateKey("Email already in use")
    return DuplicateKey("Username already taken")


class UsersRepository:
    """Repository for user records (identity store persistence)."""

    def __init__(self, db: Database):
        self.db = db

    def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        bio: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> User:
        """
        Insert a user row.

        Raises DuplicateKey when lower(username) or email is already taken; the
        unique indexes decide, so concurrent registrations cannot both win.
        """
        user_id = new_id()
        now = self.db.now()
        try:
            with self.db.session() as session:
                session.execute(
                    text(f"""
                        INSERT INTO users({_USER_COLUMNS})
                        VALUES (:user_id, :username, :email, :password_hash, :bio, :avatar_url,
                                :created_at_utc, :updated_at_utc);
                    """),
                    {
                        "user_id": user_id,
                        "username": username,
                        "email": email,
                        "password_hash": password_hash,
                        "bio": bio,
                        "avatar_url": avatar_url,
                        "created_at_utc": now,
                        "updated_at_utc": now,
                    },
                )
        except IntegrityError as e:
            if constraint_kind(e) == UNIQUE:
                raise _duplicate_key_error(e) from e
            raise
        return self.get_user(user_id)

    def get_user(self, user_id: str) -> Optional[User]:
        with self.db.session() as session:
            row = session.execute(
                text(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id = :user_id LIMIT 1;"),
                {"user_id": str(user_id)},
            ).mappings().fetchone()
            return _row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self.db.session() as session:
            row = session.execute(
                text(f"SELECT {_USER_COLUMNS} FROM users WHERE email = :email LIMIT 1;"),
                {"email": email},
            ).mappings().fetchone()
            return _row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Case-insensitive lookup by username."""
        with self.db.session() as session:
            row = session.execute(
                text(f"SELECT {_USER_COLUMNS} FROM users WHERE lower(username) = lower(:username) LIMIT 1;"),
                {"username": username},
            ).mappings().fetchone()
            return _row_to_user(row) if row else None

    def exists(self, user_id: str) -> bool:
        with self.db.session() as session:
            row = session.execute(
                text("SELECT 1 FROM users WHERE user_id = :user_id LIMIT 1;"),
                {"user_id": str(user_id)},
            ).fetchone()
            return bool(row)

    def get_summaries(self, user_ids: Iterable[str]) -> Dict[str, AuthorSummary]:
        """Resolve ids to the minimal {id, username, avatar_url} projection."""
        ids = sorted({str(uid) for uid in user_ids if uid is not None})
        if not ids:
            return {}
        with self.db.session() as session:
            rows = session.execute(
                text("""
                    SELECT user_id, username, avatar_url FROM users
                    WHERE user_id IN :ids;
                """).bindparams(bindparam("ids", expanding=True)),
                {"ids": ids},
            ).mappings().fetchall()
            return {
                str(row["user_id"]): AuthorSummary(
                    id=str(row["user_id"]),
                    username=row["username"],
                    avatar_url=row["avatar_url"],
                )
                for row in rows
            }

    def search_users(self, search: str, limit: int, offset: int) -> Tuple[List[UserListItem], int]:
        """Case-insensitive substring match on username, newest accounts first."""
        pattern = f"%{_escape_like((search or '').lower())}%"
        with self.db.session() as session:
            rows = session.execute(
                text("""
                    SELECT u.user_id, u.username, u.bio, u.avatar_url, u.created_at_utc,
                           (SELECT COUNT(*) FROM posts p WHERE p.author_id = u.user_id) AS posts_count
                    FROM users u
                    WHERE lower(u.username) LIKE :pattern ESCAPE '\\'
                    ORDER BY u.created_at_utc DESC, u.user_id DESC
                    LIMIT :limit OFFSET :offset;
                """),
                {"pattern": pattern, "limit": limit, "offset": offset},
            ).mappings().fetchall()
            total = session.execute(
                text("""
                    SELECT COUNT(*) FROM users
                    WHERE lower(username) LIKE :pattern ESCAPE '\\';
                """),
                {"pattern": pattern},
            ).scalar()

        items = [
            UserListItem(
                id=str(row["user_id"]),
                username=row["username"],
                bio=row["bio"],
                avatar_url=row["avatar_url"],
                created_at=dt_from_utc_iso(row["created_at_utc"]),
                posts_count=int(row["posts_count"] or 0),
            )
            for row in rows
        ]
        return items, int(total or 0)

    def update_user(self, user_id: str, changes: Dict[str, Optional[str]]) -> Optional[User]:
        """
        Apply a partial update. Returns the updated user, or None if it does not exist.

        Raises DuplicateKey if the new username/email collides with another user.
        """
        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if fields:
            assignments = ", ".join(f"{name} = :{name}" for name in fields)
            params = dict(fields)
            params.update({"user_id": str(user_id), "updated_at_utc": self.db.now()})
            try:
                with self.db.session() as session:
                    result = session.execute(
                        text(f"""
                            UPDATE users
                            SET {assignments}, updated_at_utc = :updated_at_utc
                            WHERE user_id = :user_id;
                        """),
                        params,
                    )
                    if result.rowcount == 0:
                        return None
            except IntegrityError as e:
                if constraint_kind(e) == UNIQUE:
                    raise _duplicate_key_error(e) from e
                raise
        return self.get_user(user_id)

    def update_password_hash(self, user_id: str, password_hash: str) -> bool:
        with self.db.session() as session:
            result = session.execute(
                text("""
                    UPDATE users SET password_hash = :password_hash, updated_at_utc = :updated_at_utc
                    WHERE user_id = :user_id;
                """),
                {"password_hash": password_hash, "updated_at_utc": self.db.now(), "user_id": str(user_id)},
            )
            return result.rowcount > 0

    def delete_user(self, user_id: str) -> bool:
        """
        Delete a user and everything that depends on it, in one transaction.

        Conversations the user took part in are removed whole (a conversation
        always has exactly two participants), together with their messages.
        """
        params = {"user_id": str(user_id)}
        with self.db.session() as session:
            # Conversations (and their messages) the user participates in
            conversation_ids = [
                str(row[0])
                for row in session.execute(
                    text("SELECT conversation_id FROM conversation_participants WHERE user_id = :user_id;"),
                    params,
                ).fetchall()
            ]
            if conversation_ids:
                ids_param = {"ids": conversation_ids}
                for table in ("messages", "conversation_participants", "conversations"):
                    session.execute(
                        text(f"DELETE FROM {table} WHERE conversation_id IN :ids;").bindparams(
                            bindparam("ids", expanding=True)
                        ),
                        ids_param,
                    )

            # Likes given by the user, and likes on the user's posts
            session.execute(text("DELETE FROM likes WHERE user_id = :user_id;"), params)
            session.execute(
                text("DELETE FROM likes WHERE post_id IN (SELECT post_id FROM posts WHERE author_id = :user_id);"),
                params,
            )

            # Comments written by the user, and comments on the user's posts
            session.execute(text("DELETE FROM comments WHERE author_id = :user_id;"), params)
            session.execute(
                text("DELETE FROM comments WHERE post_id IN (SELECT post_id FROM posts WHERE author_id = :user_id);"),
                params,
            )

            session.execute(text("DELETE FROM posts WHERE author_id = :user_id;"), params)
            session.execute(
                text("DELETE FROM follows WHERE follower_id = :user_id OR following_id = :user_id;"),
                params,
            )

            result = session.execute(text("DELETE FROM users WHERE user_id = :user_id;"), params)
            return result.rowcount > 0

    def get_stats(self, user_id: str) -> UserStats:
        """Exact counts, computed on every call."""
        params = {"user_id": str(user_id)}
        with self.db.session() as session:
            posts = session.execute(
                text("SELECT COUNT(*) FROM posts WHERE author_id = :user_id;"), params
            ).scalar()
            comments = session.execute(
                text("SELECT COUNT(*) FROM comments WHERE author_id = :user_id;"), params
            ).scalar()
            likes = session.execute(
                text("SELECT COUNT(*) FROM likes WHERE user_id = :user_id;"), params
            ).scalar()
        return UserStats(posts=int(posts or 0), comments=int(comments or 0), likes=int(likes or 0))
