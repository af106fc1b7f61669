"""
Table definitions for the social graph.

Uniqueness rules live here, in the store, so that concurrent writers are
serialized by the database rather than by check-then-write code:
- users: unique lower(username), unique email
- follows: primary key (follower_id, following_id), no self edges
- likes: unique (user_id, post_id)
- conversations: unique pair_key (normalized unordered participant pair)

This module mirrors alembic/versions/001_initial_schema.py; keep both in sync.
"""

import sqlalchemy as sa

metadata = sa.MetaData()

users = sa.Table(
    "users",
    metadata,
    sa.Column("user_id", sa.Text(), primary_key=True),
    sa.Column("username", sa.Text(), nullable=False),
    sa.Column("email", sa.Text(), nullable=False),
    sa.Column("password_hash", sa.Text(), nullable=False),
    sa.Column("bio", sa.Text(), nullable=True),
    sa.Column("avatar_url", sa.Text(), nullable=True),
    sa.Column("created_at_utc", sa.Text(), nullable=False),
    sa.Column("updated_at_utc", sa.Text(), nullable=False),
    sa.UniqueConstraint("email", name="uq_users_email"),
)
sa.Index("uq_users_username_lower", sa.func.lower(users.c.username), unique=True)
sa.Index("ix_users_created", users.c.created_at_utc)

posts = sa.Table(
    "posts",
    metadata,
    sa.Column("post_id", sa.Text(), primary_key=True),
    sa.Column(
        "author_id",
        sa.Text(),
        sa.ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("content", sa.Text(), nullable=True),
    sa.Column("image_url", sa.Text(), nullable=True),
    sa.Column("created_at_utc", sa.Text(), nullable=False),
    sa.Column("updated_at_utc", sa.Text(), nullable=False),
    sa.CheckConstraint(
        "content IS NOT NULL OR image_url IS NOT NULL", name="check_posts_has_body"
    ),
)
sa.Index("ix_posts_created", posts.c.created_at_utc)
sa.Index("ix_posts_author_created", posts.c.author_id, posts.c.created_at_utc)

comments = sa.Table(
    "comments",
    metadata,
    sa.Column("comment_id", sa.Text(), primary_key=True),
    sa.Column(
        "post_id",
        sa.Text(),
        sa.ForeignKey("posts.post_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column(
        "author_id",
        sa.Text(),
        sa.ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("content", sa.Text(), nullable=False),
    sa.Column("created_at_utc", sa.Text(), nullable=False),
    sa.Column("updated_at_utc", sa.Text(), nullable=False),
)
sa.Index("ix_comments_post_created", comments.c.post_id, comments.c.created_at_utc)
sa.Index("ix_comments_author", comments.c.author_id)

likes = sa.Table(
    "likes",
    metadata,
    sa.Column("like_id", sa.Text(), primary_key=True),
    sa.Column(
        "user_id",
        sa.Text(),
        sa.ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column(
        "post_id",
        sa.Text(),
        sa.ForeignKey("posts.post_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("created_at_utc", sa.Text(), nullable=False),
    sa.UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),
)
sa.Index("ix_likes_post_created", likes.c.post_id, likes.c.created_at_utc)

follows = sa.Table(
    "follows",
    metadata,
    sa.Column(
        "follower_id",
        sa.Text(),
        sa.ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column(
        "following_id",
        sa.Text(),
        sa.ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("created_at_utc", sa.Text(), nullable=False),
    sa.PrimaryKeyConstraint("follower_id", "following_id", name="pk_follows"),
    sa.CheckConstraint("follower_id <> following_id", name="check_follows_not_self"),
)
sa.Index("ix_follows_following_created", follows.c.following_id, follows.c.created_at_utc)
sa.Index("ix_follows_follower_created", follows.c.follower_id, follows.c.created_at_utc)

conversations = sa.Table(
    "conversations",
    metadata,
    sa.Column("conversation_id", sa.Text(), primary_key=True),
    sa.Column("pair_key", sa.Text(), nullable=False),
    sa.Column("created_at_utc", sa.Text(), nullable=False),
    sa.Column("updated_at_utc", sa.Text(), nullable=False),
    sa.UniqueConstraint("pair_key", name="uq_conversations_pair_key"),
)
sa.Index("ix_conversations_updated", conversations.c.updated_at_utc)

conversation_participants = sa.Table(
    "conversation_participants",
    metadata,
    sa.Column(
        "conversation_id",
        sa.Text(),
        sa.ForeignKey("conversations.conversation_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column(
        "user_id",
        sa.Text(),
        sa.ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.PrimaryKeyConstraint("conversation_id", "user_id", name="pk_conversation_participants"),
)
sa.Index("ix_conversation_participants_user", conversation_participants.c.user_id)

messages = sa.Table(
    "messages",
    metadata,
    sa.Column("message_id", sa.Text(), primary_key=True),
    sa.Column(
        "conversation_id",
        sa.Text(),
        sa.ForeignKey("conversations.conversation_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column(
        "sender_id",
        sa.Text(),
        sa.ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("content", sa.Text(), nullable=False),
    sa.Column("created_at_utc", sa.Text(), nullable=False),
    sa.Column("updated_at_utc", sa.Text(), nullable=False),
)
sa.Index("ix_messages_conversation_created", messages.c.conversation_id, messages.c.created_at_utc)


def create_schema(engine: sa.engine.Engine) -> None:
    """Create all tables that do not exist yet (dev and tests; production uses Alembic)."""
    metadata.create_all(engine)
