"""Initial social graph schema

Revision ID: 001_initial
Revises:
Create Date: 2025-01-13

Users, posts, comments, likes, follows, conversations and messages.
Mirrors mingle/db/schema.py; uniqueness rules live in the store.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('username', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('created_at_utc', sa.Text(), nullable=False),
        sa.Column('updated_at_utc', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    # Case-insensitive username uniqueness
    op.create_index('uq_users_username_lower', 'users', [sa.text('lower(username)')], unique=True)
    op.create_index('ix_users_created', 'users', ['created_at_utc'])

    op.create_table(
        'posts',
        sa.Column('post_id', sa.Text(), nullable=False),
        sa.Column('author_id', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('created_at_utc', sa.Text(), nullable=False),
        sa.Column('updated_at_utc', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('post_id'),
        sa.ForeignKeyConstraint(['author_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.CheckConstraint('content IS NOT NULL OR image_url IS NOT NULL', name='check_posts_has_body'),
    )
    op.create_index('ix_posts_created', 'posts', ['created_at_utc'])
    op.create_index('ix_posts_author_created', 'posts', ['author_id', 'created_at_utc'])

    op.create_table(
        'comments',
        sa.Column('comment_id', sa.Text(), nullable=False),
        sa.Column('post_id', sa.Text(), nullable=False),
        sa.Column('author_id', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at_utc', sa.Text(), nullable=False),
        sa.Column('updated_at_utc', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('comment_id'),
        sa.ForeignKeyConstraint(['post_id'], ['posts.post_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['author_id'], ['users.user_id'], ondelete='CASCADE'),
    )
    op.create_index('ix_comments_post_created', 'comments', ['post_id', 'created_at_utc'])
    op.create_index('ix_comments_author', 'comments', ['author_id'])

    op.create_table(
        'likes',
        sa.Column('like_id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('post_id', sa.Text(), nullable=False),
        sa.Column('created_at_utc', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('like_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['post_id'], ['posts.post_id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'post_id', name='uq_likes_user_post'),
    )
    op.create_index('ix_likes_post_created', 'likes', ['post_id', 'created_at_utc'])

    op.create_table(
        'follows',
        sa.Column('follower_id', sa.Text(), nullable=False),
        sa.Column('following_id', sa.Text(), nullable=False),
        sa.Column('created_at_utc', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('follower_id', 'following_id', name='pk_follows'),
        sa.ForeignKeyConstraint(['follower_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['following_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.CheckConstraint('follower_id <> following_id', name='check_follows_not_self'),
    )
    op.create_index('ix_follows_following_created', 'follows', ['following_id', 'created_at_utc'])
    op.create_index('ix_follows_follower_created', 'follows', ['follower_id', 'created_at_utc'])

    op.create_table(
        'conversations',
        sa.Column('conversation_id', sa.Text(), nullable=False),
        sa.Column('pair_key', sa.Text(), nullable=False),
        sa.Column('created_at_utc', sa.Text(), nullable=False),
        sa.Column('updated_at_utc', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('conversation_id'),
        sa.UniqueConstraint('pair_key', name='uq_conversations_pair_key'),
    )
    op.create_index('ix_conversations_updated', 'conversations', ['updated_at_utc'])

    op.create_table(
        'conversation_participants',
        sa.Column('conversation_id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('conversation_id', 'user_id', name='pk_conversation_participants'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.conversation_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='CASCADE'),
    )
    op.create_index('ix_conversation_participants_user', 'conversation_participants', ['user_id'])

    op.create_table(
        'messages',
        sa.Column('message_id', sa.Text(), nullable=False),
        sa.Column('conversation_id', sa.Text(), nullable=False),
        sa.Column('sender_id', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at_utc', sa.Text(), nullable=False),
        sa.Column('updated_at_utc', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('message_id'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.conversation_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.user_id'], ondelete='CASCADE'),
    )
    op.create_index('ix_messages_conversation_created', 'messages', ['conversation_id', 'created_at_utc'])


def downgrade() -> None:
    op.drop_table('messages')
    op.drop_table('conversation_participants')
    op.drop_table('conversations')
    op.drop_table('follows')
    op.drop_table('likes')
    op.drop_table('comments')
    op.drop_table('posts')
    op.drop_table('users')
