"""
API routers for the webapp.
"""

from . import health, auth, users, posts, comments, likes, conversations, messages

__all__ = ["health", "auth", "users", "posts", "comments", "likes", "conversations", "messages"]
