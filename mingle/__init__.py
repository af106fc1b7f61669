"""
Mingle: social-graph and interaction backend (users, posts, follows, conversations).
"""

__version__ = "1.0.0"
