"""
Ownership rules shared by every mutating operation.

A resource may be updated or deleted only by its owner. Reads of posts,
comments, likes and profiles are public.
"""
from typing import Optional

from mingle.errors import Forbidden, Unauthenticated


def authorize(actor_id: Optional[str], owner_id: Optional[str]) -> bool:
    """True iff an authenticated actor is the owner."""
    if actor_id is None or owner_id is None:
        return False
    return str(actor_id) == str(owner_id)


def require_actor(actor_id: Optional[str]) -> str:
    if actor_id is None or str(actor_id) == "":
        raise Unauthenticated()
    return str(actor_id)


def require_owner(actor_id: Optional[str], owner_id: Optional[str], what: str = "resource") -> None:
    """Raise Unauthenticated without an actor, Forbidden when the actor does not own `what`."""
    require_actor(actor_id)
    if not authorize(actor_id, owner_id):
        raise Forbidden(f"Not authorized to modify this {what}")
