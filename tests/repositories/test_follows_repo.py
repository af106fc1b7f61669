import pytest

from mingle.errors import AlreadyExists, NotFound, SelfReference
from mingle.repositories.follows_repo import FollowsRepository


@pytest.mark.repo
def test_follows_repo_basic_operations(db, alice, bob):
    """Test basic follow/unfollow operations."""
    repo = FollowsRepository(db)

    # Follow
    repo.follow(alice.id, bob.id)
    assert repo.is_following(alice.id, bob.id) is True
    assert repo.is_following(bob.id, alice.id) is False
    with pytest.raises(AlreadyExists, match="Already following"):
        repo.follow(alice.id, bob.id)

    # Unfollow
    assert repo.unfollow(alice.id, bob.id) is True
    assert repo.is_following(alice.id, bob.id) is False
    assert repo.unfollow(alice.id, bob.id) is False

    # Cannot follow self
    with pytest.raises(SelfReference, match="Cannot follow yourself"):
        repo.follow(alice.id, alice.id)


@pytest.mark.repo
def test_follow_unknown_user_is_not_found(db, alice):
    repo = FollowsRepository(db)

    with pytest.raises(NotFound):
        repo.follow(alice.id, "missing")


@pytest.mark.repo
def test_follower_and_following_pages(db, alice, bob, carol):
    repo = FollowsRepository(db)
    repo.follow(bob.id, alice.id)
    repo.follow(carol.id, alice.id)
    repo.follow(alice.id, carol.id)

    assert repo.get_follower_count(alice.id) == 2
    assert repo.get_following_count(alice.id) == 1

    edges, total = repo.get_followers_page(alice.id, limit=1, offset=0)
    assert total == 2
    # newest edge first
    assert [edge.user.id for edge in edges] == [carol.id]
    assert edges[0].user.username == "carol"
    assert edges[0].followed_at is not None

    edges, _ = repo.get_followers_page(alice.id, limit=1, offset=1)
    assert [edge.user.id for edge in edges] == [bob.id]

    edges, total = repo.get_following_page(alice.id, limit=10, offset=0)
    assert total == 1
    assert edges[0].user.id == carol.id
