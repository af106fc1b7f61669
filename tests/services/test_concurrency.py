"""
Racing writers against one SQLite file: the store's constraints decide the winner.
"""
import pytest

from mingle.errors import AlreadyExists, DuplicateKey, NotFound

RACERS = 8


@pytest.mark.concurrency
def test_concurrent_follow_creates_one_edge(social_graph, alice, bob, concurrently):
    results, errors = concurrently(lambda _: social_graph.follow(alice.id, bob.id), RACERS)

    assert sum(1 for r in results if r is not None) == 1
    assert all(isinstance(e, AlreadyExists) for e in errors if e is not None)
    assert social_graph.count_followers(bob.id) == 1


@pytest.mark.concurrency
def test_concurrent_like_creates_one_like(content, alice, bob, concurrently):
    post = content.create_post(alice.id, content="race me")

    results, errors = concurrently(lambda _: content.like(bob.id, post.id), RACERS)

    assert sum(1 for r in results if r is not None) == 1
    assert all(isinstance(e, AlreadyExists) for e in errors if e is not None)
    assert content.get_post(post.id).likes_count == 1


@pytest.mark.concurrency
def test_concurrent_unlike_removes_once(content, alice, bob, concurrently):
    post = content.create_post(alice.id, content="changed my mind")
    content.like(bob.id, post.id)

    _, errors = concurrently(lambda _: content.unlike(bob.id, post.id), RACERS)

    assert sum(1 for e in errors if e is None) == 1
    assert all(isinstance(e, NotFound) for e in errors if e is not None)
    assert content.get_post(post.id).likes_count == 0
    assert content.has_liked(bob.id, post.id) is False


@pytest.mark.concurrency
def test_concurrent_get_or_create_converges(conversations, alice, bob, concurrently):
    def _open(index):
        # half the callers name the pair the other way round
        if index % 2:
            return conversations.get_or_create_conversation(bob.id, alice.id)
        return conversations.get_or_create_conversation(alice.id, bob.id)

    results, errors = concurrently(_open, RACERS)

    assert errors == [None] * RACERS
    assert len({conversation.id for conversation, _ in results}) == 1
    assert sum(1 for _, created in results if created) == 1


@pytest.mark.concurrency
def test_concurrent_registration_of_same_username(identity, concurrently):
    def _register(index):
        name = "Racer" if index % 2 else "racer"
        return identity.create_user(name, f"racer{index}@example.com", "hash")

    results, errors = concurrently(_register, RACERS)

    assert sum(1 for r in results if r is not None) == 1
    assert all(isinstance(e, DuplicateKey) for e in errors if e is not None)
    assert identity.search_users("racer").total == 1


@pytest.mark.concurrency
def test_concurrent_username_updates(identity, make_user, concurrently):
    users = [make_user(f"user{i}") for i in range(RACERS)]

    results, errors = concurrently(lambda i: identity.update_profile(users[i].id, {"username": "taken"}), RACERS)

    assert sum(1 for r in results if r is not None) == 1
    assert all(isinstance(e, DuplicateKey) for e in errors if e is not None)
