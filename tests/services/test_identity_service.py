import pytest

from mingle.errors import DuplicateKey, InvalidArgument, NotFound


@pytest.mark.service
def test_create_user_normalizes_email(identity):
    user = identity.create_user("  Alice ", "Alice@Example.COM ", "hash")

    assert user.username == "Alice"
    assert user.email == "alice@example.com"
    assert identity.find_by_email("ALICE@example.com").id == user.id
    assert identity.find_by_username("alice").id == user.id


@pytest.mark.service
@pytest.mark.parametrize(
    "username,email",
    [("", "a@example.com"), ("   ", "a@example.com"), ("alice", ""), ("alice", "not-an-email")],
)
def test_create_user_rejects_invalid_input(identity, username, email):
    with pytest.raises(InvalidArgument):
        identity.create_user(username, email, "hash")


@pytest.mark.service
def test_same_username_in_any_case_is_duplicate(identity, alice):
    with pytest.raises(DuplicateKey):
        identity.create_user("ALICE", "other@example.com", "hash")


@pytest.mark.service
def test_get_user_and_find_by_id(identity, alice):
    assert identity.get_user(alice.id).username == "alice"
    assert identity.find_by_id("missing") is None
    with pytest.raises(NotFound):
        identity.get_user("missing")


@pytest.mark.service
def test_update_profile_partial(identity, alice):
    updated = identity.update_profile(alice.id, {"bio": "hello", "avatar_url": "  "})

    assert updated.bio == "hello"
    assert updated.avatar_url is None
    assert updated.email == alice.email


@pytest.mark.service
def test_update_profile_keeps_own_username_in_other_case(identity, alice):
    updated = identity.update_profile(alice.id, {"username": "Alice"})

    assert updated.username == "Alice"


@pytest.mark.service
def test_update_profile_rejects_taken_username_and_email(identity, alice, bob):
    with pytest.raises(DuplicateKey, match="Username"):
        identity.update_profile(alice.id, {"username": "BOB"})
    with pytest.raises(DuplicateKey, match="Email"):
        identity.update_profile(alice.id, {"email": "Bob@example.com"})
    with pytest.raises(NotFound):
        identity.update_profile("missing", {"bio": "x"})


@pytest.mark.service
def test_change_password_hash(identity, alice):
    identity.change_password_hash(alice.id, "new-hash")

    assert identity.get_user(alice.id).password_hash == "new-hash"
    with pytest.raises(NotFound):
        identity.change_password_hash("missing", "x")


@pytest.mark.service
def test_search_users_pages(identity, make_user):
    for name in ("sam1", "sam2", "sam3", "other"):
        make_user(name)

    page = identity.search_users("SAM", page=2, limit=2)

    assert page.total == 3
    assert page.pages == 2
    assert [u.username for u in page.items] == ["sam1"]


@pytest.mark.service
def test_profile_shows_email_only_to_self(identity, social_graph, alice, bob):
    social_graph.follow(bob.id, alice.id)

    own = identity.get_profile(alice.id, viewer_id=alice.id)
    assert own.email == alice.email
    assert own.is_following is False
    assert own.followers_count == 1

    seen_by_bob = identity.get_profile(alice.id, viewer_id=bob.id)
    assert seen_by_bob.email is None
    assert seen_by_bob.is_following is True

    anonymous = identity.get_profile(alice.id)
    assert anonymous.email is None
    assert anonymous.is_following is None


@pytest.mark.service
def test_delete_missing_user(identity):
    with pytest.raises(NotFound):
        identity.delete_user("missing")
