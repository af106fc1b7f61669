import pytest

from mingle.errors import NotFound, SelfReference
from mingle.repositories.conversations_repo import ConversationsRepository, make_pair_key
from mingle.repositories.messages_repo import MessagesRepository


@pytest.mark.repo
def test_pair_key_is_order_independent():
    assert make_pair_key("b", "a") == make_pair_key("a", "b") == "a:b"
    with pytest.raises(SelfReference):
        make_pair_key("a", "a")


@pytest.mark.repo
def test_get_or_create_returns_same_conversation_for_either_order(db, alice, bob):
    repo = ConversationsRepository(db)

    conversation, created = repo.get_or_create(alice.id, bob.id)
    again, created_again = repo.get_or_create(bob.id, alice.id)

    assert created is True
    assert created_again is False
    assert again.id == conversation.id
    assert sorted(conversation.participant_ids) == sorted([alice.id, bob.id])
    assert [c.id for c in repo.list_for_user(alice.id)] == [conversation.id]


@pytest.mark.repo
def test_get_or_create_with_unknown_user(db, alice):
    repo = ConversationsRepository(db)

    with pytest.raises(NotFound):
        repo.get_or_create(alice.id, "missing")
    assert repo.list_for_user(alice.id) == []


@pytest.mark.repo
def test_message_bumps_conversation_and_latest_is_tracked(db, alice, bob, carol):
    conversations = ConversationsRepository(db)
    messages = MessagesRepository(db)
    with_bob, _ = conversations.get_or_create(alice.id, bob.id)
    with_carol, _ = conversations.get_or_create(alice.id, carol.id)

    # carol's conversation is newer until bob writes
    assert [c.id for c in conversations.list_for_user(alice.id)] == [with_carol.id, with_bob.id]

    messages.create_message(with_bob.id, bob.id, "first")
    last = messages.create_message(with_bob.id, alice.id, "second")

    assert conversations.get_conversation(with_bob.id).updated_at == last.created_at
    assert [c.id for c in conversations.list_for_user(alice.id)] == [with_bob.id, with_carol.id]

    latest = messages.latest_for_conversations([with_bob.id, with_carol.id])
    assert list(latest) == [with_bob.id]
    assert latest[with_bob.id].content == "second"

    listed = messages.list_for_conversation(with_bob.id)
    assert [m.content for m in listed] == ["first", "second"]


@pytest.mark.repo
def test_message_edit_and_delete(db, alice, bob):
    conversation, _ = ConversationsRepository(db).get_or_create(alice.id, bob.id)
    messages = MessagesRepository(db)
    message = messages.create_message(conversation.id, alice.id, "typo")

    assert messages.update_content(message.id, "fixed") is True
    assert messages.get_message(message.id).content == "fixed"
    assert messages.delete_message(message.id) is True
    assert messages.get_message(message.id) is None
    assert messages.delete_message(message.id) is False
