import pytest
from sqlalchemy import text

from mingle.errors import NotFound


def _count(db, table, where="1=1", **params):
    with db.session() as session:
        return session.execute(text(f"SELECT COUNT(*) FROM {table} WHERE {where};"), params).scalar()


@pytest.mark.service
def test_deleting_user_cascades_everywhere(db, identity, content, social_graph, conversations, alice, bob, carol):
    alice_post = content.create_post(alice.id, content="alice post")
    bob_post = content.create_post(bob.id, content="bob post")
    content.create_comment(bob.id, alice_post.id, "bob on alice")
    content.create_comment(alice.id, bob_post.id, "alice on bob")
    content.like(bob.id, alice_post.id)
    content.like(alice.id, bob_post.id)
    social_graph.follow(alice.id, bob.id)
    social_graph.follow(carol.id, alice.id)
    with_bob, _ = conversations.get_or_create_conversation(alice.id, bob.id)
    conversations.send_message(with_bob.id, bob.id, "hello")
    bob_carol, _ = conversations.get_or_create_conversation(bob.id, carol.id)

    identity.delete_user(alice.id)

    assert identity.find_by_id(alice.id) is None
    with pytest.raises(NotFound):
        content.get_post(alice_post.id)
    assert _count(db, "comments") == 0
    assert _count(db, "likes") == 0
    assert _count(db, "follows") == 0
    assert _count(db, "conversations", "conversation_id = :cid", cid=with_bob.id) == 0
    assert _count(db, "messages") == 0
    assert _count(db, "conversation_participants", "user_id = :uid", uid=alice.id) == 0

    # unrelated data survives
    assert content.get_post(bob_post.id).comments_count == 0
    assert [c.id for c in conversations.list_conversations(bob.id)] == [bob_carol.id]
    assert social_graph.count_following(carol.id) == 0
