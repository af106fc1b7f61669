import pytest

pytestmark = pytest.mark.webapp


def test_conversation_and_message_flow(client, register):
    alice, alice_token = register("alice")
    bob, bob_token = register("bob")
    _, carol_token = register("carol")

    created = client.post("/api/conversations", json={"participant_id": bob["id"]}, token=alice_token)
    assert created.status_code == 201
    conversation = created.json()
    assert sorted(p["username"] for p in conversation["participants"]) == ["alice", "bob"]

    reopened = client.post("/api/conversations", json={"participant_id": alice["id"]}, token=bob_token)
    assert reopened.status_code == 200
    assert reopened.json()["id"] == conversation["id"]

    self_chat = client.post("/api/conversations", json={"participant_id": alice["id"]}, token=alice_token)
    assert self_chat.status_code == 400

    assert client.get(f"/api/conversations/{conversation['id']}", token=carol_token).status_code == 403

    outsider = client.post(
        "/api/messages", json={"conversation_id": conversation["id"], "content": "hi"}, token=carol_token
    )
    assert outsider.status_code == 403

    sent = client.post(
        "/api/messages", json={"conversation_id": conversation["id"], "content": "hi bob"}, token=alice_token
    )
    assert sent.status_code == 201
    message = sent.json()
    assert message["sender"]["username"] == "alice"

    listed = client.get("/api/conversations", token=bob_token).json()
    assert [c["id"] for c in listed] == [conversation["id"]]
    assert listed[0]["last_message"]["content"] == "hi bob"
    assert listed[0]["updated_at"] == message["created_at"]

    messages = client.get(f"/api/messages/{conversation['id']}", token=bob_token)
    assert [m["content"] for m in messages.json()] == ["hi bob"]
    assert client.get(f"/api/messages/{conversation['id']}", token=carol_token).status_code == 403

    assert client.put(f"/api/messages/{message['id']}", json={"content": "x"}, token=bob_token).status_code == 403
    edited = client.put(f"/api/messages/{message['id']}", json={"content": "hi bob!"}, token=alice_token)
    assert edited.status_code == 200
    assert edited.json()["content"] == "hi bob!"

    assert client.delete(f"/api/messages/{message['id']}", token=bob_token).status_code == 403
    assert client.delete(f"/api/messages/{message['id']}", token=alice_token).status_code == 200
    assert client.delete(f"/api/messages/{message['id']}", token=alice_token).status_code == 404


def test_conversations_require_authentication(client):
    assert client.get("/api/conversations").status_code == 401
    assert client.post("/api/conversations", json={"participant_id": "x"}).status_code == 401


def test_conversation_with_unknown_user(client, register):
    _, token = register("alice")

    response = client.post("/api/conversations", json={"participant_id": "missing"}, token=token)

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}
