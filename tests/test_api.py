"""
Tests for the HTTP routes.
"""

import base64

import pytest
from fastapi.testclient import TestClient

from ai_chat_agent.api import create_app

from conftest import ScriptedLLM


@pytest.fixture
def scripted():
    return ScriptedLLM()


@pytest.fixture
def client(settings, scripted):
    app = create_app(settings, llm_factory=lambda model: scripted)
    with TestClient(app) as client:
        yield client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_models(client):
    data = client.get("/api/models").json()
    assert data["default"] == "nvidia/nemotron-3-nano-30b-a3b:free"
    assert any(m["id"] == "deepseek-chat" for m in data["models"])


def test_chat_turn_and_history(client, scripted):
    scripted.replies = ["Hi there!"]

    response = client.post("/api/chat", json={"message": "Hello", "model": "deepseek-chat"})
    assert response.status_code == 200
    data = response.json()
    assert data["content"] == "Hi there!"
    assert data["metrics"]["model"] == "deepseek-chat"
    assert data["metrics"]["totalTokens"] == 15
    assert data["sessionMetrics"]["exchanges"] == 1

    history = client.get(f"/api/chat/{data['sessionId']}").json()["messages"]
    assert [(m["role"], m["content"]) for m in history] == [
        ("user", "Hello"),
        ("assistant", "Hi there!"),
    ]


def test_chat_with_strategy(client, scripted):
    first = client.post(
        "/api/chat",
        json={"message": "U1", "strategy": {"type": "sliding-window", "windowSize": 1}},
    ).json()
    client.post("/api/chat", json={"message": "U2", "sessionId": first["sessionId"]})

    context = client.get(f"/api/chat/{first['sessionId']}/context").json()
    assert context["strategy"] == {"type": "sliding-window", "windowSize": 2}
    assert [m.content for m in scripted.calls[-1][0]] == ["reply 1", "U2"]


def test_chat_rejects_unknown_strategy(client):
    response = client.post("/api/chat", json={"message": "hi", "strategy": {"type": "magic"}})
    assert response.status_code == 400


def test_chat_provider_failure(client, scripted):
    scripted.replies = [RuntimeError("upstream down")]

    response = client.post("/api/chat", json={"message": "Hello", "sessionId": "fixed-session"})
    assert response.status_code == 502

    history = client.get("/api/chat/fixed-session").json()["messages"]
    assert [m["role"] for m in history] == ["user"]

    retried = client.post(
        "/api/chat/actions", json={"sessionId": "fixed-session", "action": "retry"}
    )
    assert retried.status_code == 200
    history = client.get("/api/chat/fixed-session").json()["messages"]
    assert [m["role"] for m in history] == ["user", "assistant"]


def test_attachments_and_file_route(client):
    payload = base64.b64encode(b"hello file").decode()
    data = client.post(
        "/api/chat",
        json={
            "message": "see file",
            "attachments": [{"filename": "a.txt", "mediaType": "text/plain", "data": payload}],
        },
    ).json()

    file_id = data["fileIds"][0]
    response = client.get(f"/api/files/{file_id}")
    assert response.status_code == 200
    assert response.content == b"hello file"
    assert response.headers["content-type"].startswith("text/plain")
    assert 'filename="a.txt"' in response.headers["content-disposition"]

    assert client.get("/api/files/9999").status_code == 404


def test_bad_attachment(client):
    response = client.post(
        "/api/chat",
        json={
            "message": "see file",
            "attachments": [{"filename": "a.txt", "mediaType": "text/plain", "data": "%%%"}],
        },
    )
    assert response.status_code == 400


def test_actions_require_session_id(client):
    assert client.post("/api/chat/actions", json={"action": "checkpoint"}).status_code == 400


def test_checkpoint_and_switch_actions(client):
    session_id = client.post(
        "/api/chat", json={"message": "U1", "strategy": {"type": "branching"}}
    ).json()["sessionId"]

    branches = client.post(
        "/api/chat/actions", json={"sessionId": session_id, "action": "checkpoint"}
    ).json()["branches"]
    assert [b["label"] for b in branches] == ["Branch A", "Branch B"]
    assert all(b["messageCount"] == 2 for b in branches)

    switched = client.post(
        "/api/chat/actions",
        json={"sessionId": session_id, "action": "switch-branch", "branchId": branches[1]["id"]},
    ).json()
    assert switched["activeBranchId"] == branches[1]["id"]
    assert len(switched["messages"]) == 2

    missing = client.post(
        "/api/chat/actions",
        json={"sessionId": session_id, "action": "switch-branch", "branchId": "nope"},
    )
    assert missing.status_code == 404

    no_branch = client.post(
        "/api/chat/actions", json={"sessionId": session_id, "action": "switch-branch"}
    )
    assert no_branch.status_code == 400


def test_new_chat_and_unknown_action(client):
    session_id = client.post("/api/chat", json={"message": "U1"}).json()["sessionId"]

    response = client.post("/api/chat/actions", json={"sessionId": session_id, "action": "new-chat"})
    assert response.json() == {"success": True}
    assert client.get(f"/api/chat/{session_id}/context").status_code == 404

    unknown = client.post("/api/chat/actions", json={"sessionId": session_id, "action": "fly"})
    assert unknown.status_code == 400


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("報告.txt", "filename*=utf-8''%E5%A0%B1%E5%91%8A.txt"),
        ('say "hi".txt', "filename*=utf-8''say%20%22hi%22.txt"),
    ],
)
def test_file_route_encodes_filename(client, filename, expected):
    payload = base64.b64encode(b"data").decode()
    data = client.post(
        "/api/chat",
        json={
            "message": "see file",
            "attachments": [{"filename": filename, "mediaType": "text/plain", "data": payload}],
        },
    ).json()

    response = client.get(f"/api/files/{data['fileIds'][0]}")
    assert response.status_code == 200
    assert response.headers["content-disposition"] == f"inline; {expected}"
