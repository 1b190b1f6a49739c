"""Tests for the HTTP API, driven through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from worldsmith.agent.turn_controller import TurnController
from worldsmith.api.app import create_app

GROUND_BLUE = '```json\n{"tool_name": "change_ground_color", "arguments": {"color": "blue"}}\n```'


@pytest.fixture()
def controller(make_controller) -> TurnController:
    return make_controller(f"Blue it is.\n{GROUND_BLUE}", "Anything else?")


@pytest.fixture()
def client(controller: TurnController):
    with TestClient(create_app(controller)) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_chat_runs_a_turn(client: TestClient, controller: TurnController) -> None:
    resp = client.post("/chat", json={"message": "make the ground blue"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["accepted"] is True
    assert body["status"] == "idle"
    assert [n["kind"] for n in body["notices"]] == ["assistant", "tool_call", "tool_result"]
    assert body["notices"][-1]["text"] == "Tool Result: Ground color changed to blue."

    world = client.get("/world").json()
    assert world["ground"]["color"] == "blue"

    history = client.get("/history").json()["messages"]
    assert history == [
        {"role": "user", "content": "make the ground blue"},
        {"role": "assistant", "content": "Blue it is."},
    ]


def test_empty_message_rejected(client: TestClient) -> None:
    assert client.post("/chat", json={"message": "   "}).status_code == 400
    assert client.post("/chat", json={"message": ""}).status_code == 422


def test_tools_and_status(client: TestClient) -> None:
    tools = client.get("/tools").json()
    assert [t["name"] for t in tools] == [
        "tool_creation_tool",
        "create_object",
        "change_ground_color",
        "list_objects",
    ]
    assert all(not t["synthesized"] for t in tools)

    status = client.get("/status").json()
    assert status["status"] == "idle"
    assert status["engine"] == "scripted"
    assert status["model"] == "scripted-model"
    assert status["history_length"] == 0


def test_set_temperature(client: TestClient, controller: TurnController) -> None:
    assert client.put("/temperature", json={"temperature": 1.2}).json() == {"temperature": 1.2}
    assert controller.temperature == 1.2
    assert client.put("/temperature", json={"temperature": 9}).status_code == 422


def test_reload_unknown_engine(client: TestClient) -> None:
    resp = client.post("/reload", json={"engine": "nope"})
    assert resp.status_code == 400


def test_reload_resets_history(client: TestClient, controller: TurnController) -> None:
    client.post("/chat", json={"message": "make the ground blue"})
    resp = client.post("/reload", json={"engine": "local", "model": "fresh-model"})
    assert resp.status_code == 200
    assert "fresh-model" in resp.json()["notice"]["text"]
    assert len(controller.session) == 0
    assert controller.engine.model == "fresh-model"
