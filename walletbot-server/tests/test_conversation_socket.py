"""Tests for the websocket connection manager and inbound frame routing"""
import asyncio
import json
from decimal import Decimal

import pytest
import pytest_asyncio

from walletbot.core.container import ApplicationContainer
from walletbot.interfaces.http.routers.conversations import _command, _handle_message
from walletbot.modules.conversation import Option
from walletbot.websocket.manager import ConnectionManager


class FakeSocket:
    def __init__(self) -> None:
        self.frames: list[dict] = []
        self.accepted = False
        self.closed = False

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        self.frames.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed = True

    def of_type(self, frame_type: str) -> list[dict]:
        return [frame for frame in self.frames if frame["type"] == frame_type]


@pytest_asyncio.fixture
async def manager():
    manager = ConnectionManager(check_interval=60)
    yield manager
    await manager.close_all()


@pytest_asyncio.fixture
async def container(settings, engine, manager, gateway):
    container = ApplicationContainer.build(settings, engine=engine, transport=manager, gateway=gateway)
    yield container
    await container.aclose()


def test_command_parsing():
    assert _command("/withdraw") == "withdraw"
    assert _command("/Deposit@walletbot now") == "deposit"
    assert _command("/") is None
    assert _command("50") is None


@pytest.mark.asyncio
async def test_manager_serialises_messages_and_options(manager):
    socket = FakeSocket()
    await manager.connect("c1", socket)

    message_id = await manager.send_text("c1", "Pay", options=[Option("pay", "Pay Now", url="https://pay.test")])
    await manager.clear_affordances("c1", message_id)

    assert socket.accepted
    assert socket.frames[0] == {
        "type": "message",
        "id": message_id,
        "text": "Pay",
        "options": [{"id": "pay", "label": "Pay Now", "url": "https://pay.test"}],
    }
    assert socket.frames[1] == {"type": "clear_options", "message_id": message_id}


@pytest.mark.asyncio
async def test_manager_drops_messages_for_offline_conversation(manager):
    message_id = await manager.send_text("nobody", "hello")

    assert message_id
    assert manager.get_online_count() == 0


@pytest.mark.asyncio
async def test_text_command_starts_flow_and_answers_prompts(container, manager):
    socket = FakeSocket()
    await manager.connect("c1", socket)
    await container.ledger.register_party("c1", "abebe", "0911111111")
    await container.ledger.adjust_balance("c1", Decimal("100"))

    await _handle_message(container, manager, "c1", "abebe", json.dumps({"type": "text", "text": "/balance"}))
    await asyncio.sleep(0.05)

    assert socket.of_type("message")[-1]["text"] == "Your current balance is: 💰 100 ETB"


@pytest.mark.asyncio
async def test_selection_frames_reach_the_waiting_collector(container, manager):
    socket = FakeSocket()
    await manager.connect("c1", socket)

    task = asyncio.create_task(
        container.runner.context.choices.select_one("c1", "Pick:", [Option("a", "A"), Option("b", "B")])
    )
    await asyncio.sleep(0.01)
    prompt = socket.of_type("message")[-1]
    frame = {"type": "selection", "id": "sel-1", "option_id": "b", "message_id": prompt["id"]}
    await _handle_message(container, manager, "c1", None, json.dumps(frame))

    assert await task == "b"
    assert socket.of_type("selection_ack") == [{"type": "selection_ack", "id": "sel-1"}]
    assert socket.of_type("clear_options") == [{"type": "clear_options", "message_id": prompt["id"]}]


@pytest.mark.asyncio
async def test_unclaimed_text_lists_commands(container, manager):
    socket = FakeSocket()
    await manager.connect("c1", socket)

    await _handle_message(container, manager, "c1", None, json.dumps({"type": "text", "text": "hello"}))

    assert socket.of_type("message")[-1]["text"].startswith("Available commands: /balance")


@pytest.mark.asyncio
async def test_malformed_frames_get_an_error(container, manager):
    socket = FakeSocket()
    await manager.connect("c1", socket)

    await _handle_message(container, manager, "c1", None, "not json")
    await _handle_message(container, manager, "c1", None, json.dumps({"type": "selection", "id": ""}))

    assert [frame["detail"] for frame in socket.of_type("error")] == ["unsupported message", "malformed message"]
