"""BoardState / BoardEventHub / SSE 事件流测试"""

import asyncio
import json

import pytest
from nexusboard.gateway.routes.stream import stream_board
from nexusboard.gateway.services.board_events import BoardEvent, BoardEventHub
from nexusboard.gateway.services.board_state import BoardState


class TestBoardState:
    def test_insertion_order_and_replace(self, make_task):
        board = BoardState()
        board.add(make_task("t1"))
        board.add(make_task("t2"))

        assert board.replace(make_task("t1", title="Renamed")) is True
        assert [t.task_id for t in board.snapshot()] == ["t1", "t2"]
        assert board.get("t1").title == "Renamed"
        assert len(board) == 2

    def test_replace_missing_is_noop(self, make_task):
        board = BoardState()
        assert board.replace(make_task("ghost")) is False
        assert not board.contains("ghost")

    def test_remove_and_reset(self, make_task):
        board = BoardState()
        board.add(make_task("t1"))
        assert board.remove("t1").task_id == "t1"
        assert board.remove("t1") is None

        board.reset([make_task("t3")])
        assert [t.task_id for t in board.snapshot()] == ["t3"]

    def test_snapshot_is_copy(self, make_task):
        board = BoardState()
        board.add(make_task("t1"))
        snapshot = board.snapshot()
        snapshot.clear()
        assert len(board) == 1


class TestBoardEventHub:
    async def test_publish_to_all_subscribers(self):
        hub = BoardEventHub()
        q1, q2 = hub.subscribe(), hub.subscribe()

        hub.publish(BoardEvent(type="task_created", task_id="t1"))

        assert (await q1.get()).task_id == "t1"
        assert (await q2.get()).type == "task_created"

    async def test_full_queue_dropped(self):
        hub = BoardEventHub(queue_maxsize=1)
        queue = hub.subscribe()

        hub.publish(BoardEvent(type="a"))
        hub.publish(BoardEvent(type="b"))

        assert hub.subscriber_count == 0
        assert queue.get_nowait().type == "a"

    def test_unsubscribe(self):
        hub = BoardEventHub()
        queue = hub.subscribe()
        hub.unsubscribe(queue)
        hub.unsubscribe(queue)
        assert hub.subscriber_count == 0

    def test_event_defaults(self):
        event = BoardEvent(type="task_deleted")
        assert len(event.event_id) == 26
        assert event.ts.tzinfo is not None
        assert event.payload == {}


class _BoardStub:
    def __init__(self, tasks) -> None:
        self._tasks = tasks

    def list_tasks(self):
        return list(self._tasks)


class TestBoardStream:
    async def test_snapshot_then_events(self, make_task):
        hub = BoardEventHub()
        response = await stream_board(orchestrator=_BoardStub([make_task("t1")]), event_hub=hub)
        events = response.body_iterator

        snapshot = await events.__anext__()
        assert snapshot["event"] == "board_snapshot"
        assert [t["task_id"] for t in json.loads(snapshot["data"])["tasks"]] == ["t1"]
        assert hub.subscriber_count == 1

        hub.publish(BoardEvent(type="task_deleted", task_id="t1"))
        message = await asyncio.wait_for(events.__anext__(), timeout=1)
        assert message["event"] == "task_deleted"
        assert json.loads(message["data"])["task_id"] == "t1"

        await events.aclose()
        assert hub.subscriber_count == 0

    async def test_heartbeat_when_idle(self, make_task, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("nexusboard.gateway.routes.stream.SSE_HEARTBEAT_INTERVAL", 0.01)
        hub = BoardEventHub()
        response = await stream_board(orchestrator=_BoardStub([]), event_hub=hub)
        events = response.body_iterator

        await events.__anext__()
        assert await events.__anext__() == {"comment": "heartbeat"}
        await events.aclose()
