"""BoardEventHub -- 内存中看板事件广播器

每个订阅者持有一个 asyncio.Queue。队列已满的订阅者视为失活并被移除。
"""

import asyncio
from datetime import UTC, datetime

from pydantic import BaseModel, Field
from ulid import ULID


class BoardEvent(BaseModel):
    """看板变更通知"""

    event_id: str = Field(default_factory=lambda: str(ULID()))
    type: str = Field(description="task_created / task_updated / task_deleted / ...")
    task_id: str | None = None
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))
    payload: dict = Field(default_factory=dict)


class BoardEventHub:
    """看板事件广播器 -- 基于 asyncio.Queue 的发布/订阅"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        self._subscribers: set[asyncio.Queue] = set()
        self._queue_maxsize = queue_maxsize

    def subscribe(self) -> asyncio.Queue:
        """订阅看板事件流，返回接收事件的队列"""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def publish(self, event: BoardEvent) -> None:
        """向所有订阅者广播事件（非阻塞）"""
        dead_queues = []
        for queue in self._subscribers:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                dead_queues.append(queue)

        for q in dead_queues:
            self._subscribers.discard(q)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
