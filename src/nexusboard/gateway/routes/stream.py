"""看板 SSE 事件流

GET /api/stream/board: 先推送当前看板快照（board_snapshot），
随后实时推送 BoardEventHub 中的变更事件，空闲时发送心跳注释。
"""

import asyncio
import json

from fastapi import APIRouter, Depends
from nexusboard.core.config import SSE_HEARTBEAT_INTERVAL
from sse_starlette.sse import EventSourceResponse

from ..deps import get_event_hub, get_orchestrator
from ..services.board_events import BoardEvent

router = APIRouter()


def _event_to_sse(event: BoardEvent) -> dict:
    return {
        "id": event.event_id,
        "event": event.type,
        "data": event.model_dump_json(),
    }


@router.get("/api/stream/board")
async def stream_board(
    orchestrator=Depends(get_orchestrator),
    event_hub=Depends(get_event_hub),
):
    # 先订阅再取快照，快照之后的变更不会丢失
    queue = event_hub.subscribe()
    snapshot = [t.model_dump(mode="json") for t in orchestrator.list_tasks()]

    async def event_generator():
        try:
            yield {
                "event": "board_snapshot",
                "data": json.dumps({"tasks": snapshot}, ensure_ascii=False),
            }
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=SSE_HEARTBEAT_INTERVAL)
                    yield _event_to_sse(event)
                except TimeoutError:
                    yield {"comment": "heartbeat"}
        finally:
            event_hub.unsubscribe(queue)

    return EventSourceResponse(event_generator())
