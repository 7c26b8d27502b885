"""看板洞察路由

GET /api/insights/weekly: 基于当前看板统计的周报洞察。
"""

from fastapi import APIRouter, Depends

from ..deps import get_content_provider, get_orchestrator
from ..services.content_provider import board_stats

router = APIRouter()


@router.get("/api/insights/weekly")
async def weekly_insight(
    orchestrator=Depends(get_orchestrator),
    content_provider=Depends(get_content_provider),
):
    tasks = orchestrator.list_tasks()
    insight = await content_provider.weekly_insight(tasks)
    return {"insight": insight, "stats": board_stats(tasks)}
