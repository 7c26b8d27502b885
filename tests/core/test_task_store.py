"""SqliteTaskStore 单元测试"""

import pytest
from nexusboard.core.exceptions import NotFoundError, NotPersistedError
from nexusboard.core.models import (
    AcceptanceCriterion,
    AIAnalysis,
    AIStatus,
    Subtask,
    TaskStatus,
)
from nexusboard.core.store import StoreGroup


class TestTaskStoreCrud:
    async def test_create_then_get(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        task = make_task(subtasks=[Subtask(id="s1", title="Outline")])
        await store.create_task(task)

        loaded = await store.get_task("t1")
        assert loaded == task

    async def test_get_missing_returns_none(self, store_group: StoreGroup):
        assert await store_group.task_store.get_task("missing") is None

    async def test_list_in_creation_order(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        await store.create_task(make_task("t2", "Second", offset_s=10))
        await store.create_task(make_task("t1", "First", offset_s=0))
        await store.create_task(make_task("t3", "Third", offset_s=20))

        tasks = await store.list_tasks()
        assert [t.task_id for t in tasks] == ["t1", "t2", "t3"]

    async def test_list_filtered_by_status(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        await store.create_task(make_task("t1"))
        await store.create_task(make_task("t2", status=TaskStatus.DONE, offset_s=1))

        done = await store.list_tasks(status="DONE")
        assert [t.task_id for t in done] == ["t2"]

    async def test_duplicate_id_not_persisted(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        await store.create_task(make_task("t1"))
        with pytest.raises(NotPersistedError):
            await store.create_task(make_task("t1", "Other"))
        # 失败写入已回滚，原记录不变
        assert (await store.get_task("t1")).title == "Draft spec"

    async def test_ai_analysis_round_trip(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        task = make_task()
        await store.create_task(task)
        analysis = AIAnalysis(
            execution_plan=[Subtask(id="p1", title="Step 1")],
            acceptance_criteria=[AcceptanceCriterion(id="c1", content="Works")],
            solution_draft="# Plan",
            last_updated=task.created_at,
        )
        await store.update_task(
            task.model_copy(update={"ai_analysis": analysis, "ai_status": AIStatus.COMPLETED})
        )

        loaded = await store.get_task("t1")
        assert loaded.ai_analysis == analysis
        assert loaded.ai_status == AIStatus.COMPLETED


class TestTaskStoreUpdate:
    async def test_update_refreshes_updated_at(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        task = make_task()
        await store.create_task(task)

        updated = await store.update_task(task.model_copy(update={"title": "Renamed"}))
        assert updated.updated_at > task.updated_at
        assert (await store.get_task("t1")).title == "Renamed"

    async def test_update_missing_raises_without_insert(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        with pytest.raises(NotFoundError):
            await store.update_task(make_task("ghost"))
        assert await store.list_tasks() == []

    async def test_delete_is_idempotent(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        await store.create_task(make_task())
        await store.delete_task("t1")
        await store.delete_task("t1")
        assert await store.get_task("t1") is None


class TestTaskStoreStatus:
    async def test_update_status_only_touches_status(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        task = make_task(description="keep me")
        await store.create_task(task)

        result = await store.update_status("t1", TaskStatus.WIP)
        assert result.status == TaskStatus.WIP
        loaded = await store.get_task("t1")
        assert loaded.status == TaskStatus.WIP
        assert loaded.description == "keep me"
        assert loaded.ai_status == AIStatus.PROCESSING

    async def test_update_status_same_value_is_noop(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        task = make_task()
        await store.create_task(task)

        result = await store.update_status("t1", TaskStatus.REQUESTED)
        assert result == task

    async def test_update_status_keeps_concurrent_analysis(self, store_group: StoreGroup, make_task):
        """状态写入不回滚并发写入的 AI 分析"""
        store = store_group.task_store
        task = make_task()
        await store.create_task(task)
        analysis = AIAnalysis(solution_draft="done", last_updated=task.created_at)
        await store.update_task(
            task.model_copy(update={"ai_analysis": analysis, "ai_status": AIStatus.COMPLETED})
        )

        await store.update_status("t1", TaskStatus.DONE)
        loaded = await store.get_task("t1")
        assert loaded.ai_analysis == analysis
        assert loaded.ai_status == AIStatus.COMPLETED

    async def test_update_status_missing(self, store_group: StoreGroup):
        with pytest.raises(NotFoundError):
            await store_group.task_store.update_status("ghost", TaskStatus.DONE)

    async def test_update_ai_status(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        await store.create_task(make_task(title="Keep"))

        result = await store.update_ai_status("t1", AIStatus.FAILED)
        assert result.ai_status == AIStatus.FAILED
        assert result.title == "Keep"

    async def test_update_ai_status_missing(self, store_group: StoreGroup):
        with pytest.raises(NotFoundError):
            await store_group.task_store.update_ai_status("ghost", AIStatus.FAILED)



class TestTaskStoreAnalysis:
    async def test_update_analysis_only_touches_ai_columns(
        self, store_group: StoreGroup, make_task
    ):
        """分析写入不覆盖并发写入的状态与用户字段"""
        store = store_group.task_store
        task = make_task(subtasks=[Subtask(id="s1", title="Outline")])
        await store.create_task(task)
        await store.update_status("t1", TaskStatus.WIP)
        analysis = AIAnalysis(solution_draft="done", last_updated=task.created_at)

        result = await store.update_analysis("t1", AIStatus.COMPLETED, analysis)

        assert result.ai_status == AIStatus.COMPLETED
        assert result.ai_analysis == analysis
        assert result.status == TaskStatus.WIP
        assert [s.id for s in result.subtasks] == ["s1"]
        assert result.updated_at > task.updated_at
        assert await store.get_task("t1") == result

    async def test_update_analysis_replaces_subtasks(self, store_group: StoreGroup, make_task):
        store = store_group.task_store
        task = make_task(subtasks=[Subtask(id="s1", title="Outline")])
        await store.create_task(task)
        plan = [Subtask(id="p1", title="Plan step"), Subtask(id="p2", title="Ship")]
        analysis = AIAnalysis(execution_plan=plan, last_updated=task.created_at)

        result = await store.update_analysis("t1", AIStatus.COMPLETED, analysis, subtasks=plan)

        assert result.subtasks == plan

    async def test_update_analysis_missing(self, store_group: StoreGroup):
        with pytest.raises(NotFoundError):
            await store_group.task_store.update_analysis("ghost", AIStatus.COMPLETED, None)
