"""TaskStore + 事务封装测试

测试内容：
1. 创建 / 查询 / 全量列表（插入顺序）
2. 按截止时间精确匹配（不同时区写法视为同一时刻）
3. 部分更新合并语义
4. 删除返回快照，重复删除返回 None
"""

from datetime import UTC, datetime, timedelta, timezone

from tasktrack.core.store.sqlite_init import verify_wal_mode
from tasktrack.core.store.transaction import (
    commit_new_task,
    commit_task_delete,
    commit_task_patch,
)


async def _seed(store_group, task):
    await commit_new_task(store_group.conn, store_group.task_store, task)
    return task


class TestTaskStore:
    async def test_wal_mode_enabled(self, store_group):
        assert await verify_wal_mode(store_group.conn) is True

    async def test_create_and_get(self, store_group, make_task):
        task = await _seed(store_group, make_task(notes="landlord", file="/uploads/1.pdf"))
        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded == task

    async def test_get_unknown_returns_none(self, store_group):
        assert await store_group.task_store.get_task("missing") is None

    async def test_list_in_insertion_order(self, store_group, make_task):
        first = await _seed(store_group, make_task(task="first"))
        second = await _seed(store_group, make_task(task="second"))
        third = await _seed(store_group, make_task(task="third"))

        tasks = await store_group.task_store.list_tasks()
        assert [t.task_id for t in tasks] == [first.task_id, second.task_id, third.task_id]

    async def test_list_twice_returns_same_set(self, store_group, make_task):
        for i in range(3):
            await _seed(store_group, make_task(task=f"t{i}"))
        first = await store_group.task_store.list_tasks()
        second = await store_group.task_store.list_tasks()
        assert first == second

    async def test_list_by_due_date_exact_match(self, store_group, make_task, fixed_now):
        due = fixed_now + timedelta(days=3)
        match = await _seed(store_group, make_task(due_date=due))
        await _seed(store_group, make_task(due_date=due + timedelta(seconds=1)))

        tasks = await store_group.task_store.list_tasks_by_due_date(due)
        assert [t.task_id for t in tasks] == [match.task_id]

    async def test_list_by_due_date_ignores_offset_notation(self, store_group, make_task):
        due = datetime(2026, 10, 22, 10, 0, tzinfo=UTC)
        match = await _seed(store_group, make_task(due_date=due))

        same_instant = datetime(2026, 10, 22, 18, 0, tzinfo=timezone(timedelta(hours=8)))
        tasks = await store_group.task_store.list_tasks_by_due_date(same_instant)
        assert [t.task_id for t in tasks] == [match.task_id]

    async def test_list_by_due_date_no_match(self, store_group, make_task, fixed_now):
        await _seed(store_group, make_task())
        assert await store_group.task_store.list_tasks_by_due_date(fixed_now) == []


class TestTaskPatchCommit:
    async def test_notes_only_keeps_other_fields(self, store_group, make_task, fixed_now):
        task = await _seed(store_group, make_task(file="/uploads/1.pdf"))
        later = fixed_now + timedelta(minutes=5)

        updated = await commit_task_patch(
            store_group.conn, store_group.task_store, task.task_id, {"notes": "new"}, later
        )
        assert updated is not None
        assert updated.notes == "new"
        assert updated.task == task.task
        assert updated.priority == task.priority
        assert updated.due_date == task.due_date
        assert updated.file == task.file
        assert updated.created_at == task.created_at
        assert updated.updated_at == later

    async def test_none_values_are_not_written(self, store_group, make_task, fixed_now):
        task = await _seed(store_group, make_task(notes="keep"))
        updated = await commit_task_patch(
            store_group.conn,
            store_group.task_store,
            task.task_id,
            {"notes": None, "priority": "low"},
            fixed_now,
        )
        assert updated.notes == "keep"
        assert updated.priority == "low"

    async def test_due_date_update_persisted(self, store_group, make_task, fixed_now):
        task = await _seed(store_group, make_task())
        new_due = fixed_now + timedelta(hours=5)
        await commit_task_patch(
            store_group.conn,
            store_group.task_store,
            task.task_id,
            {"due_date": new_due},
            fixed_now,
        )
        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded.due_date == new_due
        assert await store_group.task_store.list_tasks_by_due_date(new_due) == [loaded]

    async def test_unknown_task_returns_none(self, store_group, fixed_now):
        updated = await commit_task_patch(
            store_group.conn, store_group.task_store, "missing", {"notes": "x"}, fixed_now
        )
        assert updated is None


class TestTaskDeleteCommit:
    async def test_delete_returns_snapshot(self, store_group, make_task):
        task = await _seed(store_group, make_task())
        deleted = await commit_task_delete(store_group.conn, store_group.task_store, task.task_id)
        assert deleted == task
        assert await store_group.task_store.get_task(task.task_id) is None

    async def test_delete_twice_returns_none(self, store_group, make_task):
        task = await _seed(store_group, make_task())
        await commit_task_delete(store_group.conn, store_group.task_store, task.task_id)
        again = await commit_task_delete(store_group.conn, store_group.task_store, task.task_id)
        assert again is None
