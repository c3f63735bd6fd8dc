"""CLI 入口模块 -- python -m tasktrack.core <command>

支持的命令：
  list-reminders  列出数据库中全部 pending 提醒
"""

import asyncio
import sys

from .config import get_db_path
from .models.enums import ReminderStatus


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m tasktrack.core <command>")
        print("命令:")
        print("  list-reminders  列出全部 pending 提醒")
        sys.exit(1)

    command = sys.argv[1]

    if command == "list-reminders":
        asyncio.run(list_reminders())
    else:
        print(f"未知命令: {command}")
        print("可用命令: list-reminders")
        sys.exit(1)


async def list_reminders() -> None:
    """打印 pending 提醒（按触发时间升序）"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)

    try:
        reminders = await store_group.reminder_store.list_reminders(
            status=ReminderStatus.PENDING.value
        )
        for r in reminders:
            print(
                f"{r.fire_at.isoformat()}  {r.offset.value:>3}  "
                f"{r.task_id}  {r.task_snapshot.task}"
            )
        print(f"共 {len(reminders)} 条 pending 提醒")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
