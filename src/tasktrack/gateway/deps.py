"""依赖注入模块 -- 通过 FastAPI Depends 注入服务实例

实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from tasktrack.core.store import StoreGroup

from .services.task_service import TaskService
from .services.uploads import UploadStorage


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_upload_storage(request: Request) -> UploadStorage:
    """从 app.state 获取 UploadStorage 实例"""
    return request.app.state.upload_storage


def get_task_service(request: Request) -> TaskService:
    """基于 app.state 中的协作者构建 TaskService"""
    state = request.app.state
    return TaskService(
        state.store_group,
        notifier=getattr(state, "notifier", None),
        scheduler=getattr(state, "reminder_scheduler", None),
        dispatcher=getattr(state, "dispatcher", None),
    )
