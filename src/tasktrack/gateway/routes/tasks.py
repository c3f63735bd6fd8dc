"""任务路由

POST   /api/tasks: 创建任务（multipart 表单，可附带文件）
PUT    /api/tasks/{task_id}: 部分更新任务
GET    /api/tasks: 查询全部任务
GET    /api/tasks/{date}: 查询截止时间与给定时间戳精确相等的任务
DELETE /api/tasks/{task_id}: 删除任务（不存在也返回 204）
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.responses import JSONResponse, Response
from tasktrack.core.exceptions import StoreError, TaskNotFoundError, TaskValidationError

from ..deps import get_task_service, get_upload_storage
from ..services.task_service import TaskService
from ..services.uploads import UploadStorage

router = APIRouter()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def _form_payload(**fields: str | None) -> dict[str, str]:
    """收集表单字段（使用对外字段名），未提交的字段不出现在结果中"""
    return {name: value for name, value in fields.items() if value is not None}


@router.post("/api/tasks")
async def create_task(
    task: str | None = Form(default=None, description="任务标题"),
    priority: str | None = Form(default=None, description="优先级标签"),
    due_date: str | None = Form(default=None, alias="dueDate", description="截止时间"),
    notes: str | None = Form(default=None, description="备注"),
    reminder_email: str | None = Form(
        default=None, alias="reminderEmail", description="通知收件人覆盖"
    ),
    file: UploadFile | None = File(default=None, description="附件"),
    service: TaskService = Depends(get_task_service),
    uploads: UploadStorage = Depends(get_upload_storage),
):
    """创建任务

    - 成功返回 201 + Task JSON
    - 必填字段缺失或格式非法返回 400
    """
    payload = _form_payload(
        task=task,
        priority=priority,
        dueDate=due_date,
        notes=notes,
        reminderEmail=reminder_email,
    )

    try:
        file_ref = await uploads.save(file)
        created = await service.create_task(payload, file_ref)
    except TaskValidationError as e:
        return _error_response(400, "VALIDATION_ERROR", str(e))
    except StoreError as e:
        return _error_response(400, "STORE_ERROR", str(e))

    return JSONResponse(status_code=201, content=created.to_json())


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    task: str | None = Form(default=None, description="任务标题"),
    priority: str | None = Form(default=None, description="优先级标签"),
    due_date: str | None = Form(default=None, alias="dueDate", description="截止时间"),
    notes: str | None = Form(default=None, description="备注"),
    reminder_email: str | None = Form(
        default=None, alias="reminderEmail", description="通知收件人覆盖"
    ),
    file: UploadFile | None = File(default=None, description="附件"),
    service: TaskService = Depends(get_task_service),
    uploads: UploadStorage = Depends(get_upload_storage),
):
    """部分更新任务

    - 成功返回 200 + 更新后的 Task JSON
    - 字段格式非法或持久化失败返回 400
    - 任务不存在返回 404
    """
    payload = _form_payload(
        task=task,
        priority=priority,
        dueDate=due_date,
        notes=notes,
        reminderEmail=reminder_email,
    )

    try:
        file_ref = await uploads.save(file)
        updated = await service.update_task(task_id, payload, file_ref)
    except TaskValidationError as e:
        return _error_response(400, "VALIDATION_ERROR", str(e))
    except TaskNotFoundError as e:
        return _error_response(404, "TASK_NOT_FOUND", str(e))
    except StoreError as e:
        return _error_response(400, "STORE_ERROR", str(e))

    return updated.to_json()


@router.get("/api/tasks")
async def list_tasks(service: TaskService = Depends(get_task_service)):
    """查询全部任务（存储自然顺序）"""
    try:
        tasks = await service.list_tasks()
    except StoreError as e:
        return _error_response(500, "STORE_ERROR", str(e))

    return [t.to_json() for t in tasks]


@router.get("/api/tasks/{date}")
async def list_tasks_by_due_date(
    date: str,
    service: TaskService = Depends(get_task_service),
):
    """查询截止时间精确等于 date 的任务；date 无法解析返回 400"""
    try:
        tasks = await service.list_tasks_by_due_date(date)
    except TaskValidationError as e:
        return _error_response(400, "VALIDATION_ERROR", str(e))
    except StoreError as e:
        return _error_response(500, "STORE_ERROR", str(e))

    return [t.to_json() for t in tasks]


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """删除任务，任务不存在同样返回 204"""
    try:
        await service.delete_task(task_id)
    except StoreError as e:
        return _error_response(400, "STORE_ERROR", str(e))

    return Response(status_code=204)
