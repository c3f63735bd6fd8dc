"""tasktrack 异常体系

请求路径上的异常由路由映射为 HTTP 状态码与错误体；
通知相关异常定义在 tasktrack.notifier.exceptions。
"""

from pydantic import ValidationError


class TaskTrackError(Exception):
    """tasktrack 基础异常"""


class TaskValidationError(TaskTrackError):
    """必填字段缺失或格式非法（映射为 400）"""

    @classmethod
    def from_pydantic(cls, error: ValidationError) -> "TaskValidationError":
        """将 pydantic 校验错误压缩为一行可读消息

        字段名使用别名（dueDate 等），与表单字段保持一致。
        """
        parts = []
        for item in error.errors():
            loc = ".".join(str(p) for p in item.get("loc", ()) if p != "__root__")
            parts.append(f"{loc}: {item.get('msg', 'invalid value')}" if loc else item["msg"])
        return cls("; ".join(parts) or "invalid task payload")


class TaskNotFoundError(TaskTrackError):
    """目标任务不存在（更新时映射为 404）"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class StoreError(TaskTrackError):
    """持久化失败（写路径 400，读路径 500）"""

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 失败的存储操作名
            original_error: 原始异常
        """
        super().__init__(f"{operation} failed: {original_error}")
        self.operation = operation
        self.original_error = original_error
