"""UploadStorage -- 任务附件落盘

文件名由上传时刻（毫秒）+ 原始扩展名组成；同名冲突时追加序号。
落盘目录通过 StaticFiles 以 UPLOADS_URL_PREFIX 对外提供访问。
"""

import asyncio
import time
from pathlib import Path, PurePath

import structlog
from fastapi import UploadFile
from tasktrack.core.config import UPLOADS_URL_PREFIX

log = structlog.get_logger()

# 单次读取块大小
_CHUNK_SIZE = 1024 * 1024


class UploadStorage:
    """上传附件存储"""

    def __init__(self, uploads_dir: Path, url_prefix: str = UPLOADS_URL_PREFIX) -> None:
        self._uploads_dir = Path(uploads_dir)
        self._url_prefix = url_prefix.rstrip("/")
        self._uploads_dir.mkdir(parents=True, exist_ok=True)

    @property
    def uploads_dir(self) -> Path:
        return self._uploads_dir

    async def save(self, upload: UploadFile | None) -> str | None:
        """保存上传文件

        Args:
            upload: 表单中的文件字段，可为空

        Returns:
            公开访问路径（如 "/uploads/1760882700123.pdf"）；未上传文件返回 None
        """
        if upload is None or not upload.filename:
            return None

        content = bytearray()
        while chunk := await upload.read(_CHUNK_SIZE):
            content.extend(chunk)

        path = self._reserve_path(PurePath(upload.filename).suffix)
        await asyncio.to_thread(path.write_bytes, bytes(content))

        log.info(
            "upload_stored",
            original_name=upload.filename,
            stored_name=path.name,
            size=len(content),
        )
        return f"{self._url_prefix}/{path.name}"

    def _reserve_path(self, suffix: str) -> Path:
        """生成不冲突的目标路径（独占创建占位文件）"""
        stem = str(int(time.time() * 1000))
        counter = 0
        while True:
            name = f"{stem}{suffix}" if counter == 0 else f"{stem}-{counter}{suffix}"
            path = self._uploads_dir / name
            try:
                path.touch(exist_ok=False)
                return path
            except FileExistsError:
                counter += 1
