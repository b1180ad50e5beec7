"""图片产物存储。

每张图以随机 UUID 命名写入图片目录：``<image_directory>/<uuid>.png``。
文件名由随机 UUID 保证互不冲突，写入前不做存在性检查或加锁；
写入先落到临时文件再原子重命名，读取方不会看到写了一半的文件。
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, Optional

from linechart.errors import ArtifactIOError, ArtifactNotFoundError, InvalidIdentifierError

logger = logging.getLogger(__name__)

# 打开文件失败 / 文件内容为空
IO_ERROR_OPEN = 100
IO_ERROR_EMPTY = 101


def calculate_expiry(created_at: datetime, ttl: timedelta) -> datetime:
    """计算保留截止时间。"""
    return created_at + ttl


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """判断是否已过期。"""
    if not expires_at:
        return False
    base_time = now or datetime.now(timezone.utc)
    return expires_at <= base_time


def parse_identifier(argument: str) -> uuid.UUID:
    """解析图片标识，非法或为空 UUID 时抛出 InvalidIdentifierError。"""
    try:
        identifier = uuid.UUID(argument.strip())
    except (ValueError, AttributeError, TypeError) as exc:
        raise InvalidIdentifierError() from exc
    if identifier.int == 0:
        raise InvalidIdentifierError()
    return identifier


@dataclass(frozen=True)
class Artifact:
    """已发布的图片。"""

    id: uuid.UUID
    path: Path
    created_at: datetime


class ArtifactStore:
    """基于本地目录的图片存储。"""

    def __init__(
        self,
        image_dir: Path,
        *,
        extension: str = "png",
        ttl: Optional[timedelta] = None,
    ):
        self.image_dir = Path(image_dir)
        self.extension = extension
        # None 表示不过期
        self.ttl = ttl

    def path_for(self, identifier: uuid.UUID) -> Path:
        return self.image_dir / f"{identifier}.{self.extension}"

    def publish(self, image: bytes) -> uuid.UUID:
        """写入图片并返回新生成的标识。"""
        identifier = uuid.uuid4()
        target = self.path_for(identifier)

        fd, tmp_name = tempfile.mkstemp(
            dir=self.image_dir, prefix=f".{identifier}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(image)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("已发布图表: %s (%d 字节)", identifier, len(image))
        return identifier

    def _artifact(self, identifier: uuid.UUID, path: Path) -> Artifact:
        created_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        return Artifact(id=identifier, path=path, created_at=created_at)

    def is_artifact_expired(self, artifact: Artifact, now: Optional[datetime] = None) -> bool:
        if self.ttl is None:
            return False
        return is_expired(calculate_expiry(artifact.created_at, self.ttl), now)

    def fetch(self, argument: str, now: Optional[datetime] = None) -> bytes:
        """按标识读取图片字节。

        先校验标识格式（不访问文件系统），再检查文件是否存在且未过期，最后读取全部内容。
        """
        identifier = parse_identifier(argument)
        path = self.path_for(identifier)

        try:
            artifact = self._artifact(identifier, path)
        except FileNotFoundError as exc:
            raise ArtifactNotFoundError() from exc
        except OSError as exc:
            logger.error("读取图表元信息失败: %s: %s", path, exc)
            raise ArtifactIOError(IO_ERROR_OPEN) from exc

        if self.is_artifact_expired(artifact, now):
            raise ArtifactNotFoundError()

        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise ArtifactNotFoundError() from exc
        except OSError as exc:
            logger.error("打开图表文件失败: %s: %s", path, exc)
            raise ArtifactIOError(IO_ERROR_OPEN) from exc

        if not data:
            logger.error("图表文件为空: %s", path)
            raise ArtifactIOError(IO_ERROR_EMPTY)

        return data

    def iter_artifacts(self) -> Iterator[Artifact]:
        """遍历目录中所有合法命名的图片。"""
        for path in self.image_dir.glob(f"*.{self.extension}"):
            try:
                identifier = uuid.UUID(path.stem)
            except ValueError:
                continue
            try:
                yield self._artifact(identifier, path)
            except FileNotFoundError:
                continue

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """删除已过期的图片，返回删除数量。"""
        if self.ttl is None:
            return 0

        removed = 0
        for artifact in self.iter_artifacts():
            if not self.is_artifact_expired(artifact, now):
                continue
            try:
                artifact.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("删除过期图表失败: %s: %s", artifact.path, exc)
                continue
            removed += 1

        if removed:
            logger.info("已清理 %d 个过期图表", removed)
        return removed
