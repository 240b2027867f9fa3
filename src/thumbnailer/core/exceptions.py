"""项目内使用的自定义异常定义。"""

from __future__ import annotations

from pathlib import Path


class ThumbnailerError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ThumbnailerError):
    """配置不合法时抛出。"""


class DirectoryUnreadable(ThumbnailerError):
    """输入目录无法列出（不存在、不是目录或无权限）。"""

    def __init__(self, directory: Path, reason: str) -> None:
        super().__init__(f"无法读取目录 {directory}: {reason}")
        self.directory = directory
        self.reason = reason


class OutputDirectoryCreationFailed(ThumbnailerError):
    """输出目录创建失败。"""

    def __init__(self, directory: Path, reason: str) -> None:
        super().__init__(f"无法创建输出目录 {directory}: {reason}")
        self.directory = directory
        self.reason = reason


class PerFileProcessingError(ThumbnailerError):
    """单个文件解码、缩放或写入失败，不影响整个任务。"""


class ImageLoadingError(PerFileProcessingError):
    """图片加载失败。"""


class ImageWriteError(PerFileProcessingError):
    """缩略图写入失败。"""


class JobAlreadyRunning(ThumbnailerError):
    """已有任务在执行时再次启动任务。"""


class InvalidJobState(ThumbnailerError):
    """在不允许的状态下操作任务。"""
