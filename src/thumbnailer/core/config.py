"""缩略图任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from thumbnailer.core.exceptions import InvalidConfigurationError

SUPPORTED_OUTPUT_FORMATS = {"JPEG"}


@dataclass(slots=True)
class ThumbnailConfig:
    """单个控制器下所有任务共享的配置。"""

    extension: str = "jpg"
    output_dir_name: str = "thumbnails"
    size: Tuple[int, int] = (100, 100)
    output_format: str = "JPEG"
    quality: int = 90
    log_queue_size: int = 256
    sort_files: bool = True

    def validate(self) -> None:
        """检查配置取值，不合法时抛出 InvalidConfigurationError。"""

        if not self.extension or "." in self.extension:
            raise InvalidConfigurationError(f"扩展名不合法: {self.extension!r}")
        if not self.output_dir_name or "/" in self.output_dir_name or "\\" in self.output_dir_name:
            raise InvalidConfigurationError(f"输出目录名不合法: {self.output_dir_name!r}")

        width, height = self.size
        if width <= 0 or height <= 0:
            raise InvalidConfigurationError(f"缩略图尺寸必须大于 0: {self.size}")

        if self.output_format not in SUPPORTED_OUTPUT_FORMATS:
            raise InvalidConfigurationError(f"不支持的输出格式: {self.output_format}")
        if not 1 <= self.quality <= 95:
            raise InvalidConfigurationError(f"JPEG 质量必须在 1~95 之间: {self.quality}")
        if self.log_queue_size < 1:
            raise InvalidConfigurationError(f"日志队列容量必须至少为 1: {self.log_queue_size}")
