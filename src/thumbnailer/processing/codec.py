"""缩略图编解码：解码源图、缩放到固定尺寸并编码输出。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image

from thumbnailer.core.config import ThumbnailConfig
from thumbnailer.core.exceptions import PerFileProcessingError
from thumbnailer.core.output_manager import save_thumbnail
from thumbnailer.processing.image_loader import load_image

LOGGER = logging.getLogger(__name__)

_RESAMPLING = getattr(Image, "Resampling", Image)


class ThumbnailCodec(Protocol):
    """任务调用的编解码能力。

    失败时必须抛出 PerFileProcessingError，且不得在输出目录留下可见的残缺文件。
    """

    def create_thumbnail(self, source: Path, output_dir: Path) -> Path:
        ...


class PillowThumbnailCodec:
    """基于 Pillow 的实现，直接拉伸到目标尺寸，不保持宽高比。"""

    def __init__(self, config: Optional[ThumbnailConfig] = None) -> None:
        self.config = config or ThumbnailConfig()

    def create_thumbnail(self, source: Path, output_dir: Path) -> Path:
        destination = output_dir / source.name
        image = load_image(source)
        thumbnail: Optional[Image.Image] = None
        try:
            try:
                thumbnail = image.resize(self.config.size, _RESAMPLING.LANCZOS)
            except (OSError, ValueError) as exc:
                raise PerFileProcessingError(f"缩放失败: {source.name}") from exc

            save_thumbnail(
                thumbnail,
                destination,
                image_format=self.config.output_format,
                quality=self.config.quality,
            )
        finally:
            _close_if_needed(image, thumbnail)

        LOGGER.debug("已生成缩略图 %s -> %s", source, destination)
        return destination


def _close_if_needed(*images: Optional[Image.Image]) -> None:
    for img in images:
        if img is not None:
            img.close()
