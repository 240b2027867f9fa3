"""图片加载与基础预处理实现。"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from thumbnailer.core.exceptions import ImageLoadingError

LOGGER = logging.getLogger(__name__)


def load_image(path: Path) -> Image.Image:
    """加载单张图片并执行 EXIF 旋转与 RGB 转换。

    返回值为新的 Image 对象，调用者负责关闭。
    """

    try:
        with Image.open(path) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = _convert_to_rgb(img)
            return img.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        LOGGER.debug("无法识别图像文件 %s: %s", path, exc)
        raise ImageLoadingError(f"无法加载图像: {path.name}") from exc


def _convert_to_rgb(img: Image.Image) -> Image.Image:
    """将任意模式图像转换为 RGB。"""

    if img.mode in {"RGBA", "LA"}:
        # 透明区域以白色背景混合。
        rgba = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background

    return img.convert("RGB")
