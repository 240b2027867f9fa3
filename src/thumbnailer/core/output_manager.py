"""输出目录与缩略图写入模块。"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from PIL import Image

from thumbnailer.core.exceptions import ImageWriteError, OutputDirectoryCreationFailed

LOGGER = logging.getLogger(__name__)


def ensure_output_directory(output_dir: Path) -> Path:
    """创建输出目录；目录已存在时不报错。"""

    try:
        output_dir.mkdir(exist_ok=True)
    except FileExistsError as exc:
        # 同名文件占用了路径
        raise OutputDirectoryCreationFailed(output_dir, "路径已存在且不是目录") from exc
    except OSError as exc:
        raise OutputDirectoryCreationFailed(output_dir, exc.strerror or str(exc)) from exc

    LOGGER.debug("输出目录就绪: %s", output_dir)
    return output_dir


def save_thumbnail(image: Image.Image, destination: Path, *, image_format: str = "JPEG", quality: int = 90) -> None:
    """将图片原子地写入 ``destination``。

    先写入同目录下的临时文件再重命名，失败时删除临时文件，目标路径上不会留下半成品。
    """

    save_params = {"optimize": True}
    image_to_save = image
    if image_format == "JPEG":
        save_params.update(quality=quality)
        if image.mode != "RGB":
            image_to_save = image.convert("RGB")

    try:
        handle = tempfile.NamedTemporaryFile(
            dir=destination.parent,
            prefix=f".{destination.name}.",
            suffix=".part",
            delete=False,
        )
    except OSError as exc:
        raise ImageWriteError(f"无法在 {destination.parent} 创建临时文件") from exc

    temp_path = Path(handle.name)
    try:
        with handle:
            image_to_save.save(handle, format=image_format, **save_params)
        os.replace(temp_path, destination)
    except (OSError, ValueError) as exc:
        temp_path.unlink(missing_ok=True)
        raise ImageWriteError(f"写入文件失败: {destination}") from exc
