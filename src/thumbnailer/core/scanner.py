"""输入目录扫描与扩展名筛选逻辑。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

from thumbnailer.core.exceptions import DirectoryUnreadable

LOGGER = logging.getLogger(__name__)


def file_extension(name: str) -> Optional[str]:
    """返回文件名中最后一个 '.' 之后的部分，没有 '.' 时返回 None。"""

    if "." not in name:
        return None
    return name.rsplit(".", 1)[1]


def _iter_files(directory: Path) -> Iterator[Path]:
    for candidate in directory.iterdir():
        # is_file 会跟随符号链接，指向目录的链接因此被排除。
        if candidate.is_file():
            yield candidate


def scan_directory(directory: Path, extension: str = "jpg", *, sort: bool = True) -> list[Path]:
    """列出目录下扩展名（区分大小写）等于 ``extension`` 的文件，不递归。

    ``sort`` 为 True 时按文件名排序，否则保持文件系统返回的顺序。
    """

    if not directory.is_dir():
        reason = "路径不存在" if not directory.exists() else "不是目录"
        raise DirectoryUnreadable(directory, reason)

    try:
        candidates = list(_iter_files(directory))
    except OSError as exc:
        raise DirectoryUnreadable(directory, exc.strerror or str(exc)) from exc

    matched = [path for path in candidates if file_extension(path.name) == extension]
    if sort:
        matched.sort(key=lambda path: path.name)

    LOGGER.debug("扫描 %s: %d 个文件，匹配 %d 个", directory, len(candidates), len(matched))
    return matched
