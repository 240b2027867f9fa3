"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class JobState(str, Enum):
    """批处理任务的生命周期状态。"""

    PENDING = "pending"
    RUNNING = "running"
    CANCELLING = "cancelling"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({JobState.COMPLETED, JobState.CANCELLED, JobState.FAILED})


@dataclass(frozen=True, slots=True)
class ImageTask:
    """一次任务的输入：有序的源文件列表与输出目录，创建后不再修改。"""

    files: Tuple[Path, ...]
    output_dir: Path

    @property
    def total(self) -> int:
        return len(self.files)


@dataclass(slots=True)
class ThumbnailOutcome:
    """记录单个文件的处理结果（用于日志与统计）。"""

    source_path: Path
    succeeded: bool
    output_path: Optional[Path] = None
    error_detail: Optional[str] = None


@dataclass(slots=True)
class JobSummary:
    """任务结束时的汇总。"""

    state: JobState
    processed: int
    total: int
    succeeded: list[ThumbnailOutcome] = field(default_factory=list)
    failed: list[ThumbnailOutcome] = field(default_factory=list)
    message: str = ""
