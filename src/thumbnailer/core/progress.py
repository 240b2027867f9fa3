"""任务向消费者发布的事件模型。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from thumbnailer.core.models import JobState, JobSummary


def compute_percent(processed: int, total: int) -> int:
    """整数百分比，向下取整；total 为 0 时返回 0。"""

    if total <= 0:
        return 0
    return (100 * processed) // total


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """进度更新，可被合并，只保留最新值。"""

    processed: int
    total: int

    @property
    def percent(self) -> int:
        return compute_percent(self.processed, self.total)


@dataclass(frozen=True, slots=True)
class LogEvent:
    """面向用户的一行日志，顺序敏感，不可丢弃。"""

    message: str


@dataclass(frozen=True, slots=True)
class JobFinished:
    """任务终止事件，每个任务恰好发布一次。"""

    summary: JobSummary

    @property
    def state(self) -> JobState:
        return self.summary.state


JobEvent = Union[ProgressEvent, LogEvent, JobFinished]
