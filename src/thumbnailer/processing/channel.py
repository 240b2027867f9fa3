"""任务线程与消费者之间的有序事件通道。"""

from __future__ import annotations

import queue
import threading
from collections import deque
from typing import Iterator, Optional

from thumbnailer.core.progress import JobEvent, JobFinished, LogEvent, ProgressEvent


class EventChannel:
    """单生产者 / 单消费者的事件通道。

    日志事件进入有界队列，按发布顺序送达且不丢弃，队列满时生产者阻塞等待。
    进度事件只保留最新一条。终止事件在此前发布的所有日志送达之后才交付，且只交付一次。
    """

    def __init__(self, log_capacity: int = 256) -> None:
        self._logs: queue.Queue[LogEvent] = queue.Queue(maxsize=log_capacity)
        self._lock = threading.Lock()
        self._progress: Optional[ProgressEvent] = None
        self._terminal: Optional[JobFinished] = None
        self._terminal_delivered = False
        self._closed = threading.Event()
        # 已从队列取出、尚未交给消费者的事件
        self._pending: deque[JobEvent] = deque()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def publish_log(self, event: LogEvent) -> None:
        self._logs.put(event)

    def publish_progress(self, event: ProgressEvent) -> None:
        with self._lock:
            self._progress = event

    def close(self, terminal: JobFinished) -> None:
        """发布终止事件，之后不再接受任何事件。"""

        with self._lock:
            if self._terminal is not None:
                raise RuntimeError("事件通道已关闭")
            self._terminal = terminal
        self._closed.set()

    def drain(self) -> list[JobEvent]:
        """取出当前可交付的全部事件，不阻塞。

        顺序为：待处理日志、最新进度、终止事件（若已可交付）。
        """

        self._collect()
        events = list(self._pending)
        self._pending.clear()
        return events

    def iter_events(self, poll_interval: float = 0.05) -> Iterator[JobEvent]:
        """阻塞式迭代所有事件，交付终止事件后结束。

        中途放弃的迭代器不会丢失事件，新的迭代器从下一个未交付的事件继续。
        """

        while True:
            if not self._pending:
                self._collect()
            if self._pending:
                event = self._pending.popleft()
                yield event
                if isinstance(event, JobFinished):
                    return
            elif self._terminal_delivered:
                return
            else:
                self._closed.wait(poll_interval)

    def _collect(self) -> None:
        """把通道中可交付的事件移入待交付缓冲区。"""

        # 先读取关闭标志：若已关闭，则此前的日志都已在队列中。
        closed = self._closed.is_set()

        while True:
            try:
                self._pending.append(self._logs.get_nowait())
            except queue.Empty:
                break

        with self._lock:
            if self._progress is not None:
                self._pending.append(self._progress)
                self._progress = None
            if closed and self._terminal is not None and not self._terminal_delivered and self._logs.empty():
                self._pending.append(self._terminal)
                self._terminal_delivered = True
