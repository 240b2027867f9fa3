"""批处理任务：逐个文件生成缩略图，支持协作式取消。"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from thumbnailer.core.exceptions import (
    InvalidJobState,
    OutputDirectoryCreationFailed,
    PerFileProcessingError,
)
from thumbnailer.core.models import ImageTask, JobState, JobSummary, ThumbnailOutcome
from thumbnailer.core.output_manager import ensure_output_directory
from thumbnailer.core.progress import JobFinished, LogEvent, ProgressEvent
from thumbnailer.processing.channel import EventChannel
from thumbnailer.processing.codec import ThumbnailCodec

LOGGER = logging.getLogger(__name__)


class BatchJob:
    """一次缩略图生成任务。

    ``processed`` 与 ``state`` 只由执行 ``run`` 的工作线程修改；消费者通过事件通道观察进度，
    并且只能通过 ``request_cancel`` 与任务交互。取消只在两个文件之间生效。
    """

    def __init__(
        self,
        task: ImageTask,
        codec: ThumbnailCodec,
        channel: EventChannel,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.task = task
        self.codec = codec
        self.channel = channel
        self.logger = logger or LOGGER
        self._cancel_requested = threading.Event()
        self._state = JobState.PENDING
        self._processed = 0
        self._succeeded: list[ThumbnailOutcome] = []
        self._failed: list[ThumbnailOutcome] = []

    @property
    def total(self) -> int:
        return self.task.total

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    def request_cancel(self) -> None:
        """请求取消；重复调用或任务结束后调用均无副作用。"""

        if self._state.is_terminal or self._cancel_requested.is_set():
            return
        self.logger.info("收到取消请求")
        self._cancel_requested.set()

    def run(self) -> JobSummary:
        """在工作线程中执行整个任务，返回汇总并发布终止事件。"""

        if self._state is not JobState.PENDING:
            raise InvalidJobState(f"任务状态为 {self._state.value}，无法再次启动")

        try:
            ensure_output_directory(self.task.output_dir)
        except OutputDirectoryCreationFailed as exc:
            self.logger.error("%s", exc)
            return self._finish(
                JobState.FAILED,
                f"Could not create output directory {exc.directory}: {exc.reason}",
            )

        self._state = JobState.RUNNING
        self.logger.info("开始处理 %d 个文件 -> %s", self.total, self.task.output_dir)

        try:
            return self._run_loop()
        except Exception as exc:  # noqa: BLE001
            self.logger.exception("任务执行异常：%s", exc)
            return self._finish(JobState.FAILED, f"Thumbnail generation failed: {exc}")

    def _run_loop(self) -> JobSummary:
        total = self.total
        for source in self.task.files:
            if self._cancel_requested.is_set():
                self._state = JobState.CANCELLING
                self.channel.publish_log(
                    LogEvent(f"Thumbnail generation cancelled after {self._processed} of {total} images.")
                )
                return self._finish(JobState.CANCELLED, self._summary_line())

            self._process_file(source)
            self._processed += 1
            self.channel.publish_progress(ProgressEvent(self._processed, total))

        return self._finish(JobState.COMPLETED, self._summary_line())

    def _process_file(self, source: Path) -> None:
        try:
            destination = self.codec.create_thumbnail(source, self.task.output_dir)
        except PerFileProcessingError as exc:
            detail = _describe(exc)
            self.logger.warning("处理失败: %s -> %s", source, detail)
            self._record_failure(source, detail)
            return
        except Exception as exc:  # noqa: BLE001
            # 编解码器未包装的异常同样只影响当前文件
            detail = _describe(exc)
            self.logger.exception("处理异常: %s -> %s", source, detail)
            self._record_failure(source, detail)
            return

        self._succeeded.append(ThumbnailOutcome(source_path=source, succeeded=True, output_path=destination))
        self.channel.publish_log(LogEvent(f"Processed {source.name}"))

    def _record_failure(self, source: Path, detail: str) -> None:
        self._failed.append(ThumbnailOutcome(source_path=source, succeeded=False, error_detail=detail))
        self.channel.publish_log(LogEvent(f"Failed to process {source.name}: {detail}"))

    def _summary_line(self) -> str:
        return f"Processed {self._processed} out of {self.total} images in this directory."

    def _finish(self, state: JobState, message: str) -> JobSummary:
        self.channel.publish_log(LogEvent(message))
        self.channel.publish_progress(ProgressEvent(self._processed, self.total))
        self._state = state

        summary = JobSummary(
            state=state,
            processed=self._processed,
            total=self.total,
            succeeded=list(self._succeeded),
            failed=list(self._failed),
            message=message,
        )
        self.logger.info(
            "任务结束 [%s]：成功 %d，失败 %d，共 %d",
            state.value,
            len(self._succeeded),
            len(self._failed),
            self.total,
        )
        self.channel.close(JobFinished(summary))
        return summary


def _describe(exc: BaseException) -> str:
    """异常及其底层原因的简短描述。"""

    cause = exc.__cause__
    if cause is not None and str(cause):
        return f"{exc} ({cause})"
    return str(exc)
