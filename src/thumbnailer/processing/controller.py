"""任务控制器：启动任务、转发取消请求，并保证同一时刻至多一个任务在执行。"""

from __future__ import annotations

import itertools
import logging
import threading
from pathlib import Path
from typing import Optional

from thumbnailer.core.config import ThumbnailConfig
from thumbnailer.core.exceptions import JobAlreadyRunning
from thumbnailer.core.models import ImageTask, JobSummary
from thumbnailer.core.scanner import scan_directory
from thumbnailer.processing.channel import EventChannel
from thumbnailer.processing.codec import PillowThumbnailCodec, ThumbnailCodec
from thumbnailer.processing.job import BatchJob

LOGGER = logging.getLogger(__name__)

_JOB_IDS = itertools.count(1)


class JobHandle:
    """调用方持有的任务句柄。"""

    def __init__(self, job_id: int, directory: Path, job: BatchJob) -> None:
        self.job_id = job_id
        self.directory = directory
        self.job = job
        self.summary: Optional[JobSummary] = None
        self._finished = threading.Event()

    @property
    def events(self) -> EventChannel:
        return self.job.channel

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """等待任务结束且控制器释放执行槽位。"""

        return self._finished.wait(timeout)

    def cancel(self) -> None:
        self.job.request_cancel()

    def __repr__(self) -> str:
        return f"JobHandle(job_id={self.job_id}, directory={str(self.directory)!r}, done={self.done})"


class JobController:
    """缩略图任务的公开入口。"""

    def __init__(
        self,
        config: Optional[ThumbnailConfig] = None,
        codec: Optional[ThumbnailCodec] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or ThumbnailConfig()
        self.config.validate()
        self.codec = codec or PillowThumbnailCodec(self.config)
        self.logger = logger or LOGGER
        self._lock = threading.Lock()
        self._active: Optional[JobHandle] = None

    @property
    def active_job(self) -> Optional[JobHandle]:
        """当前未结束的任务句柄，没有时返回 None。"""

        with self._lock:
            if self._active is None or self._active.job.state.is_terminal:
                return None
            return self._active

    def start_job(self, directory: Path) -> JobHandle:
        """扫描目录并在后台线程中启动任务。

        已有任务未结束时抛出 JobAlreadyRunning；目录无法读取时抛出 DirectoryUnreadable，
        两种情况都不会启动新任务。
        """

        directory = Path(directory).expanduser().resolve()
        with self._lock:
            if self._active is not None and not self._active.job.state.is_terminal:
                raise JobAlreadyRunning(f"任务 {self._active.job_id} 正在执行中: {self._active.directory}")

            files = scan_directory(directory, self.config.extension, sort=self.config.sort_files)
            task = ImageTask(files=tuple(files), output_dir=directory / self.config.output_dir_name)
            channel = EventChannel(self.config.log_queue_size)
            job = BatchJob(task, self.codec, channel, logger=self.logger)
            handle = JobHandle(next(_JOB_IDS), directory, job)

            worker = threading.Thread(
                target=self._run_job,
                args=(handle,),
                name=f"thumbnailer-job-{handle.job_id}",
                daemon=True,
            )
            worker.start()
            self._active = handle

        self.logger.info("已启动任务 %d: %s（%d 个文件）", handle.job_id, directory, task.total)
        return handle

    def cancel(self, handle: JobHandle) -> None:
        """请求取消指定任务；任务已结束时无副作用。"""

        handle.cancel()

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """取消当前任务并等待其结束，返回是否在超时前结束。"""

        handle = self.active_job
        if handle is None:
            return True
        handle.cancel()
        return handle.wait(timeout)

    def _run_job(self, handle: JobHandle) -> None:
        try:
            handle.summary = handle.job.run()
        finally:
            with self._lock:
                if self._active is handle:
                    self._active = None
            handle._finished.set()
