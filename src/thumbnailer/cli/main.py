"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
import typer
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from thumbnailer.core.config import ThumbnailConfig
from thumbnailer.core.exceptions import DirectoryUnreadable, InvalidConfigurationError
from thumbnailer.core.models import JobState
from thumbnailer.core.progress import JobEvent, JobFinished, LogEvent, ProgressEvent
from thumbnailer.processing.controller import JobController, JobHandle
from thumbnailer.utils.logging import setup_logging

app = typer.Typer(help="为目录中的 jpg 图片批量生成缩略图。")


@app.callback()
def main() -> None:
    """缩略图批量生成工具。"""


EXIT_CODES = {
    JobState.COMPLETED: 0,
    JobState.FAILED: 1,
    JobState.CANCELLED: 130,
}


def _render(event: JobEvent, progress: Progress, task_id: TaskID) -> None:
    """把单个任务事件渲染到 rich 进度条。"""

    if isinstance(event, LogEvent):
        progress.console.print(event.message, markup=False, highlight=False)
    elif isinstance(event, ProgressEvent):
        progress.update(task_id, completed=event.percent)


def _consume(controller: JobController, handle: JobHandle, progress: Progress, task_id: TaskID) -> JobFinished:
    """持续读取事件直到终止事件；Ctrl-C 只请求取消，之后继续读取。"""

    events = handle.events.iter_events()
    while True:
        try:
            event = next(events)
        except StopIteration:
            raise RuntimeError("事件流在终止事件之前结束") from None
        except KeyboardInterrupt:
            progress.log("正在取消，当前文件处理完成后停止……")
            controller.cancel(handle)
            # 中断可能发生在迭代器内部，未交付的事件仍保留在通道中。
            events = handle.events.iter_events()
            continue

        if isinstance(event, JobFinished):
            return event
        _render(event, progress, task_id)


@app.command("run")
def run_cli(
    directory: Path = typer.Argument(..., help="包含 jpg 图片的目录"),
    quality: int = typer.Option(90, "--quality", "-q", help="输出 JPEG 质量 (1~95)"),
    unsorted: bool = typer.Option(False, "--unsorted", help="按文件系统顺序处理，不按文件名排序"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """处理目录中的图片，缩略图写入其下的 thumbnails 子目录。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    config = ThumbnailConfig(quality=quality, sort_files=not unsorted)
    try:
        controller = JobController(config)
    except InvalidConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        handle = controller.start_job(directory.expanduser().resolve())
    except DirectoryUnreadable as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
    )

    with progress:
        task_id = progress.add_task("生成缩略图", total=100)
        finished = _consume(controller, handle, progress, task_id)

    handle.wait()
    summary = finished.summary
    if summary.failed:
        typer.echo(f"失败 {len(summary.failed)} 张：")
        for outcome in summary.failed:
            typer.echo(f"  {outcome.source_path.name}: {outcome.error_detail}")

    raise typer.Exit(code=EXIT_CODES[summary.state])


if __name__ == "__main__":
    app()
