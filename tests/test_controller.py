"""测试任务控制器：单任务约束、取消与端到端流程。"""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
from PIL import Image

from thumbnailer.core.exceptions import DirectoryUnreadable, JobAlreadyRunning
from thumbnailer.core.models import JobState
from thumbnailer.core.progress import JobFinished, LogEvent, ProgressEvent
from thumbnailer.processing.controller import JobController

TIMEOUT = 10.0


class GatedCodec:
    """每个文件都等待放行信号后才写入，用于把任务停在执行中。"""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls: list[Path] = []

    def create_thumbnail(self, source: Path, output_dir: Path) -> Path:
        self.calls.append(source)
        self.started.set()
        assert self.release.wait(TIMEOUT)
        destination = output_dir / source.name
        destination.write_bytes(b"thumb")
        return destination


def make_source_dir(tmp_path: Path, count: int, name: str = "photos") -> Path:
    source = tmp_path / name
    source.mkdir()
    for idx in range(count):
        Image.new("RGB", (120 + idx * 40, 80 + idx * 10), "purple").save(
            source / f"photo{idx}.jpg", format="JPEG"
        )
    return source


def test_end_to_end_generates_thumbnails(tmp_path: Path) -> None:
    source = make_source_dir(tmp_path, 3)
    (source / "notes.txt").write_text("ignored")
    controller = JobController()

    handle = controller.start_job(source)
    events = list(handle.events.iter_events(poll_interval=0.01))
    assert handle.wait(TIMEOUT)

    output = source / "thumbnails"
    thumbs = sorted(output.iterdir())
    assert [path.name for path in thumbs] == ["photo0.jpg", "photo1.jpg", "photo2.jpg"]
    for path in thumbs:
        with Image.open(path) as img:
            assert img.size == (100, 100)

    percents = [event.percent for event in events if isinstance(event, ProgressEvent)]
    assert percents == sorted(percents)
    assert percents[-1] == 100

    logs = [event.message for event in events if isinstance(event, LogEvent)]
    assert logs[-1] == "Processed 3 out of 3 images in this directory."

    terminal = events[-1]
    assert isinstance(terminal, JobFinished)
    assert terminal.state is JobState.COMPLETED
    assert handle.summary is terminal.summary
    assert controller.active_job is None


def test_second_start_is_rejected_while_running(tmp_path: Path) -> None:
    first_dir = make_source_dir(tmp_path, 2, "first")
    second_dir = make_source_dir(tmp_path, 1, "second")
    codec = GatedCodec()
    controller = JobController(codec=codec)

    handle = controller.start_job(first_dir)
    try:
        assert codec.started.wait(TIMEOUT)

        with pytest.raises(JobAlreadyRunning):
            controller.start_job(second_dir)

        assert handle.job.state is JobState.RUNNING
        assert controller.active_job is handle
        assert not (second_dir / "thumbnails").exists()
    finally:
        codec.release.set()

    assert handle.wait(TIMEOUT)
    assert handle.summary.state is JobState.COMPLETED
    assert handle.summary.processed == 2


def test_cancel_mid_job_finishes_current_file(tmp_path: Path) -> None:
    source = make_source_dir(tmp_path, 4)
    codec = GatedCodec()
    controller = JobController(codec=codec)

    handle = controller.start_job(source)
    assert codec.started.wait(TIMEOUT)
    controller.cancel(handle)
    controller.cancel(handle)
    codec.release.set()

    assert handle.wait(TIMEOUT)
    assert handle.summary.state is JobState.CANCELLED
    assert handle.summary.processed == 1
    assert [path.name for path in (source / "thumbnails").iterdir()] == ["photo0.jpg"]

    events = handle.events.drain()
    assert isinstance(events[-1], JobFinished)

    # 结束后再取消不产生任何影响
    controller.cancel(handle)
    assert handle.summary.state is JobState.CANCELLED


def test_slot_is_released_after_job_and_rerun_is_idempotent(tmp_path: Path) -> None:
    source = make_source_dir(tmp_path, 2)
    controller = JobController()

    first = controller.start_job(source)
    assert first.wait(TIMEOUT)
    second = controller.start_job(source)
    assert second.wait(TIMEOUT)

    assert second.job_id != first.job_id
    assert first.summary.state is second.summary.state is JobState.COMPLETED
    assert len(list((source / "thumbnails").iterdir())) == 2


def test_unreadable_directory_is_reported_before_start(tmp_path: Path) -> None:
    controller = JobController()

    with pytest.raises(DirectoryUnreadable):
        controller.start_job(tmp_path / "does-not-exist")

    assert controller.active_job is None
    assert controller.shutdown(timeout=0) is True


def test_empty_directory_completes_with_zero_summary(tmp_path: Path) -> None:
    source = tmp_path / "empty"
    source.mkdir()

    handle = JobController().start_job(source)
    events = list(handle.events.iter_events(poll_interval=0.01))

    logs = [event.message for event in events if isinstance(event, LogEvent)]
    assert logs == ["Processed 0 out of 0 images in this directory."]
    assert events[-1].state is JobState.COMPLETED
    assert (source / "thumbnails").is_dir()


def test_output_directory_failure_releases_slot(tmp_path: Path) -> None:
    source = make_source_dir(tmp_path, 1)
    (source / "thumbnails").write_text("occupied")
    controller = JobController()

    handle = controller.start_job(source)
    assert handle.wait(TIMEOUT)

    assert handle.summary.state is JobState.FAILED
    assert controller.active_job is None


def test_shutdown_cancels_active_job(tmp_path: Path) -> None:
    source = make_source_dir(tmp_path, 3)
    codec = GatedCodec()
    controller = JobController(codec=codec)

    handle = controller.start_job(source)
    assert codec.started.wait(TIMEOUT)
    codec.release.set()

    assert controller.shutdown(timeout=TIMEOUT)
    assert handle.summary.state in {JobState.CANCELLED, JobState.COMPLETED}
    assert handle.summary.processed <= 3


def test_failed_thread_start_does_not_hold_slot(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = make_source_dir(tmp_path, 1)
    controller = JobController()

    def refuse_start(self: threading.Thread) -> None:
        raise RuntimeError("can't start new thread")

    monkeypatch.setattr(threading.Thread, "start", refuse_start)
    with pytest.raises(RuntimeError):
        controller.start_job(source)
    monkeypatch.undo()

    assert controller.active_job is None
    handle = controller.start_job(source)
    assert handle.wait(TIMEOUT)
    assert handle.summary.state is JobState.COMPLETED


def test_relative_directory_is_resolved(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    make_source_dir(tmp_path, 1)
    monkeypatch.chdir(tmp_path)

    handle = JobController().start_job(Path("photos"))
    assert handle.wait(TIMEOUT)

    assert handle.directory == tmp_path.resolve() / "photos"
    assert handle.job.task.output_dir == tmp_path.resolve() / "photos" / "thumbnails"
    assert all(path.is_absolute() for path in handle.job.task.files)
