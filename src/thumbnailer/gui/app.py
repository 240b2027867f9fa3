"""Tkinter 图形界面实现。"""

from __future__ import annotations

import logging
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox, ttk
from typing import Optional

from thumbnailer.core.exceptions import DirectoryUnreadable, JobAlreadyRunning
from thumbnailer.core.progress import JobFinished, LogEvent, ProgressEvent
from thumbnailer.processing.controller import JobController, JobHandle
from thumbnailer.utils.logging import setup_logging

POLL_INTERVAL_MS = 100


class ThumbnailApp(tk.Tk):
    """Tkinter 主窗口：选择目录、显示进度与日志、取消任务。"""

    def __init__(self, controller: Optional[JobController] = None) -> None:
        super().__init__()
        self.title("Thumbnail Image Creator")
        self.geometry("480x320")
        setup_logging()
        self._logger = logging.getLogger(__name__)

        self.controller = controller or JobController()
        self._handle: Optional[JobHandle] = None
        self.progress_var = tk.DoubleVar(value=0)

        self._build_ui()
        self.protocol("WM_DELETE_WINDOW", self._handle_close)

    def _build_ui(self) -> None:
        control_frame = ttk.Frame(self, padding=6)
        control_frame.pack(side=tk.TOP, fill=tk.X)

        self.start_button = ttk.Button(control_frame, text="Process", command=self._start_processing)
        self.start_button.pack(side=tk.LEFT)
        self.cancel_button = ttk.Button(
            control_frame, text="Cancel", command=self._cancel_processing, state=tk.DISABLED
        )
        self.cancel_button.pack(side=tk.LEFT, padx=(6, 0))
        ttk.Progressbar(control_frame, variable=self.progress_var, maximum=100).pack(
            side=tk.LEFT, fill=tk.X, expand=True, padx=(6, 0)
        )

        log_frame = ttk.Frame(self, padding=(6, 0, 6, 6))
        log_frame.pack(side=tk.TOP, fill=tk.BOTH, expand=True)
        scrollbar = ttk.Scrollbar(log_frame, orient=tk.VERTICAL)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)
        self.log_text = tk.Text(log_frame, state=tk.DISABLED, wrap=tk.WORD, yscrollcommand=scrollbar.set)
        self.log_text.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        scrollbar.configure(command=self.log_text.yview)

    def _start_processing(self) -> None:
        selected = filedialog.askdirectory(parent=self, title="Select")
        if not selected:
            return

        try:
            handle = self.controller.start_job(Path(selected))
        except JobAlreadyRunning:
            messagebox.showinfo("提示", "任务正在执行中，请稍候。", parent=self)
            return
        except DirectoryUnreadable as exc:
            messagebox.showerror("路径错误", str(exc), parent=self)
            return

        self._handle = handle
        self._clear_log()
        self.progress_var.set(0)
        self._set_running(True)
        self.after(POLL_INTERVAL_MS, self._poll_events)

    def _cancel_processing(self) -> None:
        if self._handle is not None:
            self.controller.cancel(self._handle)
            self.cancel_button.configure(state=tk.DISABLED)

    def _poll_events(self) -> None:
        handle = self._handle
        if handle is None:
            return

        for event in handle.events.drain():
            if isinstance(event, LogEvent):
                self._append_log(event.message)
            elif isinstance(event, ProgressEvent):
                self.progress_var.set(event.percent)
            elif isinstance(event, JobFinished):
                self._handle_done(event)
                return

        self.after(POLL_INTERVAL_MS, self._poll_events)

    def _handle_done(self, event: JobFinished) -> None:
        self._logger.debug("任务结束: %s", event.state.value)
        self._handle = None
        self._set_running(False)

    def _set_running(self, running: bool) -> None:
        self.start_button.configure(state=tk.DISABLED if running else tk.NORMAL)
        self.cancel_button.configure(state=tk.NORMAL if running else tk.DISABLED)
        self.configure(cursor="watch" if running else "")

    def _clear_log(self) -> None:
        self.log_text.configure(state=tk.NORMAL)
        self.log_text.delete("1.0", tk.END)
        self.log_text.configure(state=tk.DISABLED)

    def _append_log(self, text: str) -> None:
        self.log_text.configure(state=tk.NORMAL)
        self.log_text.insert(tk.END, text + "\n")
        self.log_text.configure(state=tk.DISABLED)
        self.log_text.see(tk.END)

    def _handle_close(self) -> None:
        if not self.controller.shutdown(timeout=5.0):
            self._logger.warning("关闭窗口时任务仍未结束")
        self.destroy()


def run_gui() -> None:
    """启动 GUI 应用。"""

    app = ThumbnailApp()
    app.mainloop()


if __name__ == "__main__":
    run_gui()
