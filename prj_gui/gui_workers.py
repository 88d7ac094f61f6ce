"""
gui_workers.py - GUI Worker Threads

Provides background execution of long tasks to avoid blocking UI
"""

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QThread, Signal, QObject

from prj_core import (
    MatlabProject, RenamePlan,
    open_project, list_project_files, plan_postfix_removal,
    execute_plan, setup_tools, load_options,
)


class LogEmitter(QObject):
    """Carries log lines from any thread to the UI thread"""
    message = Signal(str)


class QtLogHandler(logging.Handler):
    """Logging handler forwarding formatted records through a Qt signal"""

    def __init__(self, level: int = logging.INFO):
        super().__init__(level)
        self.emitter = LogEmitter()
        self.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.emitter.message.emit(self.format(record))
        except RuntimeError:
            # Emitter deleted while the window closes
            pass


class PlanWorker(QThread):
    """Rename plan generation worker thread"""

    # Signals
    progress = Signal(str)              # Progress message
    finished = Signal(object, object)   # MatlabProject, RenamePlan
    error = Signal(str)                 # Error message

    def __init__(
        self,
        directory: Path,
        postfix: str,
        use_git: bool = True,
        use_matlab_linker: bool = False,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.directory = directory
        self.postfix = postfix
        self.use_git = use_git
        self.use_matlab_linker = use_matlab_linker

    def run(self):
        try:
            self.progress.emit("Opening project...")
            project = open_project(self.directory)
            options = load_options(
                project.root,
                use_git=self.use_git,
                use_matlab_linker=self.use_matlab_linker,
            )

            self.progress.emit("Listing project files...")
            files = list_project_files(project)

            plan = plan_postfix_removal(
                files,
                self.postfix,
                options,
                preview_references=True,
                progress_callback=self.progress.emit,
            )
            self.finished.emit(project, plan)
        except Exception as e:
            self.error.emit(str(e))


class RenameWorker(QThread):
    """Rename execution worker thread"""

    # Signals
    progress = Signal(int, int, str)    # current, total, message
    finished = Signal(object)           # RenameResult
    error = Signal(str)                 # Error message

    def __init__(
        self,
        project: MatlabProject,
        plan: RenamePlan,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.project = project
        self.plan = plan

    def run(self):
        try:
            def progress_callback(current: int, total: int, msg: str):
                self.progress.emit(current, total, msg)

            vcs, linker = setup_tools(self.project, self.plan.options)
            result = execute_plan(
                self.project,
                self.plan,
                vcs=vcs,
                linker=linker,
                progress_callback=progress_callback,
            )

            self.finished.emit(result)
        except Exception as e:
            self.error.emit(str(e))
