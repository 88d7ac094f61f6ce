"""
gui_mainwindow.py - GUI Main Window

Project selection, postfix removal preview, execution and log output
"""

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QLabel, QLineEdit, QPushButton, QCheckBox, QTableWidget, QTableWidgetItem,
    QTextEdit, QProgressBar, QFileDialog, QMessageBox, QHeaderView, QGroupBox,
    QSplitter,
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QColor

from prj_core import MatlabProject, RenamePlan, RenameOp
from prj_core.exec_rename import RenameResult
from prj_core.logging_config import LOGGER_NAMES
from .gui_workers import PlanWorker, RenameWorker, QtLogHandler


class PostfixPanel(QWidget):
    """Postfix removal panel"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.project: Optional[MatlabProject] = None
        self.plan: Optional[RenamePlan] = None
        self.plan_worker: Optional[PlanWorker] = None
        self.rename_worker: Optional[RenameWorker] = None

        self._init_ui()
        self._init_logging()

    def _init_ui(self):
        layout = QVBoxLayout(self)

        # Project settings group
        project_group = QGroupBox("Project")
        project_layout = QGridLayout(project_group)

        project_layout.addWidget(QLabel("Directory:"), 0, 0)
        self.dir_edit = QLineEdit()
        self.dir_edit.setPlaceholderText("Select MATLAB project root (folder with the .prj file)...")
        project_layout.addWidget(self.dir_edit, 0, 1)
        self.browse_btn = QPushButton("Browse...")
        self.browse_btn.clicked.connect(self._browse_directory)
        project_layout.addWidget(self.browse_btn, 0, 2)

        project_layout.addWidget(QLabel("Postfix:"), 1, 0)
        self.postfix_edit = QLineEdit()
        self.postfix_edit.setPlaceholderText("e.g., _v1")
        project_layout.addWidget(self.postfix_edit, 1, 1, 1, 2)

        # Options
        options_layout = QHBoxLayout()
        self.git_check = QCheckBox("Track changes in git")
        self.git_check.setChecked(True)
        self.linker_check = QCheckBox("Update link sets with MATLAB")
        options_layout.addWidget(self.git_check)
        options_layout.addWidget(self.linker_check)
        options_layout.addStretch()
        project_layout.addLayout(options_layout, 2, 0, 1, 3)

        self.preview_btn = QPushButton("Preview")
        self.preview_btn.clicked.connect(self._do_preview)
        project_layout.addWidget(self.preview_btn, 3, 0, 1, 3)

        layout.addWidget(project_group)

        splitter = QSplitter(Qt.Orientation.Vertical)

        # Results table
        self.table = QTableWidget()
        self.table.setColumnCount(5)
        self.table.setHorizontalHeaderLabels(["Original Name", "New Name", "References", "Status", "Path"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(2, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(3, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(4, QHeaderView.ResizeMode.Stretch)
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        splitter.addWidget(self.table)

        # Log pane
        self.log_view = QTextEdit()
        self.log_view.setReadOnly(True)
        splitter.addWidget(self.log_view)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)

        layout.addWidget(splitter, 1)

        # Progress and execution
        bottom_layout = QHBoxLayout()

        self.progress_bar = QProgressBar()
        self.progress_bar.setVisible(False)
        bottom_layout.addWidget(self.progress_bar, 1)

        self.execute_btn = QPushButton("Remove Postfix")
        self.execute_btn.clicked.connect(self._do_execute)
        self.execute_btn.setEnabled(False)
        self.execute_btn.setStyleSheet("QPushButton { background-color: #2E7D32; color: white; font-weight: bold; padding: 8px 16px; }")
        bottom_layout.addWidget(self.execute_btn)

        layout.addLayout(bottom_layout)

        # Status label
        self.status_label = QLabel("")
        layout.addWidget(self.status_label)

    def _init_logging(self):
        """Mirror tool log output into the log pane"""
        self.log_handler = QtLogHandler(logging.INFO)
        self.log_handler.emitter.message.connect(self.log_view.append)
        for name in LOGGER_NAMES:
            logging.getLogger(name).addHandler(self.log_handler)

    def detach_logging(self):
        for name in LOGGER_NAMES:
            logging.getLogger(name).removeHandler(self.log_handler)

    def _browse_directory(self):
        """Browse and select project directory"""
        directory = QFileDialog.getExistingDirectory(self, "Select Project Directory")
        if directory:
            self.dir_edit.setText(directory)

    def _set_busy(self, busy: bool):
        self.preview_btn.setEnabled(not busy)
        self.browse_btn.setEnabled(not busy)
        self.execute_btn.setEnabled(False)
        self.progress_bar.setVisible(busy)

    def _do_preview(self):
        """Generate preview"""
        directory = self.dir_edit.text().strip()
        if not directory:
            QMessageBox.warning(self, "Warning", "Please select a project directory first")
            return

        path = Path(directory)
        if not path.is_dir():
            QMessageBox.warning(self, "Warning", f"Directory does not exist: {directory}")
            return

        postfix = self.postfix_edit.text()
        if not postfix:
            QMessageBox.warning(self, "Warning", "Please enter the postfix to remove")
            return

        self._set_busy(True)
        self.preview_btn.setText("Generating...")
        self.progress_bar.setRange(0, 0)  # Indeterminate progress
        self.table.setRowCount(0)

        # Start plan generation thread
        self.plan_worker = PlanWorker(
            path,
            postfix,
            use_git=self.git_check.isChecked(),
            use_matlab_linker=self.linker_check.isChecked(),
        )
        self.plan_worker.progress.connect(self._on_plan_progress)
        self.plan_worker.finished.connect(self._on_plan_finished)
        self.plan_worker.error.connect(self._on_plan_error)
        self.plan_worker.start()

    @Slot(str)
    def _on_plan_progress(self, msg: str):
        self.status_label.setText(msg[-80:] if len(msg) > 80 else msg)

    @Slot(object, object)
    def _on_plan_finished(self, project: MatlabProject, plan: RenamePlan):
        """Plan generation complete"""
        self.project = project
        self.plan = plan
        self._set_busy(False)
        self.preview_btn.setText("Preview")

        if plan.errors:
            QMessageBox.warning(self, "Warning", "\n".join(plan.errors))
            return

        self._update_table_preview()

        if plan.valid_ops:
            self.execute_btn.setEnabled(True)
            self.status_label.setText(
                f"{project.name}: will perform {plan.total_count} rename operations "
                f"({plan.reference_count} references, {len(plan.skipped)} skipped)"
            )
        else:
            self.status_label.setText(f"{project.name}: no files need renaming")

    @Slot(str)
    def _on_plan_error(self, error: str):
        """Plan generation error"""
        self._set_busy(False)
        self.preview_btn.setText("Preview")
        QMessageBox.critical(self, "Error", f"Failed to generate preview: {error}")

    def _add_row(self, op: RenameOp, status: str, color: QColor):
        row = self.table.rowCount()
        self.table.insertRow(row)
        self.table.setItem(row, 0, QTableWidgetItem(op.old_name))
        self.table.setItem(row, 1, QTableWidgetItem(op.new_name))

        refs_item = QTableWidgetItem(str(len(op.references)))
        if op.references:
            refs_item.setToolTip("\n".join(str(p) for p in op.references))
        self.table.setItem(row, 2, refs_item)

        status_item = QTableWidgetItem(status)
        status_item.setForeground(color)
        if op.note:
            status_item.setToolTip(op.note)
        self.table.setItem(row, 3, status_item)

        try:
            rel_path = str(op.src.parent.relative_to(self.project.root))
        except ValueError:
            rel_path = str(op.src.parent)
        self.table.setItem(row, 4, QTableWidgetItem(rel_path))

    def _update_table_preview(self):
        """Update table to display preview results"""
        self.table.setRowCount(0)
        if not self.plan:
            return

        for op in self.plan.valid_ops:
            self._add_row(op, "Will Rename", QColor(0, 150, 0))
        for op in self.plan.skipped:
            self._add_row(op, "Skipped", QColor(200, 150, 0))

    def _do_execute(self):
        """Execute rename"""
        if not self.project or not self.plan or not self.plan.valid_ops:
            return

        reply = QMessageBox.question(
            self, "Confirm",
            f"Are you sure you want to rename {self.plan.total_count} files and update "
            f"{self.plan.reference_count} references?\n\nThis action cannot be undone!",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if reply != QMessageBox.StandardButton.Yes:
            return

        self._set_busy(True)
        self.execute_btn.setText("Executing...")
        self.progress_bar.setRange(0, self.plan.total_count)

        # Start execution thread
        self.rename_worker = RenameWorker(self.project, self.plan)
        self.rename_worker.progress.connect(self._on_rename_progress)
        self.rename_worker.finished.connect(self._on_rename_finished)
        self.rename_worker.error.connect(self._on_rename_error)
        self.rename_worker.start()

    @Slot(int, int, str)
    def _on_rename_progress(self, current: int, total: int, msg: str):
        """Execution progress update"""
        self.progress_bar.setValue(current)
        self.status_label.setText(msg)

    @Slot(object)
    def _on_rename_finished(self, result: RenameResult):
        """Execution complete"""
        self._set_busy(False)
        self.execute_btn.setText("Remove Postfix")

        msg = f"Postfix removal complete!\n\nRenamed: {result.success_count}\nFailed: {result.failed_count}"
        if result.stale_count:
            msg += f"\nStale references: {result.stale_count} (see log)"
        if result.failed_count > 0:
            msg += "\n\nFailure Details:\n"
            for op, error in result.failed[:5]:
                msg += f"  {op.old_name}: {error}\n"
            if len(result.failed) > 5:
                msg += f"  ... and {len(result.failed) - 5} more failures"

        QMessageBox.information(self, "Complete", msg)
        self.log_view.append(result.summary())

        # Clear state
        self.plan = None
        self.table.setRowCount(0)
        self.status_label.setText("Complete")

    @Slot(str)
    def _on_rename_error(self, error: str):
        """Execution error"""
        self._set_busy(False)
        self.execute_btn.setText("Remove Postfix")
        QMessageBox.critical(self, "Error", f"Postfix removal failed: {error}")


class MainWindow(QMainWindow):
    """Main window"""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Project Postfix Remover")
        self.setMinimumSize(900, 650)

        self.panel = PostfixPanel()
        self.setCentralWidget(self.panel)

        # Status bar
        self.statusBar().showMessage("Ready")

    def closeEvent(self, event):
        self.panel.detach_logging()
        super().closeEvent(event)
