"""
safety_checks.py - Pre-Move Checks

Last checks on a single operation, run right before its file is moved.
The disk or the project may have changed since the plan was made.
"""

from pathlib import Path
from typing import Optional, Tuple
import os
import platform

from .models import RenameOp
from .project import Project
from .text_match import is_valid_filename

# Windows MAX_PATH
MAX_PATH = 260

CheckResult = Tuple[bool, Optional[str]]


def check_directory_access(directory: Path) -> CheckResult:
    """A move adds and deletes directory entries, so the folder must be writable"""
    if not directory.is_dir():
        return False, f"Directory does not exist: {directory}"
    if not os.access(directory, os.W_OK | os.X_OK):
        return False, f"Directory is not writable: {directory}"
    return True, None


def check_target_path(dst: Path) -> CheckResult:
    """Destination must be free, a valid filename and short enough for Windows"""
    if dst.exists():
        return False, f"Destination already exists: {dst}"

    valid, error = is_valid_filename(dst.name)
    if not valid:
        return False, error

    length = len(str(dst))
    if platform.system() == "Windows" and length > MAX_PATH:
        return False, f"Path length ({length}) exceeds limit ({MAX_PATH}): {dst}"

    return True, None


def check_rename_op(op: RenameOp, project: Optional[Project] = None) -> CheckResult:
    """
    Check that a planned rename can still run

    Args:
        op: Rename operation
        project: Project the source must still belong to (not checked if None)

    Returns:
        (is_safe, error_reason)
    """
    if not op.src.is_file():
        return False, f"Source file does not exist: {op.src}"

    # Postfix removal never moves a file to another folder or changes its type
    if op.src.parent != op.dst.parent:
        return False, f"{op.new_name} is not in the folder of {op.old_name}"
    if op.src.suffix.lower() != op.dst.suffix.lower():
        return False, f"Extension changes from {op.src.suffix} to {op.dst.suffix}"

    if project is not None and not project.contains(op.src):
        return False, f"{op.old_name} is no longer in project {project.name}"

    valid, error = check_target_path(op.dst)
    if not valid:
        return False, error

    return check_directory_access(op.src.parent)
