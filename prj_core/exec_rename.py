"""
exec_rename.py - Rename Execution Module

Responsibilities:
- Per-file rename: project removal, move (git mv or plain move), re-add with retry
- Rollback of a failed rename (file location and project membership)
- Reference updates after each successful rename
- Project save, git status summary, optional JSON logs
- dry_run support
"""

from pathlib import Path
from typing import List, Tuple, Optional, Callable
from dataclasses import dataclass, field
from datetime import datetime
import json
import logging
import shutil

from .errors import ProjectError, RenameError, ReferenceUpdateError, RenameToolError
from .config import load_options
from .matlab_linker import MatlabLinker
from .models import RenamePlan, RenameOp, RenameOptions, RenameRecord
from .plan_rename import plan_postfix_removal
from .project import Project, current_project
from .references import find_references, update_references
from .safety_checks import check_rename_op
from .scan_project import list_project_files
from .vcs import GitAdapter

logger = logging.getLogger(__name__)


@dataclass
class RenameResult:
    """Rename execution result"""
    success: List[RenameRecord] = field(default_factory=list)
    failed: List[Tuple[RenameOp, str]] = field(default_factory=list)  # (op, error_msg)
    skipped: List[RenameOp] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)                   # Plan errors, nothing ran
    dry_run: bool = False
    project_saved: bool = False
    git_status: Optional[str] = None

    @property
    def success_count(self) -> int:
        return len(self.success)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def stale_count(self) -> int:
        return sum(len(r.stale) for r in self.success)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.failed

    def summary(self) -> str:
        """Generate summary"""
        title = "Preview Result:" if self.dry_run else "Execution Result:"
        lines = [
            title,
            f"  - Renamed: {self.success_count}",
            f"  - Failed: {self.failed_count}",
            f"  - Skipped: {self.skipped_count}",
            f"  - References updated: {sum(len(r.updated) for r in self.success)}",
            f"  - References left stale: {self.stale_count}",
        ]
        for err in self.errors:
            lines.append(f"  - Error: {err}")
        if self.failed:
            lines.append("Failure Details:")
            for op, error in self.failed[:10]:  # Show at most 10
                lines.append(f"  - {op.src.name} -> {op.dst.name}: {error}")
            if len(self.failed) > 10:
                lines.append(f"  ... and {len(self.failed) - 10} more failures")
        stale = [(r, p) for r in self.success for p in r.stale]
        if stale:
            lines.append("Stale References (update manually):")
            for record, path in stale:
                lines.append(f"  - {path} still mentions {record.old_path.name}")
        if self.git_status is not None:
            lines.append("Git Status Summary:")
            lines.append(self.git_status or "  No changes detected")
        return "\n".join(lines)


def _move_file(src: Path, dst: Path, vcs: Optional[GitAdapter]) -> None:
    """Move through git when available, plain move otherwise"""
    if vcs is not None:
        result = vcs.move(src, dst)
        if result.ok:
            return
        logger.warning("  Git rename failed: %s", result.output)
    shutil.move(str(src), str(dst))


def _add_with_retry(project: Project, path: Path, retries: int) -> None:
    """Add a file to the project and verify membership, retrying a bounded number of times"""
    last_error: Optional[Exception] = None
    for attempt in range(retries + 1):
        if attempt:
            logger.warning("  Failed to add %s back to project. Attempting again...", path.name)
        try:
            project.add_file(path)
        except ProjectError as e:
            last_error = e
            continue
        if project.contains(path):
            return
    detail = f": {last_error}" if last_error else ""
    raise RenameError(f"Failed to add {path.name} to project after {retries + 1} attempts{detail}")


def _restore(project: Project, op: RenameOp, removed: bool, moved: bool, vcs: Optional[GitAdapter]) -> None:
    """Best-effort rollback of a failed rename"""
    try:
        if moved and op.dst.exists() and not op.src.exists():
            _move_file(op.dst, op.src, vcs)
            logger.info("  Moved %s back to %s", op.dst.name, op.src.name)
        if project.contains(op.dst):
            project.remove_file(op.dst)
        if removed and not project.contains(op.src):
            project.add_file(op.src)
            logger.info("  Restored original file %s to project", op.src.name)
    except (OSError, RenameToolError) as e:
        logger.error("  Failed to restore original file to project: %s", e)


def _rename_one(
    project: Project,
    op: RenameOp,
    vcs: Optional[GitAdapter],
    linker: Optional[MatlabLinker],
    options: RenameOptions
) -> RenameRecord:
    """Rename a single file and update its references, RenameError on failure"""
    # References are looked up before the move, against the current project
    files = list_project_files(project)
    references = find_references(files, op.old_name, exclude=op.src)
    logger.info("  Found %d files referencing %s", len(references), op.old_name)

    removed = moved = False
    try:
        valid, error = check_rename_op(op, project)
        if not valid:
            raise RenameError(error)

        project.remove_file(op.src)
        removed = True

        _move_file(op.src, op.dst, vcs)
        moved = True

        _add_with_retry(project, op.dst, options.add_retries)
    except (OSError, RenameToolError) as e:
        _restore(project, op, removed, moved, vcs)
        if isinstance(e, RenameError):
            raise
        raise RenameError(str(e)) from e

    record = RenameRecord(old_path=op.src, new_path=op.dst)

    logger.info("  Updating %d references...", len(references))
    for ref in references:
        try:
            outcome = update_references(ref, op.old_name, op.new_name, vcs=vcs, linker=linker)
        except ReferenceUpdateError as e:
            logger.warning("  Failed to update references in %s: %s", ref, e)
            record.stale.append(ref)
            continue
        if outcome.changed:
            record.updated.append(ref)
        else:
            logger.warning("  %s mentions %s but nothing was rewritten, check manually", ref, op.old_name)
            record.stale.append(ref)

    return record


def execute_plan(
    project: Project,
    plan: RenamePlan,
    vcs: Optional[GitAdapter] = None,
    linker: Optional[MatlabLinker] = None,
    dry_run: Optional[bool] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
    log_dir: Optional[Path] = None
) -> RenameResult:
    """
    Execute a postfix removal plan

    Args:
        project: Project the plan was built from
        plan: Rename plan
        vcs: Git adapter, None to move files without git
        linker: External link set updater, None to use XML updates only
        dry_run: Preview only (default: plan.options.dry_run)
        progress_callback: Progress callback (current, total, message)
        log_dir: Log directory (default: plan.options.log_dir)

    Returns:
        Execution result
    """
    options = plan.options
    if dry_run is None:
        dry_run = options.dry_run
    if log_dir is None:
        log_dir = options.log_dir

    result = RenameResult(dry_run=dry_run, errors=list(plan.errors), skipped=list(plan.skipped))
    if plan.errors:
        return result

    valid_ops = plan.valid_ops
    total = len(valid_ops)

    if dry_run:
        files = list_project_files(project)
        for i, op in enumerate(valid_ops):
            if progress_callback:
                progress_callback(i + 1, total, f"[Preview] {op.old_name} -> {op.new_name}")
            op.references = find_references(files, op.old_name, exclude=op.src)
            result.success.append(RenameRecord(old_path=op.src, new_path=op.dst, updated=list(op.references)))
        return result

    if log_dir and total:
        save_plan_log(plan, log_dir)

    for i, op in enumerate(valid_ops):
        if progress_callback:
            progress_callback(i + 1, total, f"{op.old_name} -> {op.new_name}")
        logger.info('Processing %d/%d: Renaming "%s" to "%s"', i + 1, total, op.old_name, op.new_name)

        try:
            record = _rename_one(project, op, vcs, linker, options)
        except RenameError as e:
            logger.error("Failed to rename %s: %s", op.old_name, e)
            result.failed.append((op, str(e)))
            continue

        result.success.append(record)
        logger.info("  Successfully renamed %s to %s and updated references", op.old_name, op.new_name)

    logger.info("Renaming complete. %d files processed.", total)
    logger.info("Successfully renamed %d/%d files.", result.success_count, total)

    # Persist membership changes
    try:
        project.save()
        result.project_saved = True
        logger.info("Project saved successfully.")
    except ProjectError as e:
        logger.warning("Failed to save project: %s", e)

    if vcs is not None:
        status = vcs.status_short()
        if status.ok:
            result.git_status = status.output
        else:
            logger.warning("Failed to get git status: %s", status.output)

    if log_dir:
        save_result_log(result, log_dir)

    return result


def setup_tools(project: Project, options: RenameOptions) -> Tuple[Optional[GitAdapter], Optional[MatlabLinker]]:
    """
    Create the external tool adapters the options ask for

    Returns:
        (git adapter or None, MATLAB linker or None)
    """
    vcs: Optional[GitAdapter] = None
    if options.use_git and not options.dry_run:
        git = GitAdapter(project.root)
        if git.is_available():
            vcs = git
            logger.info("Git is available. Changes will be tracked in git.")
        else:
            logger.warning("Git not available or not a git repository. Proceeding without git tracking.")

    linker: Optional[MatlabLinker] = None
    if options.use_matlab_linker:
        linker = MatlabLinker(project.root, executable=options.matlab_executable)

    return vcs, linker


def remove_file_postfix(
    postfix: str,
    project_dir: Optional[Path] = None,
    options: Optional[RenameOptions] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None
) -> RenameResult:
    """
    Remove a postfix from project filenames and update all references

    Args:
        postfix: Postfix to remove (e.g., "_v1")
        project_dir: Directory inside the project (default: current directory)
        options: Rename options (default: project .prjrename.json)

    Returns:
        Execution result

    Raises:
        ProjectError: No project could be opened
        ConfigError: Invalid option file
    """
    project = current_project(project_dir)
    logger.info("Working with project: %s", project.name)

    if options is None:
        options = load_options(project.root)

    vcs, linker = setup_tools(project, options)

    files = list_project_files(project)
    logger.info("Found %d relevant files in project.", len(files))

    plan = plan_postfix_removal(files, postfix, options)
    for warning in plan.warnings:
        logger.warning(warning)
    for error in plan.errors:
        logger.error(error)
    logger.info('Found %d files with postfix "%s" to rename.', plan.total_count, postfix)

    return execute_plan(project, plan, vcs=vcs, linker=linker, progress_callback=progress_callback)


def save_plan_log(plan: RenamePlan, log_dir: Path) -> Path:
    """Save execution plan log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"rename_plan_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "postfix": plan.postfix,
        "total_ops": len(plan.valid_ops),
        "operations": [
            {
                "src": str(op.src),
                "dst": str(op.dst),
                "note": op.note
            }
            for op in plan.valid_ops
        ],
        "warnings": plan.warnings,
        "errors": plan.errors
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file


def save_result_log(result: RenameResult, log_dir: Path) -> Path:
    """Save execution result log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"rename_result_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "success_count": result.success_count,
        "failed_count": result.failed_count,
        "skipped_count": result.skipped_count,
        "project_saved": result.project_saved,
        "success": [
            {
                "src": str(r.old_path),
                "dst": str(r.new_path),
                "updated": [str(p) for p in r.updated],
                "stale": [str(p) for p in r.stale],
            }
            for r in result.success
        ],
        "failed": [
            {"src": str(op.src), "dst": str(op.dst), "error": error}
            for op, error in result.failed
        ],
        "skipped": [
            {"src": str(op.src), "dst": str(op.dst)}
            for op in result.skipped
        ]
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file
