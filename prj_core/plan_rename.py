"""
plan_rename.py - Rename Plan Generation Module

Responsibilities:
- Generate target names (postfix removed from the base name)
- Conflict detection (existing files, two sources mapping to one name)
- Optional reference preview
- Output RenamePlan
"""

from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .models import (
    FileType, ProjectFile, RenamePlan, RenameOptions, normalize_for_comparison
)
from .references import find_references
from .scan_project import find_postfix_files, sort_by_path
from .text_match import remove_postfix, is_valid_filename, is_valid_model_name

# Types loaded by name inside MATLAB, their base name must be an identifier
_NAMED_TYPES = (FileType.MODEL, FileType.LIBRARY, FileType.SCRIPT)


def plan_postfix_removal(
    files: List[ProjectFile],
    postfix: str,
    options: Optional[RenameOptions] = None,
    preview_references: bool = False,
    progress_callback: Optional[Callable[[str], None]] = None
) -> RenamePlan:
    """
    Generate postfix removal plan

    Args:
        files: Supported project files
        postfix: Postfix to remove from base names
        options: Rename options
        preview_references: Look up referencing files for each operation
        progress_callback: Progress callback function

    Returns:
        Rename plan
    """
    if options is None:
        options = RenameOptions()

    plan = RenamePlan(postfix=postfix, options=options)

    if not postfix:
        plan.add_error("Postfix cannot be empty")
        return plan

    if "/" in postfix or "\\" in postfix:
        plan.add_error(f"Postfix cannot contain a path separator: {postfix!r}")
        return plan

    candidates = sort_by_path(find_postfix_files(files, postfix))

    # Destination names already claimed, grouped by directory
    claimed: Dict[Path, Dict[str, Path]] = defaultdict(dict)

    for f in candidates:
        new_stem = remove_postfix(f.stem, postfix)
        new_name = new_stem + f.suffix

        # Validate new filename
        valid, error = is_valid_filename(new_name)
        if not valid:
            plan.skip(f.path, f.path.parent / new_name, error)
            continue

        if f.file_type in _NAMED_TYPES:
            valid, error = is_valid_model_name(new_stem)
            if not valid:
                plan.add_warning(f"{new_name} may not load in MATLAB: {error}")

        dst = f.path.parent / new_name
        key = normalize_for_comparison(new_name, options.case_insensitive_detect)

        previous = claimed[f.path.parent].get(key)
        if previous is not None:
            plan.skip(f.path, dst, f"{previous.name} is also renamed to {new_name}")
            continue

        if dst.exists():
            plan.skip(f.path, dst, f"{new_name} already exists")
            continue

        claimed[f.path.parent][key] = f.path
        op = plan.add_op(f.path, dst)

        if preview_references:
            if progress_callback:
                progress_callback(f"Finding references to {f.name}")
            op.references = find_references(files, f.name, exclude=f.path)

    return plan


def validate_plan(plan: RenamePlan) -> List[str]:
    """
    Validate rename plan

    Args:
        plan: Rename plan

    Returns:
        Error list
    """
    errors = []

    # Check if source files exist
    for op in plan.ops:
        if not op.src.exists():
            errors.append(f"Source file does not exist: {op.src}")

    # Check for duplicate destinations
    dst_set: Dict[str, List[Path]] = defaultdict(list)
    for op in plan.ops:
        key = str(op.dst).lower() if plan.options.case_insensitive_detect else str(op.dst)
        dst_set[key].append(op.src)

    for dst_key, srcs in dst_set.items():
        if len(srcs) > 1:
            errors.append(f"Multiple files have the same destination: {srcs} -> {dst_key}")

    return errors
