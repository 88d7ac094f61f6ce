"""
scan_project.py - Project File Enumeration

Lists the project's files that belong to the extension allow-list and picks
out those carrying a postfix
"""

from collections import Counter
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .models import FileType, ProjectFile, file_type_for
from .project import Project
from .text_match import contains


def sort_by_path(files: List[ProjectFile], reverse: bool = False) -> List[ProjectFile]:
    """Sort by path (for ensuring stable processing order)"""
    return sorted(files, key=lambda f: str(f.path).lower(), reverse=reverse)


def list_project_files(
    project: Project,
    file_filter: Optional[Callable[[Path], bool]] = None,
    progress_callback: Optional[Callable[[str], None]] = None
) -> List[ProjectFile]:
    """
    List project files with a supported extension

    Args:
        project: Project to enumerate
        file_filter: Additional file filter function
        progress_callback: Progress callback function

    Returns:
        Supported files, sorted by path
    """
    results: List[ProjectFile] = []

    for path in project.files:
        if file_type_for(path) is None:
            continue

        if progress_callback:
            progress_callback(str(path))

        if file_filter and not file_filter(path):
            continue

        results.append(ProjectFile.from_path(path))

    return sort_by_path(results)


def find_postfix_files(files: List[ProjectFile], postfix: str) -> List[ProjectFile]:
    """
    Select files whose base name contains the postfix

    Args:
        files: Candidate files
        postfix: Postfix to look for (case-sensitive)

    Returns:
        Matching files, in input order
    """
    if not postfix:
        return []
    return [f for f in files if contains(f.stem, postfix, case_sensitive=True)]


def list_file_types(files: List[ProjectFile]) -> Dict[FileType, int]:
    """
    Count files per type

    Returns:
        Mapping in FileType declaration order, types without files omitted
    """
    counts = Counter(f.file_type for f in files)
    return {t: counts[t] for t in FileType if counts[t]}
