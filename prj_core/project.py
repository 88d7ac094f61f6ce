"""
project.py - Host Project System

Provides:
- Project: ordered set of tracked files with add/remove/save
- MatlabProject: MATLAB project stored on disk (.prj + resources/project)
- open_project / current_project: locate and open a project
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Set
import logging
import xml.etree.ElementTree as ET

from .errors import ProjectError

logger = logging.getLogger(__name__)

# Definition tree layout: resources/project/Root.type.Files/a.type.File/b.slx.type.File.xml
DEFINITIONS_DIR = Path("resources") / "project" / "Root.type.Files"
FOLDER_SUFFIX = ".type.File"
ENTRY_SUFFIX = ".type.File.xml"
ENTRY_CONTENT = '<?xml version="1.0" encoding="UTF-8"?>\n<Info/>\n'


def normalize_path(path: Path) -> str:
    """Normalize path for membership comparison (separator and case)"""
    return str(path).replace("\\", "/").lower()


class Project(ABC):
    """Ordered collection of tracked files rooted at a directory"""

    def __init__(self, root: Path, name: Optional[str] = None):
        self.root = Path(root).resolve()
        self.name = name or self.root.name

    @property
    @abstractmethod
    def files(self) -> List[Path]:
        """Absolute paths of all tracked files, in project order"""

    @abstractmethod
    def add_file(self, path: Path) -> None:
        """Start tracking a file"""

    @abstractmethod
    def remove_file(self, path: Path) -> None:
        """Stop tracking a file"""

    @abstractmethod
    def save(self) -> None:
        """Persist membership changes"""

    def contains(self, path: Path) -> bool:
        """Whether the file is tracked by the project"""
        target = normalize_path(self._absolute(path))
        return any(normalize_path(p) == target for p in self.files)

    def _absolute(self, path: Path) -> Path:
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        return path

    def relative(self, path: Path) -> Path:
        """Path relative to the project root"""
        path = self._absolute(path)
        try:
            return path.relative_to(self.root)
        except ValueError:
            raise ProjectError(f"{path} is outside project root {self.root}") from None


class MatlabProject(Project):
    """
    MATLAB project in the multi-file definition layout

    Membership changes are kept in memory until save() writes them to the
    definition tree.
    """

    def __init__(self, root: Path, name: Optional[str] = None):
        super().__init__(root, name)
        self._files: List[Path] = self._load_files()
        self._added: Set[Path] = set()
        self._removed: Set[Path] = set()

    @property
    def definitions_dir(self) -> Path:
        return self.root / DEFINITIONS_DIR

    @property
    def files(self) -> List[Path]:
        return list(self._files)

    @property
    def is_modified(self) -> bool:
        return bool(self._added or self._removed)

    def _load_files(self) -> List[Path]:
        """Read tracked files from the definition tree"""
        base = self.definitions_dir
        if not base.is_dir():
            return []

        files: List[Path] = []
        for entry in sorted(base.rglob("*" + ENTRY_SUFFIX)):
            rel = entry.relative_to(base)
            parts = [p[: -len(FOLDER_SUFFIX)] if p.endswith(FOLDER_SUFFIX) else p for p in rel.parts[:-1]]
            parts.append(rel.name[: -len(ENTRY_SUFFIX)])
            path = self.root.joinpath(*parts)
            # Folder entries are implied by their children
            if path.is_dir():
                continue
            files.append(path)
        return files

    def _entry_for(self, rel: Path) -> Path:
        """Definition file for a path relative to the project root"""
        folders = [part + FOLDER_SUFFIX for part in rel.parts[:-1]]
        return self.definitions_dir.joinpath(*folders, rel.parts[-1] + ENTRY_SUFFIX)

    def add_file(self, path: Path) -> None:
        path = self._absolute(path)
        rel = self.relative(path)
        if not path.is_file():
            raise ProjectError(f"Cannot add {rel}: file does not exist")
        if self.contains(path):
            return
        self._files.append(path)
        self._removed.discard(path)
        self._added.add(path)
        logger.debug("Added %s to project %s", rel, self.name)

    def remove_file(self, path: Path) -> None:
        path = self._absolute(path)
        target = normalize_path(path)
        for tracked in self._files:
            if normalize_path(tracked) == target:
                self._files.remove(tracked)
                self._added.discard(tracked)
                self._removed.add(tracked)
                logger.debug("Removed %s from project %s", self.relative(tracked), self.name)
                return
        raise ProjectError(f"Cannot remove {path}: not in project {self.name}")

    def save(self) -> None:
        if not self.is_modified:
            return
        try:
            for path in sorted(self._removed):
                entry = self._entry_for(self.relative(path))
                if entry.exists():
                    entry.unlink()

            for path in sorted(self._added):
                rel = self.relative(path)
                # Folder entries for every ancestor directory
                for depth in range(1, len(rel.parts)):
                    folder_entry = self._entry_for(Path(*rel.parts[:depth]))
                    if not folder_entry.exists():
                        folder_entry.parent.mkdir(parents=True, exist_ok=True)
                        folder_entry.write_text(ENTRY_CONTENT, encoding="utf-8")
                entry = self._entry_for(rel)
                entry.parent.mkdir(parents=True, exist_ok=True)
                entry.write_text(ENTRY_CONTENT, encoding="utf-8")
        except OSError as e:
            raise ProjectError(f"Failed to save project {self.name}: {e}") from e

        self._added.clear()
        self._removed.clear()


def _find_prj_file(directory: Path) -> Optional[Path]:
    candidates = sorted(directory.glob("*.prj"))
    return candidates[0] if candidates else None


def _read_project_name(prj_file: Path) -> Optional[str]:
    """Project name from the .prj root element, None if unreadable"""
    try:
        return ET.parse(prj_file).getroot().get("name")
    except (ET.ParseError, OSError):
        return None


def open_project(root: Path) -> MatlabProject:
    """
    Open the MATLAB project at a directory

    Args:
        root: Project root directory

    Returns:
        Opened project

    Raises:
        ProjectError: Directory is not a MATLAB project
    """
    root = Path(root).expanduser().resolve()
    if not root.is_dir():
        raise ProjectError(f"Directory does not exist: {root}")

    prj_file = _find_prj_file(root)
    if prj_file is None and not (root / DEFINITIONS_DIR).is_dir():
        raise ProjectError(f"Not a MATLAB project (no .prj file): {root}")

    name = _read_project_name(prj_file) if prj_file else None
    return MatlabProject(root, name=name)


def current_project(start: Optional[Path] = None) -> MatlabProject:
    """
    Find the project containing a directory

    Args:
        start: Directory to start from (default: current working directory)

    Returns:
        Opened project

    Raises:
        ProjectError: No project found in the directory or its parents
    """
    start = Path(start or Path.cwd()).expanduser().resolve()
    for directory in [start, *start.parents]:
        if _find_prj_file(directory) is not None:
            return open_project(directory)
    raise ProjectError(f"No MATLAB project found in {start} or its parents")
