"""
models.py - Core Data Structure Definitions

Contains:
- FileType: Project artifact type, derived from the file extension
- ProjectFile: File tracked by the project
- RenameOp: Single rename operation
- RenamePlan: Postfix removal plan
- RenameOptions: Rename options configuration
- RenameRecord: Completed rename, kept for the run summary
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict
from enum import Enum
import platform


class FileType(Enum):
    """Project artifact type"""
    MODEL = "model"                                 # Simulink model (.slx, .mdl)
    LIBRARY = "library"                             # Simulink library (.lib)
    SCRIPT = "script"                               # MATLAB script/function (.m)
    DATA_DICTIONARY = "data-dictionary"             # Simulink data dictionary (.sldd)
    MODEL_REFERENCE_LINK = "model-reference-link"   # Link set (.slmx)
    REQUIREMENTS = "requirements"                   # Requirements set (.slreqx)
    SPREADSHEET = "spreadsheet"                     # Excel workbook (.xlsx)
    DATA_ARCHIVE = "data-archive"                   # MATLAB data archive (.mldatx)


# Extension allow-list, files with any other extension are ignored
SUPPORTED_EXTENSIONS: Dict[str, FileType] = {
    ".slx": FileType.MODEL,
    ".mdl": FileType.MODEL,
    ".lib": FileType.LIBRARY,
    ".m": FileType.SCRIPT,
    ".sldd": FileType.DATA_DICTIONARY,
    ".slmx": FileType.MODEL_REFERENCE_LINK,
    ".slreqx": FileType.REQUIREMENTS,
    ".xlsx": FileType.SPREADSHEET,
    ".mldatx": FileType.DATA_ARCHIVE,
}


def file_type_for(path: Path) -> Optional[FileType]:
    """Get file type from extension, None if not in the allow-list"""
    return SUPPORTED_EXTENSIONS.get(Path(path).suffix.lower())


@dataclass
class ProjectFile:
    """Project file information"""
    path: Path                      # Full path
    name: str                       # Filename (with suffix)
    stem: str                       # Filename (without suffix)
    suffix: str                     # Suffix (e.g., .slx)
    file_type: FileType

    @classmethod
    def from_path(cls, p: Path) -> "ProjectFile":
        """Create ProjectFile from Path object"""
        p = Path(p)
        file_type = file_type_for(p)
        if file_type is None:
            raise ValueError(f"Unsupported file type: {p.suffix}")
        return cls(
            path=p,
            name=p.name,
            stem=p.stem,
            suffix=p.suffix,
            file_type=file_type,
        )

    def relative_to(self, base: Path) -> str:
        """Get relative path string"""
        try:
            return str(self.path.relative_to(base))
        except ValueError:
            return str(self.path)


@dataclass
class RenameOp:
    """Single rename operation"""
    src: Path                       # Source path
    dst: Path                       # Destination path
    note: str = ""                  # Note (e.g., skip reason)
    references: List[Path] = field(default_factory=list)  # Preview only

    @property
    def old_name(self) -> str:
        return self.src.name

    @property
    def new_name(self) -> str:
        return self.dst.name

    @property
    def is_same(self) -> bool:
        """Whether source and destination are the same"""
        return self.src == self.dst


@dataclass
class RenameOptions:
    """Rename options configuration"""
    # Version control
    use_git: bool = True            # Track renames in git when the project is a work tree

    # Case-sensitive detection (Windows/macOS default to insensitive)
    case_insensitive_detect: bool = field(default_factory=lambda: platform.system() in ("Windows", "Darwin"))

    # Project membership
    add_retries: int = 1            # Extra attempts to re-add a renamed file

    # External MATLAB linker for link set files
    use_matlab_linker: bool = False
    matlab_executable: str = "matlab"

    # Execution options
    dry_run: bool = False           # Preview only, do not actually execute
    log_dir: Optional[Path] = None  # Save JSON plan/result logs here


@dataclass
class RenamePlan:
    """Postfix removal plan"""
    postfix: str = ""
    ops: List[RenameOp] = field(default_factory=list)
    skipped: List[RenameOp] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    options: RenameOptions = field(default_factory=RenameOptions)

    @property
    def valid_ops(self) -> List[RenameOp]:
        """Get valid operations (excluding source=destination)"""
        return [op for op in self.ops if not op.is_same]

    @property
    def total_count(self) -> int:
        """Total number of operations"""
        return len(self.valid_ops)

    @property
    def reference_count(self) -> int:
        """Number of previewed references over all operations"""
        return sum(len(op.references) for op in self.ops)

    def add_op(self, src: Path, dst: Path, note: str = "") -> RenameOp:
        """Add operation"""
        op = RenameOp(src=src, dst=dst, note=note)
        self.ops.append(op)
        return op

    def skip(self, src: Path, dst: Path, reason: str) -> None:
        """Record an operation that will not run"""
        self.skipped.append(RenameOp(src=src, dst=dst, note=reason))
        self.add_warning(f"Skip {src}: {reason}")

    def add_warning(self, msg: str) -> None:
        """Add warning"""
        self.warnings.append(msg)

    def add_error(self, msg: str) -> None:
        """Add error"""
        self.errors.append(msg)

    def summary(self) -> str:
        """Generate summary"""
        lines = [
            f"Rename Plan Summary:",
            f"  - Postfix: {self.postfix!r}",
            f"  - Total operations: {self.total_count}",
            f"  - Skipped: {len(self.skipped)}",
            f"  - Previewed references: {self.reference_count}",
            f"  - Warnings: {len(self.warnings)}",
            f"  - Errors: {len(self.errors)}",
        ]
        return "\n".join(lines)


@dataclass
class RenameRecord:
    """Completed rename"""
    old_path: Path
    new_path: Path
    updated: List[Path] = field(default_factory=list)   # References rewritten
    stale: List[Path] = field(default_factory=list)     # References left untouched


def normalize_for_comparison(name: str, case_insensitive: bool) -> str:
    """Normalize filename for comparison"""
    if case_insensitive:
        return name.casefold()
    return name
