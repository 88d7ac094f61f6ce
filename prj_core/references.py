"""
references.py - Reference Discovery and Update

One handler per file type, used both to find which artifacts mention a
filename and to rewrite those mentions after a rename. Every handler falls
back to plain text substitution when its structured method fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Type, Union
import logging
import re
import xml.etree.ElementTree as ET
import zipfile
import zlib

from .containers import decode, encode, read_parts, rewrite_parts
from .errors import ReferenceUpdateError, RenameToolError
from .matlab_linker import MatlabLinker
from .models import FileType, ProjectFile, file_type_for
from .project import normalize_path
from .text_match import contains, replace_filename
from .vcs import GitAdapter

logger = logging.getLogger(__name__)

# Errors that make a structured method give way to the text fallback
FALLBACK_ERRORS = (zipfile.BadZipFile, UnicodeError, ValueError, KeyError)

# Corrupt or unsupported package members
PACKAGE_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError)

# Errors while checking a single file; the file is skipped
CHECK_ERRORS = (OSError, UnicodeError, ValueError, RenameToolError) + PACKAGE_ERRORS

# Errors while updating a single file; the file keeps its stale references
UPDATE_ERRORS = (KeyError, OSError) + PACKAGE_ERRORS


def base_name(filename: str) -> str:
    """Filename without extension"""
    return Path(filename).stem


class ReferenceHandler(ABC):
    """Discovery and update strategy for one or more file types"""

    FILE_TYPES: Tuple[FileType, ...] = ()
    LABEL = "file"

    @abstractmethod
    def references(self, path: Path, target_name: str) -> bool:
        """Whether the file mentions target_name (or its base name)"""

    @abstractmethod
    def _update(self, path: Path, old_name: str, new_name: str, linker: Optional[MatlabLinker]) -> bool:
        """Rewrite mentions, return whether the file changed"""

    def update(self, path: Path, old_name: str, new_name: str, linker: Optional[MatlabLinker] = None) -> bool:
        """
        Rewrite mentions of old_name with new_name

        Returns:
            Whether the file changed
        """
        try:
            return self._update(path, old_name, new_name, linker)
        except FALLBACK_ERRORS as e:
            logger.warning("  Structured update of %s failed (%s), falling back to text replacement", path.name, e)
            return replace_in_file(path, old_name, new_name)


def text_references(path: Path, target_name: str, case_sensitive: bool = True) -> bool:
    """Raw substring check of the full name or base name over all text parts"""
    target_base = base_name(target_name)
    for _, data in read_parts(path):
        text = decode(data)
        if contains(text, target_name, case_sensitive) or contains(text, target_base, case_sensitive):
            return True
    return False


def replace_in_file(path: Path, old_name: str, new_name: str) -> bool:
    """Text substitution over all text parts"""
    def transform(part: str, data: bytes) -> bytes:
        return encode(replace_filename(decode(data), old_name, new_name))

    return bool(rewrite_parts(path, transform))


_REGISTRY: Dict[FileType, ReferenceHandler] = {}


def register_handler(cls: Type[ReferenceHandler]) -> Type[ReferenceHandler]:
    """Class decorator to register a handler for its FILE_TYPES"""
    if not cls.FILE_TYPES:
        raise ValueError(f"{cls.__name__} must define FILE_TYPES")
    instance = cls()
    for file_type in cls.FILE_TYPES:
        _REGISTRY[file_type] = instance
    return cls


def handler_for(path: Path) -> ReferenceHandler:
    """Get the handler for a file, KeyError if the type is not supported"""
    file_type = file_type_for(path)
    handler = _REGISTRY.get(file_type) if file_type else None
    if handler is None:
        raise KeyError(f"No reference handler for '{Path(path).suffix}'")
    return handler


@register_handler
class TextHandler(ReferenceHandler):
    """Scripts, requirements sets and data archives: raw text"""

    FILE_TYPES = (FileType.SCRIPT, FileType.REQUIREMENTS, FileType.DATA_ARCHIVE)
    LABEL = "text file"

    def references(self, path: Path, target_name: str) -> bool:
        return text_references(path, target_name)

    def _update(self, path: Path, old_name: str, new_name: str, linker: Optional[MatlabLinker]) -> bool:
        return replace_in_file(path, old_name, new_name)


@register_handler
class ModelHandler(ReferenceHandler):
    """Simulink models and libraries: block parameters"""

    FILE_TYPES = (FileType.MODEL, FileType.LIBRARY)
    LABEL = "model/library"

    # Library links and model references
    PARAMS = (
        "SourceBlock", "ReferenceBlock", "LibraryBlock", "ReferencedLibrary",
        "ModelName", "ModelNameDialog", "ModelFile",
    )

    # <P Name="SourceBlock">lib/Block</P> in .slx parts
    _XML_PARAM = re.compile(
        r'(<P\s+Name="(?P<name>' + "|".join(PARAMS) + r')"\s*>)(?P<value>[^<]*)(</P>)'
    )
    # SourceBlock "lib/Block" in .mdl text
    _MDL_PARAM = re.compile(
        r'^(\s*(?P<name>' + "|".join(PARAMS) + r')\s+")(?P<value>(?:[^"\\\n]|\\.)*)(")',
        re.MULTILINE,
    )

    @staticmethod
    def _model_parts(path: Path) -> Iterator[Tuple[str, str]]:
        for part, data in read_parts(path):
            # Package parts outside simulink/ hold no block parameters
            if part and not part.startswith("simulink/"):
                continue
            yield part, decode(data)

    def iter_params(self, text: str) -> Iterator[Tuple[str, str]]:
        """Yield (parameter name, value) pairs found in a model part"""
        for pattern in (self._XML_PARAM, self._MDL_PARAM):
            for m in pattern.finditer(text):
                yield m.group("name"), m.group("value")

    def references(self, path: Path, target_name: str) -> bool:
        target_base = base_name(target_name)
        for _, text in self._model_parts(path):
            for _, value in self.iter_params(text):
                if contains(value, target_name, False) or contains(value, target_base, False):
                    return True
        return False

    def _update(self, path: Path, old_name: str, new_name: str, linker: Optional[MatlabLinker]) -> bool:
        def substitute(m: "re.Match[str]") -> str:
            value = replace_filename(m.group("value"), old_name, new_name, case_sensitive=False)
            return m.group(1) + value + m.group(4)

        def transform(part: str, data: bytes) -> Optional[bytes]:
            if part and not part.startswith("simulink/"):
                return None
            text = decode(data)
            text = self._XML_PARAM.sub(substitute, text)
            text = self._MDL_PARAM.sub(substitute, text)
            return encode(text)

        return bool(rewrite_parts(path, transform))


@register_handler
class DataDictionaryHandler(ReferenceHandler):
    """Simulink data dictionaries: entry values"""

    FILE_TYPES = (FileType.DATA_DICTIONARY,)
    LABEL = "data dictionary"

    @staticmethod
    def _is_entry_part(part: str) -> bool:
        # Package bookkeeping never holds entry values
        return not (part == "[Content_Types].xml" or part.startswith(("_rels/", "metadata/")) or "/_rels/" in part)

    def references(self, path: Path, target_name: str) -> bool:
        target_base = base_name(target_name)
        try:
            for part, data in read_parts(path):
                if not self._is_entry_part(part):
                    continue
                text = decode(data)
                if target_name in text or target_base in text:
                    return True
            return False
        except FALLBACK_ERRORS:
            return text_references(path, target_name)

    def _update(self, path: Path, old_name: str, new_name: str, linker: Optional[MatlabLinker]) -> bool:
        def transform(part: str, data: bytes) -> Optional[bytes]:
            if not self._is_entry_part(part):
                return None
            return encode(replace_filename(decode(data), old_name, new_name))

        return bool(rewrite_parts(path, transform))


@register_handler
class LinkSetHandler(ReferenceHandler):
    """Model reference link sets: XML attributes"""

    FILE_TYPES = (FileType.MODEL_REFERENCE_LINK,)
    LABEL = "link set"

    # element -> attributes that may hold a file reference
    ATTRIBUTES = {
        "modelReference": ("ModelName", "ModelFile", "ModelPath"),
        "ModelInformation": ("name",),
    }

    _TAG = re.compile(r"<(?:[\w.-]+:)?(?P<tag>" + "|".join(ATTRIBUTES) + r")\b[^>]*>")

    @staticmethod
    def _local_name(tag: str) -> str:
        return tag.rsplit("}", 1)[-1]

    def attribute_values(self, data: bytes) -> Iterator[Tuple[str, str]]:
        """Yield (attribute, value) pairs of the reference elements; ET.ParseError on bad XML"""
        root = ET.fromstring(data)
        for elem in root.iter():
            attrs = self.ATTRIBUTES.get(self._local_name(elem.tag))
            if not attrs:
                continue
            for attr in attrs:
                value = elem.get(attr)
                if value:
                    yield attr, value

    def references(self, path: Path, target_name: str) -> bool:
        target_base = base_name(target_name)
        for part, data in read_parts(path):
            text = decode(data)
            try:
                for _, value in self.attribute_values(data):
                    if target_name in value or target_base in value:
                        return True
            except ET.ParseError:
                if target_name in text or target_base in text:
                    return True
        return False

    def _substitute_attributes(self, text: str, old_name: str, new_name: str) -> str:
        def in_tag(m: "re.Match[str]") -> str:
            names = "|".join(self.ATTRIBUTES[m.group("tag")])
            attr = re.compile(r'(\b(?:' + names + r')\s*=\s*")([^"]*)(")')
            return attr.sub(
                lambda a: a.group(1) + replace_filename(a.group(2), old_name, new_name) + a.group(3),
                m.group(0),
            )

        return self._TAG.sub(in_tag, text)

    def _update(self, path: Path, old_name: str, new_name: str, linker: Optional[MatlabLinker]) -> bool:
        if linker is not None:
            try:
                linker.update_link_set(old_name, new_name)
                logger.info("  Updated link sets with %s: %s", linker.function, path.name)
                return True
            except ReferenceUpdateError as e:
                logger.warning("  %s", e)
                logger.warning("  Falling back to XML-based update for %s", path.name)

        def transform(part: str, data: bytes) -> bytes:
            text = decode(data)
            try:
                # Validate before touching attributes
                ET.fromstring(data)
            except ET.ParseError:
                return encode(replace_filename(text, old_name, new_name))
            return encode(self._substitute_attributes(text, old_name, new_name))

        return bool(rewrite_parts(path, transform))


@register_handler
class SpreadsheetHandler(ReferenceHandler):
    """Excel workbooks: not inspected"""

    FILE_TYPES = (FileType.SPREADSHEET,)
    LABEL = "spreadsheet"

    def references(self, path: Path, target_name: str) -> bool:
        return False

    def _update(self, path: Path, old_name: str, new_name: str, linker: Optional[MatlabLinker]) -> bool:
        logger.warning("  Excel file %s might contain references to %s. Please check manually.", path, old_name)
        return False


@dataclass
class UpdateOutcome:
    """Result of updating one referencing file"""
    path: Path
    changed: bool
    staged: bool = False


def find_references(
    files: Iterable[Union[ProjectFile, Path]],
    target_name: str,
    exclude: Optional[Path] = None
) -> List[Path]:
    """
    Find files that mention a filename

    Args:
        files: Candidate files
        target_name: Filename with extension (e.g., lib_v1.slx)
        exclude: File to leave out (usually the target itself)

    Returns:
        Referencing files, in input order
    """
    excluded = normalize_path(exclude) if exclude is not None else None
    found: List[Path] = []

    for f in files:
        path = f.path if isinstance(f, ProjectFile) else Path(f)
        if excluded is not None and normalize_path(path) == excluded:
            continue
        try:
            if handler_for(path).references(path, target_name):
                found.append(path)
        except CHECK_ERRORS as e:
            logger.warning("  Failed to check references in %s: %s", path, e)
        except KeyError:
            continue

    return found


def update_references(
    path: Path,
    old_name: str,
    new_name: str,
    vcs: Optional[GitAdapter] = None,
    linker: Optional[MatlabLinker] = None
) -> UpdateOutcome:
    """
    Rewrite references to a renamed file

    Args:
        path: Referencing file
        old_name: Old filename
        new_name: New filename
        vcs: Stage the modified file when given
        linker: External link set updater for .slmx files

    Returns:
        Update outcome

    Raises:
        ReferenceUpdateError: The file could not be read or written
    """
    path = Path(path)
    try:
        handler = handler_for(path)
        changed = handler.update(path, old_name, new_name, linker=linker)
    except UPDATE_ERRORS as e:
        raise ReferenceUpdateError(f"Failed to update references in {path}: {e}") from e

    outcome = UpdateOutcome(path=path, changed=changed)
    if changed:
        logger.info("  Updated references in %s: %s", handler.LABEL, path)
        if vcs is not None:
            result = vcs.add(path)
            if result.ok:
                outcome.staged = True
            else:
                logger.warning("  Failed to add modified file %s to git: %s", path, result.output)
    return outcome
