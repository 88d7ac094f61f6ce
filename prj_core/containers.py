"""
containers.py - Artifact Container Access

Current releases store .slx, .sldd, .slmx, .slreqx and .mldatx files as
OPC (zip) packages of XML parts, older ones as plain XML or text. This
module hides the difference: callers see a sequence of named text parts.
"""

from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple
import os
import uuid
import zipfile

# Part suffixes that hold text; everything else in a package is left alone
TEXT_PART_SUFFIXES = (".xml", ".rels", ".txt", ".json", ".m")

# Name used for the single part of a plain file
PLAIN_PART = ""


def decode(data: bytes) -> str:
    """Decode bytes losslessly (undecodable bytes survive a round trip)"""
    return data.decode("utf-8", errors="surrogateescape")


def encode(text: str) -> bytes:
    """Inverse of decode"""
    return text.encode("utf-8", errors="surrogateescape")


def is_package(path: Path) -> bool:
    """Whether the file is a zip package"""
    return zipfile.is_zipfile(path)


def _is_text_part(name: str) -> bool:
    return name.lower().endswith(TEXT_PART_SUFFIXES) or name == "[Content_Types].xml"


def read_parts(path: Path) -> Iterator[Tuple[str, bytes]]:
    """
    Iterate the text parts of an artifact

    Args:
        path: Artifact path

    Yields:
        (part name, content); a plain file yields one part named PLAIN_PART
    """
    path = Path(path)
    if is_package(path):
        with zipfile.ZipFile(path) as zf:
            for info in zf.infolist():
                if info.is_dir() or not _is_text_part(info.filename):
                    continue
                yield info.filename, zf.read(info)
    else:
        yield PLAIN_PART, path.read_bytes()


def _temp_path(original: Path) -> Path:
    """Generate temporary filename next to the original"""
    return original.parent / f".__tmp_update__{uuid.uuid4().hex[:8]}__{original.name}"


def write_atomic(path: Path, data: bytes) -> None:
    """Write through a temporary file so a failure never leaves a truncated artifact"""
    temp = _temp_path(path)
    try:
        temp.write_bytes(data)
        os.replace(temp, path)
    finally:
        if temp.exists():
            temp.unlink()


def rewrite_parts(path: Path, transform: Callable[[str, bytes], Optional[bytes]]) -> List[str]:
    """
    Rewrite the text parts of an artifact

    Args:
        path: Artifact path
        transform: Called with (part name, content), returns new content or
            None to leave the part unchanged

    Returns:
        Names of the parts that changed (empty list if nothing was written)
    """
    path = Path(path)

    if not is_package(path):
        data = path.read_bytes()
        new_data = transform(PLAIN_PART, data)
        if new_data is None or new_data == data:
            return []
        write_atomic(path, new_data)
        return [PLAIN_PART]

    changed: List[str] = []
    temp = _temp_path(path)
    try:
        with zipfile.ZipFile(path) as src, zipfile.ZipFile(temp, "w") as dst:
            dst.comment = src.comment
            for info in src.infolist():
                data = src.read(info)
                if not info.is_dir() and _is_text_part(info.filename):
                    new_data = transform(info.filename, data)
                    if new_data is not None and new_data != data:
                        data = new_data
                        changed.append(info.filename)
                # Reusing the ZipInfo keeps name, date and compression type
                dst.writestr(info, data)
        if changed:
            os.replace(temp, path)
    finally:
        if temp.exists():
            temp.unlink()

    return changed
