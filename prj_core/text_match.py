"""
text_match.py - Text Matching Tools

Provides string matching, replacement and filename validation
"""

from typing import Optional
import re


def contains(text: str, keyword: str, case_sensitive: bool = True) -> bool:
    """
    Check if text contains keyword

    Args:
        text: Text to check
        keyword: Keyword
        case_sensitive: Whether case-sensitive

    Returns:
        Whether contains
    """
    if not keyword:
        return True

    if case_sensitive:
        return keyword in text
    else:
        return keyword.lower() in text.lower()


def replace_text(text: str, old: str, new: str, case_sensitive: bool = True) -> str:
    """
    Replace string in text

    Args:
        text: Original text
        old: String to replace
        new: Replacement string
        case_sensitive: Whether case-sensitive

    Returns:
        Replaced text
    """
    if not old:
        return text

    if case_sensitive:
        return text.replace(old, new)
    else:
        # Case-insensitive replacement
        pattern = re.compile(re.escape(old), re.IGNORECASE)
        return pattern.sub(lambda m: new, text)


def remove_postfix(stem: str, postfix: str) -> str:
    """Remove every occurrence of postfix from a base filename"""
    return replace_text(stem, postfix, "")


def _identifier_pattern(word: str, case_sensitive: bool = True) -> "re.Pattern[str]":
    flags = 0 if case_sensitive else re.IGNORECASE
    # Not followed by an extension: "lib_v1.mat" names another file
    return re.compile(r"(?<![A-Za-z0-9_])" + re.escape(word) + r"(?![A-Za-z0-9_])(?!\.[A-Za-z])", flags)


def replace_filename(text: str, old_name: str, new_name: str, case_sensitive: bool = True) -> str:
    """
    Replace a filename inside text

    The full name (with extension) is replaced wherever it occurs, the base
    name only where it stands as a whole identifier without an extension, so
    "lib_v1" is rewritten in "lib_v1/Gain" but not in "lib_v10" or "lib_v1.mat".

    Args:
        text: Original text
        old_name: Old filename (e.g., lib_v1.slx)
        new_name: New filename (e.g., lib.slx)
        case_sensitive: Whether case-sensitive

    Returns:
        Replaced text
    """
    text = replace_text(text, old_name, new_name, case_sensitive)

    old_base = old_name.rsplit(".", 1)[0] if "." in old_name else old_name
    new_base = new_name.rsplit(".", 1)[0] if "." in new_name else new_name
    if old_base and old_base != new_base:
        # Lambda keeps backslashes in the new name literal
        text = _identifier_pattern(old_base, case_sensitive).sub(lambda m: new_base, text)

    return text


def is_valid_filename(name: str) -> tuple[bool, Optional[str]]:
    """
    Check if filename is valid (mainly for Windows)

    Args:
        name: Filename

    Returns:
        (is_valid, error_reason)
    """
    if not name:
        return False, "Filename cannot be empty"

    # Windows invalid characters
    invalid_chars = '<>:"/\\|?*'
    for char in invalid_chars:
        if char in name:
            return False, f"Filename contains invalid character: {char}"

    # Trailing space or dot
    if name.endswith(' ') or name.endswith('.'):
        return False, "Filename cannot end with space or dot"

    # Nothing left before the extension
    if name.startswith('.') and name.count('.') == 1:
        return False, "Filename has no base name"

    # Windows reserved names
    reserved_names = {
        'CON', 'PRN', 'AUX', 'NUL',
        'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
        'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
    }
    name_upper = name.upper().split('.')[0]
    if name_upper in reserved_names:
        return False, f"Filename is a Windows reserved name: {name_upper}"

    if len(name) > 255:
        return False, "Filename exceeds 255 characters"

    return True, None


def is_valid_model_name(stem: str) -> tuple[bool, Optional[str]]:
    """
    Check if a base name can be loaded as a Simulink model or MATLAB function

    Args:
        stem: Filename without extension

    Returns:
        (is_valid, error_reason)
    """
    if not re.fullmatch(r"[A-Za-z][A-Za-z0-9_]*", stem):
        return False, f"Not a valid MATLAB identifier: {stem!r}"
    if len(stem) > 63:
        return False, "Name exceeds 63 characters"
    return True, None
