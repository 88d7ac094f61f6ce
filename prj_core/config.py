"""
config.py - Option Loading

Options come from RenameOptions defaults, then an optional per-project
JSON file, then explicit overrides (command-line flags).

Example .prjrename.json:
    {
        "use_git": true,
        "add_retries": 1,
        "use_matlab_linker": false,
        "log_dir": "work/rename_logs"
    }
"""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Set
import json
import logging

from .errors import ConfigError
from .models import RenameOptions

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".prjrename.json"


def _option_names() -> Set[str]:
    return {f.name for f in fields(RenameOptions)}


def read_config_file(path: Path) -> Dict[str, Any]:
    """
    Read and validate a JSON option file

    Raises:
        ConfigError: Unreadable file, invalid JSON, unknown or mistyped key
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be an object")

    known = _option_names()
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ConfigError(f"{path}: unknown option(s): {', '.join(unknown)}")

    for key, value in data.items():
        if key in ("use_git", "use_matlab_linker", "dry_run", "case_insensitive_detect"):
            if not isinstance(value, bool):
                raise ConfigError(f"{path}: {key} must be true or false")
        elif key == "add_retries":
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"{path}: add_retries must be a non-negative integer")
        elif value is not None and not isinstance(value, str):
            raise ConfigError(f"{path}: {key} must be a string")

    return data


def load_options(project_root: Optional[Path] = None, **overrides: Any) -> RenameOptions:
    """
    Build RenameOptions for a project

    Args:
        project_root: Directory holding .prjrename.json (skipped if None)
        **overrides: Values that win over the file; None means "not given"

    Returns:
        Options
    """
    values: Dict[str, Any] = {}

    if project_root is not None:
        config_file = Path(project_root) / CONFIG_FILENAME
        if config_file.is_file():
            values.update(read_config_file(config_file))
            logger.info("Loaded options from %s", config_file)

    known = _option_names()
    for key, value in overrides.items():
        if key not in known:
            raise ConfigError(f"Unknown option: {key}")
        if value is not None:
            values[key] = value

    log_dir = values.get("log_dir")
    if log_dir is not None:
        log_dir = Path(log_dir)
        if not log_dir.is_absolute() and project_root is not None:
            log_dir = Path(project_root) / log_dir
        values["log_dir"] = log_dir

    return RenameOptions(**values)
