"""
prj_core - Project Postfix Remover Core Module

Provides project access, file enumeration, reference discovery and update,
rename planning and execution
"""

from .errors import (
    RenameToolError,
    ProjectError,
    RenameError,
    ReferenceUpdateError,
    ConfigError,
)

from .models import (
    FileType,
    SUPPORTED_EXTENSIONS,
    file_type_for,
    ProjectFile,
    RenameOp,
    RenamePlan,
    RenameOptions,
    RenameRecord,
)

from .project import (
    Project,
    MatlabProject,
    open_project,
    current_project,
)

from .scan_project import (
    list_project_files,
    find_postfix_files,
    list_file_types,
)

from .text_match import (
    contains,
    replace_text,
    remove_postfix,
    replace_filename,
    is_valid_filename,
)

from .references import (
    ReferenceHandler,
    UpdateOutcome,
    register_handler,
    handler_for,
    find_references,
    update_references,
)

from .vcs import (
    GitAdapter,
    GitResult,
)

from .matlab_linker import MatlabLinker

from .plan_rename import (
    plan_postfix_removal,
    validate_plan,
)

from .exec_rename import (
    execute_plan,
    remove_file_postfix,
    setup_tools,
    RenameResult,
)

from .config import (
    CONFIG_FILENAME,
    load_options,
)

from .logging_config import setup_logging

__all__ = [
    # Errors
    "RenameToolError",
    "ProjectError",
    "RenameError",
    "ReferenceUpdateError",
    "ConfigError",

    # Data models
    "FileType",
    "SUPPORTED_EXTENSIONS",
    "file_type_for",
    "ProjectFile",
    "RenameOp",
    "RenamePlan",
    "RenameOptions",
    "RenameRecord",
    "RenameResult",

    # Project
    "Project",
    "MatlabProject",
    "open_project",
    "current_project",

    # Scanning
    "list_project_files",
    "find_postfix_files",
    "list_file_types",

    # Text processing
    "contains",
    "replace_text",
    "remove_postfix",
    "replace_filename",
    "is_valid_filename",

    # References
    "ReferenceHandler",
    "UpdateOutcome",
    "register_handler",
    "handler_for",
    "find_references",
    "update_references",

    # External tools
    "GitAdapter",
    "GitResult",
    "MatlabLinker",

    # Planning
    "plan_postfix_removal",
    "validate_plan",

    # Execution
    "execute_plan",
    "remove_file_postfix",
    "setup_tools",

    # Configuration
    "CONFIG_FILENAME",
    "load_options",
    "setup_logging",
]
