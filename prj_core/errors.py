"""
errors.py - Exception Types

All errors raised by the rename tool derive from RenameToolError
"""


class RenameToolError(Exception):
    """Base class for rename tool errors"""


class ProjectError(RenameToolError):
    """Project could not be opened, read or modified"""


class RenameError(RenameToolError):
    """A single file could not be renamed"""


class ReferenceUpdateError(RenameToolError):
    """References inside a file could not be updated"""


class ConfigError(RenameToolError):
    """Invalid configuration file or option"""
