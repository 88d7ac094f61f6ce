"""
prj_gui - PySide6 GUI for the Project Postfix Remover
"""

from .gui_entry import main

__all__ = ["main"]
