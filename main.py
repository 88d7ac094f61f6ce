#!/usr/bin/env python3
"""
Project Postfix Remover - Main Entry

Supports:
- CLI mode (default startup)
- GUI mode (--gui or -g parameter)

Usage:
    python main.py                               # CLI interactive mode
    python main.py scan ./MyProject -p _v1       # CLI command mode
    python main.py remove ./MyProject -p _v1 -d  # CLI command mode
    python main.py --gui                         # GUI mode
    python main.py -g                            # GUI mode
"""

import sys
from pathlib import Path

# Ensure the current directory is in the Python path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    """Main entry point"""
    # Check if GUI should be started
    if "--gui" in sys.argv or "-g" in sys.argv:
        try:
            from prj_gui import main as gui_main
        except ImportError as e:
            print("Error: Unable to start GUI, please ensure PySide6 is installed")
            print(f"Detailed error: {e}")
            print("\nInstall command: pip install PySide6")
            print("\nTo use CLI mode, run:")
            print("    python main.py")
            return 1
        return gui_main()

    # Default to CLI
    from prj_cli import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
