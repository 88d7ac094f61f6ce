"""
cli_interactive.py - Interactive CLI

Provides a menu-style interactive interface
"""

import os
import sys
from pathlib import Path
from typing import Optional

from prj_core import (
    MatlabProject, ProjectError, ConfigError,
    open_project, list_project_files, find_postfix_files, list_file_types,
    find_references, plan_postfix_removal, execute_plan, setup_tools, load_options,
)


def clear_screen():
    """Clear screen"""
    os.system('cls' if os.name == 'nt' else 'clear')


def print_header(title: str):
    """Print header"""
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print()


def input_project(prompt: str = "Please enter project directory") -> Optional[MatlabProject]:
    """Input directory and open the project in it"""
    while True:
        path_str = input(f"{prompt} (q to return): ").strip()
        if path_str.lower() == 'q':
            return None

        try:
            return open_project(Path(path_str))
        except ProjectError as e:
            print(f"Error: {e}")


def input_bool(prompt: str, default: bool = False) -> bool:
    """Input boolean value"""
    default_str = "Y/n" if default else "y/N"
    value = input(f"{prompt} ({default_str}): ").strip().lower()
    if not value:
        return default
    return value == 'y'


def _relative(path: Path, base: Path) -> str:
    try:
        return str(path.relative_to(base))
    except ValueError:
        return str(path)


def menu_scan():
    """Scan project menu"""
    print_header("Scan Project")

    project = input_project()
    if project is None:
        return

    postfix = input("Postfix (leave empty to list all files): ").strip()

    files = list_project_files(project)
    if postfix:
        files = find_postfix_files(files, postfix)

    if not files:
        print("No matching files found")
        input("Press Enter to return...")
        return

    print(f"\nFound {len(files)} files:")
    print("-" * 80)
    for i, f in enumerate(files):
        if i >= 50:
            print(f"... and {len(files) - 50} more files")
            break
        print(f"  {f.relative_to(project.root):<55} {f.file_type.value:>20}")
    print("-" * 80)
    for file_type, count in list_file_types(files).items():
        print(f"  {file_type.value:<22} {count:>5}")

    input("\nPress Enter to return...")


def menu_references():
    """Find references menu"""
    print_header("Find References")

    project = input_project()
    if project is None:
        return

    filename = input("Filename (e.g., lib_v1.slx): ").strip()
    if not filename:
        print("Filename cannot be empty")
        input("Press Enter to return...")
        return

    print(f"\nSearching {project.name} ...")
    files = list_project_files(project)
    target = next((f for f in files if f.name == filename), None)
    refs = find_references(files, filename, exclude=target.path if target else None)

    if not refs:
        print(f"No files reference {filename}")
    else:
        print(f"\n{len(refs)} files reference {filename}:")
        for ref in refs:
            print(f"  - {_relative(ref, project.root)}")

    input("\nPress Enter to return...")


def menu_remove_postfix():
    """Remove postfix menu"""
    print_header("Remove Postfix")

    project = input_project()
    if project is None:
        return

    postfix = input("Postfix to remove (e.g., _v1): ").strip()
    if not postfix:
        print("Postfix cannot be empty")
        input("Press Enter to return...")
        return

    use_git = input_bool("Track changes in git", default=True)

    try:
        options = load_options(project.root, use_git=use_git)
    except ConfigError as e:
        print(f"Error: {e}")
        input("Press Enter to return...")
        return

    # Generate plan
    print("\nGenerating rename plan...")
    files = list_project_files(project)
    plan = plan_postfix_removal(files, postfix, options, preview_references=True)

    if plan.errors:
        print("\nErrors:")
        for err in plan.errors:
            print(f"  - {err}")
        input("Press Enter to return...")
        return

    if not plan.valid_ops:
        print("No files need renaming")
        input("Press Enter to return...")
        return

    # Display plan
    print(f"\nWill perform {plan.total_count} rename operations:")
    print("-" * 70)
    for op in plan.valid_ops[:15]:
        print(f"  {op.old_name:<30} -> {op.new_name}  ({len(op.references)} refs)")
    if len(plan.valid_ops) > 15:
        print(f"  ... and {len(plan.valid_ops) - 15} more operations")
    print("-" * 70)

    if plan.skipped:
        print(f"Note: {len(plan.skipped)} files skipped:")
        for op in plan.skipped:
            print(f"  - {op.old_name}: {op.note}")

    # Confirm execution
    print()
    if not input_bool("Confirm execution", default=False):
        print("Cancelled")
        input("Press Enter to return...")
        return

    # Execute
    print("\nExecuting...")
    vcs, linker = setup_tools(project, options)
    result = execute_plan(project, plan, vcs=vcs, linker=linker)
    print()
    print(result.summary())

    input("\nPress Enter to return...")


def interactive_mode() -> int:
    """Interactive mode main loop"""
    while True:
        clear_screen()
        print_header("Project Postfix Remover")

        print("Please select function:")
        print()
        print("  1. Scan project files")
        print("  2. Find references to a file")
        print("  3. Remove postfix and update references")
        print()
        print("  q. Exit")
        print()

        choice = input("Please select (1/2/3/q): ").strip().lower()

        if choice == 'q':
            print("Goodbye!")
            return 0
        elif choice == '1':
            menu_scan()
        elif choice == '2':
            menu_references()
        elif choice == '3':
            menu_remove_postfix()
        else:
            print("Invalid choice")
            input("Press Enter to continue...")


if __name__ == "__main__":
    sys.exit(interactive_mode())
