"""
cli_entry.py - CLI Entry Point

Supports:
- Command-line argument mode
- Interactive mode
"""

import argparse
import logging
import sys
from pathlib import Path

from prj_core import (
    ProjectError, ConfigError, RenamePlan,
    open_project, list_project_files, find_postfix_files, list_file_types,
    find_references, plan_postfix_removal, execute_plan, setup_tools,
    load_options, setup_logging,
)

from .cli_interactive import interactive_mode


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser"""
    parser = argparse.ArgumentParser(
        prog="prj_rename",
        description="Remove a postfix from MATLAB project filenames and update all references",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  python main.py

  # List project files carrying a postfix
  python main.py scan ./MyProject --postfix "_v1"

  # Files referencing a model
  python main.py refs ./MyProject --file "controller_v1.slx"

  # Remove the postfix (preview first)
  python main.py remove ./MyProject --postfix "_v1" --dry-run
  python main.py remove ./MyProject --postfix "_v1" --yes
"""
    )

    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", type=str, help="Also write log to this file")

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    # scan subcommand
    scan_parser = subparsers.add_parser("scan", help="List supported project files")
    scan_parser.add_argument("project", type=str, help="Project directory")
    scan_parser.add_argument("--postfix", "-p", type=str, default="", help="Only files carrying this postfix")

    # refs subcommand
    refs_parser = subparsers.add_parser("refs", help="List files referencing a file")
    refs_parser.add_argument("project", type=str, help="Project directory")
    refs_parser.add_argument("--file", "-f", type=str, required=True, help="Referenced filename (e.g., lib_v1.slx)")

    # remove subcommand
    remove_parser = subparsers.add_parser("remove", help="Remove postfix and update references")
    remove_parser.add_argument("project", type=str, help="Project directory")
    remove_parser.add_argument("--postfix", "-p", type=str, required=True, help="Postfix to remove (e.g., _v1)")
    remove_parser.add_argument("--dry-run", "-d", action="store_true", help="Preview only, do not execute")
    remove_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    remove_parser.add_argument("--no-git", action="store_true", help="Do not track changes in git")
    remove_parser.add_argument("--matlab-linker", action="store_true",
                               help="Update link sets through a batch MATLAB session")
    remove_parser.add_argument("--matlab", type=str, help="MATLAB executable (default: matlab)")
    remove_parser.add_argument("--log-dir", type=str, help="Save JSON plan/result logs here")

    return parser


def print_plan(plan: RenamePlan, base: Path, limit: int = 20) -> None:
    """Print rename operations with their reference counts"""
    print(f"Will perform {plan.total_count} rename operations:")
    print("-" * 80)
    for op in plan.valid_ops[:limit]:
        refs = f"{len(op.references)} refs"
        print(f"  {op.old_name:<35} -> {op.new_name:<30} {refs:>8}")
        for ref in op.references:
            print(f"      {_relative(ref, base)}")
    if len(plan.valid_ops) > limit:
        print(f"  ... and {len(plan.valid_ops) - limit} more operations")
    print("-" * 80)


def _relative(path: Path, base: Path) -> str:
    try:
        return str(path.relative_to(base))
    except ValueError:
        return str(path)


def cmd_scan(args):
    """Handle scan command"""
    project = open_project(Path(args.project))

    print(f"Project: {project.name} ({project.root})")
    files = list_project_files(project)
    if args.postfix:
        files = find_postfix_files(files, args.postfix)
        print(f"Postfix: {args.postfix}")
    print()

    if not files:
        print("No matching files found")
        return 0

    print(f"Found {len(files)} files:")
    print("-" * 80)
    for f in files:
        print(f"  {f.relative_to(project.root):<60} {f.file_type.value:>18}")
    print("-" * 80)
    for file_type, count in list_file_types(files).items():
        print(f"  {file_type.value:<22} {count:>5}")

    return 0


def cmd_refs(args):
    """Handle refs command"""
    project = open_project(Path(args.project))
    files = list_project_files(project)

    target = next((f for f in files if f.name == args.file), None)
    exclude = target.path if target else None

    refs = find_references(files, args.file, exclude=exclude)
    if not refs:
        print(f"No files reference {args.file}")
        return 0

    print(f"{len(refs)} files reference {args.file}:")
    for ref in refs:
        print(f"  {_relative(ref, project.root)}")
    return 0


def cmd_remove(args):
    """Handle remove command"""
    project = open_project(Path(args.project))
    options = load_options(
        project.root,
        use_git=False if args.no_git else None,
        use_matlab_linker=True if args.matlab_linker else None,
        matlab_executable=args.matlab,
        dry_run=True if args.dry_run else None,
        log_dir=args.log_dir,
    )

    print(f"Project: {project.name} ({project.root})")
    files = list_project_files(project)
    print(f"Found {len(files)} relevant files")

    # Generate plan
    plan = plan_postfix_removal(files, args.postfix, options, preview_references=True)

    if plan.errors:
        print("Errors:")
        for err in plan.errors:
            print(f"  - {err}")
        return 1

    if plan.warnings:
        print("Warnings:")
        for warn in plan.warnings:
            print(f"  - {warn}")

    if not plan.valid_ops:
        print("No files need renaming")
        return 0

    # Show preview
    print()
    print_plan(plan, project.root)

    if options.dry_run:
        print("\n[Preview mode] Will not actually execute")
        return 0

    if not args.yes:
        confirm = input("\nConfirm execution? (y/N): ").strip().lower()
        if confirm != 'y':
            print("Cancelled")
            return 0

    # Execute
    print("\nExecuting...")
    vcs, linker = setup_tools(project, options)
    result = execute_plan(project, plan, vcs=vcs, linker=linker)
    print(result.summary())

    return 0 if result.ok else 1


def main(argv=None):
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    if args.command is None:
        # No subcommand, enter interactive mode
        return interactive_mode()

    commands = {
        "scan": cmd_scan,
        "refs": cmd_refs,
        "remove": cmd_remove,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except (ProjectError, ConfigError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
