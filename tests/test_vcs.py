import shutil
import subprocess

import pytest

from prj_core import (
    GitAdapter, MatlabLinker, ReferenceUpdateError, RenameOptions,
    open_project, remove_file_postfix, setup_tools,
)

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd, *args):
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


@pytest.fixture
def git_project(project_root):
    _git(project_root, "init")
    _git(project_root, "config", "user.email", "dev@example.com")
    _git(project_root, "config", "user.name", "Dev")
    _git(project_root, "add", "-A")
    _git(project_root, "-c", "commit.gpgsign=false", "commit", "-m", "Initial project")
    return project_root


def test_missing_git_executable(tmp_path):
    git = GitAdapter(tmp_path, executable="no-such-git-binary")
    result = git.add(tmp_path / "a.m")
    assert result.returncode == 127
    assert not result.ok
    assert not git.is_available()


@needs_git
def test_not_a_work_tree(tmp_path):
    assert not GitAdapter(tmp_path).is_available()


@needs_git
def test_move_and_status(git_project):
    git = GitAdapter(git_project)
    assert git.is_available()
    assert git.status_short().output == ""

    result = git.move(git_project / "scripts" / "init_v1.m", git_project / "scripts" / "init.m")
    assert result.ok
    assert (git_project / "scripts" / "init.m").is_file()
    assert "init.m" in git.status_short().output


@needs_git
def test_setup_tools_finds_work_tree(git_project):
    vcs, _ = setup_tools(open_project(git_project), RenameOptions())
    assert vcs is not None
    # Dry runs never touch git
    vcs, _ = setup_tools(open_project(git_project), RenameOptions(dry_run=True))
    assert vcs is None


@needs_git
def test_rename_tracked_in_git(git_project):
    result = remove_file_postfix("_v1", git_project, RenameOptions(use_git=True))

    assert result.ok
    assert result.git_status
    staged = subprocess.run(
        ["git", "diff", "--cached", "--name-status"],
        cwd=git_project, capture_output=True, text=True, check=True,
    ).stdout
    assert "models/lib.slx" in staged
    assert "scripts/run_all.m" in staged
    assert "models/controller.slx" in staged


def test_linker_command_quotes_arguments(tmp_path):
    linker = MatlabLinker(tmp_path, executable="matlab")
    assert linker.build_command("it's_v1.slx", "it's.slx") == [
        "matlab", "-batch", "update_req_link_set_files('it''s_v1', 'it''s_v1.slx', 'it''s.slx')",
    ]


def test_linker_without_matlab(tmp_path):
    linker = MatlabLinker(tmp_path, executable="no-such-matlab-binary")
    assert not linker.is_available()
    with pytest.raises(ReferenceUpdateError):
        linker.update_link_set("plant_v1.slx", "plant.slx")
