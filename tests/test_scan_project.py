from pathlib import Path

import pytest

from prj_core import FileType, ProjectFile, file_type_for, list_project_files, find_postfix_files, list_file_types


def test_file_type_for():
    assert file_type_for(Path("a.SLX")) is FileType.MODEL
    assert file_type_for(Path("a.mdl")) is FileType.MODEL
    assert file_type_for(Path("a.lib")) is FileType.LIBRARY
    assert file_type_for(Path("a.slmx")) is FileType.MODEL_REFERENCE_LINK
    assert file_type_for(Path("a.txt")) is None


def test_project_file_rejects_unsupported():
    with pytest.raises(ValueError):
        ProjectFile.from_path(Path("notes.txt"))


def test_list_project_files_uses_allow_list(project):
    files = list_project_files(project)
    names = [f.name for f in files]
    assert "readme.txt" not in names
    assert len(files) == 8
    # Sorted by path
    assert names[0] == "params.sldd"


def test_list_project_files_with_filter(project):
    files = list_project_files(project, file_filter=lambda p: p.suffix == ".m")
    assert [f.name for f in files] == ["init_v1.m", "run_all.m"]


def test_list_project_files_reports_progress(project):
    seen = []
    list_project_files(project, progress_callback=seen.append)
    assert len(seen) == 8


def test_find_postfix_files_is_case_sensitive(project):
    files = list_project_files(project)
    assert sorted(f.name for f in find_postfix_files(files, "_v1")) == ["init_v1.m", "lib_v1.slx", "plant_v1.slx"]
    assert find_postfix_files(files, "_V1") == []
    assert find_postfix_files(files, "") == []


def test_list_file_types(project):
    counts = list_file_types(list_project_files(project))
    assert counts[FileType.MODEL] == 3
    assert counts[FileType.SCRIPT] == 2
    assert FileType.LIBRARY not in counts
    assert list(counts)[0] is FileType.MODEL
