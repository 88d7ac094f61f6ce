import json

import pytest

from prj_core import (
    MatlabProject, ProjectError, RenameOptions, execute_plan, find_references,
    list_project_files, open_project, plan_postfix_removal, remove_file_postfix, setup_tools,
)

from conftest import (
    read_part, write_corrupt_package, write_package, write_text, CONTROLLER_ROOT, EMPTY_ROOT, RUN_SCRIPT,
)

NO_GIT = RenameOptions(use_git=False)

RENAMED = {
    "models/lib_v1.slx": "models/lib.slx",
    "models/plant_v1.slx": "models/plant.slx",
    "scripts/init_v1.m": "scripts/init.m",
}


class RejectingProject(MatlabProject):
    """Project that refuses to track one filename"""

    rejected = "lib.slx"

    def add_file(self, path):
        if self._absolute(path).name == self.rejected:
            raise ProjectError(f"Cannot add {path}: rejected")
        super().add_file(path)


def _snapshot(root):
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in root.rglob("*")
        if p.is_file() and "resources" not in p.relative_to(root).parts
    }


def test_remove_postfix_renames_and_updates(project_root):
    result = remove_file_postfix("_v1", project_root, NO_GIT)

    assert result.ok
    assert result.success_count == 3
    assert result.project_saved

    for old, new in RENAMED.items():
        assert not (project_root / old).exists()
        assert (project_root / new).is_file()

    assert '<P Name="SourceBlock">lib/Gain</P>' in read_part(project_root / "models" / "controller.slx",
                                                            "simulink/systems/system_root.xml")
    assert (project_root / "scripts" / "init.m").read_text() == "load_system('lib');\nx = 1;\n"
    assert (project_root / "scripts" / "run_all.m").read_text() == \
        "init;\nopen_system('controller.slx');\nsim('plant');\n"
    link_set = (project_root / "links" / "controller~slx.slmx").read_text()
    assert 'ModelName="plant" ModelFile="plant.slx"' in link_set
    assert read_part(project_root / "data" / "params.sldd", "data/chunk0.xml") == \
        '<Entry Name="LibName">lib</Entry>\n'


def test_project_tracks_new_names_only(project_root):
    remove_file_postfix("_v1", project_root, NO_GIT)

    reopened = open_project(project_root)
    for old, new in RENAMED.items():
        assert reopened.contains(new)
        assert not reopened.contains(old)
    assert len(reopened.files) == 9


def test_no_stale_references_after_rename(project_root):
    remove_file_postfix("_v1", project_root, NO_GIT)

    files = list_project_files(open_project(project_root))
    for old in RENAMED:
        old_name = old.rsplit("/", 1)[-1]
        assert find_references(files, old_name) == []


def test_unaffected_files_unchanged(project_root):
    untouched = ["docs/table.xlsx", "readme.txt", "Demo.prj"]
    before = {name: (project_root / name).read_bytes() for name in untouched}

    remove_file_postfix("_v1", project_root, NO_GIT)

    for name in untouched:
        assert (project_root / name).read_bytes() == before[name]


def test_rerun_is_noop(project_root):
    remove_file_postfix("_v1", project_root, NO_GIT)
    before = _snapshot(project_root)

    result = remove_file_postfix("_v1", project_root, NO_GIT)

    assert result.ok
    assert result.success_count == 0
    assert _snapshot(project_root) == before


def test_records_updated_references(project_root):
    result = remove_file_postfix("_v1", project_root, NO_GIT)
    updated = {r.old_path.name: sorted(p.name for p in r.updated) for r in result.success}
    assert updated["lib_v1.slx"] == ["controller.slx", "init_v1.m", "params.sldd"]
    assert updated["plant_v1.slx"] == ["controller.slx", "controller~slx.slmx", "run_all.m"]
    assert updated["init_v1.m"] == ["run_all.m"]
    assert result.stale_count == 0


def test_dry_run_changes_nothing(project, project_root):
    before = _snapshot(project_root)
    plan = plan_postfix_removal(list_project_files(project), "_v1", RenameOptions(use_git=False, dry_run=True))

    result = execute_plan(project, plan)

    assert result.dry_run
    assert result.success_count == 3
    assert not result.project_saved
    assert _snapshot(project_root) == before
    assert sorted(p.name for p in plan.valid_ops[0].references) == ["controller.slx", "init_v1.m", "params.sldd"]
    assert "Preview Result:" in result.summary()


def test_plan_errors_stop_execution(project, project_root):
    before = _snapshot(project_root)
    plan = plan_postfix_removal(list_project_files(project), "", NO_GIT)

    result = execute_plan(project, plan)

    assert not result.ok
    assert result.errors == ["Postfix cannot be empty"]
    assert _snapshot(project_root) == before


def test_failed_add_rolls_back(project_root):
    project = RejectingProject(project_root)
    plan = plan_postfix_removal(list_project_files(project), "_v1", RenameOptions(use_git=False, add_retries=2))

    result = execute_plan(project, plan)

    assert not result.ok
    assert [op.old_name for op, _ in result.failed] == ["lib_v1.slx"]
    assert "after 3 attempts" in result.failed[0][1]

    # Failed file restored on disk and in the project
    assert (project_root / "models" / "lib_v1.slx").is_file()
    assert not (project_root / "models" / "lib.slx").exists()
    reopened = open_project(project_root)
    assert reopened.contains("models/lib_v1.slx")
    assert not reopened.contains("models/lib.slx")

    # Its references were never rewritten
    controller = read_part(project_root / "models" / "controller.slx", "simulink/systems/system_root.xml")
    assert "lib_v1/Gain" in controller

    # Other renames went ahead
    assert result.success_count == 2
    assert reopened.contains("models/plant.slx")
    assert (project_root / "scripts" / "run_all.m").read_text() == "init;\nopen_system('controller.slx');\nsim('plant');\n"


def test_destination_created_after_planning(project, project_root):
    plan = plan_postfix_removal(list_project_files(project), "_v1", NO_GIT)
    (project_root / "scripts" / "init.m").write_text("% someone else\n")

    result = execute_plan(project, plan)

    assert [op.old_name for op, _ in result.failed] == ["init_v1.m"]
    assert "Destination already exists" in result.failed[0][1]
    assert (project_root / "scripts" / "init.m").read_text() == "% someone else\n"
    assert (project_root / "scripts" / "run_all.m").read_text() != RUN_SCRIPT
    assert project.contains("scripts/init_v1.m")


def test_progress_callback(project):
    seen = []
    plan = plan_postfix_removal(list_project_files(project), "_v1", NO_GIT)
    execute_plan(project, plan, progress_callback=lambda i, total, msg: seen.append((i, total, msg)))
    assert seen == [
        (1, 3, "lib_v1.slx -> lib.slx"),
        (2, 3, "plant_v1.slx -> plant.slx"),
        (3, 3, "init_v1.m -> init.m"),
    ]


def test_json_logs(project, tmp_path):
    log_dir = tmp_path / "logs"
    plan = plan_postfix_removal(list_project_files(project), "_v1", NO_GIT)

    execute_plan(project, plan, log_dir=log_dir)

    plan_logs = list(log_dir.glob("rename_plan_*.json"))
    result_logs = list(log_dir.glob("rename_result_*.json"))
    assert len(plan_logs) == 1 and len(result_logs) == 1
    data = json.loads(result_logs[0].read_text(encoding="utf-8"))
    assert data["success_count"] == 3
    assert data["project_saved"] is True


def test_remove_postfix_without_project(tmp_path):
    with pytest.raises(ProjectError):
        remove_file_postfix("_v1", tmp_path, NO_GIT)


def test_setup_tools_without_git(project):
    vcs, linker = setup_tools(project, RenameOptions(use_git=False))
    assert vcs is None
    assert linker is None


def test_setup_tools_linker(project):
    _, linker = setup_tools(project, RenameOptions(use_git=False, use_matlab_linker=True, matlab_executable="mymatlab"))
    assert linker.executable == "mymatlab"
    assert linker.cwd == project.root


def test_summary_lists_failures(project_root):
    project = RejectingProject(project_root)
    plan = plan_postfix_removal(list_project_files(project), "_v1", NO_GIT)
    summary = execute_plan(project, plan).summary()
    assert "Failure Details:" in summary
    assert "lib_v1.slx -> lib.slx" in summary


def test_unmatched_postfix_changes_nothing(project_root):
    result = remove_file_postfix("_v9", project_root, NO_GIT)
    assert result.success_count == 0
    assert read_part(project_root / "models" / "controller.slx", "simulink/systems/system_root.xml") == CONTROLLER_ROOT


def test_names_with_other_extensions_are_kept(tmp_path):
    root = tmp_path / "Ctrl"
    write_text(root / "Ctrl.prj", '<?xml version="1.0" encoding="UTF-8"?>\n<MATLABProject name="Ctrl"/>\n')
    tracked = [
        write_package(root / "ctrl_v1.slx", {"simulink/systems/system_root.xml": EMPTY_ROOT}),
        write_package(root / "ctrl_v1.sldd", {"data/chunk0.xml": "<Entry/>"}),
        write_package(root / "ctrl.sldd", {"data/chunk0.xml": "<Entry/>"}),
        write_text(root / "run.m", "open_system('ctrl_v1.slx');\nopen('ctrl_v1.sldd');\nload('ctrl_v1.mat');\n"),
    ]
    project = MatlabProject(root)
    for path in tracked:
        project.add_file(path)
    project.save()

    result = remove_file_postfix("_v1", root, NO_GIT)

    assert result.success_count == 1
    assert result.skipped_count == 1
    assert (root / "ctrl.slx").is_file()
    assert (root / "ctrl_v1.sldd").is_file()
    assert (root / "run.m").read_text() == "open_system('ctrl.slx');\nopen('ctrl_v1.sldd');\nload('ctrl_v1.mat');\n"


def test_corrupt_package_does_not_stop_run(project_root):
    project = open_project(project_root)
    project.add_file(write_corrupt_package(project_root / "models" / "broken.slx"))
    project.save()

    result = remove_file_postfix("_v1", project_root, NO_GIT)

    assert result.ok
    assert result.success_count == 3
    assert result.stale_count == 0
    assert (project_root / "models" / "lib.slx").is_file()


def test_unrewritten_mention_is_stale(project_root, caplog):
    notes = write_text(project_root / "scripts" / "notes.m", "x = lib_v10;\n")
    project = open_project(project_root)
    project.add_file(notes)
    project.save()

    with caplog.at_level("WARNING", logger="prj_core"):
        result = remove_file_postfix("_v1", project_root, NO_GIT)

    assert result.ok
    lib = next(r for r in result.success if r.old_path.name == "lib_v1.slx")
    assert [p.name for p in lib.stale] == ["notes.m"]
    assert "notes.m" not in [p.name for p in lib.updated]
    assert notes.read_text() == "x = lib_v10;\n"
    assert "nothing was rewritten" in caplog.text
