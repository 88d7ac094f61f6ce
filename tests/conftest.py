"""Shared fixtures: a small MATLAB project on disk"""

import logging
import zipfile
from pathlib import Path

import pytest

from prj_core import MatlabProject, open_project
from prj_core.logging_config import LOGGER_NAMES

CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/></Types>'
)

CONTROLLER_ROOT = """<?xml version="1.0" encoding="utf-8"?>
<System>
  <Block BlockType="Reference" Name="Gain" SID="1">
    <P Name="SourceBlock">lib_v1/Gain</P>
    <P Name="SourceType">Gain</P>
  </Block>
  <Block BlockType="ModelReference" Name="Plant" SID="2">
    <P Name="ModelName">plant_v1</P>
  </Block>
</System>
"""

EMPTY_ROOT = """<?xml version="1.0" encoding="utf-8"?>
<System>
  <Block BlockType="Inport" Name="In1" SID="1"/>
</System>
"""

LINK_SET = """<?xml version="1.0" encoding="UTF-8"?>
<LinkSet>
  <modelReference ModelName="plant_v1" ModelFile="plant_v1.slx" SID="2"/>
</LinkSet>
"""

INIT_SCRIPT = "load_system('lib_v1');\nx = 1;\n"
RUN_SCRIPT = "init_v1;\nopen_system('controller.slx');\nsim('plant_v1');\n"
DICTIONARY_ENTRY = '<Entry Name="LibName">lib_v1</Entry>\n'
DICTIONARY_METADATA = "<coreProperties><title>lib_v1 parameters</title></coreProperties>\n"


def write_package(path: Path, parts: dict) -> Path:
    """Write a zip package with the given {part name: text} mapping"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", CONTENT_TYPES)
        for name, text in parts.items():
            zf.writestr(name, text)
    return path


def write_corrupt_package(path: Path) -> Path:
    """Write a model package whose only member has a damaged deflate stream"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("simulink/systems/system_root.xml", CONTROLLER_ROOT)
    with zipfile.ZipFile(path) as zf:
        info = zf.infolist()[0]
    data = bytearray(path.read_bytes())
    # Local file header: fixed 30 bytes, then the name and extra field
    name_len = int.from_bytes(data[info.header_offset + 26:info.header_offset + 28], "little")
    extra_len = int.from_bytes(data[info.header_offset + 28:info.header_offset + 30], "little")
    start = info.header_offset + 30 + name_len + extra_len
    data[start:start + info.compress_size] = b"\xff" * info.compress_size
    path.write_bytes(bytes(data))
    return path


def read_part(path: Path, part: str) -> str:
    with zipfile.ZipFile(path) as zf:
        return zf.read(part).decode("utf-8")


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def build_project(root: Path) -> Path:
    """Create the demo project and register every file in its definition tree"""
    root.mkdir(parents=True, exist_ok=True)
    write_text(root / "Demo.prj", '<?xml version="1.0" encoding="UTF-8"?>\n<MATLABProject name="Demo"/>\n')

    tracked = [
        write_package(root / "models" / "lib_v1.slx", {"simulink/systems/system_root.xml": EMPTY_ROOT}),
        write_package(root / "models" / "plant_v1.slx", {"simulink/systems/system_root.xml": EMPTY_ROOT}),
        write_package(root / "models" / "controller.slx", {"simulink/systems/system_root.xml": CONTROLLER_ROOT}),
        write_text(root / "scripts" / "init_v1.m", INIT_SCRIPT),
        write_text(root / "scripts" / "run_all.m", RUN_SCRIPT),
        write_package(root / "data" / "params.sldd", {
            "data/chunk0.xml": DICTIONARY_ENTRY,
            "metadata/coreProperties.xml": DICTIONARY_METADATA,
        }),
        write_text(root / "links" / "controller~slx.slmx", LINK_SET),
        write_package(root / "docs" / "table.xlsx", {"xl/sharedStrings.xml": "<sst><si><t>lib_v1</t></si></sst>"}),
        write_text(root / "readme.txt", "Uses lib_v1\n"),
    ]

    project = MatlabProject(root)
    for path in tracked:
        project.add_file(path)
    project.save()
    return root


@pytest.fixture
def project_root(tmp_path):
    return build_project(tmp_path / "Demo")


@pytest.fixture
def project(project_root):
    return open_project(project_root)


@pytest.fixture(autouse=True)
def reset_loggers():
    yield
    # setup_logging binds handlers to the captured stdout of a single test
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
