"""
matlab_linker.py - External MATLAB Link Set Updater

Runs the project's link set update function in a batch MATLAB session.
Only used when explicitly enabled; without MATLAB on PATH the XML based
update in references.py is used instead.
"""

from pathlib import Path
from typing import List, Optional
import logging
import shutil
import subprocess

from .errors import ReferenceUpdateError

logger = logging.getLogger(__name__)

DEFAULT_FUNCTION = "update_req_link_set_files"


def _matlab_string(value: str) -> str:
    """Quote a value as a MATLAB char array literal"""
    return "'" + value.replace("'", "''") + "'"


class MatlabLinker:
    """Calls a MATLAB function to update requirement link sets after a rename"""

    def __init__(self, cwd: Path, executable: str = "matlab", function: str = DEFAULT_FUNCTION):
        self.cwd = Path(cwd)
        self.executable = executable
        self.function = function

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def build_command(self, old_name: str, new_name: str) -> List[str]:
        component = Path(old_name).stem
        statement = "{}({}, {}, {})".format(
            self.function,
            _matlab_string(component),
            _matlab_string(old_name),
            _matlab_string(new_name),
        )
        return [self.executable, "-batch", statement]

    def update_link_set(self, old_name: str, new_name: str) -> Optional[str]:
        """
        Update link sets referencing old_name

        Returns:
            MATLAB console output

        Raises:
            ReferenceUpdateError: MATLAB missing or the call failed
        """
        if not self.is_available():
            raise ReferenceUpdateError(f"MATLAB executable not found: {self.executable}")

        cmd = self.build_command(old_name, new_name)
        logger.debug("Running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, cwd=self.cwd, capture_output=True, text=True)
        except OSError as e:
            raise ReferenceUpdateError(f"Failed to start MATLAB: {e}") from e

        output = (proc.stdout + proc.stderr).strip()
        if proc.returncode != 0:
            raise ReferenceUpdateError(f"{self.function} failed (exit {proc.returncode}): {output}")
        return output
