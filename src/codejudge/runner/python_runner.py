from __future__ import annotations
from threading import Event
from typing import Optional

from ..core.models import Language, Workspace
from ..executor.base import ExecSpec
from .base import LanguageRunner


class PythonRunner(LanguageRunner):
    language = Language.PYTHON
    source_name = "solution.py"

    def __init__(self, python_bin: str = "python3"):
        self.python_bin = python_bin

    def prepare(self, workspace: Workspace, code: str, cancel: Optional[Event] = None) -> ExecSpec:
        script = self.write_source(workspace, self.source_name, code)
        return ExecSpec(
            cmd=[self.python_bin, str(script)],
            workdir=workspace.root,
            env={"PYTHONUNBUFFERED": "1"},
        )

    def version_command(self):
        return [self.python_bin, "--version"]
