from __future__ import annotations
from pathlib import Path
from threading import Event
from typing import List, Optional
import subprocess

from ..core.models import Language, Workspace
from ..executor.base import ExecSpec

_VERSION_TIMEOUT_S = 10


class LanguageRunner:
    """Turns source code into a runnable command inside a workspace."""

    language: Language
    source_name: str = ""

    def prepare(self, workspace: Workspace, code: str, cancel: Optional[Event] = None) -> ExecSpec:
        raise NotImplementedError

    def version_command(self) -> List[str]:
        raise NotImplementedError

    def write_source(self, workspace: Workspace, name: str, text: str) -> Path:
        path = workspace.root / name
        path.write_text(text, encoding="utf-8")
        return path

    def version(self) -> Optional[str]:
        """First line of the toolchain's version banner, None if unavailable."""
        try:
            proc = subprocess.run(
                self.version_command(),
                capture_output=True,
                text=True,
                timeout=_VERSION_TIMEOUT_S,
            )
        except (OSError, subprocess.TimeoutExpired):
            return None
        if proc.returncode != 0:
            return None
        banner = (proc.stdout or proc.stderr).strip()
        return banner.splitlines()[0] if banner else ""
