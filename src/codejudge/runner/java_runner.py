from __future__ import annotations
from threading import Event
from typing import Optional
import re

import structlog

from ..core.errors import CompilationError, ExecutionCancelledError
from ..core.models import Language, Workspace
from ..executor.base import ExecSpec
from ..executor.process import CANCELLED_MESSAGE, ProcessRunner
from .base import LanguageRunner

logger = structlog.get_logger(__name__)

DEFAULT_CLASS_NAME = "Solution"
_PUBLIC_CLASS = re.compile(r"public\s+class\s+(\w+)")


def extract_class_name(code: str) -> str:
    """
    First `public class X` in the source, else "Solution".
    A text match, not a parser: multi-class files can pick the wrong name.
    """
    m = _PUBLIC_CLASS.search(code)
    return m.group(1) if m else DEFAULT_CLASS_NAME


class JavaRunner(LanguageRunner):
    language = Language.JAVA

    def __init__(
        self,
        process: ProcessRunner,
        javac_bin: str = "javac",
        java_bin: str = "java",
        compile_timeout_ms: int = 5000,
    ):
        self.process = process
        self.javac_bin = javac_bin
        self.java_bin = java_bin
        self.compile_timeout_ms = compile_timeout_ms

    def prepare(self, workspace: Workspace, code: str, cancel: Optional[Event] = None) -> ExecSpec:
        class_name = extract_class_name(code)
        source = f"{class_name}.java"
        self.write_source(workspace, source, code)

        self.compile(workspace, source, cancel)
        return ExecSpec(cmd=[self.java_bin, "-cp", ".", class_name], workdir=workspace.root)

    def compile(self, workspace: Workspace, source: str, cancel: Optional[Event] = None) -> None:
        outcome = self.process.spawn(
            ExecSpec(cmd=[self.javac_bin, source], workdir=workspace.root),
            timeout_ms=self.compile_timeout_ms,
            cancel=cancel,
        )
        if outcome.cancelled:
            raise ExecutionCancelledError(CANCELLED_MESSAGE)
        if outcome.timed_out:
            raise CompilationError("Compilation timed out")
        if outcome.returncode != 0:
            message = outcome.stderr.strip() or outcome.stdout.strip() or f"javac exited with {outcome.returncode}"
            logger.info("compilation_failed", workspace_id=workspace.id, source=source)
            raise CompilationError(message)

    def version_command(self):
        return [self.javac_bin, "-version"]
