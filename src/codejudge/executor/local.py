from __future__ import annotations
from threading import Event
from typing import Dict, Optional

import structlog

from ..core.errors import JudgeError
from ..core.models import ExecutionRequest, ExecutionResult
from ..runner.registry import RunnerRegistry
from ..services.workspace import WorkspaceManager
from .base import Executor
from .process import ProcessRunner

logger = structlog.get_logger(__name__)


class LocalExecutor(Executor):
    """
    Runs submissions with the toolchains installed next to the service.
    Isolation is the outer container plus a private workspace per run.

    execute() never raises: every failure comes back as an ExecutionResult
    with success=False.
    """

    def __init__(
        self,
        workspaces: WorkspaceManager,
        process: ProcessRunner,
        runners: RunnerRegistry,
    ):
        self.workspaces = workspaces
        self.process = process
        self.runners = runners

    @classmethod
    def from_settings(cls, settings) -> "LocalExecutor":
        process = ProcessRunner.from_settings(settings)
        return cls(
            workspaces=WorkspaceManager(settings.temp_dir),
            process=process,
            runners=RunnerRegistry.from_settings(settings, process),
        )

    def execute(self, request: ExecutionRequest, cancel: Optional[Event] = None) -> ExecutionResult:
        log = logger.bind(language=request.language)

        # resolved before any workspace I/O
        try:
            runner = self.runners.get(request.language)
        except JudgeError as e:
            log.warning("unsupported_language")
            return ExecutionResult.failure(e.message)

        try:
            with self.workspaces.workspace() as ws:
                log = log.bind(workspace_id=ws.id)
                spec = runner.prepare(ws, request.code, cancel=cancel)
                result = self.process.run(spec, stdin=request.stdin, cancel=cancel)
        except JudgeError as e:
            log.info("execution_failed", error_type=type(e).__name__, error=e.message)
            return ExecutionResult.failure(e.message)
        except Exception as e:
            log.exception("execution_error")
            return ExecutionResult.failure(str(e))

        log.info("execution_finished", success=result.success, elapsed_ms=result.elapsed_ms)
        return result

    def runtime_versions(self) -> Dict[str, Optional[str]]:
        return self.runners.runtime_versions()
