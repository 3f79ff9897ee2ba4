from __future__ import annotations
from dataclasses import dataclass
from threading import Event, Thread
from typing import Callable, List, Optional
import os
import signal
import subprocess
import time

import structlog

from ..core.errors import (
    ExecutionCancelledError,
    ExecutionRuntimeError,
    ExecutionTimeoutError,
    JudgeError,
    OutputLimitError,
)
from ..core.models import ExecutionResult
from ..core.utils import elapsed_ms
from .base import ExecSpec

logger = structlog.get_logger(__name__)

TIMEOUT_MESSAGE = "Execution timed out"
OUTPUT_LIMIT_MESSAGE = "Output limit exceeded"
CANCELLED_MESSAGE = "Execution cancelled"

_POLL_S = 0.05
_CHUNK = 4096
_JOIN_S = 2.0


@dataclass
class ProcessOutcome:
    returncode: Optional[int]
    stdout: str
    stderr: str
    elapsed_ms: int
    timed_out: bool = False
    overflowed: bool = False
    cancelled: bool = False


class _CappedReader(Thread):
    """Drains one pipe, keeping at most `limit` bytes."""

    def __init__(self, stream, limit: int, overflow: Event):
        super().__init__(daemon=True)
        self.stream = stream
        self.limit = limit
        self.overflow = overflow
        self.buf = bytearray()

    def run(self) -> None:
        fd = self.stream.fileno()
        try:
            for chunk in iter(lambda: os.read(fd, _CHUNK), b""):
                room = self.limit - len(self.buf)
                if len(chunk) > room:
                    self.buf.extend(chunk[:max(room, 0)])
                    self.overflow.set()
                else:
                    self.buf.extend(chunk)
        finally:
            self.stream.close()

    def text(self) -> str:
        return self.buf.decode("utf-8", errors="replace")


def _feed(stream, data: bytes) -> None:
    # BrokenPipeError: the child exited without reading all of its input
    try:
        if data:
            stream.write(data)
    except BrokenPipeError:
        pass
    finally:
        try:
            stream.close()
        except BrokenPipeError:
            pass


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        # group already gone
        pass


class ProcessRunner:
    """
    Runs one command with a wall-clock limit and bounded output capture.

    The child gets its own session, so a timeout, an output overflow or a
    cancellation kills the whole process group, not just the direct child.
    """

    def __init__(
        self,
        timeout_ms: int = 5000,
        max_output_bytes: int = 10000,
        stderr_policy: str = "strict",
        wrap_cmd: Optional[Callable[[List[str]], List[str]]] = None,
    ):
        self.timeout_ms = timeout_ms
        self.max_output_bytes = max_output_bytes
        self.stderr_policy = stderr_policy
        self.wrap_cmd = wrap_cmd

    @classmethod
    def from_settings(cls, settings, wrap_cmd=None) -> "ProcessRunner":
        return cls(
            timeout_ms=settings.execution_timeout_ms,
            max_output_bytes=settings.max_output_bytes,
            stderr_policy=settings.stderr_policy,
            wrap_cmd=wrap_cmd,
        )

    # ---------- raw spawn ----------

    def spawn(
        self,
        spec: ExecSpec,
        stdin: str = "",
        timeout_ms: Optional[int] = None,
        max_output_bytes: Optional[int] = None,
        cancel: Optional[Event] = None,
    ) -> ProcessOutcome:
        """
        Start `spec.cmd`, feed `stdin`, wait for exit, timeout, overflow or
        cancellation. Raises OSError if the command cannot be started.
        """
        if timeout_ms is None:
            timeout_ms = self.timeout_ms
        limit = self.max_output_bytes if max_output_bytes is None else max_output_bytes
        argv = self.wrap_cmd(list(spec.cmd)) if self.wrap_cmd else list(spec.cmd)

        start = time.monotonic()
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=str(spec.workdir),
            env={**os.environ, **spec.env},
            start_new_session=True,
        )

        overflow = Event()
        out = _CappedReader(proc.stdout, limit, overflow)
        err = _CappedReader(proc.stderr, limit, overflow)
        feeder = Thread(target=_feed, args=(proc.stdin, stdin.encode("utf-8")), daemon=True)
        for t in (out, err, feeder):
            t.start()

        deadline = start + timeout_ms / 1000.0
        timed_out = cancelled = False
        while True:
            try:
                proc.wait(timeout=_POLL_S)
                break
            except subprocess.TimeoutExpired:
                pass
            if overflow.is_set():
                break
            if cancel is not None and cancel.is_set():
                cancelled = True
                break
            if time.monotonic() >= deadline:
                timed_out = True
                break

        # also reaps background children still holding the pipes open
        _kill_group(proc)
        proc.wait()
        for t in (out, err, feeder):
            t.join(_JOIN_S)

        outcome = ProcessOutcome(
            returncode=proc.returncode,
            stdout=out.text(),
            stderr=err.text(),
            elapsed_ms=elapsed_ms(start),
            timed_out=timed_out,
            overflowed=overflow.is_set() and not (timed_out or cancelled),
            cancelled=cancelled,
        )
        logger.debug(
            "process_exited",
            argv0=argv[0],
            returncode=outcome.returncode,
            elapsed_ms=outcome.elapsed_ms,
            timed_out=timed_out,
            overflowed=outcome.overflowed,
            cancelled=cancelled,
        )
        return outcome

    # ---------- classification ----------

    def _stderr_ok(self, stderr: str) -> bool:
        if not stderr:
            return True
        return self.stderr_policy == "loose" and "Error" not in stderr

    def classify(self, outcome: ProcessOutcome, timeout_ms: Optional[int] = None) -> ExecutionResult:
        """
        Exit codes are not consulted: a run succeeds when stderr is clean
        under the configured policy.
        """
        stdout = outcome.stdout.strip()
        stderr = outcome.stderr.strip()
        if outcome.cancelled:
            raise ExecutionCancelledError(CANCELLED_MESSAGE, elapsed_ms=outcome.elapsed_ms)
        if outcome.timed_out:
            raise ExecutionTimeoutError(TIMEOUT_MESSAGE, elapsed_ms=self.timeout_ms if timeout_ms is None else timeout_ms)
        if outcome.overflowed:
            raise OutputLimitError(OUTPUT_LIMIT_MESSAGE, elapsed_ms=outcome.elapsed_ms, output=stdout)
        if not self._stderr_ok(stderr):
            raise ExecutionRuntimeError(stderr, elapsed_ms=outcome.elapsed_ms, output=stdout)
        return ExecutionResult(success=True, output=stdout, error=stderr, elapsed_ms=outcome.elapsed_ms)

    def run(
        self,
        spec: ExecSpec,
        stdin: str = "",
        timeout_ms: Optional[int] = None,
        max_output_bytes: Optional[int] = None,
        cancel: Optional[Event] = None,
    ) -> ExecutionResult:
        if timeout_ms is None:
            timeout_ms = self.timeout_ms
        try:
            outcome = self.spawn(spec, stdin, timeout_ms, max_output_bytes, cancel)
            return self.classify(outcome, timeout_ms)
        except JudgeError as e:
            return ExecutionResult.failure(e.message, elapsed_ms=e.elapsed_ms, output=e.output)
        except OSError as e:
            logger.warning("process_spawn_failed", argv0=spec.cmd[0] if spec.cmd else None, error=str(e))
            return ExecutionResult.failure(str(e))
