from __future__ import annotations


class JudgeError(Exception):
    """
    Base for every failure the judging core knows how to report.
    Carries the elapsed time and any partial stdout so the boundary can turn
    it into a failed ExecutionResult without losing information.
    """

    def __init__(self, message: str, *, elapsed_ms: int = 0, output: str = ""):
        super().__init__(message)
        self.message = message
        self.elapsed_ms = elapsed_ms
        self.output = output

    def __str__(self) -> str:
        return self.message


class UnsupportedLanguageError(JudgeError):
    pass


class WorkspaceError(JudgeError):
    pass


class CompilationError(JudgeError):
    pass


class ExecutionTimeoutError(JudgeError):
    pass


class ExecutionRuntimeError(JudgeError):
    pass


class OutputLimitError(JudgeError):
    pass


class ExecutionCancelledError(JudgeError):
    pass
