from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from ..core.errors import UnsupportedLanguageError
from ..executor.process import ProcessRunner
from .base import LanguageRunner
from .java_runner import JavaRunner
from .node_runner import NodeRunner
from .python_runner import PythonRunner


class RunnerRegistry:
    """Closed language -> runner table. Unknown keys are rejected, never guessed."""

    def __init__(self, runners: Iterable[LanguageRunner]):
        self._runners: Dict[str, LanguageRunner] = {r.language.value: r for r in runners}

    @classmethod
    def from_settings(cls, settings, process: Optional[ProcessRunner] = None) -> "RunnerRegistry":
        process = process or ProcessRunner.from_settings(settings)
        return cls([
            NodeRunner(node_bin=settings.runtime("node")),
            PythonRunner(python_bin=settings.runtime("python")),
            JavaRunner(
                process,
                javac_bin=settings.runtime("javac"),
                java_bin=settings.runtime("java"),
                compile_timeout_ms=settings.compile_timeout,
            ),
        ])

    @property
    def languages(self) -> List[str]:
        return sorted(self._runners)

    def supports(self, language: str) -> bool:
        return language in self._runners

    def get(self, language: str) -> LanguageRunner:
        try:
            return self._runners[language]
        except (KeyError, TypeError):
            raise UnsupportedLanguageError(f"Unsupported language: {language}") from None

    def runtime_versions(self) -> Dict[str, Optional[str]]:
        return {name: runner.version() for name, runner in sorted(self._runners.items())}
