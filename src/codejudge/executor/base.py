from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from threading import Event
from typing import Dict, List, Optional

from ..core.models import ExecutionRequest, ExecutionResult


@dataclass
class ExecSpec:
    cmd: List[str]
    workdir: Path
    env: Dict[str, str] = field(default_factory=dict)


class Executor:
    def execute(self, request: ExecutionRequest, cancel: Optional[Event] = None) -> ExecutionResult: ...
    def runtime_versions(self) -> Dict[str, str]: ...
