from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Sequence

from .utils import trimmed


class Language(str, Enum):
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    JAVA = "java"


class CaseState(str, Enum):
    PENDING = "PENDING"
    EXECUTING = "EXECUTING"
    PASSED = "PASSED"
    FAILED_WRONG_OUTPUT = "FAILED_WRONG_OUTPUT"
    FAILED_INFRA = "FAILED_INFRA"


@dataclass(frozen=True)
class ExecutionRequest:
    code: str
    language: str     # "javascript" | "python" | "java"; anything else is rejected
    stdin: str = ""


@dataclass(frozen=True)
class Workspace:
    id: str
    root: Path        # <temp_dir>/<id>


@dataclass
class ExecutionResult:
    success: bool
    output: str = ""
    error: str = ""
    elapsed_ms: int = 0

    @classmethod
    def failure(cls, error: str, elapsed_ms: int = 0, output: str = "") -> "ExecutionResult":
        return cls(success=False, output=output, error=error, elapsed_ms=elapsed_ms)

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "output": self.output,
            "error": self.error,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass(frozen=True)
class TestCase:
    __test__ = False

    input: str
    expected_output: str
    is_hidden: bool = False


@dataclass
class TestResult:
    __test__ = False

    input: str
    expected_output: str
    actual_output: str
    passed: bool
    error: str
    elapsed_ms: int
    is_hidden: bool = False
    infra_failure: bool = False

    @classmethod
    def evaluate(cls, case: TestCase, result: ExecutionResult) -> "TestResult":
        passed = result.success and trimmed(result.output) == trimmed(case.expected_output)
        return cls(
            input=case.input,
            expected_output=case.expected_output,
            actual_output=result.output,
            passed=passed,
            error=result.error,
            elapsed_ms=result.elapsed_ms,
            is_hidden=case.is_hidden,
            infra_failure=not result.success,
        )

    @property
    def state(self) -> CaseState:
        if self.passed:
            return CaseState.PASSED
        if self.infra_failure:
            return CaseState.FAILED_INFRA
        return CaseState.FAILED_WRONG_OUTPUT

    def to_dict(self) -> Dict:
        return {
            "input": self.input,
            "expected_output": self.expected_output,
            "actual_output": self.actual_output,
            "passed": self.passed,
            "error": self.error,
            "elapsed_ms": self.elapsed_ms,
            "is_hidden": self.is_hidden,
        }


@dataclass(frozen=True)
class TestRunSummary:
    __test__ = False

    total: int
    passed: int
    failed: int
    all_passed: bool

    @classmethod
    def compute(cls, results: Sequence[TestResult], total: int) -> "TestRunSummary":
        # total counts requested cases, so cases skipped by fail-fast count as failed
        passed = sum(1 for r in results if r.passed)
        return cls(total=total, passed=passed, failed=total - passed, all_passed=passed == total)

    def to_dict(self) -> Dict:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "all_passed": self.all_passed,
        }


@dataclass
class TestRun:
    __test__ = False

    summary: TestRunSummary
    results: List[TestResult] = field(default_factory=list)
