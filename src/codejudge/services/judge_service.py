from __future__ import annotations
from threading import Event
from typing import Dict, List, Optional, Sequence

import structlog

from ..core.models import ExecutionRequest, TestCase, TestResult, TestRun, TestRunSummary
from ..executor.base import Executor
from ..executor.local import LocalExecutor

logger = structlog.get_logger(__name__)


class JudgeService:
    """
    Runs one submission against an ordered list of test cases.

    Cases run one at a time, in order. A wrong answer moves on to the next
    case; an infra failure (compile error, crash, timeout) stops the run, and
    the cases never reached still count in summary.total.
    """

    def __init__(self, executor: Executor):
        self.executor = executor

    @classmethod
    def from_settings(cls, settings) -> "JudgeService":
        return cls(LocalExecutor.from_settings(settings))

    def run_test_cases(
        self,
        code: str,
        language: str,
        test_cases: Sequence[TestCase],
        cancel: Optional[Event] = None,
    ) -> TestRun:
        log = logger.bind(language=language, total=len(test_cases))
        results: List[TestResult] = []

        for idx, case in enumerate(test_cases):
            if cancel is not None and cancel.is_set():
                log.info("judging_cancelled", case=idx)
                break

            res = self.executor.execute(
                ExecutionRequest(code=code, language=language, stdin=case.input), cancel=cancel
            )
            results.append(TestResult.evaluate(case, res))

            if not res.success:
                log.info("judging_stopped", case=idx, error=res.error)
                break

        summary = TestRunSummary.compute(results, total=len(test_cases))
        log.info("judging_finished", executed=len(results), passed=summary.passed)
        return TestRun(summary=summary, results=results)


def visible_cases(test_cases: Sequence[TestCase]) -> List[TestCase]:
    return [tc for tc in test_cases if not tc.is_hidden]


def redact_hidden(results: Sequence[TestResult]) -> List[Dict]:
    """Public view of results: hidden cases keep only their verdict and timing."""
    out: List[Dict] = []
    for r in results:
        if r.is_hidden:
            out.append({
                "passed": r.passed,
                "error": r.error,
                "elapsed_ms": r.elapsed_ms,
                "is_hidden": True,
            })
        else:
            out.append(r.to_dict())
    return out
