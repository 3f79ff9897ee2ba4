from __future__ import annotations
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import structlog

from .core.models import ExecutionRequest, Language, TestCase
from .executor.base import Executor
from .executor.local import LocalExecutor
from .logging import setup_logging
from .services.judge_service import JudgeService, redact_hidden, visible_cases
from .services.rate_limit import SlidingWindowLimiter
from .services.stats_store import StatsStore
from .settings import Settings, load_settings

logger = structlog.get_logger(__name__)

SUPPORTED = ", ".join(lang.value for lang in Language)


# --------- Schemas ---------
class ExecuteReq(BaseModel):
    code: str = Field(min_length=1)
    language: str = Field(min_length=1)
    input: str = ""

class ExecuteRes(BaseModel):
    success: bool
    output: str
    error: str
    elapsed_ms: int

class TestCaseIn(BaseModel):
    input: str
    expected_output: str
    is_hidden: bool = False

class JudgeReq(BaseModel):
    problem_id: str = Field(min_length=1)
    code: str = Field(min_length=1)
    language: str = Field(min_length=1)
    test_cases: List[TestCaseIn] = Field(min_length=1)

class TestResultRes(BaseModel):
    # input/expected/actual are withheld for hidden cases on submit
    input: Optional[str] = None
    expected_output: Optional[str] = None
    actual_output: Optional[str] = None
    passed: bool
    error: str
    elapsed_ms: int
    is_hidden: bool

class SummaryRes(BaseModel):
    total: int
    passed: int
    failed: int
    all_passed: bool

class RunRes(BaseModel):
    message: str
    results: List[TestResultRes]
    summary: SummaryRes

class StatsRes(BaseModel):
    total_submissions: int
    total_accepted: int
    acceptance_rate: int

class SubmitRes(RunRes):
    accepted: bool
    stats: StatsRes


def create_app(
    settings: Optional[Settings] = None,
    executor: Optional[Executor] = None,
    stats: Optional[StatsStore] = None,
) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    executor = executor or LocalExecutor.from_settings(settings)
    judge = JudgeService(executor)
    stats = stats or StatsStore(settings.stats_db_url)
    limiter = SlidingWindowLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_ms)

    app = FastAPI(title="Code Judge API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def rate_limited(request: Request) -> None:
        caller = request.client.host if request.client else "anonymous"
        retry_after = limiter.hit(caller)
        if retry_after is not None:
            logger.info("rate_limited", caller=caller)
            raise HTTPException(
                status_code=429,
                detail={
                    "error": "Too many code execution requests. Please try again later.",
                    "retry_after": round(retry_after),
                },
            )

    def check_language(language: str) -> None:
        if language not in {lang.value for lang in Language}:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid language. Supported languages: {SUPPORTED}",
            )

    # --------- Endpoints ---------

    @app.get("/health")
    def health():
        runtimes: Dict[str, Optional[str]] = executor.runtime_versions()
        healthy = all(v is not None for v in runtimes.values())
        body = {
            "ok": healthy,
            "status": "healthy" if healthy else "unhealthy",
            "runtimes": {k: v if v is not None else "unavailable" for k, v in runtimes.items()},
        }
        return JSONResponse(body, status_code=200 if healthy else 503)

    @app.post("/execute", response_model=ExecuteRes, dependencies=[Depends(rate_limited)])
    def execute(req: ExecuteReq):
        check_language(req.language)
        res = executor.execute(ExecutionRequest(code=req.code, language=req.language, stdin=req.input))
        return ExecuteRes(**res.to_dict())

    @app.post("/run", response_model=RunRes, dependencies=[Depends(rate_limited)])
    def run(req: JudgeReq):
        check_language(req.language)
        cases = visible_cases([TestCase(**tc.model_dump()) for tc in req.test_cases])
        if not cases:
            raise HTTPException(status_code=400, detail="No visible test cases available for this problem")

        tr = judge.run_test_cases(req.code, req.language, cases)
        return RunRes(
            message="Code execution completed",
            results=[TestResultRes(**r.to_dict()) for r in tr.results],
            summary=SummaryRes(**tr.summary.to_dict()),
        )

    @app.post("/submit", response_model=SubmitRes, dependencies=[Depends(rate_limited)])
    def submit(req: JudgeReq):
        check_language(req.language)
        cases = [TestCase(**tc.model_dump()) for tc in req.test_cases]

        tr = judge.run_test_cases(req.code, req.language, cases)
        row = stats.record(req.problem_id, accepted=tr.summary.all_passed)
        logger.info(
            "submission_judged",
            problem_id=req.problem_id,
            accepted=tr.summary.all_passed,
            passed=tr.summary.passed,
            total=tr.summary.total,
        )
        return SubmitRes(
            message="All tests passed!" if tr.summary.all_passed else "Some tests failed",
            results=[TestResultRes(**r) for r in redact_hidden(tr.results)],
            summary=SummaryRes(**tr.summary.to_dict()),
            accepted=tr.summary.all_passed,
            stats=StatsRes(
                total_submissions=row.total_submissions,
                total_accepted=row.total_accepted,
                acceptance_rate=row.acceptance_rate,
            ),
        )

    return app
