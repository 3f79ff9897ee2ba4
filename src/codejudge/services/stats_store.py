from __future__ import annotations
from datetime import datetime, timezone
from threading import Lock
from typing import Optional
import math

from sqlalchemy.orm import sessionmaker
from sqlmodel import Field, Session, SQLModel, create_engine


class ProblemStats(SQLModel, table=True):
    problem_id: str = Field(primary_key=True)
    total_submissions: int = 0
    total_accepted: int = 0
    acceptance_rate: int = 0  # percent, rounded half up
    updated_at: Optional[datetime] = None


class StatsStore:
    """Per-problem submission counters, updated once per submit."""

    def __init__(self, url: str = "sqlite:///./judge.db"):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, connect_args=connect_args)
        SQLModel.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, class_=Session, expire_on_commit=False)
        # read-modify-write of the counters
        self._lock = Lock()

    def record(self, problem_id: str, accepted: bool) -> ProblemStats:
        with self._lock, self.SessionLocal() as s:
            row = s.get(ProblemStats, problem_id) or ProblemStats(problem_id=problem_id)
            row.total_submissions += 1
            if accepted:
                row.total_accepted += 1
            row.acceptance_rate = math.floor(row.total_accepted * 100 / row.total_submissions + 0.5)
            row.updated_at = datetime.now(timezone.utc)
            s.add(row)
            s.commit()
            return row

    def get(self, problem_id: str) -> Optional[ProblemStats]:
        with self.SessionLocal() as s:
            return s.get(ProblemStats, problem_id)
