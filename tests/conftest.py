import sys
from pathlib import Path

import pytest

from codejudge.settings import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        temp_dir=tmp_path / "temp",
        execution_timeout_ms=3000,
        max_output_bytes=10000,
        stats_db_url=f"sqlite:///{tmp_path / 'judge.db'}",
        runtimes={"node": "node", "python": sys.executable, "javac": "javac", "java": "java"},
    )


@pytest.fixture
def py():
    """argv prefix running an inline Python snippet."""
    return lambda src: [sys.executable, "-c", src]
