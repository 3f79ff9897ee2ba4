from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ---- limits ----
    execution_timeout_ms: int = Field(
        5000,
        validation_alias=AliasChoices("execution_timeout_ms", "JUDGE_EXECUTION_TIMEOUT_MS", "EXECUTION_TIMEOUT"),
    )
    compile_timeout_ms: Optional[int] = Field(
        None, validation_alias=AliasChoices("compile_timeout_ms", "JUDGE_COMPILE_TIMEOUT_MS")
    )
    max_output_bytes: int = Field(
        10000,
        validation_alias=AliasChoices("max_output_bytes", "JUDGE_MAX_OUTPUT_BYTES", "MAX_OUTPUT_SIZE"),
    )

    # "strict": any stderr fails the run; "loose": only stderr mentioning "Error"
    stderr_policy: Literal["strict", "loose"] = Field(
        "strict", validation_alias=AliasChoices("stderr_policy", "JUDGE_STDERR_POLICY")
    )

    # ---- paths ----
    temp_dir: Path = Field(
        Path("temp"), validation_alias=AliasChoices("temp_dir", "JUDGE_TEMP_DIR", "TEMP_DIR")
    )
    stats_db_url: str = Field(
        "sqlite:///./judge.db", validation_alias=AliasChoices("stats_db_url", "JUDGE_STATS_DB_URL")
    )

    # ---- toolchains ----
    runtimes: Dict[str, str] = Field(
        default_factory=lambda: {
            "node": "node",
            "python": "python3",
            "javac": "javac",
            "java": "java",
        },
        validation_alias=AliasChoices("runtimes", "JUDGE_RUNTIMES"),
    )

    # ---- request ceiling (enforced by the HTTP layer) ----
    rate_limit_window_ms: int = Field(
        15 * 60 * 1000,
        validation_alias=AliasChoices("rate_limit_window_ms", "JUDGE_RATE_LIMIT_WINDOW_MS", "RATE_LIMIT_WINDOW_MS"),
    )
    rate_limit_max_requests: int = Field(
        10,
        validation_alias=AliasChoices(
            "rate_limit_max_requests", "JUDGE_RATE_LIMIT_MAX_REQUESTS", "RATE_LIMIT_MAX_REQUESTS"
        ),
    )

    log_level: str = Field("INFO", validation_alias=AliasChoices("log_level", "JUDGE_LOG_LEVEL"))

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    @property
    def compile_timeout(self) -> int:
        return self.compile_timeout_ms or self.execution_timeout_ms

    def runtime(self, name: str) -> str:
        return self.runtimes.get(name, name)


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    block = data.get(key) or {}
    return block if isinstance(block, dict) else {}


def _from_env(field: str) -> bool:
    """True when any of the field's environment names is set."""
    alias = Settings.model_fields[field].validation_alias
    names = {str(n).lower() for n in getattr(alias, "choices", [field])}
    return any(k.lower() in names for k in os.environ)


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Build settings from the environment, then fill in from conf/judge.yaml
    (or the file named by JUDGE_CONF). A key set in the environment always
    wins; the YAML only supplies what the environment leaves unset.
    """
    s = Settings()

    conf = path or Path(os.environ.get("JUDGE_CONF", "conf/judge.yaml"))
    try:
        with open(conf, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    limits = _section(data, "limits")
    workspace = _section(data, "workspace")
    rate = _section(data, "rate_limit")

    from_yaml = {
        "execution_timeout_ms": (limits.get("execution_timeout_ms"), int),
        "compile_timeout_ms": (limits.get("compile_timeout_ms"), int),
        "max_output_bytes": (limits.get("max_output_bytes"), int),
        "stderr_policy": (data.get("stderr_policy"), str),
        "temp_dir": (workspace.get("temp_dir"), lambda v: Path(str(v))),
        "stats_db_url": (data.get("stats_db_url"), str),
        "rate_limit_window_ms": (rate.get("window_ms"), int),
        "rate_limit_max_requests": (rate.get("max_requests"), int),
        "log_level": (data.get("log_level"), str),
    }
    update: Dict[str, Any] = {
        field: cast(value)
        for field, (value, cast) in from_yaml.items()
        if value is not None and not _from_env(field)
    }
    if not _from_env("runtimes"):
        extra = _section(data, "runtimes")
        if extra:
            update["runtimes"] = {**s.runtimes, **{k: str(v) for k, v in extra.items()}}

    stderr_policy = update.get("stderr_policy", s.stderr_policy)
    if stderr_policy not in ("strict", "loose"):
        raise ValueError(f"stderr_policy must be 'strict' or 'loose', got {stderr_policy!r}")

    return s.model_copy(update=update)
