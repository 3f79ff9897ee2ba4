from __future__ import annotations
import secrets, time

# 16 random bytes -> 32 hex chars, 128 bits of entropy
WORKSPACE_ID_BYTES = 16


def new_workspace_id() -> str:
    return secrets.token_hex(WORKSPACE_ID_BYTES)


def trimmed(text: str | None) -> str:
    return (text or "").strip()


def elapsed_ms(start: float) -> int:
    """Milliseconds since a time.monotonic() reading."""
    return int((time.monotonic() - start) * 1000)
