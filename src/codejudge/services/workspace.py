from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
import shutil

import structlog

from ..core.errors import WorkspaceError
from ..core.models import Workspace
from ..core.utils import new_workspace_id

logger = structlog.get_logger(__name__)


class WorkspaceManager:
    """
    One private directory per execution:
      <temp_dir>/<32 hex chars>/
        ├─ solution.py | solution.js | <ClassName>.java
        └─ compiled artifacts (Java)

    Ids come from the OS CSPRNG, so concurrent executions never share a
    directory and no locking is needed.
    """

    def __init__(self, temp_dir: Path):
        self.temp_dir = temp_dir if temp_dir.is_absolute() else temp_dir.resolve()

    def acquire(self) -> Workspace:
        ws_id = new_workspace_id()
        root = self.temp_dir / ws_id
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            root.mkdir(exist_ok=False)
        except OSError as e:
            raise WorkspaceError(f"cannot create workspace under {self.temp_dir}: {e}") from e
        logger.debug("workspace_acquired", workspace_id=ws_id)
        return Workspace(id=ws_id, root=root)

    def release(self, workspace: Workspace) -> None:
        """Best-effort removal; failures are logged and never raised."""
        try:
            shutil.rmtree(workspace.root)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("workspace_cleanup_failed", workspace_id=workspace.id, error=str(e))
            return
        logger.debug("workspace_released", workspace_id=workspace.id)

    @contextmanager
    def workspace(self) -> Iterator[Workspace]:
        ws = self.acquire()
        try:
            yield ws
        finally:
            self.release(ws)
