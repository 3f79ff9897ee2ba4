import re

import pytest

from codejudge.core.errors import WorkspaceError
from codejudge.services.workspace import WorkspaceManager


def test_acquire_creates_unique_directories(tmp_path):
    mgr = WorkspaceManager(tmp_path / "temp")
    a, b = mgr.acquire(), mgr.acquire()
    assert a.id != b.id
    assert re.fullmatch(r"[0-9a-f]{32}", a.id)
    assert a.root.is_dir() and a.root.parent == mgr.temp_dir


def test_release_removes_directory_tree(tmp_path):
    mgr = WorkspaceManager(tmp_path)
    ws = mgr.acquire()
    (ws.root / "nested").mkdir()
    (ws.root / "nested" / "f.txt").write_text("x")
    mgr.release(ws)
    assert not ws.root.exists()


def test_release_twice_is_harmless(tmp_path):
    mgr = WorkspaceManager(tmp_path)
    ws = mgr.acquire()
    mgr.release(ws)
    mgr.release(ws)


def test_context_manager_releases_on_error(tmp_path):
    mgr = WorkspaceManager(tmp_path)
    with pytest.raises(RuntimeError):
        with mgr.workspace() as ws:
            root = ws.root
            raise RuntimeError("boom")
    assert not root.exists()


def test_unusable_root_raises_workspace_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    with pytest.raises(WorkspaceError):
        WorkspaceManager(blocker).acquire()
