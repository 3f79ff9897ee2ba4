from __future__ import annotations
from threading import Event
from typing import Optional

from ..core.models import Language, Workspace
from ..executor.base import ExecSpec
from .base import LanguageRunner

# Submissions read their input synchronously from `input` / `inputLines`,
# so the whole of stdin is buffered before the user code is called.
DRIVER_TEMPLATE = """\
const input = require('fs').readFileSync(0, 'utf8');
const inputLines = input.split(/\\r?\\n/);
if (inputLines.length > 0 && inputLines[inputLines.length - 1] === '') {
    inputLines.pop();
}

try {
    (function main() {
%(code)s
    })();
} catch (error) {
    console.error(error.message);
    process.exit(1);
}
"""


class NodeRunner(LanguageRunner):
    language = Language.JAVASCRIPT
    source_name = "solution.js"

    def __init__(self, node_bin: str = "node"):
        self.node_bin = node_bin

    def render(self, code: str) -> str:
        return DRIVER_TEMPLATE % {"code": code}

    def prepare(self, workspace: Workspace, code: str, cancel: Optional[Event] = None) -> ExecSpec:
        script = self.write_source(workspace, self.source_name, self.render(code))
        return ExecSpec(cmd=[self.node_bin, str(script)], workdir=workspace.root)

    def version_command(self):
        return [self.node_bin, "--version"]
