import pytest

from codejudge.core.errors import CompilationError, UnsupportedLanguageError
from codejudge.core.models import Language, Workspace
from codejudge.executor.process import ProcessOutcome, ProcessRunner
from codejudge.runner.java_runner import JavaRunner, extract_class_name
from codejudge.runner.node_runner import NodeRunner
from codejudge.runner.python_runner import PythonRunner
from codejudge.runner.registry import RunnerRegistry


@pytest.fixture
def ws(tmp_path):
    root = tmp_path / "abc123"
    root.mkdir()
    return Workspace(id="abc123", root=root)


class FakeProcess(ProcessRunner):
    def __init__(self, outcome):
        super().__init__()
        self.outcome = outcome
        self.calls = []

    def spawn(self, spec, stdin="", timeout_ms=None, max_output_bytes=None, cancel=None):
        self.calls.append((spec, timeout_ms))
        return self.outcome


def outcome(rc=0, stdout="", stderr="", **kw):
    return ProcessOutcome(returncode=rc, stdout=stdout, stderr=stderr, elapsed_ms=5, **kw)


# ---- class name heuristic ----

@pytest.mark.parametrize("code, expected", [
    ("public class Main { public static void main(String[] a) {} }", "Main"),
    ("public   class\tFoo_1 {}", "Foo_1"),
    ("class Hidden {}", "Solution"),
    ("", "Solution"),
    ("class Helper {}\npublic class Answer {}", "Answer"),
])
def test_extract_class_name(code, expected):
    assert extract_class_name(code) == expected


# ---- python ----

def test_python_writes_source_verbatim(ws):
    code = "print(input()[::-1])\n"
    spec = PythonRunner(python_bin="python3").prepare(ws, code)
    assert (ws.root / "solution.py").read_text() == code
    assert spec.cmd == ["python3", str(ws.root / "solution.py")]
    assert spec.workdir == ws.root
    assert spec.env["PYTHONUNBUFFERED"] == "1"


# ---- javascript ----

def test_node_driver_buffers_stdin_before_user_code(ws):
    code = "console.log(inputLines[0]);"
    spec = NodeRunner(node_bin="node").prepare(ws, code)
    driver = (ws.root / "solution.js").read_text()
    assert driver.index("readFileSync(0") < driver.index(code)
    assert "const inputLines" in driver
    assert spec.cmd == ["node", str(ws.root / "solution.js")]


def test_node_driver_keeps_percent_signs(ws):
    code = "console.log(10 % 3, '%s');"
    NodeRunner().prepare(ws, code)
    assert code in (ws.root / "solution.js").read_text()


# ---- java ----

def test_java_compiles_extracted_class(ws):
    proc = FakeProcess(outcome(rc=0))
    runner = JavaRunner(proc, javac_bin="javac", java_bin="java", compile_timeout_ms=7000)
    spec = runner.prepare(ws, "public class Main { }")

    assert (ws.root / "Main.java").exists()
    assert not (ws.root / "Solution.java").exists()
    compile_spec, timeout = proc.calls[0]
    assert compile_spec.cmd == ["javac", "Main.java"]
    assert timeout == 7000
    assert spec.cmd == ["java", "-cp", ".", "Main"]


def test_java_falls_back_to_solution(ws):
    runner = JavaRunner(FakeProcess(outcome(rc=0)))
    spec = runner.prepare(ws, "class Whatever { }")
    assert (ws.root / "Solution.java").exists()
    assert spec.cmd[-1] == "Solution"


def test_java_compile_error_carries_compiler_message(ws):
    proc = FakeProcess(outcome(rc=1, stderr="Main.java:1: error: ';' expected\n"))
    with pytest.raises(CompilationError) as ei:
        JavaRunner(proc).prepare(ws, "public class Main { int x }")
    assert "';' expected" in str(ei.value)


def test_java_compile_timeout_is_a_compilation_error(ws):
    proc = FakeProcess(outcome(rc=-9, timed_out=True))
    with pytest.raises(CompilationError, match="timed out"):
        JavaRunner(proc).prepare(ws, "public class Main {}")


# ---- registry ----

def test_registry_maps_all_languages(settings):
    reg = RunnerRegistry.from_settings(settings)
    assert reg.languages == sorted(lang.value for lang in Language)
    assert isinstance(reg.get("python"), PythonRunner)
    assert isinstance(reg.get("javascript"), NodeRunner)
    assert isinstance(reg.get("java"), JavaRunner)
    assert reg.get("java").compile_timeout_ms == settings.compile_timeout


@pytest.mark.parametrize("lang", ["ruby", "Python", "", "c++"])
def test_registry_rejects_unknown_language(settings, lang):
    reg = RunnerRegistry.from_settings(settings)
    assert not reg.supports(lang)
    with pytest.raises(UnsupportedLanguageError):
        reg.get(lang)


def test_runtime_versions_reports_missing_toolchain(settings):
    reg = RunnerRegistry([PythonRunner(python_bin="no-such-python-binary")])
    assert reg.runtime_versions() == {"python": None}
