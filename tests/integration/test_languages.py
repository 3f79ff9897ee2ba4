import shutil
import time

import pytest

from codejudge.core.models import ExecutionRequest, TestCase
from codejudge.executor.local import LocalExecutor
from codejudge.services.judge_service import JudgeService

needs_node = pytest.mark.skipif(shutil.which("node") is None, reason="node not installed")
needs_java = pytest.mark.skipif(
    shutil.which("javac") is None or shutil.which("java") is None, reason="JDK not installed"
)

ECHO = {
    "python": "print(input())",
    "javascript": "console.log(inputLines[0]);",
    "java": (
        "import java.util.Scanner;\n"
        "public class Main {\n"
        "    public static void main(String[] args) {\n"
        "        Scanner sc = new Scanner(System.in);\n"
        "        System.out.println(sc.nextLine());\n"
        "    }\n"
        "}\n"
    ),
}

LOOP = {
    "python": "while True:\n    pass",
    "javascript": "while (true) {}",
    "java": "public class Spin { public static void main(String[] a) { while (true) {} } }",
}


@pytest.fixture
def executor(settings):
    # the JVM needs more headroom than the interpreters
    return LocalExecutor.from_settings(settings.model_copy(update={"execution_timeout_ms": 8000}))


@pytest.mark.parametrize("language", [
    "python",
    pytest.param("javascript", marks=needs_node),
    pytest.param("java", marks=needs_java),
])
def test_echo(executor, settings, language):
    r = executor.execute(ExecutionRequest(code=ECHO[language], language=language, stdin="judge me\n"))
    assert r.success, r.error
    assert r.output == "judge me"
    assert list(settings.temp_dir.iterdir()) == []


@pytest.mark.parametrize("language", [
    "python",
    pytest.param("javascript", marks=needs_node),
    pytest.param("java", marks=needs_java),
])
def test_infinite_loop_times_out(settings, language):
    settings = settings.model_copy(update={"execution_timeout_ms": 1000, "compile_timeout_ms": 30000})
    ex = LocalExecutor.from_settings(settings)
    started = time.monotonic()
    r = ex.execute(ExecutionRequest(code=LOOP[language], language=language))
    assert not r.success
    assert r.error == "Execution timed out"
    assert r.elapsed_ms == 1000
    # compile time is not part of the run budget
    assert time.monotonic() - started < 40


@needs_node
def test_javascript_sees_all_input_lines(executor):
    code = "const nums = inputLines.map(Number); console.log(nums.reduce((a, b) => a + b, 0)); return;"
    r = executor.execute(ExecutionRequest(code=code, language="javascript", stdin="1\n2\n3\n"))
    assert r.success, r.error
    assert r.output == "6"


@needs_node
def test_javascript_thrown_error_is_infra_failure(executor):
    r = executor.execute(ExecutionRequest(code="throw new Error('kaput');", language="javascript"))
    assert not r.success
    assert r.error == "kaput"


@needs_java
def test_java_main_class_is_used(executor):
    code = (
        "public class Main {\n"
        "    public static void main(String[] args) { System.out.println(\"from Main\"); }\n"
        "}\n"
    )
    r = executor.execute(ExecutionRequest(code=code, language="java"))
    assert r.success, r.error
    assert r.output == "from Main"


@needs_java
def test_java_compile_error_fails_fast(executor):
    judge = JudgeService(executor)
    code = "public class Main { public static void main(String[] a) { int x = } }"
    cases = [TestCase("1", "1"), TestCase("2", "2"), TestCase("3", "3")]
    tr = judge.run_test_cases(code, "java", cases)
    assert len(tr.results) == 1
    assert "error" in tr.results[0].error
    assert tr.summary.to_dict() == {"total": 3, "passed": 0, "failed": 3, "all_passed": False}


def test_python_syntax_error_fails_fast(executor):
    judge = JudgeService(executor)
    cases = [TestCase("1", "1"), TestCase("2", "2")]
    tr = judge.run_test_cases("print(", "python", cases)
    assert len(tr.results) == 1
    assert "SyntaxError" in tr.results[0].error
    assert tr.summary.failed == 2
