"""End-to-end tests that run snippets in a real child interpreter.

These go through every default collaborator: analyzer, instrumenter,
import closure, byte-compilation and a real subprocess. Set
SCRATCH_SKIP_E2E=1 to skip them where spawning interpreters is not
allowed.

Run with:
    python -m pytest tests/e2e/ -v
"""

import os

import pytest

pytestmark = pytest.mark.skipif(
    bool(os.environ.get("SCRATCH_SKIP_E2E")),
    reason="SCRATCH_SKIP_E2E set, skipping live interpreter tests",
)


def _outputs(result):
    data = result["data"] if result["success"] else result["errorDetails"]
    return {
        (e["lineStart"], e["lineEnd"]): [(o["type"], o["text"]) for o in e["outputs"]]
        for e in data["expressions"]
    }


def test_live_results_and_output(scratch_config):
    from scratch_mcp.tools.scratch import handle_run_scratch

    result = handle_run_scratch("x = 5\nx\nprint('hello')\nx * 2\n")

    assert result["success"] is True, result
    assert _outputs(result) == {
        (1, 1): [("result", "5")],
        (2, 2): [("output", "hello")],
        (3, 3): [("result", "10")],
    }


def test_live_multiline_expression(scratch_config):
    from scratch_mcp.tools.scratch import handle_run_scratch

    result = handle_run_scratch("def square(n):\n    return n * n\n\nsquare(\n    4\n)\n")

    assert result["success"] is True, result
    assert _outputs(result) == {(3, 5): [("result", "16")]}


def test_live_runtime_error_keeps_earlier_results(scratch_config):
    from scratch_mcp.tools.scratch import handle_run_scratch

    result = handle_run_scratch("'before'\nraise ValueError('boom')\n'after'\n")

    assert result["success"] is False
    assert result["errorCode"] == "SCRATCH_FAILED"
    assert "ValueError: boom" in result["error"]
    assert _outputs(result) == {(0, 0): [("result", "'before'")]}


def test_live_compilation_error(scratch_config):
    from scratch_mcp.tools.scratch import handle_run_scratch

    result = handle_run_scratch("x = 1\nreturn x\n")

    assert result["success"] is False
    assert result["error"] == "Compilation Error"
    assert _outputs(result) == {
        (1, 1): [("error", "SyntaxError: 'return' outside function (line 2)")],
    }


def test_live_local_import(scratch_config, tmp_path):
    (tmp_path / "helper.py").write_text("def double(x):\n    return x * 2\n")

    from scratch_mcp.tools.scratch import handle_run_scratch

    result = handle_run_scratch("from helper import double\ndouble(21)\n")

    assert result["success"] is True, result
    assert _outputs(result) == {(1, 1): [("result", "42")]}


def test_live_timeout(scratch_config):
    from scratch_mcp.tools.scratch import handle_run_scratch

    result = handle_run_scratch("import time\ntime.sleep(30)\n", timeout_seconds=1)

    assert result["success"] is False
    assert "timed out" in result["error"]
