"""Unit tests for the byte-compiling backend."""

import py_compile

import pytest

from scratch_mcp.backend import PythonBackend
from scratch_mcp.results import ExpandedContext, SourceUnit


def test_generates_only_filtered_units(tmp_path):
    unit = SourceUnit("scratch_a.py", "x = 1\n", module="scratch_a")
    dependency = SourceUnit("/src/helper.py", "y = 2\n", module="helper")
    expanded = ExpandedContext(context=None, units=(unit, dependency))

    artifact = PythonBackend().generate(expanded, lambda u: u == unit, tmp_path)

    assert artifact.directory == tmp_path
    assert (tmp_path / "scratch_a.py").read_text() == "x = 1\n"
    assert not (tmp_path / "helper.py").exists()
    compiled = [p for p in artifact.files if p.suffix == ".pyc"]
    assert len(compiled) == 1
    assert compiled[0].exists()


def test_compile_failure_raises(tmp_path):
    unit = SourceUnit("scratch_b.py", "def (:\n", module="scratch_b")
    expanded = ExpandedContext(context=None, units=(unit,))

    with pytest.raises(py_compile.PyCompileError):
        PythonBackend().generate(expanded, lambda u: True, tmp_path)
