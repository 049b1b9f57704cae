"""Shared test fixtures for Scratch MCP tests."""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

# Ensure scratch_mcp is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from scratch_mcp.config import ScratchConfig  # noqa: E402
from scratch_mcp.handlers import CollectingOutputHandler  # noqa: E402
from scratch_mcp.results import (  # noqa: E402
    AnalysisResult,
    CompileArtifact,
    ExecutionOutput,
    ExpandedContext,
    InstrumentedCode,
    Ok,
)
from scratch_mcp.scratch_file import RuntimeContext, ScratchFile, SourceExpression  # noqa: E402


@pytest.fixture
def context(tmp_path):
    return RuntimeContext(name="test", source_roots=(tmp_path,), output_paths=(tmp_path,))


@pytest.fixture
def collector():
    return CollectingOutputHandler()


@pytest.fixture
def make_file(context):
    """Build a ScratchFile with explicit expression ranges."""

    def _make(*ranges, with_context=True):
        expressions = [SourceExpression(start, end) for start, end in ranges]
        return ScratchFile(
            name="scratch.py",
            text="\n".join("pass" for _ in range(max((e for _, e in ranges), default=0) + 1)),
            expressions=expressions,
            context=context if with_context else None,
        )

    return _make


@pytest.fixture
def pipeline():
    """Mocked collaborators for the executor, successful by default.

    ``pipeline.stdout`` / ``pipeline.stderr`` set what the fake child
    prints; ``pipeline.output_dirs`` records each artifact directory the
    backend was handed, with whether it existed at that moment.
    """
    state = SimpleNamespace(stdout="", stderr="", output_dirs=[])

    instrumenter = MagicMock()
    instrumenter.process.return_value = Ok(InstrumentedCode("pass\n", "scratch_test", (0,)))

    analyzer = MagicMock()
    analyzer.analyze.return_value = AnalysisResult()

    resolver = MagicMock()
    resolver.resolve.side_effect = lambda ctx, unit: (ExpandedContext(ctx, (unit,)), [])

    def generate(expanded, unit_filter, output_dir):
        state.output_dirs.append((output_dir, output_dir.exists()))
        return CompileArtifact(output_dir)

    backend = MagicMock()
    backend.generate.side_effect = generate

    runner = MagicMock()
    runner.run.side_effect = lambda command: ExecutionOutput(state.stdout, state.stderr)

    state.instrumenter = instrumenter
    state.analyzer = analyzer
    state.resolver = resolver
    state.backend = backend
    state.runner = runner
    return state


@pytest.fixture
def make_executor(pipeline, collector):
    from scratch_mcp.executor import ScratchExecutor

    def _make(file):
        executor = ScratchExecutor(
            file,
            config=ScratchConfig(python="python3", timeout_seconds=5),
            instrumenter=pipeline.instrumenter,
            analyzer=pipeline.analyzer,
            resolver=pipeline.resolver,
            backend=pipeline.backend,
            runner=pipeline.runner,
        )
        executor.add_output_handler(collector)
        return executor

    return _make


@pytest.fixture
def scratch_config(tmp_path):
    """Point the server-wide config at a temporary source root."""
    cfg = ScratchConfig(timeout_seconds=20, source_roots=(tmp_path,), output_paths=(tmp_path,))
    with patch("scratch_mcp.config.get_config", return_value=cfg):
        yield cfg
