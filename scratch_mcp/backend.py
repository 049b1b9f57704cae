"""Code generation: writes the instrumented program and byte-compiles it."""

import logging
import py_compile
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from scratch_mcp.results import CompileArtifact, ExpandedContext, SourceUnit

logger = logging.getLogger("scratch")

UnitFilter = Callable[[SourceUnit], bool]


class Backend(Protocol):
    def generate(self, expanded: ExpandedContext, unit_filter: UnitFilter, output_dir: Path) -> CompileArtifact: ...


class PythonBackend:
    """Generate only the units the filter accepts.

    Dependencies stay where they are and reach the child through its import
    path. Raises py_compile.PyCompileError or OSError on failure.
    """

    def __init__(self, optimize: int = -1):
        self.optimize = optimize

    def generate(self, expanded: ExpandedContext, unit_filter: UnitFilter, output_dir: Path) -> CompileArtifact:
        files: list[Path] = []
        for unit in expanded.units:
            if not unit_filter(unit):
                continue
            source = output_dir / f"{unit.module}.py"
            source.write_text(unit.text, encoding="utf-8")
            compiled = py_compile.compile(
                str(source), doraise=True, optimize=self.optimize,
                invalidation_mode=py_compile.PycInvalidationMode.CHECKED_HASH,
            )
            files.extend([source, Path(compiled)])
            logger.debug("Compiled %s -> %s", unit.filename, compiled)
        return CompileArtifact(directory=output_dir, files=tuple(files))
