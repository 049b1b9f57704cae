"""
Static checks for scratch sources, and the import closure a run needs.

The analyzer compiles without executing: anything ``compile`` rejects is an
error, ``SyntaxWarning`` becomes a warning. The closure resolver follows
imports into modules found under the runtime context's source roots so the
child process can import them.
"""

import ast
import logging
import warnings
from pathlib import Path
from typing import Protocol

from scratch_mcp.results import (
    AnalysisResult,
    Diagnostic,
    ExpandedContext,
    Severity,
    SourceUnit,
)
from scratch_mcp.scratch_file import RuntimeContext

logger = logging.getLogger("scratch")


class Analyzer(Protocol):
    def analyze(self, unit: SourceUnit, context: RuntimeContext | None = None) -> AnalysisResult: ...


class ClosureResolver(Protocol):
    def resolve(self, context: RuntimeContext, unit: SourceUnit) -> tuple[ExpandedContext, list[Path]]: ...


def _line(lineno: int | None) -> int | None:
    return lineno - 1 if lineno else None


class PythonAnalyzer:
    def analyze(self, unit: SourceUnit, context: RuntimeContext | None = None) -> AnalysisResult:
        result = AnalysisResult(context=context)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", SyntaxWarning)
            try:
                compile(unit.text, unit.filename, "exec", dont_inherit=True)
            except SyntaxError as e:
                # covers IndentationError and TabError too
                result.diagnostics.append(Diagnostic(
                    Severity.ERROR, e.filename or unit.filename, _line(e.lineno),
                    f"{type(e).__name__}: {e.msg}",
                ))
            except ValueError as e:
                # source the compiler refuses outright, e.g. null bytes
                result.fatal = f"Couldn't analyze {unit.filename}: {e}"
                return result

        for warning in caught:
            if issubclass(warning.category, SyntaxWarning):
                result.diagnostics.append(Diagnostic(
                    Severity.WARNING, warning.filename or unit.filename, _line(warning.lineno),
                    f"SyntaxWarning: {warning.message}",
                ))
        return result


def _imported_modules(tree: ast.Module) -> list[str]:
    names = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and not node.level:
            names.append(node.module)
            names.extend(f"{node.module}.{alias.name}" for alias in node.names if alias.name != "*")
    return names


def _find_module(name: str, roots: tuple[Path, ...]) -> tuple[Path, Path] | None:
    """Return (file, root) for a module under one of the roots."""
    parts = name.split(".")
    for root in roots:
        base = root.joinpath(*parts)
        for candidate in (base.with_suffix(".py"), base / "__init__.py"):
            if candidate.is_file():
                return candidate, root
    return None


class ImportClosureResolver:
    def resolve(self, context: RuntimeContext, unit: SourceUnit) -> tuple[ExpandedContext, list[Path]]:
        dependencies: list[SourceUnit] = []
        files: list[Path] = []
        roots: list[Path] = []
        pending = [ast.parse(unit.text, filename=unit.filename)]

        while pending:
            tree = pending.pop()
            for name in _imported_modules(tree):
                found = _find_module(name, context.source_roots)
                if found is None:
                    continue
                path, root = found
                path = path.resolve()
                if path in files:
                    continue
                files.append(path)
                if root not in roots:
                    roots.append(root)
                try:
                    text = path.read_text(encoding="utf-8")
                    pending.append(ast.parse(text, filename=str(path)))
                except (SyntaxError, ValueError, OSError) as e:
                    logger.warning("Skipping imports of %s: %s", path, e)
                    text = ""
                dependencies.append(SourceUnit(filename=str(path), text=text, module=name))

        logger.debug("Resolved %d local dependencies for %s", len(files), unit.filename)
        expanded = ExpandedContext(
            context=context,
            units=(unit, *dependencies),
            dependency_roots=tuple(roots),
        )
        return expanded, files
