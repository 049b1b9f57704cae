"""
Rewrites a Python snippet into a program that reports its own results.

Every top-level expression statement is wrapped so its repr is written with
the protocol prefix, every Source Expression is followed by a line-info
marker, and the program ends with the end-of-output marker. Instrumented
lines map one-to-one onto the original line they came from, so diagnostics
against the instrumented program can be traced back.
"""

import ast
import uuid
from typing import Protocol

from scratch_mcp.errors import InstrumentationError
from scratch_mcp.protocol import (
    END_OUTPUT_MARKER,
    GENERATED_OUTPUT_PREFIX,
    encode_line_info,
)
from scratch_mcp.results import Err, InstrumentedCode, Ok, Result
from scratch_mcp.scratch_file import (
    ScratchFile,
    group_statements,
    source_lines,
    statement_range,
)

VALUE_FUNCTION = "__scratch_value"
EMIT_FUNCTION = "__scratch_emit"

HEADER = f"""\
import sys as __scratch_sys


def {EMIT_FUNCTION}(line):
    __scratch_sys.stdout.write(line + "\\n")
    __scratch_sys.stdout.flush()


def {VALUE_FUNCTION}(value):
    for line in repr(value).splitlines():
        {EMIT_FUNCTION}({GENERATED_OUTPUT_PREFIX!r} + line)

"""


class Instrumenter(Protocol):
    def process(self, file: ScratchFile) -> Result[InstrumentedCode]: ...


def new_entry_point() -> str:
    return f"scratch_{uuid.uuid4().hex[:8]}"


def _is_future_import(group: list[ast.stmt]) -> bool:
    return all(
        isinstance(node, ast.ImportFrom) and node.module == "__future__"
        for node in group
    )


class _Program:
    """Instrumented lines plus the original line behind each of them."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.line_map: list[int | None] = []

    def generated(self, text: str) -> None:
        for line in text.splitlines():
            self.lines.append(line)
            self.line_map.append(None)

    def original(self, text: str, first_line: int) -> None:
        for offset, line in enumerate(text.split("\n")):
            self.lines.append(line)
            self.line_map.append(first_line + offset)

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"


class PythonInstrumenter:
    def __init__(self, entry_point_factory=new_entry_point):
        self._entry_point_factory = entry_point_factory

    def process(self, file: ScratchFile) -> Result[InstrumentedCode]:
        try:
            tree = ast.parse(file.text, filename=file.name)
        except (SyntaxError, ValueError) as e:
            return Err(InstrumentationError(f"Couldn't instrument {file.name}: {e}"))

        lines = source_lines(file.text)
        groups = group_statements(tree)
        program = _Program()

        # __future__ imports must stay ahead of everything generated
        while groups and _is_future_import(groups[0]):
            start, end = statement_range(groups[0][0])[0], statement_range(groups[0][-1])[1]
            program.original("\n".join(lines[start:end + 1]), start)
            groups.pop(0)

        program.generated(HEADER)

        for group in groups:
            start = statement_range(group[0])[0]
            end = max(statement_range(node)[1] for node in group)
            if len(group) == 1 and not isinstance(group[0], ast.Expr):
                program.original("\n".join(lines[start:end + 1]), start)
            else:
                for node in group:
                    self._add_statement(program, file.text, node)
            program.generated(f"{EMIT_FUNCTION}({encode_line_info(start, end)!r})")

        program.generated(f"{EMIT_FUNCTION}({END_OUTPUT_MARKER!r})")

        return Ok(InstrumentedCode(
            code=program.text(),
            entry_point=self._entry_point_factory(),
            line_map=tuple(program.line_map),
        ))

    @staticmethod
    def _add_statement(program: _Program, text: str, node: ast.stmt) -> None:
        if isinstance(node, ast.Expr):
            segment = ast.get_source_segment(text, node.value)
            program.original(f"{VALUE_FUNCTION}(({segment}))", node.value.lineno - 1)
        else:
            segment = ast.get_source_segment(text, node)
            program.original(segment, node.lineno - 1)
