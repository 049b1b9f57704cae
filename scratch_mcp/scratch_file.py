"""
Scratch source model: the submitted snippet, its expressions, and the
outputs reported against them.

Line numbers are 0-based and inclusive throughout.
"""

import ast
import enum
import re
from dataclasses import dataclass, field
from pathlib import Path

from scratch_mcp.errors import ExpressionResolutionError
from scratch_mcp.results import SourceUnit


@dataclass(frozen=True)
class RuntimeContext:
    """Where a scratch runs: local import roots and the module output."""

    name: str
    source_roots: tuple[Path, ...] = ()
    output_paths: tuple[Path, ...] = ()


@dataclass(frozen=True)
class SourceExpression:
    line_start: int
    line_end: int
    text: str = ""

    def contains(self, line: int) -> bool:
        return self.line_start <= line <= self.line_end


class ScratchOutputType(enum.Enum):
    RESULT = "result"
    OUTPUT = "output"
    ERROR = "error"


@dataclass(frozen=True)
class ScratchOutput:
    text: str
    type: ScratchOutputType


@dataclass(frozen=True)
class ScratchEvent:
    # None for run-scoped events that belong to no expression
    expression: SourceExpression | None
    output: ScratchOutput


_NEWLINE = re.compile(r"\r\n|\r|\n")


def source_lines(text: str) -> list[str]:
    """Split the way the tokenizer does, so indexes match ast line numbers."""
    return _NEWLINE.split(text)


def statement_range(node: ast.stmt) -> tuple[int, int]:
    """0-based line range of a top-level statement, decorators included."""
    start = node.lineno
    for decorator in getattr(node, "decorator_list", []):
        start = min(start, decorator.lineno)
    end = node.end_lineno or node.lineno
    return start - 1, end - 1


def group_statements(tree: ast.Module) -> list[list[ast.stmt]]:
    """Group top-level statements so groups never share a line."""
    groups: list[list[ast.stmt]] = []
    last_end = -1
    for node in tree.body:
        start, end = statement_range(node)
        if groups and start <= last_end:
            groups[-1].append(node)
        else:
            groups.append([node])
        last_end = max(last_end, end)
    return groups


def parse_expressions(text: str) -> list[SourceExpression]:
    """Split a snippet into expressions. Raises SyntaxError for bad input."""
    tree = ast.parse(text)
    lines = source_lines(text)
    expressions = []
    for group in group_statements(tree):
        start = statement_range(group[0])[0]
        end = max(statement_range(node)[1] for node in group)
        expressions.append(SourceExpression(start, end, "\n".join(lines[start:end + 1])))
    return expressions


@dataclass
class ScratchFile:
    name: str
    text: str
    expressions: list[SourceExpression] = field(default_factory=list)
    context: RuntimeContext | None = None

    @classmethod
    def from_text(
        cls,
        text: str,
        context: RuntimeContext | None = None,
        name: str = "scratch.py",
    ) -> "ScratchFile":
        try:
            expressions = parse_expressions(text)
        except (SyntaxError, ValueError):
            # the pre-check reports it
            expressions = []
        return cls(name=name, text=text, expressions=expressions, context=context)

    @property
    def unit(self) -> SourceUnit:
        return SourceUnit(filename=self.name, text=self.text)

    def find_expression(self, line_start: int, line_end: int) -> SourceExpression:
        for expression in self.expressions:
            if expression.line_start == line_start and expression.line_end == line_end:
                return expression
        raise ExpressionResolutionError(
            f"No expression spans lines {line_start}..{line_end} in {self.name}",
            "Couldn't match program output to the scratch expressions",
        )

    def find_expression_at(self, line: int) -> SourceExpression | None:
        for expression in self.expressions:
            if expression.contains(line):
                return expression
        return None
