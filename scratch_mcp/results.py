"""Stage result types threaded through a scratch run."""

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generic, TypeVar, Union

from scratch_mcp.errors import ScratchError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: ScratchError


Result = Union[Ok[T], Err]


# --- instrumentation ---


@dataclass(frozen=True)
class InstrumentedCode:
    code: str
    entry_point: str
    # line_map[i] is the original line behind instrumented line i (None when generated)
    line_map: tuple[int | None, ...] = ()

    def original_line(self, line: int) -> int | None:
        if 0 <= line < len(self.line_map):
            return self.line_map[line]
        return None


# --- analysis ---


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    filename: str
    line: int | None
    message: str

    def render(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (line {self.line + 1})"


@dataclass(frozen=True)
class SourceUnit:
    """One analyzable piece of source, the snippet or a dependency."""

    filename: str
    text: str
    # module name the unit is generated under by the backend
    module: str = ""
    # back-link to the original snippet for instrumented units
    code: InstrumentedCode | None = None

    def original_line(self, line: int | None) -> int | None:
        if line is None:
            return None
        if self.code is None:
            return line
        return self.code.original_line(line)


@dataclass
class AnalysisResult:
    diagnostics: list[Diagnostic] = field(default_factory=list)
    context: object = None
    fatal: str | None = None

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]


@dataclass(frozen=True)
class ExpandedContext:
    """Everything code generation needs: the unit itself plus its closure."""

    context: object
    units: tuple[SourceUnit, ...]
    dependency_roots: tuple[Path, ...] = ()


# --- compile / run ---


@dataclass(frozen=True)
class CompileArtifact:
    directory: Path
    files: tuple[Path, ...] = ()


@dataclass(frozen=True)
class ExecutionOutput:
    stdout: str
    stderr: str
    returncode: int = 0
