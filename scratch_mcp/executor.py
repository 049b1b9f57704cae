"""
Scratch executor: runs one scratch file through every stage and reports to
the registered output handlers.

    start -> instrument -> analyze -> compile -> run -> parse -> finish

Every stage returns Ok or Err; the first Err ends the run with one error
notification. Finishing is tied to an ExitStack that wraps the whole run:
the temporary artifact directory is released first, then every handler gets
on_finish, whatever happened before.
"""

import dataclasses
import logging
import tempfile
from contextlib import ExitStack
from pathlib import Path

from scratch_mcp.analyzer import Analyzer, ClosureResolver, ImportClosureResolver, PythonAnalyzer
from scratch_mcp.backend import Backend, PythonBackend
from scratch_mcp.config import ScratchConfig
from scratch_mcp.demux import demux
from scratch_mcp.errors import (
    BackendError,
    ExpressionResolutionError,
    MissingContextError,
    ScratchError,
    StaticAnalysisError,
)
from scratch_mcp.handlers import ScratchOutputHandler
from scratch_mcp.instrumenter import Instrumenter, PythonInstrumenter
from scratch_mcp.results import (
    AnalysisResult,
    CompileArtifact,
    Err,
    ExecutionOutput,
    ExpandedContext,
    InstrumentedCode,
    Ok,
    Result,
    SourceUnit,
)
from scratch_mcp.runner import ProcessRunner, SubprocessRunner, build_command
from scratch_mcp.scratch_file import (
    RuntimeContext,
    ScratchFile,
    ScratchOutput,
    ScratchOutputType,
    SourceExpression,
)

logger = logging.getLogger("scratch")

COMPILATION_ERROR = "Compilation Error"


class ScratchExecutor:
    def __init__(
        self,
        file: ScratchFile,
        *,
        config: ScratchConfig | None = None,
        instrumenter: Instrumenter | None = None,
        analyzer: Analyzer | None = None,
        resolver: ClosureResolver | None = None,
        backend: Backend | None = None,
        runner: ProcessRunner | None = None,
    ):
        self.file = file
        self.config = config or ScratchConfig()
        self.instrumenter = instrumenter or PythonInstrumenter()
        self.analyzer = analyzer or PythonAnalyzer()
        self.resolver = resolver or ImportClosureResolver()
        self.backend = backend or PythonBackend()
        self.runner = runner or SubprocessRunner()
        self.handlers: list[ScratchOutputHandler] = []

    def add_output_handler(self, handler: ScratchOutputHandler) -> None:
        self.handlers.append(handler)

    def execute(self) -> None:
        with ExitStack() as finish:
            finish.callback(self._notify_finish)
            for handler in self.handlers:
                handler.on_start(self.file)

            try:
                result = self._run_stages(finish)
            except Exception as e:
                logger.exception("Scratch %s failed unexpectedly", self.file.name)
                result = Err(ScratchError(str(e), f"Couldn't run {self.file.name}: {e}"))

            if isinstance(result, Err):
                self._error(result.error.user_message)

    # --- stages ---

    def _run_stages(self, finish: ExitStack) -> Result[None]:
        context = self.file.context
        if context is None:
            return Err(MissingContextError("Runtime context should be selected"))

        checked = self._check_for_errors(self.file.unit, context)
        if isinstance(checked, Err):
            return checked

        instrumented = self.instrumenter.process(self.file)
        if isinstance(instrumented, Err):
            return instrumented
        code = instrumented.value
        unit = SourceUnit(
            filename=f"{code.entry_point}.py",
            text=code.code,
            module=code.entry_point,
            code=code,
        )

        analyzed = self._analyze(unit, context)
        if isinstance(analyzed, Err):
            return analyzed
        expanded, dependency_files = analyzed.value
        logger.debug("Scratch %s depends on %d local modules", self.file.name, len(dependency_files))

        compiled = self._compile(unit, expanded, finish)
        if isinstance(compiled, Err):
            return compiled

        executed = self._run(code, context, compiled.value, expanded)
        if isinstance(executed, Err):
            return executed

        return self._parse(executed.value)

    def _check_for_errors(self, unit: SourceUnit, context: RuntimeContext) -> Result[AnalysisResult]:
        analysis = self.analyzer.analyze(unit, context)
        if analysis.fatal:
            return Err(StaticAnalysisError(analysis.fatal))

        errors = analysis.errors
        if not errors:
            return Ok(analysis)

        for diagnostic in errors:
            if diagnostic.filename != unit.filename:
                continue
            line = unit.original_line(diagnostic.line)
            expression = self.file.find_expression_at(line) if line is not None else None
            if expression is None:
                logger.info("Unplaced diagnostic in %s: %s", unit.filename, diagnostic.message)
                continue
            rendered = dataclasses.replace(diagnostic, line=line).render()
            self._handle(expression, ScratchOutput(rendered, ScratchOutputType.ERROR))

        return Err(StaticAnalysisError(
            f"{len(errors)} error(s) in {unit.filename}", COMPILATION_ERROR,
        ))

    def _analyze(self, unit: SourceUnit, context: RuntimeContext) -> Result[tuple[ExpandedContext, list[Path]]]:
        checked = self._check_for_errors(unit, context)
        if isinstance(checked, Err):
            logger.info("Instrumented %s rejected:\n%s", self.file.name, unit.text)
            return checked
        return Ok(self.resolver.resolve(context, unit))

    def _compile(self, unit: SourceUnit, expanded: ExpandedContext, finish: ExitStack) -> Result[CompileArtifact]:
        output_dir = Path(finish.enter_context(
            tempfile.TemporaryDirectory(prefix="scratch-", ignore_cleanup_errors=True)
        ))
        try:
            artifact = self.backend.generate(expanded, lambda candidate: candidate == unit, output_dir)
        except Exception as e:
            logger.info("Instrumented %s:\n%s", self.file.name, unit.text)
            logger.error("Error compiling %s: %s", self.file.name, e)
            return Err(BackendError(str(e), f"Couldn't compile {self.file.name}"))
        return Ok(artifact)

    def _run(
        self,
        code: InstrumentedCode,
        context: RuntimeContext,
        artifact: CompileArtifact,
        expanded: ExpandedContext,
    ) -> Result[ExecutionOutput]:
        import_path: list[Path] = []
        for path in (artifact.directory, *context.output_paths, *expanded.dependency_roots):
            if path not in import_path:
                import_path.append(path)

        command = build_command(self.config.python, code.entry_point, import_path, self.config.timeout_seconds)
        try:
            return Ok(self.runner.run(command))
        except ScratchError as e:
            logger.error("Error running %s: %s", self.file.name, e)
            return Err(e)

    def _parse(self, output: ExecutionOutput) -> Result[None]:
        try:
            for event in demux(output, self.file):
                if event.expression is None:
                    self._error(event.output.text)
                else:
                    self._handle(event.expression, event.output)
        except ExpressionResolutionError as e:
            logger.error("Error parsing output of %s: %s", self.file.name, e)
            return Err(e)
        return Ok(None)

    # --- notifications ---

    def _handle(self, expression: SourceExpression, output: ScratchOutput) -> None:
        for handler in self.handlers:
            handler.handle(self.file, expression, output)

    def _error(self, message: str) -> None:
        for handler in self.handlers:
            handler.error(self.file, message)

    def _notify_finish(self) -> None:
        for handler in self.handlers:
            handler.on_finish(self.file)
