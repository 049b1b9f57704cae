"""Output handlers: who gets told about a scratch run, and how."""

import logging
from typing import Any, Protocol

from scratch_mcp.scratch_file import (
    ScratchFile,
    ScratchOutput,
    SourceExpression,
)

logger = logging.getLogger("scratch")


class ScratchOutputHandler(Protocol):
    def on_start(self, file: ScratchFile) -> None: ...

    def on_finish(self, file: ScratchFile) -> None: ...

    def error(self, file: ScratchFile, message: str) -> None: ...

    def handle(self, file: ScratchFile, expression: SourceExpression, output: ScratchOutput) -> None: ...


class LoggingOutputHandler:
    """Mirror a run to the ``scratch`` logger."""

    def on_start(self, file: ScratchFile) -> None:
        logger.info("Scratch %s started (%d expressions)", file.name, len(file.expressions))

    def on_finish(self, file: ScratchFile) -> None:
        logger.info("Scratch %s finished", file.name)

    def error(self, file: ScratchFile, message: str) -> None:
        logger.warning("Scratch %s error: %s", file.name, message)

    def handle(self, file: ScratchFile, expression: SourceExpression, output: ScratchOutput) -> None:
        logger.debug(
            "Scratch %s [%d..%d] %s: %s",
            file.name, expression.line_start, expression.line_end,
            output.type.value, output.text,
        )


class CollectingOutputHandler:
    """Record everything a run reports, in arrival order.

    Outputs are grouped per expression; since the executor emits all events
    of one expression before moving on, the groups keep run order too.
    """

    def __init__(self) -> None:
        self.started = 0
        self.finished = 0
        self.errors: list[str] = []
        self.events: list[tuple[SourceExpression, ScratchOutput]] = []

    def on_start(self, file: ScratchFile) -> None:
        self.started += 1

    def on_finish(self, file: ScratchFile) -> None:
        self.finished += 1

    def error(self, file: ScratchFile, message: str) -> None:
        self.errors.append(message)

    def handle(self, file: ScratchFile, expression: SourceExpression, output: ScratchOutput) -> None:
        self.events.append((expression, output))

    def outputs_for(self, expression: SourceExpression) -> list[ScratchOutput]:
        return [output for expr, output in self.events if expr == expression]

    def to_dict(self) -> dict[str, Any]:
        expressions: list[dict[str, Any]] = []
        for expression, output in self.events:
            if not expressions or (
                expressions[-1]["lineStart"], expressions[-1]["lineEnd"]
            ) != (expression.line_start, expression.line_end):
                expressions.append({
                    "lineStart": expression.line_start,
                    "lineEnd": expression.line_end,
                    "outputs": [],
                })
            expressions[-1]["outputs"].append({"type": output.type.value, "text": output.text})
        return {"expressions": expressions, "errors": list(self.errors)}
