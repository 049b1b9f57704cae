"""
Output demultiplexer.

Turns the captured output of one instrumented run back into per-expression
events. Pure over its input: decoding the same output twice yields the same
events, and nothing is kept between calls.
"""

from collections.abc import Iterator

from scratch_mcp.protocol import NO_VALUE, LineKind, decode_line
from scratch_mcp.results import ExecutionOutput
from scratch_mcp.scratch_file import (
    ScratchEvent,
    ScratchFile,
    ScratchOutput,
    ScratchOutputType,
)

SEPARATOR = "; "


def demux(output: ExecutionOutput, file: ScratchFile) -> Iterator[ScratchEvent]:
    """Yield events in the order they can be attributed.

    Non-blank stderr comes first as a single run-scoped ERROR event; stderr
    and stdout were captured separately, so their real interleaving is gone.
    Raises ExpressionResolutionError when a line range matches no expression.
    """
    if output.stderr.strip():
        yield ScratchEvent(None, ScratchOutput(output.stderr, ScratchOutputType.ERROR))
    if output.stdout.strip():
        yield from demux_stdout(output.stdout, file)


def demux_stdout(stdout: str, file: ScratchFile) -> Iterator[ScratchEvent]:
    results: list[str] = []
    user_output: list[str] = []

    lines = stdout.split("\n")
    # the final newline of the capture is not an empty line of user output
    if lines and lines[-1] == "":
        lines.pop()

    for line in lines:
        decoded = decode_line(line)

        if decoded.kind is LineKind.END:
            return

        if decoded.kind is LineKind.LINE_INFO:
            expression = file.find_expression(decoded.start, decoded.end)
            if user_output:
                yield ScratchEvent(
                    expression,
                    ScratchOutput(SEPARATOR.join(user_output), ScratchOutputType.OUTPUT),
                )
                user_output = []
            if results:
                yield ScratchEvent(
                    expression,
                    ScratchOutput(SEPARATOR.join(results), ScratchOutputType.RESULT),
                )
                results = []
        elif decoded.kind is LineKind.VALUE:
            if decoded.payload != NO_VALUE:
                results.append(decoded.payload)
        else:
            user_output.append(decoded.payload)
    # whatever is still buffered has no line range to go to
