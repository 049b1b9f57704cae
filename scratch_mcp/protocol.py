"""
Line protocol shared by instrumented scratch programs and the output parser.

An instrumented program writes to the same stdout as the user's own print
calls, so every line it emits for bookkeeping starts with a reserved prefix:

  #scratch#<value>          one evaluated result (repr text)
  #scratch#lines:<s>|<e>    everything buffered so far belongs to lines s..e
  #scratch-end#             end of run output, stop parsing

The grammar has no escaping. A user line that happens to start with the
prefix is read as a value.
"""

import enum
from dataclasses import dataclass

GENERATED_OUTPUT_PREFIX = "#scratch#"
LINES_INFO_MARKER = "lines:"
END_OUTPUT_MARKER = "#scratch-end#"
# repr() of a statement that produced nothing
NO_VALUE = "None"


class LineKind(enum.Enum):
    END = "end"
    LINE_INFO = "line_info"
    VALUE = "value"
    PLAIN = "plain"


@dataclass(frozen=True)
class ProtocolLine:
    kind: LineKind
    payload: str = ""
    start: int = -1
    end: int = -1


def encode_value(text: str) -> str:
    return f"{GENERATED_OUTPUT_PREFIX}{text}"


def encode_line_info(start: int, end: int) -> str:
    return f"{GENERATED_OUTPUT_PREFIX}{LINES_INFO_MARKER}{start}|{end}"


def _parse_line_info(encoded: str) -> tuple[int, int] | None:
    """Return (start, end) for a well-formed marker body, else None."""
    nums = encoded[len(LINES_INFO_MARKER):].split("|")
    if len(nums) != 2:
        return None
    try:
        start, end = int(nums[0]), int(nums[1])
    except ValueError:
        return None
    if start < 0 or end < 0:
        return None
    return start, end


def decode_line(line: str) -> ProtocolLine:
    """Classify one line of captured stdout.

    Malformed line info never raises: the line degrades to a VALUE carrying
    everything after the prefix.
    """
    line = line.rstrip("\r\n")
    if line == END_OUTPUT_MARKER:
        return ProtocolLine(LineKind.END)

    if not line.startswith(GENERATED_OUTPUT_PREFIX):
        return ProtocolLine(LineKind.PLAIN, line)

    body = line[len(GENERATED_OUTPUT_PREFIX):]
    if body.startswith(LINES_INFO_MARKER):
        lines = _parse_line_info(body)
        if lines is not None:
            return ProtocolLine(LineKind.LINE_INFO, body, lines[0], lines[1])
    return ProtocolLine(LineKind.VALUE, body)
