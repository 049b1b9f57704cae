"""Scratch tools: run_scratch, check_scratch, list_expressions."""

import dataclasses
import logging
from typing import Any

from fastmcp import FastMCP

from scratch_mcp import config
from scratch_mcp.analyzer import PythonAnalyzer
from scratch_mcp.executor import ScratchExecutor
from scratch_mcp.handlers import CollectingOutputHandler, LoggingOutputHandler
from scratch_mcp.response import (
    SCRATCH_FAILED,
    VALIDATION_ERROR,
    error_response,
    success_response,
)
from scratch_mcp.scratch_file import ScratchFile, parse_expressions

logger = logging.getLogger("scratch")


def handle_run_scratch(code: str, timeout_seconds: float | None = None) -> dict[str, Any]:
    """Run a snippet and report results and output per expression."""
    if not code.strip():
        return error_response("code must not be empty", VALIDATION_ERROR)
    if timeout_seconds is not None and timeout_seconds <= 0:
        return error_response("timeout_seconds must be positive", VALIDATION_ERROR)
    try:
        cfg = config.get_config()
        if timeout_seconds is not None:
            cfg = dataclasses.replace(cfg, timeout_seconds=timeout_seconds)

        file = ScratchFile.from_text(code, cfg.runtime_context())
        collector = CollectingOutputHandler()
        executor = ScratchExecutor(file, config=cfg)
        executor.add_output_handler(LoggingOutputHandler())
        executor.add_output_handler(collector)
        executor.execute()

        data = collector.to_dict()
        if collector.errors:
            return error_response("\n".join(collector.errors), SCRATCH_FAILED, data)
        return success_response(data)
    except Exception as e:
        logger.error("Error running scratch: %s", e)
        return error_response(str(e))


def handle_check_scratch(code: str) -> dict[str, Any]:
    """Analyze a snippet without running it."""
    try:
        cfg = config.get_config()
        file = ScratchFile.from_text(code, cfg.runtime_context())
        analysis = PythonAnalyzer().analyze(file.unit, file.context)
        if analysis.fatal:
            return error_response(analysis.fatal, VALIDATION_ERROR)
        diagnostics = [
            {
                "severity": d.severity.value,
                "line": d.line,
                "message": d.render(),
            }
            for d in analysis.diagnostics
        ]
        return success_response({"valid": not analysis.errors, "diagnostics": diagnostics})
    except Exception as e:
        logger.error("Error checking scratch: %s", e)
        return error_response(str(e))


def handle_list_expressions(code: str) -> dict[str, Any]:
    """Split a snippet into the expressions a run reports against."""
    try:
        expressions = parse_expressions(code)
    except (SyntaxError, ValueError) as e:
        return error_response(f"Snippet does not parse: {e}", VALIDATION_ERROR)
    return success_response({
        "expressions": [
            {"lineStart": e.line_start, "lineEnd": e.line_end, "text": e.text}
            for e in expressions
        ],
        "count": len(expressions),
    })


def register_scratch_tools(mcp: FastMCP) -> None:
    @mcp.tool()
    def run_scratch(code: str, timeout_seconds: float | None = None) -> dict[str, Any]:
        """Run a Python scratch snippet in a child interpreter.

        Each top-level statement is reported separately with its result
        (repr of expression statements) and anything it printed.

        Args:
            code: Python source, a sequence of top-level statements
            timeout_seconds: Kill the run after this many seconds (default: server setting)
        """
        return handle_run_scratch(code, timeout_seconds)

    @mcp.tool()
    def check_scratch(code: str) -> dict[str, Any]:
        """Check a Python scratch snippet for compile errors without running it.

        Args:
            code: Python source to check
        """
        return handle_check_scratch(code)

    @mcp.tool()
    def list_expressions(code: str) -> dict[str, Any]:
        """List the top-level expressions of a snippet with their 0-based line ranges.

        Args:
            code: Python source to split
        """
        return handle_list_expressions(code)
