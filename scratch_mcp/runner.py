"""Launches the compiled scratch program in a child interpreter."""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from scratch_mcp.errors import ProcessExecutionError, ProcessLaunchError
from scratch_mcp.results import ExecutionOutput

logger = logging.getLogger("scratch")

# dropped so the child's import path is exactly what the run assembles
_STRIPPED_ENV = {"PYTHONPATH", "PYTHONHOME", "PYTHONSTARTUP", "PYTHONSAFEPATH"}


@dataclass(frozen=True)
class ProcessCommand:
    args: list[str]
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    timeout: float | None = None

    @property
    def command_line(self) -> str:
        return " ".join(self.args)


class ProcessRunner(Protocol):
    def run(self, command: ProcessCommand) -> ExecutionOutput: ...


def build_command(
    python: str,
    entry_point: str,
    import_path: list[Path],
    timeout: float | None = None,
) -> ProcessCommand:
    env = {k: v for k, v in os.environ.items() if k not in _STRIPPED_ENV}
    env["PYTHONPATH"] = os.pathsep.join(str(p) for p in import_path)
    env["PYTHONIOENCODING"] = "utf-8"
    env["PYTHONUNBUFFERED"] = "1"
    return ProcessCommand(
        args=[python, "-m", entry_point],
        env=env,
        cwd=str(import_path[0]) if import_path else None,
        timeout=timeout,
    )


class SubprocessRunner:
    def run(self, command: ProcessCommand) -> ExecutionOutput:
        logger.debug("Running %s", command.command_line)
        try:
            proc = subprocess.run(
                command.args,
                env=command.env,
                cwd=command.cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=command.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ProcessExecutionError(
                f"{command.command_line} timed out after {command.timeout}s",
                f"Scratch timed out after {command.timeout:g} seconds",
            ) from None
        except OSError as e:
            raise ProcessLaunchError(
                f"Couldn't start {command.command_line}: {e}",
                f"Couldn't start the scratch process: {e}",
            ) from e
        return ExecutionOutput(stdout=proc.stdout, stderr=proc.stderr, returncode=proc.returncode)
