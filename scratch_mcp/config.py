"""
Environment-driven settings for the scratch server.

Values come from the process environment; main.py loads a project-level
.env into it first when one exists.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from scratch_mcp.scratch_file import RuntimeContext

logger = logging.getLogger("scratch")

DEFAULT_TIMEOUT_SECONDS = 30.0


def _paths(value: str) -> tuple[Path, ...]:
    return tuple(Path(p).expanduser() for p in value.split(os.pathsep) if p.strip())


def _timeout(value: str) -> float | None:
    try:
        seconds = float(value)
    except ValueError:
        raise ValueError(f"SCRATCH_TIMEOUT_SECONDS must be a number, got {value!r}") from None
    if seconds < 0:
        raise ValueError(f"SCRATCH_TIMEOUT_SECONDS must not be negative, got {value!r}")
    # 0 disables the timeout
    return seconds or None


@dataclass(frozen=True)
class ScratchConfig:
    python: str = sys.executable
    timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS
    context_name: str = "scratch"
    source_roots: tuple[Path, ...] = field(default_factory=lambda: (Path.cwd(),))
    output_paths: tuple[Path, ...] = ()

    @classmethod
    def from_env(cls) -> "ScratchConfig":
        source_roots = _paths(os.environ.get("SCRATCH_SOURCE_ROOTS", "")) or (Path.cwd(),)
        output_paths = _paths(os.environ.get("SCRATCH_OUTPUT_PATHS", "")) or source_roots
        timeout = os.environ.get("SCRATCH_TIMEOUT_SECONDS", "").strip()
        return cls(
            python=os.environ.get("SCRATCH_PYTHON", "").strip() or sys.executable,
            timeout_seconds=_timeout(timeout) if timeout else DEFAULT_TIMEOUT_SECONDS,
            context_name=os.environ.get("SCRATCH_CONTEXT_NAME", "").strip() or "scratch",
            source_roots=source_roots,
            output_paths=output_paths,
        )

    def runtime_context(self) -> RuntimeContext:
        return RuntimeContext(
            name=self.context_name,
            source_roots=self.source_roots,
            output_paths=self.output_paths or self.source_roots,
        )


_config: ScratchConfig | None = None


def get_config() -> ScratchConfig:
    """Return (or build from the environment) the server-wide config."""
    global _config
    if _config is None:
        _config = ScratchConfig.from_env()
        logger.info(
            "Scratch config: python=%s timeout=%s roots=%s",
            _config.python, _config.timeout_seconds,
            os.pathsep.join(str(p) for p in _config.source_roots),
        )
    return _config


def reset_config() -> None:
    """Reset the singleton (useful for tests)."""
    global _config
    _config = None
