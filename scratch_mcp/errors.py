"""Failure taxonomy for scratch runs.

Stages hand these around inside ``Err`` values rather than raising them
across stage boundaries. ``user_message`` is what handlers are shown;
``str(error)`` keeps the detail for the log.
"""


class ScratchError(Exception):
    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message


class MissingContextError(ScratchError):
    """The scratch file has no runtime context to run against."""


class StaticAnalysisError(ScratchError):
    """Error diagnostics in the original or the instrumented snippet."""


class InstrumentationError(ScratchError):
    """The snippet could not be rewritten into an instrumented program."""


class BackendError(ScratchError):
    """Code generation failed. The cause is logged, not shown."""


class ProcessLaunchError(ScratchError):
    """The child interpreter could not be started."""


class ProcessExecutionError(ScratchError):
    """The child interpreter was started but did not complete."""


class ExpressionResolutionError(ScratchError):
    """A line range in the output matches no expression of the file."""
