"""
StandardResponse envelope shared by every scratch tool.

Success carries ``data``; failure carries a message, a machine-readable
code and, for failed runs, whatever the run managed to report first.
"""

from typing import Any

SCRATCH_FAILED = "SCRATCH_FAILED"
VALIDATION_ERROR = "VALIDATION_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


def success_response(data: dict[str, Any]) -> dict[str, Any]:
    return {"success": True, "data": data}


def error_response(
    error: str,
    error_code: str = INTERNAL_ERROR,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    resp: dict[str, Any] = {"success": False, "error": error, "errorCode": error_code}
    if details:
        resp["errorDetails"] = details
    return resp
