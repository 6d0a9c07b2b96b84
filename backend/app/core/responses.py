"""Response envelope shared by every endpoint."""

from typing import Any


def success_response(data: Any = None, message: str = "ok") -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def error_response(message: str, error: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message, "data": None}
    if error is not None:
        body["error"] = error
    return body
