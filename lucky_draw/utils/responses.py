"""JSON envelope shared by every API response.

``{"success": bool, "data": ..., "error": {"code", "message", "details"} | None}``
"""

from __future__ import annotations

from typing import Any

from flask import Response, jsonify


def envelope(data: Any = None, error: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"success": error is None, "data": data, "error": error}


def ok(data: Any, status_code: int = 200) -> tuple[Response, int]:
    return jsonify(envelope(data)), status_code


def fail(code: str, message: str, status_code: int, details: Any | None = None) -> tuple[Response, int]:
    return jsonify(envelope(error={"code": code, "message": message, "details": details})), status_code
