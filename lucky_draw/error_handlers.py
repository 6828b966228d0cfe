"""Centralized error handlers."""

from __future__ import annotations

import logging

from flask import Flask, g, redirect, request, url_for
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from werkzeug.exceptions import HTTPException

from lucky_draw.errors import AppError, ConflictError, ValidationError
from lucky_draw.utils.responses import fail

logger = logging.getLogger(__name__)


def _wants_html() -> bool:
    return not request.path.startswith("/api/") and request.accept_mimetypes.accept_html


def _discard_changes() -> None:
    # Handled errors reach teardown as a clean exit, which would commit.
    session: Session | None = getattr(g, "db", None)
    if session is not None:
        session.rollback()


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        _discard_changes()
        # Admin pages bounce to the login form instead of a JSON body.
        if exc.status_code in (401, 403) and _wants_html():
            return redirect(url_for("web.admin_login"))
        return fail(exc.code, exc.message, exc.status_code, exc.details)

    @app.errorhandler(MarshmallowValidationError)
    def _handle_schema_error(exc: MarshmallowValidationError):
        _discard_changes()
        # exc.messages is a dict of field -> list[str]
        wrapped = ValidationError(details=exc.messages)
        return fail(wrapped.code, wrapped.message, wrapped.status_code, wrapped.details)

    @app.errorhandler(IntegrityError)
    def _handle_integrity_error(exc: IntegrityError):
        _discard_changes()
        logger.info("Integrity error", exc_info=exc)
        wrapped = ConflictError(details=str(exc.orig) if exc.orig else str(exc))
        return fail(wrapped.code, wrapped.message, wrapped.status_code, wrapped.details)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = int(getattr(exc, "code", 500) or 500)
        if status == 404:
            return fail("not_found", "Not found", 404)

        return fail(
            "http_error",
            getattr(exc, "description", "HTTP error"),
            status,
            details={"name": getattr(exc, "name", "HTTPException")},
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        _discard_changes()
        logger.exception("Unhandled exception")
        return fail("internal_error", "Internal server error", 500)
