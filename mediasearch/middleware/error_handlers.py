"""Global Flask error handlers for consistent JSON error responses.

Registers handlers for standard HTTP errors, request validation failures
and custom MediaSearchError exceptions, ensuring the API always returns:
    { "success": false, "error": { "message": "...", "code": <int> } }

Usage:
    from mediasearch.middleware.error_handlers import register_error_handlers
    register_error_handlers(app)
"""
from __future__ import annotations

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

import structlog

from mediasearch.models.responses import ErrorResponse
from mediasearch.utils.exceptions import APIClientError, MediaSearchError

logger = structlog.get_logger(__name__)


def _error_response(message: str, code: int):
    """Create a standardized JSON error response.

    Args:
        message: Human-readable error message.
        code: HTTP status code.

    Returns:
        Tuple of (response, status_code).
    """
    body = ErrorResponse(error={"message": message, "code": code})
    return jsonify(body.model_dump()), code


def _validation_message(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", "Validation error")
    return f"{field}: {msg}" if field else msg


def register_error_handlers(app: Flask) -> None:
    """Register global error handlers on the Flask app.

    Args:
        app: Flask application instance.
    """

    # ── Standard HTTP Errors ──────────────────────────────────────────

    @app.errorhandler(400)
    def bad_request(e):
        return _error_response("Bad request", 400)

    @app.errorhandler(404)
    def not_found(e):
        return _error_response("Not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _error_response("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(e):
        logger.error("unhandled_server_error", error=str(e), exc_info=True)
        return _error_response("Internal server error", 500)

    # ── Request Validation ────────────────────────────────────────────

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        message = _validation_message(e)
        logger.info("request_validation_failed", error=message)
        return _error_response(message, 422)

    # ── Custom Application Errors ─────────────────────────────────────

    @app.errorhandler(MediaSearchError)
    def handle_media_search_error(e: MediaSearchError):
        """Handle all custom MediaSearchError exceptions."""
        log = logger.warning if isinstance(e, APIClientError) else logger.info
        log(
            "media_search_error",
            error=e.message,
            error_type=type(e).__name__,
            status_code=e.status_code,
        )
        return _error_response(e.message, e.status_code)

    # ── Catch-all for unexpected Werkzeug HTTP exceptions ─────────────

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        """Catch any HTTPException not explicitly handled above."""
        return _error_response(e.description or "Unknown error", e.code or 500)

    # ── Catch-all for truly unhandled exceptions ──────────────────────

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        """Last resort handler for unhandled exceptions."""
        logger.error(
            "unexpected_error",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return _error_response("An unexpected error occurred", 500)
