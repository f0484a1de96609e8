"""
Error taxonomy for the JSON API.

Handlers raise these; the error handlers registered in ``create_app`` turn
them into ``{"error": message}`` responses with the matching status code.
Anything else is logged and answered with a generic 500.
"""
from __future__ import annotations


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request."


class Unauthorized(AppError):
    status_code = 401
    default_message = "Please log in to continue."


class Forbidden(AppError):
    status_code = 403
    default_message = "You do not have permission to perform this action."


class NotFound(AppError):
    status_code = 404
    default_message = "Not found."


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict."
