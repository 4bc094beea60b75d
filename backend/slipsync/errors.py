# Overview: Exception taxonomy shared by services and routes.

"""
Every service failure that should reach the caller derives from SlipSyncError
and carries the HTTP status the routes answer with.

- ValidationError: malformed input, negative stock adjustments (400)
- UnauthenticatedError: missing/invalid bearer token or device secret (401)
- ForbiddenError: authenticated, but role/permission/store check failed (403)
- NotFoundError: missing, or owned by another merchant (404)
- ConflictError: business rule conflicts such as insufficient stock (409)
"""

from __future__ import annotations

from flask import jsonify


class SlipSyncError(Exception):
    """Base class for errors returned to API callers with a concise reason."""

    status_code = 400

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(SlipSyncError):
    status_code = 400


class UnauthenticatedError(SlipSyncError):
    status_code = 401


class ForbiddenError(SlipSyncError):
    status_code = 403


class NotFoundError(SlipSyncError):
    status_code = 404


class ConflictError(SlipSyncError):
    status_code = 409


def error_response(exc: SlipSyncError):
    body = {"error": str(exc)}
    if exc.details:
        body["details"] = exc.details
    return jsonify(body), exc.status_code
