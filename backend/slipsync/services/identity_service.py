# Overview: Identity provider boundary; turns a bearer token into a verified subject.

"""
Identity verification boundary.

WHY: Authentication is delegated to an external identity provider. The rest of
the system only consumes the verified subject id (plus optional email and
display name) and never inspects tokens itself.

The built-in verifier accepts tokens signed with SECRET_KEY by
issue_identity_token (itsdangerous, timed). It backs local development, the
CLI and the test suite. A deployment that fronts a real provider sets
IDENTITY_VERIFIER to a callable token -> VerifiedIdentity; that callable
raises UnauthenticatedError on rejection.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..errors import UnauthenticatedError


TOKEN_SALT = "slipsync-identity"


@dataclass(frozen=True)
class VerifiedIdentity:
    subject: str
    email: str | None = None
    full_name: str | None = None


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_identity_token(subject: str, email: str | None = None, full_name: str | None = None) -> str:
    """Sign an identity token for the built-in verifier."""
    if not subject:
        raise ValueError("subject is required")
    claims = {"sub": subject}
    if email:
        claims["email"] = email
    if full_name:
        claims["name"] = full_name
    return _serializer().dumps(claims)


def _verify_signed_token(token: str) -> VerifiedIdentity:
    max_age = current_app.config.get("IDENTITY_TOKEN_MAX_AGE_SECONDS", 3600)
    try:
        claims = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        raise UnauthenticatedError("Token expired")
    except BadSignature:
        raise UnauthenticatedError("Invalid token")

    subject = claims.get("sub") if isinstance(claims, dict) else None
    if not subject:
        raise UnauthenticatedError("Token missing subject")
    return VerifiedIdentity(subject=subject, email=claims.get("email"), full_name=claims.get("name"))


def verify_bearer_token(token: str | None) -> VerifiedIdentity:
    """
    Verify a bearer token and return the identity it asserts.

    Raises UnauthenticatedError for a missing, malformed, expired or
    otherwise rejected token.
    """
    if not token:
        raise UnauthenticatedError("Authentication required")

    verifier = current_app.config.get("IDENTITY_VERIFIER")
    if verifier is not None:
        return verifier(token)
    return _verify_signed_token(token)


def bearer_token_from_header(header_value: str | None) -> str | None:
    if not header_value or not header_value.startswith("Bearer "):
        return None
    token = header_value.split(" ", 1)[1].strip()
    return token or None
