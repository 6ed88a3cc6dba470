"""
core/errors.py -- Error taxonomy shared by every Inkwell layer.

Each error carries a stable machine-readable code next to the human message,
so clients can branch on `code` instead of pattern-matching message text.
api/main.py renders every InkwellError as:

    {"error": {"code": "<code>", "message": "<message>"}}

Status mapping:
  ValidationError     400  malformed client input
  Unauthorized        401  bad credentials or failed federation
  InvalidToken        403  missing / malformed / tampered bearer token
  UntrustedAssertion  401  identity provider assertion failed verification
  NotFound            404
  Conflict            409  uniqueness or account-type mismatch
  InternalError       500  store or infrastructure failure

Layer rule: core/ is the kernel -- no imports from api/, auth/, blog/, media/.
"""

from __future__ import annotations


class InkwellError(Exception):
    """Base class for every error that is converted into an HTTP response."""

    code = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(InkwellError):
    code = "validation_error"
    status_code = 400


class Unauthorized(InkwellError):
    code = "unauthorized"
    status_code = 401


class InvalidToken(Unauthorized):
    code = "invalid_token"
    status_code = 403


class UntrustedAssertion(Unauthorized):
    code = "untrusted_assertion"


class NotFound(InkwellError):
    code = "not_found"
    status_code = 404


class Conflict(InkwellError):
    code = "conflict"
    status_code = 409


class InternalError(InkwellError):
    code = "internal_error"
    status_code = 500
