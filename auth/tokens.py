"""
auth/tokens.py -- Password hashing and bearer token utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       only the account id as the `sub` claim plus `iat` and a random `jti`.
       An `exp` claim is added unless TOKEN_EXPIRE_SECONDS is 0. Nothing else
       in the token is trusted downstream; handlers re-read the account.

  Passwords: bcrypt with a fixed work factor of 10 rounds. A mismatch is a
       normal False result; a failure inside bcrypt (e.g. a corrupt stored
       hash) is an InternalError so it never masquerades as "wrong password".

  Tokens are stateless and cannot be revoked. Revocation would need a
       token-version column on the account checked in verify_access_token().

Layer rule: no imports from api/, blog/, or media/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings
from core.errors import InternalError, InvalidToken

logger = logging.getLogger("inkwell.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
_BCRYPT_ROUNDS = 10

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Signup only accepts 6-20 character passwords, which keeps inputs well
    below bcrypt's 72-byte truncation threshold.
    """
    try:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode("utf-8")
    except (TypeError, ValueError) as exc:
        logger.error("Password hashing failed: %s", type(exc).__name__)
        raise InternalError("Error occurred while securing the password. Please try again.") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Raises InternalError when the comparison itself cannot run.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (TypeError, ValueError) as exc:
        logger.error("Password comparison failed: %s", type(exc).__name__)
        raise InternalError("Error occurred during login. Please try again.") from exc


# ---------------------------------------------------------------------------
# JWT encode / verify
# ---------------------------------------------------------------------------


def create_access_token(account_id: int, expire_seconds: int | None = None) -> str:
    """Encode a signed JWT whose subject is the account id.

    Args:
        account_id:     Numeric account ID stored in the DB.
        expire_seconds: Token lifetime. None uses Settings.token_expire_seconds;
                        0 issues a token without an exp claim.
    """
    duration = _settings.token_expire_seconds if expire_seconds is None else expire_seconds
    now = datetime.now(timezone.utc)
    # jti keeps two tokens minted for the same account in the same second distinct.
    payload: dict = {"sub": str(account_id), "iat": now, "jti": secrets.token_hex(8)}
    if duration > 0:
        payload["exp"] = now + timedelta(seconds=duration)
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def verify_access_token(token: str | None) -> int:
    """Verify a bearer token and return the account id it was issued for.

    Raises InvalidToken when the token is absent, malformed, signed with a
    different key, expired, or carries a non-numeric subject.
    """
    if not token:
        raise InvalidToken("Access token is required")
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise InvalidToken("Access token is required") from exc
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        raise InvalidToken("Access token is required")
    return int(subject)
