"""
auth/service.py -- Signup, signin, and federated sign-in workflows.

Each entry point is an independent transition over the AccountStore:

  signup(fullname, email, password)
      validate -> hash -> allocate username -> INSERT (google_auth=False) -> token

  signin(email, password)
      lookup by email -> reject federated accounts -> bcrypt compare -> token

  federated_auth(assertion)
      verify assertion -> lookup by email
        found, local      -> Conflict (must use password login)
        found, federated  -> token
        not found         -> allocate username -> INSERT (google_auth=True) -> token

All three return the same envelope (see build_envelope). Every failure is a
core.errors subclass; nothing here retries except the single re-lookup after a
lost find-or-create race in federated_auth.

federated_auth is a coroutine; every store call it makes runs in the threadpool.

Layer rule: no imports from api/, blog/, or media/.
"""

from __future__ import annotations

import logging
import re

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.federation import IdentityVerifier
from auth.models import Account
from auth.store import AccountStore
from auth.tokens import create_access_token, hash_password, verify_password
from auth.usernames import allocate_username
from core.errors import Conflict, InternalError, NotFound, Unauthorized, UntrustedAssertion, ValidationError

logger = logging.getLogger("inkwell.auth")

EMAIL_PATTERN = re.compile(r"^\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*\.\w{2,3}$", re.ASCII)
PASSWORD_PATTERN = re.compile(r"^(?=.*\d)(?=.*[a-z])(?=.*[A-Z]).{6,20}$")

MIN_FULLNAME_LENGTH = 3


def build_envelope(account: Account) -> dict:
    """Mint a fresh token for account and wrap it with the public identity fields."""
    return {
        "access_token": create_access_token(account.id),
        "fullname": account.fullname,
        "username": account.username,
        "profile_img": account.profile_img,
    }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_signup(fullname: str, email: str, password: str) -> None:
    if len(fullname) < MIN_FULLNAME_LENGTH:
        raise ValidationError("Fullname must be at least 3 characters long")
    if not email:
        raise ValidationError("Enter your email")
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError("Email is invalid")
    if not PASSWORD_PATTERN.fullmatch(password):
        raise ValidationError(
            "Password should be 6 to 20 characters long with a numeric, 1 lowercase and 1 uppercase letter"
        )


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


def signup(store: AccountStore, fullname: str, email: str, password: str) -> dict:
    """Create a local account and return the auth envelope.

    Raises:
        ValidationError: fullname, email or password fails the input rules.
        Conflict:        the email is already registered.
        InternalError:   any other persistence failure (including a second
                         username collision after the random suffix).
    """
    validate_signup(fullname, email, password)

    account = Account(
        fullname=fullname,
        email=email,
        username=allocate_username(store, email),
        hashed_password=hash_password(password),
        google_auth=False,
    )
    try:
        account.id = store.create_account(account)
    except IntegrityError as exc:
        if store.get_by_email(email) is not None:
            raise Conflict("Email already exists") from exc
        logger.error("Signup insert rejected for username %s", account.username)
        raise InternalError("Could not create the account. Please try again.") from exc
    except SQLAlchemyError as exc:
        logger.exception("Signup insert failed")
        raise InternalError("Could not create the account. Please try again.") from exc

    created = store.get_by_id(account.id)
    if created is None:
        raise InternalError("Account not found after write.")
    logger.info("Local account created: id=%s username=%s", created.id, created.username)
    return build_envelope(created)


def signin(store: AccountStore, email: str, password: str) -> dict:
    """Authenticate a local account by email and password.

    Raises:
        NotFound:      no account uses this email.
        Conflict:      the account was created through the identity provider.
        Unauthorized:  the password does not match.
        InternalError: bcrypt could not run the comparison.
    """
    account = store.get_by_email(email)
    if account is None:
        raise NotFound("Email not found")
    if account.google_auth or account.hashed_password is None:
        raise Conflict("This account was created using Google. Try logging in with Google.")
    if not verify_password(password, account.hashed_password):
        raise Unauthorized("Password is incorrect")
    logger.info("Local sign-in: id=%s", account.id)
    return build_envelope(account)


async def federated_auth(store: AccountStore, verifier: IdentityVerifier, assertion: str) -> dict:
    """Sign in (or sign up) with an identity provider assertion.

    Raises:
        Unauthorized:  the assertion failed verification.
        Conflict:      the email belongs to a local (password) account.
        InternalError: the new account could not be persisted.
    """
    try:
        identity = await verifier.verify(assertion)
    except UntrustedAssertion as exc:
        raise Unauthorized(
            "Failed to authenticate with Google. Try with another account or provider!"
        ) from exc

    account = await run_in_threadpool(store.get_by_email, identity.email)
    if account is None:
        account = await run_in_threadpool(
            _create_federated, store, identity.email, identity.display_name, identity.picture_url
        )

    if not account.google_auth:
        raise Conflict(
            "This account was created without Google. Please log in with email and password to access this account!"
        )
    logger.info("Federated sign-in: id=%s", account.id)
    return build_envelope(account)


def _create_federated(store: AccountStore, email: str, fullname: str, picture_url: str) -> Account:
    """INSERT a federated account, re-reading once if a concurrent request won the race."""
    account = Account(
        fullname=fullname,
        email=email,
        username=allocate_username(store, email),
        hashed_password=None,
        google_auth=True,
        profile_img=picture_url,
    )
    try:
        account_id = store.create_account(account)
    except IntegrityError as exc:
        existing = store.get_by_email(email)
        if existing is not None:
            return existing
        logger.error("Federated insert rejected for username %s", account.username)
        raise InternalError("Could not create the account. Please try again.") from exc
    except SQLAlchemyError as exc:
        logger.exception("Federated insert failed")
        raise InternalError("Could not create the account. Please try again.") from exc

    created = store.get_by_id(account_id)
    if created is None:
        raise InternalError("Account not found after write.")
    logger.info("Federated account created: id=%s username=%s", created.id, created.username)
    return created
