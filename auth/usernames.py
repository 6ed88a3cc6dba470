"""
auth/usernames.py -- Derive a unique handle from an email address.

Policy (best-effort, single probe):
  1. Take the local part of the email ("ada" for "ada@example.com").
  2. If no account owns that username, use it as-is.
  3. Otherwise append a 5-character random suffix and return the result
     WITHOUT probing the store again.

A second collision is possible but requires two accounts racing on the same
base name and drawing the same suffix from 57**5 (~600M) combinations. If it
happens, the UNIQUE(username) index rejects the INSERT and the auth workflow
reports an InternalError.
"""

from __future__ import annotations

import secrets

from auth.store import AccountStore

# Alphanumerics minus the look-alikes 0/O, 1/l/I.
SUFFIX_ALPHABET = "23456789abcdefghijkmnopqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ"
SUFFIX_LENGTH = 5


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(length))


def allocate_username(store: AccountStore, email: str) -> str:
    """Return a username for a new account created with this email."""
    username = email.split("@")[0]
    if store.username_exists(username):
        username += random_suffix()
    return username
