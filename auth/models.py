"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in blog/models.py -- dataclasses own domain shape; stores and the auth
workflow do the work.

Layer rule: no imports from api/, blog/, or media/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """A persisted Inkwell identity, local or federated.

    Exactly one of the two login paths applies to an account:
    - local accounts carry a bcrypt hashed_password and google_auth=False
    - federated accounts have hashed_password=None and google_auth=True

    total_posts / total_reads are only ever changed by blog actions through
    AccountStore.increment_counters(); the auth workflow never touches them
    after creation.

    id is None before the record is written to the database.
    """

    fullname: str
    username: str
    email: str
    id: int | None = None
    hashed_password: str | None = None  # None = federated account
    google_auth: bool = False
    profile_img: str = ""
    bio: str = ""
    total_posts: int = 0
    total_reads: int = 0
    joined_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class FederatedIdentity:
    """Claims extracted from a verified identity provider assertion."""

    email: str
    display_name: str
    picture_url: str
    subject: str = ""
