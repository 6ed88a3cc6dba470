"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper (same as blog/store.py).
AccountStore is the repository; _row_to_account is the mapper.
Route and workflow code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) and UNIQUE(username) are the only concurrency guard for
  signup. Two concurrent signups for the same email can both observe
  "not found"; the losing INSERT raises sqlalchemy.exc.IntegrityError, which
  the auth workflow maps to Conflict.

  Counter updates are single-statement `SET n = n + k` writes, so concurrent
  readers bumping total_reads never lose an increment.

Layer rule: no imports from api/, blog/, or media/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from auth.models import Account
from core.config import get_settings

# Public profile fields -- never includes hashed_password or google_auth.
_PROFILE_FIELDS = ("fullname", "username", "profile_img", "bio", "total_posts", "total_reads", "joined_at")

_AVATAR_URL = "https://api.dicebear.com/6.x/notionists-neutral/svg?seed={seed}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("fullname", String(255), nullable=False),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("hashed_password", Text),  # NULL for federated accounts
    Column("google_auth", Integer, nullable=False, server_default="0"),
    Column("profile_img", Text, nullable=False, server_default=""),
    Column("bio", String(200), nullable=False, server_default=""),
    Column("total_posts", Integer, nullable=False, server_default="0"),
    Column("total_reads", Integer, nullable=False, server_default="0"),
    Column("joined_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind writers.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine with the SQLite tweaks both stores rely on."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def default_avatar(username: str) -> str:
    return _AVATAR_URL.format(seed=username)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally (ESCAPE "\\")."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore()
        account_id = store.create_account(Account(fullname="Ada", username="ada", email="ada@x.com"))
        account = store.get_by_email("ada@x.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> int:
        """Insert a new account and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email or username already
        exists. The auth workflow decides what that means for the caller.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                accounts.insert().values(
                    fullname=account.fullname,
                    username=account.username,
                    email=account.email,
                    hashed_password=account.hashed_password,
                    google_auth=1 if account.google_auth else 0,
                    profile_img=account.profile_img or default_avatar(account.username),
                    bio=account.bio,
                    total_posts=account.total_posts,
                    total_reads=account.total_reads,
                    joined_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def increment_counters(self, account_id: int, posts: int = 0, reads: int = 0) -> bool:
        """Atomically bump the aggregate counters on one account.

        Returns True if a row was updated, False if account_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                accounts.update()
                .where(accounts.c.id == account_id)
                .values(
                    total_posts=accounts.c.total_posts + posts,
                    total_reads=accounts.c.total_reads + reads,
                )
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, account_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(accounts.select().where(accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(accounts.select().where(accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_username(self, username: str) -> Account | None:
        with self.engine.connect() as conn:
            row = conn.execute(accounts.select().where(accounts.c.username == username)).fetchone()
        return _row_to_account(row) if row is not None else None

    def username_exists(self, username: str) -> bool:
        """Cheap existence probe used by the username allocator."""
        with self.engine.connect() as conn:
            row = conn.execute(select(accounts.c.id).where(accounts.c.username == username).limit(1)).fetchone()
        return row is not None

    def get_profile(self, username: str) -> dict | None:
        """Return the public profile for a username, or None if not found."""
        cols = [accounts.c[name] for name in _PROFILE_FIELDS]
        with self.engine.connect() as conn:
            row = conn.execute(select(accounts.c.id, *cols).where(accounts.c.username == username)).fetchone()
        if row is None:
            return None
        return dict(row._mapping)

    def search_by_username(self, term: str, limit: int = 50) -> list[dict]:
        """Case-insensitive substring match on username.

        Returns only the public card fields (fullname, username, profile_img).
        """
        pattern = f"%{escape_like(term)}%"
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(accounts.c.fullname, accounts.c.username, accounts.c.profile_img)
                .where(accounts.c.username.ilike(pattern, escape="\\"))
                .order_by(accounts.c.username)
                .limit(limit)
            ).fetchall()
        return [dict(r._mapping) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        fullname=row.fullname,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        google_auth=bool(row.google_auth),
        profile_img=row.profile_img,
        bio=row.bio,
        total_posts=row.total_posts,
        total_reads=row.total_reads,
        joined_at=row.joined_at,
    )
