"""
blog/store.py -- SQLAlchemy Core persistence layer for blog posts.

Uses SQLAlchemy Core (not ORM) so the dataclasses in blog/models.py remain the
authoritative domain representation. The accounts table from auth/store.py is
joined in for the author card (fullname, username, profile_img); the password
hash and federation flag are never selected.

Pattern: Repository + Data Mapper. BlogStore is the repository; the _row_to_*
functions are the mappers. Route handlers never touch SQL directly.

Tags live in their own table (blog_tags) so tag filters are an indexed
equality lookup on every backend instead of a JSON scan.

Security: all queries use bound parameters. Title search is a LIKE substring
match with wildcards escaped -- user input is never compiled as a pattern.

Usage:
    store = BlogStore()
    pk = store.create_blog(blog)
    cards = store.latest(page=1)
    store.close()
"""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, UniqueConstraint, func, select
from sqlalchemy.engine import Engine

from auth.store import accounts, escape_like, make_engine
from auth.store import metadata as accounts_metadata
from blog.models import Blog
from core.config import get_settings

PAGE_SIZE = 5

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

blogs = Table(
    "blogs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("blog_id", String(255), nullable=False, unique=True),
    Column("title", String(255), nullable=False),
    Column("banner", Text, nullable=False, server_default=""),
    Column("des", String(200), nullable=False, server_default=""),
    Column("content", Text, nullable=False),  # JSON editor document
    Column("author", Integer, nullable=False, index=True),
    Column("draft", Integer, nullable=False, server_default="0"),  # boolean stored as 0/1
    Column("total_likes", Integer, nullable=False, server_default="0"),
    Column("total_comments", Integer, nullable=False, server_default="0"),
    Column("total_reads", Integer, nullable=False, server_default="0"),
    Column("total_parent_comments", Integer, nullable=False, server_default="0"),
    Column("published_at", String(32), nullable=False),
)

blog_tags = Table(
    "blog_tags",
    metadata,
    Column("blog_pk", Integer, nullable=False),
    Column("tag", String(100), nullable=False, index=True),
    UniqueConstraint("blog_pk", "tag", name="uq_blog_tag"),
)

_CARD_COLUMNS = (
    blogs.c.id,
    blogs.c.blog_id,
    blogs.c.title,
    blogs.c.des,
    blogs.c.banner,
    blogs.c.total_likes,
    blogs.c.total_comments,
    blogs.c.total_reads,
    blogs.c.total_parent_comments,
    blogs.c.published_at,
    accounts.c.fullname.label("author_fullname"),
    accounts.c.username.label("author_username"),
    accounts.c.profile_img.label("author_profile_img"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


def _search_conditions(
    tag: Optional[str] = None,
    query: Optional[str] = None,
    author: Optional[int] = None,
    exclude_blog_id: Optional[str] = None,
) -> list:
    """Build WHERE clauses for search and count. One filter applies, in order: tag, query, author."""
    conditions = [blogs.c.draft == 0]
    if tag:
        conditions.append(blogs.c.id.in_(select(blog_tags.c.blog_pk).where(blog_tags.c.tag == tag.lower())))
        if exclude_blog_id:
            conditions.append(blogs.c.blog_id != exclude_blog_id)
    elif query:
        conditions.append(blogs.c.title.ilike(f"%{escape_like(query)}%", escape="\\"))
    elif author is not None:
        conditions.append(blogs.c.author == author)
    return conditions


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BlogStore:
    """Repository for Blog entities and the read-side feed queries."""

    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        accounts_metadata.create_all(self.engine)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_blog(self, blog: Blog) -> int:
        """Insert a blog and its tags in one transaction. Returns the primary key.

        Raises sqlalchemy.exc.IntegrityError if blog_id is already taken.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                blogs.insert().values(
                    blog_id=blog.blog_id,
                    title=blog.title,
                    banner=blog.banner,
                    des=blog.des,
                    content=json.dumps(blog.content),
                    author=blog.author,
                    draft=1 if blog.draft else 0,
                    published_at=_now_iso(),
                )
            )
            pk = result.inserted_primary_key[0]
            tags = list(dict.fromkeys(blog.tags))
            if tags:
                conn.execute(blog_tags.insert(), [{"blog_pk": pk, "tag": t} for t in tags])
        return pk

    def record_read(self, blog_id: str) -> Optional[int]:
        """Atomically bump total_reads on a blog and return its author id.

        Returns None when no blog has this blog_id.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                blogs.update().where(blogs.c.blog_id == blog_id).values(total_reads=blogs.c.total_reads + 1)
            )
            conn.commit()
            if result.rowcount == 0:
                return None
            return conn.execute(select(blogs.c.author).where(blogs.c.blog_id == blog_id)).scalar()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_blog(self, blog_id: str) -> Optional[dict]:
        """Return the full post (card fields plus content) or None."""
        stmt = (
            select(*_CARD_COLUMNS, blogs.c.content)
            .select_from(blogs.outerjoin(accounts, blogs.c.author == accounts.c.id))
            .where(blogs.c.blog_id == blog_id)
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
            if row is None:
                return None
            tags = self._tags_for(conn, [row.id])
        card = _row_to_card(row, tags.get(row.id, []))
        card["content"] = json.loads(row.content)
        return card

    def latest(self, page: int = 1, limit: int = PAGE_SIZE) -> list[dict]:
        """Published posts, newest first."""
        return self._cards(
            [blogs.c.draft == 0],
            order_by=[blogs.c.published_at.desc(), blogs.c.id.desc()],
            page=page,
            limit=limit,
        )

    def count_published(self) -> int:
        return self._count([blogs.c.draft == 0])

    def trending(self, limit: int = PAGE_SIZE) -> list[dict]:
        """Published posts ranked by reads, then likes, then recency."""
        return self._cards(
            [blogs.c.draft == 0],
            order_by=[blogs.c.total_reads.desc(), blogs.c.total_likes.desc(), blogs.c.published_at.desc()],
            page=1,
            limit=limit,
        )

    def search(
        self,
        tag: Optional[str] = None,
        query: Optional[str] = None,
        author: Optional[int] = None,
        exclude_blog_id: Optional[str] = None,
        page: int = 1,
        limit: int = PAGE_SIZE,
    ) -> list[dict]:
        """Published posts matching one filter, most-read first."""
        return self._cards(
            _search_conditions(tag, query, author, exclude_blog_id),
            order_by=[blogs.c.total_reads.desc(), blogs.c.published_at.desc()],
            page=page,
            limit=limit,
        )

    def count_search(self, tag: Optional[str] = None, query: Optional[str] = None, author: Optional[int] = None) -> int:
        return self._count(_search_conditions(tag, query, author))

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cards(self, conditions: list, order_by: list, page: int, limit: int) -> list[dict]:
        stmt = (
            select(*_CARD_COLUMNS)
            .select_from(blogs.outerjoin(accounts, blogs.c.author == accounts.c.id))
            .where(*conditions)
            .order_by(*order_by)
            .offset(_offset(page, limit))
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
            tags = self._tags_for(conn, [r.id for r in rows])
        return [_row_to_card(r, tags.get(r.id, [])) for r in rows]

    def _count(self, conditions: list) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(blogs).where(*conditions)).scalar()
        return result or 0

    @staticmethod
    def _tags_for(conn, pks: list[int]) -> dict[int, list[str]]:
        if not pks:
            return {}
        rows = conn.execute(
            select(blog_tags.c.blog_pk, blog_tags.c.tag).where(blog_tags.c.blog_pk.in_(pks)).order_by(blog_tags.c.tag)
        ).fetchall()
        out: dict[int, list[str]] = {}
        for pk, tag in rows:
            out.setdefault(pk, []).append(tag)
        return out


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_card(row, tags: list[str]) -> dict:
    return {
        "blog_id": row.blog_id,
        "title": row.title,
        "des": row.des,
        "banner": row.banner,
        "tags": tags,
        "activity": {
            "total_likes": row.total_likes,
            "total_comments": row.total_comments,
            "total_reads": row.total_reads,
            "total_parent_comments": row.total_parent_comments,
        },
        "published_at": row.published_at,
        "author": {
            "fullname": row.author_fullname,
            "username": row.author_username,
            "profile_img": row.author_profile_img,
        },
    }
