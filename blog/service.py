"""
blog/service.py -- Authoring and read workflows that span blogs and accounts.

create_blog() validates the post, stores it, and bumps the author's
total_posts (published posts only). read_blog() bumps the read counter on the
post and on its author before returning the post.

There is no transaction across the two stores: a crash between the blog
write and the counter write leaves the counter one short. Counters are
display-only, so that drift is tolerated.
"""

import logging
import re
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.store import AccountStore
from blog.models import Blog
from blog.store import BlogStore
from core.errors import InternalError, InvalidToken, NotFound, ValidationError
from core.ids import new_id

logger = logging.getLogger("inkwell.blog")

MAX_DESCRIPTION = 200
MAX_TAGS = 10
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def make_blog_id(title: str) -> str:
    """Public slug: the title stripped to alphanumerics plus a random suffix."""
    return _NON_ALNUM.sub("", title) + new_id()


def validate_blog(title: str, des: str, banner: str, content: dict, tags: list[str], draft: bool) -> None:
    """Drafts only need a title; published posts need every field."""
    if not title.strip():
        raise ValidationError("You need to provide a title!")
    if draft:
        return
    if not des or len(des) > MAX_DESCRIPTION:
        raise ValidationError("You must provide a description under 200 characters to publish the blog")
    if not banner:
        raise ValidationError("You must provide a blog banner to publish the blog")
    if not content.get("blocks"):
        raise ValidationError("You must provide some content to publish the blog")
    if not tags or len(tags) > MAX_TAGS:
        raise ValidationError("You must provide 1 to 10 tags to publish the blog")


def create_blog(
    blogs: BlogStore,
    accounts: AccountStore,
    author_id: int,
    title: str,
    des: str = "",
    banner: str = "",
    content: Optional[dict] = None,
    tags: Optional[list[str]] = None,
    draft: bool = False,
) -> str:
    """Persist a new post for author_id and return its public blog_id."""
    content = content or {}
    tags = [t.strip().lower() for t in (tags or []) if t.strip()]
    validate_blog(title, des, banner, content, tags, draft)

    if accounts.get_by_id(author_id) is None:
        raise InvalidToken("Access token is required")

    blog = Blog(
        title=title,
        author=author_id,
        blog_id=make_blog_id(title),
        banner=banner,
        des=des,
        content=content,
        tags=tags,
        draft=draft,
    )
    try:
        blogs.create_blog(blog)
    except IntegrityError as exc:
        logger.error("Blog insert rejected for blog_id %s", blog.blog_id)
        raise InternalError("Could not save the blog. Please try again.") from exc

    if not accounts.increment_counters(author_id, posts=0 if draft else 1):
        raise InternalError("Failed to update total posts number")
    logger.info("Blog created: blog_id=%s author=%s draft=%s", blog.blog_id, author_id, draft)
    return blog.blog_id


def read_blog(blogs: BlogStore, accounts: AccountStore, blog_id: str) -> dict:
    """Return a post and count the read against the post and its author."""
    author_id = blogs.record_read(blog_id)
    if author_id is None:
        raise NotFound("Blog not found")
    accounts.increment_counters(author_id, reads=1)
    blog = blogs.get_blog(blog_id)
    if blog is None:
        raise NotFound("Blog not found")
    return blog
