"""
blog/models.py -- Domain dataclasses for blog posts.

Pure data containers with zero logic. Validation and slug generation live in
blog/service.py; persistence in blog/store.py.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Activity:
    """Engagement counters for one post. Only total_reads is written today."""

    total_likes: int = 0
    total_comments: int = 0
    total_reads: int = 0
    total_parent_comments: int = 0


@dataclass
class Blog:
    """A blog post, published or draft.

    blog_id is the public slug used in URLs; id is the internal primary key
    and is None before the record is written to the database.

    content is the editor document as posted by the client, e.g.
    {"blocks": [{"type": "paragraph", "data": {"text": "..."}}]}.
    """

    title: str
    author: int  # account id
    blog_id: str
    banner: str = ""
    des: str = ""
    content: dict = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    draft: bool = False
    activity: Activity = field(default_factory=Activity)
    id: Optional[int] = None
    published_at: str = ""  # ISO 8601, set by store on insert
