"""
API request and response models for Inkwell REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
blog/models.py, which own the internal domain representation. Route handlers
map between the two.

Signup fields are plain strings with generous caps: the workflow in
auth/service.py owns the actual rules so every client sees the same messages.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

StrippedStr = Annotated[str, StringConstraints(strip_whitespace=True)]

# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /signup. Passwords are taken byte-for-byte."""

    fullname: StrippedStr = Field(default="", max_length=255)
    email: StrippedStr = Field(default="", max_length=320)
    password: str = Field(default="", max_length=255)


class SigninRequest(BaseModel):
    """Request body for POST /signin."""

    email: StrippedStr = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=255)


class GoogleAuthRequest(BaseModel):
    """Request body for POST /google-auth -- the Firebase ID token."""

    access_token: str = Field(min_length=1, max_length=8192)


class AuthResponse(BaseModel):
    """Envelope returned by every successful signup / signin / google-auth."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    fullname: str
    username: str
    profile_img: str


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


class UploadUrlResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    uploadUrl: str


# ---------------------------------------------------------------------------
# Blogs -- requests
# ---------------------------------------------------------------------------


class BlogCreate(BaseModel):
    """Request body for POST /create-blog.

    content is the editor document, e.g. {"blocks": [...]}. Drafts may omit
    everything except the title; blog/service.py enforces the publish rules.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(default="", max_length=255)
    des: str = Field(default="", max_length=1000)
    banner: str = Field(default="", max_length=2048)
    content: dict = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list, max_length=50)
    draft: bool = False


class PageRequest(BaseModel):
    """Request body for POST /latest-blogs."""

    page: int = Field(default=1, ge=1)


class SearchBlogsRequest(BaseModel):
    """Request body for POST /search-blogs.

    Exactly one filter is applied, checked in order: tag, query, author.
    eliminate_curr_blog drops one blog_id from tag results ("more like this").
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    tag: Optional[str] = Field(default=None, max_length=100)
    query: Optional[str] = Field(default=None, max_length=200)
    author: Optional[int] = None
    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=50)
    eliminate_curr_blog: Optional[str] = Field(default=None, max_length=255)


class CountSearchRequest(BaseModel):
    """Request body for POST /count-search-blogs."""

    model_config = ConfigDict(str_strip_whitespace=True)

    tag: Optional[str] = Field(default=None, max_length=100)
    query: Optional[str] = Field(default=None, max_length=200)
    author: Optional[int] = None


class SearchUsersRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(default="", max_length=100)


# ---------------------------------------------------------------------------
# Blogs -- responses
# ---------------------------------------------------------------------------


class AuthorCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    fullname: Optional[str]
    username: Optional[str]
    profile_img: Optional[str]


class ActivityResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_likes: int
    total_comments: int
    total_reads: int
    total_parent_comments: int


class BlogCard(BaseModel):
    """One post in a feed or search result."""

    model_config = ConfigDict(frozen=True)

    blog_id: str
    title: str
    des: str
    banner: str
    tags: list[str]
    activity: ActivityResponse
    published_at: str
    author: AuthorCard


class BlogDetail(BlogCard):
    content: dict


class BlogsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    blogs: list[BlogCard]


class BlogResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    blog: BlogDetail


class BlogCreatedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str


class CountResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    totalDocs: int


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UsersResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    users: list[AuthorCard]


class Profile(BaseModel):
    """Public profile -- never carries the password hash or federation flag."""

    model_config = ConfigDict(frozen=True)

    id: int
    fullname: str
    username: str
    profile_img: str
    bio: str
    total_posts: int
    total_reads: int
    joined_at: str


class ProfileResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: Profile
