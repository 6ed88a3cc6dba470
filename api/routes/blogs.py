"""
api/routes/blogs.py -- Blog authoring, reading, feeds, and search.

Routes (literal paths before the parameterised one):
  POST /create-blog           -- author a post (bearer token required)
  POST /latest-blogs          -- newest published posts, paged
  GET  /count-latest-blogs    -- total published posts
  GET  /trending-blogs        -- top posts by reads, likes, recency
  POST /search-blogs          -- tag / title / author filter, paged
  POST /count-search-blogs    -- total for the same filters
  GET  /get_blog/{blog_id}    -- full post; counts one read

Only /create-blog is authenticated. Every other route is public read-side.
"""

from fastapi import APIRouter, Depends, Request

from api.models import (
    BlogCreate,
    BlogCreatedResponse,
    BlogResponse,
    BlogsResponse,
    CountResponse,
    CountSearchRequest,
    PageRequest,
    SearchBlogsRequest,
)
from auth.dependencies import get_current_account_id
from auth.store import AccountStore
from blog import service
from blog.store import PAGE_SIZE, BlogStore

router = APIRouter()


# ---------------------------------------------------------------------------
# Authoring
# ---------------------------------------------------------------------------


@router.post("/create-blog", response_model=BlogCreatedResponse)
def create_blog(
    request: Request,
    body: BlogCreate,
    account_id: int = Depends(get_current_account_id),
) -> BlogCreatedResponse:
    """Publish a post, or save it as a draft when body.draft is true."""
    blog_id = service.create_blog(
        request.app.state.blog_store,
        request.app.state.account_store,
        account_id,
        title=body.title,
        des=body.des,
        banner=body.banner,
        content=body.content,
        tags=body.tags,
        draft=body.draft,
    )
    return BlogCreatedResponse(id=blog_id)


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------


@router.post("/latest-blogs", response_model=BlogsResponse)
def latest_blogs(request: Request, body: PageRequest) -> BlogsResponse:
    store: BlogStore = request.app.state.blog_store
    return BlogsResponse(blogs=store.latest(page=body.page))


@router.get("/count-latest-blogs", response_model=CountResponse)
def count_latest_blogs(request: Request) -> CountResponse:
    store: BlogStore = request.app.state.blog_store
    return CountResponse(totalDocs=store.count_published())


@router.get("/trending-blogs", response_model=BlogsResponse)
def trending_blogs(request: Request) -> BlogsResponse:
    store: BlogStore = request.app.state.blog_store
    return BlogsResponse(blogs=store.trending())


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@router.post("/search-blogs", response_model=BlogsResponse)
def search_blogs(request: Request, body: SearchBlogsRequest) -> BlogsResponse:
    store: BlogStore = request.app.state.blog_store
    blogs = store.search(
        tag=body.tag,
        query=body.query,
        author=body.author,
        exclude_blog_id=body.eliminate_curr_blog,
        page=body.page,
        limit=body.limit or PAGE_SIZE,
    )
    return BlogsResponse(blogs=blogs)


@router.post("/count-search-blogs", response_model=CountResponse)
def count_search_blogs(request: Request, body: CountSearchRequest) -> CountResponse:
    store: BlogStore = request.app.state.blog_store
    return CountResponse(totalDocs=store.count_search(tag=body.tag, query=body.query, author=body.author))


# ---------------------------------------------------------------------------
# Single post
# ---------------------------------------------------------------------------


@router.get("/get_blog/{blog_id}", response_model=BlogResponse)
def get_blog(request: Request, blog_id: str) -> BlogResponse:
    """Return one post and count the read against it and its author."""
    accounts: AccountStore = request.app.state.account_store
    return BlogResponse(blog=service.read_blog(request.app.state.blog_store, accounts, blog_id))
