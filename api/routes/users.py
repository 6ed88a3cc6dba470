"""
api/routes/users.py -- Public user search and profile endpoints.

Routes:
  POST /search-users            -- username substring search (max 50)
  GET  /user-profile/{username} -- public profile
"""

from fastapi import APIRouter, Request

from api.models import ProfileResponse, SearchUsersRequest, UsersResponse
from auth.store import AccountStore
from core.errors import NotFound, ValidationError

router = APIRouter()

_MAX_USER_RESULTS = 50


@router.post("/search-users", response_model=UsersResponse)
def search_users(request: Request, body: SearchUsersRequest) -> UsersResponse:
    if not body.query:
        raise ValidationError("Search term is required")
    store: AccountStore = request.app.state.account_store
    return UsersResponse(users=store.search_by_username(body.query, limit=_MAX_USER_RESULTS))


@router.get("/user-profile/{username}", response_model=ProfileResponse)
def user_profile(request: Request, username: str) -> ProfileResponse:
    store: AccountStore = request.app.state.account_store
    profile = store.get_profile(username)
    if profile is None:
        raise NotFound("User not found")
    return ProfileResponse(user=profile)
