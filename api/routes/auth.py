"""
api/routes/auth.py -- Account creation and login endpoints.

Routes:
  POST /signup       -- local account creation
  POST /signin       -- local login by email + password
  POST /google-auth  -- federated login / signup with a Firebase ID token

All three are public and return AuthResponse on success. Failures are
core.errors subclasses rendered by the InkwellError handler in api/main.py.

Security:
  Rate-limited per IP (Settings.auth_rate_limit) against credential stuffing.
  Cache-Control: no-store on every response that carries a token.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AuthResponse, GoogleAuthRequest, SigninRequest, SignupRequest
from auth import service
from auth.federation import IdentityVerifier
from auth.store import AccountStore
from core.config import get_settings

# Auth policy:
# - POST /signup:      public
# - POST /signin:      public
# - POST /google-auth: public -- the identity provider assertion is the credential
router = APIRouter()

_rate = get_settings().auth_rate_limit


def _token_response(envelope: dict) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=AuthResponse(**envelope).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/signup", response_model=AuthResponse)
@limiter.limit(_rate)
def signup(request: Request, body: SignupRequest) -> JSONResponse:
    """Create a local account; the response doubles as a first login."""
    store: AccountStore = request.app.state.account_store
    return _token_response(service.signup(store, body.fullname, body.email, body.password))


@router.post("/signin", response_model=AuthResponse)
@limiter.limit(_rate)
def signin(request: Request, body: SigninRequest) -> JSONResponse:
    """Authenticate a local account by email and password."""
    store: AccountStore = request.app.state.account_store
    return _token_response(service.signin(store, body.email, body.password))


@router.post("/google-auth", response_model=AuthResponse)
@limiter.limit(_rate)
async def google_auth(request: Request, body: GoogleAuthRequest) -> JSONResponse:
    """Sign in with a Firebase ID token, creating the account on first use."""
    store: AccountStore = request.app.state.account_store
    verifier: IdentityVerifier = request.app.state.identity_verifier
    return _token_response(await service.federated_auth(store, verifier, body.access_token))
