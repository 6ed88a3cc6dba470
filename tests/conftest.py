"""
tests/conftest.py -- Shared test fixtures for Inkwell.

This module provides:
  - memory_url(): a unique named shared-memory SQLite URL
  - FakeVerifier: stands in for IdentityVerifier (no network, no RSA)
  - account_store / stores: isolated in-memory stores for unit tests
  - api_client: TestClient wired to fresh stores through a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool, and because
AccountStore and BlogStore each own an engine yet must see the same tables.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import boto3
from botocore.config import Config
import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.models import FederatedIdentity
from auth.store import AccountStore
from blog.store import BlogStore
from core.errors import UntrustedAssertion
from media.uploads import UploadSigner

# Rate limits would trip on the volume of signups a test module makes.
limiter.enabled = False


def memory_url(prefix: str = "inkwell") -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


class FakeVerifier:
    """Accepts only the assertions registered in `identities`."""

    def __init__(self) -> None:
        self.identities: dict[str, FederatedIdentity] = {}

    def register(self, assertion: str, email: str, name: str = "Fed User", picture: str = "") -> None:
        self.identities[assertion] = FederatedIdentity(email=email, display_name=name, picture_url=picture)

    async def verify(self, assertion: str) -> FederatedIdentity:
        await asyncio.sleep(0)
        try:
            return self.identities[assertion]
        except KeyError:
            raise UntrustedAssertion("unknown assertion") from None


def make_upload_signer() -> UploadSigner:
    """Real boto3 client with dummy credentials -- presigning never touches the network."""
    client = boto3.client(
        "s3",
        region_name="eu-north-1",
        aws_access_key_id="AKIATESTTESTTEST",
        aws_secret_access_key="test-secret",  # noqa: S106
        config=Config(signature_version="s3v4"),
    )
    return UploadSigner(bucket="inkwell-test", expires=1000, client=client)


# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def account_store() -> Generator[AccountStore, None, None]:
    store = AccountStore(memory_url("accounts"))
    yield store
    store.close()


@pytest.fixture
def stores() -> Generator[tuple[AccountStore, BlogStore], None, None]:
    """AccountStore and BlogStore sharing one in-memory database."""
    url = memory_url("blogs")
    accounts = AccountStore(url)
    blogs = BlogStore(url)
    yield accounts, blogs
    blogs.close()
    accounts.close()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(accounts: AccountStore, blogs: BlogStore, verifier: FakeVerifier):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = accounts
        app.state.blog_store = blogs
        app.state.identity_verifier = verifier
        app.state.upload_signer = make_upload_signer()
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, FakeVerifier], None, None]:
    """Yield (client, verifier) backed by fresh stores for this test module."""
    url = memory_url("api")
    accounts = AccountStore(url)
    blogs = BlogStore(url)
    verifier = FakeVerifier()

    app.router.lifespan_context = _patch_lifespan(accounts, blogs, verifier)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, verifier

    blogs.close()
    accounts.close()


def signup(client: TestClient, fullname: str, email: str, password: str = "Secret123") -> dict:
    """POST /signup and return the parsed body, asserting success."""
    resp = client.post("/signup", json={"fullname": fullname, "email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
