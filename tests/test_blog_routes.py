"""
tests/test_blog_routes.py -- Integration tests for blog, user, and upload routes.

Covers:
  - /create-blog requires a bearer token (403 invalid_token without one)
  - publish validation surfaces as 400 validation_error
  - feeds: /latest-blogs, /count-latest-blogs, /trending-blogs
  - /search-blogs and /count-search-blogs filters
  - /get_blog/{blog_id} counts reads; unknown id -> 404
  - /search-users and /user-profile/{username}; no hash leaks
  - /get-upload-url returns a signed PUT URL for a .jpeg key
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest
from conftest import auth_header, signup

CONTENT = {"blocks": [{"type": "paragraph", "data": {"text": "body"}}]}


def _post(title: str, tags: list[str] | None = None, **overrides) -> dict:
    body = {
        "title": title,
        "des": "Short description",
        "banner": "https://img/banner.jpeg",
        "content": CONTENT,
        "tags": ["python"] if tags is None else tags,
    }
    body.update(overrides)
    return body


@pytest.fixture(scope="module")
def author(api_client) -> dict:
    client, _ = api_client
    return signup(client, "Blog Author", "blog.author@x.com")


def _create(client, token: str, body: dict) -> str:
    resp = client.post("/create-blog", json=body, headers=auth_header(token))
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


class TestCreateBlogRoute:
    def test_requires_token(self, api_client) -> None:
        client, _ = api_client
        resp = client.post("/create-blog", json=_post("No token"))
        assert resp.status_code == 403
        assert resp.json()["error"] == {"code": "invalid_token", "message": "Access token is required"}

    def test_rejects_forged_token(self, api_client) -> None:
        client, _ = api_client
        resp = client.post("/create-blog", json=_post("Forged"), headers=auth_header("not.a.token"))
        assert resp.status_code == 403

    def test_publish_validation(self, api_client, author) -> None:
        client, _ = api_client
        body = _post("No tags", tags=[], banner="")
        resp = client.post("/create-blog", json=body, headers=auth_header(author["access_token"]))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_create_and_read(self, api_client, author) -> None:
        client, _ = api_client
        blog_id = _create(client, author["access_token"], _post("Route Post", tags=["routes"]))

        resp = client.get(f"/get_blog/{blog_id}")
        assert resp.status_code == 200
        blog = resp.json()["blog"]
        assert blog["title"] == "Route Post"
        assert blog["content"] == CONTENT
        assert blog["tags"] == ["routes"]
        assert blog["author"]["username"] == author["username"]
        assert blog["activity"]["total_reads"] == 1

        again = client.get(f"/get_blog/{blog_id}").json()["blog"]
        assert again["activity"]["total_reads"] == 2

    def test_unknown_blog_is_404(self, api_client) -> None:
        client, _ = api_client
        resp = client.get("/get_blog/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"


class TestFeedRoutes:
    def test_latest_and_count(self, api_client, author) -> None:
        client, _ = api_client
        before = client.get("/count-latest-blogs").json()["totalDocs"]
        newest = _create(client, author["access_token"], _post("Fresh off the press"))
        _create(client, author["access_token"], _post("Hidden draft", draft=True))

        assert client.get("/count-latest-blogs").json()["totalDocs"] == before + 1
        latest = client.post("/latest-blogs", json={"page": 1}).json()["blogs"]
        assert latest[0]["blog_id"] == newest
        assert all(b["title"] != "Hidden draft" for b in latest)
        assert len(latest) <= 5

    def test_latest_rejects_page_zero(self, api_client) -> None:
        client, _ = api_client
        resp = client.post("/latest-blogs", json={"page": 0})
        assert resp.status_code == 422

    def test_trending(self, api_client, author) -> None:
        client, _ = api_client
        hot = _create(client, author["access_token"], _post("Trending topic"))
        for _ in range(10):
            client.get(f"/get_blog/{hot}")
        trending = client.get("/trending-blogs").json()["blogs"]
        assert trending[0]["blog_id"] == hot


class TestSearchRoutes:
    def test_search_by_tag_and_count(self, api_client, author) -> None:
        client, _ = api_client
        token = author["access_token"]
        first = _create(client, token, _post("Tagged one", tags=["searchtag"]))
        second = _create(client, token, _post("Tagged two", tags=["searchtag"]))

        found = client.post("/search-blogs", json={"tag": "searchtag"}).json()["blogs"]
        assert {b["blog_id"] for b in found} == {first, second}

        others = client.post("/search-blogs", json={"tag": "searchtag", "eliminate_curr_blog": first}).json()["blogs"]
        assert [b["blog_id"] for b in others] == [second]

        count = client.post("/count-search-blogs", json={"tag": "searchtag"}).json()
        assert count == {"totalDocs": 2}

    def test_search_by_query(self, api_client, author) -> None:
        client, _ = api_client
        hit = _create(client, author["access_token"], _post("Zebra crossings explained"))
        found = client.post("/search-blogs", json={"query": "zebra"}).json()["blogs"]
        assert [b["blog_id"] for b in found] == [hit]

    def test_search_by_author(self, api_client) -> None:
        client, _ = api_client
        solo = signup(client, "Solo Writer", "solo.writer@x.com")
        blog_id = _create(client, solo["access_token"], _post("Solo post"))
        profile = client.get(f"/user-profile/{solo['username']}").json()["user"]

        found = client.post("/search-blogs", json={"author": profile["id"]}).json()["blogs"]
        assert [b["blog_id"] for b in found] == [blog_id]
        assert client.post("/count-search-blogs", json={"author": profile["id"]}).json()["totalDocs"] == 1


class TestUserRoutes:
    def test_search_users(self, api_client) -> None:
        client, _ = api_client
        signup(client, "Search Target", "findme.please@x.com")
        users = client.post("/search-users", json={"query": "FINDME"}).json()["users"]
        assert [u["username"] for u in users] == ["findme.please"]
        assert set(users[0]) == {"fullname", "username", "profile_img"}

    def test_search_users_requires_term(self, api_client) -> None:
        client, _ = api_client
        resp = client.post("/search-users", json={"query": ""})
        assert resp.status_code == 400

    def test_profile_counts_and_no_secrets(self, api_client) -> None:
        client, _ = api_client
        created = signup(client, "Profile Owner", "profile.owner@x.com")
        _create(client, created["access_token"], _post("Profile post"))

        resp = client.get(f"/user-profile/{created['username']}")
        assert resp.status_code == 200
        user = resp.json()["user"]
        assert user["total_posts"] == 1
        assert user["fullname"] == "Profile Owner"
        assert "hashed_password" not in user
        assert "email" not in user
        assert "google_auth" not in user

    def test_unknown_profile(self, api_client) -> None:
        client, _ = api_client
        resp = client.get("/user-profile/nobody-here")
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "User not found"


class TestUploadRoute:
    def test_signed_put_url(self, api_client) -> None:
        client, _ = api_client
        resp = client.get("/get-upload-url")
        assert resp.status_code == 200
        url = urlparse(resp.json()["uploadUrl"])
        query = parse_qs(url.query)
        assert "inkwell-test" in url.netloc + url.path
        assert url.path.endswith(".jpeg")
        assert query["X-Amz-Expires"] == ["1000"]
        assert "X-Amz-Signature" in query
